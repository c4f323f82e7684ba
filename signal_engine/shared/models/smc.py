"""
Smart-Money Concepts (SMC) detection models.

This module defines data structures for institutional trading patterns:
- Swings: Local extremes that anchor market structure
- Order Blocks (OB): Last opposing candle before an impulsive move
- Fair Value Gaps (FVG): Three-candle imbalance zones
- Structural Breaks: BOS (Break of Structure) and CHoCH (Change of Character)
- Liquidity Sweeps: Stop hunt patterns beyond a swing that reclaim it
- Premium/Discount zoning and trading-session context

All models are frozen; detectors return new objects instead of updating
earlier results.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple


PatternDirection = Literal['bullish', 'bearish']
StructureTrend = Literal['bullish', 'bearish', 'neutral']


@dataclass(frozen=True)
class Swing:
    """
    Swing point (local high or low).

    Attributes:
        index: Position of the swing candle in the series
        price: Swing high or swing low price
        timestamp: Candle time
        broken: True once a later close has traded through the level
    """
    index: int
    price: float
    timestamp: Any
    broken: bool = False


@dataclass(frozen=True)
class SwingPoints:
    """Swing highs and lows, each ordered oldest first."""
    highs: Tuple[Swing, ...] = field(default_factory=tuple)
    lows: Tuple[Swing, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MarketStructure:
    """
    Trend classification from the most recent swing sequence.

    Attributes:
        trend: 'bullish' (HH + HL), 'bearish' (LH + LL) or 'neutral'
        strength: Share of matched swing pairs (0-1)
        last_swing_high / last_swing_low: Most recent swings of each side
        last_swing: Whichever of the two formed later
    """
    trend: StructureTrend
    strength: float
    last_swing_high: Optional[Swing] = None
    last_swing_low: Optional[Swing] = None
    last_swing: Optional[Swing] = None
    higher_highs: int = 0
    lower_highs: int = 0
    higher_lows: int = 0
    lower_lows: int = 0


@dataclass(frozen=True)
class OrderBlock:
    """
    Order Block - institutional supply/demand zone.

    Attributes:
        type: 'bullish' (demand zone) or 'bearish' (supply zone)
        high / low: Zone boundaries (the originating candle's range)
        index: Position of the originating candle
        timestamp: Originating candle time
        age: Candles elapsed since the originating candle
        strength: Size in percent of the move that followed the block
        tested: True when current price trades inside the zone
    """
    type: PatternDirection
    high: float
    low: float
    index: int
    timestamp: Any
    age: int
    strength: float
    tested: bool = False

    @property
    def midpoint(self) -> float:
        return (self.high + self.low) / 2

    def distance_to(self, price: float) -> float:
        return min(abs(price - self.high), abs(price - self.low))


@dataclass(frozen=True)
class FairValueGap:
    """
    Fair Value Gap - price imbalance left by a displacement candle.

    Attributes:
        type: 'bullish' (gap below price) or 'bearish' (gap above price)
        high / low: Gap boundaries
        midpoint: Centre of the gap
        index: Position of the third candle of the pattern
        timestamp: Time of the middle (displacement) candle
        age: Candles elapsed since the gap completed
        size_pct: Gap height as a percentage of the reference price
        filled: True once a later wick reached the far edge of the gap
    """
    type: PatternDirection
    high: float
    low: float
    midpoint: float
    index: int
    timestamp: Any
    age: int
    size_pct: float
    filled: bool = False


@dataclass(frozen=True)
class StructureBreak:
    """
    Break of Structure (continuation) or Change of Character (reversal).

    Attributes:
        type: 'bos' or 'choch'
        direction: Side the break points to
        level: Broken swing price
        swing_index: Position of the broken swing
        break_index: Position of the first candle closing through the level
        timestamp: Time of the breaking candle
        age: Candles elapsed since the break
    """
    type: Literal['bos', 'choch']
    direction: PatternDirection
    level: float
    swing_index: int
    break_index: int
    timestamp: Any
    age: int


@dataclass(frozen=True)
class LiquiditySweep:
    """
    Liquidity sweep - wick beyond a swing followed by a reclaiming close.

    Attributes:
        type: 'bullish' (sell-side swept below a low) or 'bearish' (buy-side)
        level: Swept swing price
        extreme: Wick extreme beyond the level
        index: Position of the sweeping candle
        timestamp: Time of the sweeping candle
        age: Candles elapsed since the sweep
        size_pct: Pierce depth beyond the level in percent
    """
    type: PatternDirection
    level: float
    extreme: float
    index: int
    timestamp: Any
    age: int
    size_pct: float


@dataclass(frozen=True)
class PriceZone:
    high: float
    low: float


@dataclass(frozen=True)
class PremiumDiscount:
    range_high: float
    range_low: float
    equilibrium: float
    premium_zone: PriceZone
    discount_zone: PriceZone
    current_zone: Literal['premium', 'discount', 'equilibrium']


@dataclass(frozen=True)
class SessionContext:
    hour: Optional[int]
    active_sessions: Tuple[str, ...] = field(default_factory=tuple)
    is_high_volume: bool = False
    is_trading_session: bool = False


@dataclass(frozen=True)
class StructureSignal:
    """
    Directional signal synthesised from the structural features.

    Attributes:
        direction: 'long', 'short' or None when the score is below threshold
        score: Signed structural score
        confidence: |score| / 10, capped at 1
        reasons: Human-readable contributing observations
        confluences: Short tags of contributing features
        stop_loss / take_profit: Suggested levels when a direction exists
        sl_pct / tp_pct: Level distances from price in percent
        rrr: Reward-to-risk ratio of the suggested levels
    """
    direction: Optional[Literal['long', 'short']]
    score: int
    confidence: float
    reasons: Tuple[str, ...] = field(default_factory=tuple)
    confluences: Tuple[str, ...] = field(default_factory=tuple)
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    sl_pct: Optional[float] = None
    tp_pct: Optional[float] = None
    rrr: Optional[float] = None

    @property
    def confluence_count(self) -> int:
        return len(self.confluences)


@dataclass(frozen=True)
class StructureAnalysis:
    """Everything the structure analyzer derived for one candle series."""
    price: float
    swings: SwingPoints
    structure: MarketStructure
    order_blocks: List[OrderBlock]
    fair_value_gaps: List[FairValueGap]
    structure_breaks: List[StructureBreak]
    liquidity_sweeps: List[LiquiditySweep]
    premium_discount: Optional[PremiumDiscount]
    session: SessionContext
    signal: StructureSignal

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
