"""
Confluence scoring models.

This module defines the data structures for weighted multi-indicator
confluence scoring, the safety-filter gate and the letter-graded signal
quality, plus the report object returned by the engine.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

from signal_engine.shared.config.timeframe_profiles import IchimokuParams
from signal_engine.shared.models.indicators import FakeoutResult, IndicatorSet
from signal_engine.shared.models.smc import StructureAnalysis


Grade = Literal['A', 'B', 'C', 'D']
ContributionDirection = Literal['bullish', 'bearish', 'neutral']


class SignalDirection(str, Enum):
    """Five-band direction derived from the clamped confluence score."""
    STRONG_BUY = "strong_buy"
    BUY = "buy"
    NEUTRAL = "neutral"
    SELL = "sell"
    STRONG_SELL = "strong_sell"

    @property
    def is_bullish(self) -> bool:
        return self in (SignalDirection.STRONG_BUY, SignalDirection.BUY)

    @property
    def is_bearish(self) -> bool:
        return self in (SignalDirection.STRONG_SELL, SignalDirection.SELL)


@dataclass(frozen=True)
class Contribution:
    """
    Single indicator's effect on the confluence score.

    Attributes:
        indicator: Indicator key (e.g. 'RSI', 'MACD', 'VWAP')
        direction: 'bullish', 'bearish' or 'neutral'
        reason: Human-readable explanation
        weight: Signed points added to the weighted score
    """
    indicator: str
    direction: ContributionDirection
    reason: str
    weight: float


@dataclass(frozen=True)
class ConfluenceSignal:
    """
    Weighted confluence result.

    Attributes:
        score: Weighted score clamped to [-100, 100]
        weighted_score: Unclamped weighted sum
        direction: Five-band direction from the score
        strength: 'strong', 'medium' or 'weak'
        confluence_count: floor(max(bullish_count, bearish_count))
        total_indicators: floor(bullish_count + bearish_count)
        bullish_count / bearish_count: Fractional agreeing-indicator counts
        confluence_label: 'excellent', 'high', 'medium' or 'low'
        contributions: Every applied contribution, in evaluation order
    """
    score: float
    weighted_score: float
    direction: SignalDirection
    strength: Literal['strong', 'medium', 'weak']
    confluence_count: int
    total_indicators: int
    bullish_count: float
    bearish_count: float
    confluence_label: Literal['excellent', 'high', 'medium', 'low']
    contributions: Tuple[Contribution, ...] = field(default_factory=tuple)

    @property
    def signal_direction(self) -> Literal['bullish', 'bearish']:
        """Binary lean used by the directional safety filters."""
        return 'bullish' if self.score > 0 else 'bearish'

    @property
    def reasons(self) -> List[str]:
        return [c.reason for c in self.contributions]


@dataclass(frozen=True)
class SafetyFilters:
    liquidity_ok: bool
    momentum_aligned: bool
    trend_confirmed: bool
    no_fakeout: bool
    volatility_ok: bool

    @property
    def passed(self) -> int:
        return sum(
            1 for ok in (
                self.liquidity_ok,
                self.momentum_aligned,
                self.trend_confirmed,
                self.no_fakeout,
                self.volatility_ok,
            ) if ok
        )

    @property
    def total(self) -> int:
        return 5


@dataclass(frozen=True)
class SignalQuality:
    """
    Tradeability grade for a confluence signal.

    Attributes:
        score: Quality points (0-100) after safety penalties
        grade: 'A', 'B', 'C' or 'D' from the selected ladder
        tradeable: Ladder verdict including its confluence/filter rules
        minimum_met: Quality >= 35 and confluence >= 2
        factors: Human-readable scoring and penalty notes
        filters_passed / filters_total: Safety filter tally
    """
    score: float
    grade: Grade
    tradeable: bool
    minimum_met: bool
    factors: Tuple[str, ...] = field(default_factory=tuple)
    filters_passed: int = 0
    filters_total: int = 5


@dataclass(frozen=True)
class StructureTradeEvaluation:
    """
    Filtered view of a structural signal.

    Attributes:
        tradeable: False when any filter rejected the signal
        reject_reason: First failing filter, if any
        win_probability: Heuristic hit-rate estimate (0.5-0.85)
        direction: 'long', 'short' or None
        entry / stop_loss / take_profit: Recommended levels
        rrr: Reward-to-risk ratio of the recommendation
        level_source: 'structure' or 'atr' depending on where levels came from
    """
    tradeable: bool
    reject_reason: Optional[str] = None
    win_probability: float = 0.0
    direction: Optional[Literal['long', 'short']] = None
    entry: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    rrr: Optional[float] = None
    level_source: Optional[Literal['structure', 'atr']] = None


@dataclass(frozen=True)
class ExternalSignalConfirmation:
    """
    Verdict on an externally generated long/short signal.

    confirmed when confirmations - rejections >= 3; confidence grades the
    raw confirmation count (high >= 7, medium >= 5).
    """
    confirmed: bool
    confirmations: int
    rejections: int
    confidence: Literal['high', 'medium', 'low']
    reasons: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def net_score(self) -> int:
        return self.confirmations - self.rejections


@dataclass(frozen=True)
class SignalReport:
    """
    Engine output for one candle series.

    ``score``, ``direction``, ``grade`` and ``tradeable`` are always
    available; the detailed sections are None when the series is too short
    for the corresponding analysis path.
    """
    timeframe: str
    profile: str
    candle_count: int
    price: float
    ichimoku: IchimokuParams
    insufficient_data: bool = False
    tpsl: Dict[str, float] = field(default_factory=dict)
    confluence: Optional[ConfluenceSignal] = None
    quality: Optional[SignalQuality] = None
    filters: Optional[SafetyFilters] = None
    fakeout: Optional[FakeoutResult] = None
    indicators: Optional[IndicatorSet] = None
    structure: Optional[StructureAnalysis] = None
    structure_evaluation: Optional[StructureTradeEvaluation] = None

    @property
    def score(self) -> float:
        return self.confluence.score if self.confluence else 0.0

    @property
    def direction(self) -> SignalDirection:
        return self.confluence.direction if self.confluence else SignalDirection.NEUTRAL

    @property
    def grade(self) -> Grade:
        return self.quality.grade if self.quality else 'D'

    @property
    def tradeable(self) -> bool:
        return self.quality.tradeable if self.quality else False

    @property
    def reasons(self) -> List[str]:
        reasons = self.confluence.reasons if self.confluence else []
        if self.structure is not None:
            reasons = reasons + list(self.structure.signal.reasons)
        return reasons

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict summary (``dataclasses.asdict``) for audit logging."""
        data = asdict(self)
        data.update({
            'score': self.score,
            'direction': self.direction.value,
            'grade': self.grade,
            'tradeable': self.tradeable,
            'reasons': self.reasons,
        })
        if data['confluence'] is not None:
            data['confluence']['direction'] = self.direction.value
        return data
