"""
Technical indicator result models.

Every indicator returns its own frozen result dataclass. Each result carries
an ``insufficient_data`` flag and a ``neutral()`` constructor producing the
value returned when the input is too short to compute the indicator, so
callers never have to guess whether a zero means "flat" or "not enough data".

Momentum:
    RSIResult, StochRSIResult, MACDResult, MomentumResult, RSIDivergenceResult

Trend:
    EMATrendResult, EMACrossResult, ADXResult, SupertrendResult,
    FibonacciResult, FibonacciTargets, IchimokuResult

Volatility:
    ATRResult, BollingerResult, SqueezeResult

Volume / order flow:
    OBVResult, VWAPResult, CVDResult, VolumeResult

Filters:
    LiquidityResult, FakeoutResult
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple


Divergence = Literal['bullish', 'bearish']
Crossover = Literal['bullish', 'bearish']
TrendLabel = Literal['strong_bullish', 'bullish', 'neutral', 'bearish', 'strong_bearish']


@dataclass(frozen=True)
class RSIResult:
    """
    Relative Strength Index reading.

    Attributes:
        value: RSI (0-100), rounded to 2 decimals
        signal: 'overbought', 'oversold', 'bullish', 'bearish' or 'neutral'
        strength: How deep into the bucket the reading sits (0-1)
    """
    value: float
    signal: Literal['overbought', 'oversold', 'bullish', 'bearish', 'neutral']
    strength: float
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "RSIResult":
        return cls(value=50.0, signal='neutral', strength=0.0, insufficient_data=True)


@dataclass(frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float
    trend: TrendLabel
    crossover: Optional[Crossover] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "MACDResult":
        return cls(macd=0.0, signal=0.0, histogram=0.0, trend='neutral', insufficient_data=True)


@dataclass(frozen=True)
class BollingerResult:
    """
    Bollinger Band reading.

    Attributes:
        upper / middle / lower: Band levels
        bandwidth: (upper - lower) / middle as a percentage
        percent_b: Position of price inside the bands (0 = lower, 100 = upper)
        signal: 'overbought', 'oversold', 'upper_band', 'lower_band' or 'neutral'
        squeeze: True when bandwidth is below the squeeze threshold
    """
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float
    signal: Literal['overbought', 'oversold', 'upper_band', 'lower_band', 'neutral']
    squeeze: bool = False
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "BollingerResult":
        return cls(
            upper=0.0, middle=0.0, lower=0.0, bandwidth=0.0, percent_b=50.0,
            signal='neutral', insufficient_data=True,
        )


@dataclass(frozen=True)
class StochRSIResult:
    k: float
    d: float
    signal: Literal['strong_buy', 'strong_sell', 'oversold', 'overbought', 'bullish', 'bearish', 'neutral']
    crossover: Optional[Crossover] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "StochRSIResult":
        return cls(k=50.0, d=50.0, signal='neutral', insufficient_data=True)


@dataclass(frozen=True)
class EMATrendResult:
    """
    Long-period EMA trend filter reading.

    Attributes:
        value: Current EMA value
        position: 'above', 'below', 'near' or 'neutral' (insufficient data)
        trend: 'bullish', 'bearish' or 'consolidation'
        slope: 'rising', 'falling' or 'flat'
        slope_pct: EMA change over the last 5 values in percent
        distance_pct: Price distance from the EMA in percent
    """
    value: float
    position: Literal['above', 'below', 'near', 'neutral']
    trend: Literal['bullish', 'bearish', 'consolidation', 'neutral']
    slope: Literal['rising', 'falling', 'flat']
    slope_pct: float = 0.0
    distance_pct: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "EMATrendResult":
        return cls(value=0.0, position='neutral', trend='neutral', slope='flat', insufficient_data=True)


@dataclass(frozen=True)
class EMACrossResult:
    fast: float
    slow: float
    trend: TrendLabel
    crossover: Optional[Crossover] = None
    distance_pct: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "EMACrossResult":
        return cls(fast=0.0, slow=0.0, trend='neutral', insufficient_data=True)


@dataclass(frozen=True)
class OBVResult:
    value: float
    trend: Literal['bullish', 'bearish', 'neutral']
    divergence: Optional[Divergence] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "OBVResult":
        return cls(value=0.0, trend='neutral', insufficient_data=True)


@dataclass(frozen=True)
class VWAPResult:
    """
    Volume-weighted average price with deviation bands.

    Attributes:
        vwap: Cumulative VWAP at the last candle
        upper_band1 / lower_band1: VWAP +/- 1 standard deviation
        upper_band2 / lower_band2: VWAP +/- 2 standard deviations
        std_dev: Volume-weighted standard deviation of typical price
        position: Where price sits relative to VWAP and its bands
        signal: Mean-reversion or trend signal derived from position
        slope: 'rising', 'falling' or 'flat' over the last 5 values
        distance_pct: Price distance from VWAP in percent
    """
    vwap: float
    upper_band1: float
    lower_band1: float
    upper_band2: float
    lower_band2: float
    std_dev: float
    position: Literal['far_above', 'above_band1', 'above', 'at_vwap', 'below', 'below_band1', 'far_below']
    signal: Literal['overbought_vwap', 'oversold_vwap', 'bullish_vwap', 'bearish_vwap', 'neutral']
    slope: Literal['rising', 'falling', 'flat'] = 'flat'
    distance_pct: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "VWAPResult":
        return cls(
            vwap=0.0, upper_band1=0.0, lower_band1=0.0, upper_band2=0.0, lower_band2=0.0,
            std_dev=0.0, position='at_vwap', signal='neutral', insufficient_data=True,
        )


@dataclass(frozen=True)
class CVDResult:
    value: float
    trend: Literal['bullish', 'bearish', 'neutral']
    strength: float
    divergence: Optional[Divergence] = None
    history: Tuple[float, ...] = field(default_factory=tuple)
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "CVDResult":
        return cls(value=0.0, trend='neutral', strength=0.0, insufficient_data=True)


@dataclass(frozen=True)
class ATRResult:
    """
    Average True Range reading.

    Attributes:
        atr: Mean true range over the period
        atr_pct: ATR as a percentage of the last close
        volatility: 'extreme', 'high', 'normal', 'low' or 'unknown'
        sl_multiplier: Suggested stop distance in ATR units
        tp_multiplier: Suggested target distance in ATR units
    """
    atr: float
    atr_pct: float
    volatility: Literal['extreme', 'high', 'normal', 'low', 'unknown']
    sl_multiplier: float
    tp_multiplier: float
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "ATRResult":
        return cls(
            atr=0.0, atr_pct=0.0, volatility='unknown',
            sl_multiplier=1.5, tp_multiplier=2.0, insufficient_data=True,
        )


@dataclass(frozen=True)
class ADXResult:
    adx: float
    plus_di: float
    minus_di: float
    trend_strength: Literal['very_strong', 'strong', 'moderate', 'weak', 'unknown']
    trending: bool
    trend_direction: Optional[Literal['bullish', 'bearish']] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "ADXResult":
        return cls(
            adx=0.0, plus_di=0.0, minus_di=0.0, trend_strength='unknown',
            trending=False, insufficient_data=True,
        )


@dataclass(frozen=True)
class MomentumResult:
    momentum: float
    momentum_pct: float
    signal: TrendLabel
    increasing: bool = False
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "MomentumResult":
        return cls(momentum=0.0, momentum_pct=0.0, signal='neutral', insufficient_data=True)


@dataclass(frozen=True)
class SupertrendResult:
    value: float
    direction: Literal['bullish', 'bearish', 'neutral']
    signal: Optional[Literal['buy', 'sell']] = None
    trend_strength: float = 0.0
    upper_band: float = 0.0
    lower_band: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "SupertrendResult":
        return cls(value=0.0, direction='neutral', insufficient_data=True)


@dataclass(frozen=True)
class FibonacciResult:
    """
    Fibonacci retracement grid over the recent swing range.

    Attributes:
        swing_high / swing_low: Extremes of the lookback window
        is_uptrend: True when the swing low precedes the swing high
        levels: Level label ('0', '23.6', ... '100') to price
        nearest_support / nearest_resistance: Closest level below / above price
        current_level: Label of a level within 0.5% of price, if any
        retracement_pct: How far price has retraced into the range
    """
    swing_high: float
    swing_low: float
    is_uptrend: bool
    levels: Dict[str, float] = field(default_factory=dict)
    nearest_support: Optional[float] = None
    nearest_resistance: Optional[float] = None
    current_level: Optional[str] = None
    retracement_pct: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "FibonacciResult":
        return cls(swing_high=0.0, swing_low=0.0, is_uptrend=False, insufficient_data=True)


@dataclass(frozen=True)
class FibonacciTargets:
    stop_loss: float
    take_profit: float
    risk: float
    reward: float
    rrr: float


@dataclass(frozen=True)
class RSIDivergenceResult:
    divergence: Optional[Divergence] = None
    strength: float = 0.0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "RSIDivergenceResult":
        return cls(insufficient_data=True)


@dataclass(frozen=True)
class VolumeResult:
    current: float
    average: float
    ratio: float
    spike: bool
    trend: Literal['increasing', 'decreasing', 'stable']
    price_volume_signal: Optional[
        Literal['bullish_confirmation', 'bearish_confirmation', 'weak_rally', 'weak_decline']
    ] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "VolumeResult":
        return cls(current=0.0, average=0.0, ratio=1.0, spike=False, trend='stable', insufficient_data=True)


@dataclass(frozen=True)
class LiquidityResult:
    sufficient: bool
    volume_ratio: float
    zero_volume_candles: int = 0
    warning: Optional[str] = None
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "LiquidityResult":
        return cls(
            sufficient=False, volume_ratio=0.0, warning='insufficient data',
            insufficient_data=True,
        )


@dataclass(frozen=True)
class FakeoutResult:
    is_fakeout: bool
    confidence: float
    reasons: Tuple[str, ...] = field(default_factory=tuple)
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "FakeoutResult":
        return cls(is_fakeout=False, confidence=0.0, insufficient_data=True)


@dataclass(frozen=True)
class IchimokuResult:
    """
    Ichimoku Kinko Hyo reading.

    Attributes:
        tenkan / kijun: Conversion and base lines at the last candle
        senkou_a / senkou_b: Cloud spans plotted under the last candle
            (computed ``displacement`` candles earlier)
        kumo_color: 'green' when span A is above span B, else 'red'
        price_position: Price relative to the cloud
        tk_cross: Tenkan / Kijun crossover on the last candle
        kumo_twist: Projected cloud changed colour on the last candle
        kumo_breakout: Close left the cloud on the last candle
        chikou: Last close compared with the close ``displacement`` candles back
        score: Net cloud score from -7 (fully bearish) to +7
        direction: 'bullish' at score >= 3, 'bearish' at <= -3
        future_kumo_top / future_kumo_bottom: Projected cloud edges
    """
    tenkan: float
    kijun: float
    senkou_a: float
    senkou_b: float
    kumo_color: Literal['green', 'red']
    price_position: Literal['above', 'below', 'inside']
    tk_cross: Optional[Crossover] = None
    kumo_twist: Optional[Crossover] = None
    kumo_breakout: Optional[Crossover] = None
    chikou: Optional[Literal['bullish', 'bearish']] = None
    score: int = 0
    direction: Literal['bullish', 'bearish', 'neutral'] = 'neutral'
    future_kumo_top: float = 0.0
    future_kumo_bottom: float = 0.0
    insufficient_data: bool = False

    @property
    def kumo_top(self) -> float:
        return max(self.senkou_a, self.senkou_b)

    @property
    def kumo_bottom(self) -> float:
        return min(self.senkou_a, self.senkou_b)

    @classmethod
    def neutral(cls) -> "IchimokuResult":
        return cls(
            tenkan=0.0, kijun=0.0, senkou_a=0.0, senkou_b=0.0,
            kumo_color='red', price_position='inside', insufficient_data=True,
        )


@dataclass(frozen=True)
class SqueezeResult:
    """
    Bollinger Bands inside Keltner Channel squeeze reading.

    Attributes:
        squeezing: Bollinger Bands sit fully inside the Keltner Channel
        released: The previous candle was squeezing and this one is not
        squeeze_count: Consecutive squeezing candles ending at the last one
        momentum_pct: Rate of change over the momentum period in percent
        momentum_increasing: Rate of change rose on the last candle
        signal: Confirmed breakout ('bullish' / 'bearish') or a pending
            breakout still inside the squeeze ('bullish_pending' / 'bearish_pending')
        score: Signed squeeze score, negative for bearish signals
    """
    squeezing: bool
    released: bool
    squeeze_count: int
    bandwidth: float
    keltner_upper: float
    keltner_lower: float
    momentum_pct: float = 0.0
    momentum_increasing: bool = False
    signal: Optional[Literal['bullish', 'bearish', 'bullish_pending', 'bearish_pending']] = None
    score: int = 0
    insufficient_data: bool = False

    @classmethod
    def neutral(cls) -> "SqueezeResult":
        return cls(
            squeezing=False, released=False, squeeze_count=0, bandwidth=0.0,
            keltner_upper=0.0, keltner_lower=0.0, insufficient_data=True,
        )


@dataclass(frozen=True)
class IndicatorSet:
    """
    Complete set of indicator readings for one candle series and profile.

    Built once per analysis call by the indicator service and consumed by
    the confluence scorer and quality grader.
    """
    price: float
    rsi: RSIResult
    stoch_rsi: StochRSIResult
    macd: MACDResult
    bollinger: BollingerResult
    ema_trend: EMATrendResult
    ema_cross: EMACrossResult
    obv: OBVResult
    vwap: VWAPResult
    cvd: CVDResult
    atr: ATRResult
    adx: ADXResult
    momentum: MomentumResult
    supertrend: SupertrendResult
    fibonacci: FibonacciResult
    rsi_divergence: RSIDivergenceResult
    volume: VolumeResult
    liquidity: LiquidityResult
    ichimoku: IchimokuResult
    squeeze: SqueezeResult

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
