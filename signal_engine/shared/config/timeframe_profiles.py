"""
Per-timeframe indicator parameterization.

Shorter timeframes need shorter look-backs and wider overbought/oversold
thresholds to keep indicators responsive without drowning in noise; higher
timeframes trade responsiveness for stability. Each supported timeframe maps
to an immutable TimeframeProfile that is passed explicitly to every
indicator call.

Supported labels: 1m, 5m, 15m, 1h, 4h, 1d. Anything else resolves to 1h.
"""

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


DEFAULT_TIMEFRAME = "1h"


@dataclass(frozen=True)
class RSIParams:
    period: int = 14
    overbought: float = 70.0
    oversold: float = 30.0


@dataclass(frozen=True)
class StochRSIParams:
    rsi_period: int = 14
    stoch_period: int = 14
    k_period: int = 3
    d_period: int = 3
    overbought: float = 80.0
    oversold: float = 20.0


@dataclass(frozen=True)
class MACDParams:
    fast: int = 8
    slow: int = 17
    signal: int = 9


@dataclass(frozen=True)
class BollingerParams:
    period: int = 20
    std_dev: float = 2.0


@dataclass(frozen=True)
class VolumeParams:
    ma_period: int = 20
    spike_multiplier: float = 1.5


@dataclass(frozen=True)
class EMAParams:
    fast: int = 50
    slow: int = 200


@dataclass(frozen=True)
class ADXParams:
    period: int = 14
    trend_threshold: float = 20.0


@dataclass(frozen=True)
class IchimokuParams:
    """Ichimoku Cloud settings recommended for the timeframe."""
    tenkan: int = 10
    kijun: int = 30
    senkou: int = 60
    displacement: int = 30


@dataclass(frozen=True)
class TimeframeProfile:
    """
    Immutable bundle of indicator parameters for one timeframe.

    Attributes:
        name: Timeframe label the profile was built for
        rsi: RSI period and thresholds
        stoch_rsi: Stochastic RSI periods and thresholds
        macd: MACD fast/slow/signal periods
        bollinger: Bollinger period and deviation multiplier
        volume: Volume MA period and spike multiplier
        ema: Fast/slow EMA periods (slow drives the EMA trend filter)
        adx: ADX period and trending threshold
        ichimoku: Recommended Ichimoku settings (reported, not scored)
    """
    name: str = DEFAULT_TIMEFRAME
    rsi: RSIParams = field(default_factory=RSIParams)
    stoch_rsi: StochRSIParams = field(default_factory=StochRSIParams)
    macd: MACDParams = field(default_factory=MACDParams)
    bollinger: BollingerParams = field(default_factory=BollingerParams)
    volume: VolumeParams = field(default_factory=VolumeParams)
    ema: EMAParams = field(default_factory=EMAParams)
    adx: ADXParams = field(default_factory=ADXParams)
    ichimoku: IchimokuParams = field(default_factory=IchimokuParams)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Scalping: ultra-short periods, wide thresholds to filter 1m noise
_PROFILE_1M = TimeframeProfile(
    name="1m",
    rsi=RSIParams(period=5, overbought=80, oversold=20),
    stoch_rsi=StochRSIParams(rsi_period=5, stoch_period=5, k_period=2, d_period=2, overbought=85, oversold=15),
    macd=MACDParams(fast=3, slow=10, signal=3),
    bollinger=BollingerParams(period=10, std_dev=1.8),
    volume=VolumeParams(ma_period=8, spike_multiplier=1.5),
    ema=EMAParams(fast=9, slow=21),
    adx=ADXParams(period=7, trend_threshold=15),
    ichimoku=IchimokuParams(tenkan=6, kijun=13, senkou=26, displacement=13),
)

_PROFILE_5M = TimeframeProfile(
    name="5m",
    rsi=RSIParams(period=7, overbought=75, oversold=25),
    stoch_rsi=StochRSIParams(rsi_period=7, stoch_period=7, k_period=3, d_period=3, overbought=82, oversold=18),
    macd=MACDParams(fast=5, slow=12, signal=4),
    bollinger=BollingerParams(period=12, std_dev=2.0),
    volume=VolumeParams(ma_period=12, spike_multiplier=1.6),
    ema=EMAParams(fast=12, slow=26),
    adx=ADXParams(period=10, trend_threshold=18),
    ichimoku=IchimokuParams(tenkan=6, kijun=13, senkou=26, displacement=13),
)

_PROFILE_15M = TimeframeProfile(
    name="15m",
    rsi=RSIParams(period=9, overbought=72, oversold=28),
    stoch_rsi=StochRSIParams(rsi_period=9, stoch_period=9, k_period=3, d_period=3, overbought=80, oversold=20),
    macd=MACDParams(fast=6, slow=14, signal=5),
    bollinger=BollingerParams(period=15, std_dev=2.0),
    volume=VolumeParams(ma_period=15, spike_multiplier=1.5),
    ema=EMAParams(fast=21, slow=55),
    adx=ADXParams(period=12, trend_threshold=20),
    ichimoku=IchimokuParams(tenkan=9, kijun=26, senkou=52, displacement=26),
)

# 1h uses the base defaults
_PROFILE_1H = TimeframeProfile(name="1h")

_PROFILE_4H = TimeframeProfile(
    name="4h",
    rsi=RSIParams(period=14, overbought=68, oversold=32),
    stoch_rsi=StochRSIParams(overbought=78, oversold=22),
    macd=MACDParams(fast=10, slow=21, signal=9),
    bollinger=BollingerParams(period=20, std_dev=2.2),
    volume=VolumeParams(ma_period=20, spike_multiplier=1.4),
    ema=EMAParams(fast=50, slow=200),
    ichimoku=IchimokuParams(tenkan=20, kijun=60, senkou=120, displacement=30),
)

# Swing trading: classic MACD, tighter RSI thresholds
_PROFILE_1D = TimeframeProfile(
    name="1d",
    rsi=RSIParams(period=14, overbought=65, oversold=35),
    stoch_rsi=StochRSIParams(overbought=75, oversold=25),
    macd=MACDParams(fast=12, slow=26, signal=9),
    bollinger=BollingerParams(period=20, std_dev=2.5),
    volume=VolumeParams(ma_period=20, spike_multiplier=1.3),
    ema=EMAParams(fast=50, slow=200),
    ichimoku=IchimokuParams(tenkan=9, kijun=26, senkou=52, displacement=26),
)

TIMEFRAME_PROFILES: Dict[str, TimeframeProfile] = {
    "1m": _PROFILE_1M,
    "5m": _PROFILE_5M,
    "15m": _PROFILE_15M,
    "1h": _PROFILE_1H,
    "4h": _PROFILE_4H,
    "1d": _PROFILE_1D,
}

# Recommended target / stop distance in percent per timeframe
TIMEFRAME_TPSL: Dict[str, Dict[str, float]] = {
    "1m": {"tp": 0.8, "sl": 0.4},
    "5m": {"tp": 1.6, "sl": 0.8},
    "15m": {"tp": 3.0, "sl": 1.5},
    "30m": {"tp": 4.0, "sl": 2.0},
    "1h": {"tp": 5.0, "sl": 2.5},
    "4h": {"tp": 8.0, "sl": 4.0},
    "1d": {"tp": 14.0, "sl": 7.0},
}


def normalize_timeframe(timeframe: str) -> str:
    """Map '1H', '4H', '1D' style labels onto the lower-case keys."""
    label = (timeframe or "").strip()
    if label[-1:] in ("H", "D", "W"):
        return label.lower()
    return label


def get_timeframe_profile(timeframe: str) -> TimeframeProfile:
    """
    Get the indicator profile for a timeframe.

    Args:
        timeframe: Timeframe label (e.g. '5m', '1h', '4H')

    Returns:
        TimeframeProfile for the label, or the 1h profile when unknown
    """
    profile = TIMEFRAME_PROFILES.get(normalize_timeframe(timeframe))
    if profile is None:
        logger.debug("Unknown timeframe %r, falling back to %s profile", timeframe, DEFAULT_TIMEFRAME)
        return TIMEFRAME_PROFILES[DEFAULT_TIMEFRAME]
    return profile


def get_timeframe_tpsl(timeframe: str) -> Dict[str, float]:
    """Recommended take-profit / stop-loss percentages for a timeframe."""
    return dict(TIMEFRAME_TPSL.get(normalize_timeframe(timeframe), TIMEFRAME_TPSL[DEFAULT_TIMEFRAME]))


def with_overrides(profile: TimeframeProfile, **sections: Dict[str, Any]) -> TimeframeProfile:
    """
    Derive a profile with some parameters replaced.

    Example:
        with_overrides(profile, rsi={"period": 21}, macd={"signal": 5})
    """
    updates = {}
    for section, values in sections.items():
        current = getattr(profile, section, None)
        if current is None or section == "name":
            raise ValueError(f"Unknown profile section: {section}")
        updates[section] = replace(current, **values)
    return replace(profile, **updates)
