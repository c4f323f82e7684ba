"""
Volatility Indicators Module

Implements volatility-based technical indicators:
- ATR (Average True Range) with volatility regime and stop/target multipliers
- Bollinger Bands with %B, bandwidth and squeeze detection
- Bollinger / Keltner Channel squeeze with release and breakout direction

Every function returns a frozen result object and falls back to the
result's neutral() value when the frame is too short.
"""

import logging

import numpy as np
import pandas as pd

from signal_engine.shared.config.timeframe_profiles import BollingerParams
from signal_engine.shared.models.indicators import ATRResult, BollingerResult, SqueezeResult

logger = logging.getLogger(__name__)


BOLLINGER_SQUEEZE_BANDWIDTH = 4.0
KELTNER_PERIOD = 20
KELTNER_MULTIPLIER = 1.5
SQUEEZE_MOMENTUM_PERIOD = 12
SQUEEZE_MIN_CANDLES = 30

# atr% floor -> (label, stop multiplier, target multiplier), checked in order
_VOLATILITY_REGIMES = (
    (3.0, 'extreme', 2.5, 3.0),
    (2.0, 'high', 2.0, 2.5),
)
_LOW_VOLATILITY_CEILING = 0.5


def true_range(df: pd.DataFrame) -> np.ndarray:
    """
    True range for every candle after the first.

    TR = max(high - low, |high - prev_close|, |low - prev_close|)
    """
    high = df['high'].to_numpy(dtype=float)
    low = df['low'].to_numpy(dtype=float)
    close = df['close'].to_numpy(dtype=float)
    if len(close) < 2:
        return np.empty(0)
    prev_close = close[:-1]
    return np.maximum.reduce([
        high[1:] - low[1:],
        np.abs(high[1:] - prev_close),
        np.abs(low[1:] - prev_close),
    ])


def compute_atr(df: pd.DataFrame, period: int = 14) -> ATRResult:
    """
    Compute Average True Range.

    ATR here is the simple mean of the last ``period`` true ranges, and the
    volatility regime is read from ATR as a percentage of the last close.

    Args:
        df: DataFrame with high, low, close columns
        period: Number of true ranges averaged (default 14)

    Returns:
        ATRResult with atr, atr_pct, volatility regime and multipliers
    """
    if len(df) < period + 1:
        logger.debug("ATR: need %d candles, got %d", period + 1, len(df))
        return ATRResult.neutral()

    atr = float(true_range(df)[-period:].mean())
    price = float(df['close'].iloc[-1])
    atr_pct = atr / price * 100 if price else 0.0

    volatility, sl_mult, tp_mult = 'normal', 1.5, 2.0
    for floor, label, sl, tp in _VOLATILITY_REGIMES:
        if atr_pct > floor:
            volatility, sl_mult, tp_mult = label, sl, tp
            break
    else:
        if atr_pct < _LOW_VOLATILITY_CEILING:
            volatility, sl_mult, tp_mult = 'low', 1.0, 1.5

    return ATRResult(
        atr=atr,
        atr_pct=round(atr_pct, 3),
        volatility=volatility,
        sl_multiplier=sl_mult,
        tp_multiplier=tp_mult,
    )


def compute_bollinger_bands(df: pd.DataFrame, params: BollingerParams = BollingerParams()) -> BollingerResult:
    """
    Compute Bollinger Bands over the last ``params.period`` closes.

    Uses the population standard deviation. When the bands collapse (flat
    price) %B is reported as 50.

    Args:
        df: DataFrame with 'close' column
        params: Period and standard-deviation multiplier

    Returns:
        BollingerResult
    """
    if len(df) < params.period:
        logger.debug("Bollinger: need %d candles, got %d", params.period, len(df))
        return BollingerResult.neutral()

    window = df['close'].iloc[-params.period:].astype(float)
    middle = float(window.mean())
    std = float(window.std(ddof=0))
    upper = middle + params.std_dev * std
    lower = middle - params.std_dev * std
    price = float(window.iloc[-1])

    bandwidth = (upper - lower) / middle * 100 if middle else 0.0
    width = upper - lower
    percent_b = (price - lower) / width * 100 if width > 0 else 50.0

    if percent_b >= 100:
        signal = 'overbought'
    elif percent_b <= 0:
        signal = 'oversold'
    elif percent_b > 80:
        signal = 'upper_band'
    elif percent_b < 20:
        signal = 'lower_band'
    else:
        signal = 'neutral'

    return BollingerResult(
        upper=upper,
        middle=middle,
        lower=lower,
        bandwidth=bandwidth,
        percent_b=percent_b,
        signal=signal,
        squeeze=bandwidth < BOLLINGER_SQUEEZE_BANDWIDTH,
    )


def _keltner_middle(closes: np.ndarray, period: int) -> np.ndarray:
    """SMA-seeded EMA aligned to ``closes``, NaN before the seed."""
    middle = np.full(len(closes), np.nan)
    if len(closes) < period:
        return middle
    seeded = np.concatenate(([closes[:period].mean()], closes[period:]))
    middle[period - 1:] = pd.Series(seeded).ewm(alpha=2.0 / (period + 1), adjust=False).mean().to_numpy()
    return middle


def compute_squeeze(
    df: pd.DataFrame,
    params: BollingerParams = BollingerParams(),
    keltner_period: int = KELTNER_PERIOD,
    keltner_multiplier: float = KELTNER_MULTIPLIER,
    momentum_period: int = SQUEEZE_MOMENTUM_PERIOD,
) -> SqueezeResult:
    """
    Detect a Bollinger Bands / Keltner Channel volatility squeeze.

    The squeeze is on while both Bollinger Bands sit inside the Keltner
    Channel (EMA +/- multiplier x ATR). Direction comes from the rate of
    change over ``momentum_period``:
    - release with positive, rising momentum is bullish (falling, negative is bearish)
    - 3+ squeezing candles with aligned momentum mark a pending breakout
    - a close beyond the Bollinger Bands after the squeeze confirms the breakout

    Args:
        df: DataFrame with high, low, close columns
        params: Bollinger period and deviation multiplier
        keltner_period: EMA and ATR period for the Keltner Channel
        keltner_multiplier: ATR multiplier for the Keltner Channel
        momentum_period: Rate-of-change look-back

    Returns:
        SqueezeResult
    """
    required = max(SQUEEZE_MIN_CANDLES, params.period, keltner_period + 1, momentum_period + 2)
    if len(df) < required:
        logger.debug("Squeeze: need %d candles, got %d", required, len(df))
        return SqueezeResult.neutral()

    close = df['close'].astype(float)
    closes = close.to_numpy()

    bb_middle = close.rolling(params.period).mean().to_numpy()
    bb_std = close.rolling(params.period).std(ddof=0).to_numpy()
    bb_upper = bb_middle + params.std_dev * bb_std
    bb_lower = bb_middle - params.std_dev * bb_std

    atr = np.full(len(closes), np.nan)
    atr[1:] = pd.Series(true_range(df)).rolling(keltner_period).mean().to_numpy()
    kc_middle = _keltner_middle(closes, keltner_period)
    kc_upper = kc_middle + keltner_multiplier * atr
    kc_lower = kc_middle - keltner_multiplier * atr

    with np.errstate(invalid='ignore'):
        squeezing = (bb_lower > kc_lower) & (bb_upper < kc_upper)

    squeeze_count = 0
    for flag in squeezing[::-1]:
        if not flag:
            break
        squeeze_count += 1

    is_squeezing = bool(squeezing[-1])
    released = bool(squeezing[-2]) and not is_squeezing
    squeeze_off = bb_lower[-1] < kc_lower[-1] or bb_upper[-1] > kc_upper[-1]

    roc = (closes[-2:] - closes[-2 - momentum_period:-momentum_period]) / closes[-2 - momentum_period:-momentum_period] * 100
    momentum_pct = float(roc[-1])
    increasing = bool(roc[-1] > roc[-2])
    rising = momentum_pct > 0 and increasing
    falling = momentum_pct < 0 and not increasing

    signal = None
    if released:
        if rising:
            signal = 'bullish'
        elif falling:
            signal = 'bearish'
    if is_squeezing and squeeze_count >= 3 and signal is None:
        if rising:
            signal = 'bullish_pending'
        elif falling:
            signal = 'bearish_pending'
    if not is_squeezing and squeeze_off:
        price = closes[-1]
        if price > bb_upper[-1] and momentum_pct > 0:
            signal = 'bullish'
        elif price < bb_lower[-1] and momentum_pct <= 0:
            signal = 'bearish'

    bandwidth = (bb_upper[-1] - bb_lower[-1]) / bb_middle[-1] * 100 if bb_middle[-1] else 0.0

    score = 0
    if squeeze_count > 0 or released:
        score += 1
    if abs(momentum_pct) > 1:
        score += 1
    if increasing:
        score += 1
    if signal in ('bullish', 'bearish'):
        score += 2
    if bandwidth < 3:
        score += 1
    if signal in ('bearish', 'bearish_pending'):
        score = -score

    return SqueezeResult(
        squeezing=is_squeezing,
        released=released,
        squeeze_count=squeeze_count,
        bandwidth=round(float(bandwidth), 3),
        keltner_upper=float(kc_upper[-1]),
        keltner_lower=float(kc_lower[-1]),
        momentum_pct=round(momentum_pct, 3),
        momentum_increasing=increasing,
        signal=signal,
        score=score,
    )
