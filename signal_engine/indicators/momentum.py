"""
Momentum Indicators Module

Implements technical momentum indicators:
- RSI (Relative Strength Index, Wilder smoothing)
- Stochastic RSI
- MACD (Moving Average Convergence Divergence)
- Momentum (rate of change)
- RSI divergence

Every function accepts a DataFrame with a 'close' column and returns a
frozen result object from shared.models.indicators. Short input yields the
result's neutral() value instead of an exception.
"""

import logging

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from signal_engine.indicators.trend import detect_crossover, ema_series
from signal_engine.shared.config.timeframe_profiles import MACDParams, RSIParams, StochRSIParams
from signal_engine.shared.models.indicators import (
    MACDResult,
    MomentumResult,
    RSIDivergenceResult,
    RSIResult,
    StochRSIResult,
)

logger = logging.getLogger(__name__)


DIVERGENCE_MIN_CANDLES = 30
DIVERGENCE_RSI_PERIOD = 14
DIVERGENCE_LOOKBACK = 15


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_gain == 0 and avg_loss == 0:
        # Flat price carries no directional information
        return 50.0
    rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def rsi_series(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Wilder RSI evaluated at every prefix of ``closes``.

    Element k is the RSI of closes[:period + 1 + k]; the averages are seeded
    with the simple mean of the first ``period`` changes.

    Returns:
        Array of length len(closes) - period (empty when too short)
    """
    closes = np.asarray(closes, dtype=float)
    if len(closes) < period + 1:
        return np.empty(0)

    changes = np.diff(closes)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = gains[:period].sum() / period
    avg_loss = losses[:period].sum() / period
    out = [_rsi_from_averages(avg_gain, avg_loss)]
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        out.append(_rsi_from_averages(avg_gain, avg_loss))
    return np.array(out)


def classify_rsi(rsi: float, params: RSIParams = RSIParams()) -> RSIResult:
    """Bucket an RSI value and measure how deep into the bucket it sits."""
    if rsi >= params.overbought:
        signal, strength = 'overbought', (rsi - params.overbought) / (100 - params.overbought)
    elif rsi <= params.oversold:
        signal, strength = 'oversold', (params.oversold - rsi) / params.oversold
    elif rsi > 50:
        signal, strength = 'bullish', (rsi - 50) / 20
    elif rsi < 50:
        signal, strength = 'bearish', (50 - rsi) / 20
    else:
        signal, strength = 'neutral', 0.0

    return RSIResult(value=round(rsi, 2), signal=signal, strength=min(1.0, strength))


def compute_rsi(df: pd.DataFrame, params: RSIParams = RSIParams()) -> RSIResult:
    """
    Compute Relative Strength Index.

    RSI measures the magnitude of recent price changes to evaluate
    overbought or oversold conditions.

    Args:
        df: DataFrame with 'close' column
        params: RSI period and overbought/oversold thresholds

    Returns:
        RSIResult (value 0-100, exactly 50 on a flat series)
    """
    if len(df) < params.period + 1:
        logger.debug("RSI: need %d candles, got %d", params.period + 1, len(df))
        return RSIResult.neutral()

    values = rsi_series(df['close'].to_numpy(dtype=float), params.period)
    return classify_rsi(float(values[-1]), params)


def _window_rsi(closes: np.ndarray, period: int) -> np.ndarray:
    """RSI of every window of ``period + 1`` closes, using plain averages."""
    changes = np.diff(closes)
    gains = sliding_window_view(np.where(changes > 0, changes, 0.0), period).sum(axis=1) / period
    losses = sliding_window_view(np.where(changes < 0, -changes, 0.0), period).sum(axis=1) / period
    return np.round([_rsi_from_averages(g, l) for g, l in zip(gains, losses)], 2)


def compute_stoch_rsi(df: pd.DataFrame, params: StochRSIParams = StochRSIParams()) -> StochRSIResult:
    """
    Compute Stochastic RSI.

    RSI is recomputed over each sliding window of ``rsi_period + 1`` closes,
    normalized to its range over ``stoch_period`` values, then smoothed into
    %K and %D.

    Args:
        df: DataFrame with 'close' column
        params: Stochastic RSI periods and thresholds

    Returns:
        StochRSIResult with %K, %D, signal and crossover
    """
    closes = df['close'].to_numpy(dtype=float)
    if len(closes) < params.rsi_period + params.stoch_period + params.k_period:
        logger.debug("StochRSI: insufficient data (%d candles)", len(closes))
        return StochRSIResult.neutral()

    rsi_values = _window_rsi(closes, params.rsi_period)
    if len(rsi_values) < params.stoch_period:
        return StochRSIResult.neutral()

    windows = sliding_window_view(rsi_values, params.stoch_period)
    highest = windows.max(axis=1)
    lowest = windows.min(axis=1)
    current = rsi_values[params.stoch_period - 1:]
    span = highest - lowest
    stoch = np.where(span == 0, 50.0, (current - lowest) / np.where(span == 0, 1.0, span) * 100)

    k_values = (
        sliding_window_view(stoch, params.k_period).mean(axis=1)
        if len(stoch) >= params.k_period else np.empty(0)
    )
    d_values = (
        sliding_window_view(k_values, params.d_period).mean(axis=1)
        if len(k_values) >= params.d_period else np.empty(0)
    )

    k = float(k_values[-1]) if len(k_values) else 50.0
    prev_k = float(k_values[-2]) if len(k_values) >= 2 else k
    d = float(d_values[-1]) if len(d_values) else 50.0
    prev_d = float(d_values[-2]) if len(d_values) >= 2 else d

    crossover = detect_crossover(prev_k, prev_d, k, d)

    if k <= params.oversold and crossover == 'bullish':
        signal = 'strong_buy'
    elif k >= params.overbought and crossover == 'bearish':
        signal = 'strong_sell'
    elif k <= params.oversold:
        signal = 'oversold'
    elif k >= params.overbought:
        signal = 'overbought'
    elif k > d:
        signal = 'bullish'
    elif k < d:
        signal = 'bearish'
    else:
        signal = 'neutral'

    return StochRSIResult(k=round(k, 2), d=round(d, 2), signal=signal, crossover=crossover)


def compute_macd(df: pd.DataFrame, params: MACDParams = MACDParams()) -> MACDResult:
    """
    Compute MACD (Moving Average Convergence Divergence).

    The MACD line is the fast EMA minus the slow EMA, aligned on the slow
    EMA; the signal line is an EMA of the MACD line.

    Args:
        df: DataFrame with 'close' column
        params: Fast, slow and signal periods

    Returns:
        MACDResult with line values, trend label and crossover
    """
    closes = df['close'].to_numpy(dtype=float)
    if len(closes) < params.slow + params.signal:
        logger.debug("MACD: need %d candles, got %d", params.slow + params.signal, len(closes))
        return MACDResult.neutral()

    fast_ema = ema_series(closes, params.fast)
    slow_ema = ema_series(closes, params.slow)
    macd_line = fast_ema[params.slow - params.fast:] - slow_ema
    signal_line = ema_series(macd_line, params.signal)

    macd, signal = float(macd_line[-1]), float(signal_line[-1])
    histogram = macd - signal
    crossover = detect_crossover(float(macd_line[-2]), float(signal_line[-2]), macd, signal)

    if histogram > 0:
        trend = 'strong_bullish' if macd > 0 else 'bullish'
    elif histogram < 0:
        trend = 'strong_bearish' if macd < 0 else 'bearish'
    else:
        trend = 'neutral'

    return MACDResult(macd=macd, signal=signal, histogram=histogram, trend=trend, crossover=crossover)


def compute_momentum(df: pd.DataFrame, period: int = 10) -> MomentumResult:
    """
    Rate of change versus ``period`` bars back.

    Returns:
        MomentumResult; 'increasing' compares with the previous bar's momentum
    """
    closes = df['close'].to_numpy(dtype=float)
    if len(closes) < period + 1:
        return MomentumResult.neutral()

    current, past = closes[-1], closes[-1 - period]
    momentum = float(current - past)
    momentum_pct = float(momentum / past * 100) if past else 0.0
    increasing = False
    if len(closes) >= period + 2:
        increasing = momentum > float(closes[-2] - closes[-2 - period])

    if momentum_pct > 2:
        signal = 'strong_bullish'
    elif momentum_pct > 0.5:
        signal = 'bullish'
    elif momentum_pct < -2:
        signal = 'strong_bearish'
    elif momentum_pct < -0.5:
        signal = 'bearish'
    else:
        signal = 'neutral'

    return MomentumResult(
        momentum=momentum,
        momentum_pct=round(momentum_pct, 3),
        signal=signal,
        increasing=increasing,
    )


def compute_rsi_divergence(df: pd.DataFrame) -> RSIDivergenceResult:
    """
    Detect regular RSI divergence over the last 15 candles.

    The window is split 7/8. A higher price high (> 0.1%) with an RSI high
    more than 5% lower is bearish; a lower price low with an RSI low more
    than 5% higher is bullish.

    Args:
        df: DataFrame with 'close' column (at least 30 rows)

    Returns:
        RSIDivergenceResult with divergence side and strength (0-1)
    """
    closes = df['close'].to_numpy(dtype=float)
    if len(closes) < DIVERGENCE_MIN_CANDLES:
        return RSIDivergenceResult.neutral()

    rsi_values = np.round(rsi_series(closes, DIVERGENCE_RSI_PERIOD), 2)[-DIVERGENCE_LOOKBACK:]
    prices = closes[-DIVERGENCE_LOOKBACK:]
    half = DIVERGENCE_LOOKBACK // 2

    price_high1, price_high2 = prices[:half].max(), prices[half:].max()
    rsi_high1, rsi_high2 = rsi_values[:half].max(), rsi_values[half:].max()
    price_low1, price_low2 = prices[:half].min(), prices[half:].min()
    rsi_low1, rsi_low2 = rsi_values[:half].min(), rsi_values[half:].min()

    if price_high2 > price_high1 * 1.001 and rsi_high2 < rsi_high1 * 0.95:
        strength = (rsi_high1 - rsi_high2) / rsi_high1
        return RSIDivergenceResult(divergence='bearish', strength=round(min(1.0, abs(strength)), 2))
    if price_low2 < price_low1 * 0.999 and rsi_low2 > rsi_low1 * 1.05:
        strength = (rsi_low2 - rsi_low1) / rsi_low1 if rsi_low1 else 1.0
        return RSIDivergenceResult(divergence='bullish', strength=round(min(1.0, abs(strength)), 2))

    return RSIDivergenceResult()
