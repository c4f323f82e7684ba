"""
Trend Indicators Module

Implements trend-following indicators:
- EMA series (SMA-seeded)
- EMA trend filter (long-period EMA position and slope)
- Fast EMA pair (9/21 crossover)
- ADX (Average Directional Index)
- Supertrend
- Fibonacci retracement grid and Fibonacci-based stop/target levels
- Ichimoku cloud (TK cross, Kumo twist and breakout, Chikou confirmation)

The ADX reported here is the instantaneous DX computed from Wilder-smoothed
directional movement; it is not smoothed a second time.
"""

from typing import Literal, Optional
import logging

import numpy as np
import pandas as pd

from signal_engine.indicators.volatility import compute_atr
from signal_engine.shared.config.timeframe_profiles import ADXParams, EMAParams, IchimokuParams
from signal_engine.shared.models.indicators import (
    ADXResult,
    EMACrossResult,
    EMATrendResult,
    FibonacciResult,
    FibonacciTargets,
    IchimokuResult,
    SupertrendResult,
)

logger = logging.getLogger(__name__)


FAST_PAIR = (9, 21)
FIBONACCI_RATIOS = (
    ('0', 0.0),
    ('23.6', 0.236),
    ('38.2', 0.382),
    ('50', 0.5),
    ('61.8', 0.618),
    ('78.6', 0.786),
    ('100', 1.0),
)


def ema_series(values: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential moving average seeded with the SMA of the first ``period`` values.

    Args:
        values: Input series, oldest first
        period: EMA period

    Returns:
        Array of length len(values) - period + 1 (empty when too short)
    """
    values = np.asarray(values, dtype=float)
    if period <= 0 or len(values) < period:
        return np.empty(0)

    multiplier = 2.0 / (period + 1)
    out = np.empty(len(values) - period + 1)
    out[0] = values[:period].mean()
    for i, value in enumerate(values[period:], start=1):
        out[i] = (value - out[i - 1]) * multiplier + out[i - 1]
    return out


def detect_crossover(prev_fast: float, prev_slow: float, fast: float, slow: float) -> Optional[str]:
    if prev_fast <= prev_slow and fast > slow:
        return 'bullish'
    if prev_fast >= prev_slow and fast < slow:
        return 'bearish'
    return None


def compute_ema_trend(df: pd.DataFrame, params: EMAParams = EMAParams()) -> EMATrendResult:
    """
    Long-period EMA trend filter (the "EMA200" of the 1h profile).

    Price more than 2% above the EMA is 'above', more than 2% below is
    'below', anything in between is 'near'. Slope compares the current EMA
    with the value 5 steps back.

    Args:
        df: DataFrame with 'close' column
        params: EMA periods; ``params.slow`` is used

    Returns:
        EMATrendResult
    """
    period = params.slow
    if len(df) < period:
        logger.debug("EMA trend: need %d candles, got %d", period, len(df))
        return EMATrendResult.neutral()

    ema = ema_series(df['close'].to_numpy(dtype=float), period)
    current = float(ema[-1])
    previous = float(ema[-5]) if len(ema) >= 5 else current
    price = float(df['close'].iloc[-1])

    if price > current * 1.02:
        position, trend = 'above', 'bullish'
    elif price < current * 0.98:
        position, trend = 'below', 'bearish'
    else:
        position, trend = 'near', 'consolidation'

    slope_pct = (current - previous) / previous * 100 if previous else 0.0
    if slope_pct > 0.1:
        slope = 'rising'
    elif slope_pct < -0.1:
        slope = 'falling'
    else:
        slope = 'flat'

    return EMATrendResult(
        value=current,
        position=position,
        trend=trend,
        slope=slope,
        slope_pct=slope_pct,
        distance_pct=(price - current) / current * 100 if current else 0.0,
    )


def compute_ema_cross(df: pd.DataFrame, fast: int = FAST_PAIR[0], slow: int = FAST_PAIR[1]) -> EMACrossResult:
    """
    Fast EMA pair (9/21 by default) used for short-term trend and crossovers.

    Returns:
        EMACrossResult with trend, crossover and fast/slow distance in percent
    """
    if len(df) < slow:
        return EMACrossResult.neutral()

    closes = df['close'].to_numpy(dtype=float)
    fast_ema = ema_series(closes, fast)
    slow_ema = ema_series(closes, slow)
    fast_now, slow_now = float(fast_ema[-1]), float(slow_ema[-1])
    price = float(closes[-1])

    crossover = None
    if len(slow_ema) >= 2:
        crossover = detect_crossover(float(fast_ema[-2]), float(slow_ema[-2]), fast_now, slow_now)

    if fast_now > slow_now:
        trend = 'strong_bullish' if price > fast_now else 'bullish'
    elif fast_now < slow_now:
        trend = 'strong_bearish' if price < fast_now else 'bearish'
    else:
        trend = 'neutral'

    return EMACrossResult(
        fast=fast_now,
        slow=slow_now,
        trend=trend,
        crossover=crossover,
        distance_pct=(fast_now - slow_now) / slow_now * 100 if slow_now else 0.0,
    )


def wilder_smooth(values: np.ndarray, period: int) -> float:
    """
    Final value of Wilder's running-sum smoothing.

    Seeded with the mean of the first ``period`` values, then
    ``s = s - s / period + x`` for each following value.
    """
    if len(values) < period:
        return 0.0
    smoothed = float(np.mean(values[:period]))
    for value in values[period:]:
        smoothed = smoothed - smoothed / period + float(value)
    return smoothed


def compute_adx(df: pd.DataFrame, params: ADXParams = ADXParams()) -> ADXResult:
    """
    Compute ADX with +DI/-DI.

    Args:
        df: DataFrame with high, low, close columns
        params: ADX period and trending threshold

    Returns:
        ADXResult; trend_direction is only set when the market is trending
    """
    period = params.period
    if len(df) < period * 2:
        logger.debug("ADX: need %d candles, got %d", period * 2, len(df))
        return ADXResult.neutral()

    high = df['high'].to_numpy(dtype=float)
    low = df['low'].to_numpy(dtype=float)
    close = df['close'].to_numpy(dtype=float)

    up_move = high[1:] - high[:-1]
    down_move = low[:-1] - low[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    tr = np.maximum.reduce([
        high[1:] - low[1:],
        np.abs(high[1:] - close[:-1]),
        np.abs(low[1:] - close[:-1]),
    ])

    smoothed_tr = wilder_smooth(tr, period)
    plus_di = wilder_smooth(plus_dm, period) / smoothed_tr * 100 if smoothed_tr > 0 else 0.0
    minus_di = wilder_smooth(minus_dm, period) / smoothed_tr * 100 if smoothed_tr > 0 else 0.0

    di_sum = plus_di + minus_di
    adx = abs(plus_di - minus_di) / di_sum * 100 if di_sum > 0 else 0.0

    if adx >= 50:
        strength = 'very_strong'
    elif adx >= 25:
        strength = 'strong'
    elif adx >= params.trend_threshold:
        strength = 'moderate'
    else:
        strength = 'weak'
    trending = adx >= params.trend_threshold

    direction = None
    if trending and plus_di > minus_di:
        direction = 'bullish'
    elif trending and minus_di > plus_di:
        direction = 'bearish'

    return ADXResult(
        adx=round(adx, 2),
        plus_di=round(plus_di, 2),
        minus_di=round(minus_di, 2),
        trend_strength=strength,
        trending=trending,
        trend_direction=direction,
    )


def compute_supertrend(df: pd.DataFrame, period: int = 10, multiplier: float = 3.0) -> SupertrendResult:
    """
    Supertrend from the last two candles and an ATR over ``period``.

    Args:
        df: DataFrame with high, low, close columns
        period: ATR period (default 10)
        multiplier: ATR multiplier for the bands (default 3)

    Returns:
        SupertrendResult
    """
    if len(df) < period + 1:
        return SupertrendResult.neutral()

    atr = compute_atr(df, period).atr
    cur, prev = df.iloc[-1], df.iloc[-2]
    hl2 = (cur['high'] + cur['low']) / 2
    prev_hl2 = (prev['high'] + prev['low']) / 2
    upper = hl2 + multiplier * atr
    lower = hl2 - multiplier * atr
    close, prev_close = float(cur['close']), float(prev['close'])

    if close > lower and prev_close > prev_hl2 - multiplier * atr:
        direction, value = 'bullish', lower
    elif close < upper and prev_close < prev_hl2 + multiplier * atr:
        direction, value = 'bearish', upper
    elif close > hl2:
        direction, value = 'bullish', lower
    else:
        direction, value = 'bearish', upper

    signal = None
    if direction == 'bullish' and close > value:
        signal = 'buy'
    elif direction == 'bearish' and close < value:
        signal = 'sell'

    strength = min(1.0, abs(close - value) / close * 100 / 2) if close else 0.0

    return SupertrendResult(
        value=float(value),
        direction=direction,
        signal=signal,
        trend_strength=round(strength, 3),
        upper_band=float(upper),
        lower_band=float(lower),
    )


def compute_fibonacci(df: pd.DataFrame, lookback: int = 50) -> FibonacciResult:
    """
    Fibonacci retracement grid over the last ``lookback`` candles.

    The first occurrence of the window's high and low define the swing.
    In an uptrend (low before high) levels are measured down from the high;
    in a downtrend they are measured up from the low.

    Args:
        df: DataFrame with high, low, close columns
        lookback: Window length (default 50)

    Returns:
        FibonacciResult
    """
    if len(df) < lookback:
        return FibonacciResult.neutral()

    window = df.iloc[-lookback:]
    highs = window['high'].to_numpy(dtype=float)
    lows = window['low'].to_numpy(dtype=float)
    high_index, low_index = int(np.argmax(highs)), int(np.argmin(lows))
    swing_high, swing_low = float(highs[high_index]), float(lows[low_index])
    price = float(df['close'].iloc[-1])
    span = swing_high - swing_low
    is_uptrend = low_index < high_index

    if is_uptrend:
        levels = {name: swing_high - span * ratio for name, ratio in FIBONACCI_RATIOS}
    else:
        levels = {name: swing_low + span * ratio for name, ratio in FIBONACCI_RATIOS}
    levels['100'] = swing_low if is_uptrend else swing_high

    support = resistance = None
    current_level = None
    for name, value in sorted(levels.items(), key=lambda item: item[1]):
        if value < price:
            support = value
        elif value > price and resistance is None:
            resistance = value
        if price and abs(price - value) / price < 0.005:
            current_level = name

    if span > 0:
        retracement = (swing_high - price) / span * 100 if is_uptrend else (price - swing_low) / span * 100
    else:
        retracement = 0.0

    return FibonacciResult(
        swing_high=swing_high,
        swing_low=swing_low,
        is_uptrend=is_uptrend,
        levels=levels,
        nearest_support=support,
        nearest_resistance=resistance,
        current_level=current_level,
        retracement_pct=round(retracement, 2),
    )


def compute_fibonacci_targets(
    fib: FibonacciResult,
    entry: float,
    direction: Literal['long', 'short'],
) -> Optional[FibonacciTargets]:
    """
    Stop and target levels from a Fibonacci grid.

    Longs stop 0.2% below the nearest support (2% below entry without one)
    and target the swing extreme; when that target is within 1% of entry the
    161.8% extension is used instead. Shorts mirror this.

    Returns:
        FibonacciTargets, or None when the grid is empty
    """
    if fib.insufficient_data or not fib.levels:
        return None

    span = fib.swing_high - fib.swing_low
    if direction == 'long':
        stop = fib.nearest_support * 0.998 if fib.nearest_support is not None else entry * 0.98
        target = fib.levels['0'] if fib.is_uptrend else fib.levels['100']
        if (target - entry) / entry < 0.01:
            target = fib.swing_high + span * 0.618
    else:
        stop = fib.nearest_resistance * 1.002 if fib.nearest_resistance is not None else entry * 1.02
        target = fib.levels['100'] if fib.is_uptrend else fib.levels['0']
        if (entry - target) / entry < 0.01:
            target = fib.swing_low - span * 0.618

    risk = abs(entry - stop)
    reward = abs(target - entry)
    return FibonacciTargets(
        stop_loss=stop,
        take_profit=target,
        risk=risk,
        reward=reward,
        rrr=reward / risk if risk > 0 else 0.0,
    )


def _channel_midpoint(df: pd.DataFrame, period: int) -> np.ndarray:
    """(highest high + lowest low) / 2 over a rolling ``period`` window, NaN until filled."""
    highest = df['high'].astype(float).rolling(period).max()
    lowest = df['low'].astype(float).rolling(period).min()
    return ((highest + lowest) / 2).to_numpy()


def compute_ichimoku(df: pd.DataFrame, params: IchimokuParams = IchimokuParams()) -> IchimokuResult:
    """
    Compute the Ichimoku cloud at the last candle.

    The cloud under the current candle is the pair of Senkou spans computed
    ``displacement`` candles earlier; the spans computed now form the
    projected (future) cloud, whose colour change is the Kumo twist. Chikou
    compares the last close with the close ``displacement`` candles back.

    Score components (bullish positive):
        price vs cloud +/-2, Tenkan vs Kijun +/-1, cloud colour +/-1,
        Chikou +/-2, price vs Kijun +/-1

    Args:
        df: DataFrame with high, low, close columns
        params: Tenkan, Kijun, Senkou B periods and displacement

    Returns:
        IchimokuResult; neutral below senkou + displacement candles
    """
    displacement = params.displacement
    n = len(df)
    if n < params.senkou + displacement:
        logger.debug("Ichimoku: need %d candles, got %d", params.senkou + displacement, n)
        return IchimokuResult.neutral()

    close = df['close'].to_numpy(dtype=float)
    tenkan = _channel_midpoint(df, params.tenkan)
    kijun = _channel_midpoint(df, params.kijun)
    span_a = (tenkan + kijun) / 2
    span_b = _channel_midpoint(df, params.senkou)

    last = n - 1
    price = close[last]
    senkou_a = float(span_a[last - displacement])
    senkou_b = float(span_b[last - displacement])
    top, bottom = max(senkou_a, senkou_b), min(senkou_a, senkou_b)

    if price > top:
        position = 'above'
    elif price < bottom:
        position = 'below'
    else:
        position = 'inside'
    kumo_color = 'green' if senkou_a > senkou_b else 'red'

    tk_cross = detect_crossover(tenkan[last - 1], kijun[last - 1], tenkan[last], kijun[last])
    kumo_twist = detect_crossover(span_a[last - 1], span_b[last - 1], span_a[last], span_b[last])

    kumo_breakout = None
    prev_a, prev_b = span_a[last - 1 - displacement], span_b[last - 1 - displacement]
    if np.isfinite(prev_a) and np.isfinite(prev_b):
        prev_close = close[last - 1]
        if prev_close <= max(prev_a, prev_b) and price > top:
            kumo_breakout = 'bullish'
        elif prev_close >= min(prev_a, prev_b) and price < bottom:
            kumo_breakout = 'bearish'

    reference = close[last - displacement]
    chikou = None
    if price > reference:
        chikou = 'bullish'
    elif price < reference:
        chikou = 'bearish'

    score = 0
    score += {'above': 2, 'below': -2}.get(position, 0)
    score += int(np.sign(tenkan[last] - kijun[last]))
    score += 1 if kumo_color == 'green' else -1
    score += {'bullish': 2, 'bearish': -2}.get(chikou, 0)
    score += int(np.sign(price - kijun[last]))

    if score >= 3:
        direction = 'bullish'
    elif score <= -3:
        direction = 'bearish'
    else:
        direction = 'neutral'

    return IchimokuResult(
        tenkan=float(tenkan[last]),
        kijun=float(kijun[last]),
        senkou_a=senkou_a,
        senkou_b=senkou_b,
        kumo_color=kumo_color,
        price_position=position,
        tk_cross=tk_cross,
        kumo_twist=kumo_twist,
        kumo_breakout=kumo_breakout,
        chikou=chikou,
        score=score,
        direction=direction,
        future_kumo_top=float(max(span_a[last], span_b[last])),
        future_kumo_bottom=float(min(span_a[last], span_b[last])),
    )
