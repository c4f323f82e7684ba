"""
Swing Structure Detection

Finds swing highs and lows (fractals) and classifies the trend from the
sequence of the most recent swings:
- HH + HL: bullish structure
- LH + LL: bearish structure
- anything else: neutral

These swings anchor every other structural detector (order blocks, breaks,
sweeps, premium/discount range).
"""

from typing import List, Tuple

import numpy as np
import pandas as pd
from loguru import logger
from numpy.lib.stride_tricks import sliding_window_view

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import frame_timestamps
from signal_engine.shared.models.smc import MarketStructure, Swing, SwingPoints


STRUCTURE_SWINGS = 4  # Most recent swings of each side used for trend labelling


def _strict_extremes(values: np.ndarray, lookback: int, highs: bool) -> np.ndarray:
    """Indices where a value is strictly beyond every other bar within ``lookback``."""
    width = 2 * lookback + 1
    if len(values) < width:
        return np.empty(0, dtype=int)

    windows = sliding_window_view(values, width)
    centre = windows[:, lookback]
    if highs:
        others = np.maximum(windows[:, :lookback].max(axis=1), windows[:, lookback + 1:].max(axis=1))
        mask = centre > others
    else:
        others = np.minimum(windows[:, :lookback].min(axis=1), windows[:, lookback + 1:].min(axis=1))
        mask = centre < others
    return np.flatnonzero(mask) + lookback


def detect_swings(df: pd.DataFrame, config: SMCConfig | dict | None = None) -> SwingPoints:
    """
    Detect swing highs and lows.

    A bar is a swing high when its high is strictly greater than the high of
    every other bar within ``swing_lookback`` bars on each side (swing lows
    mirror this). Bars closer than ``swing_lookback`` to either end of the
    series are never swings, so a fresh extreme needs confirmation bars.

    Args:
        df: DataFrame with OHLCV data
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        SwingPoints with highs and lows ordered oldest first
    """
    cfg = resolve_smc_config(config)
    lookback = cfg.swing_lookback
    timestamps = frame_timestamps(df)

    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)

    swing_highs = tuple(
        Swing(index=int(i), price=float(highs[i]), timestamp=timestamps[i])
        for i in _strict_extremes(highs, lookback, highs=True)
    )
    swing_lows = tuple(
        Swing(index=int(i), price=float(lows[i]), timestamp=timestamps[i])
        for i in _strict_extremes(lows, lookback, highs=False)
    )

    logger.debug(f"Swings detected: {len(swing_highs)} highs, {len(swing_lows)} lows (lookback={lookback})")
    return SwingPoints(highs=swing_highs, lows=swing_lows)


def _count_steps(swings: List[Swing]) -> Tuple[int, int]:
    """Count consecutive rises and falls (equal prices count as falls)."""
    rises = sum(1 for prev, cur in zip(swings, swings[1:]) if cur.price > prev.price)
    return rises, len(swings) - 1 - rises


def analyze_market_structure(swings: SwingPoints) -> MarketStructure:
    """
    Classify trend from the last four swings of each side.

    Bullish requires at least two higher highs and two higher lows; bearish
    requires at least two lower highs and two lower lows. Strength is the
    share of matched pairs out of six, capped at 1.

    Args:
        swings: Output of detect_swings

    Returns:
        MarketStructure (neutral with strength 0 when either side has fewer
        than two swings)
    """
    last_high = swings.highs[-1] if swings.highs else None
    last_low = swings.lows[-1] if swings.lows else None
    last_swing = None
    if last_high is not None and last_low is not None:
        last_swing = last_high if last_high.index > last_low.index else last_low
    else:
        last_swing = last_high or last_low

    if len(swings.highs) < 2 or len(swings.lows) < 2:
        return MarketStructure(
            trend='neutral',
            strength=0.0,
            last_swing_high=last_high,
            last_swing_low=last_low,
            last_swing=last_swing,
        )

    higher_highs, lower_highs = _count_steps(list(swings.highs[-STRUCTURE_SWINGS:]))
    higher_lows, lower_lows = _count_steps(list(swings.lows[-STRUCTURE_SWINGS:]))

    trend = 'neutral'
    strength = 0.0
    if higher_highs >= 2 and higher_lows >= 2:
        trend = 'bullish'
        strength = (higher_highs + higher_lows) / 6
    elif lower_highs >= 2 and lower_lows >= 2:
        trend = 'bearish'
        strength = (lower_highs + lower_lows) / 6

    return MarketStructure(
        trend=trend,
        strength=min(1.0, strength),
        last_swing_high=last_high,
        last_swing_low=last_low,
        last_swing=last_swing,
        higher_highs=higher_highs,
        lower_highs=lower_highs,
        higher_lows=higher_lows,
        lower_lows=lower_lows,
    )
