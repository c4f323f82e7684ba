"""
Liquidity Sweep Detection Module

A liquidity sweep is a wick beyond a swing level (taking the resting stops)
followed by a close back on the original side on the next candle:
- Sweep above a swing high -> bearish
- Sweep below a swing low -> bullish

Only shallow pierces (<= liquidity_threshold percent) count; a deeper move
is treated as a real breakout.
"""

from typing import List

import pandas as pd
from loguru import logger

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import frame_timestamps
from signal_engine.shared.models.smc import LiquiditySweep, SwingPoints


def detect_liquidity_sweeps(
    df: pd.DataFrame,
    swings: SwingPoints,
    config: SMCConfig | dict | None = None,
) -> List[LiquiditySweep]:
    """
    Detect liquidity sweeps of swing highs and lows.

    For each swing only the first pierce followed by a reclaiming close is
    considered; if that pierce is too deep the swing yields no sweep.

    Args:
        df: DataFrame with OHLCV data
        swings: Swing points from detect_swings
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        Sweeps no older than ``sweep_max_age`` candles, newest first
    """
    cfg = resolve_smc_config(config)
    n = len(df)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    timestamps = frame_timestamps(df)

    sweeps = []

    for swing in swings.highs:
        level = swing.price
        for j in range(swing.index + 1, n - 1):
            if highs[j] > level and closes[j + 1] < level:
                size = (highs[j] - level) / level * 100
                if size <= cfg.liquidity_threshold:
                    sweeps.append(LiquiditySweep(
                        type='bearish',
                        level=level,
                        extreme=float(highs[j]),
                        index=j,
                        timestamp=timestamps[j],
                        age=n - 1 - j,
                        size_pct=float(size),
                    ))
                break

    for swing in swings.lows:
        level = swing.price
        for j in range(swing.index + 1, n - 1):
            if lows[j] < level and closes[j + 1] > level:
                size = (level - lows[j]) / level * 100
                if size <= cfg.liquidity_threshold:
                    sweeps.append(LiquiditySweep(
                        type='bullish',
                        level=level,
                        extreme=float(lows[j]),
                        index=j,
                        timestamp=timestamps[j],
                        age=n - 1 - j,
                        size_pct=float(size),
                    ))
                break

    recent = sorted((s for s in sweeps if s.age <= cfg.sweep_max_age), key=lambda s: s.age)
    logger.debug(f"Liquidity sweeps: {len(sweeps)} detected, {len(recent)} recent")
    return recent
