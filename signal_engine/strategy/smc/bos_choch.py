"""
Break of Structure (BOS) and Change of Character (CHoCH) Detection Module

- BOS: close through a swing in the direction of the prevailing structure
  (continuation)
- CHoCH: close through a swing against the prevailing structure (reversal)

The prevailing structure is the trend formed by the swings that existed
before the breaking candle, so a break is labelled with the context it
actually happened in.

Swings are never mutated: break status comes back as a new SwingPoints.
"""

from dataclasses import replace
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import frame_timestamps
from signal_engine.shared.models.smc import StructureBreak, Swing, SwingPoints
from signal_engine.strategy.smc.swing_structure import analyze_market_structure


def _first_close_through(closes: np.ndarray, swing: Swing, above: bool) -> Optional[int]:
    later = closes[swing.index + 1:]
    hits = np.flatnonzero(later > swing.price if above else later < swing.price)
    return int(swing.index + 1 + hits[0]) if len(hits) else None


def _trend_before(swings: SwingPoints, index: int) -> str:
    prior = SwingPoints(
        highs=tuple(s for s in swings.highs if s.index < index),
        lows=tuple(s for s in swings.lows if s.index < index),
    )
    return analyze_market_structure(prior).trend


def detect_structural_breaks(
    df: pd.DataFrame,
    swings: SwingPoints,
    config: SMCConfig | dict | None = None,
) -> Tuple[List[StructureBreak], SwingPoints]:
    """
    Detect BOS and CHoCH events on the most recent swings.

    The last ``bos_swing_depth`` swing highs and lows are checked, newest
    first. The first later close beyond a swing breaks it; each swing breaks
    at most once.

    Args:
        df: DataFrame with OHLCV data
        swings: Swing points from detect_swings
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        Tuple of (breaks sorted most recent first, capped at
        max_structure_breaks; swings with broken flags set)
    """
    cfg = resolve_smc_config(config)
    n = len(df)
    closes = df['close'].to_numpy(dtype=float)
    timestamps = frame_timestamps(df)

    breaks = []
    broken = set()

    def check(candidates: Tuple[Swing, ...], bullish: bool) -> None:
        depth = cfg.bos_swing_depth
        for swing in reversed(candidates[-depth:]):
            if swing.broken:
                continue
            j = _first_close_through(closes, swing, above=bullish)
            if j is None:
                continue

            trend = _trend_before(swings, j)
            against = 'bearish' if bullish else 'bullish'
            broken.add((bullish, swing.index))
            breaks.append(StructureBreak(
                type='choch' if trend == against else 'bos',
                direction='bullish' if bullish else 'bearish',
                level=swing.price,
                swing_index=swing.index,
                break_index=j,
                timestamp=timestamps[j],
                age=n - 1 - j,
            ))

    check(swings.highs, bullish=True)
    check(swings.lows, bullish=False)

    updated = SwingPoints(
        highs=tuple(replace(s, broken=True) if (True, s.index) in broken else s for s in swings.highs),
        lows=tuple(replace(s, broken=True) if (False, s.index) in broken else s for s in swings.lows),
    )

    breaks.sort(key=lambda b: b.age)
    if breaks:
        latest = breaks[0]
        logger.debug(
            f"Structural breaks: {len(breaks)} found, latest {latest.type.upper()} "
            f"{latest.direction} @ {latest.level:.4f} (age {latest.age})"
        )
    return breaks[:cfg.max_structure_breaks], updated
