"""
Order Block Detection Module

Implements Smart Money Concept order block detection.

An order block is the last opposing candle before the impulsive move that
formed a swing:
- Bullish OB: last bearish candle at or before a swing low, followed by a
  move of at least ``ob_min_size`` percent
- Bearish OB: last bullish candle at or before a swing high

A block is invalidated once any later candle closes beyond its far edge
(below the low of a bullish block, above the high of a bearish block).
"""

from typing import List

import numpy as np
import pandas as pd
from loguru import logger

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import frame_timestamps
from signal_engine.shared.models.smc import OrderBlock, SwingPoints


def calculate_move(closes: np.ndarray, start: int, end: int) -> float:
    """Largest absolute close-to-close move in percent from ``start`` through ``end``."""
    end = min(end, len(closes) - 1)
    if end <= start or closes[start] == 0:
        return 0.0
    window = closes[start + 1:end + 1]
    return float(np.max(np.abs(window - closes[start]) / closes[start] * 100))


def detect_order_blocks(
    df: pd.DataFrame,
    swings: SwingPoints,
    config: SMCConfig | dict | None = None,
) -> List[OrderBlock]:
    """
    Detect valid order blocks anchored on swing points.

    For every swing the scan walks back up to ``ob_search_depth`` candles and
    stops at the first opposing candle, whether or not it qualifies.
    Qualification requires:
    1. Follow-through move > ob_min_size within ob_move_window bars of the swing
    2. Age <= ob_max_age
    3. No later close beyond the far edge of the block
    4. Current price still on the block's side (above a bullish low, below
       a bearish high)

    Args:
        df: DataFrame with OHLCV data
        swings: Swing points from detect_swings
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        Up to ``max_order_blocks`` blocks sorted by distance from current price
    """
    cfg = resolve_smc_config(config)
    n = len(df)
    if n == 0:
        return []

    opens = df['open'].to_numpy(dtype=float)
    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    closes = df['close'].to_numpy(dtype=float)
    timestamps = frame_timestamps(df)
    price = float(closes[-1])

    blocks = {}

    def scan(swing_index: int, bullish: bool) -> None:
        for j in range(swing_index, max(0, swing_index - cfg.ob_search_depth) - 1, -1):
            opposing = closes[j] < opens[j] if bullish else closes[j] > opens[j]
            if not opposing:
                continue

            move = calculate_move(closes, j, swing_index + cfg.ob_move_window)
            age = n - 1 - j
            if move > cfg.ob_min_size and age <= cfg.ob_max_age:
                later = closes[j + 1:]
                if bullish:
                    valid = not (later < lows[j]).any() and price > lows[j]
                else:
                    valid = not (later > highs[j]).any() and price < highs[j]

                key = ('bullish' if bullish else 'bearish', j)
                if valid and key not in blocks:
                    blocks[key] = OrderBlock(
                        type=key[0],
                        high=float(highs[j]),
                        low=float(lows[j]),
                        index=j,
                        timestamp=timestamps[j],
                        age=age,
                        strength=move,
                        tested=bool(lows[j] <= price <= highs[j]),
                    )
            break

    for swing in swings.lows:
        scan(swing.index, bullish=True)
    for swing in swings.highs:
        scan(swing.index, bullish=False)

    ordered = sorted(blocks.values(), key=lambda ob: ob.distance_to(price))
    logger.debug(f"Order blocks: {len(ordered)} valid, keeping {min(len(ordered), cfg.max_order_blocks)}")
    return ordered[:cfg.max_order_blocks]
