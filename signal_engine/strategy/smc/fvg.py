"""
Fair Value Gap (FVG) Detection Module

Implements Smart Money Concept FVG detection.

Fair Value Gaps are price imbalances left by a displacement candle:
- Bullish FVG: low of the third candle above the high of the first
- Bearish FVG: high of the third candle below the low of the first

A gap counts as filled once a later wick reaches its far edge (the first
candle's extreme). Filled gaps are dropped unless explicitly requested.
"""

from typing import List

import pandas as pd
from loguru import logger

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import frame_timestamps
from signal_engine.shared.models.smc import FairValueGap


def detect_fair_value_gaps(
    df: pd.DataFrame,
    config: SMCConfig | dict | None = None,
    include_filled: bool = False,
) -> List[FairValueGap]:
    """
    Detect Fair Value Gaps in price data.

    Args:
        df: DataFrame with OHLCV data
        config: SMCConfig, partial override dict, or None for defaults.
            Uses fvg_min_size (percent), fvg_max_age and max_fvgs.
        include_filled: Keep gaps that price has already filled

    Returns:
        Up to ``max_fvgs`` gaps within ``fvg_max_age`` candles, nearest
        midpoint to current price first
    """
    cfg = resolve_smc_config(config)
    n = len(df)
    if n < 3:
        return []

    highs = df['high'].to_numpy(dtype=float)
    lows = df['low'].to_numpy(dtype=float)
    timestamps = frame_timestamps(df)
    price = float(df['close'].iloc[-1])

    # Running extremes of everything after each bar decide fill status in one pass
    later_min_low = pd.Series(lows[::-1]).cummin().to_numpy()[::-1]
    later_max_high = pd.Series(highs[::-1]).cummax().to_numpy()[::-1]

    gaps = []
    for i in range(2, n):
        age = n - 1 - i
        if age > cfg.fvg_max_age:
            continue

        first_high, first_low = highs[i - 2], lows[i - 2]

        if lows[i] > first_high and first_high > 0:
            size = (lows[i] - first_high) / first_high * 100
            if size >= cfg.fvg_min_size:
                filled = i + 1 < n and later_min_low[i + 1] <= first_high
                gaps.append(FairValueGap(
                    type='bullish',
                    high=float(lows[i]),
                    low=float(first_high),
                    midpoint=float((lows[i] + first_high) / 2),
                    index=i,
                    timestamp=timestamps[i - 1],
                    age=age,
                    size_pct=float(size),
                    filled=bool(filled),
                ))

        if highs[i] < first_low and first_low > 0:
            size = (first_low - highs[i]) / first_low * 100
            if size >= cfg.fvg_min_size:
                filled = i + 1 < n and later_max_high[i + 1] >= first_low
                gaps.append(FairValueGap(
                    type='bearish',
                    high=float(first_low),
                    low=float(highs[i]),
                    midpoint=float((first_low + highs[i]) / 2),
                    index=i,
                    timestamp=timestamps[i - 1],
                    age=age,
                    size_pct=float(size),
                    filled=bool(filled),
                ))

    if not include_filled:
        gaps = [gap for gap in gaps if not gap.filled]

    gaps.sort(key=lambda gap: abs(price - gap.midpoint))
    logger.debug(f"FVGs: {len(gaps)} candidates (include_filled={include_filled})")
    return gaps[:cfg.max_fvgs]
