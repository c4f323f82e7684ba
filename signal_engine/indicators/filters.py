"""
Candle-pattern filters used by the safety gate.

detect_fakeout scores how likely a fresh directional signal is to be a
false break, from the shape, colour and volume of the last five candles.
"""

from typing import Literal
import logging

import pandas as pd

from signal_engine.shared.models.indicators import FakeoutResult

logger = logging.getLogger(__name__)


FAKEOUT_MIN_CANDLES = 5
FAKEOUT_THRESHOLD = 50

# Points added per warning sign
_WEAK_FOLLOW_THROUGH = 30
_REJECTION_WICK = 40
_FADING_VOLUME = 20
_CLOSE_AGAINST_PRIOR_OPEN = 25


def detect_fakeout(df: pd.DataFrame, direction: Literal['bullish', 'bearish']) -> FakeoutResult:
    """
    Score the last candles for signs of a fakeout against ``direction``.

    Warning signs (for a bullish signal; bearish mirrors them):
        - fewer than 2 of the last 3 candles closed green (+30)
        - upper wick of the last candle longer than twice its body (+40)
        - volume falling over the last three candles (+20)
        - last close below the previous candle's open (+25)

    Args:
        df: DataFrame with OHLCV columns
        direction: Direction of the signal being checked

    Returns:
        FakeoutResult; is_fakeout when the score reaches 50
    """
    if len(df) < FAKEOUT_MIN_CANDLES:
        return FakeoutResult.neutral()

    recent = df.iloc[-FAKEOUT_MIN_CANDLES:]
    opens = recent['open'].to_numpy(dtype=float)
    closes = recent['close'].to_numpy(dtype=float)
    highs = recent['high'].to_numpy(dtype=float)
    lows = recent['low'].to_numpy(dtype=float)
    volumes = recent['volume'].fillna(0).to_numpy(dtype=float)

    body = abs(closes[-1] - opens[-1])
    bullish = direction == 'bullish'
    score = 0
    reasons = []

    if bullish:
        agreeing = int((closes[-3:] > opens[-3:]).sum())
        wick = highs[-1] - max(closes[-1], opens[-1])
        against_prior_open = closes[-1] < opens[-2]
    else:
        agreeing = int((closes[-3:] < opens[-3:]).sum())
        wick = min(closes[-1], opens[-1]) - lows[-1]
        against_prior_open = closes[-1] > opens[-2]

    if agreeing < 2:
        score += _WEAK_FOLLOW_THROUGH
        reasons.append(f"fewer than 2 {'green' if bullish else 'red'} candles in the last 3")
    if wick > body * 2:
        score += _REJECTION_WICK
        reasons.append(f"long {'upper' if bullish else 'lower'} wick (rejection)")
    if volumes[4] < volumes[3] < volumes[2]:
        score += _FADING_VOLUME
        reasons.append("decreasing volume")
    if against_prior_open:
        score += _CLOSE_AGAINST_PRIOR_OPEN
        reasons.append(f"close {'below' if bullish else 'above'} previous open")

    if score >= FAKEOUT_THRESHOLD:
        logger.debug("Fakeout suspected for %s signal (score %d)", direction, score)

    return FakeoutResult(
        is_fakeout=score >= FAKEOUT_THRESHOLD,
        confidence=float(min(100, score)),
        reasons=tuple(reasons),
    )
