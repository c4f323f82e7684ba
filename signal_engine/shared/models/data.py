"""
Data models for OHLCV candle input.

This module defines the candle value object accepted by the engine and the
helpers that turn a candle sequence into the DataFrame layout every
indicator and structure detector works on.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence, Union

import pandas as pd


OHLCV_COLUMNS = ["open", "high", "low", "close", "volume"]


@dataclass(frozen=True)
class Candle:
    """
    Single OHLCV candlestick.

    Attributes:
        time: Candle open time (naive datetimes are treated as UTC)
        open: Opening price
        high: Highest price during period
        low: Lowest price during period
        close: Closing price
        volume: Traded volume (never negative)
    """
    time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def __post_init__(self):
        """Validate OHLCV relationships."""
        if self.high < self.low:
            raise ValueError(f"High ({self.high}) cannot be less than Low ({self.low})")
        if self.volume < 0:
            raise ValueError(f"Volume cannot be negative, got {self.volume}")

    @property
    def hl2(self) -> float:
        return (self.high + self.low) / 2

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3


CandleInput = Union[Sequence[Candle], pd.DataFrame]


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Convert a candle sequence into an OHLCV DataFrame.

    The result is indexed by a UTC DatetimeIndex named ``timestamp`` and has
    float columns open/high/low/close/volume, oldest row first.
    """
    if not candles:
        return pd.DataFrame(
            columns=OHLCV_COLUMNS,
            index=pd.DatetimeIndex([], tz=timezone.utc, name="timestamp"),
            dtype=float,
        )

    index = pd.DatetimeIndex([c.time for c in candles], name="timestamp")
    if index.tz is None:
        index = index.tz_localize(timezone.utc)
    else:
        index = index.tz_convert(timezone.utc)

    return pd.DataFrame(
        {
            "open": [c.open for c in candles],
            "high": [c.high for c in candles],
            "low": [c.low for c in candles],
            "close": [c.close for c in candles],
            "volume": [c.volume for c in candles],
        },
        index=index,
        dtype=float,
    )


def ensure_frame(data: CandleInput) -> pd.DataFrame:
    """Return ``data`` as an OHLCV DataFrame, converting candle lists."""
    if isinstance(data, pd.DataFrame):
        return data
    return candles_to_frame(list(data))


def frame_timestamps(df: pd.DataFrame) -> list:
    """
    Timestamps for each row of ``df``.

    Uses the DatetimeIndex when present, a ``timestamp`` column otherwise
    (numeric columns are epoch milliseconds, as exchanges deliver them),
    and falls back to the positional index. Unparseable values become NaT.
    """
    if isinstance(df.index, pd.DatetimeIndex):
        return list(df.index)
    if "timestamp" in df.columns:
        column = df["timestamp"]
        if pd.api.types.is_numeric_dtype(column):
            return list(pd.to_datetime(column, unit="ms", utc=True, errors="coerce"))
        return list(pd.to_datetime(column, utc=True, errors="coerce"))
    return list(df.index)
