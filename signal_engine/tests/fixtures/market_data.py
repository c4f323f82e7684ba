"""
Reusable market data fixtures for testing.

Provides OHLCV DataFrames and candle lists for common market conditions,
plus a neutral IndicatorSet builder for scorer tests.
"""

from dataclasses import replace
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from signal_engine.shared.models.data import Candle
from signal_engine.shared.models.indicators import (
    ADXResult,
    ATRResult,
    BollingerResult,
    CVDResult,
    EMACrossResult,
    EMATrendResult,
    FibonacciResult,
    IchimokuResult,
    IndicatorSet,
    LiquidityResult,
    MACDResult,
    MomentumResult,
    OBVResult,
    RSIDivergenceResult,
    RSIResult,
    SqueezeResult,
    StochRSIResult,
    SupertrendResult,
    VolumeResult,
    VWAPResult,
)


START = '2024-01-01 00:00'


def make_ohlcv_df(
    n: int = 100,
    base_price: float = 100.0,
    volatility: float = 0.02,
    base_volume: float = 1000.0,
    seed: int = 42,
    freq: str = '1h',
) -> pd.DataFrame:
    """Random-walk OHLCV data with a UTC DatetimeIndex."""
    np.random.seed(seed)

    dates = pd.date_range(start=START, periods=n, freq=freq, tz='UTC', name='timestamp')
    returns = np.random.normal(0, volatility, n)
    close = base_price * np.exp(np.cumsum(returns))

    high = close * (1 + np.abs(np.random.normal(0, volatility / 2, n)))
    low = close * (1 - np.abs(np.random.normal(0, volatility / 2, n)))
    open_price = np.roll(close, 1)
    open_price[0] = base_price

    high = np.maximum(high, np.maximum(open_price, close))
    low = np.minimum(low, np.minimum(open_price, close))
    volume = base_volume * np.abs(np.random.normal(1, 0.3, n))

    return pd.DataFrame({
        'open': open_price,
        'high': high,
        'low': low,
        'close': close,
        'volume': volume,
    }, index=dates)


def make_trend_df(
    n: int = 250,
    base_price: float = 100.0,
    growth: float = 0.003,
    base_volume: float = 1000.0,
    volume_growth: float = 0.0,
    wick: float = 0.0005,
) -> pd.DataFrame:
    """
    Deterministic geometric trend.

    Each candle opens at the previous close and closes ``growth`` higher
    (negative growth gives a downtrend); wicks extend ``wick`` beyond the
    body. Volume compounds by ``volume_growth`` per candle.
    """
    steps = np.arange(n)
    close = base_price * (1 + growth) ** steps
    open_price = np.concatenate(([base_price / (1 + growth)], close[:-1]))
    high = np.maximum(open_price, close) * (1 + wick)
    low = np.minimum(open_price, close) * (1 - wick)
    volume = base_volume * (1 + volume_growth) ** steps

    dates = pd.date_range(start=START, periods=n, freq='1h', tz='UTC', name='timestamp')
    return pd.DataFrame({
        'open': open_price,
        'high': high,
        'low': low,
        'close': close,
        'volume': volume,
    }, index=dates)


def make_flat_df(n: int = 60, price: float = 100.0, volume: float = 1000.0) -> pd.DataFrame:
    """Every candle is identical: no range, no change."""
    dates = pd.date_range(start=START, periods=n, freq='1h', tz='UTC', name='timestamp')
    return pd.DataFrame({
        'open': price,
        'high': price,
        'low': price,
        'close': price,
        'volume': volume,
    }, index=dates)


def frame_from_rows(
    rows: Sequence[Tuple[float, float, float, float]],
    volume: float = 1000.0,
    start: str = START,
) -> pd.DataFrame:
    """Build a frame from (open, high, low, close) tuples."""
    dates = pd.date_range(start=start, periods=len(rows), freq='1h', tz='UTC', name='timestamp')
    df = pd.DataFrame(rows, columns=['open', 'high', 'low', 'close'], index=dates, dtype=float)
    df['volume'] = float(volume)
    return df


def frame_from_closes(closes: Sequence[float], spread: float = 0.2) -> pd.DataFrame:
    """Frame whose candles open at the close, with a fixed high/low spread."""
    rows = [(c, c + spread, c - spread, c) for c in closes]
    return frame_from_rows(rows)


def df_to_candles(df: pd.DataFrame) -> List[Candle]:
    return [
        Candle(
            time=ts.to_pydatetime(),
            open=row.open,
            high=row.high,
            low=row.low,
            close=row.close,
            volume=row.volume,
        )
        for ts, row in df.iterrows()
    ]


def neutral_indicator_set(price: float = 100.0, **overrides) -> IndicatorSet:
    """IndicatorSet where every reading is neutral, with selected fields replaced."""
    base = IndicatorSet(
        price=price,
        rsi=RSIResult.neutral(),
        stoch_rsi=StochRSIResult.neutral(),
        macd=MACDResult.neutral(),
        bollinger=BollingerResult.neutral(),
        ema_trend=EMATrendResult.neutral(),
        ema_cross=EMACrossResult.neutral(),
        obv=OBVResult.neutral(),
        vwap=VWAPResult.neutral(),
        cvd=CVDResult.neutral(),
        atr=ATRResult.neutral(),
        adx=ADXResult.neutral(),
        momentum=MomentumResult.neutral(),
        supertrend=SupertrendResult.neutral(),
        fibonacci=FibonacciResult.neutral(),
        rsi_divergence=RSIDivergenceResult.neutral(),
        volume=VolumeResult.neutral(),
        liquidity=LiquidityResult.neutral(),
        ichimoku=IchimokuResult.neutral(),
        squeeze=SqueezeResult.neutral(),
    )
    return replace(base, **overrides)


def bullish_indicator_set():
    """Every indicator at its most bullish reading."""
    return neutral_indicator_set(
        rsi=RSIResult(value=25.0, signal='oversold', strength=0.5),
        rsi_divergence=RSIDivergenceResult(divergence='bullish', strength=0.2),
        stoch_rsi=StochRSIResult(k=12.0, d=10.0, signal='strong_buy', crossover='bullish'),
        macd=MACDResult(macd=0.5, signal=0.3, histogram=0.2, trend='strong_bullish', crossover='bullish'),
        ema_trend=EMATrendResult(value=95.0, position='above', trend='bullish', slope='rising'),
        ema_cross=EMACrossResult(fast=101.0, slow=100.0, trend='strong_bullish', crossover='bullish'),
        vwap=VWAPResult(
            vwap=99.5, upper_band1=100.5, lower_band1=98.5, upper_band2=101.5, lower_band2=97.5,
            std_dev=1.0, position='above', signal='bullish_vwap', slope='rising', distance_pct=0.5,
        ),
        cvd=CVDResult(value=5000.0, trend='bullish', strength=0.8, divergence='bullish'),
        obv=OBVResult(value=10000.0, trend='bullish', divergence='bullish'),
        volume=VolumeResult(
            current=2500.0, average=1000.0, ratio=2.5, spike=True,
            trend='increasing', price_volume_signal='bullish_confirmation',
        ),
        bollinger=BollingerResult(
            upper=104.0, middle=100.0, lower=96.0, bandwidth=8.0, percent_b=-5.0, signal='oversold',
        ),
    )


def bearish_indicator_set():
    """Every indicator at its most bearish reading."""
    return neutral_indicator_set(
        rsi=RSIResult(value=78.0, signal='overbought', strength=0.3),
        rsi_divergence=RSIDivergenceResult(divergence='bearish', strength=0.2),
        stoch_rsi=StochRSIResult(k=90.0, d=92.0, signal='strong_sell', crossover='bearish'),
        macd=MACDResult(macd=-0.5, signal=-0.3, histogram=-0.2, trend='strong_bearish', crossover='bearish'),
        ema_trend=EMATrendResult(value=105.0, position='below', trend='bearish', slope='falling'),
        ema_cross=EMACrossResult(fast=99.0, slow=100.0, trend='strong_bearish', crossover='bearish'),
        vwap=VWAPResult(
            vwap=100.5, upper_band1=101.5, lower_band1=99.5, upper_band2=102.5, lower_band2=98.5,
            std_dev=1.0, position='below', signal='bearish_vwap', slope='falling', distance_pct=-0.5,
        ),
        cvd=CVDResult(value=-5000.0, trend='bearish', strength=0.8, divergence='bearish'),
        obv=OBVResult(value=-10000.0, trend='bearish', divergence='bearish'),
        volume=VolumeResult(
            current=2500.0, average=1000.0, ratio=2.5, spike=True,
            trend='increasing', price_volume_signal='bearish_confirmation',
        ),
        bollinger=BollingerResult(
            upper=104.0, middle=100.0, lower=96.0, bandwidth=8.0, percent_b=105.0, signal='overbought',
        ),
    )

