"""
Volume Indicators Module

Implements volume and order-flow indicators:
- OBV (On-Balance Volume) with trend and divergence
- VWAP (cumulative) with 1σ / 2σ deviation bands
- CVD (Cumulative Volume Delta) approximated from candle close position
- Volume analysis (spike, trend, price/volume confirmation)
- Liquidity check
"""

import logging

import numpy as np
import pandas as pd

from signal_engine.shared.config.timeframe_profiles import VolumeParams
from signal_engine.shared.models.indicators import (
    CVDResult,
    LiquidityResult,
    OBVResult,
    VolumeResult,
    VWAPResult,
)

logger = logging.getLogger(__name__)


OBV_MIN_CANDLES = 20
OBV_DIVERGENCE_LOOKBACK = 20
VWAP_MIN_CANDLES = 10
CVD_MIN_CANDLES = 20
CVD_DIVERGENCE_LOOKBACK = 15
LIQUIDITY_MIN_CANDLES = 20


def _trend_vs_average(current: float, average: float) -> str:
    if current > average * 1.05:
        return 'bullish'
    if current < average * 0.95:
        return 'bearish'
    return 'neutral'


def obv_series(df: pd.DataFrame) -> np.ndarray:
    """Cumulative volume signed by the direction of each close-to-close change."""
    closes = df['close'].to_numpy(dtype=float)
    volumes = df['volume'].fillna(0).to_numpy(dtype=float)
    if len(closes) == 0:
        return np.empty(0)
    signed = np.sign(np.diff(closes)) * volumes[1:]
    return np.concatenate(([0.0], np.cumsum(signed)))


def compute_obv(df: pd.DataFrame) -> OBVResult:
    """
    Compute On-Balance Volume.

    Trend compares OBV with its 10-bar average; divergence compares the two
    halves of the last 20 bars (higher price high with lower OBV high is
    bearish, lower price low with higher OBV low is bullish).

    Args:
        df: DataFrame with 'close' and 'volume' columns

    Returns:
        OBVResult
    """
    if len(df) < OBV_MIN_CANDLES:
        logger.debug("OBV: need %d candles, got %d", OBV_MIN_CANDLES, len(df))
        return OBVResult.neutral()

    obv = obv_series(df)
    current = float(obv[-1])
    trend = _trend_vs_average(current, float(obv[-10:].sum() / 10))

    prices = df['close'].to_numpy(dtype=float)[-OBV_DIVERGENCE_LOOKBACK:]
    recent_obv = obv[-OBV_DIVERGENCE_LOOKBACK:]
    half = OBV_DIVERGENCE_LOOKBACK // 2

    divergence = None
    if prices[half:].max() > prices[:half].max() and recent_obv[half:].max() < recent_obv[:half].max():
        divergence = 'bearish'
    elif prices[half:].min() < prices[:half].min() and recent_obv[half:].min() > recent_obv[:half].min():
        divergence = 'bullish'

    return OBVResult(value=current, trend=trend, divergence=divergence)


def compute_vwap(df: pd.DataFrame) -> VWAPResult:
    """
    Compute cumulative VWAP with volume-weighted deviation bands.

    VWAP accumulates from the first candle of the frame (no session reset).
    Candles with zero volume are weighted as 1 so a dead market still has a
    defined VWAP.

    Args:
        df: DataFrame with high, low, close, volume columns

    Returns:
        VWAPResult with bands, position, signal and slope
    """
    if len(df) < VWAP_MIN_CANDLES:
        logger.debug("VWAP: need %d candles, got %d", VWAP_MIN_CANDLES, len(df))
        return VWAPResult.neutral()

    typical = ((df['high'] + df['low'] + df['close']) / 3).to_numpy(dtype=float)
    volume = df['volume'].fillna(0).to_numpy(dtype=float)
    volume = np.where(volume == 0, 1.0, volume)

    cum_volume = np.cumsum(volume)
    vwap_values = np.cumsum(typical * volume) / cum_volume
    vwap = float(vwap_values[-1])
    price = float(df['close'].iloc[-1])

    variance = float(np.sum((typical - vwap_values) ** 2 * volume) / cum_volume[-1])
    std_dev = variance ** 0.5
    upper1, lower1 = vwap + std_dev, vwap - std_dev
    upper2, lower2 = vwap + 2 * std_dev, vwap - 2 * std_dev
    distance = (price - vwap) / vwap * 100 if vwap else 0.0

    if price > upper2:
        position = 'far_above'
    elif price > upper1:
        position = 'above_band1'
    elif price > vwap:
        position = 'above'
    elif price < lower2:
        position = 'far_below'
    elif price < lower1:
        position = 'below_band1'
    elif price < vwap:
        position = 'below'
    else:
        position = 'at_vwap'

    if position == 'far_above':
        signal = 'overbought_vwap'
    elif position == 'far_below':
        signal = 'oversold_vwap'
    elif position == 'above' and distance < 0.5:
        signal = 'bullish_vwap'
    elif position == 'below' and distance > -0.5:
        signal = 'bearish_vwap'
    else:
        signal = 'neutral'

    slope = 'flat'
    reference = float(vwap_values[-5])
    slope_pct = (vwap - reference) / reference * 100 if reference else 0.0
    if slope_pct > 0.05:
        slope = 'rising'
    elif slope_pct < -0.05:
        slope = 'falling'

    return VWAPResult(
        vwap=vwap,
        upper_band1=upper1,
        lower_band1=lower1,
        upper_band2=upper2,
        lower_band2=lower2,
        std_dev=std_dev,
        position=position,
        signal=signal,
        slope=slope,
        distance_pct=round(distance, 3),
    )


def cvd_series(df: pd.DataFrame) -> np.ndarray:
    """
    Cumulative volume delta approximated from where each candle closes.

    delta = volume * (2 * (close - low) / (high - low) - 1); candles with no
    range contribute nothing.
    """
    high = df['high'].to_numpy(dtype=float)
    low = df['low'].to_numpy(dtype=float)
    close = df['close'].to_numpy(dtype=float)
    volume = df['volume'].fillna(0).to_numpy(dtype=float)
    span = high - low
    safe_span = np.where(span > 0, span, 1.0)
    delta = np.where(span > 0, volume * (2 * (close - low) / safe_span - 1), 0.0)
    return np.cumsum(delta)


def compute_cvd(df: pd.DataFrame) -> CVDResult:
    """
    Compute Cumulative Volume Delta with trend, strength and divergence.

    Args:
        df: DataFrame with OHLCV columns

    Returns:
        CVDResult; history holds the last 20 CVD values
    """
    if len(df) < CVD_MIN_CANDLES:
        logger.debug("CVD: need %d candles, got %d", CVD_MIN_CANDLES, len(df))
        return CVDResult.neutral()

    cvd = cvd_series(df)
    current = float(cvd[-1])
    trend = _trend_vs_average(current, float(cvd[-10:].mean()))

    avg_volume = float(df['volume'].fillna(0).iloc[-5:].sum() / 5)
    change = float(cvd[-1] - cvd[-5])
    strength = min(1.0, abs(change) / (avg_volume * 2)) if avg_volume > 0 else 0.0

    recent = df.iloc[-CVD_DIVERGENCE_LOOKBACK:]
    recent_cvd = cvd[-CVD_DIVERGENCE_LOOKBACK:]
    half = CVD_DIVERGENCE_LOOKBACK // 2
    highs = recent['high'].to_numpy(dtype=float)
    lows = recent['low'].to_numpy(dtype=float)

    divergence = None
    if lows[half:].min() < lows[:half].min() * 0.998 and recent_cvd[half:].min() > recent_cvd[:half].min():
        divergence = 'bullish'
    elif highs[half:].max() > highs[:half].max() * 1.002 and recent_cvd[half:].max() < recent_cvd[:half].max():
        divergence = 'bearish'

    return CVDResult(
        value=round(current, 2),
        trend=trend,
        strength=round(strength, 3),
        divergence=divergence,
        history=tuple(float(v) for v in cvd[-20:]),
    )


def analyze_volume(df: pd.DataFrame, params: VolumeParams = VolumeParams()) -> VolumeResult:
    """
    Volume spike, volume trend and price/volume confirmation.

    Args:
        df: DataFrame with 'close' and 'volume' columns
        params: Volume MA period and spike multiplier

    Returns:
        VolumeResult
    """
    volumes = df['volume'].fillna(0).to_numpy(dtype=float)
    if len(volumes) < params.ma_period:
        return VolumeResult.neutral()

    average = float(volumes[-params.ma_period:].mean())
    current = float(volumes[-1])
    # A window with no volume at all carries no relative information
    ratio = current / average if average > 0 else 1.0
    spike = ratio >= params.spike_multiplier

    trend = 'stable'
    if len(volumes) >= 5:
        recent_avg = float(volumes[-5:].mean())
        older = volumes[-10:-5]
        older_avg = float(older.mean()) if len(older) == 5 else recent_avg
        if recent_avg > older_avg * 1.2:
            trend = 'increasing'
        elif recent_avg < older_avg * 0.8:
            trend = 'decreasing'

    price_volume_signal = None
    closes = df['close'].to_numpy(dtype=float)
    if len(closes) >= 2:
        change = closes[-1] - closes[-2]
        if change > 0 and spike:
            price_volume_signal = 'bullish_confirmation'
        elif change < 0 and spike:
            price_volume_signal = 'bearish_confirmation'
        elif change > 0 and ratio < 0.7:
            price_volume_signal = 'weak_rally'
        elif change < 0 and ratio < 0.7:
            price_volume_signal = 'weak_decline'

    return VolumeResult(
        current=current,
        average=round(average, 2),
        ratio=round(ratio, 2),
        spike=spike,
        trend=trend,
        price_volume_signal=price_volume_signal,
    )


def check_liquidity(df: pd.DataFrame) -> LiquidityResult:
    """
    Check that recent volume is sufficient to trade.

    Liquidity is insufficient when the 5-bar average volume is below 30% of
    the 20-bar average, or when two or more of the last 5 candles traded no
    volume at all.
    """
    if len(df) < LIQUIDITY_MIN_CANDLES:
        return LiquidityResult.neutral()

    volumes = df['volume'].fillna(0).to_numpy(dtype=float)
    avg20 = float(volumes[-20:].sum() / 20)
    recent = volumes[-5:]
    ratio = float(recent.sum() / 5) / avg20 if avg20 > 0 else 0.0

    sufficient = True
    warning = None
    if ratio < 0.3:
        sufficient = False
        warning = 'very low volume, high slippage risk'
    elif ratio < 0.5:
        warning = 'low volume, trade with caution'

    zero_volume = int((recent == 0).sum())
    if zero_volume >= 2:
        sufficient = False
        warning = 'several candles without volume, illiquid market'

    return LiquidityResult(
        sufficient=sufficient,
        volume_ratio=round(ratio, 2),
        zero_volume_candles=zero_volume,
        warning=warning,
    )
