"""
Indicator Service - computes the full indicator set for one candle series.

Computes every indicator the confluence scorer and quality grader consume:
- Momentum: RSI, StochRSI, MACD, Momentum, RSI divergence
- Trend: EMA trend filter, fast EMA pair, ADX, Supertrend, Fibonacci, Ichimoku
- Volatility: ATR, Bollinger Bands, Bollinger / Keltner squeeze
- Volume: OBV, VWAP, CVD, volume analysis, liquidity

Indicator periods come from the TimeframeProfile passed to compute().
"""

import logging

import pandas as pd

from signal_engine.indicators.momentum import (
    compute_macd,
    compute_momentum,
    compute_rsi,
    compute_rsi_divergence,
    compute_stoch_rsi,
)
from signal_engine.indicators.trend import (
    compute_adx,
    compute_ema_cross,
    compute_ema_trend,
    compute_fibonacci,
    compute_ichimoku,
    compute_supertrend,
)
from signal_engine.indicators.volatility import compute_atr, compute_bollinger_bands, compute_squeeze
from signal_engine.indicators.volume import (
    analyze_volume,
    check_liquidity,
    compute_cvd,
    compute_obv,
    compute_vwap,
)
from signal_engine.shared.config.timeframe_profiles import TimeframeProfile
from signal_engine.shared.models.indicators import IndicatorSet

logger = logging.getLogger(__name__)


class IndicatorService:
    """
    Service for computing technical indicators on a single timeframe.

    Holds only the non-profile settings, so one instance can serve any
    number of concurrent calls.

    Usage:
        service = IndicatorService()
        indicators = service.compute(df, get_timeframe_profile('5m'))
    """

    def __init__(
        self,
        atr_period: int = 14,
        momentum_period: int = 10,
        supertrend_period: int = 10,
        supertrend_multiplier: float = 3.0,
        fibonacci_lookback: int = 50,
    ):
        self._atr_period = atr_period
        self._momentum_period = momentum_period
        self._supertrend_period = supertrend_period
        self._supertrend_multiplier = supertrend_multiplier
        self._fibonacci_lookback = fibonacci_lookback

    def compute(self, df: pd.DataFrame, profile: TimeframeProfile) -> IndicatorSet:
        """
        Compute every indicator for ``df`` using ``profile`` parameters.

        Args:
            df: OHLCV DataFrame, oldest row first
            profile: Timeframe profile supplying indicator periods

        Returns:
            IndicatorSet; indicators without enough history carry their
            neutral reading
        """
        indicators = IndicatorSet(
            price=float(df['close'].iloc[-1]),
            rsi=compute_rsi(df, profile.rsi),
            stoch_rsi=compute_stoch_rsi(df, profile.stoch_rsi),
            macd=compute_macd(df, profile.macd),
            bollinger=compute_bollinger_bands(df, profile.bollinger),
            ema_trend=compute_ema_trend(df, profile.ema),
            ema_cross=compute_ema_cross(df),
            obv=compute_obv(df),
            vwap=compute_vwap(df),
            cvd=compute_cvd(df),
            atr=compute_atr(df, self._atr_period),
            adx=compute_adx(df, profile.adx),
            momentum=compute_momentum(df, self._momentum_period),
            supertrend=compute_supertrend(df, self._supertrend_period, self._supertrend_multiplier),
            fibonacci=compute_fibonacci(df, self._fibonacci_lookback),
            rsi_divergence=compute_rsi_divergence(df),
            volume=analyze_volume(df, profile.volume),
            liquidity=check_liquidity(df),
            ichimoku=compute_ichimoku(df, profile.ichimoku),
            squeeze=compute_squeeze(df, profile.bollinger),
        )

        logger.debug(
            "Indicators [%s]: RSI=%.1f MACD=%s EMA=%s VWAP=%s ATR%%=%.2f",
            profile.name,
            indicators.rsi.value,
            indicators.macd.trend,
            indicators.ema_trend.position,
            indicators.vwap.position,
            indicators.atr.atr_pct,
        )
        return indicators
