"""
Technical Indicators Package

Provides:
- Momentum indicators (RSI, StochRSI, MACD, Momentum, RSI divergence)
- Trend indicators (EMA trend filter, fast EMA pair, ADX, Supertrend, Fibonacci, Ichimoku)
- Volatility indicators (ATR, Bollinger Bands, Bollinger / Keltner squeeze)
- Volume indicators (OBV, VWAP, CVD, volume analysis, liquidity check)
- Fakeout filter
- Data validation utilities

All indicator functions follow consistent patterns:
- Accept pandas DataFrame with OHLCV columns
- Return a frozen result dataclass
- Return the result's neutral() value for insufficient data instead of raising
"""

from signal_engine.indicators.momentum import (
    compute_rsi,
    compute_stoch_rsi,
    compute_macd,
    compute_momentum,
    compute_rsi_divergence,
    rsi_series,
)

from signal_engine.indicators.trend import (
    ema_series,
    compute_ema_trend,
    compute_ema_cross,
    compute_adx,
    compute_supertrend,
    compute_fibonacci,
    compute_fibonacci_targets,
    compute_ichimoku,
)

from signal_engine.indicators.volatility import (
    compute_atr,
    compute_bollinger_bands,
    compute_squeeze,
)

from signal_engine.indicators.volume import (
    compute_obv,
    compute_vwap,
    compute_cvd,
    analyze_volume,
    check_liquidity,
)

from signal_engine.indicators.filters import detect_fakeout

from signal_engine.indicators.validation_utils import (
    validate_ohlcv,
    DataValidationError,
)

__all__ = [
    # Momentum
    'compute_rsi',
    'compute_stoch_rsi',
    'compute_macd',
    'compute_momentum',
    'compute_rsi_divergence',
    'rsi_series',
    # Trend
    'ema_series',
    'compute_ema_trend',
    'compute_ema_cross',
    'compute_adx',
    'compute_supertrend',
    'compute_fibonacci',
    'compute_fibonacci_targets',
    'compute_ichimoku',
    # Volatility
    'compute_atr',
    'compute_bollinger_bands',
    'compute_squeeze',
    # Volume
    'compute_obv',
    'compute_vwap',
    'compute_cvd',
    'analyze_volume',
    'check_liquidity',
    # Filters
    'detect_fakeout',
    # Validation
    'validate_ohlcv',
    'DataValidationError',
]
