"""
Signal engine for OHLCV candle series.

Combines weighted technical-indicator confluence with Smart Money Concepts
market structure into a graded, explainable trade signal.

Usage:
    from signal_engine import analyze_signal
    report = analyze_signal(candles, '5m')
    report.direction, report.grade, report.tradeable
"""

from signal_engine.services.signal_engine import SignalEngine, analyze_signal, confirm_external_signal
from signal_engine.shared.config.defaults import SCALPING_LADDER, STANDARD_LADDER, ConfluenceWeights
from signal_engine.shared.config.smc_config import SMCConfig, StructureTradeConfig
from signal_engine.shared.config.timeframe_profiles import TimeframeProfile, get_timeframe_profile
from signal_engine.shared.models.data import Candle, candles_to_frame
from signal_engine.shared.models.scoring import SignalDirection, SignalReport
from signal_engine.indicators.validation_utils import DataValidationError

__all__ = [
    'SignalEngine',
    'analyze_signal',
    'confirm_external_signal',
    'SignalReport',
    'SignalDirection',
    'Candle',
    'candles_to_frame',
    'TimeframeProfile',
    'get_timeframe_profile',
    'ConfluenceWeights',
    'STANDARD_LADDER',
    'SCALPING_LADDER',
    'SMCConfig',
    'StructureTradeConfig',
    'DataValidationError',
]
