"""Services composing indicators, confluence scoring and structure analysis."""

from signal_engine.services.indicator_service import IndicatorService
from signal_engine.services.smc_service import StructureService, evaluate_structure_trade
from signal_engine.services.signal_engine import SignalEngine, analyze_signal, confirm_external_signal

__all__ = [
    'IndicatorService',
    'StructureService',
    'evaluate_structure_trade',
    'SignalEngine',
    'analyze_signal',
    'confirm_external_signal',
]
