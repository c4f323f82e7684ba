"""
Smart Money Concepts (SMC) structure detection.

Detectors take an OHLCV DataFrame (plus swing points where they anchor on
them) and an optional SMCConfig; analyze_structure runs them all.
"""

from signal_engine.strategy.smc.swing_structure import detect_swings, analyze_market_structure
from signal_engine.strategy.smc.order_blocks import detect_order_blocks
from signal_engine.strategy.smc.fvg import detect_fair_value_gaps
from signal_engine.strategy.smc.bos_choch import detect_structural_breaks
from signal_engine.strategy.smc.liquidity_sweeps import detect_liquidity_sweeps
from signal_engine.strategy.smc.premium_discount import calculate_premium_discount
from signal_engine.strategy.smc.sessions import get_session_context
from signal_engine.strategy.smc.analyzer import analyze_structure, generate_structure_signal

__all__ = [
    'detect_swings',
    'analyze_market_structure',
    'detect_order_blocks',
    'detect_fair_value_gaps',
    'detect_structural_breaks',
    'detect_liquidity_sweeps',
    'calculate_premium_discount',
    'get_session_context',
    'analyze_structure',
    'generate_structure_signal',
]
