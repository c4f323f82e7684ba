"""
Unit tests for the service layer.

Tests:
- Structural trade filters and rejection reasons
- Win probability estimate and cap
- Structural vs ATR trade levels
- External signal confirmation
"""

from dataclasses import replace

import pytest

from signal_engine.services import StructureService, confirm_external_signal
from signal_engine.services.smc_service import estimate_win_probability, evaluate_structure_trade
from signal_engine.shared.config.smc_config import StructureTradeConfig
from signal_engine.shared.config.timeframe_profiles import IchimokuParams
from signal_engine.shared.models.indicators import MACDResult, RSIResult, VolumeResult
from signal_engine.shared.models.scoring import SignalReport
from signal_engine.shared.models.smc import (
    MarketStructure,
    PremiumDiscount,
    PriceZone,
    SessionContext,
    StructureAnalysis,
    StructureSignal,
    SwingPoints,
)
from signal_engine.tests.fixtures.market_data import (
    bearish_indicator_set,
    bullish_indicator_set,
    frame_from_rows,
    make_ohlcv_df,
    neutral_indicator_set,
)


LONG_SIGNAL = StructureSignal(
    direction='long',
    score=6,
    confidence=0.6,
    reasons=('Bullish market structure (HH + HL)', 'Recent bullish BOS', 'Price inside bullish order block'),
    confluences=('structure', 'structure_break', 'order_block'),
    stop_loss=94.81,
    take_profit=110.0,
    sl_pct=5.19,
    tp_pct=10.0,
    rrr=10.0 / 5.19,
)


def make_analysis(signal=LONG_SIGNAL, session=SessionContext(hour=None), zone=None, price=100.0):
    premium_discount = None
    if zone is not None:
        premium_discount = PremiumDiscount(
            range_high=110.0, range_low=90.0, equilibrium=100.0,
            premium_zone=PriceZone(high=110.0, low=102.0),
            discount_zone=PriceZone(high=98.0, low=90.0),
            current_zone=zone,
        )
    return StructureAnalysis(
        price=price,
        swings=SwingPoints(),
        structure=MarketStructure(trend='neutral', strength=0.0),
        order_blocks=[],
        fair_value_gaps=[],
        structure_breaks=[],
        liquidity_sweeps=[],
        premium_discount=premium_discount,
        session=session,
        signal=signal,
    )


def make_report(indicators):
    return SignalReport(
        timeframe='1h',
        profile='1h',
        candle_count=120,
        price=indicators.price if indicators else 100.0,
        ichimoku=IchimokuParams(),
        indicators=indicators,
    )


FLAT_DF = frame_from_rows([(100.0, 100.5, 99.5, 100.0)] * 30)
OVERLAP = SessionContext(hour=14, active_sessions=('london', 'new_york'), is_high_volume=True, is_trading_session=True)
ASIA = SessionContext(hour=3, active_sessions=('asia',))


class TestWinProbability:
    """Tests for the win probability heuristic."""

    def test_base_rate_without_direction(self):
        analysis = make_analysis(StructureSignal(direction=None, score=2, confidence=0.0))
        assert estimate_win_probability(analysis, StructureTradeConfig()) == 0.5

    def test_score_and_confluence(self):
        assert estimate_win_probability(make_analysis(), StructureTradeConfig()) == pytest.approx(0.74)

    def test_session_and_zone_bonus(self):
        analysis = make_analysis(session=OVERLAP, zone='discount')
        assert estimate_win_probability(analysis, StructureTradeConfig()) == pytest.approx(0.84)

    def test_capped(self):
        signal = replace(LONG_SIGNAL, score=10, confluences=('a', 'b', 'c', 'd', 'e'))
        analysis = make_analysis(signal, session=OVERLAP, zone='discount')
        assert estimate_win_probability(analysis, StructureTradeConfig()) == 0.85


class TestStructureTradeFilters:
    """Tests for the structural trade filters."""

    def test_structural_levels_used(self):
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis())
        assert evaluation.tradeable
        assert evaluation.reject_reason is None
        assert evaluation.direction == 'long'
        assert evaluation.entry == 100.0
        assert evaluation.stop_loss == 94.81
        assert evaluation.take_profit == 110.0
        assert evaluation.rrr == pytest.approx(10.0 / 5.19)
        assert evaluation.level_source == 'structure'

    def test_no_direction(self):
        analysis = make_analysis(StructureSignal(direction=None, score=1, confidence=0.0))
        evaluation = evaluate_structure_trade(FLAT_DF, analysis)
        assert not evaluation.tradeable
        assert evaluation.reject_reason == 'no structural direction'
        assert evaluation.stop_loss is None

    def test_min_score(self):
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(), config=StructureTradeConfig(min_score=8))
        assert evaluation.reject_reason == 'insufficient score (6/8)'

    def test_min_confluence(self):
        signal = replace(LONG_SIGNAL, confluences=('structure',))
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(signal))
        assert evaluation.reject_reason == 'insufficient confluence (1/2)'

    def test_rsi_blocks_long_into_overbought(self):
        indicators = neutral_indicator_set(rsi=RSIResult(value=80.0, signal='overbought', strength=0.7))
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(), indicators)
        assert not evaluation.tradeable
        assert evaluation.reject_reason == 'RSI overbought (80.0)'

    def test_rsi_blocks_short_into_oversold(self):
        signal = replace(LONG_SIGNAL, direction='short', score=-6, stop_loss=None, take_profit=None,
                         sl_pct=None, tp_pct=None, rrr=None)
        indicators = neutral_indicator_set(rsi=RSIResult(value=20.0, signal='oversold', strength=0.3))
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(signal), indicators)
        assert evaluation.reject_reason == 'RSI oversold (20.0)'

    def test_rsi_filter_can_be_disabled(self):
        indicators = neutral_indicator_set(rsi=RSIResult(value=80.0, signal='overbought', strength=0.7))
        config = StructureTradeConfig(use_rsi_filter=False)
        assert evaluate_structure_trade(FLAT_DF, make_analysis(), indicators, config).tradeable

    def test_macd_filter_applies_to_longs(self):
        indicators = neutral_indicator_set(macd=MACDResult(macd=-4.0, signal=-1.0, histogram=-3.0, trend='strong_bearish'))
        config = StructureTradeConfig(use_macd_filter=True)

        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(), indicators, config)
        assert evaluation.reject_reason == 'MACD histogram strongly negative'

        short = replace(LONG_SIGNAL, direction='short', score=-6)
        assert evaluate_structure_trade(FLAT_DF, make_analysis(short), indicators, config).tradeable

    def test_volume_filter(self):
        indicators = neutral_indicator_set(volume=VolumeResult(
            current=300.0, average=1000.0, ratio=0.3, spike=False, trend='decreasing',
        ))
        config = StructureTradeConfig(use_volume_filter=True)
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(), indicators, config)
        assert evaluation.reject_reason == 'insufficient volume (30%)'

    def test_session_filter(self):
        config = StructureTradeConfig(use_session_filter=True)
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(session=ASIA), config=config)
        assert evaluation.reject_reason == 'outside London / New York sessions'
        assert evaluate_structure_trade(FLAT_DF, make_analysis(session=OVERLAP), config=config).tradeable


class TestATRLevels:
    """Tests for the ATR fallback when no structural levels exist."""

    unlevelled = replace(LONG_SIGNAL, stop_loss=None, take_profit=None, sl_pct=None, tp_pct=None, rrr=None)

    def test_atr_levels_for_long(self):
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(self.unlevelled))
        assert evaluation.tradeable
        assert evaluation.level_source == 'atr'
        assert evaluation.stop_loss == pytest.approx(98.5)
        assert evaluation.take_profit == pytest.approx(103.0)
        assert evaluation.rrr == pytest.approx(2.0)

    def test_atr_levels_for_short(self):
        signal = replace(self.unlevelled, direction='short', score=-6)
        evaluation = evaluate_structure_trade(FLAT_DF, make_analysis(signal))
        assert evaluation.stop_loss == pytest.approx(101.5)
        assert evaluation.take_profit == pytest.approx(97.0)

    def test_no_levels_without_atr_history(self):
        short_df = frame_from_rows([(100.0, 100.5, 99.5, 100.0)] * 10)
        evaluation = evaluate_structure_trade(short_df, make_analysis(self.unlevelled))
        assert evaluation.tradeable
        assert evaluation.stop_loss is None
        assert evaluation.level_source is None
        assert evaluation.rrr == 2.0


class TestStructureService:
    """Tests for StructureService."""

    def test_short_series_skipped(self):
        assert StructureService().analyze(make_ohlcv_df(n=60)) == (None, None)

    def test_analysis_and_evaluation(self):
        analysis, evaluation = StructureService().analyze(make_ohlcv_df(n=200, seed=5))
        assert analysis is not None
        assert evaluation is not None
        assert evaluation.direction == analysis.signal.direction
        if not evaluation.tradeable:
            assert evaluation.reject_reason


class TestConfirmExternalSignal:
    """Tests for confirming externally generated signals."""

    def test_long_confirmed_by_bullish_readings(self):
        result = confirm_external_signal('long', make_report(bullish_indicator_set()))
        assert result.confirmed
        assert result.confirmations == 14
        assert result.rejections == 0
        assert result.confidence == 'high'
        assert '✓ Bullish RSI divergence' in result.reasons

    def test_short_rejected_by_bullish_readings(self):
        result = confirm_external_signal('short', make_report(bullish_indicator_set()))
        assert not result.confirmed
        assert result.rejections == 8
        assert result.net_score < 3

    def test_short_confirmed_by_bearish_readings(self):
        result = confirm_external_signal('short', make_report(bearish_indicator_set()))
        assert result.confirmed
        assert result.confidence == 'high'

    def test_neutral_readings_not_enough(self):
        result = confirm_external_signal('long', make_report(neutral_indicator_set()))
        assert result.confirmations == 1
        assert not result.confirmed
        assert result.confidence == 'low'

    def test_report_without_indicators(self):
        result = confirm_external_signal('long', make_report(None))
        assert not result.confirmed
        assert result.confirmations == 0
        assert result.confidence == 'low'
