"""
Unit tests for Smart Money Concept detectors.

Tests:
- Swing detection and market structure labelling
- Order block validity, invalidation and testing
- Fair value gap detection and fill tracking
- BOS / CHoCH classification and swing break flags
- Liquidity sweeps
- Premium / discount zoning and session context
- Structural signal synthesis and the full analyzer
"""

from dataclasses import replace
from datetime import datetime

import pandas as pd
import pytest

from signal_engine.shared.config.smc_config import SMCConfig
from signal_engine.shared.models.smc import (
    MarketStructure,
    OrderBlock,
    PremiumDiscount,
    PriceZone,
    SessionContext,
    StructureBreak,
    Swing,
    SwingPoints,
)
from signal_engine.strategy.smc import (
    analyze_market_structure,
    analyze_structure,
    calculate_premium_discount,
    detect_fair_value_gaps,
    detect_liquidity_sweeps,
    detect_order_blocks,
    detect_structural_breaks,
    detect_swings,
    generate_structure_signal,
    get_session_context,
)
from signal_engine.tests.fixtures.market_data import (
    frame_from_closes,
    frame_from_rows,
    make_ohlcv_df,
)


def _epoch_ms(index: pd.DatetimeIndex):
    """Milliseconds since the Unix epoch, as exchange APIs report candle times."""
    return ((index - pd.Timestamp('1970-01-01', tz='UTC')) // pd.Timedelta(milliseconds=1)).to_numpy()


def make_swings(highs=(), lows=()) -> SwingPoints:
    """Build SwingPoints from (index, price) pairs."""
    return SwingPoints(
        highs=tuple(Swing(index=i, price=p, timestamp=None) for i, p in highs),
        lows=tuple(Swing(index=i, price=p, timestamp=None) for i, p in lows),
    )


OB_ROWS = [
    (105.0, 105.5, 104.0, 104.2),
    (104.2, 104.5, 103.0, 103.2),
    (103.2, 103.4, 101.5, 101.8),  # last bearish candle at the swing low
    (101.8, 103.5, 101.7, 103.3),
    (103.3, 104.8, 103.1, 104.6),
    (104.6, 105.5, 104.2, 105.2),
    (105.2, 106.0, 104.9, 105.8),
]


class TestSwingDetection:
    """Tests for swing detection and structure labelling."""

    def test_single_swing_low(self):
        df = frame_from_rows(OB_ROWS)
        swings = detect_swings(df, SMCConfig(swing_lookback=2))
        assert [s.index for s in swings.lows] == [2]
        assert swings.lows[0].price == 101.5
        assert swings.highs == ()
        assert swings.lows[0].timestamp == df.index[2]

    def test_equal_extremes_are_not_swings(self):
        """Swings must be strictly beyond every neighbour."""
        df = frame_from_rows([(100, 101, 99, 100)] * 15)
        swings = detect_swings(df, {'swing_lookback': 2})
        assert swings.highs == ()
        assert swings.lows == ()

    def test_edges_need_confirmation_bars(self):
        df = make_ohlcv_df(n=120, seed=3)
        swings = detect_swings(df)
        lookback = SMCConfig().swing_lookback
        for swing in swings.highs + swings.lows:
            assert lookback <= swing.index < len(df) - lookback

    def test_bullish_structure(self):
        swings = make_swings(
            highs=[(1, 100), (5, 102), (9, 104)],
            lows=[(3, 95), (7, 97), (11, 99)],
        )
        structure = analyze_market_structure(swings)
        assert structure.trend == 'bullish'
        assert structure.strength == pytest.approx(4 / 6)
        assert structure.last_swing.index == 11

    def test_bearish_structure(self):
        swings = make_swings(
            highs=[(1, 110), (5, 108), (9, 106), (13, 104)],
            lows=[(3, 100), (7, 98), (11, 96), (15, 94)],
        )
        structure = analyze_market_structure(swings)
        assert structure.trend == 'bearish'
        assert structure.strength == 1.0
        assert structure.lower_highs == 3

    def test_mixed_structure_is_neutral(self):
        swings = make_swings(
            highs=[(1, 100), (5, 102), (9, 101)],
            lows=[(3, 95), (7, 94), (11, 96)],
        )
        structure = analyze_market_structure(swings)
        assert structure.trend == 'neutral'
        assert structure.strength == 0.0

    def test_too_few_swings_is_neutral(self):
        structure = analyze_market_structure(make_swings(highs=[(1, 100)], lows=[(3, 95)]))
        assert structure.trend == 'neutral'
        assert structure.last_swing_high.price == 100


class TestOrderBlocks:
    """Tests for order block detection."""

    config = SMCConfig(swing_lookback=2)

    def test_bullish_block_at_swing_low(self):
        df = frame_from_rows(OB_ROWS)
        blocks = detect_order_blocks(df, detect_swings(df, self.config), self.config)
        assert len(blocks) == 1
        block = blocks[0]
        assert block.type == 'bullish'
        assert (block.high, block.low) == (103.4, 101.5)
        assert block.index == 2
        assert block.age == 4
        assert not block.tested
        assert block.strength > 0.3

    def test_close_below_block_invalidates_it(self):
        df = frame_from_rows(OB_ROWS + [(105.8, 105.9, 101.0, 101.2)])
        blocks = detect_order_blocks(df, detect_swings(df, self.config), self.config)
        assert blocks == []

    def test_price_back_inside_block_is_tested(self):
        df = frame_from_rows(OB_ROWS + [(105.8, 105.9, 102.0, 102.5)])
        blocks = detect_order_blocks(df, detect_swings(df, self.config), self.config)
        assert len(blocks) == 1
        assert blocks[0].tested

    def test_small_move_does_not_qualify(self):
        df = frame_from_rows(OB_ROWS)
        config = SMCConfig(swing_lookback=2, ob_min_size=5.0)
        assert detect_order_blocks(df, detect_swings(df, config), config) == []

    def test_no_swings_no_blocks(self):
        df = frame_from_rows(OB_ROWS)
        assert detect_order_blocks(df, SwingPoints()) == []


FVG_ROWS = [
    (100.0, 101.0, 99.0, 100.5),
    (100.5, 104.0, 100.4, 103.8),
    (103.8, 105.0, 102.0, 104.5),
    (104.5, 105.5, 103.0, 105.0),
]


class TestFairValueGaps:
    """Tests for FVG detection."""

    def test_bullish_gap(self):
        df = frame_from_rows(FVG_ROWS)
        gaps = detect_fair_value_gaps(df)
        assert len(gaps) == 1
        gap = gaps[0]
        assert gap.type == 'bullish'
        assert (gap.low, gap.high) == (101.0, 102.0)
        assert gap.midpoint == 101.5
        assert gap.index == 2
        assert gap.age == 1
        assert gap.timestamp == df.index[1]
        assert not gap.filled

    def test_filled_gap_excluded_by_default(self):
        df = frame_from_rows(FVG_ROWS + [(104.0, 104.5, 100.8, 101.5)])
        assert detect_fair_value_gaps(df) == []

        gaps = detect_fair_value_gaps(df, include_filled=True)
        assert len(gaps) == 1
        assert gaps[0].filled

    def test_bearish_gap(self):
        df = frame_from_rows([
            (100.0, 101.0, 99.0, 99.5),
            (99.5, 99.6, 96.0, 96.2),
            (96.2, 98.0, 95.5, 96.0),
            (96.0, 97.0, 95.0, 95.5),
        ])
        gaps = detect_fair_value_gaps(df)
        assert [g.type for g in gaps] == ['bearish']
        assert (gaps[0].low, gaps[0].high) == (98.0, 99.0)

    def test_minimum_size(self):
        df = frame_from_rows(FVG_ROWS)
        assert detect_fair_value_gaps(df, {'fvg_min_size': 2.0}) == []

    def test_too_short(self):
        assert detect_fair_value_gaps(frame_from_rows(FVG_ROWS[:2])) == []


BREAK_CLOSES = [109, 109.5, 101, 107, 99, 105, 97, 103, 95, 100, 104.5, 104]
BREAK_SWINGS = make_swings(
    highs=[(1, 110), (3, 108), (5, 106), (7, 104)],
    lows=[(2, 100), (4, 98), (6, 96), (8, 94)],
)


class TestStructuralBreaks:
    """Tests for BOS / CHoCH detection."""

    def test_break_classification(self):
        df = frame_from_closes(BREAK_CLOSES)
        breaks, _ = detect_structural_breaks(df, BREAK_SWINGS)

        latest = breaks[0]
        assert latest.type == 'choch'
        assert latest.direction == 'bullish'
        assert latest.level == 104
        assert latest.break_index == 10
        assert latest.age == 1

        assert [(b.type, b.direction, b.age) for b in breaks[1:]] == [
            ('bos', 'bearish', 3),
            ('bos', 'bearish', 5),
            ('bos', 'bearish', 7),
        ]

    def test_broken_flags_returned_without_mutation(self):
        df = frame_from_closes(BREAK_CLOSES)
        _, updated = detect_structural_breaks(df, BREAK_SWINGS)

        assert updated.highs[-1].broken
        assert not updated.highs[0].broken
        assert [s.broken for s in updated.lows] == [True, True, True, False]
        assert not any(s.broken for s in BREAK_SWINGS.highs)

    def test_break_count_capped(self):
        df = frame_from_closes(BREAK_CLOSES)
        breaks, _ = detect_structural_breaks(df, BREAK_SWINGS, {'max_structure_breaks': 2})
        assert len(breaks) == 2
        assert breaks[0].type == 'choch'

    def test_no_close_through_means_no_break(self):
        df = frame_from_closes([100, 101, 102, 101, 100])
        breaks, updated = detect_structural_breaks(df, make_swings(highs=[(2, 105)], lows=[(0, 95)]))
        assert breaks == []
        assert not updated.highs[0].broken


SWEEP_ROWS = [
    (98.0, 98.5, 97.5, 98.0),
    (98.0, 99.0, 97.8, 98.8),
    (98.8, 100.0, 98.5, 99.5),
    (99.5, 99.8, 99.0, 99.2),
    (99.2, 100.3, 99.1, 99.9),
    (99.9, 99.95, 99.2, 99.5),
    (99.5, 99.7, 99.0, 99.3),
]


class TestLiquiditySweeps:
    """Tests for liquidity sweep detection."""

    def test_wick_above_swing_high_then_reclaim(self):
        df = frame_from_rows(SWEEP_ROWS)
        sweeps = detect_liquidity_sweeps(df, make_swings(highs=[(2, 100.0)]))
        assert len(sweeps) == 1
        sweep = sweeps[0]
        assert sweep.type == 'bearish'
        assert sweep.level == 100.0
        assert sweep.extreme == 100.3
        assert sweep.index == 4
        assert sweep.age == 2
        assert sweep.size_pct == pytest.approx(0.3)

    def test_deep_pierce_is_breakout_not_sweep(self):
        rows = list(SWEEP_ROWS)
        rows[4] = (99.2, 101.0, 99.1, 99.9)
        df = frame_from_rows(rows)
        assert detect_liquidity_sweeps(df, make_swings(highs=[(2, 100.0)])) == []

    def test_wick_below_swing_low(self):
        df = frame_from_rows([
            (101.0, 101.5, 100.5, 101.0),
            (101.0, 101.2, 100.0, 100.6),
            (100.6, 101.0, 100.2, 100.8),
            (100.8, 101.0, 99.8, 100.2),
            (100.2, 100.9, 100.1, 100.7),
        ])
        sweeps = detect_liquidity_sweeps(df, make_swings(lows=[(1, 100.0)]))
        assert [s.type for s in sweeps] == ['bullish']
        assert sweeps[0].extreme == 99.8

    def test_old_sweeps_filtered(self):
        df = frame_from_rows(SWEEP_ROWS)
        assert detect_liquidity_sweeps(df, make_swings(highs=[(2, 100.0)]), {'sweep_max_age': 1}) == []


class TestPremiumDiscount:
    """Tests for premium / discount zoning."""

    swings = make_swings(
        highs=[(1, 110), (5, 120), (9, 115)],
        lows=[(3, 90), (7, 100), (11, 95)],
    )

    def test_range_and_zones(self):
        zones = calculate_premium_discount(100.0, self.swings)
        assert zones.range_high == 120
        assert zones.range_low == 90
        assert zones.equilibrium == 105
        assert zones.premium_zone.low == pytest.approx(108)
        assert zones.discount_zone.high == pytest.approx(102)

    @pytest.mark.parametrize("price,zone", [
        (110.0, 'premium'),
        (100.0, 'discount'),
        (105.0, 'equilibrium'),
    ])
    def test_current_zone(self, price, zone):
        assert calculate_premium_discount(price, self.swings).current_zone == zone

    def test_no_swings(self):
        assert calculate_premium_discount(100.0, make_swings(highs=[(1, 110)])) is None


class TestSessions:
    """Tests for session context."""

    def test_overlap_is_high_volume(self):
        ctx = get_session_context(pd.Timestamp('2024-01-02 14:00', tz='UTC'))
        assert ctx.hour == 14
        assert set(ctx.active_sessions) == {'london', 'new_york'}
        assert ctx.is_high_volume
        assert ctx.is_trading_session

    def test_asia_only_is_off_session(self):
        ctx = get_session_context(pd.Timestamp('2024-01-02 03:00', tz='UTC'))
        assert ctx.active_sessions == ('asia',)
        assert not ctx.is_trading_session

    def test_london_without_new_york(self):
        ctx = get_session_context(pd.Timestamp('2024-01-02 08:00', tz='UTC'))
        assert ctx.is_trading_session
        assert not ctx.is_high_volume

    def test_naive_datetime_is_utc(self):
        assert get_session_context(datetime(2024, 1, 2, 14)).hour == 14

    def test_other_timezones_converted(self):
        ctx = get_session_context(pd.Timestamp('2024-01-02 09:00', tz='US/Eastern'))
        assert ctx.hour == 14

    def test_non_datetime_has_unknown_hour(self):
        ctx = get_session_context(42)
        assert ctx.hour is None
        assert not ctx.is_trading_session


def _bullish_inputs():
    swing_low = Swing(index=80, price=95.0, timestamp=None)
    swing_high = Swing(index=90, price=110.0, timestamp=None)
    structure = MarketStructure(
        trend='bullish',
        strength=4 / 6,
        last_swing_high=swing_high,
        last_swing_low=swing_low,
        last_swing=swing_high,
    )
    recent_break = StructureBreak(
        type='bos', direction='bullish', level=104.0,
        swing_index=85, break_index=98, timestamp=None, age=1,
    )
    block = OrderBlock(
        type='bullish', high=101.0, low=99.0, index=95,
        timestamp=None, age=4, strength=1.2, tested=True,
    )
    return structure, recent_break, block


class TestStructureSignal:
    """Tests for structural signal synthesis."""

    def test_bullish_confluence_goes_long(self):
        structure, recent_break, block = _bullish_inputs()
        signal = generate_structure_signal(
            100.0, structure, [block], [], [recent_break], [], None, SessionContext(hour=None),
        )
        assert signal.score == 6
        assert signal.direction == 'long'
        assert signal.confidence == pytest.approx(0.6)
        assert signal.confluences == ('structure', 'structure_break', 'order_block')
        assert signal.confluence_count == 3
        assert signal.stop_loss == pytest.approx(95.0 * 0.998)
        assert signal.take_profit == 110.0
        assert signal.rrr == pytest.approx(10.0 / (100.0 - 95.0 * 0.998))

    def test_overlap_session_adds_a_point(self):
        structure, recent_break, block = _bullish_inputs()
        session = SessionContext(hour=14, active_sessions=('london', 'new_york'),
                                 is_high_volume=True, is_trading_session=True)
        signal = generate_structure_signal(
            100.0, structure, [block], [], [recent_break], [], None, session,
        )
        assert signal.score == 7

    def test_off_session_attenuates(self):
        structure, recent_break, block = _bullish_inputs()
        session = SessionContext(hour=3, active_sessions=('asia',))

        signal = generate_structure_signal(
            100.0, structure, [block], [], [recent_break], [], None, session,
        )
        assert signal.score == 4
        assert signal.direction == 'long'

        weaker = generate_structure_signal(
            100.0, structure, [], [], [recent_break], [], None, session,
        )
        assert weaker.score == 3
        assert weaker.direction is None
        assert weaker.confidence == 0.0
        assert weaker.stop_loss is None

    def test_bearish_confluence_in_premium_goes_short(self):
        swing_low = Swing(index=80, price=90.0, timestamp=None)
        swing_high = Swing(index=90, price=105.0, timestamp=None)
        structure = MarketStructure(
            trend='bearish', strength=1.0,
            last_swing_high=swing_high, last_swing_low=swing_low, last_swing=swing_high,
        )
        recent_break = StructureBreak(
            type='choch', direction='bearish', level=96.0,
            swing_index=80, break_index=97, timestamp=None, age=2,
        )
        zones = PremiumDiscount(
            range_high=105.0, range_low=90.0, equilibrium=97.5,
            premium_zone=PriceZone(high=105.0, low=99.0),
            discount_zone=PriceZone(high=96.0, low=90.0),
            current_zone='premium',
        )
        signal = generate_structure_signal(
            100.0, structure, [], [], [recent_break], [], zones, SessionContext(hour=None),
        )
        assert signal.score == -5
        assert signal.direction == 'short'
        assert 'premium_zone' in signal.confluences
        assert signal.stop_loss == pytest.approx(105.0 * 1.002)
        assert signal.take_profit == 90.0

    def test_stale_break_ignored(self):
        structure, recent_break, block = _bullish_inputs()
        stale = replace(recent_break, age=10)
        signal = generate_structure_signal(
            100.0, structure, [block], [], [stale], [], None, SessionContext(hour=None),
        )
        assert signal.score == 4
        assert 'structure_break' not in signal.confluences


class TestAnalyzeStructure:
    """Tests for the full structural pipeline."""

    def test_short_series_returns_none(self):
        assert analyze_structure(make_ohlcv_df(n=99)) is None

    def test_min_candles_configurable(self):
        assert analyze_structure(make_ohlcv_df(n=60), {'min_candles': 50}) is not None

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            analyze_structure(make_ohlcv_df(n=150), {'swing_lookback': 0})

    def test_full_analysis(self):
        df = make_ohlcv_df(n=200, seed=7)
        analysis = analyze_structure(df)
        assert analysis is not None
        assert analysis.price == df['close'].iloc[-1]
        assert analysis.swings.highs
        assert analysis.swings.lows
        assert len(analysis.order_blocks) <= SMCConfig().max_order_blocks
        assert all(not gap.filled for gap in analysis.fair_value_gaps)
        assert analysis.session.hour == df.index[-1].hour
        assert isinstance(analysis.signal.score, int)
        if analysis.signal.direction is None:
            assert analysis.signal.confidence == 0.0

    def test_deterministic(self):
        df = make_ohlcv_df(n=200, seed=11)
        assert analyze_structure(df) == analyze_structure(df.copy())

    @staticmethod
    def _overlap_frame():
        df = make_ohlcv_df(n=150)
        df.index = df.index + pd.Timedelta(hours=9)
        assert df.index[-1] == pd.Timestamp('2024-01-07 14:00', tz='UTC')
        return df

    def test_epoch_millisecond_timestamp_column(self):
        """Integer timestamp columns are epoch milliseconds."""
        df = self._overlap_frame()
        flat = df.reset_index(drop=True)
        flat['timestamp'] = _epoch_ms(df.index)

        session = analyze_structure(flat).session
        assert session.hour == 14
        assert set(session.active_sessions) == {'london', 'new_york'}
        assert session.is_high_volume

    def test_datetime_timestamp_column(self):
        df = self._overlap_frame()
        flat = df.reset_index()
        assert analyze_structure(flat).session.hour == 14

    def test_epoch_column_matches_datetime_index(self):
        df = self._overlap_frame()
        flat = df.reset_index(drop=True)
        flat['timestamp'] = _epoch_ms(df.index)
        assert analyze_structure(flat).signal == analyze_structure(df).signal
