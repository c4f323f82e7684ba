"""
Unit tests for timeframe profiles and structure configuration.
"""

import pytest

from signal_engine.shared.config.smc_config import SMCConfig, StructureTradeConfig, resolve_smc_config
from signal_engine.shared.config.timeframe_profiles import (
    get_timeframe_profile,
    get_timeframe_tpsl,
    normalize_timeframe,
    with_overrides,
)


class TestTimeframeProfiles:
    """Tests for profile lookup and overrides."""

    def test_hourly_defaults(self):
        profile = get_timeframe_profile('1h')
        assert profile.rsi.period == 14
        assert (profile.rsi.overbought, profile.rsi.oversold) == (70.0, 30.0)
        assert (profile.macd.fast, profile.macd.slow, profile.macd.signal) == (8, 17, 9)
        assert profile.ema.slow == 200

    def test_scalping_profile_is_shorter(self):
        profile = get_timeframe_profile('1m')
        assert profile.rsi.period == 5
        assert profile.rsi.overbought == 80
        assert profile.ema.slow == 21

    def test_unknown_label_falls_back(self):
        assert get_timeframe_profile('2h').name == '1h'
        assert get_timeframe_profile('').name == '1h'

    @pytest.mark.parametrize("label,expected", [('1H', '1h'), ('4H', '4h'), ('1D', '1d'), ('5m', '5m')])
    def test_normalize(self, label, expected):
        assert normalize_timeframe(label) == expected

    def test_tpsl(self):
        assert get_timeframe_tpsl('30m') == {'tp': 4.0, 'sl': 2.0}
        assert get_timeframe_tpsl('weird') == {'tp': 5.0, 'sl': 2.5}

    def test_with_overrides(self):
        base = get_timeframe_profile('1h')
        derived = with_overrides(base, rsi={'period': 21})
        assert derived.rsi.period == 21
        assert derived.rsi.overbought == base.rsi.overbought
        assert base.rsi.period == 14

    def test_with_overrides_rejects_unknown_section(self):
        with pytest.raises(ValueError, match='Unknown profile section'):
            with_overrides(get_timeframe_profile('1h'), stochastic={'period': 3})


class TestSMCConfig:
    """Tests for structure configuration parsing."""

    def test_defaults_validate(self):
        SMCConfig.defaults().validate()

    def test_from_dict_applies_overrides(self):
        config = SMCConfig.from_dict({'swing_lookback': 3, 'unused_key': 1})
        assert config.swing_lookback == 3
        assert config.ob_max_age == SMCConfig().ob_max_age

    def test_from_dict_converts_session_lists(self):
        config = SMCConfig.from_dict({'sessions': {'london': [8, 17]}})
        assert config.sessions == {'london': (8, 17)}

    @pytest.mark.parametrize("overrides", [
        {'swing_lookback': 0},
        {'zone_buffer': 0.6},
        {'off_session_factor': 0},
        {'sessions': {'london': (7, 30)}},
    ])
    def test_invalid_values_raise(self, overrides):
        with pytest.raises(ValueError):
            SMCConfig.from_dict(overrides)

    def test_resolve(self):
        assert resolve_smc_config(None) == SMCConfig()
        custom = SMCConfig(min_candles=50)
        assert resolve_smc_config(custom) is custom
        assert resolve_smc_config({'min_candles': 50}).min_candles == 50

    def test_trade_config_from_dict(self):
        config = StructureTradeConfig.from_dict({'min_score': 5, 'other': True})
        assert config.min_score == 5
        assert config.use_rsi_filter
