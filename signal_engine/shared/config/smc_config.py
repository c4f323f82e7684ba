"""SMC (Smart Money Concepts) configuration module.

Centralizes all tunable parameters for the structure analyzer so detectors
never carry hardcoded magic numbers:
 - Swing detection
 - Order Blocks
 - Fair Value Gaps
 - Structural Breaks (BOS / CHoCH)
 - Liquidity Sweeps
 - Premium / Discount zoning and trading sessions
 - Structural signal synthesis

Percent thresholds are expressed in percent (0.3 means 0.3%).
"""

from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Tuple


# Trading session windows in UTC hours, [start, end)
DEFAULT_SESSIONS: Dict[str, Tuple[int, int]] = {
    'london': (7, 16),
    'new_york': (13, 22),
    'asia': (0, 9),
}


@dataclass(frozen=True)
class SMCConfig:
    # Swing detection
    swing_lookback: int = 5  # Bars on each side that must be strictly lower/higher

    # Order Block parameters
    ob_min_size: float = 0.3  # Minimum follow-through move in percent
    ob_max_age: int = 100
    ob_search_depth: int = 10  # Bars scanned back from a swing for the opposing candle
    ob_move_window: int = 10  # Bars past the swing used to measure the move
    max_order_blocks: int = 10

    # Fair Value Gap parameters
    fvg_min_size: float = 0.1
    fvg_max_age: int = 50
    max_fvgs: int = 10

    # Structural Break parameters
    bos_swing_depth: int = 5  # Most recent swings of each side checked for breaks
    max_structure_breaks: int = 5

    # Liquidity Sweep parameters
    liquidity_threshold: float = 0.5  # Maximum pierce beyond the swing in percent
    sweep_max_age: int = 20

    # Premium / Discount
    range_swings: int = 3
    zone_buffer: float = 0.1  # Share of the range added around equilibrium

    # Sessions
    sessions: Dict[str, Tuple[int, int]] = field(default_factory=lambda: dict(DEFAULT_SESSIONS))

    # Signal synthesis
    min_candles: int = 100
    recent_break_age: int = 5
    recent_sweep_age: int = 3
    fvg_proximity_pct: float = 0.5
    signal_threshold: int = 4
    off_session_factor: float = 0.7
    stop_buffer: float = 0.002  # Stop placed 0.2% beyond the opposing swing
    fallback_reward_risk: float = 2.0

    @staticmethod
    def defaults() -> "SMCConfig":
        """Return a fresh default configuration object."""
        return SMCConfig()

    def validate(self) -> None:
        """Validate configuration values, raising ValueError on invalid entries."""
        numeric_fields = [
            ("swing_lookback", self.swing_lookback, 1),
            ("ob_min_size", self.ob_min_size, 0),
            ("ob_max_age", self.ob_max_age, 0),
            ("ob_search_depth", self.ob_search_depth, 0),
            ("ob_move_window", self.ob_move_window, 1),
            ("max_order_blocks", self.max_order_blocks, 1),
            ("fvg_min_size", self.fvg_min_size, 0),
            ("fvg_max_age", self.fvg_max_age, 0),
            ("max_fvgs", self.max_fvgs, 1),
            ("bos_swing_depth", self.bos_swing_depth, 1),
            ("max_structure_breaks", self.max_structure_breaks, 1),
            ("liquidity_threshold", self.liquidity_threshold, 0),
            ("sweep_max_age", self.sweep_max_age, 0),
            ("range_swings", self.range_swings, 1),
            ("zone_buffer", self.zone_buffer, 0),
            ("min_candles", self.min_candles, 1),
            ("signal_threshold", self.signal_threshold, 1),
            ("stop_buffer", self.stop_buffer, 0),
            ("fallback_reward_risk", self.fallback_reward_risk, 0),
        ]
        for name, value, minimum in numeric_fields:
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")
        if not 0 <= self.zone_buffer < 0.5:
            raise ValueError(f"zone_buffer must be between 0 and 0.5, got {self.zone_buffer}")
        if not 0 < self.off_session_factor <= 1:
            raise ValueError(f"off_session_factor must be in (0, 1], got {self.off_session_factor}")
        for name, (start, end) in self.sessions.items():
            if not (0 <= start <= 24 and 0 <= end <= 24):
                raise ValueError(f"Session {name} hours must be within 0-24, got {start}-{end}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a dict representation suitable for serialization."""
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SMCConfig":
        """Create configuration from partial dict, applying defaults for missing keys."""
        known = {f.name for f in fields(SMCConfig)}
        overrides = {key: value for key, value in data.items() if key in known}
        if 'sessions' in overrides:
            overrides['sessions'] = {k: tuple(v) for k, v in overrides['sessions'].items()}
        config = replace(SMCConfig.defaults(), **overrides)
        config.validate()
        return config


@dataclass(frozen=True)
class StructureTradeConfig:
    """
    Filters applied to a structural signal before it is considered tradeable.

    RSI filter blocks longs into overbought and shorts into oversold RSI;
    MACD, volume and session filters are opt-in.
    """
    min_score: int = 3
    min_confluence: int = 2
    use_rsi_filter: bool = True
    rsi_overbought: float = 75.0
    rsi_oversold: float = 25.0
    use_macd_filter: bool = False
    macd_min_histogram: float = -2.0
    use_volume_filter: bool = False
    min_volume_ratio: float = 0.5
    use_session_filter: bool = False
    max_win_probability: float = 0.85
    atr_period: int = 14
    atr_stop_multiplier: float = 1.5
    atr_target_multiplier: float = 3.0

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "StructureTradeConfig":
        known = {f.name for f in fields(StructureTradeConfig)}
        return replace(StructureTradeConfig(), **{k: v for k, v in data.items() if k in known})


def resolve_smc_config(config: "SMCConfig | Dict[str, Any] | None") -> SMCConfig:
    """Accept an SMCConfig, a partial override dict, or None for defaults."""
    if config is None:
        return SMCConfig.defaults()
    if isinstance(config, dict):
        return SMCConfig.from_dict(config)
    return config
