"""
Trading session context.

Crypto trades around the clock but liquidity still follows the traditional
sessions. Windows are UTC hours, start inclusive and end exclusive:
- London: 07-16
- New York: 13-22
- Asia: 00-09

The London/New York overlap is the high-volume window; hours outside both
London and New York are treated as low-activity.
"""

from datetime import datetime, timezone
from typing import Any

import pandas as pd

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.smc import SessionContext


def _utc_hour(timestamp: Any):
    if not isinstance(timestamp, (datetime, pd.Timestamp)):
        return None
    ts = pd.Timestamp(timestamp)
    if ts is pd.NaT:
        return None
    ts = ts.tz_localize(timezone.utc) if ts.tzinfo is None else ts.tz_convert(timezone.utc)
    return ts.hour


def get_session_context(timestamp: Any, config: SMCConfig | dict | None = None) -> SessionContext:
    """
    Describe the sessions active at ``timestamp``.

    Args:
        timestamp: Candle time (naive datetimes are treated as UTC). Anything
            that is not a datetime yields an unknown session with hour None.
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        SessionContext
    """
    cfg = resolve_smc_config(config)
    hour = _utc_hour(timestamp)
    if hour is None:
        return SessionContext(hour=None)

    active = tuple(
        name for name, (start, end) in cfg.sessions.items()
        if start <= hour < end
    )
    return SessionContext(
        hour=hour,
        active_sessions=active,
        is_high_volume='london' in active and 'new_york' in active,
        is_trading_session='london' in active or 'new_york' in active,
    )
