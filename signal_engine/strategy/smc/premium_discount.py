"""
Premium / Discount zoning.

The dealing range spans the highest of the last swing highs and the lowest
of the last swing lows. Above equilibrium plus a buffer is premium (sell
side), below equilibrium minus the buffer is discount (buy side).
"""

from typing import Optional

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.smc import PremiumDiscount, PriceZone, SwingPoints


def calculate_premium_discount(
    price: float,
    swings: SwingPoints,
    config: SMCConfig | dict | None = None,
) -> Optional[PremiumDiscount]:
    """Zone the current price inside the recent swing range (None without swings)."""
    cfg = resolve_smc_config(config)
    if not swings.highs or not swings.lows:
        return None

    range_high = max(s.price for s in swings.highs[-cfg.range_swings:])
    range_low = min(s.price for s in swings.lows[-cfg.range_swings:])
    range_size = range_high - range_low
    equilibrium = (range_high + range_low) / 2

    premium = PriceZone(high=range_high, low=equilibrium + range_size * cfg.zone_buffer)
    discount = PriceZone(high=equilibrium - range_size * cfg.zone_buffer, low=range_low)

    if price >= premium.low:
        zone = 'premium'
    elif price <= discount.high:
        zone = 'discount'
    else:
        zone = 'equilibrium'

    return PremiumDiscount(
        range_high=range_high,
        range_low=range_low,
        equilibrium=equilibrium,
        premium_zone=premium,
        discount_zone=discount,
        current_zone=zone,
    )
