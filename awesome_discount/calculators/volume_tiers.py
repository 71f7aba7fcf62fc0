from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Tuple

from ..domain.models import VolumeTier

D = Decimal


def match_volume_tier(total_item_count: int, tiers: Iterable[VolumeTier]) -> Optional[VolumeTier]:
    # hoogste drempel eerst; eerste match wint (geen stapeling)
    for tier in sorted(tiers, key=lambda t: t.minimum_item_count, reverse=True):
        if total_item_count >= tier.minimum_item_count:
            return tier
    return None


def resolve_volume_percentage(total_item_count: int, tiers: Iterable[VolumeTier]) -> D:
    """
    tiers:
      - 5+ items -> 30
      - 4+ items -> 25
      - 3+ items -> 20
      - 2+ items -> 15
    Returns 0 when nothing matches or the table is empty.
    """
    tier = match_volume_tier(total_item_count, tiers)
    if tier is None:
        return D("0")
    return D(tier.percentage)


def describe_volume_tiers(tiers: Iterable[VolumeTier]) -> Tuple[str, ...]:
    ordered = sorted(tiers, key=lambda t: t.minimum_item_count, reverse=True)
    return tuple(f"{t.minimum_item_count}+ items: {format_pct(t.percentage)}% off" for t in ordered)


def format_pct(value: D) -> str:
    """20 -> '20', 25.0 -> '25', 12.50 -> '12.5'."""
    d = D(value)
    if d == d.to_integral_value():
        return str(d.quantize(D("1")))
    return format(d.normalize(), "f")
