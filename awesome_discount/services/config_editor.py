from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Tuple

from ..domain.models import (
    MAX_TAG_DISCOUNT,
    ConfigurationError,
    DiscountConfiguration,
    TagDiscountEntry,
)

D = Decimal


def _replace_tags(config: DiscountConfiguration, entries: Iterable[TagDiscountEntry]) -> DiscountConfiguration:
    return DiscountConfiguration(
        tag_discounts=tuple(entries),
        buy_x_get_y=config.buy_x_get_y,
        volume_tiers=config.volume_tiers,
    )


def add_tag(config: DiscountConfiguration, tag: str) -> DiscountConfiguration:
    """New tag starts at 0%. Adding a tag that is already configured is a no-op."""
    tag = (tag or "").strip()
    if not tag:
        raise ConfigurationError("Select a tag first")
    if config.tag_percentage(tag) is not None:
        return config
    return _replace_tags(config, (*config.tag_discounts, TagDiscountEntry(tag=tag, percentage=D("0"))))


def remove_tag(config: DiscountConfiguration, tag: str) -> DiscountConfiguration:
    return _replace_tags(config, (e for e in config.tag_discounts if e.tag != tag))


def set_tag_percentage(config: DiscountConfiguration, tag: str, percentage: D) -> DiscountConfiguration:
    pct = D(str(percentage))
    if pct < D("0") or pct > MAX_TAG_DISCOUNT:
        raise ConfigurationError(f"Tag discount percentage must be between 0 and {MAX_TAG_DISCOUNT}")
    if config.tag_percentage(tag) is None:
        raise ConfigurationError(f"Tag '{tag}' is not configured")
    return _replace_tags(
        config,
        (TagDiscountEntry(tag=e.tag, percentage=pct) if e.tag == tag else e for e in config.tag_discounts),
    )


def total_tag_discount(config: DiscountConfiguration) -> D:
    """Plain sum shown as 'Total additional discount from tags' (not the merged rate)."""
    return sum((e.percentage for e in config.tag_discounts), D("0"))


def available_tag_options(store_tags: Iterable[str], config: DiscountConfiguration) -> Tuple[str, ...]:
    """Store tags that are not configured yet, unique and sorted."""
    configured = set(config.tag_map)
    return tuple(sorted({t for t in store_tags if t and t not in configured}))
