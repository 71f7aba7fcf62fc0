from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

D = Decimal

MAX_TAG_DISCOUNT = D("100")


class ConfigurationError(ValueError):
    """Raised when a discount configuration is malformed or breaks an invariant."""


@dataclass(frozen=True)
class VolumeTier:
    minimum_item_count: int
    percentage: D


# Canonical table, highest threshold first.
DEFAULT_VOLUME_TIERS: Tuple[VolumeTier, ...] = (
    VolumeTier(minimum_item_count=5, percentage=D("30")),
    VolumeTier(minimum_item_count=4, percentage=D("25")),
    VolumeTier(minimum_item_count=3, percentage=D("20")),
    VolumeTier(minimum_item_count=2, percentage=D("15")),
)


@dataclass(frozen=True)
class BuyXGetYRule:
    buy_quantity: int = 2
    get_quantity: int = 1
    discount_percentage: D = D("100")  # 100 = free item
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.buy_quantity < 1:
            raise ConfigurationError(f"buyQuantity must be >= 1, got {self.buy_quantity}")
        if self.get_quantity < 1:
            raise ConfigurationError(f"getQuantity must be >= 1, got {self.get_quantity}")
        if not D("0") <= self.discount_percentage <= D("100"):
            raise ConfigurationError(
                f"discountPercentage must be between 0 and 100, got {self.discount_percentage}"
            )

    @property
    def required_items(self) -> int:
        return self.buy_quantity + self.get_quantity


DEFAULT_BUY_X_GET_Y = BuyXGetYRule()


@dataclass(frozen=True)
class TagDiscountEntry:
    tag: str
    percentage: D

    def __post_init__(self) -> None:
        if not self.tag:
            raise ConfigurationError("tag discount entry needs a non-empty tag")
        if not D("0") <= self.percentage <= MAX_TAG_DISCOUNT:
            raise ConfigurationError(
                f"Tag discount percentage for '{self.tag}' must be between 0 and {MAX_TAG_DISCOUNT}"
            )


@dataclass(frozen=True)
class DiscountConfiguration:
    """
    Typed configuration snapshot attached to one discount record.

    Built by the configuration boundary (schemas.discount_config_v1); the
    engine only reads it.
    """

    tag_discounts: Tuple[TagDiscountEntry, ...] = ()
    buy_x_get_y: BuyXGetYRule = DEFAULT_BUY_X_GET_Y
    volume_tiers: Tuple[VolumeTier, ...] = DEFAULT_VOLUME_TIERS

    # derived lookup, insertion ordered
    _tag_index: Dict[str, D] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, D] = {}
        for entry in self.tag_discounts:
            if entry.tag in index:
                raise ConfigurationError(f"Duplicate tag in tag discounts: '{entry.tag}'")
            index[entry.tag] = entry.percentage
        object.__setattr__(self, "_tag_index", index)

    @classmethod
    def from_tag_map(
        cls,
        tag_discounts: Dict[str, D],
        *,
        buy_x_get_y: Optional[BuyXGetYRule] = None,
    ) -> "DiscountConfiguration":
        entries = tuple(TagDiscountEntry(tag=t, percentage=D(p)) for t, p in tag_discounts.items())
        return cls(tag_discounts=entries, buy_x_get_y=buy_x_get_y or DEFAULT_BUY_X_GET_Y)

    @property
    def tag_map(self) -> Dict[str, D]:
        return dict(self._tag_index)

    def tag_percentage(self, tag: str) -> Optional[D]:
        return self._tag_index.get(tag)

    def tags_in_config_order(self, tags: Iterable[str]) -> Tuple[str, ...]:
        wanted = set(tags)
        return tuple(t for t in self._tag_index if t in wanted)
