from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Tuple

from ..domain.models import DiscountConfiguration

D = Decimal


# -----------------------------
# Input models (per evaluation snapshot)
# -----------------------------


@dataclass(frozen=True)
class CartLine:
    merchandise_id: str
    quantity: int = 0
    unit_price: D = D("0.00")
    is_product_variant: bool = True
    title: Optional[str] = None


@dataclass(frozen=True)
class Cart:
    lines: Tuple[CartLine, ...] = ()

    @classmethod
    def of(cls, lines: Iterable[CartLine]) -> "Cart":
        return cls(lines=tuple(lines))

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def variant_lines(self) -> Tuple[CartLine, ...]:
        return tuple(line for line in self.lines if line.is_product_variant)

    @property
    def variant_quantity(self) -> int:
        return sum(line.quantity for line in self.variant_lines)


# -----------------------------
# Output models
# -----------------------------


@dataclass(frozen=True)
class Target:
    """A line reference. quantity=None means the whole line."""

    merchandise_id: str
    quantity: Optional[int] = None


@dataclass(frozen=True)
class Contribution:
    label: str
    percentage: D


@dataclass(frozen=True)
class SourceResult:
    """
    Outcome of one discount source.
    - percentage: the source's own rate (used when it is not merged)
    - contributions: what a merge group feeds into the combination algorithm
    - message: describes the discount, or hints what is missing when not applicable
    """

    applicable: bool
    percentage: D = D("0")
    targets: Tuple[Target, ...] = ()
    message: str = ""
    contributions: Tuple[Contribution, ...] = ()

    @staticmethod
    def not_applicable(message: str = "") -> "SourceResult":
        return SourceResult(applicable=False, message=message)


@dataclass(frozen=True)
class DiscountEntry:
    targets: Tuple[Target, ...]
    percentage: D
    message: str
    source_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DiscountResult:
    discounts: Tuple[DiscountEntry, ...] = ()

    @staticmethod
    def empty() -> "DiscountResult":
        return DiscountResult(discounts=())

    @property
    def is_empty(self) -> bool:
        return not self.discounts

    def __iter__(self) -> Iterator[DiscountEntry]:
        return iter(self.discounts)

    def __len__(self) -> int:
        return len(self.discounts)


# -----------------------------
# Evaluation context (per call, read-only)
# -----------------------------


@dataclass(frozen=True)
class EvaluationContext:
    """
    Everything a discount source may look at during one evaluation.
    Sources read it; nothing writes to it.
    """

    cart: Cart
    customer_tags: Tuple[str, ...]
    configuration: DiscountConfiguration
    max_combined_discount: D = D("100")

    @classmethod
    def build(
        cls,
        cart: Cart,
        customer_tags: Iterable[str],
        configuration: DiscountConfiguration,
        *,
        max_combined_discount: D,
    ) -> "EvaluationContext":
        # Unordered inputs get configuration order so results stay deterministic.
        if not isinstance(customer_tags, (set, frozenset)):
            seen = []
            for tag in customer_tags or ():
                if tag and tag not in seen:
                    seen.append(tag)
            tags = tuple(seen)
        else:
            tags = configuration.tags_in_config_order(t for t in customer_tags if t)
        return cls(
            cart=cart,
            customer_tags=tags,
            configuration=configuration,
            max_combined_discount=max_combined_discount,
        )
