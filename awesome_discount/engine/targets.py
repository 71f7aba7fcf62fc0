from __future__ import annotations

from typing import Iterable, List, Tuple

from .context import CartLine, Target


def all_variant_targets(lines: Iterable[CartLine]) -> Tuple[Target, ...]:
    """Whole-line targets for every product-variant line (tag / volume discounts)."""
    return tuple(Target(merchandise_id=line.merchandise_id) for line in lines if line.is_product_variant)


def cheapest_first_targets(lines: Iterable[CartLine], units: int) -> Tuple[Target, ...]:
    """
    Allocate `units` discounted units to the cheapest variant lines first.

    Ties keep cart order (stable sort). Per target quantity never exceeds the
    line's quantity; the allocated total never exceeds `units`.
    """
    variants = [line for line in lines if line.is_product_variant]
    remaining = max(int(units), 0)
    targets: List[Target] = []

    for line in sorted(variants, key=lambda l: l.unit_price):
        if remaining <= 0:
            break
        take = min(line.quantity, remaining)
        if take > 0:
            targets.append(Target(merchandise_id=line.merchandise_id, quantity=take))
            remaining -= take

    return tuple(targets)


def merge_targets(*groups: Iterable[Target]) -> Tuple[Target, ...]:
    """Union of target groups; first occurrence of a merchandise id wins."""
    seen = set()
    merged: List[Target] = []
    for group in groups:
        for target in group:
            if target.merchandise_id in seen:
                continue
            seen.add(target.merchandise_id)
            merged.append(target)
    return tuple(merged)
