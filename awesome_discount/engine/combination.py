from __future__ import annotations

from decimal import Decimal
from typing import Iterable

D = Decimal

HALF = D("0.5")


def combine_percentages(percentages: Iterable[D], cap: D) -> D:
    """
    Diminishing-returns merge.

    Sorted high to low, the i-th percentage counts with weight 0.5**i:
      [20, 20] -> 20 + 10 = 30
      [20, 10] -> 20 + 5  = 25
    The sum is clamped to [0, cap].
    """
    ordered = sorted((D(p) for p in percentages), reverse=True)
    if not ordered:
        return D("0")

    total = D("0")
    for index, pct in enumerate(ordered):
        total += pct * (HALF ** index)

    if total < D("0"):
        return D("0")
    return min(total, D(cap))
