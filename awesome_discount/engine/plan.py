from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

D = Decimal


class PlanError(ValueError):
    """Raised when a discount plan document is inconsistent."""


def _duplicates(values: List[str]) -> List[str]:
    seen, dups = set(), []
    for v in values:
        if v in seen and v not in dups:
            dups.append(v)
        seen.add(v)
    return dups


# -----------------------
# Plan models
# -----------------------


@dataclass(frozen=True)
class SourceSpec:
    id: str
    type: str
    title: str
    enabled: bool = True
    params: Dict[str, Any] = field(default_factory=dict, compare=False)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SourceSpec":
        return SourceSpec(
            id=str(d["id"]),
            type=str(d["type"]),
            title=str(d.get("title") or d["id"]),
            enabled=bool(d.get("enabled", True)),
            params=dict(d.get("params") or {}),
        )


@dataclass(frozen=True)
class MergeGroupSpec:
    """Sources whose contributions go through one diminishing-returns merge."""

    id: str
    title: str
    sources: Tuple[str, ...]

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MergeGroupSpec":
        return MergeGroupSpec(
            id=str(d["id"]),
            title=str(d.get("title") or d["id"]),
            sources=tuple(str(s) for s in d.get("sources") or ()),
        )


@dataclass(frozen=True)
class DiscountPlan:
    plan_version: str
    max_combined_discount: D
    sources: Tuple[SourceSpec, ...]
    merge_groups: Tuple[MergeGroupSpec, ...] = ()

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "DiscountPlan":
        sources = [SourceSpec.from_dict(x) for x in d.get("sources") or []]
        groups = [MergeGroupSpec.from_dict(x) for x in d.get("mergeGroups") or []]
        plan_version = str(d.get("planVersion") or d.get("version") or "v1")

        try:
            cap = D(str(d.get("maxCombinedDiscount", "100")))
        except InvalidOperation:
            raise PlanError(f"maxCombinedDiscount is not a number: {d.get('maxCombinedDiscount')!r}")
        if not D("0") <= cap <= D("100"):
            raise PlanError(f"maxCombinedDiscount must be between 0 and 100, got {cap}")

        # Cross-validation
        if not sources:
            raise PlanError("Plan must declare at least one discount source.")

        ids = [s.id for s in sources]
        dups = _duplicates(ids)
        if dups:
            raise PlanError(f"Duplicate source ids in plan: {dups}")

        group_dups = _duplicates([g.id for g in groups])
        if group_dups:
            raise PlanError(f"Duplicate merge group ids in plan: {group_dups}")

        grouped: List[str] = []
        for g in groups:
            if not g.sources:
                raise PlanError(f"Merge group '{g.id}' lists no sources.")
            missing = sorted(set(g.sources) - set(ids))
            if missing:
                raise PlanError(f"Merge group '{g.id}' references unknown source ids: {missing}")
            grouped.extend(g.sources)

        shared = _duplicates(grouped)
        if shared:
            raise PlanError(f"Sources listed in more than one merge group: {shared}")

        return DiscountPlan(
            plan_version=plan_version,
            max_combined_discount=cap,
            sources=tuple(sources),
            merge_groups=tuple(groups),
        )

    def group_of(self, source_id: str) -> Optional[MergeGroupSpec]:
        for g in self.merge_groups:
            if source_id in g.sources:
                return g
        return None

    def with_cap(self, cap: D) -> "DiscountPlan":
        if not D("0") <= D(cap) <= D("100"):
            raise PlanError(f"maxCombinedDiscount must be between 0 and 100, got {cap}")
        return DiscountPlan(
            plan_version=self.plan_version,
            max_combined_discount=D(cap),
            sources=self.sources,
            merge_groups=self.merge_groups,
        )


# Same shape as plans/default.yaml: buy-X-get-Y on its own, tag discounts merged.
DEFAULT_PLAN_DICT: Dict[str, Any] = {
    "planVersion": "v1",
    "maxCombinedDiscount": 50,
    "sources": [
        {"id": "buy_x_get_y", "type": "buy_x_get_y", "title": "Buy X Get Y"},
        {"id": "tags", "type": "tag_discount", "title": "Tag discounts"},
    ],
    "mergeGroups": [
        {"id": "customer_tags", "title": "Tag discounts", "sources": ["tags"]},
    ],
}
