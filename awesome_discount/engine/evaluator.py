from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
import yaml
from jsonschema import ValidationError, validate

from ..domain.models import DiscountConfiguration
from ..rule_types.base import DiscountSource, source_registry
from .combination import combine_percentages
from .context import (
    Cart,
    DiscountEntry,
    DiscountResult,
    EvaluationContext,
    SourceResult,
)
from .plan import DEFAULT_PLAN_DICT, DiscountPlan, MergeGroupSpec, PlanError
from .targets import merge_targets

D = Decimal

logger = structlog.get_logger(__name__)

PLAN_SCHEMA_PATH = Path(__file__).resolve().parents[1] / "schemas" / "discount_plan.schema.json"


class DiscountEvaluator:
    """
    Deterministic discount evaluator.

    Behavior:
    - every enabled source in plan order is evaluated against the same read-only context
    - sources outside a merge group become their own entry at their own percentage
    - each merge group becomes one entry: contributions merged with diminishing
      returns under the plan cap, applied to the union of member targets
    - nothing applicable: DiscountResult.empty()
    """

    def __init__(self, plan: DiscountPlan):
        self.plan = plan
        self._sources: List[Tuple[DiscountSource, Optional[MergeGroupSpec]]] = []

        for spec in plan.sources:
            source_cls = source_registry.get(spec.type)
            if source_cls is None:
                raise PlanError(
                    f"Unknown discount source type '{spec.type}' for source '{spec.id}'. "
                    f"Registered: {sorted(source_registry.keys())}"
                )
            if not spec.enabled:
                continue
            source = source_cls(source_id=spec.id, title=spec.title, params=spec.params)
            self._sources.append((source, plan.group_of(spec.id)))

    @classmethod
    def from_dict(cls, plan_dict: Dict[str, Any]) -> "DiscountEvaluator":
        return cls(DiscountPlan.from_dict(plan_dict))

    @classmethod
    def default(cls) -> "DiscountEvaluator":
        return cls.from_dict(DEFAULT_PLAN_DICT)

    @classmethod
    def from_yaml_file(cls, path: str) -> "DiscountEvaluator":
        plan_path = Path(path)

        with plan_path.open("r", encoding="utf-8") as f:
            d = yaml.safe_load(f) or {}

        with PLAN_SCHEMA_PATH.open("r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            validate(instance=d, schema=schema)
        except ValidationError as e:
            raise PlanError(f"{plan_path}: {e.message}") from e
        return cls.from_dict(d)

    # -----------------
    # evaluation
    # -----------------

    def evaluate(
        self,
        cart: Cart,
        customer_tags: Iterable[str],
        configuration: DiscountConfiguration,
    ) -> DiscountResult:
        ctx = EvaluationContext.build(
            cart,
            customer_tags,
            configuration,
            max_combined_discount=self.plan.max_combined_discount,
        )

        results: List[Tuple[DiscountSource, Optional[MergeGroupSpec], SourceResult]] = []
        for source, group in self._sources:
            result = source.evaluate(ctx)
            logger.debug(
                "discount_source_evaluated",
                source_id=source.source_id,
                source_type=source.type_name,
                applicable=result.applicable,
                percentage=str(result.percentage),
                targets=len(result.targets),
            )
            results.append((source, group, result))

        entries: List[DiscountEntry] = []

        # 1) stand-alone sources, own percentage
        for source, group, result in results:
            if group is not None or not result.applicable or not result.targets:
                continue
            entries.append(
                DiscountEntry(
                    targets=result.targets,
                    percentage=result.percentage,
                    message=result.message,
                    source_ids=(source.source_id,),
                )
            )

        # 2) merge groups, diminishing returns
        hints = [r.message for _, _, r in results if not r.applicable and r.message]
        for group in self.plan.merge_groups:
            members = [
                (source, result)
                for source, g, result in results
                if g is not None and g.id == group.id and result.applicable
            ]
            entry = self._merge_group_entry(group, members, hints)
            if entry is not None:
                entries.append(entry)

        if not entries:
            logger.info("discount_evaluated", discounts=0, lines=len(cart.lines))
            return DiscountResult.empty()

        logger.info(
            "discount_evaluated",
            discounts=len(entries),
            lines=len(cart.lines),
            percentages=[str(e.percentage) for e in entries],
        )
        return DiscountResult(discounts=tuple(entries))

    def _merge_group_entry(
        self,
        group: MergeGroupSpec,
        members: List[Tuple[DiscountSource, SourceResult]],
        hints: List[str],
    ) -> Optional[DiscountEntry]:
        if not members:
            return None

        targets = merge_targets(*(result.targets for _, result in members))
        if not targets:
            return None

        contributions = [c for _, result in members for c in result.contributions]
        pct = combine_percentages((c.percentage for c in contributions), self.plan.max_combined_discount)
        if pct <= D("0"):
            return None

        message = f"{group.title}: {' + '.join(c.label for c in contributions)}"
        message += "".join(f" ({h})" for h in hints)

        return DiscountEntry(
            targets=targets,
            percentage=pct,
            message=message,
            source_ids=tuple(source.source_id for source, _ in members),
        )


def evaluate(
    cart: Cart,
    customer_tags: Iterable[str],
    configuration: DiscountConfiguration,
    *,
    plan: Optional[DiscountPlan] = None,
) -> DiscountResult:
    """Single-call entrypoint; uses the default plan unless one is given."""
    evaluator = DiscountEvaluator(plan) if plan is not None else DiscountEvaluator.default()
    return evaluator.evaluate(cart, customer_tags, configuration)
