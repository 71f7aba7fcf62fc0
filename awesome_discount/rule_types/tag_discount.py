from __future__ import annotations

from typing import Iterable, List, Tuple

from ..calculators.volume_tiers import format_pct
from ..domain.models import DiscountConfiguration
from ..engine.combination import combine_percentages
from ..engine.context import Contribution, SourceResult
from ..engine.targets import all_variant_targets
from .base import D, DiscountSource, register


def resolve_tag_discounts(
    customer_tags: Iterable[str], configuration: DiscountConfiguration
) -> Tuple[Tuple[D, ...], Tuple[str, ...]]:
    """
    Percentages + labels for every customer tag that has a configured
    percentage > 0, in customer-tag order. Unknown tags are skipped.
    """
    percentages: List[D] = []
    labels: List[str] = []
    for tag in customer_tags:
        if not tag:
            continue
        pct = configuration.tag_percentage(tag)
        if pct is None or pct <= D("0"):
            continue
        percentages.append(pct)
        labels.append(f"{tag} ({format_pct(pct)}%)")
    return tuple(percentages), tuple(labels)


@register
class TagDiscountSource(DiscountSource):
    """
    Klantkorting op basis van customer tags.

    Applies to all variant lines. On its own the rate is the diminishing-returns
    merge of the matching tag percentages under the plan cap.
    """

    type_name = "tag_discount"

    def evaluate(self, ctx) -> SourceResult:
        percentages, labels = resolve_tag_discounts(ctx.customer_tags, ctx.configuration)
        if not percentages:
            return SourceResult.not_applicable()

        return SourceResult(
            applicable=True,
            percentage=combine_percentages(percentages, ctx.max_combined_discount),
            targets=all_variant_targets(ctx.cart.lines),
            message=f"{self.title}: {' + '.join(labels)}",
            contributions=tuple(
                Contribution(label=label, percentage=pct) for label, pct in zip(labels, percentages)
            ),
        )
