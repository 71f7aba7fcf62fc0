from __future__ import annotations

from ..calculators.volume_tiers import format_pct, match_volume_tier
from ..engine.context import Contribution, SourceResult
from ..engine.targets import all_variant_targets
from .base import D, DiscountSource, register


@register
class VolumeDiscountSource(DiscountSource):
    """
    Staffelkorting op basis van het totaal aantal items in de cart.
    Only the single best-matching tier applies; it targets every variant line.
    """

    type_name = "volume_discount"

    def evaluate(self, ctx) -> SourceResult:
        total = ctx.cart.total_quantity
        tier = match_volume_tier(total, ctx.configuration.volume_tiers)
        if tier is None or tier.percentage <= D("0"):
            return SourceResult.not_applicable()

        pct = D(tier.percentage)
        label = f"{tier.minimum_item_count}+ items ({format_pct(pct)}%)"
        return SourceResult(
            applicable=True,
            percentage=pct,
            targets=all_variant_targets(ctx.cart.lines),
            message=f"{self.title}: {label}",
            contributions=(Contribution(label=label, percentage=pct),),
        )
