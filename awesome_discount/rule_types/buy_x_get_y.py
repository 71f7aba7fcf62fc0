from __future__ import annotations

from ..calculators.volume_tiers import format_pct
from ..engine.context import Contribution, SourceResult
from ..engine.targets import cheapest_first_targets
from .base import D, DiscountSource, register


@register
class BuyXGetYSource(DiscountSource):
    """
    Buy X, get Y at a percentage off.

    - only product-variant lines count towards X + Y
    - the Y discounted units go to the cheapest lines first
    - not enough items: not applicable, message says how many are missing
    """

    type_name = "buy_x_get_y"

    def evaluate(self, ctx) -> SourceResult:
        rule = ctx.configuration.buy_x_get_y
        if not rule.enabled:
            return SourceResult.not_applicable()

        total = ctx.cart.variant_quantity
        if total < rule.required_items:
            missing = rule.required_items - total
            return SourceResult.not_applicable(
                f"Add {missing} more item(s) to qualify for "
                f"Buy {rule.buy_quantity} Get {rule.get_quantity} discount"
            )

        pct = D(rule.discount_percentage)
        if pct <= D("0"):
            return SourceResult.not_applicable()

        targets = cheapest_first_targets(ctx.cart.lines, rule.get_quantity)
        if not targets:
            return SourceResult.not_applicable()

        message = f"Buy {rule.buy_quantity} Get {rule.get_quantity} at {format_pct(pct)}% off"
        if pct == D("100"):
            message += " (FREE)"

        return SourceResult(
            applicable=True,
            percentage=pct,
            targets=targets,
            message=message,
            contributions=(Contribution(label=message, percentage=pct),),
        )
