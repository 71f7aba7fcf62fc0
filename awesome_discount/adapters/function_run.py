from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from ..calculators.volume_tiers import format_pct
from ..engine.context import Cart, CartLine, DiscountResult
from ..engine.evaluator import DiscountEvaluator
from ..schemas.discount_config_v1 import load_configuration
from ..schemas.function_io_v1 import (
    DiscountV1,
    RunInputV1,
    RunResultV1,
)

logger = structlog.get_logger(__name__)

PRODUCT_VARIANT = "ProductVariant"


def cart_from_input(run_input: RunInputV1) -> Cart:
    lines = []
    for line in run_input.cart.lines:
        merch = line.merchandise
        lines.append(
            CartLine(
                merchandise_id=merch.id or "",
                quantity=line.quantity,
                unit_price=line.cost.amount_per_quantity.amount,
                is_product_variant=merch.typename == PRODUCT_VARIANT and bool(merch.id),
                title=merch.product.title if merch.product else None,
            )
        )
    return Cart.of(lines)


def to_run_result(result: DiscountResult) -> RunResultV1:
    discounts = []
    for entry in result:
        discounts.append(
            DiscountV1.model_validate(
                {
                    "targets": [
                        {"productVariant": {"id": t.merchandise_id, "quantity": t.quantity}}
                        for t in entry.targets
                    ],
                    "value": {"percentage": {"value": format_pct(entry.percentage)}},
                    "message": entry.message or None,
                }
            )
        )
    return RunResultV1(discounts=discounts)


def run(raw_input: Dict[str, Any], evaluator: Optional[DiscountEvaluator] = None) -> Dict[str, Any]:
    """
    Platform entrypoint: run input dict -> run result dict.

    ConfigurationError propagates; the caller decides whether a broken
    configuration means "no discount" or a failed invocation.
    """
    result = run_model(RunInputV1.model_validate(raw_input), evaluator)
    return result.model_dump(by_alias=True, exclude_none=True)


def run_model(run_input: RunInputV1, evaluator: Optional[DiscountEvaluator] = None) -> RunResultV1:
    evaluator = evaluator or DiscountEvaluator.default()

    configuration = load_configuration(run_input.configuration_value)
    cart = cart_from_input(run_input)
    tags = run_input.active_customer_tags

    logger.debug(
        "function_run_input",
        lines=len(cart.lines),
        total_quantity=cart.total_quantity,
        customer_tags=tags,
        configured_tags=list(configuration.tag_map.keys()),
    )

    return to_run_result(evaluator.evaluate(cart, tags, configuration))
