from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

import awesome_discount.rule_types  # noqa: F401 (register all sources)

from awesome_discount.domain.models import BuyXGetYRule, DiscountConfiguration
from awesome_discount.engine.context import Cart, CartLine, EvaluationContext
from awesome_discount.engine.evaluator import DiscountEvaluator

PLANS = Path(__file__).resolve().parents[1] / "plans"


def line(mid: str, qty: int, price: str = "10.00", variant: bool = True) -> CartLine:
    return CartLine(
        merchandise_id=mid,
        quantity=qty,
        unit_price=Decimal(price),
        is_product_variant=variant,
    )


@pytest.fixture
def plans_dir() -> Path:
    return PLANS


@pytest.fixture
def vip_config() -> DiscountConfiguration:
    return DiscountConfiguration.from_tag_map({"vip": Decimal("20"), "new": Decimal("10")})


@pytest.fixture
def disabled_bxgy_config() -> DiscountConfiguration:
    return DiscountConfiguration(buy_x_get_y=BuyXGetYRule(enabled=False))


@pytest.fixture
def mixed_cart() -> Cart:
    # $10 x2 and $5 x2
    return Cart.of([line("gid://shopify/ProductVariant/1", 2, "10.00"), line("gid://shopify/ProductVariant/2", 2, "5.00")])


@pytest.fixture
def default_evaluator() -> DiscountEvaluator:
    return DiscountEvaluator.from_yaml_file(str(PLANS / "default.yaml"))


@pytest.fixture
def full_evaluator() -> DiscountEvaluator:
    return DiscountEvaluator.from_yaml_file(str(PLANS / "full.yaml"))


@pytest.fixture
def tag_volume_evaluator() -> DiscountEvaluator:
    return DiscountEvaluator.from_yaml_file(str(PLANS / "tag_volume.yaml"))


@pytest.fixture
def make_ctx():
    # Minimal ctx for unit-testing sources directly
    def _make(cart: Cart, tags=(), config: DiscountConfiguration = None, cap: str = "50") -> EvaluationContext:
        return EvaluationContext.build(
            cart,
            tags,
            config or DiscountConfiguration(),
            max_combined_discount=Decimal(cap),
        )

    return _make
