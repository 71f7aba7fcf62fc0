# awesome_discount/schemas/evaluate_v1.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, constr

from ..calculators.volume_tiers import format_pct
from ..engine.context import Cart, CartLine, DiscountResult


class CartLineInV1(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    merchandise_id: constr(strip_whitespace=True, min_length=1) = Field(alias="merchandiseId")  # type: ignore
    quantity: int = Field(0, ge=0)
    unit_price: Decimal = Field(Decimal("0"), alias="unitPrice", ge=0)
    is_product_variant: bool = Field(True, alias="isProductVariant")
    title: Optional[str] = None

    def to_domain(self) -> CartLine:
        return CartLine(
            merchandise_id=self.merchandise_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            is_product_variant=self.is_product_variant,
            title=self.title,
        )


class CartInV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    lines: List[CartLineInV1] = Field(default_factory=list)

    def to_domain(self) -> Cart:
        return Cart.of(line.to_domain() for line in self.lines)


class EvaluateInputV1(BaseModel):
    """
    Direct engine call. `configuration` is the raw discount record value
    (object or JSON string); it goes through the same boundary as the function.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    cart: CartInV1 = Field(default_factory=CartInV1)
    customer_tags: List[str] = Field(default_factory=list, alias="customerTags")
    configuration: Union[Dict[str, Any], str, None] = None


class TargetOutV1(BaseModel):
    merchandiseId: str
    quantity: Optional[int] = None


class DiscountOutV1(BaseModel):
    targets: List[TargetOutV1]
    percentage: str
    message: str
    sourceIds: List[str] = Field(default_factory=list)


class EvaluateOutputV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    version: str = "v1"
    empty: bool
    discounts: List[DiscountOutV1] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: DiscountResult) -> "EvaluateOutputV1":
        return cls(
            empty=result.is_empty,
            discounts=[
                DiscountOutV1(
                    targets=[TargetOutV1(merchandiseId=t.merchandise_id, quantity=t.quantity) for t in e.targets],
                    percentage=format_pct(e.percentage),
                    message=e.message,
                    sourceIds=list(e.source_ids),
                )
                for e in result
            ],
        )
