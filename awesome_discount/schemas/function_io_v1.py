# awesome_discount/schemas/function_io_v1.py
from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# -----------------------------
# Run input (what the platform hands the discount function)
# -----------------------------


class MoneyV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    amount: Decimal = Decimal("0")


class LineCostV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    amount_per_quantity: MoneyV1 = Field(default_factory=MoneyV1, alias="amountPerQuantity")


class ProductV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None


class MerchandiseV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    typename: str = Field("ProductVariant", alias="__typename")
    id: Optional[str] = None
    product: Optional[ProductV1] = None


class CartLineV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    quantity: int = Field(0, ge=0)
    cost: LineCostV1 = Field(default_factory=LineCostV1)
    merchandise: MerchandiseV1 = Field(default_factory=MerchandiseV1)


class HasTagV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag: Optional[str] = None
    has_tag: bool = Field(False, alias="hasTag")


class CustomerV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    has_tags: List[Optional[HasTagV1]] = Field(default_factory=list, alias="hasTags")

    @field_validator("has_tags", mode="before")
    @classmethod
    def _null_tags(cls, v):
        # null -> geen tags
        return [] if v is None else v


class BuyerIdentityV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer: Optional[CustomerV1] = None


class CartV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    lines: List[CartLineV1] = Field(default_factory=list)
    buyer_identity: Optional[BuyerIdentityV1] = Field(None, alias="buyerIdentity")


class MetafieldV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: Optional[str] = None


class DiscountNodeV1(BaseModel):
    model_config = ConfigDict(extra="ignore")

    metafield: Optional[MetafieldV1] = None


class RunInputV1(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    cart: CartV1 = Field(default_factory=CartV1)
    discount_node: Optional[DiscountNodeV1] = Field(None, alias="discountNode")

    @property
    def configuration_value(self) -> Optional[str]:
        if self.discount_node is None or self.discount_node.metafield is None:
            return None
        return self.discount_node.metafield.value

    @property
    def active_customer_tags(self) -> List[str]:
        identity = self.cart.buyer_identity
        if identity is None or identity.customer is None:
            return []
        return [t.tag for t in identity.customer.has_tags if t is not None and t.has_tag and t.tag]


# -----------------------------
# Run result (what the platform applies)
# -----------------------------


class ProductVariantTargetV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    quantity: Optional[int] = None


class TargetV1(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    product_variant: ProductVariantTargetV1 = Field(alias="productVariant")


class PercentageV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    value: str


class DiscountValueV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    percentage: PercentageV1


class DiscountV1(BaseModel):
    model_config = ConfigDict(extra="forbid")

    targets: List[TargetV1]
    value: DiscountValueV1
    message: Optional[str] = None


class RunResultV1(BaseModel):
    """
    Platform contract. Empty discounts list = no discount.
    Serialize with model_dump(by_alias=True, exclude_none=True).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    discount_application_strategy: Literal["ALL", "FIRST", "MAXIMUM"] = Field(
        "ALL", alias="discountApplicationStrategy"
    )
    discounts: List[DiscountV1] = Field(default_factory=list)
