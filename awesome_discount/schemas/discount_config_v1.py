# awesome_discount/schemas/discount_config_v1.py
from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.models import (
    DEFAULT_BUY_X_GET_Y,
    BuyXGetYRule,
    ConfigurationError,
    DiscountConfiguration,
    TagDiscountEntry,
)

D = Decimal

METAFIELD_NAMESPACE = "awesome-discount"
METAFIELD_KEY = "tag-discount-config"

# Old settings screen stored "{tag}Percentage" keys.
LEGACY_TAG_SUFFIX = "Percentage"


class BuyXGetYConfigV1(BaseModel):
    """Every field is optional; missing fields fall back to the default rule."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    buy_quantity: int = Field(DEFAULT_BUY_X_GET_Y.buy_quantity, alias="buyQuantity", ge=1)
    get_quantity: int = Field(DEFAULT_BUY_X_GET_Y.get_quantity, alias="getQuantity", ge=1)
    discount_percentage: D = Field(
        DEFAULT_BUY_X_GET_Y.discount_percentage, alias="discountPercentage", ge=0, le=100
    )
    enabled: bool = DEFAULT_BUY_X_GET_Y.enabled

    def to_domain(self) -> BuyXGetYRule:
        return BuyXGetYRule(
            buy_quantity=self.buy_quantity,
            get_quantity=self.get_quantity,
            discount_percentage=self.discount_percentage,
            enabled=self.enabled,
        )


class DiscountConfigV1(BaseModel):
    """
    Shape of the JSON stored on the discount record.

    Fallback rules:
    - tagDiscounts missing/null -> no tag discounts
    - buyXGetY missing/null -> default rule (buy 2, get 1 free, enabled)
    - a tag value of null or "" counts as 0 (the tag is kept but grants nothing)
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag_discounts: Dict[str, D] = Field(default_factory=dict, alias="tagDiscounts")
    buy_x_get_y: Optional[BuyXGetYConfigV1] = Field(None, alias="buyXGetY")

    @field_validator("tag_discounts", mode="before")
    @classmethod
    def _normalize_tags(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("tagDiscounts must be an object of tag -> percentage")

        out: Dict[str, Any] = {}
        for raw_key, raw_value in v.items():
            tag = normalize_tag_key(str(raw_key))
            if not tag:
                raise ValueError("tagDiscounts contains an empty tag")
            if tag in out:
                raise ValueError(f"duplicate tag '{tag}' in tagDiscounts")
            if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
                raw_value = "0"
            if isinstance(raw_value, bool):
                raise ValueError(f"percentage for tag '{tag}' must be a number")
            out[tag] = raw_value
        return out

    def to_domain(self) -> DiscountConfiguration:
        entries = tuple(TagDiscountEntry(tag=t, percentage=p) for t, p in self.tag_discounts.items())
        rule = self.buy_x_get_y.to_domain() if self.buy_x_get_y is not None else DEFAULT_BUY_X_GET_Y
        return DiscountConfiguration(tag_discounts=entries, buy_x_get_y=rule)


class TagEditV1(BaseModel):
    """One settings-screen action on a stored configuration."""

    model_config = ConfigDict(extra="forbid")

    action: Literal["add", "remove", "set_percentage"]
    tag: str
    percentage: Optional[D] = None
    configuration: Union[Dict[str, Any], str, None] = None


def normalize_tag_key(key: str) -> str:
    tag = key.strip()
    if tag.endswith(LEGACY_TAG_SUFFIX) and len(tag) > len(LEGACY_TAG_SUFFIX):
        tag = tag[: -len(LEGACY_TAG_SUFFIX)]
    return tag


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    # json.loads houdt anders stil de laatste waarde
    out: Dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise ConfigurationError(f"duplicate key '{key}' in configuration")
        out[key] = value
    return out


def load_configuration(raw: Union[None, str, bytes, Dict[str, Any]]) -> DiscountConfiguration:
    """
    Boundary: raw metafield value -> typed DiscountConfiguration.
    Raises ConfigurationError on anything it cannot read unambiguously.
    """
    if raw is None:
        return DiscountConfiguration()

    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Configuration is not valid UTF-8: {e.reason}") from e

    if isinstance(raw, str):
        if not raw.strip():
            return DiscountConfiguration()
        try:
            raw = json.loads(raw, object_pairs_hook=_reject_duplicate_keys)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Configuration is not valid JSON: {e.msg}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration must be a JSON object, got {type(raw).__name__}")

    try:
        model = DiscountConfigV1.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(_first_error(e)) from e

    return model.to_domain()


def _first_error(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))


def _json_number(value: D) -> Union[int, float]:
    d = D(value)
    if d == d.to_integral_value():
        return int(d)
    return float(d)


def configuration_to_dict(config: DiscountConfiguration) -> Dict[str, Any]:
    rule = config.buy_x_get_y
    return {
        "tagDiscounts": {e.tag: _json_number(e.percentage) for e in config.tag_discounts},
        "buyXGetY": {
            "buyQuantity": rule.buy_quantity,
            "getQuantity": rule.get_quantity,
            "discountPercentage": _json_number(rule.discount_percentage),
            "enabled": rule.enabled,
        },
    }


def dump_configuration(config: DiscountConfiguration) -> str:
    """Metafield value as written by the settings screen (plain tag keys)."""
    return json.dumps(configuration_to_dict(config), separators=(",", ":"))
