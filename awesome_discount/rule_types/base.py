from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Type, TYPE_CHECKING

from ..engine.context import SourceResult

D = Decimal

if TYPE_CHECKING:
    from ..engine.context import EvaluationContext


class DiscountSource:
    """
    Base class for all discount sources. Every source implements evaluate(ctx).

    ctx: EvaluationContext (cart + customer tags + configuration + cap), read-only.
    Sources hold no per-evaluation state; one instance may serve many carts.
    """

    type_name: str = "base"

    def __init__(self, source_id: str, title: str, params: Optional[Dict[str, Any]] = None):
        self.source_id = str(source_id)
        self.title = str(title)
        self.params = params or {}

    def evaluate(self, ctx: "EvaluationContext") -> SourceResult:
        raise NotImplementedError


# Registry: source type -> DiscountSource class
source_registry: Dict[str, Type[DiscountSource]] = {}


def register(source_cls: Type[DiscountSource]) -> Type[DiscountSource]:
    """
    Decorator to register a discount source by its type_name.
    Fails fast on duplicate registrations.
    """
    key = getattr(source_cls, "type_name", None)
    if not key or key == DiscountSource.type_name:
        raise ValueError(f"Discount source {source_cls.__name__} has no type_name")

    if key in source_registry and source_registry[key] is not source_cls:
        raise ValueError(
            f"Duplicate discount source registration for type '{key}': "
            f"{source_registry[key].__name__} vs {source_cls.__name__}"
        )

    source_registry[key] = source_cls
    return source_cls
