from .domain.models import ConfigurationError, DiscountConfiguration  # noqa
from .engine.context import Cart, CartLine, DiscountResult  # noqa
from .engine.evaluator import DiscountEvaluator, evaluate  # noqa

__version__ = "0.1.0"
