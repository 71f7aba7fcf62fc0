# Ensure registration happens by importing modules
from .base import DiscountSource, source_registry  # noqa
from . import (  # noqa
    buy_x_get_y,
    tag_discount,
    volume_discount,
)
