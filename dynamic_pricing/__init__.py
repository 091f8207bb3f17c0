from .calculator import PriceCalculator
from .config import EmbeddedDefaults, ExternalOverride, PricingConfig, load_config
from .formatting import format_price
from .models import ONE_TIME, DiscountTier, PriceResult, PriceState, Selection
from .render import BufferTarget, Renderer

__all__ = [
    "BufferTarget",
    "DiscountTier",
    "EmbeddedDefaults",
    "ExternalOverride",
    "ONE_TIME",
    "PriceCalculator",
    "PriceResult",
    "PriceState",
    "PricingConfig",
    "Renderer",
    "Selection",
    "format_price",
    "load_config",
]
