from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class CurrencyPosition(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    LEFT_SPACE = "left_space"
    RIGHT_SPACE = "right_space"


class OneTime(Enum):
    """Tag for the selector value meaning "one-time purchase"."""

    PURCHASE = "one_time"


ONE_TIME = OneTime.PURCHASE

SchemeKey = Union[str, OneTime]


@dataclass(frozen=True)
class DiscountTier:
    min: int
    max: Optional[int]  # None = unbounded
    percent: float

    def contains(self, quantity: int) -> bool:
        if quantity < self.min:
            return False
        return self.max is None or quantity <= self.max


@dataclass(frozen=True)
class SubscriptionScheme:
    key: str
    discount_percent: float


@dataclass(frozen=True)
class Selection:
    """What the subscription controls currently say."""

    key: Optional[SchemeKey]
    is_active: bool


@dataclass(frozen=True)
class CurrencyFormat:
    symbol: str = "€"
    decimals: int = 2
    decimal_separator: str = ","
    thousand_separator: str = "."
    position: CurrencyPosition = CurrencyPosition.RIGHT_SPACE


@dataclass(frozen=True)
class PriceResult:
    final_unit_price: float
    original_unit_price: float
    savings_unit: float
    has_discount: bool


EMPTY_RESULT = PriceResult(0.0, 0.0, 0.0, False)


@dataclass
class PriceState:
    base_price: float = 0.0
    regular_price: float = 0.0
    quantity: int = 1
    is_subscription_active: bool = False
    selected_scheme: Optional[SchemeKey] = None
    is_rendering: bool = False

    def reset_prices(self) -> None:
        self.base_price = 0.0
        self.regular_price = 0.0
