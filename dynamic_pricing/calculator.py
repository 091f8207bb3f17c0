from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Callable, Mapping, Optional, Protocol

from .config import PricingConfig, _parse_float
from .models import ONE_TIME, PriceResult, PriceState, SchemeKey, Selection
from .pricing import bulk_discount_percent, compose_price, subscription_discount_percent
from .render import Renderer


log = logging.getLogger("dynamic_pricing.calculator")

# Seconds to wait after a subscription control changes before reading it,
# so sibling controls finish their own updates first.
SETTLE_DELAY = 0.1

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# Larger inputs are clamped; totals must stay representable as floats.
MAX_QUANTITY = 1_000_000


class SubscriptionSelector(Protocol):
    def current_selection(self) -> Selection:
        ...


Defer = Callable[[Callable[[], None]], None]


def run_now(callback: Callable[[], None]) -> None:
    callback()


class AsyncioSettle:
    """Runs the callback on the event loop after ``delay`` seconds."""

    def __init__(
        self,
        delay: float = SETTLE_DELAY,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.delay = delay
        self.loop = loop

    def __call__(self, callback: Callable[[], None]) -> None:
        loop = self.loop or asyncio.get_running_loop()
        loop.call_later(self.delay, callback)


def parse_quantity(raw: Any) -> int:
    """Leading integer of ``raw``; 1 when missing, unparseable or below 1.

    Values above MAX_QUANTITY are clamped to it.
    """
    if isinstance(raw, bool):
        return 1
    if isinstance(raw, int):
        qty = raw
    else:
        m = _LEADING_INT.match(str(raw if raw is not None else ""))
        digits = m.group(1) if m else "1"
        if len(digits.lstrip("+-").lstrip("0")) > len(str(MAX_QUANTITY)):
            return 1 if digits.startswith("-") else MAX_QUANTITY
        qty = int(digits)
    if qty < 1:
        return 1
    return min(qty, MAX_QUANTITY)


class PriceCalculator:
    def __init__(
        self,
        config: PricingConfig,
        renderer: Renderer,
        selector: Optional[SubscriptionSelector] = None,
        defer: Defer = run_now,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.selector = selector
        self.defer = defer
        self.state = PriceState(
            base_price=config.base_price, regular_price=config.regular_price
        )
        # config.debug raises this calculator's trace to INFO
        self.trace_level = logging.INFO if config.debug else logging.DEBUG

    def init(self) -> None:
        if self.selector is not None:
            self.check_subscription_status()
        self.update_display()
        log.log(self.trace_level, "Price display initialized: %s", self.state)

    # -- stimuli ---------------------------------------------------------

    def on_quantity_change(self, raw: Any) -> None:
        qty = parse_quantity(raw)
        if qty != self.state.quantity:
            self.state.quantity = qty
            self.update_display()

    def on_subscription_change(self) -> None:
        self.defer(self._settle_subscription)

    def _settle_subscription(self) -> None:
        self.check_subscription_status()
        self.update_display()

    def on_variation_found(self, variation: Mapping[str, Any]) -> None:
        if not self.config.is_variable:
            return
        log.log(self.trace_level, "Variation found: %s", variation)
        price = _parse_float(variation.get("display_price"))
        regular = _parse_float(variation.get("display_regular_price"))
        self.state.base_price = price
        self.state.regular_price = regular or price
        self.update_display()

    def on_variation_reset(self) -> None:
        if not self.config.is_variable:
            return
        log.log(self.trace_level, "Variation reset")
        self.state.reset_prices()
        self.update_display()

    # -- computation -----------------------------------------------------

    def check_subscription_status(self) -> bool:
        if self.selector is None:
            selection = Selection(key=None, is_active=False)
        else:
            selection = self.selector.current_selection()
        self.state.is_subscription_active = selection.is_active
        self.state.selected_scheme = selection.key
        log.log(
            self.trace_level,
            "Subscription status: %s (scheme %s)",
            selection.is_active,
            selection.key,
        )
        return selection.is_active

    def bulk_percent(self) -> float:
        return bulk_discount_percent(
            self.state.quantity,
            self.config.discount_tiers,
            self.config.bulk_discounts_enabled,
        )

    def subscription_percent(self) -> float:
        return subscription_discount_percent(
            self.state.is_subscription_active,
            self.state.selected_scheme,
            self.config.subscription_schemes,
            self.config.subscription_discount,
        )

    def calculate(self) -> PriceResult:
        sub = self.subscription_percent()
        bulk = self.bulk_percent()
        result = compose_price(
            self.state.base_price, self.state.regular_price, sub, bulk
        )
        log.log(
            self.trace_level,
            "Price calculation: original=%s final=%s savings=%s qty=%d sub=%s%% bulk=%s%%",
            result.original_unit_price,
            result.final_unit_price,
            result.savings_unit,
            self.state.quantity,
            sub,
            bulk,
        )
        return result

    def update_display(self) -> bool:
        return self.renderer.render(self.state, self.calculate)


class StaticSelector:
    """Selector for hosts that already know the chosen scheme (CLI, API)."""

    def __init__(self, key: Optional[SchemeKey] = None, is_active: Optional[bool] = None) -> None:
        self.key = key
        self.is_active = is_active

    def choose(self, key: Optional[SchemeKey], is_active: Optional[bool] = None) -> None:
        self.key = key
        self.is_active = is_active

    def current_selection(self) -> Selection:
        active = self.is_active
        if active is None:
            active = self.key is not None and self.key is not ONE_TIME
        return Selection(key=self.key, is_active=active)
