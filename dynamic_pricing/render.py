from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Tuple

from .formatting import format_price
from .models import CurrencyFormat, PriceResult, PriceState


log = logging.getLogger("dynamic_pricing.render")

PLACEHOLDER_HTML = '<span style="color: #999;">Please select options</span>'


class RenderTarget(Protocol):
    """Write-only sink owned by the host page."""

    def set_html(self, html: str) -> None:
        ...


class BufferTarget:
    """In-memory sink; keeps every write for inspection."""

    def __init__(self) -> None:
        self.html = ""
        self.writes: List[str] = []

    def set_html(self, html: str) -> None:
        self.html = html
        self.writes.append(html)


@dataclass(frozen=True)
class Totals:
    final: float
    original: float
    savings: float


def totals_for(result: PriceResult, quantity: int) -> Totals:
    return Totals(
        final=result.final_unit_price * quantity,
        original=result.original_unit_price * quantity,
        savings=result.savings_unit * quantity,
    )


def discount_labels(quantity: int, is_subscription: bool) -> List[str]:
    labels: List[str] = []
    if quantity > 1:
        labels.append("bulk discount")
    if is_subscription:
        labels.append("subscription")
    return labels


class Renderer:
    def __init__(
        self,
        currency_format: CurrencyFormat,
        price_target: Optional[RenderTarget] = None,
        savings_target: Optional[RenderTarget] = None,
    ) -> None:
        self.currency_format = currency_format
        self.price_target = price_target
        self.savings_target = savings_target

    def fmt(self, value: float) -> str:
        return format_price(value, self.currency_format)

    def price_html(self, result: PriceResult, quantity: int) -> str:
        if result.final_unit_price == 0:
            return PLACEHOLDER_HTML
        totals = totals_for(result, quantity)
        parts = []
        if result.has_discount:
            parts.append('<del style="opacity: 0.6; margin-right: 0.5rem;">')
            parts.append(self.fmt(totals.original))
            parts.append("</del>")
        parts.append('<span class="mk-final-price">')
        parts.append(self.fmt(totals.final))
        parts.append("</span>")
        if quantity > 1:
            parts.append("<small>" + self.fmt(result.final_unit_price) + "/unit</small>")
        return "".join(parts)

    def savings_text(
        self, result: PriceResult, quantity: int, is_subscription: bool
    ) -> str:
        if result.final_unit_price == 0 or not result.has_discount:
            return ""
        text = f"You save {self.fmt(totals_for(result, quantity).savings)}"
        labels = discount_labels(quantity, is_subscription)
        if labels:
            text += " with " + " + ".join(labels)
        return text

    def build(
        self, result: PriceResult, quantity: int, is_subscription: bool
    ) -> Tuple[str, str]:
        return (
            self.price_html(result, quantity),
            self.savings_text(result, quantity, is_subscription),
        )

    def write(self, result: PriceResult, quantity: int, is_subscription: bool) -> None:
        price, savings = self.build(result, quantity, is_subscription)
        if self.price_target is not None:
            self.price_target.set_html(price)
        if self.savings_target is not None:
            self.savings_target.set_html(savings)

    def render(self, state: PriceState, compute: Callable[[], PriceResult]) -> bool:
        """Recompute and write, unless a render is already in progress.

        Returns False when the call was dropped by the reentrancy guard.
        """
        if state.is_rendering:
            log.debug("Render in progress, update dropped")
            return False
        state.is_rendering = True
        try:
            result = compute()
            self.write(result, state.quantity, state.is_subscription_active)
        finally:
            state.is_rendering = False
        return True
