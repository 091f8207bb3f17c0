from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import (
    EMPTY_RESULT,
    ONE_TIME,
    DiscountTier,
    PriceResult,
    SchemeKey,
    SubscriptionScheme,
)


log = logging.getLogger("dynamic_pricing.pricing")


def normalize_tiers(
    rows: Iterable[Tuple[int, Optional[int], float]]
) -> List[DiscountTier]:
    """Turn ``(min, max, percent)`` rows into tiers, keeping their order.

    Order is significant: when ranges overlap the last matching tier wins,
    so rows are never sorted here. Rows with ``max < min`` are dropped and
    percents are clamped to 0..100.
    """
    tiers: List[DiscountTier] = []
    for tmin, tmax, pct in rows:
        tmin = max(1, int(tmin))
        if tmax is not None and tmax < tmin:
            continue
        tiers.append(DiscountTier(min=tmin, max=tmax, percent=min(100.0, max(0.0, pct))))
    return tiers


def apply_percent(price: float, percent: float) -> float:
    return price * (1 - percent / 100)


def bulk_discount_percent(
    quantity: int, tiers: Sequence[DiscountTier], enabled: bool = True
) -> float:
    if not enabled:
        log.debug("Bulk discounts disabled")
        return 0.0
    if quantity <= 1 or not tiers:
        return 0.0
    percent = 0.0
    for tier in tiers:
        if tier.contains(quantity):
            # later matches override earlier ones
            percent = tier.percent
    if percent:
        log.debug("Applied %s%% bulk discount (qty: %d)", percent, quantity)
    return percent


def subscription_discount_percent(
    is_active: bool,
    selected: Optional[SchemeKey],
    schemes: Mapping[str, SubscriptionScheme],
    default_percent: float,
) -> float:
    if not is_active:
        return 0.0
    if selected is ONE_TIME:
        return 0.0
    if schemes and selected is not None:
        scheme = schemes.get(selected)
        if scheme is not None:
            log.debug(
                "Using scheme-specific discount: %s%% for scheme %s",
                scheme.discount_percent,
                selected,
            )
            return scheme.discount_percent
    return default_percent or 0.0


def compose_price(
    base_price: float,
    regular_price: float,
    subscription_percent: float,
    bulk_percent: float,
) -> PriceResult:
    """Subscription discount first, then bulk discount on the discounted price."""
    if base_price == 0:
        return EMPTY_RESULT
    original = regular_price or base_price

    price = base_price
    if subscription_percent > 0:
        price = apply_percent(price, subscription_percent)
    if bulk_percent:
        price = apply_percent(price, bulk_percent)

    savings = original - price
    return PriceResult(
        final_unit_price=price,
        original_unit_price=original,
        savings_unit=savings,
        has_discount=savings > 0,
    )
