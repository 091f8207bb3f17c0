from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from .models import CurrencyFormat, CurrencyPosition, DiscountTier, SubscriptionScheme
from .pricing import normalize_tiers


TRUTHY = {"1", "yes", "true"}


def _parse_float(v: Any, default: float = 0.0) -> float:
    if v is None or isinstance(v, bool):
        return default
    try:
        f = float(str(v).strip().replace(",", "."))
    except Exception:
        return default
    return f if math.isfinite(f) else default


def _clamp_percent(pct: float) -> float:
    return min(100.0, max(0.0, pct))


def _parse_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return default
    try:
        return int(float(str(v).strip()))
    except Exception:
        return default


def _parse_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        return v == 1
    if isinstance(v, str):
        return v.strip().lower() in TRUTHY
    return False


def parse_tiers(raw: Any) -> List[DiscountTier]:
    """Accepts ``[{"min": 2, "max": 4, "discount": 10}, ...]``.

    An empty or missing ``max`` means the tier has no upper bound. Entries
    without a usable ``min`` are skipped.
    """
    if not isinstance(raw, (list, tuple)):
        return []
    rows: List[Tuple[int, Optional[int], float]] = []
    for t in raw:
        if not isinstance(t, Mapping):
            continue
        tmin = _parse_int(t.get("min"))
        if tmin is None:
            continue
        tmax = _parse_int(t.get("max")) if t.get("max") not in (None, "") else None
        pct = t.get("discount", t.get("percent"))
        rows.append((tmin, tmax, _parse_float(pct)))
    return normalize_tiers(rows)


def parse_schemes(raw: Any) -> Dict[str, SubscriptionScheme]:
    if not isinstance(raw, Mapping):
        return {}
    schemes: Dict[str, SubscriptionScheme] = {}
    for key, data in raw.items():
        if isinstance(data, Mapping):
            pct = _parse_float(data.get("discount"))
        else:
            pct = _parse_float(data)
        schemes[str(key)] = SubscriptionScheme(
            key=str(key), discount_percent=_clamp_percent(pct)
        )
    return schemes


def parse_currency_format(raw: Any) -> CurrencyFormat:
    if not isinstance(raw, Mapping):
        return CurrencyFormat()
    decimals = _parse_int(raw.get("decimals"), 2)
    try:
        position = CurrencyPosition(raw.get("currency_pos"))
    except ValueError:
        position = CurrencyPosition.RIGHT_SPACE
    defaults = CurrencyFormat()

    def text(key: str, default: str) -> str:
        v = raw.get(key)
        return default if v is None else str(v)

    return CurrencyFormat(
        symbol=text("symbol", defaults.symbol),
        decimals=max(0, decimals if decimals is not None else 2),
        decimal_separator=text("decimal_sep", defaults.decimal_separator),
        thousand_separator=text("thousand_sep", defaults.thousand_separator),
        position=position,
    )


class DiscountSource(Protocol):
    """Where the tier table, default subscription percent and bulk switch come from."""

    def discount_tiers(self) -> List[DiscountTier]:
        ...

    def subscription_discount(self) -> float:
        ...

    def bulk_discounts_enabled(self) -> bool:
        ...


class EmbeddedDefaults:
    """Built-in defaults used when no discount engine is plugged in."""

    TIERS = [
        {"min": 2, "max": 2, "discount": 5},
        {"min": 3, "max": 4, "discount": 10},
        {"min": 5, "max": "", "discount": 15},
    ]
    SUBSCRIPTION_DISCOUNT = 10.0

    def discount_tiers(self) -> List[DiscountTier]:
        return parse_tiers(self.TIERS)

    def subscription_discount(self) -> float:
        return self.SUBSCRIPTION_DISCOUNT

    def bulk_discounts_enabled(self) -> bool:
        return True


@dataclass
class ExternalOverride:
    """Values supplied by a host-side discount engine."""

    tiers: List[DiscountTier] = field(default_factory=list)
    subscription_percent: float = 0.0
    enabled: bool = True

    def discount_tiers(self) -> List[DiscountTier]:
        return list(self.tiers)

    def subscription_discount(self) -> float:
        return self.subscription_percent

    def bulk_discounts_enabled(self) -> bool:
        return self.enabled


@dataclass(frozen=True)
class PricingConfig:
    base_price: float = 0.0
    regular_price: float = 0.0
    discount_tiers: Tuple[DiscountTier, ...] = ()
    bulk_discounts_enabled: bool = False
    subscription_discount: float = 0.0
    subscription_schemes: Mapping[str, SubscriptionScheme] = field(default_factory=dict)
    is_variable: bool = False
    currency_format: CurrencyFormat = field(default_factory=CurrencyFormat)
    debug: bool = False
    product_id: Optional[int] = None

    @classmethod
    def from_source(
        cls,
        source: DiscountSource,
        base_price: float = 0.0,
        regular_price: float = 0.0,
        subscription_schemes: Optional[Mapping[str, SubscriptionScheme]] = None,
        is_variable: bool = False,
        currency_format: Optional[CurrencyFormat] = None,
    ) -> "PricingConfig":
        enabled = source.bulk_discounts_enabled()
        return cls(
            base_price=base_price,
            regular_price=regular_price,
            discount_tiers=tuple(source.discount_tiers()) if enabled else (),
            bulk_discounts_enabled=enabled,
            subscription_discount=_clamp_percent(source.subscription_discount()),
            subscription_schemes=dict(subscription_schemes or {}),
            is_variable=is_variable,
            currency_format=currency_format or CurrencyFormat(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of :func:`load_config`, in the same key layout."""
        fmt = self.currency_format
        return {
            "productId": self.product_id,
            "basePrice": self.base_price,
            "regularPrice": self.regular_price,
            "discountTiers": [
                {"min": t.min, "max": t.max, "discount": t.percent}
                for t in self.discount_tiers
            ],
            "bulkDiscountsEnabled": self.bulk_discounts_enabled,
            "subscriptionDiscount": self.subscription_discount,
            "subscriptionSchemes": {
                k: {"key": s.key, "discount": s.discount_percent}
                for k, s in self.subscription_schemes.items()
            },
            "isVariable": self.is_variable,
            "currencyFormat": {
                "symbol": fmt.symbol,
                "decimals": fmt.decimals,
                "decimal_sep": fmt.decimal_separator,
                "thousand_sep": fmt.thousand_separator,
                "currency_pos": fmt.position.value,
            },
            "debug": self.debug,
        }


def load_config(data: Optional[Mapping[str, Any]]) -> PricingConfig:
    """Build a PricingConfig from the localized data blob. Never raises."""
    if not isinstance(data, Mapping):
        return PricingConfig()
    enabled = _parse_bool(data.get("bulkDiscountsEnabled"))
    tiers = parse_tiers(data.get("discountTiers")) if enabled else []
    return PricingConfig(
        base_price=_parse_float(data.get("basePrice")),
        regular_price=_parse_float(data.get("regularPrice")),
        discount_tiers=tuple(tiers),
        bulk_discounts_enabled=enabled,
        subscription_discount=_clamp_percent(_parse_float(data.get("subscriptionDiscount"))),
        subscription_schemes=parse_schemes(data.get("subscriptionSchemes")),
        is_variable=_parse_bool(data.get("isVariable")),
        currency_format=parse_currency_format(data.get("currencyFormat")),
        debug=_parse_bool(data.get("debug")),
        product_id=_parse_int(data.get("productId")),
    )


def load_config_file(path: Path) -> Optional[PricingConfig]:
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except Exception:
        return None
    return load_config(raw)
