from __future__ import annotations

import json

from dynamic_pricing.config import (
    EmbeddedDefaults,
    ExternalOverride,
    PricingConfig,
    load_config,
    load_config_file,
)
from dynamic_pricing.models import CurrencyPosition, DiscountTier


BLOB = {
    "productId": 42,
    "basePrice": "19.99",
    "regularPrice": "24.99",
    "discountTiers": [
        {"min": 2, "max": 2, "discount": 5},
        {"min": "3", "max": "4", "discount": "10"},
        {"min": 5, "max": "", "discount": 15},
        {"max": 9, "discount": 50},
    ],
    "bulkDiscountsEnabled": "yes",
    "subscriptionDiscount": 10,
    "subscriptionSchemes": {"1_month": {"key": "1_month", "discount": 15}},
    "isVariable": False,
    "currencyFormat": {
        "symbol": "€",
        "decimal_sep": ",",
        "thousand_sep": ".",
        "decimals": "2",
        "currency_pos": "left_space",
    },
}


def test_load_config_parses_blob():
    cfg = load_config(BLOB)
    assert cfg.base_price == 19.99
    assert cfg.regular_price == 24.99
    assert cfg.product_id == 42
    assert cfg.bulk_discounts_enabled
    assert cfg.discount_tiers == (
        DiscountTier(2, 2, 5.0),
        DiscountTier(3, 4, 10.0),
        DiscountTier(5, None, 15.0),
    )
    assert cfg.subscription_schemes["1_month"].discount_percent == 15.0
    assert cfg.currency_format.position is CurrencyPosition.LEFT_SPACE


def test_malformed_values_default_to_zero():
    cfg = load_config(
        {
            "basePrice": "abc",
            "subscriptionDiscount": None,
            "discountTiers": "nope",
            "bulkDiscountsEnabled": "1",
            "currencyFormat": {"currency_pos": "middle", "decimals": "x"},
        }
    )
    assert cfg.base_price == 0
    assert cfg.subscription_discount == 0
    assert cfg.discount_tiers == ()
    assert cfg.currency_format.position is CurrencyPosition.RIGHT_SPACE
    assert cfg.currency_format.decimals == 2


def test_disabled_bulk_drops_tiers():
    cfg = load_config({**BLOB, "bulkDiscountsEnabled": "0"})
    assert not cfg.bulk_discounts_enabled
    assert cfg.discount_tiers == ()


def test_not_a_mapping():
    assert load_config(None) == PricingConfig()
    assert load_config(["x"]) == PricingConfig()


def test_roundtrip_through_dict():
    cfg = load_config(BLOB)
    assert load_config(cfg.to_dict()) == cfg


def test_embedded_defaults_source():
    cfg = PricingConfig.from_source(EmbeddedDefaults(), base_price=10.0)
    assert [t.percent for t in cfg.discount_tiers] == [5.0, 10.0, 15.0]
    assert cfg.discount_tiers[-1].max is None
    assert cfg.subscription_discount == 10.0


def test_external_override_source():
    src = ExternalOverride(tiers=[DiscountTier(10, None, 30.0)], subscription_percent=7.5, enabled=False)
    cfg = PricingConfig.from_source(src)
    assert cfg.discount_tiers == ()
    assert not cfg.bulk_discounts_enabled
    assert cfg.subscription_discount == 7.5


def test_load_config_file(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps(BLOB), encoding="utf-8")
    assert load_config_file(p).base_price == 19.99
    assert load_config_file(tmp_path / "missing.json") is None


def test_non_finite_numbers_become_zero():
    cfg = load_config({"basePrice": "nan", "regularPrice": "inf", "subscriptionDiscount": "-inf"})
    assert cfg.base_price == 0
    assert cfg.regular_price == 0
    assert cfg.subscription_discount == 0


def test_subscription_percents_are_clamped():
    cfg = load_config(
        {
            "subscriptionDiscount": 250,
            "subscriptionSchemes": {"x": {"discount": 150}, "y": {"discount": -5}},
        }
    )
    assert cfg.subscription_discount == 100.0
    assert cfg.subscription_schemes["x"].discount_percent == 100.0
    assert cfg.subscription_schemes["y"].discount_percent == 0.0
    assert PricingConfig.from_source(ExternalOverride(subscription_percent=120)).subscription_discount == 100.0
