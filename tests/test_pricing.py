from __future__ import annotations

import pytest

from dynamic_pricing.models import ONE_TIME, SubscriptionScheme
from dynamic_pricing.pricing import (
    bulk_discount_percent,
    compose_price,
    normalize_tiers,
    subscription_discount_percent,
)


def default_tiers():
    return normalize_tiers([(2, 2, 5.0), (3, 4, 10.0), (5, None, 15.0)])


def test_no_bulk_discount_for_single_item():
    tiers = normalize_tiers([(1, None, 50.0)])
    assert bulk_discount_percent(1, tiers) == 0
    assert bulk_discount_percent(0, tiers) == 0


def test_bulk_tier_edges():
    tiers = default_tiers()
    assert bulk_discount_percent(2, tiers) == 5
    assert bulk_discount_percent(3, tiers) == 10
    assert bulk_discount_percent(4, tiers) == 10
    assert bulk_discount_percent(5, tiers) == 15
    assert bulk_discount_percent(500, tiers) == 15


def test_bulk_disabled_switch():
    assert bulk_discount_percent(5, default_tiers(), enabled=False) == 0


def test_last_matching_tier_wins():
    tiers = normalize_tiers([(2, 10, 20.0), (3, 5, 7.0)])
    assert bulk_discount_percent(4, tiers) == 7
    assert bulk_discount_percent(8, tiers) == 20


def test_normalize_tiers_keeps_order_and_drops_inverted():
    tiers = normalize_tiers([(5, None, 15.0), (4, 2, 10.0), (2, 2, 150.0)])
    assert [(t.min, t.max) for t in tiers] == [(5, None), (2, 2)]
    assert tiers[1].percent == 100.0


def test_subscription_default_and_scheme_override():
    schemes = {"monthly": SubscriptionScheme("monthly", 20.0)}
    assert subscription_discount_percent(False, "monthly", schemes, 10.0) == 0
    assert subscription_discount_percent(True, "monthly", schemes, 10.0) == 20.0
    assert subscription_discount_percent(True, "weekly", schemes, 10.0) == 10.0
    assert subscription_discount_percent(True, "weekly", {}, 10.0) == 10.0


def test_one_time_forces_zero_even_with_stale_flag():
    schemes = {"monthly": SubscriptionScheme("monthly", 20.0)}
    assert subscription_discount_percent(True, ONE_TIME, schemes, 10.0) == 0
    assert subscription_discount_percent(True, ONE_TIME, {}, 10.0) == 0


def test_composition_compounds():
    r = compose_price(100.0, 100.0, subscription_percent=10.0, bulk_percent=10.0)
    assert r.final_unit_price == pytest.approx(81.0)
    assert r.savings_unit == pytest.approx(19.0)
    assert r.has_discount


def test_zero_base_price_short_circuits():
    r = compose_price(0.0, 50.0, subscription_percent=10.0, bulk_percent=15.0)
    assert (r.final_unit_price, r.original_unit_price, r.savings_unit, r.has_discount) == (
        0,
        0,
        0,
        False,
    )


def test_regular_price_is_original_when_on_sale():
    r = compose_price(80.0, 100.0, 0.0, 0.0)
    assert r.original_unit_price == 100.0
    assert r.final_unit_price == 80.0
    assert r.has_discount
    r = compose_price(80.0, 0.0, 0.0, 0.0)
    assert r.original_unit_price == 80.0
    assert not r.has_discount


def test_recompute_is_identical():
    a = compose_price(19.99, 24.99, 12.5, 15.0)
    b = compose_price(19.99, 24.99, 12.5, 15.0)
    assert a == b


def test_scenario_quantity_five():
    pct = bulk_discount_percent(5, default_tiers())
    assert pct == 15
    r = compose_price(40.0, 40.0, 0.0, pct)
    assert r.final_unit_price == pytest.approx(40.0 * 0.85)
