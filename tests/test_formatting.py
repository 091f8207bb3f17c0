from __future__ import annotations

from dataclasses import replace

from dynamic_pricing.formatting import format_number, format_price, format_quantity_range
from dynamic_pricing.models import CurrencyFormat, CurrencyPosition


EUR = CurrencyFormat(
    symbol="€",
    decimals=2,
    decimal_separator=",",
    thousand_separator=".",
    position=CurrencyPosition.RIGHT_SPACE,
)


def test_euro_right_space():
    assert format_price(1234.5, EUR) == "1.234,50 €"


def test_positions():
    fmt = CurrencyFormat(symbol="$", decimal_separator=".", thousand_separator=",")
    assert format_price(1234.5, replace(fmt, position=CurrencyPosition.LEFT)) == "$1,234.50"
    assert format_price(1234.5, replace(fmt, position=CurrencyPosition.RIGHT)) == "1,234.50$"
    assert format_price(1234.5, replace(fmt, position=CurrencyPosition.LEFT_SPACE)) == "$ 1,234.50"
    assert format_price(1234.5, fmt) == "1,234.50 $"


def test_grouping():
    assert format_number(1234567.891, EUR) == "1.234.567,89"
    assert format_number(999.0, EUR) == "999,00"
    assert format_number(100000.0, EUR) == "100.000,00"


def test_zero_decimals():
    fmt = CurrencyFormat(symbol="¥", decimals=0, position=CurrencyPosition.LEFT)
    assert format_price(1234.4, fmt) == "¥1.234"


def test_quantity_range_labels():
    assert format_quantity_range(2, 2) == "2"
    assert format_quantity_range(3, 4) == "3 - 4"
    assert format_quantity_range(5, None) == "5 +"
