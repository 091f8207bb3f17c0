from __future__ import annotations

from typing import Optional

from .models import CurrencyFormat, CurrencyPosition


def _group_thousands(digits: str, sep: str) -> str:
    sign = ""
    if digits.startswith("-"):
        sign, digits = "-", digits[1:]
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return sign + sep.join(groups)


def format_number(value: float, fmt: CurrencyFormat) -> str:
    """
    Fix to ``fmt.decimals`` places, group the integer part by thousands and
    join with the decimal separator. 1234.5 -> "1.234,50" for a "." / ","
    format.
    """
    fixed = f"{value:.{fmt.decimals}f}"
    if "." in fixed:
        whole, frac = fixed.split(".", 1)
    else:
        whole, frac = fixed, ""
    whole = _group_thousands(whole, fmt.thousand_separator)
    return whole + fmt.decimal_separator + frac if frac else whole


def format_price(value: float, fmt: Optional[CurrencyFormat] = None) -> str:
    fmt = fmt or CurrencyFormat()
    amount = format_number(value, fmt)
    if fmt.position == CurrencyPosition.LEFT:
        return fmt.symbol + amount
    if fmt.position == CurrencyPosition.RIGHT:
        return amount + fmt.symbol
    if fmt.position == CurrencyPosition.LEFT_SPACE:
        return f"{fmt.symbol} {amount}"
    return f"{amount} {fmt.symbol}"


def format_quantity_range(tmin: int, tmax: Optional[int]) -> str:
    """Label for a tier range: "2", "3 - 4" or "5 +" when unbounded."""
    if tmax is None:
        return f"{tmin} +"
    if tmin == tmax:
        return str(tmin)
    return f"{tmin} - {tmax}"
