"""
Utility functions for the storefront
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

CENT = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """
    Normalise a price-like value to a two-decimal ``Decimal``.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_line_totals(lines: Iterable[Tuple[int, Decimal]]) -> Decimal:
    """
    Sum ``quantity * unit_price`` over ``(quantity, unit_price)`` pairs.
    """
    total = Decimal("0.00")
    for quantity, unit_price in lines:
        total += quantize_money(unit_price) * quantity
    return quantize_money(total)
