"""Decimal helpers for prices and revenue."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize to two decimal places, rounding half up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def split_evenly(amount: Decimal, parts: int) -> Decimal:
    """One share of `amount` divided into `parts`, rounded half up to cents."""
    return to_money(amount / Decimal(parts))
