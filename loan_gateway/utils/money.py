"""Monetary arithmetic helpers.

Amounts are carried as ``Decimal`` and rounded half-up to two places,
the smallest unit the ledger records.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def quantize_money(value: Number) -> Decimal:
    """Round an amount half-up to the ledger's smallest unit."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
