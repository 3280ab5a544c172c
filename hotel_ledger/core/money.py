"""Decimal helpers for monetary amounts.

Every amount is stored as Numeric(14, 2) and handled as a Decimal
quantized to paise with ROUND_HALF_UP. Floats never reach the ledger.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0.00")
PAISE = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Convert an int/float/str/Decimal to a 2-place Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.10"), not the
    binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(PAISE, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Any]) -> Decimal:
    """Sum amounts, quantizing the result."""
    total = ZERO
    for value in values:
        total += to_money(value)
    return to_money(total)


def floor_at_zero(value: Decimal) -> Decimal:
    """Clamp a balance so it never goes negative."""
    return value if value > ZERO else ZERO
