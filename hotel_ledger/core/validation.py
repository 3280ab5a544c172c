"""Business validation shared by the ledger services."""
from decimal import Decimal
from typing import Any

from hotel_ledger.core.enum_utils import get_enum_value, VALID_PAYMENT_MODES
from hotel_ledger.core.exceptions import ValidationFailed
from hotel_ledger.core.money import to_money


def parse_amount(value: Any, field: str = "amount") -> Decimal:
    """Coerce request input to money, raising ValidationFailed on junk."""
    if value is None:
        raise ValidationFailed(f"{field} is required")
    try:
        return to_money(value)
    except ValueError:
        raise ValidationFailed(f"{field} must be a number", details={field: str(value)})


def validate_payment_mode(payment_mode: Any) -> str:
    """Return the lowercase payment mode or raise ValidationFailed."""
    mode = get_enum_value(payment_mode)
    if not mode:
        raise ValidationFailed("Payment mode is required")
    mode = mode.strip().lower()
    if mode not in VALID_PAYMENT_MODES:
        raise ValidationFailed(
            f"Invalid payment mode '{payment_mode}'. Valid modes: {sorted(VALID_PAYMENT_MODES)}"
        )
    return mode
