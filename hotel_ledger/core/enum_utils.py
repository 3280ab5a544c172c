"""
Helpers for VARCHAR-backed enum columns.

Status-like columns (payment_mode, type, payment_status, role) are stored
as lowercase strings, not native database enums. Input may arrive as an
Enum member or a plain string in any case; these helpers fold both into
the stored form.
"""
from enum import Enum
from typing import Any, Optional, Set


def get_enum_value(value: Any) -> Optional[str]:
    """
    String value of an Enum member or string (None passes through).

        >>> get_enum_value(PaymentMode.UPI)
        'upi'
    """
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


def normalize_to_lowercase(value: Any, valid_values: Set[str]) -> Any:
    """
    Lowercase a string if that makes it a valid value.

    Anything else is returned untouched so pydantic reports it.
    """
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in valid_values:
            return lowered
    return value


def create_lowercase_validator(field_name: str, valid_values: Set[str]) -> classmethod:
    """
    Build a before-validator for case-insensitive enum fields.

        class PaymentCreate(BaseModel):
            payment_mode: Optional[PaymentMode] = None

            _normalize_mode = create_lowercase_validator('payment_mode', VALID_PAYMENT_MODES)
    """
    from pydantic import field_validator

    @field_validator(field_name, mode='before')
    @classmethod
    def validate(cls, v):
        return normalize_to_lowercase(v, valid_values)

    return validate


VALID_PAYMENT_MODES = {"cash", "card", "upi", "netbanking"}

VALID_TRANSACTION_TYPES = {"revenue", "expense"}

VALID_PAYMENT_STATUSES = {"pending", "partial", "paid"}
