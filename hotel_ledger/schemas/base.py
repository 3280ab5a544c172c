"""
Base Schema Classes for Pydantic Models

RULE: All response schemas that read from ORM models MUST inherit from
BaseResponseSchema. Monetary fields are Decimal and serialize as strings.
"""

from pydantic import BaseModel, ConfigDict


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Usage:
        class VendorResponse(BaseResponseSchema):
            id: UUID
            name: str
            outstanding_balance: Decimal
    """
    model_config = ConfigDict(
        from_attributes=True,
        # Allow population by field name or alias
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """
    Base class for create/input schemas.

    Money arrives as numbers or strings and is parsed to Decimal; business
    validation (amount > 0, required fields) happens in the services.
    """
    model_config = ConfigDict(
        # Allow extra fields to be ignored (forward compatibility)
        extra='ignore',
    )


class BaseUpdateSchema(BaseModel):
    """
    Base class for update/patch schemas.

    All fields are optional; services receive model_dump(exclude_unset=True).
    """
    model_config = ConfigDict(
        extra='ignore',
    )


class PaginatedResponse(BaseModel):
    """Common pagination envelope."""
    total: int
    page: int = 1
    limit: int = 20
    pages: int = 1


def page_count(total: int, limit: int) -> int:
    return max(1, (total + limit - 1) // limit)

