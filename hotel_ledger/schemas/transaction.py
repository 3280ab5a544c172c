"""Pydantic schemas for the revenue/expense ledger."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from hotel_ledger.core.enum_utils import (
    create_lowercase_validator,
    VALID_PAYMENT_MODES,
    VALID_TRANSACTION_TYPES,
)
from hotel_ledger.models.transaction import PaymentMode, TransactionType
from hotel_ledger.schemas.base import (
    BaseResponseSchema,
    BaseCreateSchema,
    BaseUpdateSchema,
    PaginatedResponse,
)


class TransactionCreate(BaseCreateSchema):
    """Revenue or expense entry. The type comes from the endpoint."""
    category: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None
    payment_mode: Optional[PaymentMode] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    vendor_id: Optional[UUID] = None
    booking_id: Optional[UUID] = None

    _normalize_mode = create_lowercase_validator('payment_mode', VALID_PAYMENT_MODES)


class TransactionUpdate(BaseUpdateSchema):
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[datetime] = None
    payment_mode: Optional[PaymentMode] = None
    reference: Optional[str] = None
    description: Optional[str] = None
    vendor_id: Optional[UUID] = None

    _normalize_mode = create_lowercase_validator('payment_mode', VALID_PAYMENT_MODES)
    _normalize_type = create_lowercase_validator('type', VALID_TRANSACTION_TYPES)


class TransactionResponse(BaseResponseSchema):
    id: UUID
    type: str
    category: str
    amount: Decimal
    date: datetime
    reference: Optional[str] = None
    payment_mode: str
    description: Optional[str] = None
    booking_id: Optional[UUID] = None
    invoice_id: Optional[UUID] = None
    vendor_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class TransactionListResponse(PaginatedResponse):
    items: List[TransactionResponse]
    categories: List[str] = []
