"""Pydantic schemas for invoices and payments."""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Dict
from uuid import UUID

from pydantic import BaseModel, Field

from hotel_ledger.core.enum_utils import create_lowercase_validator, VALID_PAYMENT_MODES
from hotel_ledger.models.transaction import PaymentMode
from hotel_ledger.schemas.base import (
    BaseResponseSchema,
    BaseCreateSchema,
    BaseUpdateSchema,
    PaginatedResponse,
)


# ==================== Invoice Schemas ====================

class InvoiceItem(BaseModel):
    """Invoice line. amount defaults to quantity * rate."""
    description: str
    quantity: Decimal = Field(Decimal("1"), ge=0)
    rate: Decimal = Field(Decimal("0"), ge=0)
    amount: Optional[Decimal] = Field(None, ge=0)


class InvoiceCreate(BaseCreateSchema):
    booking_id: Optional[UUID] = None
    guest_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    items: List[InvoiceItem] = []
    tax: Decimal = Field(Decimal("0"), ge=0)
    discount: Decimal = Field(Decimal("0"), ge=0)
    notes: Optional[str] = None


class InvoiceUpdate(BaseUpdateSchema):
    """Charge revision. Omitted fields are left as they are."""
    items: Optional[List[InvoiceItem]] = None
    tax: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class InvoiceItemResponse(BaseModel):
    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal


class InvoiceResponse(BaseResponseSchema):
    id: UUID
    invoice_number: str
    booking_id: UUID
    guest_id: Optional[UUID] = None
    room_id: Optional[UUID] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    items: List[InvoiceItemResponse]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    payment_status: str
    payment_mode: Optional[str] = None
    notes: Optional[str] = None
    issued_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(PaginatedResponse):
    items: List[InvoiceResponse]


# ==================== Payment Schemas ====================

class PaymentCreate(BaseCreateSchema):
    amount: Optional[Decimal] = None
    payment_mode: Optional[PaymentMode] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None

    _normalize_mode = create_lowercase_validator('payment_mode', VALID_PAYMENT_MODES)


class DirectPaymentCreate(PaymentCreate):
    """POST /payments: against an invoice when invoice_id is given."""
    invoice_id: Optional[UUID] = None


class PaymentResponse(BaseResponseSchema):
    id: UUID
    invoice_id: Optional[UUID] = None
    amount: Decimal
    payment_mode: str
    payment_date: datetime
    reference: Optional[str] = None
    notes: Optional[str] = None
    received_by: Optional[UUID] = None
    created_at: datetime


class InvoiceDetailResponse(InvoiceResponse):
    payments: List[PaymentResponse] = []


class PaymentRecordedResponse(BaseModel):
    payment: PaymentResponse
    invoice: Optional[InvoiceResponse] = None


class ModeTotal(BaseModel):
    amount: Decimal
    count: int


class PaymentStats(BaseModel):
    total_amount: Decimal
    count: int
    by_mode: Dict[str, ModeTotal] = {}


class PaymentListResponse(PaginatedResponse):
    items: List[PaymentResponse]
    stats: PaymentStats
