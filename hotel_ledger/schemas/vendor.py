"""Pydantic schemas for vendors."""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, EmailStr

from hotel_ledger.core.enum_utils import create_lowercase_validator, VALID_PAYMENT_MODES
from hotel_ledger.models.transaction import PaymentMode
from hotel_ledger.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from hotel_ledger.schemas.transaction import TransactionResponse


class VendorCreate(BaseCreateSchema):
    name: str = Field(..., max_length=200)
    phone: str = Field(..., max_length=20)
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = Field(None, max_length=20)


class VendorUpdate(BaseUpdateSchema):
    """Profile fields only. Balances change through transactions."""
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=20)
    contact_person: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    gst_number: Optional[str] = Field(None, max_length=20)


class VendorResponse(BaseResponseSchema):
    id: UUID
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: str
    address: Optional[str] = None
    gst_number: Optional[str] = None
    outstanding_balance: Decimal
    total_paid: Decimal
    total_transactions: int
    last_payment_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class VendorDetailResponse(VendorResponse):
    transactions: List[TransactionResponse] = []


class VendorListResponse(BaseModel):
    items: List[VendorDetailResponse]
    total: int


class VendorPaymentCreate(BaseCreateSchema):
    amount: Optional[Decimal] = None
    payment_mode: Optional[PaymentMode] = None
    date: Optional[datetime] = None
    reference: Optional[str] = None
    description: Optional[str] = None

    _normalize_mode = create_lowercase_validator('payment_mode', VALID_PAYMENT_MODES)


class VendorPaymentResponse(BaseModel):
    transaction: TransactionResponse
    vendor: VendorResponse
