"""API endpoints for booking invoices."""
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Query, status

from hotel_ledger.api.deps import DB, Viewer, Editor, ledger_http_exception
from hotel_ledger.core.exceptions import LedgerError
from hotel_ledger.schemas.base import page_count
from hotel_ledger.schemas.invoice import (
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceResponse,
    InvoiceDetailResponse,
    InvoiceListResponse,
    PaymentCreate,
    PaymentResponse,
    PaymentRecordedResponse,
)
from hotel_ledger.services.invoice_service import InvoiceService


router = APIRouter()


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(data: InvoiceCreate, db: DB, current_user: Editor):
    """Create an invoice for a booking."""
    service = InvoiceService(db)
    try:
        invoice = await service.create_invoice(
            booking_id=data.booking_id,
            items=data.items,
            tax=data.tax,
            discount=data.discount,
            guest_id=data.guest_id,
            room_id=data.room_id,
            check_in=data.check_in,
            check_out=data.check_out,
            notes=data.notes,
            issued_by=current_user.id,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)
    return invoice


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DB,
    current_user: Viewer,
    booking_id: Optional[UUID] = None,
    payment_status: Optional[List[str]] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List invoices, newest first."""
    service = InvoiceService(db)
    try:
        invoices, total = await service.list_invoices(
            booking_id=booking_id,
            statuses=payment_status,
            skip=(page - 1) * limit,
            limit=limit,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(inv) for inv in invoices],
        total=total,
        page=page,
        limit=limit,
        pages=page_count(total, limit),
    )


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
async def get_invoice(invoice_id: UUID, db: DB, current_user: Viewer):
    """Get an invoice with its payment history."""
    service = InvoiceService(db)
    try:
        invoice = await service.get_invoice(invoice_id)
    except LedgerError as e:
        raise ledger_http_exception(e)

    payments = await service.get_payments(invoice.id)
    return InvoiceDetailResponse(
        **InvoiceResponse.model_validate(invoice).model_dump(),
        payments=[PaymentResponse.model_validate(p) for p in payments],
    )


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def revise_invoice(invoice_id: UUID, data: InvoiceUpdate, db: DB, current_user: Editor):
    """Revise items, tax or discount. Totals and status are recomputed."""
    service = InvoiceService(db)
    try:
        invoice = await service.revise_charges(
            invoice_id,
            items=data.items,
            tax=data.tax,
            discount=data.discount,
            notes=data.notes,
            changed_by=current_user.id,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)
    return invoice


@router.post("/{invoice_id}/payment", response_model=PaymentRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_invoice_payment(invoice_id: UUID, data: PaymentCreate, db: DB, current_user: Editor):
    """Record a payment against an invoice."""
    service = InvoiceService(db)
    try:
        payment = await service.record_payment(
            invoice_id,
            amount=data.amount,
            payment_mode=data.payment_mode,
            reference=data.reference,
            notes=data.notes,
            received_by=current_user.id,
            payment_date=data.payment_date,
        )
        invoice = await service.get_invoice(invoice_id)
    except LedgerError as e:
        raise ledger_http_exception(e)

    return PaymentRecordedResponse(
        payment=PaymentResponse.model_validate(payment),
        invoice=InvoiceResponse.model_validate(invoice),
    )
