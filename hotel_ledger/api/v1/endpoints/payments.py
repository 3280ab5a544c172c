"""API endpoints for payments received."""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from hotel_ledger.api.deps import DB, Viewer, Editor, ledger_http_exception
from hotel_ledger.core.exceptions import LedgerError
from hotel_ledger.schemas.base import page_count
from hotel_ledger.schemas.invoice import (
    DirectPaymentCreate,
    InvoiceResponse,
    PaymentResponse,
    PaymentRecordedResponse,
    PaymentListResponse,
)
from hotel_ledger.services.invoice_service import InvoiceService


router = APIRouter()


@router.post("", response_model=PaymentRecordedResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(data: DirectPaymentCreate, db: DB, current_user: Editor):
    """Record a payment, against an invoice when invoice_id is given."""
    service = InvoiceService(db)
    try:
        if data.invoice_id:
            payment = await service.record_payment(
                data.invoice_id,
                amount=data.amount,
                payment_mode=data.payment_mode,
                reference=data.reference,
                notes=data.notes,
                received_by=current_user.id,
                payment_date=data.payment_date,
            )
            invoice = await service.get_invoice(data.invoice_id)
        else:
            payment = await service.record_direct_payment(
                amount=data.amount,
                payment_mode=data.payment_mode,
                reference=data.reference,
                notes=data.notes,
                received_by=current_user.id,
                payment_date=data.payment_date,
            )
            invoice = None
    except LedgerError as e:
        raise ledger_http_exception(e)

    return PaymentRecordedResponse(
        payment=PaymentResponse.model_validate(payment),
        invoice=InvoiceResponse.model_validate(invoice) if invoice else None,
    )


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    db: DB,
    current_user: Viewer,
    invoice_id: Optional[UUID] = None,
    payment_mode: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List payments with totals per mode."""
    service = InvoiceService(db)
    try:
        result = await service.list_payments(
            invoice_id=invoice_id,
            payment_mode=payment_mode,
            start_date=start_date,
            end_date=end_date,
            skip=(page - 1) * limit,
            limit=limit,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)

    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in result["items"]],
        total=result["total"],
        page=page,
        limit=limit,
        pages=page_count(result["total"], limit),
        stats=result["stats"],
    )
