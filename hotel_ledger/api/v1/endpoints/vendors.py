"""API endpoints for vendor management and vendor payments."""
from uuid import UUID

from fastapi import APIRouter, status

from hotel_ledger.api.deps import DB, Viewer, Editor, ledger_http_exception
from hotel_ledger.core.exceptions import LedgerError
from hotel_ledger.schemas.transaction import TransactionResponse
from hotel_ledger.schemas.vendor import (
    VendorCreate,
    VendorUpdate,
    VendorResponse,
    VendorDetailResponse,
    VendorListResponse,
    VendorPaymentCreate,
    VendorPaymentResponse,
)
from hotel_ledger.services.vendor_service import VendorService


router = APIRouter()

RECENT_TRANSACTIONS = 10


def _detail(vendor, transactions) -> VendorDetailResponse:
    return VendorDetailResponse(
        **VendorResponse.model_validate(vendor).model_dump(),
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )


# ==================== Vendor CRUD ====================

@router.post("", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def create_vendor(data: VendorCreate, db: DB, current_user: Editor):
    """Create a vendor with zero balances."""
    service = VendorService(db)
    try:
        vendor = await service.create_vendor(**data.model_dump(), created_by=current_user.id)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return vendor


@router.get("", response_model=VendorListResponse)
async def list_vendors(db: DB, current_user: Viewer):
    """List vendors by name, each with its recent transactions."""
    service = VendorService(db)
    rows = await service.list_vendors(recent=RECENT_TRANSACTIONS)
    return VendorListResponse(
        items=[_detail(vendor, transactions) for vendor, transactions in rows],
        total=len(rows),
    )


@router.get("/{vendor_id}", response_model=VendorDetailResponse)
async def get_vendor(vendor_id: UUID, db: DB, current_user: Viewer):
    """Get a vendor with its full transaction history."""
    service = VendorService(db)
    try:
        vendor = await service.get_vendor(vendor_id)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return _detail(vendor, await service.get_transactions(vendor.id))


@router.put("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(vendor_id: UUID, data: VendorUpdate, db: DB, current_user: Editor):
    """Update vendor profile fields."""
    service = VendorService(db)
    try:
        vendor = await service.update_vendor(
            vendor_id,
            data.model_dump(exclude_unset=True),
            changed_by=current_user.id,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)
    return vendor


@router.delete("/{vendor_id}")
async def delete_vendor(vendor_id: UUID, db: DB, current_user: Editor):
    """Delete a vendor that has no transaction history."""
    service = VendorService(db)
    try:
        await service.delete_vendor(vendor_id, changed_by=current_user.id)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return {"message": "Vendor deleted successfully"}


# ==================== Vendor Payments ====================

@router.post("/{vendor_id}/payment", response_model=VendorPaymentResponse, status_code=status.HTTP_201_CREATED)
async def pay_vendor(vendor_id: UUID, data: VendorPaymentCreate, db: DB, current_user: Editor):
    """Pay a vendor against its outstanding balance."""
    service = VendorService(db)
    try:
        transaction = await service.record_payment(
            vendor_id,
            amount=data.amount,
            payment_mode=data.payment_mode,
            date=data.date,
            reference=data.reference,
            description=data.description,
            created_by=current_user.id,
        )
        vendor = await service.get_vendor(vendor_id)
    except LedgerError as e:
        raise ledger_http_exception(e)

    return VendorPaymentResponse(
        transaction=TransactionResponse.model_validate(transaction),
        vendor=VendorResponse.model_validate(vendor),
    )
