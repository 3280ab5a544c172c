"""API endpoints for the revenue/expense ledger."""
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from hotel_ledger.api.deps import DB, Viewer, Editor, ledger_http_exception
from hotel_ledger.core.exceptions import LedgerError
from hotel_ledger.models.transaction import TransactionType
from hotel_ledger.schemas.base import page_count
from hotel_ledger.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
    TransactionListResponse,
)
from hotel_ledger.services.transaction_service import TransactionLedger


router = APIRouter()


async def _list(
    db,
    txn_type: Optional[str],
    category: Optional[str],
    vendor_id: Optional[UUID],
    start_date: Optional[date],
    end_date: Optional[date],
    page: int,
    limit: int,
) -> TransactionListResponse:
    ledger = TransactionLedger(db)
    transactions, total = await ledger.list(
        type=txn_type,
        category=category,
        vendor_id=vendor_id,
        start_date=start_date,
        end_date=end_date,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return TransactionListResponse(
        items=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        limit=limit,
        pages=page_count(total, limit),
        categories=await ledger.categories(txn_type),
    )


async def _create(db, txn_type: str, data: TransactionCreate, user_id: UUID):
    ledger = TransactionLedger(db)
    try:
        return await ledger.create(type=txn_type, **data.model_dump(), created_by=user_id)
    except LedgerError as e:
        raise ledger_http_exception(e)


async def _update(db, transaction_id: UUID, data: TransactionUpdate, user_id: UUID, txn_type: Optional[str] = None):
    ledger = TransactionLedger(db)
    try:
        return await ledger.update(
            transaction_id,
            data.model_dump(exclude_unset=True),
            changed_by=user_id,
            expected_type=txn_type,
        )
    except LedgerError as e:
        raise ledger_http_exception(e)


async def _delete(db, transaction_id: UUID, user_id: UUID, txn_type: Optional[str] = None) -> dict:
    ledger = TransactionLedger(db)
    try:
        await ledger.delete(transaction_id, changed_by=user_id, expected_type=txn_type)
    except LedgerError as e:
        raise ledger_http_exception(e)
    return {"message": "Transaction deleted successfully"}


# ==================== All transactions ====================

@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    db: DB,
    current_user: Viewer,
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    vendor_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List ledger rows. end_date is inclusive."""
    return await _list(db, type.value if type else None, category, vendor_id, start_date, end_date, page, limit)


# ==================== Revenue ====================

@router.get("/revenue", response_model=TransactionListResponse)
async def list_revenue(
    db: DB,
    current_user: Viewer,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    return await _list(db, TransactionType.REVENUE.value, category, None, start_date, end_date, page, limit)


@router.post("/revenue", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_revenue(data: TransactionCreate, db: DB, current_user: Editor):
    return await _create(db, TransactionType.REVENUE.value, data, current_user.id)


@router.put("/revenue/{transaction_id}", response_model=TransactionResponse)
async def update_revenue(transaction_id: UUID, data: TransactionUpdate, db: DB, current_user: Editor):
    return await _update(db, transaction_id, data, current_user.id, TransactionType.REVENUE.value)


@router.delete("/revenue/{transaction_id}")
async def delete_revenue(transaction_id: UUID, db: DB, current_user: Editor):
    return await _delete(db, transaction_id, current_user.id, TransactionType.REVENUE.value)


# ==================== Expenses ====================

@router.get("/expenses", response_model=TransactionListResponse)
async def list_expenses(
    db: DB,
    current_user: Viewer,
    category: Optional[str] = None,
    vendor_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    return await _list(db, TransactionType.EXPENSE.value, category, vendor_id, start_date, end_date, page, limit)


@router.post("/expenses", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(data: TransactionCreate, db: DB, current_user: Editor):
    """Book an expense. With vendor_id, the vendor's outstanding balance grows."""
    return await _create(db, TransactionType.EXPENSE.value, data, current_user.id)


@router.put("/expenses/{transaction_id}", response_model=TransactionResponse)
async def update_expense(transaction_id: UUID, data: TransactionUpdate, db: DB, current_user: Editor):
    return await _update(db, transaction_id, data, current_user.id, TransactionType.EXPENSE.value)


@router.delete("/expenses/{transaction_id}")
async def delete_expense(transaction_id: UUID, db: DB, current_user: Editor):
    return await _delete(db, transaction_id, current_user.id, TransactionType.EXPENSE.value)


# ==================== Single transaction ====================

@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(transaction_id: UUID, db: DB, current_user: Viewer):
    try:
        return await TransactionLedger(db).get(transaction_id)
    except LedgerError as e:
        raise ledger_http_exception(e)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(transaction_id: UUID, data: TransactionUpdate, db: DB, current_user: Editor):
    """Edit a ledger row. Vendor balances are reversed and re-applied."""
    return await _update(db, transaction_id, data, current_user.id)


@router.delete("/{transaction_id}")
async def delete_transaction(transaction_id: UUID, db: DB, current_user: Editor):
    """Delete a ledger row, reversing its effect on the vendor balance."""
    return await _delete(db, transaction_id, current_user.id)
