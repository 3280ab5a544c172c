"""
Transaction ledger.

Append/edit/delete log of revenue and expense rows. Owns the compensation
that keeps vendor balances correct when an expense is edited or deleted:
the old amount is always reversed from the old vendor and the new amount
re-applied to the current vendor.
"""
import logging
import uuid
from datetime import datetime, date, time, timedelta
from typing import Optional, List, Any, Dict, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.core.enum_utils import get_enum_value, VALID_TRANSACTION_TYPES
from hotel_ledger.core.exceptions import ValidationFailed, NotFound
from hotel_ledger.core.money import ZERO
from hotel_ledger.core.validation import parse_amount, validate_payment_mode
from hotel_ledger.models.transaction import (
    Transaction,
    TransactionType,
    VENDOR_PAYMENT_CATEGORY,
)
from hotel_ledger.services.audit_service import AuditService
from hotel_ledger.services.concurrency import flush_changes
from hotel_ledger.services.vendor_service import VendorBalanceTracker


logger = logging.getLogger(__name__)

# Fields a ledger row may change after creation
EDITABLE_FIELDS = ("category", "amount", "date", "payment_mode", "description", "reference", "vendor_id")

# Fields audited one row each on update
AUDITED_FIELDS = ("category", "amount", "date", "payment_mode", "vendor_id")


def _validate_type(value: Any) -> str:
    txn_type = get_enum_value(value)
    if not txn_type:
        raise ValidationFailed("Transaction type is required")
    txn_type = txn_type.strip().lower()
    if txn_type not in VALID_TRANSACTION_TYPES:
        raise ValidationFailed(f"Invalid transaction type '{value}'")
    return txn_type


def _validate_category(value: Any) -> str:
    if value is None or not str(value).strip():
        raise ValidationFailed("Category is required")
    return str(value).strip()


def _as_datetime(value: Any) -> datetime:
    if value is None:
        raise ValidationFailed("Date is required")
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise ValidationFailed("Date must be a date or datetime")


class TransactionLedger:
    """Revenue/expense ledger with vendor compensation."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.vendors = VendorBalanceTracker(db)
        self.audit = AuditService(db)

    async def get(self, transaction_id: uuid.UUID, expected_type: Optional[str] = None) -> Transaction:
        """
        Fetch a ledger row. With expected_type set, a row of the other type
        is reported as not found.
        """
        result = await self.db.execute(select(Transaction).where(Transaction.id == transaction_id))
        transaction = result.scalar_one_or_none()
        if not transaction or (expected_type and transaction.type != get_enum_value(expected_type)):
            raise NotFound("Transaction not found", details={"transaction_id": str(transaction_id)})
        return transaction

    async def create(
        self,
        type: Any,
        category: Any,
        amount: Any,
        date: Any,
        payment_mode: Any,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        vendor_id: Optional[uuid.UUID] = None,
        booking_id: Optional[uuid.UUID] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> Transaction:
        txn_type = _validate_type(type)
        category = _validate_category(category)
        amount = parse_amount(amount)
        if amount <= ZERO:
            raise ValidationFailed("Amount must be greater than zero")
        txn_date = _as_datetime(date)
        mode = validate_payment_mode(payment_mode)

        is_expense = txn_type == TransactionType.EXPENSE.value
        if vendor_id and not is_expense:
            raise ValidationFailed("Only expenses can reference a vendor")
        if is_expense and category == VENDOR_PAYMENT_CATEGORY:
            raise ValidationFailed(
                f"'{VENDOR_PAYMENT_CATEGORY}' rows are created by paying the vendor"
            )

        # Resolve the vendor before anything is written
        if is_expense and vendor_id:
            await self.vendors.on_expense_created(vendor_id, amount)

        transaction = Transaction(
            type=txn_type,
            category=category,
            amount=amount,
            date=txn_date,
            reference=reference,
            payment_mode=mode,
            description=description,
            vendor_id=vendor_id,
            booking_id=booking_id,
            created_by=created_by,
        )
        self.db.add(transaction)
        await flush_changes(self.db, f"{txn_type} transaction")

        await self.audit.log(
            entity_type="Transaction",
            entity_id=transaction.id,
            action="create",
            changed_by=created_by,
            new_value={"type": txn_type, "category": category, "amount": amount, "vendor_id": vendor_id},
        )
        logger.info(f"Ledger {txn_type} created: {category} {amount}" + (f" vendor {vendor_id}" if vendor_id else ""))
        return transaction

    async def update(
        self,
        transaction_id: uuid.UUID,
        patch: Dict[str, Any],
        changed_by: Optional[uuid.UUID] = None,
        expected_type: Optional[str] = None,
    ) -> Transaction:
        """
        Apply a partial update.

        For vendor-linked expenses, vendor payment rows included, the old
        amount is reversed from the old vendor and the new amount applied to
        the current vendor. Every changed audited field gets its own audit row.
        """
        transaction = await self.get(transaction_id, expected_type)

        if "type" in patch and patch["type"] is not None and _validate_type(patch["type"]) != transaction.type:
            raise ValidationFailed("Transaction type cannot be changed")

        values = {}
        for field in EDITABLE_FIELDS:
            if field not in patch:
                continue
            value = patch[field]
            if field == "category":
                value = _validate_category(value)
            elif field == "amount":
                value = parse_amount(value)
                if value <= ZERO:
                    raise ValidationFailed("Amount must be greater than zero")
            elif field == "date":
                value = _as_datetime(value)
            elif field == "payment_mode":
                value = validate_payment_mode(value)
            values[field] = value

        is_expense = transaction.type == TransactionType.EXPENSE.value
        if "vendor_id" in values and values["vendor_id"] and not is_expense:
            raise ValidationFailed("Only expenses can reference a vendor")

        was_vendor_payment = transaction.is_vendor_payment
        will_be_vendor_payment = is_expense and values.get("category", transaction.category) == VENDOR_PAYMENT_CATEGORY
        if was_vendor_payment != will_be_vendor_payment:
            raise ValidationFailed(
                f"Rows cannot be moved into or out of '{VENDOR_PAYMENT_CATEGORY}'"
            )

        if (
            transaction.invoice_id
            and "amount" in values
            and values["amount"] != transaction.amount
        ):
            raise ValidationFailed("Amount of an invoice payment cannot be changed")

        old_vendor_id = transaction.vendor_id
        old_amount = transaction.amount
        new_vendor_id = values.get("vendor_id", old_vendor_id)
        new_amount = values.get("amount", old_amount)

        # Unknown target vendor must fail before any balance moves
        if is_expense and new_vendor_id and new_vendor_id != old_vendor_id:
            await self.vendors.get_vendor(new_vendor_id)

        changes = []
        for field, value in values.items():
            old_value = getattr(transaction, field)
            if value != old_value:
                if field in AUDITED_FIELDS:
                    changes.append((field, old_value, value))
                setattr(transaction, field, value)

        if is_expense and (old_vendor_id or new_vendor_id):
            await self.vendors.on_expense_amount_changed(old_vendor_id, old_amount, new_vendor_id, new_amount)

        await flush_changes(self.db, "transaction update")
        await self.audit.log_changes("Transaction", transaction.id, changes, changed_by=changed_by)

        if changes:
            logger.info(
                f"Ledger {transaction.type} {transaction.id} updated: "
                + ", ".join(f"{field} {old} -> {new}" for field, old, new in changes)
            )
        return transaction

    async def delete(
        self,
        transaction_id: uuid.UUID,
        changed_by: Optional[uuid.UUID] = None,
        expected_type: Optional[str] = None,
    ) -> None:
        transaction = await self.get(transaction_id, expected_type)

        if transaction.invoice_id:
            raise ValidationFailed("An invoice payment cannot be deleted from the ledger")

        if transaction.type == TransactionType.EXPENSE.value and transaction.vendor_id:
            await self.vendors.on_expense_deleted(transaction.vendor_id, transaction.amount)

        await self.audit.log(
            entity_type="Transaction",
            entity_id=transaction.id,
            action="delete",
            changed_by=changed_by,
            old_value={
                "type": transaction.type,
                "category": transaction.category,
                "amount": transaction.amount,
                "vendor_id": transaction.vendor_id,
            },
        )
        await self.db.delete(transaction)
        await flush_changes(self.db, "transaction deletion")
        logger.info(f"Ledger {transaction.type} {transaction.id} deleted: {transaction.category} {transaction.amount}")

    async def list(
        self,
        type: Optional[str] = None,
        category: Optional[str] = None,
        vendor_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Transaction], int]:
        """Filtered rows, newest first. end_date is inclusive to end of day."""
        stmt = select(Transaction)
        if type:
            stmt = stmt.where(Transaction.type == get_enum_value(type))
        if category:
            stmt = stmt.where(Transaction.category == category)
        if vendor_id:
            stmt = stmt.where(Transaction.vendor_id == vendor_id)
        if start_date:
            stmt = stmt.where(Transaction.date >= datetime.combine(start_date, time.min))
        if end_date:
            stmt = stmt.where(Transaction.date < datetime.combine(end_date + timedelta(days=1), time.min))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar()

        stmt = stmt.order_by(Transaction.date.desc(), Transaction.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def categories(self, type: Optional[str] = None) -> List[str]:
        """Distinct categories in use, optionally for one type."""
        stmt = select(Transaction.category).distinct().order_by(Transaction.category)
        if type:
            stmt = stmt.where(Transaction.type == get_enum_value(type))
        result = await self.db.execute(stmt)
        return [row[0] for row in result.all()]
