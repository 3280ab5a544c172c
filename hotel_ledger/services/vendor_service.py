"""
Vendor balance tracking and vendor profiles.

VendorBalanceTracker is the only code that mutates a vendor's
outstanding_balance / total_paid / total_transactions. The ledger calls it
for every expense create, edit and delete that references a vendor.
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List, Any, Dict, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.core.exceptions import (
    ValidationFailed,
    InvalidPaymentAmount,
    PaymentExceedsBalance,
    NotFound,
    VendorHasHistory,
)
from hotel_ledger.core.money import ZERO, to_money, floor_at_zero
from hotel_ledger.core.validation import parse_amount, validate_payment_mode
from hotel_ledger.models.transaction import (
    Transaction,
    TransactionType,
    VENDOR_PAYMENT_CATEGORY,
)
from hotel_ledger.models.vendor import Vendor
from hotel_ledger.services.audit_service import AuditService
from hotel_ledger.services.concurrency import flush_changes


logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "contact_person", "email", "phone", "address", "gst_number")


class VendorBalanceTracker:
    """Incremental maintenance of vendor aggregates."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_vendor(self, vendor_id: uuid.UUID, for_update: bool = False) -> Vendor:
        stmt = select(Vendor).where(Vendor.id == vendor_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        vendor = result.scalar_one_or_none()
        if not vendor:
            raise NotFound("Vendor not found", details={"vendor_id": str(vendor_id)})
        return vendor

    async def on_expense_created(self, vendor_id: uuid.UUID, amount: Decimal) -> Vendor:
        vendor = await self.get_vendor(vendor_id, for_update=True)
        vendor.outstanding_balance = to_money(vendor.outstanding_balance + amount)
        vendor.total_transactions += 1
        return vendor

    async def on_expense_amount_changed(
        self,
        old_vendor_id: uuid.UUID,
        old_amount: Decimal,
        new_vendor_id: Optional[uuid.UUID],
        new_amount: Decimal,
    ) -> None:
        """
        Reverse the old amount from the old vendor, then apply the new amount
        to the current vendor. Always a full reverse-then-reapply, never a
        delta, because the vendor itself may have changed.
        """
        if old_vendor_id:
            await self.on_expense_deleted(old_vendor_id, old_amount)
        if new_vendor_id:
            await self.on_expense_reapplied(new_vendor_id, new_amount)

    async def on_expense_reapplied(self, vendor_id: uuid.UUID, amount: Decimal) -> Vendor:
        """Add an edited expense back onto a balance. Not counted as a new transaction."""
        vendor = await self.get_vendor(vendor_id, for_update=True)
        vendor.outstanding_balance = to_money(vendor.outstanding_balance + amount)
        return vendor

    async def on_expense_deleted(self, vendor_id: uuid.UUID, amount: Decimal) -> Vendor:
        vendor = await self.get_vendor(vendor_id, for_update=True)
        vendor.outstanding_balance = floor_at_zero(to_money(vendor.outstanding_balance - amount))
        return vendor

    async def record_payment(
        self,
        vendor_id: uuid.UUID,
        amount: Any,
        payment_mode: Any,
        date: Optional[datetime] = None,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> Transaction:
        """
        Pay a vendor: books a "Vendor Payments" expense row and reduces the
        outstanding balance.
        """
        amount = parse_amount(amount)
        if amount <= ZERO:
            raise InvalidPaymentAmount("Payment amount must be greater than zero")
        mode = validate_payment_mode(payment_mode)

        vendor = await self.get_vendor(vendor_id, for_update=True)
        if amount > vendor.outstanding_balance:
            logger.warning(
                f"Rejected payment of {amount} to vendor {vendor.name}: outstanding {vendor.outstanding_balance}"
            )
            raise PaymentExceedsBalance(
                f"Payment amount exceeds outstanding balance ({vendor.outstanding_balance})",
                details={"outstanding_balance": str(vendor.outstanding_balance), "amount": str(amount)},
            )

        paid_on = date or datetime.now(timezone.utc)
        transaction = Transaction(
            type=TransactionType.EXPENSE.value,
            category=VENDOR_PAYMENT_CATEGORY,
            amount=amount,
            date=paid_on,
            reference=reference,
            payment_mode=mode,
            description=description or f"Payment to {vendor.name}",
            vendor_id=vendor.id,
            created_by=created_by,
        )
        self.db.add(transaction)

        old_outstanding = vendor.outstanding_balance
        vendor.outstanding_balance = floor_at_zero(to_money(old_outstanding - amount))
        vendor.total_paid = to_money(vendor.total_paid + amount)
        vendor.last_payment_date = paid_on
        await flush_changes(self.db, "vendor payment")

        await self.audit.log(
            entity_type="Transaction",
            entity_id=transaction.id,
            action="create",
            changed_by=created_by,
            new_value={"vendor_id": vendor.id, "amount": amount, "category": VENDOR_PAYMENT_CATEGORY},
        )
        await self.audit.log(
            entity_type="Vendor",
            entity_id=vendor.id,
            action="update",
            changed_by=created_by,
            field="outstanding_balance",
            old_value=old_outstanding,
            new_value=vendor.outstanding_balance,
        )
        logger.info(
            f"Paid {amount} ({mode}) to vendor {vendor.name}: outstanding {vendor.outstanding_balance}, "
            f"total paid {vendor.total_paid}"
        )
        return transaction


class VendorService(VendorBalanceTracker):
    """Vendor profiles. Aggregates are never editable from here."""

    async def create_vendor(
        self,
        name: str,
        phone: str,
        contact_person: Optional[str] = None,
        email: Optional[str] = None,
        address: Optional[str] = None,
        gst_number: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
    ) -> Vendor:
        if not name or not name.strip():
            raise ValidationFailed("Vendor name is required")
        if not phone or not phone.strip():
            raise ValidationFailed("Vendor phone is required")

        vendor = Vendor(
            name=name.strip(),
            phone=phone.strip(),
            contact_person=contact_person,
            email=email,
            address=address,
            gst_number=gst_number,
            outstanding_balance=ZERO,
            total_paid=ZERO,
            total_transactions=0,
        )
        self.db.add(vendor)
        await flush_changes(self.db, "vendor")

        await self.audit.log(
            entity_type="Vendor",
            entity_id=vendor.id,
            action="create",
            changed_by=created_by,
            new_value={"name": vendor.name, "phone": vendor.phone},
        )
        logger.info(f"Vendor created: {vendor.name}")
        return vendor

    async def update_vendor(
        self,
        vendor_id: uuid.UUID,
        changes: Dict[str, Any],
        changed_by: Optional[uuid.UUID] = None,
    ) -> Vendor:
        vendor = await self.get_vendor(vendor_id, for_update=True)

        audited = []
        for field, value in changes.items():
            if field not in PROFILE_FIELDS:
                continue
            if field in ("name", "phone") and (value is None or not str(value).strip()):
                raise ValidationFailed(f"Vendor {field} cannot be empty")
            old_value = getattr(vendor, field)
            if value != old_value:
                audited.append((field, old_value, value))
                setattr(vendor, field, value)

        await flush_changes(self.db, "vendor")
        await self.audit.log_changes("Vendor", vendor.id, audited, changed_by=changed_by)
        return vendor

    async def delete_vendor(self, vendor_id: uuid.UUID, changed_by: Optional[uuid.UUID] = None) -> None:
        vendor = await self.get_vendor(vendor_id, for_update=True)

        history = await self.count_transactions(vendor.id)
        if history > 0:
            raise VendorHasHistory(
                "Cannot delete vendor with existing transactions",
                details={"transactions": history},
            )

        await self.audit.log(
            entity_type="Vendor",
            entity_id=vendor.id,
            action="delete",
            changed_by=changed_by,
            old_value={"name": vendor.name},
        )
        await self.db.delete(vendor)
        await flush_changes(self.db, "vendor deletion")
        logger.info(f"Vendor deleted: {vendor.name}")

    async def count_transactions(self, vendor_id: uuid.UUID) -> int:
        result = await self.db.execute(
            select(func.count(Transaction.id)).where(Transaction.vendor_id == vendor_id)
        )
        return result.scalar() or 0

    async def get_transactions(self, vendor_id: uuid.UUID, limit: Optional[int] = None) -> List[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.vendor_id == vendor_id)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_vendors(self, recent: int = 10) -> List[Tuple[Vendor, List[Transaction]]]:
        """All vendors sorted by name, each with its most recent transactions."""
        result = await self.db.execute(select(Vendor).order_by(Vendor.name))
        vendors = list(result.scalars().all())
        return [(vendor, await self.get_transactions(vendor.id, limit=recent)) for vendor in vendors]
