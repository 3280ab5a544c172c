"""
Ledger reconciliation.

Vendor and invoice aggregates are maintained incrementally; this service
recomputes them from the underlying rows and reports (optionally repairs)
any drift.

Vendor expectations:
    total_paid          = sum of "Vendor Payments" rows for the vendor
    outstanding_balance = max(0, sum of other expense rows - total_paid)

Invoice expectations:
    paid_amount    = sum of payments against the invoice
    due_amount     = total_amount - paid_amount
    payment_status = derived from paid vs total

Subtractions on the incremental path are floored at zero, and ledger
edits of vendor payment rows move the balance like any other expense
without touching total_paid, so a drift entry can also be a legitimate
trace of either.
Reports are informational unless repair is requested.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List
import uuid

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.core.money import ZERO, to_money, floor_at_zero
from hotel_ledger.models.invoice import Invoice, Payment
from hotel_ledger.models.transaction import (
    Transaction,
    TransactionType,
    VENDOR_PAYMENT_CATEGORY,
)
from hotel_ledger.models.vendor import Vendor
from hotel_ledger.services.audit_service import AuditService
from hotel_ledger.services.concurrency import flush_changes
from hotel_ledger.services.invoice_service import compute_payment_status


logger = logging.getLogger(__name__)


def _drift(entity_type: str, entity_id: uuid.UUID, field: str, stored: Any, expected: Any) -> Dict[str, Any]:
    return {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "field": field,
        "stored": stored,
        "expected": expected,
    }


class ReconciliationService:
    """Recompute denormalized aggregates from the ledger."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def reconcile_vendors(self, repair: bool = False) -> List[Dict[str, Any]]:
        paid_expr = case(
            (Transaction.category == VENDOR_PAYMENT_CATEGORY, Transaction.amount),
            else_=0,
        )
        billed_expr = case(
            (Transaction.category != VENDOR_PAYMENT_CATEGORY, Transaction.amount),
            else_=0,
        )
        totals_result = await self.db.execute(
            select(
                Transaction.vendor_id,
                func.sum(paid_expr),
                func.sum(billed_expr),
            )
            .where(
                Transaction.type == TransactionType.EXPENSE.value,
                Transaction.vendor_id.is_not(None),
            )
            .group_by(Transaction.vendor_id)
        )
        totals = {
            vendor_id: (to_money(paid or 0), to_money(billed or 0))
            for vendor_id, paid, billed in totals_result.all()
        }

        vendors_result = await self.db.execute(select(Vendor).order_by(Vendor.name).with_for_update())
        drift = []
        for vendor in vendors_result.scalars().all():
            paid, billed = totals.get(vendor.id, (ZERO, ZERO))
            expected = {
                "total_paid": paid,
                "outstanding_balance": floor_at_zero(to_money(billed - paid)),
            }
            drift.extend(self._compare("Vendor", vendor, expected, repair))

        if repair and drift:
            await self._record_repairs(drift, "vendor reconciliation")
        return drift

    async def reconcile_invoices(self, repair: bool = False) -> List[Dict[str, Any]]:
        paid_result = await self.db.execute(
            select(Payment.invoice_id, func.sum(Payment.amount))
            .where(Payment.invoice_id.is_not(None))
            .group_by(Payment.invoice_id)
        )
        paid_by_invoice = {invoice_id: to_money(paid or 0) for invoice_id, paid in paid_result.all()}

        invoices_result = await self.db.execute(select(Invoice).order_by(Invoice.created_at).with_for_update())
        drift = []
        for invoice in invoices_result.scalars().all():
            paid = paid_by_invoice.get(invoice.id, ZERO)
            expected = {
                "paid_amount": paid,
                "due_amount": to_money(invoice.total_amount - paid),
                "payment_status": compute_payment_status(paid, invoice.total_amount),
            }
            drift.extend(self._compare("Invoice", invoice, expected, repair))

        if repair and drift:
            await self._record_repairs(drift, "invoice reconciliation")
        return drift

    async def run(self, repair: bool = False) -> Dict[str, Any]:
        """Reconcile everything and summarize."""
        vendor_drift = await self.reconcile_vendors(repair=repair)
        invoice_drift = await self.reconcile_invoices(repair=repair)

        if vendor_drift or invoice_drift:
            logger.warning(
                f"Ledger drift found: {len(vendor_drift)} vendor field(s), "
                f"{len(invoice_drift)} invoice field(s)" + (" (repaired)" if repair else "")
            )
        else:
            logger.info("Ledger reconciliation clean")

        return {
            "consistent": not (vendor_drift or invoice_drift),
            "repaired": repair and bool(vendor_drift or invoice_drift),
            "vendors": vendor_drift,
            "invoices": invoice_drift,
        }

    @staticmethod
    def _compare(
        entity_type: str,
        entity: Any,
        expected: Dict[str, Any],
        repair: bool,
    ) -> List[Dict[str, Any]]:
        drift = []
        for field, expected_value in expected.items():
            stored = getattr(entity, field)
            if isinstance(expected_value, Decimal):
                stored = to_money(stored)
            if stored == expected_value:
                continue

            drift.append(_drift(entity_type, entity.id, field, stored, expected_value))
            logger.warning(f"{entity_type} {entity.id} {field}: stored {stored}, expected {expected_value}")
            if repair:
                setattr(entity, field, expected_value)
        return drift

    async def _record_repairs(self, drift: List[Dict[str, Any]], operation: str) -> None:
        await flush_changes(self.db, operation)
        for entry in drift:
            await self.audit.log(
                entity_type=entry["entity_type"],
                entity_id=entry["entity_id"],
                action="update",
                field=entry["field"],
                old_value=entry["stored"],
                new_value=entry["expected"],
                description="Reconciliation correction",
            )
