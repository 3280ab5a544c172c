import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select

from hotel_ledger.jobs.scheduler import reconcile_ledger_job
from hotel_ledger.models.audit_log import AuditLog
from hotel_ledger.models.invoice import Invoice, PaymentStatus
from hotel_ledger.models.vendor import Vendor
from hotel_ledger.services.invoice_service import InvoiceService
from hotel_ledger.services.reconciliation_service import ReconciliationService
from hotel_ledger.services.transaction_service import TransactionLedger
from hotel_ledger.services.vendor_service import VendorService


TODAY = datetime(2026, 10, 19, tzinfo=timezone.utc)


async def seed_ledger(db):
    """One vendor with expenses and a payment, one partly paid invoice."""
    vendors = VendorService(db)
    ledger = TransactionLedger(db)
    vendor = await vendors.create_vendor(name="Sunrise Laundry", phone="9876543210")
    for amount in ("120.10", "79.90", "300"):
        await ledger.create(
            type="expense", category="Laundry", amount=amount, date=TODAY,
            payment_mode="cash", vendor_id=vendor.id,
        )
    await vendors.record_payment(vendor.id, "150.50", "upi")

    invoices = InvoiceService(db)
    invoice = await invoices.create_invoice(
        booking_id=uuid.uuid4(), items=[{"description": "Suite", "quantity": 2, "rate": "2499.99"}]
    )
    await invoices.record_payment(invoice.id, "1000.01", "card")
    return vendor, invoice


class TestReconciliation:
    """Stored aggregates against the rows they summarize."""

    async def test_incremental_path_is_consistent(self, db_session):
        vendor, invoice = await seed_ledger(db_session)
        # an edit and a delete on top
        ledger = TransactionLedger(db_session)
        rows, _ = await ledger.list(type="expense", category="Laundry")
        await ledger.update(rows[0].id, {"amount": "99.99"})
        await ledger.delete(rows[1].id)

        report = await ReconciliationService(db_session).run()
        assert report["consistent"] is True
        assert report["repaired"] is False
        assert report["vendors"] == [] and report["invoices"] == []

    async def test_detects_drift_without_repairing(self, db_session):
        vendor, invoice = await seed_ledger(db_session)
        vendor.outstanding_balance = Decimal("1.00")
        invoice.paid_amount = Decimal("0.00")
        await db_session.flush()

        report = await ReconciliationService(db_session).run(repair=False)

        assert report["consistent"] is False
        vendor_entry = report["vendors"][0]
        assert vendor_entry["field"] == "outstanding_balance"
        assert vendor_entry["stored"] == Decimal("1.00")
        assert vendor_entry["expected"] == Decimal("349.50")
        assert [entry["field"] for entry in report["invoices"]] == ["paid_amount"]
        # nothing rewritten
        assert vendor.outstanding_balance == Decimal("1.00")

    async def test_repair_rewrites_and_audits(self, db_session):
        vendor, invoice = await seed_ledger(db_session)
        vendor.total_paid = Decimal("0.00")
        invoice.due_amount = Decimal("42.00")
        await db_session.flush()

        report = await ReconciliationService(db_session).run(repair=True)

        assert report["repaired"] is True
        assert vendor.total_paid == Decimal("150.50")
        assert invoice.due_amount == Decimal("3999.97")
        assert invoice.payment_status == PaymentStatus.PARTIAL.value

        result = await db_session.execute(
            select(AuditLog).where(AuditLog.description == "Reconciliation correction")
        )
        fields = sorted(log.field for log in result.scalars().all())
        assert fields == ["due_amount", "total_paid"]

        assert (await ReconciliationService(db_session).run())["consistent"] is True


class TestReconciliationJob:

    async def test_job_repairs_in_its_own_session(self, session_factory):
        async with session_factory() as session:
            vendor, invoice = await seed_ledger(session)
            vendor.outstanding_balance = Decimal("0.00")
            await session.commit()
            vendor_id, invoice_id = vendor.id, invoice.id

        report = await reconcile_ledger_job(session_factory=session_factory, repair=True)
        assert report["repaired"] is True

        async with session_factory() as session:
            repaired = (await session.execute(select(Vendor).where(Vendor.id == vendor_id))).scalar_one()
            assert repaired.outstanding_balance == Decimal("349.50")
            untouched = (await session.execute(select(Invoice).where(Invoice.id == invoice_id))).scalar_one()
            assert untouched.paid_amount == Decimal("1000.01")

    async def test_job_failure_is_logged_not_raised(self, caplog):
        def broken_factory():
            raise RuntimeError("database unavailable")

        assert await reconcile_ledger_job(session_factory=broken_factory) == {}
        assert "reconcile_ledger" in caplog.text
