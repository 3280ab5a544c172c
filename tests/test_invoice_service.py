import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from hotel_ledger.core.exceptions import InvalidPaymentAmount, NotFound, ValidationFailed
from hotel_ledger.models.audit_log import AuditLog
from hotel_ledger.models.invoice import Payment, PaymentStatus
from hotel_ledger.models.transaction import Transaction, ROOM_BOOKING_CATEGORY, OTHER_REVENUE_CATEGORY
from hotel_ledger.services.invoice_service import InvoiceService, compute_payment_status, normalize_items


async def create_invoice(db, total="1000", **kwargs):
    service = InvoiceService(db)
    invoice = await service.create_invoice(
        booking_id=uuid.uuid4(),
        items=[{"description": "Deluxe room", "quantity": 2, "rate": Decimal(total) / 2}],
        **kwargs,
    )
    return service, invoice


def assert_settled(invoice):
    assert invoice.paid_amount + invoice.due_amount == invoice.total_amount
    assert invoice.payment_status == compute_payment_status(invoice.paid_amount, invoice.total_amount)


class TestInvoiceTotals:
    """Invoice creation and charge revision."""

    async def test_create_computes_totals(self, db_session):
        service = InvoiceService(db_session)
        invoice = await service.create_invoice(
            booking_id=uuid.uuid4(),
            items=[
                {"description": "Room", "quantity": 3, "rate": "1500"},
                {"description": "Breakfast", "amount": "450.50"},
            ],
            tax="540.06",
            discount="100",
        )

        assert invoice.subtotal == Decimal("4950.50")
        assert invoice.total_amount == Decimal("5390.56")
        assert invoice.paid_amount == Decimal("0.00")
        assert invoice.due_amount == invoice.total_amount
        assert invoice.payment_status == PaymentStatus.PENDING.value
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.items[1]["amount"] == "450.50"

    async def test_create_requires_booking_and_items(self, db_session):
        service = InvoiceService(db_session)
        with pytest.raises(ValidationFailed):
            await service.create_invoice(booking_id=None, items=[{"description": "Room", "rate": 1}])
        with pytest.raises(ValidationFailed):
            await service.create_invoice(booking_id=uuid.uuid4(), items=[])

    def test_item_without_description_is_rejected(self):
        with pytest.raises(ValidationFailed):
            normalize_items([{"description": "  ", "rate": 10}])

    async def test_revise_below_paid_leaves_credit(self, db_session):
        service, invoice = await create_invoice(db_session)
        await service.record_payment(invoice.id, 800, "cash")

        revised = await service.revise_charges(
            invoice.id,
            items=[{"description": "Deluxe room", "quantity": 1, "rate": "500"}],
        )

        assert revised.total_amount == Decimal("500.00")
        assert revised.paid_amount == Decimal("800.00")
        assert revised.due_amount == Decimal("-300.00")
        assert revised.payment_status == PaymentStatus.PAID.value
        assert_settled(revised)

    async def test_revise_audits_each_changed_field(self, db_session):
        service, invoice = await create_invoice(db_session)
        await service.revise_charges(invoice.id, tax="180", discount="50")

        result = await db_session.execute(
            select(AuditLog.field).where(AuditLog.entity_id == invoice.id, AuditLog.action == "update")
        )
        assert sorted(result.scalars().all()) == ["discount", "tax"]

    async def test_discount_above_charges_rejected(self, db_session):
        service = InvoiceService(db_session)
        with pytest.raises(ValidationFailed):
            await service.create_invoice(
                booking_id=uuid.uuid4(),
                items=[{"description": "Room", "rate": 100}],
                discount=500,
            )

        # discount equal to subtotal plus tax is a free stay, not an error
        service, invoice = await create_invoice(db_session, tax="100", discount="1100")
        assert invoice.total_amount == Decimal("0.00")

    async def test_revise_discount_above_charges_leaves_invoice_untouched(self, db_session):
        service, invoice = await create_invoice(db_session, tax="100")
        with pytest.raises(ValidationFailed):
            await service.revise_charges(invoice.id, discount="1500")
        with pytest.raises(ValidationFailed):
            await service.revise_charges(
                invoice.id, items=[{"description": "Deluxe room", "rate": "50"}], discount="200"
            )

        assert invoice.discount == Decimal("0.00")
        assert invoice.total_amount == Decimal("1100.00")
        assert invoice.payment_status == PaymentStatus.PENDING.value


class TestInvoicePayments:
    """Payments against an invoice and their revenue rows."""

    async def test_partial_then_full_payment(self, db_session):
        service, invoice = await create_invoice(db_session, total="1000")

        await service.record_payment(invoice.id, 400, "cash")
        assert invoice.paid_amount == Decimal("400.00")
        assert invoice.due_amount == Decimal("600.00")
        assert invoice.payment_status == PaymentStatus.PARTIAL.value
        assert invoice.payment_mode == "cash"

        await service.record_payment(invoice.id, 600, "upi")
        assert invoice.paid_amount == Decimal("1000.00")
        assert invoice.due_amount == Decimal("0.00")
        assert invoice.payment_status == PaymentStatus.PAID.value
        # first recorded mode sticks
        assert invoice.payment_mode == "cash"

        with pytest.raises(InvalidPaymentAmount):
            await service.record_payment(invoice.id, 700, "cash")
        assert invoice.paid_amount == Decimal("1000.00")
        assert_settled(invoice)

    async def test_each_payment_books_room_revenue(self, db_session):
        service, invoice = await create_invoice(db_session)
        payment = await service.record_payment(invoice.id, "250.25", "card", reference="POS-1")
        await db_session.commit()

        result = await db_session.execute(select(Transaction).where(Transaction.invoice_id == invoice.id))
        revenue = result.scalars().all()
        assert len(revenue) == 1
        assert revenue[0].category == ROOM_BOOKING_CATEGORY
        assert revenue[0].amount == payment.amount == Decimal("250.25")
        assert revenue[0].booking_id == invoice.booking_id
        assert revenue[0].reference == "POS-1"

    @pytest.mark.parametrize("amount", [0, -10, "0.00"])
    async def test_non_positive_amount_rejected(self, db_session, amount):
        service, invoice = await create_invoice(db_session)
        with pytest.raises(InvalidPaymentAmount):
            await service.record_payment(invoice.id, amount, "cash")

    async def test_invalid_mode_rejected_before_writes(self, db_session):
        service, invoice = await create_invoice(db_session)
        with pytest.raises(ValidationFailed):
            await service.record_payment(invoice.id, 100, "cheque")
        assert await service.get_payments(invoice.id) == []

    async def test_unknown_invoice(self, db_session):
        with pytest.raises(NotFound):
            await InvoiceService(db_session).record_payment(uuid.uuid4(), 100, "cash")

    async def test_double_submission_records_twice(self, db_session):
        service, invoice = await create_invoice(db_session)
        await service.record_payment(invoice.id, 100, "cash", reference="R-1")
        await service.record_payment(invoice.id, 100, "cash", reference="R-1")

        assert len(await service.get_payments(invoice.id)) == 2
        assert invoice.paid_amount == Decimal("200.00")

    async def test_fractional_payments_do_not_drift(self, db_session):
        service, invoice = await create_invoice(db_session, total="100")
        for _ in range(3):
            await service.record_payment(invoice.id, "33.33", "upi")
        await service.record_payment(invoice.id, "0.01", "upi")

        assert invoice.paid_amount == Decimal("100.00")
        assert invoice.due_amount == Decimal("0.00")
        assert invoice.payment_status == PaymentStatus.PAID.value

    async def test_payment_writes_audit_rows(self, db_session):
        service, invoice = await create_invoice(db_session)
        payment = await service.record_payment(invoice.id, 400, "cash")

        result = await db_session.execute(
            select(AuditLog).where(AuditLog.entity_id.in_([invoice.id, payment.id]))
        )
        logs = {(log.entity_type, log.action, log.field): log for log in result.scalars().all()}
        assert ("Payment", "create", None) in logs
        paid_change = logs[("Invoice", "update", "paid_amount")]
        assert Decimal(paid_change.old_value) == Decimal("0")
        assert Decimal(paid_change.new_value) == Decimal("400")


class TestDirectPayments:

    async def test_direct_payment_books_other_revenue(self, db_session):
        service = InvoiceService(db_session)
        payment = await service.record_direct_payment("1200", "netbanking", notes="Banquet deposit")
        await db_session.commit()

        assert payment.invoice_id is None
        result = await db_session.execute(
            select(Transaction).where(Transaction.category == OTHER_REVENUE_CATEGORY)
        )
        row = result.scalar_one()
        assert row.amount == Decimal("1200.00")
        assert row.description == "Banquet deposit"

    async def test_list_payments_stats(self, db_session):
        service, invoice = await create_invoice(db_session)
        await service.record_payment(invoice.id, 300, "cash")
        await service.record_payment(invoice.id, 200, "upi")
        await service.record_direct_payment(50, "cash")

        listing = await service.list_payments()
        assert listing["total"] == 3
        assert listing["stats"]["total_amount"] == Decimal("550.00")
        assert listing["stats"]["by_mode"]["cash"] == {"amount": Decimal("350.00"), "count": 2}

        only_invoice = await service.list_payments(invoice_id=invoice.id, payment_mode="UPI")
        assert only_invoice["total"] == 1
        assert isinstance(only_invoice["items"][0], Payment)
