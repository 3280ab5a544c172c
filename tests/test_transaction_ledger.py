import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import select

from hotel_ledger.core.exceptions import NotFound, ValidationFailed
from hotel_ledger.models.audit_log import AuditLog
from hotel_ledger.models.transaction import TransactionType, VENDOR_PAYMENT_CATEGORY
from hotel_ledger.services.invoice_service import InvoiceService
from hotel_ledger.services.transaction_service import TransactionLedger
from hotel_ledger.services.vendor_service import VendorService


TODAY = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def ledger(db_session):
    return TransactionLedger(db_session)


@pytest.fixture
async def vendor(db_session):
    return await VendorService(db_session).create_vendor(name="Sunrise Laundry", phone="9876543210")


@pytest.fixture
async def other_vendor(db_session):
    return await VendorService(db_session).create_vendor(name="Fresh Farms", phone="9123456780")


async def expense(ledger, amount, vendor_id=None, category="Laundry"):
    return await ledger.create(
        type="expense",
        category=category,
        amount=amount,
        date=TODAY,
        payment_mode="cash",
        vendor_id=vendor_id,
    )


class TestCreate:
    """Ledger row creation and its validation."""

    async def test_revenue_row(self, ledger):
        row = await ledger.create(
            type=TransactionType.REVENUE,
            category="Restaurant",
            amount="1540.50",
            date=date(2026, 10, 19),
            payment_mode="UPI",
        )
        assert row.type == "revenue"
        assert row.amount == Decimal("1540.50")
        assert row.payment_mode == "upi"
        assert row.date == datetime(2026, 10, 19)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"type": None},
            {"type": "transfer"},
            {"category": ""},
            {"amount": None},
            {"amount": 0},
            {"amount": "abc"},
            {"date": None},
            {"payment_mode": "cheque"},
        ],
    )
    async def test_invalid_fields(self, ledger, overrides):
        fields = {
            "type": "expense",
            "category": "Laundry",
            "amount": 100,
            "date": TODAY,
            "payment_mode": "cash",
        }
        fields.update(overrides)
        with pytest.raises(ValidationFailed):
            await ledger.create(**fields)

    async def test_revenue_cannot_reference_vendor(self, ledger, vendor):
        with pytest.raises(ValidationFailed):
            await ledger.create(
                type="revenue", category="Restaurant", amount=10, date=TODAY,
                payment_mode="cash", vendor_id=vendor.id,
            )
        assert vendor.outstanding_balance == Decimal("0.00")

    async def test_vendor_payment_category_reserved(self, ledger, vendor):
        with pytest.raises(ValidationFailed):
            await expense(ledger, 100, vendor.id, category=VENDOR_PAYMENT_CATEGORY)

    async def test_unknown_vendor(self, ledger):
        with pytest.raises(NotFound):
            await expense(ledger, 100, uuid.uuid4())

    async def test_create_writes_audit_row(self, ledger, db_session, vendor):
        row = await expense(ledger, 100, vendor.id)
        result = await db_session.execute(select(AuditLog).where(AuditLog.entity_id == row.id))
        log = result.scalar_one()
        assert log.action == "create"
        assert str(log.new_value["vendor_id"]) == str(vendor.id)


class TestUpdateCompensation:
    """Edits reverse the old amount and re-apply the new one."""

    async def test_amount_change_same_vendor(self, ledger, vendor):
        row = await expense(ledger, 300, vendor.id)
        await expense(ledger, 200, vendor.id)
        assert vendor.outstanding_balance == Decimal("500.00")

        await ledger.update(row.id, {"amount": "450"})
        assert vendor.outstanding_balance == Decimal("650.00")
        assert vendor.total_transactions == 2

    async def test_retarget_to_another_vendor(self, ledger, vendor, other_vendor):
        row = await expense(ledger, 300, vendor.id)

        await ledger.update(row.id, {"vendor_id": other_vendor.id, "amount": 120})
        assert vendor.outstanding_balance == Decimal("0.00")
        assert other_vendor.outstanding_balance == Decimal("120.00")
        assert row.vendor_id == other_vendor.id

    async def test_detach_vendor(self, ledger, vendor):
        row = await expense(ledger, 300, vendor.id)
        await ledger.update(row.id, {"vendor_id": None})
        assert vendor.outstanding_balance == Decimal("0.00")
        assert row.vendor_id is None

    async def test_attach_vendor(self, ledger, vendor):
        row = await expense(ledger, 80)
        await ledger.update(row.id, {"vendor_id": vendor.id})
        assert vendor.outstanding_balance == Decimal("80.00")

    async def test_retarget_to_unknown_vendor_moves_nothing(self, ledger, vendor):
        row = await expense(ledger, 300, vendor.id)
        with pytest.raises(NotFound):
            await ledger.update(row.id, {"vendor_id": uuid.uuid4()})
        assert vendor.outstanding_balance == Decimal("300.00")
        assert row.vendor_id == vendor.id

    async def test_vendor_payment_edit_moves_balance_by_difference(self, ledger, db_session, vendor):
        await expense(ledger, 500, vendor.id)
        payment = await VendorService(db_session).record_payment(vendor.id, 200, "cash")
        assert vendor.outstanding_balance == Decimal("300.00")

        await ledger.update(payment.id, {"amount": 250})
        assert vendor.outstanding_balance == Decimal("350.00")
        assert vendor.total_paid == Decimal("200.00")

    async def test_update_goes_through_vendor_tracker(self, ledger, vendor, other_vendor, monkeypatch):
        row = await expense(ledger, 300, vendor.id)
        calls = []
        original = ledger.vendors.on_expense_amount_changed

        async def spy(*args):
            calls.append(args)
            return await original(*args)

        monkeypatch.setattr(ledger.vendors, "on_expense_amount_changed", spy)
        await ledger.update(row.id, {"amount": 120, "vendor_id": other_vendor.id})
        assert calls == [(vendor.id, Decimal("300.00"), other_vendor.id, Decimal("120.00"))]

        await ledger.update(row.id, {"vendor_id": None})
        await ledger.update(row.id, {"description": "No vendor"})
        assert len(calls) == 2

    async def test_cannot_move_out_of_vendor_payments(self, ledger, db_session, vendor):
        await expense(ledger, 1000, vendor.id)
        payment = await VendorService(db_session).record_payment(vendor.id, 400, "cash")
        with pytest.raises(ValidationFailed):
            await ledger.update(payment.id, {"category": "Laundry"})

    async def test_cannot_move_into_vendor_payments(self, ledger, vendor):
        row = await expense(ledger, 100, vendor.id)
        with pytest.raises(ValidationFailed):
            await ledger.update(row.id, {"category": VENDOR_PAYMENT_CATEGORY})

    async def test_type_is_immutable(self, ledger):
        row = await expense(ledger, 100)
        with pytest.raises(ValidationFailed):
            await ledger.update(row.id, {"type": "revenue"})
        # restating the same type is not a change
        await ledger.update(row.id, {"type": "EXPENSE", "description": "Linen"})
        assert row.description == "Linen"

    async def test_invoice_payment_amount_locked(self, ledger, db_session):
        invoices = InvoiceService(db_session)
        invoice = await invoices.create_invoice(
            booking_id=uuid.uuid4(), items=[{"description": "Room", "rate": 1000}]
        )
        await invoices.record_payment(invoice.id, 400, "cash")
        rows, _ = await ledger.list(type="revenue")

        with pytest.raises(ValidationFailed):
            await ledger.update(rows[0].id, {"amount": 500})
        await ledger.update(rows[0].id, {"description": "Front desk"})
        assert rows[0].amount == Decimal("400.00")

    async def test_each_changed_field_is_audited(self, ledger, db_session, vendor, other_vendor):
        row = await expense(ledger, 300, vendor.id)
        await ledger.update(row.id, {"amount": 310, "vendor_id": other_vendor.id, "reference": "BILL-7"})

        result = await db_session.execute(
            select(AuditLog.field).where(AuditLog.entity_id == row.id, AuditLog.action == "update")
        )
        assert sorted(result.scalars().all()) == ["amount", "vendor_id"]

    async def test_expected_type_mismatch_is_not_found(self, ledger):
        row = await expense(ledger, 100)
        with pytest.raises(NotFound):
            await ledger.update(row.id, {"amount": 5}, expected_type="revenue")


class TestDelete:

    async def test_delete_vendor_payment_reverses_like_any_expense(self, ledger, db_session, vendor):
        await expense(ledger, 500, vendor.id)
        payment = await VendorService(db_session).record_payment(vendor.id, 200, "cash")
        assert vendor.outstanding_balance == Decimal("300.00")

        await ledger.delete(payment.id)
        assert vendor.outstanding_balance == Decimal("100.00")
        assert vendor.total_paid == Decimal("200.00")

    async def test_invoice_payment_row_cannot_be_deleted(self, ledger, db_session):
        invoices = InvoiceService(db_session)
        invoice = await invoices.create_invoice(
            booking_id=uuid.uuid4(), items=[{"description": "Room", "rate": 1000}]
        )
        await invoices.record_payment(invoice.id, 400, "cash")
        rows, _ = await ledger.list(type="revenue")

        with pytest.raises(ValidationFailed):
            await ledger.delete(rows[0].id)
        rows, total = await ledger.list(type="revenue")
        assert total == 1
        assert invoice.paid_amount == Decimal("400.00")

    async def test_delete_plain_expense_floors_at_zero(self, ledger, db_session, vendor):
        row = await expense(ledger, 500, vendor.id)
        await VendorService(db_session).record_payment(vendor.id, 300, "cash")

        await ledger.delete(row.id)
        assert vendor.outstanding_balance == Decimal("0.00")

    async def test_delete_unknown(self, ledger):
        with pytest.raises(NotFound):
            await ledger.delete(uuid.uuid4())


class TestQueries:

    async def test_list_filters_and_categories(self, ledger, vendor):
        await expense(ledger, 100, vendor.id, category="Laundry")
        await expense(ledger, 50, category="Electricity")
        await ledger.create(type="revenue", category="Restaurant", amount=75, date=TODAY, payment_mode="card")

        rows, total = await ledger.list(type="expense")
        assert total == 2
        rows, total = await ledger.list(vendor_id=vendor.id)
        assert total == 1 and rows[0].category == "Laundry"
        rows, total = await ledger.list(start_date=date(2026, 10, 19), end_date=date(2026, 10, 19))
        assert total == 3
        rows, total = await ledger.list(end_date=date(2026, 10, 18))
        assert total == 0

        assert await ledger.categories("expense") == ["Electricity", "Laundry"]
        assert await ledger.categories() == ["Electricity", "Laundry", "Restaurant"]
