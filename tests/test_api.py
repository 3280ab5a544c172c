import uuid
from decimal import Decimal

import pytest

from hotel_ledger.services.auth_service import AuthService
from tests.conftest import auth_headers


INVOICE = {
    "booking_id": str(uuid.uuid4()),
    "items": [{"description": "Deluxe room", "quantity": 2, "rate": "500"}],
}


async def create_invoice(client, headers):
    response = await client.post("/api/v1/invoices", json=INVOICE, headers=headers)
    assert response.status_code == 201
    return response.json()


async def create_vendor(client, headers, name="Sunrise Laundry"):
    response = await client.post("/api/v1/vendors", json={"name": name, "phone": "9876543210"}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestAuth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_login_and_me(self, client, session_factory):
        async with session_factory() as session:
            await AuthService(session).create_user(
                email="Front.Office@GrandHotel.in", password="S3cret!pass", name="Front Office", role="accountant"
            )
            await session.commit()

        response = await client.post(
            "/api/v1/auth/login", json={"email": "front.office@grandhotel.in", "password": "S3cret!pass"}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["role"] == "accountant"
        assert me.json()["last_login_at"] is not None

        bad = await client.post(
            "/api/v1/auth/login", json={"email": "front.office@grandhotel.in", "password": "wrong"}
        )
        assert bad.status_code == 401

    async def test_missing_token(self, client):
        response = await client.get("/api/v1/invoices")
        assert response.status_code in (401, 403)

    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/invoices", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestPermissions:
    """Accountants edit, managers read, staff see nothing."""

    async def test_staff_cannot_view(self, client, staff):
        response = await client.get("/api/v1/transactions", headers=auth_headers(staff))
        assert response.status_code == 403

    async def test_manager_reads_but_cannot_write(self, client, manager):
        headers = auth_headers(manager)
        assert (await client.get("/api/v1/vendors", headers=headers)).status_code == 200
        response = await client.post("/api/v1/invoices", json=INVOICE, headers=headers)
        assert response.status_code == 403

    async def test_manager_cannot_repair(self, client, manager):
        headers = auth_headers(manager)
        assert (await client.get("/api/v1/dashboard/reconciliation", headers=headers)).status_code == 200
        response = await client.get("/api/v1/dashboard/reconciliation?repair=true", headers=headers)
        assert response.status_code == 403


class TestInvoiceEndpoints:

    async def test_payment_flow(self, client, accountant):
        headers = auth_headers(accountant)
        invoice = await create_invoice(client, headers)
        assert Decimal(invoice["total_amount"]) == Decimal("1000")
        assert invoice["payment_status"] == "pending"

        response = await client.post(
            f"/api/v1/invoices/{invoice['id']}/payment",
            json={"amount": 400, "payment_mode": "CASH"},
            headers=headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["payment"]["payment_mode"] == "cash"
        assert Decimal(body["invoice"]["due_amount"]) == Decimal("600")
        assert body["invoice"]["payment_status"] == "partial"

        response = await client.post(
            f"/api/v1/invoices/{invoice['id']}/payment",
            json={"amount": 700, "payment_mode": "cash"},
            headers=headers,
        )
        assert response.status_code == 400
        assert "due amount" in response.json()["detail"]

        detail = await client.get(f"/api/v1/invoices/{invoice['id']}", headers=headers)
        assert len(detail.json()["payments"]) == 1

        revenue = await client.get("/api/v1/transactions/revenue", headers=headers)
        assert revenue.json()["total"] == 1
        assert revenue.json()["categories"] == ["Room Booking"]

        row_id = revenue.json()["items"][0]["id"]
        blocked = await client.delete(f"/api/v1/transactions/revenue/{row_id}", headers=headers)
        assert blocked.status_code == 400

    async def test_unknown_invoice_is_404(self, client, accountant):
        response = await client.get(f"/api/v1/invoices/{uuid.uuid4()}", headers=auth_headers(accountant))
        assert response.status_code == 404

    async def test_missing_amount_is_400(self, client, accountant):
        headers = auth_headers(accountant)
        invoice = await create_invoice(client, headers)
        response = await client.post(
            f"/api/v1/invoices/{invoice['id']}/payment", json={"payment_mode": "upi"}, headers=headers
        )
        assert response.status_code == 400

    async def test_direct_payment(self, client, accountant):
        headers = auth_headers(accountant)
        response = await client.post(
            "/api/v1/payments", json={"amount": "250.50", "payment_mode": "upi"}, headers=headers
        )
        assert response.status_code == 201
        assert response.json()["invoice"] is None

        listing = await client.get("/api/v1/payments", headers=headers)
        assert Decimal(listing.json()["stats"]["total_amount"]) == Decimal("250.50")

    async def test_filter_by_status(self, client, accountant):
        headers = auth_headers(accountant)
        await create_invoice(client, headers)
        pending = await client.get("/api/v1/invoices?status=pending", headers=headers)
        paid = await client.get("/api/v1/invoices?status=paid", headers=headers)
        assert pending.json()["total"] == 1
        assert paid.json()["total"] == 0
        bogus = await client.get("/api/v1/invoices?status=refunded", headers=headers)
        assert bogus.status_code == 400


class TestVendorEndpoints:

    async def test_expense_payment_and_delete_guard(self, client, accountant):
        headers = auth_headers(accountant)
        vendor = await create_vendor(client, headers)

        response = await client.post(
            "/api/v1/transactions/expenses",
            json={
                "category": "Laundry",
                "amount": 500,
                "date": "2026-10-19T10:00:00",
                "payment_mode": "cash",
                "vendor_id": vendor["id"],
            },
            headers=headers,
        )
        assert response.status_code == 201
        expense = response.json()

        paid = await client.post(
            f"/api/v1/vendors/{vendor['id']}/payment", json={"amount": 500, "payment_mode": "upi"}, headers=headers
        )
        assert paid.status_code == 201
        assert Decimal(paid.json()["vendor"]["outstanding_balance"]) == Decimal("0")
        assert Decimal(paid.json()["vendor"]["total_paid"]) == Decimal("500")

        over = await client.post(
            f"/api/v1/vendors/{vendor['id']}/payment", json={"amount": 1, "payment_mode": "upi"}, headers=headers
        )
        assert over.status_code == 400

        blocked = await client.delete(f"/api/v1/vendors/{vendor['id']}", headers=headers)
        assert blocked.status_code == 400

        # typed routes only see their own type
        wrong_type = await client.put(
            f"/api/v1/transactions/revenue/{expense['id']}", json={"amount": 10}, headers=headers
        )
        assert wrong_type.status_code == 404

        detail = await client.get(f"/api/v1/vendors/{vendor['id']}", headers=headers)
        assert len(detail.json()["transactions"]) == 2

    async def test_reserved_category_rejected(self, client, accountant):
        headers = auth_headers(accountant)
        response = await client.post(
            "/api/v1/transactions/expenses",
            json={"category": "Vendor Payments", "amount": 5, "date": "2026-10-19", "payment_mode": "cash"},
            headers=headers,
        )
        assert response.status_code == 400

    async def test_delete_vendor_without_history(self, client, accountant):
        headers = auth_headers(accountant)
        vendor = await create_vendor(client, headers)
        response = await client.delete(f"/api/v1/vendors/{vendor['id']}", headers=headers)
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/vendors/{vendor['id']}", headers=headers)).status_code == 404


class TestOversight:

    async def test_dashboard_and_audit_trail(self, client, accountant):
        headers = auth_headers(accountant)
        vendor = await create_vendor(client, headers)
        await client.post(
            "/api/v1/transactions/expenses",
            json={"category": "Laundry", "amount": "75.25", "date": "2026-10-19", "payment_mode": "cash",
                  "vendor_id": vendor["id"]},
            headers=headers,
        )

        summary = await client.get("/api/v1/dashboard/summary", headers=headers)
        assert summary.status_code == 200
        assert Decimal(summary.json()["outstanding_payables"]) == Decimal("75.25")
        assert set(summary.json()["totals"]) == {"today", "month", "year"}

        trail = await client.get(f"/api/v1/audit-logs?entity_id={vendor['id']}", headers=headers)
        assert trail.status_code == 200
        assert [item["action"] for item in trail.json()["items"]] == ["create"]

        report = await client.get("/api/v1/dashboard/reconciliation?repair=true", headers=headers)
        assert report.status_code == 200
        assert report.json()["consistent"] is True

    @pytest.mark.parametrize("path", ["/api/v1/transactions", "/api/v1/audit-logs", "/api/v1/payments"])
    async def test_lists_start_empty(self, client, accountant, path):
        response = await client.get(path, headers=auth_headers(accountant))
        assert response.status_code == 200
        assert response.json()["total"] == 0
