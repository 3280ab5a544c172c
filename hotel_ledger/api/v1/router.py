from fastapi import APIRouter

from hotel_ledger.api.v1.endpoints import (
    # Access Control
    auth,
    # Accounts
    invoices,
    payments,
    vendors,
    transactions,
    # Oversight
    audit_logs,
    dashboard,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Access Control ====================
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

# ==================== Accounts ====================
api_router.include_router(
    invoices.router,
    prefix="/invoices",
    tags=["Invoices"]
)
api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["Payments"]
)
api_router.include_router(
    vendors.router,
    prefix="/vendors",
    tags=["Vendors"]
)
api_router.include_router(
    transactions.router,
    prefix="/transactions",
    tags=["Transactions"]
)

# ==================== Oversight ====================
api_router.include_router(
    audit_logs.router,
    prefix="/audit-logs",
    tags=["Audit Logs"]
)
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)
