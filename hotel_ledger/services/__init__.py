# Services module
from hotel_ledger.services.audit_service import AuditService
from hotel_ledger.services.invoice_service import InvoiceService
from hotel_ledger.services.vendor_service import VendorBalanceTracker, VendorService
from hotel_ledger.services.transaction_service import TransactionLedger
from hotel_ledger.services.reconciliation_service import ReconciliationService
from hotel_ledger.services.dashboard_service import DashboardService
from hotel_ledger.services.auth_service import AuthService

__all__ = [
    "AuditService",
    "InvoiceService",
    "VendorBalanceTracker",
    "VendorService",
    "TransactionLedger",
    "ReconciliationService",
    "DashboardService",
    "AuthService",
]
