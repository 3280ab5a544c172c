# Models module
from hotel_ledger.models.user import User, UserRole
from hotel_ledger.models.invoice import Invoice, Payment, PaymentStatus
from hotel_ledger.models.vendor import Vendor
from hotel_ledger.models.transaction import (
    Transaction,
    TransactionType,
    PaymentMode,
    ROOM_BOOKING_CATEGORY,
    OTHER_REVENUE_CATEGORY,
    VENDOR_PAYMENT_CATEGORY,
)
from hotel_ledger.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Invoice",
    "Payment",
    "PaymentStatus",
    "Vendor",
    "Transaction",
    "TransactionType",
    "PaymentMode",
    "ROOM_BOOKING_CATEGORY",
    "OTHER_REVENUE_CATEGORY",
    "VENDOR_PAYMENT_CATEGORY",
    "AuditLog",
]
