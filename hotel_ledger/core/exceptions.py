"""
Ledger exceptions.

Raised by the services and translated to HTTP responses by the endpoints
(see ``http_status_for``). None of them is retried automatically except
``ConcurrentModification`` when a caller opts into ``run_with_retry``.
"""
from typing import Any, Dict, Optional

from fastapi import status


class LedgerError(Exception):
    """Base exception for ledger and reconciliation errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailed(LedgerError):
    """Missing or malformed required field."""
    pass


class InvalidPaymentAmount(LedgerError):
    """Payment amount is <= 0 or larger than what is owed."""
    pass


class PaymentExceedsBalance(InvalidPaymentAmount):
    """Vendor payment larger than the vendor's outstanding balance."""
    pass


class NotFound(LedgerError):
    """Invoice, vendor, payment or transaction id did not resolve."""
    pass


class VendorHasHistory(LedgerError):
    """Vendor deletion blocked by existing transactions."""
    pass


class ConcurrentModification(LedgerError):
    """A versioned row changed underneath the current unit of work."""
    pass


class PersistenceFailure(LedgerError):
    """Underlying store error, not classified further."""
    pass


_STATUS_BY_ERROR = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ConcurrentModification, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (ValidationFailed, status.HTTP_400_BAD_REQUEST),
    (InvalidPaymentAmount, status.HTTP_400_BAD_REQUEST),
    (VendorHasHistory, status.HTTP_400_BAD_REQUEST),
)


def http_status_for(error: LedgerError) -> int:
    """Map a ledger error to the status code the API answers with."""
    for error_class, code in _STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return code
    return status.HTTP_400_BAD_REQUEST
