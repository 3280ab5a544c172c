from decimal import Decimal
from typing import Any, Dict, List
from uuid import UUID

from pydantic import BaseModel

from hotel_ledger.schemas.transaction import TransactionResponse


class PeriodTotals(BaseModel):
    revenue: Decimal
    expense: Decimal
    net: Decimal


class DashboardSummary(BaseModel):
    totals: Dict[str, PeriodTotals]
    revenue_by_category: Dict[str, Decimal]
    latest_transactions: List[TransactionResponse]
    outstanding_receivables: Decimal
    outstanding_payables: Decimal


class DriftEntry(BaseModel):
    entity_type: str
    entity_id: UUID
    field: str
    stored: Any
    expected: Any


class ReconciliationReport(BaseModel):
    consistent: bool
    repaired: bool
    vendors: List[DriftEntry]
    invoices: List[DriftEntry]
