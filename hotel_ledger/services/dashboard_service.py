from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.core.money import to_money
from hotel_ledger.models.invoice import Invoice
from hotel_ledger.models.transaction import Transaction, TransactionType
from hotel_ledger.models.vendor import Vendor


class DashboardService:
    """Read-only accounting summary."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _total(self, txn_type: str, since: datetime):
        result = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0))
            .where(Transaction.type == txn_type, Transaction.date >= since)
        )
        return to_money(result.scalar())

    async def get_summary(self, now: datetime = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        today = datetime.combine(now.date(), time.min)
        periods = {
            "today": today,
            "month": today.replace(day=1),
            "year": today.replace(month=1, day=1),
        }

        totals = {}
        for name, since in periods.items():
            revenue = await self._total(TransactionType.REVENUE.value, since)
            expense = await self._total(TransactionType.EXPENSE.value, since)
            totals[name] = {"revenue": revenue, "expense": expense, "net": to_money(revenue - expense)}

        by_category_result = await self.db.execute(
            select(Transaction.category, func.sum(Transaction.amount))
            .where(
                Transaction.type == TransactionType.REVENUE.value,
                Transaction.date >= periods["month"],
                Transaction.date < today + timedelta(days=1),
            )
            .group_by(Transaction.category)
            .order_by(Transaction.category)
        )
        revenue_by_category = {category: to_money(amount) for category, amount in by_category_result.all()}

        latest_result = await self.db.execute(
            select(Transaction).order_by(Transaction.date.desc(), Transaction.created_at.desc()).limit(10)
        )

        receivable = await self.db.execute(
            select(func.coalesce(func.sum(Invoice.due_amount), 0)).where(Invoice.due_amount > 0)
        )
        payable = await self.db.execute(select(func.coalesce(func.sum(Vendor.outstanding_balance), 0)))

        return {
            "totals": totals,
            "revenue_by_category": revenue_by_category,
            "latest_transactions": list(latest_result.scalars().all()),
            "outstanding_receivables": to_money(receivable.scalar()),
            "outstanding_payables": to_money(payable.scalar()),
        }
