from fastapi import APIRouter, HTTPException, status

from hotel_ledger.api.deps import DB, Viewer, Permissions, ledger_http_exception
from hotel_ledger.core.exceptions import LedgerError
from hotel_ledger.schemas.dashboard import DashboardSummary, ReconciliationReport
from hotel_ledger.services.dashboard_service import DashboardService
from hotel_ledger.services.reconciliation_service import ReconciliationService


router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(db: DB, current_user: Viewer):
    """Revenue/expense totals for today, this month and this year."""
    return await DashboardService(db).get_summary()


@router.get("/reconciliation", response_model=ReconciliationReport)
async def reconcile(db: DB, current_user: Viewer, checker: Permissions, repair: bool = False):
    """Compare stored vendor/invoice aggregates with the ledger."""
    if repair and not checker.can_edit():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission denied. Accounts edit access required to repair"
        )
    try:
        return await ReconciliationService(db).run(repair=repair)
    except LedgerError as e:
        raise ledger_http_exception(e)
