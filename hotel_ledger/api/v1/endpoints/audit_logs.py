from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query

from hotel_ledger.api.deps import DB, Viewer
from hotel_ledger.schemas.audit_log import AuditLogResponse, AuditLogListResponse
from hotel_ledger.schemas.base import page_count
from hotel_ledger.services.audit_service import AuditService


router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    db: DB,
    current_user: Viewer,
    entity_type: Optional[str] = None,
    entity_id: Optional[UUID] = None,
    changed_by: Optional[UUID] = None,
    action: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
):
    """Audit trail, newest first."""
    logs, total = await AuditService(db).get_audit_logs(
        entity_type=entity_type,
        entity_id=entity_id,
        changed_by=changed_by,
        action=action,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return AuditLogListResponse(
        items=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        limit=limit,
        pages=page_count(total, limit),
    )
