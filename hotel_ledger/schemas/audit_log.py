from datetime import datetime
from typing import Optional, Any, List
from uuid import UUID

from hotel_ledger.schemas.base import BaseResponseSchema, PaginatedResponse


class AuditLogResponse(BaseResponseSchema):
    id: UUID
    entity_type: str
    entity_id: UUID
    action: str
    field: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    description: Optional[str] = None
    changed_by: Optional[UUID] = None
    timestamp: datetime


class AuditLogListResponse(PaginatedResponse):
    items: List[AuditLogResponse]
