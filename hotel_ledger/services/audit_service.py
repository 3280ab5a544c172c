from typing import Optional, Any, List, Iterable, Tuple
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.models.audit_log import AuditLog


logger = logging.getLogger(__name__)


class AuditService:
    """
    Audit service for ledger changes.

    Audit rows are telemetry, not ledger state: each write runs in its own
    SAVEPOINT and a failure is logged and dropped without touching the
    surrounding unit of work.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        action: str,
        changed_by: Optional[uuid.UUID] = None,
        field: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        description: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Create an audit log entry.

        Args:
            entity_type: Invoice, Payment, Vendor or Transaction
            entity_id: ID of the affected entity
            action: create, update or delete
            changed_by: ID of the user performing the action
            field: Changed field (update rows)
            old_value: Previous value
            new_value: New value

        Returns:
            The created AuditLog entry, or None if it could not be written
        """
        audit_log = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            field=field,
            old_value=old_value,
            new_value=new_value,
            description=description,
            changed_by=changed_by,
        )
        # Pending ledger writes flush out here so their errors still propagate
        await self.db.flush()
        try:
            async with self.db.begin_nested():
                self.db.add(audit_log)
        except Exception as e:
            logger.error(
                f"Audit log failed for {entity_type} {entity_id} ({action} {field or ''}): {e}",
                exc_info=True,
            )
            return None
        return audit_log

    async def log_changes(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        changes: Iterable[Tuple[str, Any, Any]],
        changed_by: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
    ) -> int:
        """Write one update row per (field, old, new). Returns rows written."""
        written = 0
        for field, old_value, new_value in changes:
            entry = await self.log(
                entity_type=entity_type,
                entity_id=entity_id,
                action="update",
                changed_by=changed_by,
                field=field,
                old_value=old_value,
                new_value=new_value,
                description=description,
            )
            if entry is not None:
                written += 1
        return written

    async def get_audit_logs(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        changed_by: Optional[uuid.UUID] = None,
        action: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[AuditLog], int]:
        """
        Get audit logs with filtering, newest first.
        """
        stmt = select(AuditLog).order_by(AuditLog.timestamp.desc())

        if entity_type:
            stmt = stmt.where(AuditLog.entity_type == entity_type)
        if entity_id:
            stmt = stmt.where(AuditLog.entity_id == entity_id)
        if changed_by:
            stmt = stmt.where(AuditLog.changed_by == changed_by)
        if action:
            stmt = stmt.where(AuditLog.action == action)

        # Count total
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar()

        # Get paginated results
        stmt = stmt.offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        logs = result.scalars().all()

        return list(logs), total
