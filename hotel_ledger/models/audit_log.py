import uuid
from datetime import datetime, timezone
from typing import Optional, Any

from sqlalchemy import String, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotel_ledger.database import Base
from hotel_ledger.db_types import UUIDType, JSONType


class AuditLog(Base):
    """
    Field-level change history for ledger entities.
    One row per created/deleted entity, one row per changed field on update.
    """
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    # Entity being modified
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    # Entity types: Invoice, Payment, Vendor, Transaction

    entity_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)

    action: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="create, update, delete"
    )

    # Change tracking (update rows only)
    field: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    old_value: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    new_value: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Who performed the action
    changed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog(action='{self.action}', entity='{self.entity_type}', field='{self.field}')>"
