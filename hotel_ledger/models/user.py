import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from hotel_ledger.database import Base
from hotel_ledger.db_types import UUIDType


class UserRole(str, Enum):
    """Back office roles."""
    SUPERADMIN = "superadmin"   # Bypasses every role check
    ADMIN = "admin"
    ACCOUNTANT = "accountant"
    MANAGER = "manager"         # Read-only access to accounts
    STAFF = "staff"
    USER = "user"               # Guest-facing account, no back office access


class User(Base):
    """
    Back office user.
    The id is the identity recorded as created_by / received_by / changed_by.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    # Basic info
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.STAFF.value,
        nullable=False,
        comment="superadmin, admin, accountant, manager, staff, user"
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User(email='{self.email}', role='{self.role}')>"
