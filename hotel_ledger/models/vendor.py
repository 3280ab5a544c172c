import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotel_ledger.database import Base
from hotel_ledger.db_types import UUIDType, Money


class Vendor(Base):
    """
    External payee (laundry, grocery, maintenance...).

    Aggregates are maintained incrementally by VendorBalanceTracker:
    - outstanding_balance: never negative, fed by expense transactions
    - total_paid: sum of vendor payments
    - total_transactions: count of expenses ever booked against the vendor
    """
    __tablename__ = "vendors"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    # Profile
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    contact_person: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gst_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Balance aggregates
    outstanding_balance: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    total_paid: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    total_transactions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency
    version: Mapped[int] = mapped_column(Integer, nullable=False)

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

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Vendor(name='{self.name}', outstanding={self.outstanding_balance})>"
