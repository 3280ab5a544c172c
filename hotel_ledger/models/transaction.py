import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from hotel_ledger.database import Base
from hotel_ledger.db_types import UUIDType, Money


class TransactionType(str, Enum):
    """Ledger row direction."""
    REVENUE = "revenue"
    EXPENSE = "expense"


class PaymentMode(str, Enum):
    """How money moved."""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"


# Categories with ledger semantics attached
ROOM_BOOKING_CATEGORY = "Room Booking"      # revenue rows created by invoice payments
OTHER_REVENUE_CATEGORY = "Others"           # revenue rows created by direct payments
VENDOR_PAYMENT_CATEGORY = "Vendor Payments"  # expense rows created by vendor payments


class Transaction(Base):
    """
    Ledger row for any revenue or expense.

    Expense rows with vendor_id feed the vendor's outstanding balance;
    revenue rows with invoice_id mirror a Payment against that invoice.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_type_date", "type", "date"),
        Index("ix_transactions_category", "category"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="revenue, expense"
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_mode: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="cash, card, upi, netbanking"
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Weak references
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)
    invoice_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("vendors.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

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

    @property
    def is_vendor_payment(self) -> bool:
        return (
            self.type == TransactionType.EXPENSE.value
            and self.category == VENDOR_PAYMENT_CATEGORY
        )

    def __repr__(self) -> str:
        return f"<Transaction(type='{self.type}', category='{self.category}', amount={self.amount})>"
