"""Booking invoice and the payments received against it.

The invoice keeps denormalized totals (paid_amount, due_amount,
payment_status) which the invoice service recomputes on every payment
or charge revision. Line items are embedded as JSON and have no
lifecycle of their own.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, DateTime, Date, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from hotel_ledger.database import Base
from hotel_ledger.db_types import UUIDType, JSONType, Money


class PaymentStatus(str, Enum):
    """Invoice payment status. Always derived, never set directly."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class Invoice(Base):
    """
    Invoice for one booking.
    Invariant: paid_amount + due_amount == total_amount.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    invoice_number: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        nullable=False,
        index=True,
        comment="e.g. INV-2026-0042"
    )

    # Booking references (opaque ids, bookings live outside the ledger)
    booking_id: Mapped[uuid.UUID] = mapped_column(UUIDType, nullable=False, index=True)
    guest_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)
    room_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType, nullable=True)
    check_in: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    check_out: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # [{"description", "quantity", "rate", "amount"}]
    items: Mapped[List[dict]] = mapped_column(JSONType, nullable=False, default=list)

    # Charges
    subtotal: Mapped[Decimal] = mapped_column(Money(), nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(Money(), nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Money(), nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)

    # Settlement (denormalized from payments)
    paid_amount: Mapped[Decimal] = mapped_column(Money(), nullable=False, default=Decimal("0"))
    due_amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        index=True,
        comment="pending, partial, paid"
    )
    payment_mode: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Mode of the first recorded payment"
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    issued_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

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

    @property
    def is_paid(self) -> bool:
        """Check if invoice is fully paid."""
        return self.payment_status == PaymentStatus.PAID.value

    def __repr__(self) -> str:
        return f"<Invoice(number='{self.invoice_number}', status='{self.payment_status}')>"


class Payment(Base):
    """
    Receipt against an invoice (or a direct payment with no invoice).
    Immutable once created.
    """
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_payment_date", "payment_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    invoice_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("invoices.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    payment_mode: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="cash, card, upi, netbanking"
    )
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    received_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Payment(invoice_id='{self.invoice_id}', amount={self.amount})>"
