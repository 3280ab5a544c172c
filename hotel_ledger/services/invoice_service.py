"""
Invoice accumulator.

Keeps an invoice's paid/due totals and payment status consistent with the
payments recorded against it, and couples each invoice payment to its
revenue row in the transaction ledger. Both writes go through the same
session and are flushed together, so they commit or roll back as one.
"""
import logging
import random
import uuid
from datetime import datetime, date, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, List, Any, Dict, Iterable, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_ledger.config import settings
from hotel_ledger.core.enum_utils import get_enum_value, VALID_PAYMENT_STATUSES
from hotel_ledger.core.exceptions import (
    ValidationFailed,
    InvalidPaymentAmount,
    NotFound,
)
from hotel_ledger.core.money import ZERO, to_money, money_sum
from hotel_ledger.core.validation import parse_amount, validate_payment_mode
from hotel_ledger.models.invoice import Invoice, Payment, PaymentStatus
from hotel_ledger.models.transaction import (
    Transaction,
    TransactionType,
    ROOM_BOOKING_CATEGORY,
    OTHER_REVENUE_CATEGORY,
)
from hotel_ledger.services.audit_service import AuditService
from hotel_ledger.services.concurrency import flush_changes


logger = logging.getLogger(__name__)


def compute_payment_status(paid_amount: Decimal, total_amount: Decimal) -> str:
    """Payment status as a pure function of paid vs total."""
    if paid_amount >= total_amount:
        return PaymentStatus.PAID.value
    if paid_amount > ZERO:
        return PaymentStatus.PARTIAL.value
    return PaymentStatus.PENDING.value


def normalize_items(items: Iterable[Any]) -> List[Dict[str, str]]:
    """
    Normalize invoice line items to JSON-ready dicts.

    Item amount defaults to quantity * rate when omitted. Amounts are kept
    as strings so the stored JSON never goes through float.
    """
    normalized = []
    for index, item in enumerate(items or []):
        if hasattr(item, "model_dump"):
            item = item.model_dump()
        description = (item.get("description") or "").strip()
        if not description:
            raise ValidationFailed(f"Item {index + 1}: description is required")

        raw_quantity = item.get("quantity")
        try:
            quantity = Decimal(str(raw_quantity if raw_quantity is not None else 1))
        except InvalidOperation:
            raise ValidationFailed(f"Item {index + 1}: quantity must be a number")
        rate = parse_amount(item.get("rate", 0), field="rate")
        if item.get("amount") is not None:
            amount = parse_amount(item["amount"])
        else:
            amount = to_money(quantity * rate)

        if quantity < 0 or rate < ZERO or amount < ZERO:
            raise ValidationFailed(f"Item {index + 1}: amounts must not be negative")

        normalized.append({
            "description": description,
            "quantity": str(quantity),
            "rate": str(rate),
            "amount": str(amount),
        })
    return normalized


class InvoiceService:
    """Invoice lifecycle and the invoice accumulator operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== Lookups ====================

    async def get_invoice(self, invoice_id: uuid.UUID, for_update: bool = False) -> Invoice:
        stmt = select(Invoice).where(Invoice.id == invoice_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFound("Invoice not found", details={"invoice_id": str(invoice_id)})
        return invoice

    async def get_payments(self, invoice_id: uuid.UUID) -> List[Payment]:
        """Payment history for an invoice, newest first."""
        result = await self.db.execute(
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_invoices(
        self,
        booking_id: Optional[uuid.UUID] = None,
        statuses: Optional[List[str]] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Invoice], int]:
        stmt = select(Invoice)
        if booking_id:
            stmt = stmt.where(Invoice.booking_id == booking_id)
        if statuses:
            wanted = {get_enum_value(s).strip().lower() for s in statuses}
            unknown = wanted - VALID_PAYMENT_STATUSES
            if unknown:
                raise ValidationFailed(f"Unknown payment status: {', '.join(sorted(unknown))}")
            stmt = stmt.where(Invoice.payment_status.in_(sorted(wanted)))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar()

        stmt = stmt.order_by(Invoice.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    # ==================== Invoice lifecycle ====================

    async def generate_invoice_number(self) -> str:
        """INV-<year>-<4 digits>, regenerated until unused."""
        year = datetime.now(timezone.utc).year
        while True:
            number = f"{settings.INVOICE_NUMBER_PREFIX}-{year}-{random.randint(0, 9999):04d}"
            existing = await self.db.execute(
                select(Invoice.id).where(Invoice.invoice_number == number)
            )
            if existing.scalar_one_or_none() is None:
                return number

    async def create_invoice(
        self,
        booking_id: uuid.UUID,
        items: List[Any],
        tax: Any = 0,
        discount: Any = 0,
        guest_id: Optional[uuid.UUID] = None,
        room_id: Optional[uuid.UUID] = None,
        check_in: Optional[date] = None,
        check_out: Optional[date] = None,
        notes: Optional[str] = None,
        issued_by: Optional[uuid.UUID] = None,
    ) -> Invoice:
        if not booking_id:
            raise ValidationFailed("Booking is required")
        if not items:
            raise ValidationFailed("At least one invoice item is required")

        normalized = normalize_items(items)
        tax = parse_amount(tax, field="tax")
        discount = parse_amount(discount, field="discount")
        if tax < ZERO or discount < ZERO:
            raise ValidationFailed("Tax and discount must not be negative")

        subtotal = money_sum(item["amount"] for item in normalized)
        total_amount = to_money(subtotal + tax - discount)
        if total_amount < ZERO:
            raise ValidationFailed(
                "Discount cannot exceed subtotal plus tax",
                details={"subtotal": str(subtotal), "tax": str(tax), "discount": str(discount)},
            )

        invoice = Invoice(
            invoice_number=await self.generate_invoice_number(),
            booking_id=booking_id,
            guest_id=guest_id,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            items=normalized,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total_amount=total_amount,
            paid_amount=ZERO,
            due_amount=total_amount,
            payment_status=compute_payment_status(ZERO, total_amount),
            notes=notes,
            issued_by=issued_by,
        )
        self.db.add(invoice)
        await flush_changes(self.db, "invoice")

        await self.audit.log(
            entity_type="Invoice",
            entity_id=invoice.id,
            action="create",
            changed_by=issued_by,
            new_value={"invoice_number": invoice.invoice_number, "total_amount": total_amount},
        )
        logger.info(f"Invoice {invoice.invoice_number} created for booking {booking_id}: total {total_amount}")
        return invoice

    async def revise_charges(
        self,
        invoice_id: uuid.UUID,
        items: Optional[List[Any]] = None,
        tax: Any = None,
        discount: Any = None,
        notes: Optional[str] = None,
        changed_by: Optional[uuid.UUID] = None,
    ) -> Invoice:
        """
        Replace items/tax/discount as given and recompute every derived total.

        Recorded payments are untouched. A revision below the paid amount
        leaves a negative due (credit owed to the guest).
        """
        invoice = await self.get_invoice(invoice_id, for_update=True)

        new_items = invoice.items
        if items is not None:
            if not items:
                raise ValidationFailed("At least one invoice item is required")
            new_items = normalize_items(items)

        new_tax = invoice.tax
        if tax is not None:
            new_tax = parse_amount(tax, field="tax")
            if new_tax < ZERO:
                raise ValidationFailed("Tax must not be negative")

        new_discount = invoice.discount
        if discount is not None:
            new_discount = parse_amount(discount, field="discount")
            if new_discount < ZERO:
                raise ValidationFailed("Discount must not be negative")

        subtotal = money_sum(item["amount"] for item in new_items)
        total_amount = to_money(subtotal + new_tax - new_discount)
        if total_amount < ZERO:
            raise ValidationFailed(
                "Discount cannot exceed subtotal plus tax",
                details={"subtotal": str(subtotal), "tax": str(new_tax), "discount": str(new_discount)},
            )

        changes = []
        for field, value in (("items", new_items), ("tax", new_tax), ("discount", new_discount)):
            if value != getattr(invoice, field):
                changes.append((field, getattr(invoice, field), value))
                setattr(invoice, field, value)

        if notes is not None:
            invoice.notes = notes

        invoice.subtotal = subtotal
        invoice.total_amount = total_amount
        self._settle(invoice)
        await flush_changes(self.db, "invoice revision")

        await self.audit.log_changes("Invoice", invoice.id, changes, changed_by=changed_by)
        if invoice.due_amount < ZERO:
            logger.warning(
                f"Invoice {invoice.invoice_number} revised below paid amount: due {invoice.due_amount}"
            )
        logger.info(f"Invoice {invoice.invoice_number} revised: total {invoice.total_amount}")
        return invoice

    # ==================== Payments ====================

    async def record_payment(
        self,
        invoice_id: uuid.UUID,
        amount: Any,
        payment_mode: Any,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        received_by: Optional[uuid.UUID] = None,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        """
        Record a payment against an invoice.

        Creates the Payment, advances paid/due/status on the invoice and
        appends the matching "Room Booking" revenue row. Not idempotent:
        submitting the same payment twice records it twice.
        """
        amount = parse_amount(amount)
        if amount <= ZERO:
            raise InvalidPaymentAmount("Payment amount must be greater than zero")
        mode = validate_payment_mode(payment_mode)

        invoice = await self.get_invoice(invoice_id, for_update=True)
        if amount > invoice.due_amount:
            logger.warning(
                f"Rejected payment of {amount} on invoice {invoice.invoice_number}: due {invoice.due_amount}"
            )
            raise InvalidPaymentAmount(
                f"Payment amount exceeds due amount ({invoice.due_amount})",
                details={"due_amount": str(invoice.due_amount), "amount": str(amount)},
            )

        paid_on = payment_date or datetime.now(timezone.utc)
        payment = Payment(
            invoice_id=invoice.id,
            amount=amount,
            payment_mode=mode,
            payment_date=paid_on,
            reference=reference,
            notes=notes,
            received_by=received_by,
        )
        self.db.add(payment)

        old_paid = invoice.paid_amount
        invoice.paid_amount = to_money(old_paid + amount)
        self._settle(invoice)
        if not invoice.payment_mode:
            invoice.payment_mode = mode

        self.db.add(Transaction(
            type=TransactionType.REVENUE.value,
            category=ROOM_BOOKING_CATEGORY,
            amount=amount,
            date=paid_on,
            reference=reference or invoice.invoice_number,
            payment_mode=mode,
            description=f"Payment for invoice {invoice.invoice_number}",
            booking_id=invoice.booking_id,
            invoice_id=invoice.id,
            created_by=received_by,
        ))
        await flush_changes(self.db, "invoice payment")

        await self.audit.log(
            entity_type="Payment",
            entity_id=payment.id,
            action="create",
            changed_by=received_by,
            new_value={"invoice_id": invoice.id, "amount": amount, "payment_mode": mode},
        )
        await self.audit.log(
            entity_type="Invoice",
            entity_id=invoice.id,
            action="update",
            changed_by=received_by,
            field="paid_amount",
            old_value=old_paid,
            new_value=invoice.paid_amount,
        )
        logger.info(
            f"Payment of {amount} ({mode}) recorded on invoice {invoice.invoice_number}: "
            f"paid {invoice.paid_amount}, due {invoice.due_amount}, {invoice.payment_status}"
        )
        return payment

    async def record_direct_payment(
        self,
        amount: Any,
        payment_mode: Any,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        received_by: Optional[uuid.UUID] = None,
        payment_date: Optional[datetime] = None,
    ) -> Payment:
        """Payment with no invoice: books an "Others" revenue row."""
        amount = parse_amount(amount)
        if amount <= ZERO:
            raise InvalidPaymentAmount("Payment amount must be greater than zero")
        mode = validate_payment_mode(payment_mode)

        paid_on = payment_date or datetime.now(timezone.utc)
        payment = Payment(
            amount=amount,
            payment_mode=mode,
            payment_date=paid_on,
            reference=reference,
            notes=notes,
            received_by=received_by,
        )
        self.db.add(payment)
        self.db.add(Transaction(
            type=TransactionType.REVENUE.value,
            category=OTHER_REVENUE_CATEGORY,
            amount=amount,
            date=paid_on,
            reference=reference,
            payment_mode=mode,
            description=notes or "Payment received",
            created_by=received_by,
        ))
        await flush_changes(self.db, "payment")

        await self.audit.log(
            entity_type="Payment",
            entity_id=payment.id,
            action="create",
            changed_by=received_by,
            new_value={"amount": amount, "payment_mode": mode},
        )
        logger.info(f"Direct payment of {amount} ({mode}) recorded")
        return payment

    async def list_payments(
        self,
        invoice_id: Optional[uuid.UUID] = None,
        payment_mode: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> Dict[str, Any]:
        """Paginated payments plus totals over the whole filtered set."""
        conditions = []
        if invoice_id:
            conditions.append(Payment.invoice_id == invoice_id)
        if payment_mode:
            conditions.append(Payment.payment_mode == validate_payment_mode(payment_mode))
        if start_date:
            conditions.append(Payment.payment_date >= datetime.combine(start_date, time.min))
        if end_date:
            conditions.append(
                Payment.payment_date < datetime.combine(end_date + timedelta(days=1), time.min)
            )

        stmt = select(Payment).where(*conditions)
        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar()

        result = await self.db.execute(
            stmt.order_by(Payment.payment_date.desc()).offset(skip).limit(limit)
        )
        payments = list(result.scalars().all())

        by_mode_result = await self.db.execute(
            select(Payment.payment_mode, func.sum(Payment.amount), func.count(Payment.id))
            .where(*conditions)
            .group_by(Payment.payment_mode)
        )
        by_mode = {
            mode: {"amount": to_money(mode_total), "count": count}
            for mode, mode_total, count in by_mode_result.all()
        }

        return {
            "items": payments,
            "total": total,
            "stats": {
                "total_amount": money_sum(v["amount"] for v in by_mode.values()),
                "count": total,
                "by_mode": by_mode,
            },
        }

    # ==================== Internals ====================

    @staticmethod
    def _settle(invoice: Invoice) -> None:
        """Recompute due and status from paid and total."""
        invoice.due_amount = to_money(invoice.total_amount - invoice.paid_amount)
        invoice.payment_status = compute_payment_status(invoice.paid_amount, invoice.total_amount)
