"""Invoice domain service.

Turns a booking snapshot plus optional extra lines into a priced invoice.
The settlement fields (due amount and payment status) are derived in one
place, ``derive_invoice_state``, and every path that writes an invoice goes
through it.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, tzinfo
from decimal import Decimal, ROUND_DOWN
from typing import Optional

from dateutil import tz

from hotelbilling.config import DEFAULT_INVOICE_PREFIX
from hotelbilling.database.base import Database
from hotelbilling.domain.audit import ENTITY_INVOICE, AuditService
from hotelbilling.domain.entities import (
    Booking,
    Invoice,
    InvoiceItem,
    InvoiceState,
    Page,
    PaymentStatus,
)
from hotelbilling.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    booking_not_found,
    invoice_modified_concurrently,
    invoice_not_found,
)
from hotelbilling.domain.validation import (
    clean_text,
    require_money,
    require_non_negative,
    require_number,
    require_page,
)
from hotelbilling.utils.amount_parser import CENT
from hotelbilling.utils.date_parser import localize

logger = logging.getLogger(__name__)

QUANTITY_PLACES = Decimal("0.001")
ROOM_CHARGE_LABEL = "Room Charges ({nights} nights)"


def derive_invoice_state(total_amount: Decimal, paid_amount: Decimal) -> InvoiceState:
    """Derive due amount and payment status from the invoice totals.

    The due amount is always ``total - paid`` and goes negative for invoices
    imported with more paid than billed; such invoices count as paid.
    """
    due_amount = total_amount - paid_amount
    if paid_amount >= total_amount:
        status = PaymentStatus.PAID
    elif paid_amount == 0:
        status = PaymentStatus.PENDING
    else:
        status = PaymentStatus.PARTIAL
    return InvoiceState(due_amount=due_amount, payment_status=status)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """Number of billable nights, rounding part days up.

    A same-day stay bills one night.

    Raises:
        ValidationError: If check-out is before check-in
    """
    stay = check_out - check_in
    if stay < timedelta(0):
        raise ValidationError("Booking check-out is before check-in")
    return max(1, math.ceil(stay / timedelta(days=1)))


def room_charge_items(booking: Booking) -> list[InvoiceItem]:
    """Build the room charge line(s) for a booking.

    The nightly rate is the booking total split over the nights, rounded
    down to the cent. When the total does not split evenly the leftover
    cents go on a separate one-unit line so every line keeps
    ``amount == quantity * rate`` and the lines still add up to the booking
    total. A total too small to give every night a cent is billed as a
    single one-unit line.
    """
    nights = count_nights(booking.check_in, booking.check_out)
    total = booking.total_amount.quantize(CENT)
    rate = (total / nights).quantize(CENT, rounding=ROUND_DOWN)
    label = ROOM_CHARGE_LABEL.format(nights=nights)
    if rate == 0:
        return [InvoiceItem(description=label, quantity=Decimal(1), rate=total, amount=total)]

    items = [
        InvoiceItem(description=label, quantity=Decimal(nights), rate=rate, amount=rate * nights)
    ]

    remainder = total - rate * nights
    if remainder:
        items.append(
            InvoiceItem(
                description="Room Charges (rounding)",
                quantity=Decimal(1),
                rate=remainder,
                amount=remainder,
            )
        )
    return items


def build_extra_item(raw: Mapping, position: int) -> InvoiceItem:
    """Validate a caller supplied line and compute its amount.

    Args:
        raw: Mapping with ``description``, ``quantity`` and ``rate``; an
            ``amount`` may be given but must equal quantity * rate
        position: 1-based index used in error messages

    Raises:
        ValidationError: If the line is malformed or its amount is not positive
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Item {position}: expected a mapping, got {type(raw).__name__}")

    description = clean_text(raw.get("description"))
    if description is None:
        raise ValidationError(f"Item {position}: description is required")

    quantity = require_number(raw.get("quantity"), f"Item {position} quantity")
    if quantity <= 0:
        raise ValidationError(f"Item {position}: quantity must be greater than 0")
    if quantity != quantity.quantize(QUANTITY_PLACES):
        raise ValidationError(f"Item {position}: quantity allows at most three decimal places")
    rate = require_money(raw.get("rate"), f"Item {position} rate")

    amount = quantity * rate
    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"Item {position}: {quantity} x {rate} does not come to a whole number of cents"
        )
    amount = amount.quantize(CENT)
    if amount <= 0:
        raise ValidationError(f"Item {position}: amount must be greater than 0")

    if raw.get("amount") is not None:
        supplied = require_number(raw.get("amount"), f"Item {position} amount")
        if supplied != amount:
            raise ValidationError(
                f"Item {position}: amount {supplied} does not match quantity x rate ({amount})"
            )

    return InvoiceItem(description=description, quantity=quantity, rate=rate, amount=amount)


class InvoiceService:
    """Service for building and reading invoices."""

    def __init__(
        self,
        db: Database,
        invoice_prefix: str = DEFAULT_INVOICE_PREFIX,
        timezone: tzinfo = tz.UTC,
    ):
        """Initialize invoice service.

        Args:
            db: Database instance
            invoice_prefix: Prefix for generated invoice numbers
            timezone: Zone whose calendar year scopes the invoice numbers
        """
        self.db = db
        self.invoice_prefix = invoice_prefix
        self.timezone = timezone
        self.audit = AuditService(db)

    def build_invoice(
        self,
        booking_id: int,
        extra_items: Optional[Sequence[Mapping]] = None,
        tax=None,
        discount=None,
        notes: Optional[str] = None,
        issued_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Invoice:
        """Create an invoice for a booking.

        The first line is always the room charge for the stay; extra items
        follow in the order given.

        Args:
            booking_id: Booking to bill
            extra_items: Optional sequence of {description, quantity, rate}
            tax: Tax amount, defaults to 0
            discount: Discount amount, defaults to 0
            notes: Optional free text
            issued_by: Actor identifier from the session context
            now: Issue time, defaults to the current time

        Returns:
            The persisted invoice

        Raises:
            NotFoundError: If the booking does not exist
            ValidationError: If any line or amount is invalid
        """
        booking = self.db.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(booking_not_found(booking_id))

        items = room_charge_items(booking)
        if sum(item.amount for item in items) <= 0:
            raise ValidationError(f"Booking {booking_id} has no room charges to invoice")
        for position, raw in enumerate(extra_items or (), start=2):
            items.append(build_extra_item(raw, position))

        tax_amount = require_non_negative(tax, "Tax")
        discount_amount = require_non_negative(discount, "Discount")
        subtotal = sum((item.amount for item in items), Decimal("0.00"))
        total_amount = subtotal + tax_amount - discount_amount
        if total_amount < 0:
            raise ValidationError(
                f"Discount {discount_amount} exceeds subtotal plus tax ({subtotal + tax_amount})"
            )

        paid_amount = Decimal("0.00")
        state = derive_invoice_state(total_amount, paid_amount)
        issued_at = localize(now, self.timezone) if now is not None else datetime.now(self.timezone)

        with self.db.atomic():
            invoice_number = self.db.next_invoice_number(self.invoice_prefix, issued_at.year)
            invoice_id = self.db.create_invoice(
                invoice_number=invoice_number,
                booking_id=booking.id,
                guest_id=booking.guest_id,
                room_id=booking.room_id,
                check_in=booking.check_in,
                check_out=booking.check_out,
                items=items,
                subtotal=subtotal,
                tax=tax_amount,
                discount=discount_amount,
                total_amount=total_amount,
                paid_amount=paid_amount,
                due_amount=state.due_amount,
                payment_status=state.payment_status.value,
                notes=clean_text(notes),
                issued_by=issued_by,
            )
            self.audit.record(
                ENTITY_INVOICE,
                invoice_id,
                "create",
                changed_by=issued_by,
                new_value={"invoice_number": invoice_number, "total_amount": total_amount},
            )

        logger.info(
            "Created invoice %s for booking %s: total %s", invoice_number, booking_id, total_amount
        )
        return self.require_invoice(invoice_id)

    def update_invoice(
        self,
        invoice_id: int,
        items: Optional[Sequence[Mapping]] = None,
        tax=None,
        discount=None,
        notes: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> Invoice:
        """Edit the billed contents of an invoice.

        Arguments left as None keep their current value. ``items`` replaces
        every line, room charges included, and each line is validated like an
        extra item on a new invoice. A blank ``notes`` clears the notes.
        Subtotal, total, due amount and payment status are recomputed against
        the paid amount read here; the write fails if a payment lands in
        between.

        Args:
            invoice_id: Invoice to edit
            items: Optional full replacement list of {description, quantity, rate}
            tax: New tax amount
            discount: New discount amount
            notes: New notes
            updated_by: Actor identifier from the session context

        Returns:
            The updated invoice

        Raises:
            NotFoundError: If the invoice does not exist
            ValidationError: If any line or amount is invalid
            ConflictError: If the invoice's paid amount changed during the edit
        """
        invoice = self.require_invoice(invoice_id)

        new_items = None
        if items is not None:
            if isinstance(items, (str, Mapping)) or not items:
                raise ValidationError("Invoice items must be a non-empty list")
            new_items = [
                build_extra_item(raw, position) for position, raw in enumerate(items, start=1)
            ]
        line_items = new_items if new_items is not None else list(invoice.items)

        tax_amount = require_non_negative(tax, "Tax") if tax is not None else invoice.tax
        discount_amount = (
            require_non_negative(discount, "Discount") if discount is not None else invoice.discount
        )
        subtotal = sum((item.amount for item in line_items), Decimal("0.00"))
        total_amount = subtotal + tax_amount - discount_amount
        if total_amount < 0:
            raise ValidationError(
                f"Discount {discount_amount} exceeds subtotal plus tax ({subtotal + tax_amount})"
            )
        new_notes = clean_text(notes) if notes is not None else invoice.notes
        state = derive_invoice_state(total_amount, invoice.paid_amount)

        changes = [
            (field, old, new)
            for field, old, new in (
                ("items", list(invoice.items), line_items),
                ("tax", invoice.tax, tax_amount),
                ("discount", invoice.discount, discount_amount),
                ("notes", invoice.notes, new_notes),
            )
            if old != new
        ]

        with self.db.atomic():
            updated = self.db.update_invoice_contents(
                invoice_id=invoice.id,
                expected_paid_amount=invoice.paid_amount,
                items=new_items,
                subtotal=subtotal,
                tax=tax_amount,
                discount=discount_amount,
                total_amount=total_amount,
                due_amount=state.due_amount,
                payment_status=state.payment_status.value,
                notes=new_notes,
            )
            if not updated:
                logger.warning("Invoice %s changed while being edited", invoice.invoice_number)
                raise ConflictError(invoice_modified_concurrently(invoice.invoice_number))
            for field, old, new in changes:
                self.audit.record(
                    ENTITY_INVOICE,
                    invoice.id,
                    "update",
                    changed_by=updated_by,
                    field=field,
                    old_value=old,
                    new_value=new,
                )

        logger.info(
            "Updated invoice %s: total %s, due %s (%s)",
            invoice.invoice_number,
            total_amount,
            state.due_amount,
            state.payment_status.value,
        )
        return self.require_invoice(invoice.id)

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID.

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice entity or None if not found
        """
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: int) -> Invoice:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self,
        booking_id: Optional[int] = None,
        statuses: Optional[Sequence[str]] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Page:
        """List invoices newest first.

        Args:
            booking_id: Only invoices for this booking
            statuses: Only invoices in one of these payment statuses
            page: 1-based page number
            limit: Page size

        Returns:
            Page of Invoice entities
        """
        offset, limit = require_page(page, limit)
        status_values = None
        if statuses:
            try:
                status_values = [PaymentStatus(s.strip().lower()).value for s in statuses]
            except ValueError as e:
                raise ValidationError(f"Invalid payment status filter: {e}")

        invoices = self.db.list_invoices(
            booking_id=booking_id, statuses=status_values, offset=offset, limit=limit
        )
        total = self.db.count_invoices(booking_id=booking_id, statuses=status_values)
        return Page(items=tuple(invoices), page=page, limit=limit, total=total)
