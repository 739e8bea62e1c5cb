"""Payment domain service.

Applying a payment writes three records: the payment, the invoice's running
totals and a revenue ledger entry. They are written in one atomic block and
the invoice update is a compare-and-swap on the paid amount read during
validation, so a concurrent payment cannot push an invoice past its total.
"""

import logging
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Optional

from dateutil import tz

from hotelbilling.database.base import Database
from hotelbilling.domain.audit import ENTITY_INVOICE, ENTITY_PAYMENT, AuditService
from hotelbilling.domain.entities import Page, PaymentResult, PaymentStats
from hotelbilling.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    PAYMENT_EXCEEDS_DUE,
    invoice_modified_concurrently,
    invoice_not_found,
)
from hotelbilling.domain.invoice import derive_invoice_state
from hotelbilling.domain.ledger import LedgerService
from hotelbilling.domain.validation import (
    clean_text,
    parse_payment_mode,
    require_page,
    require_positive_amount,
)
from hotelbilling.utils.date_parser import to_utc

logger = logging.getLogger(__name__)

INVOICE_PAYMENT_CATEGORY = "Room Booking"
DIRECT_PAYMENT_CATEGORY = "Others"
DIRECT_PAYMENT_DESCRIPTION = "Payment received"


class PaymentService:
    """Service for applying and listing payments."""

    def __init__(self, db: Database, timezone: tzinfo = tz.UTC):
        """Initialize payment service.

        Args:
            db: Database instance
            timezone: Zone used to read naive datetimes
        """
        self.db = db
        self.timezone = timezone
        self.ledger = LedgerService(db, timezone=timezone)
        self.audit = AuditService(db)

    def apply_payment(
        self,
        amount,
        payment_mode,
        invoice_id: Optional[int] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        received_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PaymentResult:
        """Record a payment, settle it against an invoice and post it to the ledger.

        Not idempotent: every call creates a new payment and ledger entry.

        Args:
            amount: Amount received, greater than zero
            payment_mode: cash, card, upi or netbanking
            invoice_id: Invoice to settle; None records a direct payment
            reference: Optional external reference; for invoice payments the
                ledger entry falls back to the invoice number
            notes: Optional notes; for direct payments also the ledger description
            received_by: Actor identifier from the session context
            now: Payment time, defaults to the current time

        Returns:
            PaymentResult with the payment, the updated invoice (if any) and
            the ledger transaction

        Raises:
            ValidationError: Non-positive amount, missing or unknown payment
                mode, or an amount above the invoice's due amount
            NotFoundError: If the invoice does not exist
            ConflictError: If the invoice changed while the payment was applied
        """
        amount = require_positive_amount(amount, "Payment amount")
        mode = parse_payment_mode(payment_mode)
        reference = clean_text(reference)
        notes = clean_text(notes)
        paid_at = to_utc(now, self.timezone) if now is not None else datetime.now(tz.UTC)

        invoice = None
        if invoice_id is not None:
            invoice = self.db.get_invoice(invoice_id)
            if invoice is None:
                raise NotFoundError(invoice_not_found(invoice_id))
            if amount > invoice.due_amount:
                logger.warning(
                    "Rejected payment of %s on invoice %s: due amount is %s",
                    amount,
                    invoice.invoice_number,
                    invoice.due_amount,
                )
                raise ValidationError(PAYMENT_EXCEEDS_DUE)

        with self.db.atomic():
            payment_id = self.db.create_payment(
                invoice_id=invoice_id,
                amount=amount,
                payment_mode=mode.value,
                payment_date=paid_at,
                reference=reference,
                notes=notes,
                received_by=received_by,
            )
            self.audit.record(
                ENTITY_PAYMENT,
                payment_id,
                "create",
                changed_by=received_by,
                new_value={"amount": amount, "payment_mode": mode, "invoice_id": invoice_id},
            )

            if invoice is not None:
                paid_amount = invoice.paid_amount + amount
                state = derive_invoice_state(invoice.total_amount, paid_amount)
                updated = self.db.update_invoice_payment(
                    invoice_id=invoice.id,
                    expected_paid_amount=invoice.paid_amount,
                    paid_amount=paid_amount,
                    due_amount=state.due_amount,
                    payment_status=state.payment_status.value,
                    payment_mode=mode.value if invoice.payment_mode is None else None,
                )
                if not updated:
                    logger.warning(
                        "Invoice %s changed while applying payment", invoice.invoice_number
                    )
                    raise ConflictError(invoice_modified_concurrently(invoice.invoice_number))
                self.audit.record(
                    ENTITY_INVOICE,
                    invoice.id,
                    "update",
                    changed_by=received_by,
                    field="paid_amount",
                    old_value=invoice.paid_amount,
                    new_value=paid_amount,
                )

                transaction = self.ledger.record_transaction(
                    type="revenue",
                    category=INVOICE_PAYMENT_CATEGORY,
                    amount=amount,
                    payment_mode=mode,
                    date=paid_at,
                    reference=reference or invoice.invoice_number,
                    description=f"Payment for invoice {invoice.invoice_number}",
                    booking_id=invoice.booking_id,
                    invoice_id=invoice.id,
                    created_by=received_by,
                )
            else:
                transaction = self.ledger.record_transaction(
                    type="revenue",
                    category=DIRECT_PAYMENT_CATEGORY,
                    amount=amount,
                    payment_mode=mode,
                    date=paid_at,
                    reference=reference,
                    description=notes or DIRECT_PAYMENT_DESCRIPTION,
                    created_by=received_by,
                )

        payment = self.db.get_payment(payment_id)
        updated_invoice = self.db.get_invoice(invoice.id) if invoice is not None else None
        if updated_invoice is not None:
            logger.info(
                "Applied %s %s to invoice %s: paid %s, due %s (%s)",
                mode.value,
                amount,
                updated_invoice.invoice_number,
                updated_invoice.paid_amount,
                updated_invoice.due_amount,
                updated_invoice.payment_status.value,
            )
        else:
            logger.info("Recorded direct %s payment of %s", mode.value, amount)
        return PaymentResult(payment=payment, invoice=updated_invoice, transaction=transaction)

    def list_payments(
        self,
        invoice_id: Optional[int] = None,
        payment_mode=None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[Page, PaymentStats]:
        """List payments newest first, with totals over the whole filter.

        Args:
            invoice_id: Only payments against this invoice
            payment_mode: Only payments in this mode
            start: Inclusive lower bound on payment date
            end: Inclusive upper bound on payment date
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (page of Payment entities, PaymentStats)
        """
        offset, limit = require_page(page, limit)
        mode = parse_payment_mode(payment_mode).value if payment_mode is not None else None
        start = to_utc(start, self.timezone) if start is not None else None
        end = to_utc(end, self.timezone) if end is not None else None
        filters = dict(invoice_id=invoice_id, payment_mode=mode, start=start, end=end)

        payments = self.db.list_payments(offset=offset, limit=limit, **filters)
        totals = self.db.get_payment_totals_by_mode(**filters)

        by_mode = {m: total for m, (total, _count) in sorted(totals.items())}
        stats = PaymentStats(
            total_amount=sum(by_mode.values(), Decimal("0.00")),
            count=sum(count for _total, count in totals.values()),
            by_mode=by_mode,
        )
        return Page(items=tuple(payments), page=page, limit=limit, total=stats.count), stats

    def get_payment(self, payment_id: int):
        """Get payment by ID, or None if not found."""
        return self.db.get_payment(payment_id)
