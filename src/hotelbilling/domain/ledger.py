"""Ledger domain service.

The ledger is append-only from the billing core's point of view: entries are
recorded and queried, never updated. ``delete_transaction`` exists for the
manual revenue/expense screens and has no cascading effects.
"""

import logging
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Optional

from dateutil import tz

from hotelbilling.database.base import Database
from hotelbilling.domain.audit import ENTITY_TRANSACTION, AuditService
from hotelbilling.domain.entities import LedgerTransaction, Page, TransactionFilter
from hotelbilling.domain.errors import NotFoundError, ValidationError, transaction_not_found
from hotelbilling.domain.validation import (
    clean_text,
    parse_payment_mode,
    parse_transaction_type,
    require_page,
    require_positive_amount,
)
from hotelbilling.utils.date_parser import to_utc

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording and querying ledger transactions."""

    def __init__(self, db: Database, timezone: tzinfo = tz.UTC):
        """Initialize ledger service.

        Args:
            db: Database instance
            timezone: Zone used to read naive datetimes
        """
        self.db = db
        self.timezone = timezone
        self.audit = AuditService(db)

    def record_transaction(
        self,
        type,
        category: str,
        amount,
        payment_mode,
        date: Optional[datetime] = None,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        booking_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> LedgerTransaction:
        """Append a revenue or expense entry.

        Args:
            type: "revenue" or "expense"
            category: Free-form category, e.g. "Room Booking"
            amount: Positive amount
            payment_mode: cash, card, upi or netbanking
            date: When the money moved; defaults to now. Naive values are
                read in the configured time zone.
            reference: Optional external reference
            description: Optional description
            booking_id: Optional linked booking
            vendor_id: Optional linked vendor
            invoice_id: Optional linked invoice
            created_by: Actor identifier from the session context

        Returns:
            The stored transaction

        Raises:
            ValidationError: If type, category, amount or payment mode is invalid
        """
        txn_type = parse_transaction_type(type)
        mode = parse_payment_mode(payment_mode)
        category = clean_text(category)
        if category is None:
            raise ValidationError("Category is required")
        amount = require_positive_amount(amount)
        when = to_utc(date, self.timezone) if date is not None else datetime.now(tz.UTC)

        with self.db.atomic():
            transaction_id = self.db.create_ledger_transaction(
                type=txn_type.value,
                category=category,
                amount=amount,
                date=when,
                payment_mode=mode.value,
                reference=clean_text(reference),
                description=clean_text(description),
                booking_id=booking_id,
                vendor_id=vendor_id,
                invoice_id=invoice_id,
                created_by=created_by,
            )
            self.audit.record(
                ENTITY_TRANSACTION,
                transaction_id,
                "create",
                changed_by=created_by,
                new_value={"type": txn_type, "category": category, "amount": amount},
            )
        logger.debug("Recorded %s %s in '%s'", txn_type.value, amount, category)
        return self.require_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[LedgerTransaction]:
        """Get ledger transaction by ID."""
        return self.db.get_ledger_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> LedgerTransaction:
        """Get ledger transaction by ID or raise NotFoundError."""
        txn = self.db.get_ledger_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def query_transactions(
        self,
        criteria: Optional[TransactionFilter] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Page:
        """Query ledger transactions, newest first.

        Args:
            criteria: Filter; date bounds are inclusive and naive values
                are read in the configured time zone
            page: 1-based page number
            limit: Page size

        Returns:
            Page of LedgerTransaction entities
        """
        offset, limit = require_page(page, limit)
        criteria = self._normalize_filter(criteria or TransactionFilter())
        transactions = self.db.list_ledger_transactions(criteria, offset=offset, limit=limit)
        total = self.db.count_ledger_transactions(criteria)
        return Page(items=tuple(transactions), page=page, limit=limit, total=total)

    def list_all(self, criteria: Optional[TransactionFilter] = None) -> list[LedgerTransaction]:
        """Every matching transaction, newest first, without pagination."""
        criteria = self._normalize_filter(criteria or TransactionFilter())
        return self.db.list_ledger_transactions(criteria)

    def delete_transaction(self, transaction_id: int, deleted_by: Optional[str] = None) -> None:
        """Remove a manually entered transaction.

        Args:
            transaction_id: Transaction to delete
            deleted_by: Actor identifier from the session context

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        txn = self.require_transaction(transaction_id)
        with self.db.atomic():
            self.db.delete_ledger_transaction(transaction_id)
            self.audit.record(
                ENTITY_TRANSACTION,
                transaction_id,
                "delete",
                changed_by=deleted_by,
                old_value={"type": txn.type, "category": txn.category, "amount": txn.amount},
            )
        logger.info("Deleted ledger transaction %s", transaction_id)

    def list_categories(self, type=None) -> list[str]:
        """Distinct categories in use, optionally for one transaction type."""
        txn_type = parse_transaction_type(type).value if type is not None else None
        return self.db.list_ledger_categories(txn_type)

    def _normalize_filter(self, criteria: TransactionFilter) -> TransactionFilter:
        start = to_utc(criteria.start, self.timezone) if criteria.start is not None else None
        end = to_utc(criteria.end, self.timezone) if criteria.end is not None else None
        if start is not None and end is not None and end < start:
            raise ValidationError("End date must not be before start date")
        return replace(
            criteria,
            type=parse_transaction_type(criteria.type) if criteria.type is not None else None,
            payment_mode=(
                parse_payment_mode(criteria.payment_mode)
                if criteria.payment_mode is not None
                else None
            ),
            category=clean_text(criteria.category),
            start=start,
            end=end,
        )
