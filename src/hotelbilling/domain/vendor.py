"""Vendor domain service."""

import logging
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Optional

from dateutil import tz

from hotelbilling.database.base import Database
from hotelbilling.domain.entities import Vendor, VendorPaymentResult
from hotelbilling.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    PAYMENT_EXCEEDS_OUTSTANDING,
    vendor_modified_concurrently,
    vendor_not_found,
)
from hotelbilling.domain.ledger import LedgerService
from hotelbilling.domain.validation import (
    clean_text,
    parse_payment_mode,
    require_non_negative,
    require_positive_amount,
)

logger = logging.getLogger(__name__)

VENDOR_PAYMENT_CATEGORY = "Vendor Payments"


class VendorService:
    """Service for managing vendors and paying them."""

    def __init__(self, db: Database, timezone: tzinfo = tz.UTC):
        """Initialize vendor service.

        Args:
            db: Database instance
            timezone: Zone used to read naive datetimes
        """
        self.db = db
        self.timezone = timezone
        self.ledger = LedgerService(db, timezone=timezone)

    def create_vendor(
        self,
        name: str,
        phone: str,
        contact_person: Optional[str] = None,
        email: Optional[str] = None,
        outstanding_balance=None,
    ) -> Vendor:
        """Create a new vendor.

        Args:
            name: Vendor name
            phone: Contact phone number
            contact_person: Optional contact name
            email: Optional email address
            outstanding_balance: Amount currently owed, defaults to 0

        Returns:
            The created vendor

        Raises:
            ValidationError: If name or phone is missing, the name is taken,
                or the balance is negative
        """
        name = clean_text(name)
        phone = clean_text(phone)
        if name is None:
            raise ValidationError("Vendor name is required")
        if phone is None:
            raise ValidationError("Vendor phone is required")
        for existing in self.db.list_vendors():
            if existing.name.lower() == name.lower():
                raise ValidationError(f"Vendor with name '{name}' already exists")
        balance = require_non_negative(outstanding_balance, "Outstanding balance")

        vendor_id = self.db.create_vendor(
            name=name,
            phone=phone,
            contact_person=clean_text(contact_person),
            email=clean_text(email),
            outstanding_balance=balance,
        )
        logger.info("Created vendor '%s' (ID: %s)", name, vendor_id)
        return self.require_vendor(vendor_id)

    def get_vendor(self, vendor_id: int) -> Optional[Vendor]:
        """Get vendor by ID.

        Args:
            vendor_id: Vendor ID

        Returns:
            Vendor entity or None if not found
        """
        return self.db.get_vendor(vendor_id)

    def require_vendor(self, vendor_id: int) -> Vendor:
        """Get vendor by ID or raise NotFoundError."""
        vendor = self.db.get_vendor(vendor_id)
        if vendor is None:
            raise NotFoundError(vendor_not_found(vendor_id))
        return vendor

    def list_vendors(self) -> list[Vendor]:
        """List all vendors.

        Returns:
            List of vendor entities
        """
        return self.db.list_vendors()

    def pay_vendor(
        self,
        vendor_id: int,
        amount,
        payment_mode,
        description: Optional[str] = None,
        reference: Optional[str] = None,
        created_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> VendorPaymentResult:
        """Pay down a vendor's outstanding balance.

        Records a "Vendor Payments" expense and updates the vendor's running
        totals in one atomic block.

        Raises:
            NotFoundError: If the vendor does not exist
            ValidationError: If the amount is not positive or exceeds the
                outstanding balance, or the payment mode is invalid
            ConflictError: If the vendor's totals changed while the payment
                was recorded
        """
        amount = require_positive_amount(amount, "Payment amount")
        mode = parse_payment_mode(payment_mode)
        vendor = self.require_vendor(vendor_id)

        if amount > vendor.outstanding_balance:
            logger.warning(
                "Rejected vendor payment of %s to '%s': outstanding balance is %s",
                amount,
                vendor.name,
                vendor.outstanding_balance,
            )
            raise ValidationError(PAYMENT_EXCEEDS_OUTSTANDING)

        with self.db.atomic():
            transaction = self.ledger.record_transaction(
                type="expense",
                category=VENDOR_PAYMENT_CATEGORY,
                amount=amount,
                payment_mode=mode,
                date=now,
                reference=reference,
                description=clean_text(description) or f"Payment to {vendor.name}",
                vendor_id=vendor.id,
                created_by=created_by,
            )
            updated = self.db.update_vendor_totals(
                vendor_id=vendor.id,
                expected_outstanding_balance=vendor.outstanding_balance,
                expected_total_paid=vendor.total_paid,
                outstanding_balance=max(Decimal("0.00"), vendor.outstanding_balance - amount),
                total_paid=vendor.total_paid + amount,
                total_transactions=vendor.total_transactions + 1,
            )
            if not updated:
                logger.warning("Vendor '%s' changed while recording a payment", vendor.name)
                raise ConflictError(vendor_modified_concurrently(vendor.name))

        updated = self.require_vendor(vendor.id)
        logger.info(
            "Paid %s to vendor '%s', outstanding %s",
            amount,
            updated.name,
            updated.outstanding_balance,
        )
        return VendorPaymentResult(vendor=updated, transaction=transaction)
