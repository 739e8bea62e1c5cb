"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from hotelbilling.domain.entities import (
    AuditEntry,
    Booking,
    ExtraService,
    Invoice,
    InvoiceItem,
    LedgerTransaction,
    Payment,
    Room,
    RoomType,
    ServiceBooking,
    TransactionFilter,
    Vendor,
)


class Database(ABC):
    """Abstract database interface for hotelbilling."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into one transaction.

        Everything written inside the block is committed together when the
        block exits normally and rolled back when it raises. Nested blocks
        join the outermost one.
        """
        pass

    # Room type and room operations
    @abstractmethod
    def create_room_type(self, name: str, price: Decimal) -> int:
        """Create a room type. Returns room type ID."""
        pass

    @abstractmethod
    def get_room_type(self, room_type_id: int) -> Optional[RoomType]:
        """Get room type by ID."""
        pass

    @abstractmethod
    def list_room_types(self) -> list[RoomType]:
        """List all room types."""
        pass

    @abstractmethod
    def create_room(
        self, room_number: str, room_type_id: Optional[int], floor: int, status: str
    ) -> int:
        """Create a room. Returns room ID."""
        pass

    @abstractmethod
    def get_room(self, room_id: int) -> Optional[Room]:
        """Get room by ID."""
        pass

    @abstractmethod
    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        """Get room by its room number."""
        pass

    @abstractmethod
    def list_rooms(self) -> list[Room]:
        """List all rooms."""
        pass

    # Booking operations
    @abstractmethod
    def create_booking(
        self,
        guest_id: int,
        room_id: int,
        check_in: datetime,
        check_out: datetime,
        total_amount: Decimal,
        status: str,
        payment_status: str,
    ) -> int:
        """Create a booking. Returns booking ID."""
        pass

    @abstractmethod
    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Get booking by ID."""
        pass

    @abstractmethod
    def list_bookings_created(self, start: datetime, end: datetime) -> list[Booking]:
        """List bookings created within [start, end], newest first."""
        pass

    @abstractmethod
    def list_bookings_overlapping(self, start: datetime, end: datetime) -> list[Booking]:
        """List bookings whose stay overlaps [start, end]."""
        pass

    # Extra service operations
    @abstractmethod
    def create_extra_service(self, name: str, category: str, price: Decimal) -> int:
        """Create an extra service. Returns service ID."""
        pass

    @abstractmethod
    def get_extra_service(self, service_id: int) -> Optional[ExtraService]:
        """Get extra service by ID."""
        pass

    @abstractmethod
    def create_service_booking(
        self,
        service_id: int,
        guest_id: int,
        booking_id: Optional[int],
        quantity: int,
        unit_price: Decimal,
        total_amount: Decimal,
        status: str,
        payment_status: str,
    ) -> int:
        """Create a service booking. Returns service booking ID."""
        pass

    @abstractmethod
    def get_service_booking(self, service_booking_id: int) -> Optional[ServiceBooking]:
        """Get service booking by ID."""
        pass

    @abstractmethod
    def list_service_bookings_created(
        self, start: datetime, end: datetime
    ) -> list[ServiceBooking]:
        """List service bookings created within [start, end], newest first."""
        pass

    # Vendor operations
    @abstractmethod
    def create_vendor(
        self,
        name: str,
        phone: str,
        contact_person: Optional[str] = None,
        email: Optional[str] = None,
        outstanding_balance: Decimal = Decimal("0"),
    ) -> int:
        """Create a vendor. Returns vendor ID."""
        pass

    @abstractmethod
    def get_vendor(self, vendor_id: int) -> Optional[Vendor]:
        """Get vendor by ID."""
        pass

    @abstractmethod
    def list_vendors(self) -> list[Vendor]:
        """List all vendors by name."""
        pass

    @abstractmethod
    def update_vendor_totals(
        self,
        vendor_id: int,
        expected_outstanding_balance: Decimal,
        expected_total_paid: Decimal,
        outstanding_balance: Decimal,
        total_paid: Decimal,
        total_transactions: int,
    ) -> bool:
        """Compare-and-swap a vendor's running totals.

        The update only happens while the stored outstanding balance and
        total paid still equal the expected values. Returns True when a row
        was updated.
        """
        pass

    # Invoice operations
    @abstractmethod
    def next_invoice_number(self, prefix: str, year: int) -> str:
        """Reserve the next invoice number for a year."""
        pass

    @abstractmethod
    def create_invoice(
        self,
        invoice_number: str,
        booking_id: int,
        guest_id: int,
        room_id: int,
        check_in: datetime,
        check_out: datetime,
        items: list[InvoiceItem],
        subtotal: Decimal,
        tax: Decimal,
        discount: Decimal,
        total_amount: Decimal,
        paid_amount: Decimal,
        due_amount: Decimal,
        payment_status: str,
        notes: Optional[str] = None,
        issued_by: Optional[str] = None,
    ) -> int:
        """Create an invoice with its items. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        """Get invoice by ID, reading current values from the store."""
        pass

    @abstractmethod
    def list_invoices(
        self,
        booking_id: Optional[int] = None,
        statuses: Optional[list[str]] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Invoice]:
        """List invoices newest first."""
        pass

    @abstractmethod
    def count_invoices(
        self, booking_id: Optional[int] = None, statuses: Optional[list[str]] = None
    ) -> int:
        """Count invoices matching the same filters as list_invoices."""
        pass

    @abstractmethod
    def update_invoice_payment(
        self,
        invoice_id: int,
        expected_paid_amount: Decimal,
        paid_amount: Decimal,
        due_amount: Decimal,
        payment_status: str,
        payment_mode: Optional[str],
    ) -> bool:
        """Compare-and-swap the payment fields of an invoice.

        The update only happens while the stored paid amount still equals
        ``expected_paid_amount``. Returns True when a row was updated.
        """
        pass

    @abstractmethod
    def update_invoice_contents(
        self,
        invoice_id: int,
        expected_paid_amount: Decimal,
        items: Optional[list[InvoiceItem]],
        subtotal: Decimal,
        tax: Decimal,
        discount: Decimal,
        total_amount: Decimal,
        due_amount: Decimal,
        payment_status: str,
        notes: Optional[str],
    ) -> bool:
        """Compare-and-swap the billed contents of an invoice.

        Writes the totals and notes and, when ``items`` is given, replaces
        every line. Only happens while the stored paid amount still equals
        ``expected_paid_amount``. Returns True when the invoice was updated.
        """
        pass

    # Payment operations
    @abstractmethod
    def create_payment(
        self,
        invoice_id: Optional[int],
        amount: Decimal,
        payment_mode: str,
        payment_date: datetime,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        received_by: Optional[str] = None,
    ) -> int:
        """Create a payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: int) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(
        self,
        invoice_id: Optional[int] = None,
        payment_mode: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Payment]:
        """List payments by payment date, newest first."""
        pass

    @abstractmethod
    def get_payment_totals_by_mode(
        self,
        invoice_id: Optional[int] = None,
        payment_mode: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> dict[str, tuple[Decimal, int]]:
        """Map payment mode to (total amount, count) over matching payments."""
        pass

    # Ledger operations
    @abstractmethod
    def create_ledger_transaction(
        self,
        type: str,
        category: str,
        amount: Decimal,
        date: datetime,
        payment_mode: str,
        reference: Optional[str] = None,
        description: Optional[str] = None,
        booking_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
        created_by: Optional[str] = None,
    ) -> int:
        """Append a ledger transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_ledger_transaction(self, transaction_id: int) -> Optional[LedgerTransaction]:
        """Get ledger transaction by ID."""
        pass

    @abstractmethod
    def list_ledger_transactions(
        self,
        criteria: TransactionFilter,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[LedgerTransaction]:
        """List ledger transactions by date, newest first."""
        pass

    @abstractmethod
    def count_ledger_transactions(self, criteria: TransactionFilter) -> int:
        """Count ledger transactions matching a filter."""
        pass

    @abstractmethod
    def delete_ledger_transaction(self, transaction_id: int) -> None:
        """Delete a ledger transaction."""
        pass

    @abstractmethod
    def list_ledger_categories(self, type: Optional[str] = None) -> list[str]:
        """List distinct categories in use, optionally for one type."""
        pass

    # Audit operations
    @abstractmethod
    def create_audit_entry(
        self,
        entity_type: str,
        entity_id: int,
        action: str,
        changed_by: Optional[str] = None,
        field: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
        timestamp: Optional[datetime] = None,
    ) -> int:
        """Append an audit entry. Values must be JSON-compatible. Returns entry ID."""
        pass

    @abstractmethod
    def list_audit_entries(
        self, entity_type: Optional[str] = None, entity_id: Optional[int] = None
    ) -> list[AuditEntry]:
        """List audit entries oldest first."""
        pass
