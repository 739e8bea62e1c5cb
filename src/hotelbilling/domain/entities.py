"""Domain model entities for hotelbilling.

These are pure data classes representing billing concepts, independent of
database schema. Services hand these out; ORM rows never leave the database
layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class TransactionType(str, Enum):
    """Ledger bucket a transaction contributes to."""

    REVENUE = "revenue"
    EXPENSE = "expense"


class PaymentMode(str, Enum):
    """How money changed hands."""

    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"


class PaymentStatus(str, Enum):
    """Settlement progress of an invoice."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class ReportType(str, Enum):
    """Sections the reconciliation reporter can produce."""

    FINANCIAL = "financial"
    OCCUPANCY = "occupancy"
    BOOKINGS = "bookings"
    SERVICES = "services"
    ALL = "all"


class AuditAction(str, Enum):
    """Kind of change an audit entry records."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


class BookingPaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    REFUNDED = "refunded"


class ServiceBookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RoomType:
    """Room type domain entity."""

    id: int
    name: str
    price: Decimal
    created_at: datetime


@dataclass(frozen=True)
class Room:
    """Room domain entity."""

    id: int
    room_number: str
    room_type_id: Optional[int]
    floor: int
    status: RoomStatus
    created_at: datetime


@dataclass(frozen=True)
class Booking:
    """Room booking snapshot consumed by the invoice builder and reports."""

    id: int
    guest_id: int
    room_id: int
    check_in: datetime
    check_out: datetime
    total_amount: Decimal
    status: BookingStatus
    payment_status: BookingPaymentStatus
    created_at: datetime


@dataclass(frozen=True)
class ExtraService:
    """Bookable extra service (spa, laundry, ...)."""

    id: int
    name: str
    category: str
    price: Decimal
    created_at: datetime


@dataclass(frozen=True)
class ServiceBooking:
    """A guest's booking of an extra service."""

    id: int
    service_id: int
    guest_id: int
    booking_id: Optional[int]
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    status: ServiceBookingStatus
    payment_status: BookingPaymentStatus
    created_at: datetime


@dataclass(frozen=True)
class Vendor:
    """Supplier the hotel pays."""

    id: int
    name: str
    phone: str
    contact_person: Optional[str]
    email: Optional[str]
    outstanding_balance: Decimal
    total_paid: Decimal
    total_transactions: int
    created_at: datetime


@dataclass(frozen=True)
class LedgerTransaction:
    """Immutable revenue or expense record."""

    id: int
    type: TransactionType
    category: str
    amount: Decimal
    date: datetime
    payment_mode: PaymentMode
    reference: Optional[str]
    description: Optional[str]
    booking_id: Optional[int]
    vendor_id: Optional[int]
    invoice_id: Optional[int]
    created_by: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class InvoiceItem:
    """Single invoice line; amount is always quantity * rate."""

    description: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Invoice:
    """Invoice domain entity with running payment totals."""

    id: int
    invoice_number: str
    booking_id: int
    guest_id: int
    room_id: int
    check_in: datetime
    check_out: datetime
    items: tuple[InvoiceItem, ...]
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    due_amount: Decimal
    payment_status: PaymentStatus
    payment_mode: Optional[PaymentMode]
    notes: Optional[str]
    issued_by: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Payment:
    """Money-received event, optionally tied to an invoice."""

    id: int
    invoice_id: Optional[int]
    amount: Decimal
    payment_mode: PaymentMode
    payment_date: datetime
    reference: Optional[str]
    notes: Optional[str]
    received_by: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class InvoiceState:
    """Derived settlement fields of an invoice."""

    due_amount: Decimal
    payment_status: PaymentStatus


@dataclass(frozen=True)
class PaymentResult:
    """Everything one applied payment touched, for a single confirmation."""

    payment: Payment
    invoice: Optional[Invoice]
    transaction: LedgerTransaction


@dataclass(frozen=True)
class VendorPaymentResult:
    """Outcome of paying a vendor."""

    vendor: Vendor
    transaction: LedgerTransaction


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria for ledger queries. Date bounds are inclusive."""

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    payment_mode: Optional[PaymentMode] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    booking_id: Optional[int] = None
    vendor_id: Optional[int] = None
    invoice_id: Optional[int] = None


@dataclass(frozen=True)
class Page:
    """One page of a paginated query."""

    items: tuple[Any, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total // self.limit)


@dataclass(frozen=True)
class PaymentStats:
    """Aggregate over every payment matching a filter."""

    total_amount: Decimal
    count: int
    by_mode: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class DateRange:
    """Inclusive, time-zone aware reporting window."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class AuditEntry:
    """One recorded change to a billing record.

    ``field`` is set for updates of a single attribute; old and new values
    are JSON-compatible snapshots.
    """

    id: int
    entity_type: str
    entity_id: int
    action: AuditAction
    changed_by: Optional[str]
    field: Optional[str]
    old_value: Any
    new_value: Any
    timestamp: datetime
