"""Mapper functions to convert SQLAlchemy models into domain entities.

Stored naive UTC timestamps come out as aware UTC datetimes.
"""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Optional

from hotelbilling.domain import entities as domain
from hotelbilling.database.models import (
    RoomType as ORMRoomType,
    Room as ORMRoom,
    Booking as ORMBooking,
    ExtraService as ORMExtraService,
    ServiceBooking as ORMServiceBooking,
    Vendor as ORMVendor,
    Invoice as ORMInvoice,
    InvoiceItem as ORMInvoiceItem,
    Payment as ORMPayment,
    LedgerTransaction as ORMLedgerTransaction,
    AuditLog as ORMAuditLog,
)
from hotelbilling.utils.amount_parser import to_money


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mark a stored naive timestamp as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_storage(value: datetime) -> datetime:
    """Convert an aware datetime to the naive UTC storage form."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _money(value) -> Decimal:
    return to_money(value) if value is not None else Decimal("0.00")


def room_type_to_domain(orm_room_type: ORMRoomType) -> domain.RoomType:
    """Convert SQLAlchemy RoomType model to domain RoomType entity."""
    return domain.RoomType(
        id=orm_room_type.id,
        name=orm_room_type.name,
        price=_money(orm_room_type.price),
        created_at=as_utc(orm_room_type.created_at),
    )


def room_to_domain(orm_room: ORMRoom) -> domain.Room:
    """Convert SQLAlchemy Room model to domain Room entity."""
    return domain.Room(
        id=orm_room.id,
        room_number=orm_room.room_number,
        room_type_id=orm_room.room_type_id,
        floor=orm_room.floor,
        status=domain.RoomStatus(orm_room.status),
        created_at=as_utc(orm_room.created_at),
    )


def booking_to_domain(orm_booking: ORMBooking) -> domain.Booking:
    """Convert SQLAlchemy Booking model to domain Booking entity."""
    return domain.Booking(
        id=orm_booking.id,
        guest_id=orm_booking.guest_id,
        room_id=orm_booking.room_id,
        check_in=as_utc(orm_booking.check_in),
        check_out=as_utc(orm_booking.check_out),
        total_amount=_money(orm_booking.total_amount),
        status=domain.BookingStatus(orm_booking.status),
        payment_status=domain.BookingPaymentStatus(orm_booking.payment_status),
        created_at=as_utc(orm_booking.created_at),
    )


def extra_service_to_domain(orm_service: ORMExtraService) -> domain.ExtraService:
    """Convert SQLAlchemy ExtraService model to domain ExtraService entity."""
    return domain.ExtraService(
        id=orm_service.id,
        name=orm_service.name,
        category=orm_service.category,
        price=_money(orm_service.price),
        created_at=as_utc(orm_service.created_at),
    )


def service_booking_to_domain(orm_booking: ORMServiceBooking) -> domain.ServiceBooking:
    """Convert SQLAlchemy ServiceBooking model to domain ServiceBooking entity."""
    return domain.ServiceBooking(
        id=orm_booking.id,
        service_id=orm_booking.service_id,
        guest_id=orm_booking.guest_id,
        booking_id=orm_booking.booking_id,
        quantity=orm_booking.quantity,
        unit_price=_money(orm_booking.unit_price),
        total_amount=_money(orm_booking.total_amount),
        status=domain.ServiceBookingStatus(orm_booking.status),
        payment_status=domain.BookingPaymentStatus(orm_booking.payment_status),
        created_at=as_utc(orm_booking.created_at),
    )


def vendor_to_domain(orm_vendor: ORMVendor) -> domain.Vendor:
    """Convert SQLAlchemy Vendor model to domain Vendor entity."""
    return domain.Vendor(
        id=orm_vendor.id,
        name=orm_vendor.name,
        phone=orm_vendor.phone,
        contact_person=orm_vendor.contact_person,
        email=orm_vendor.email,
        outstanding_balance=_money(orm_vendor.outstanding_balance),
        total_paid=_money(orm_vendor.total_paid),
        total_transactions=orm_vendor.total_transactions or 0,
        created_at=as_utc(orm_vendor.created_at),
    )


def _quantity(value) -> Decimal:
    # Numeric(12, 3) pads to three places; drop the trailing zeros
    quantity = Decimal(value)
    if quantity == quantity.to_integral_value():
        return quantity.quantize(Decimal(1))
    return quantity.normalize()


def invoice_item_to_domain(orm_item: ORMInvoiceItem) -> domain.InvoiceItem:
    """Convert SQLAlchemy InvoiceItem model to domain InvoiceItem entity."""
    return domain.InvoiceItem(
        description=orm_item.description,
        quantity=_quantity(orm_item.quantity),
        rate=_money(orm_item.rate),
        amount=_money(orm_item.amount),
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        invoice_number=orm_invoice.invoice_number,
        booking_id=orm_invoice.booking_id,
        guest_id=orm_invoice.guest_id,
        room_id=orm_invoice.room_id,
        check_in=as_utc(orm_invoice.check_in),
        check_out=as_utc(orm_invoice.check_out),
        items=tuple(invoice_item_to_domain(item) for item in orm_invoice.items),
        subtotal=_money(orm_invoice.subtotal),
        tax=_money(orm_invoice.tax),
        discount=_money(orm_invoice.discount),
        total_amount=_money(orm_invoice.total_amount),
        paid_amount=_money(orm_invoice.paid_amount),
        due_amount=_money(orm_invoice.due_amount),
        payment_status=domain.PaymentStatus(orm_invoice.payment_status),
        payment_mode=(
            domain.PaymentMode(orm_invoice.payment_mode) if orm_invoice.payment_mode else None
        ),
        notes=orm_invoice.notes,
        issued_by=orm_invoice.issued_by,
        created_at=as_utc(orm_invoice.created_at),
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        invoice_id=orm_payment.invoice_id,
        amount=_money(orm_payment.amount),
        payment_mode=domain.PaymentMode(orm_payment.payment_mode),
        payment_date=as_utc(orm_payment.payment_date),
        reference=orm_payment.reference,
        notes=orm_payment.notes,
        received_by=orm_payment.received_by,
        created_at=as_utc(orm_payment.created_at),
    )


def ledger_transaction_to_domain(orm_txn: ORMLedgerTransaction) -> domain.LedgerTransaction:
    """Convert SQLAlchemy LedgerTransaction model to domain LedgerTransaction entity."""
    return domain.LedgerTransaction(
        id=orm_txn.id,
        type=domain.TransactionType(orm_txn.type),
        category=orm_txn.category,
        amount=_money(orm_txn.amount),
        date=as_utc(orm_txn.date),
        payment_mode=domain.PaymentMode(orm_txn.payment_mode),
        reference=orm_txn.reference,
        description=orm_txn.description,
        booking_id=orm_txn.booking_id,
        vendor_id=orm_txn.vendor_id,
        invoice_id=orm_txn.invoice_id,
        created_by=orm_txn.created_by,
        created_at=as_utc(orm_txn.created_at),
    )


def audit_entry_to_domain(orm_entry: ORMAuditLog) -> domain.AuditEntry:
    """Convert SQLAlchemy AuditLog model to domain AuditEntry entity."""
    return domain.AuditEntry(
        id=orm_entry.id,
        entity_type=orm_entry.entity_type,
        entity_id=orm_entry.entity_id,
        action=domain.AuditAction(orm_entry.action),
        changed_by=orm_entry.changed_by,
        field=orm_entry.field,
        old_value=orm_entry.old_value,
        new_value=orm_entry.new_value,
        timestamp=as_utc(orm_entry.timestamp),
    )
