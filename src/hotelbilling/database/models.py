"""SQLAlchemy models for the hotelbilling database.

Timestamps are stored as naive UTC.
"""

from datetime import datetime, UTC

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Numeric,
    UniqueConstraint,
    Index,
    JSON,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(12, 2)


def utcnow() -> datetime:
    """Current time as naive UTC, the storage convention."""
    return datetime.now(UTC).replace(tzinfo=None)


class RoomType(Base):
    """Room type model."""

    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    rooms = relationship("Room", back_populates="room_type")


class Room(Base):
    """Room model."""

    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True)
    room_number = Column(String, unique=True, nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id"), nullable=True)
    floor = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="available")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    room_type = relationship("RoomType", back_populates="rooms")
    bookings = relationship("Booking", back_populates="room")


class Booking(Base):
    """Room booking model."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    guest_id = Column(Integer, nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    room = relationship("Room", back_populates="bookings")


class ExtraService(Base):
    """Extra service catalogue model."""

    __tablename__ = "extra_services"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="other")
    price = Column(MONEY, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ServiceBooking(Base):
    """Extra service booking model."""

    __tablename__ = "service_bookings"

    id = Column(Integer, primary_key=True)
    service_id = Column(Integer, ForeignKey("extra_services.id"), nullable=False)
    guest_id = Column(Integer, nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(MONEY, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    status = Column(String, nullable=False, default="pending")
    payment_status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow, nullable=False)

    service = relationship("ExtraService")


class Vendor(Base):
    """Vendor model."""

    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    contact_person = Column(String, nullable=True)
    email = Column(String, nullable=True)
    outstanding_balance = Column(MONEY, nullable=False, default=0)
    total_paid = Column(MONEY, nullable=False, default=0)
    total_transactions = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class InvoiceSequence(Base):
    """Per-year invoice number counter."""

    __tablename__ = "invoice_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    invoice_number = Column(String, unique=True, nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    guest_id = Column(Integer, nullable=False)
    room_id = Column(Integer, nullable=False)
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    subtotal = Column(MONEY, nullable=False)
    tax = Column(MONEY, nullable=False, default=0)
    discount = Column(MONEY, nullable=False, default=0)
    total_amount = Column(MONEY, nullable=False)
    paid_amount = Column(MONEY, nullable=False, default=0)
    due_amount = Column(MONEY, nullable=False)
    payment_status = Column(String, nullable=False, default="pending")
    payment_mode = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    issued_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )


class InvoiceItem(Base):
    """Invoice line model."""

    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    position = Column(Integer, nullable=False)
    description = Column(String, nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    rate = Column(MONEY, nullable=False)
    amount = Column(MONEY, nullable=False)

    __table_args__ = (UniqueConstraint("invoice_id", "position", name="uq_invoice_item_position"),)

    invoice = relationship("Invoice", back_populates="items")


class Payment(Base):
    """Payment model."""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True, index=True)
    amount = Column(MONEY, nullable=False)
    payment_mode = Column(String, nullable=False)
    payment_date = Column(DateTime, nullable=False, index=True)
    reference = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    received_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class LedgerTransaction(Base):
    """Revenue or expense ledger model."""

    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    category = Column(String, nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    date = Column(DateTime, nullable=False)
    payment_mode = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    description = Column(String, nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=True)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_ledger_date", "date"),
        Index("ix_ledger_type_date", "type", "date"),
    )


class AuditLog(Base):
    """Audit trail model; one row per recorded change."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True)
    entity_type = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=False)
    action = Column(String, nullable=False)
    field = Column(String, nullable=True)
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(String, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("ix_audit_entity", "entity_type", "entity_id"),)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
