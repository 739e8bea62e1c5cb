"""Booking snapshot domain service.

Rooms, bookings and extra services are owned by the front-desk side of the
hotel. The billing core only needs their snapshot fields, so this service
offers plain create/get operations with input validation and nothing else.
"""

import logging
from datetime import datetime, tzinfo
from enum import Enum
from typing import Optional, TypeVar

from dateutil import tz

from hotelbilling.database.base import Database
from hotelbilling.domain.entities import (
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    ExtraService,
    Room,
    RoomStatus,
    RoomType,
    ServiceBooking,
    ServiceBookingStatus,
)
from hotelbilling.domain.errors import NotFoundError, ValidationError, booking_not_found
from hotelbilling.domain.validation import clean_text, require_money, require_non_negative
from hotelbilling.utils.date_parser import to_utc

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Enum)


def _parse_status(enum_type: type[S], value, label: str) -> S:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {label} '{value}'. Expected one of: {choices}")


class BookingService:
    """Service for rooms, bookings and extra services."""

    def __init__(self, db: Database, timezone: tzinfo = tz.UTC):
        """Initialize booking service.

        Args:
            db: Database instance
            timezone: Zone used to read naive check-in/check-out times
        """
        self.db = db
        self.timezone = timezone

    # Room types and rooms
    def create_room_type(self, name: str, price) -> RoomType:
        """Create a room type with its default nightly price.

        Raises:
            ValidationError: If the name is missing or taken, or the price is negative
        """
        name = clean_text(name)
        if name is None:
            raise ValidationError("Room type name is required")
        for existing in self.db.list_room_types():
            if existing.name.lower() == name.lower():
                raise ValidationError(f"Room type '{name}' already exists")
        price = require_non_negative(price, "Price")

        room_type_id = self.db.create_room_type(name=name, price=price)
        return self.db.get_room_type(room_type_id)

    def get_room_type(self, room_type_id: int) -> Optional[RoomType]:
        """Get room type by ID."""
        return self.db.get_room_type(room_type_id)

    def list_room_types(self) -> list[RoomType]:
        """List all room types."""
        return self.db.list_room_types()

    def create_room(
        self,
        room_number: str,
        room_type_id: Optional[int] = None,
        floor: int = 1,
        status=RoomStatus.AVAILABLE,
    ) -> Room:
        """Create a room.

        Args:
            room_number: Unique room number, e.g. "101"
            room_type_id: Optional room type
            floor: Floor number
            status: available, booked, cleaning or maintenance

        Raises:
            ValidationError: If the number is missing or taken, or the status is invalid
            NotFoundError: If the room type does not exist
        """
        room_number = clean_text(room_number)
        if room_number is None:
            raise ValidationError("Room number is required")
        if self.db.get_room_by_number(room_number) is not None:
            raise ValidationError(f"Room '{room_number}' already exists")
        if room_type_id is not None and self.db.get_room_type(room_type_id) is None:
            raise NotFoundError(f"Room type {room_type_id} not found")
        room_status = _parse_status(RoomStatus, status, "room status")

        room_id = self.db.create_room(
            room_number=room_number,
            room_type_id=room_type_id,
            floor=floor,
            status=room_status.value,
        )
        return self.db.get_room(room_id)

    def get_room(self, room_id: int) -> Optional[Room]:
        """Get room by ID."""
        return self.db.get_room(room_id)

    def list_rooms(self) -> list[Room]:
        """List all rooms by room number."""
        return self.db.list_rooms()

    # Bookings
    def create_booking(
        self,
        guest_id: int,
        room_id: int,
        check_in: datetime,
        check_out: datetime,
        total_amount,
        status=BookingStatus.CONFIRMED,
        payment_status=BookingPaymentStatus.PENDING,
    ) -> Booking:
        """Record a booking snapshot.

        Naive check-in/check-out values are read in the configured time zone.

        Raises:
            NotFoundError: If the room does not exist
            ValidationError: If check-out precedes check-in, the total is
                negative, or a status is invalid
        """
        if self.db.get_room(room_id) is None:
            raise NotFoundError(f"Room {room_id} not found")
        check_in = to_utc(check_in, self.timezone)
        check_out = to_utc(check_out, self.timezone)
        if check_out < check_in:
            raise ValidationError("Check-out must not be before check-in")
        total_amount = require_non_negative(total_amount, "Total amount")
        booking_status = _parse_status(BookingStatus, status, "booking status")
        paid_status = _parse_status(BookingPaymentStatus, payment_status, "payment status")

        booking_id = self.db.create_booking(
            guest_id=guest_id,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            total_amount=total_amount,
            status=booking_status.value,
            payment_status=paid_status.value,
        )
        logger.info("Created booking %s for room %s", booking_id, room_id)
        return self.require_booking(booking_id)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Get booking by ID."""
        return self.db.get_booking(booking_id)

    def require_booking(self, booking_id: int) -> Booking:
        """Get booking by ID or raise NotFoundError."""
        booking = self.db.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(booking_not_found(booking_id))
        return booking

    # Extra services
    def create_extra_service(self, name: str, category: str, price) -> ExtraService:
        """Create a bookable extra service.

        Raises:
            ValidationError: If name or category is missing or the price is negative
        """
        name = clean_text(name)
        category = clean_text(category)
        if name is None:
            raise ValidationError("Service name is required")
        if category is None:
            raise ValidationError("Service category is required")
        price = require_non_negative(price, "Price")

        service_id = self.db.create_extra_service(name=name, category=category, price=price)
        return self.db.get_extra_service(service_id)

    def get_extra_service(self, service_id: int) -> Optional[ExtraService]:
        """Get extra service by ID."""
        return self.db.get_extra_service(service_id)

    def book_service(
        self,
        service_id: int,
        guest_id: int,
        quantity: int = 1,
        booking_id: Optional[int] = None,
        unit_price=None,
        status=ServiceBookingStatus.PENDING,
        payment_status=BookingPaymentStatus.PENDING,
    ) -> ServiceBooking:
        """Book an extra service for a guest.

        The unit price defaults to the service's list price and the total is
        always ``quantity * unit_price``.

        Raises:
            NotFoundError: If the service or linked booking does not exist
            ValidationError: If the quantity is not positive or a status is invalid
        """
        service = self.db.get_extra_service(service_id)
        if service is None:
            raise NotFoundError(f"Service {service_id} not found")
        if booking_id is not None:
            self.require_booking(booking_id)
        if quantity < 1:
            raise ValidationError(f"Quantity must be at least 1 (got {quantity})")
        price = service.price if unit_price is None else require_money(unit_price, "Unit price")
        if price < 0:
            raise ValidationError(f"Unit price cannot be negative (got {price})")
        booking_status = _parse_status(ServiceBookingStatus, status, "service status")
        paid_status = _parse_status(BookingPaymentStatus, payment_status, "payment status")

        service_booking_id = self.db.create_service_booking(
            service_id=service.id,
            guest_id=guest_id,
            booking_id=booking_id,
            quantity=quantity,
            unit_price=price,
            total_amount=price * quantity,
            status=booking_status.value,
            payment_status=paid_status.value,
        )
        logger.info(
            "Booked %s x '%s' for guest %s (service booking %s)",
            quantity,
            service.name,
            guest_id,
            service_booking_id,
        )
        return self.db.get_service_booking(service_booking_id)
