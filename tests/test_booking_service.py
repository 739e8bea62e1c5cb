"""Tests for room, booking and extra service snapshots."""

from datetime import datetime, UTC
from decimal import Decimal

import pytest
from dateutil import tz

from hotelbilling.domain.booking import BookingService
from hotelbilling.domain.entities import (
    BookingPaymentStatus,
    BookingStatus,
    RoomStatus,
    ServiceBookingStatus,
)
from hotelbilling.domain.errors import NotFoundError, ValidationError


def test_create_room_type(booking_service):
    room_type = booking_service.create_room_type(name=" Suite ", price="6000")
    assert room_type.name == "Suite"
    assert room_type.price == Decimal("6000.00")
    assert booking_service.list_room_types() == [room_type]


def test_create_room_type_duplicate(booking_service, sample_room):
    with pytest.raises(ValidationError, match="Room type 'deluxe' already exists"):
        booking_service.create_room_type(name="deluxe", price="120")


@pytest.mark.parametrize(
    "name, price, message",
    [
        ("", "100", "Room type name is required"),
        ("Standard", "-1", "Price cannot be negative"),
        ("Standard", "abc", "Price must be a number"),
    ],
)
def test_create_room_type_validation(booking_service, name, price, message):
    with pytest.raises(ValidationError, match=message):
        booking_service.create_room_type(name=name, price=price)


def test_create_room(sample_room, booking_service):
    assert sample_room.room_number == "101"
    assert sample_room.floor == 1
    assert sample_room.status == RoomStatus.AVAILABLE
    assert booking_service.get_room(sample_room.id) == sample_room


def test_create_room_duplicate_number(booking_service, sample_room):
    with pytest.raises(ValidationError, match="Room '101' already exists"):
        booking_service.create_room("101")


def test_create_room_unknown_type(booking_service):
    with pytest.raises(NotFoundError, match="Room type 12 not found"):
        booking_service.create_room("305", room_type_id=12)


def test_create_room_invalid_status(booking_service):
    with pytest.raises(ValidationError, match="Invalid room status 'flooded'"):
        booking_service.create_room("305", status="flooded")


def test_list_rooms(booking_service):
    booking_service.create_room("202", floor=2, status="cleaning")
    booking_service.create_room("102")
    rooms = booking_service.list_rooms()
    assert [room.room_number for room in rooms] == ["102", "202"]
    assert rooms[1].status == RoomStatus.CLEANING


def test_create_booking(sample_booking, booking_service):
    assert sample_booking.guest_id == 7
    assert sample_booking.check_in == datetime(2024, 3, 1, 14, 0, tzinfo=UTC)
    assert sample_booking.check_out == datetime(2024, 3, 4, 11, 0, tzinfo=UTC)
    assert sample_booking.total_amount == Decimal("300.00")
    assert sample_booking.status == BookingStatus.CONFIRMED
    assert sample_booking.payment_status == BookingPaymentStatus.PENDING
    assert booking_service.require_booking(sample_booking.id) == sample_booking


def test_create_booking_reads_naive_times_in_zone(temp_db, sample_room):
    service = BookingService(temp_db, timezone=tz.gettz("America/New_York"))
    booking = service.create_booking(
        guest_id=1,
        room_id=sample_room.id,
        check_in=datetime(2024, 7, 1, 15, 0),
        check_out=datetime(2024, 7, 2, 11, 0),
        total_amount="100",
    )
    assert booking.check_in == datetime(2024, 7, 1, 19, 0, tzinfo=UTC)


def test_create_booking_reversed_dates(booking_service, sample_room):
    with pytest.raises(ValidationError, match="Check-out must not be before check-in"):
        booking_service.create_booking(
            guest_id=1,
            room_id=sample_room.id,
            check_in=datetime(2024, 3, 5),
            check_out=datetime(2024, 3, 4),
            total_amount="100",
        )


def test_create_booking_unknown_room(booking_service):
    with pytest.raises(NotFoundError, match="Room 41 not found"):
        booking_service.create_booking(
            guest_id=1,
            room_id=41,
            check_in=datetime(2024, 3, 1),
            check_out=datetime(2024, 3, 2),
            total_amount="100",
        )


def test_require_missing_booking(booking_service):
    assert booking_service.get_booking(5) is None
    with pytest.raises(NotFoundError):
        booking_service.require_booking(5)


def test_book_service_uses_list_price(booking_service, sample_booking):
    spa = booking_service.create_extra_service(name="Massage", category="spa", price="1500")
    booked = booking_service.book_service(
        spa.id, guest_id=7, quantity=2, booking_id=sample_booking.id
    )
    assert booked.unit_price == Decimal("1500.00")
    assert booked.total_amount == Decimal("3000.00")
    assert booked.booking_id == sample_booking.id
    assert booked.status == ServiceBookingStatus.PENDING


def test_book_service_with_custom_price(booking_service):
    laundry = booking_service.create_extra_service(name="Ironing", category="laundry", price="40")
    booked = booking_service.book_service(
        laundry.id, guest_id=3, quantity=3, unit_price="35.50", status="completed"
    )
    assert booked.total_amount == Decimal("106.50")
    assert booked.status == ServiceBookingStatus.COMPLETED


def test_book_service_validation(booking_service):
    laundry = booking_service.create_extra_service(name="Ironing", category="laundry", price="40")
    with pytest.raises(ValidationError, match="Quantity must be at least 1"):
        booking_service.book_service(laundry.id, guest_id=3, quantity=0)
    with pytest.raises(NotFoundError, match="Service 99 not found"):
        booking_service.book_service(99, guest_id=3)
    with pytest.raises(NotFoundError):
        booking_service.book_service(laundry.id, guest_id=3, booking_id=404)


def test_create_extra_service_requires_category(booking_service):
    with pytest.raises(ValidationError, match="Service category is required"):
        booking_service.create_extra_service(name="Ironing", category=" ", price="40")
