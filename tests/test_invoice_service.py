"""Tests for the invoice builder."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from hotelbilling.domain.entities import Booking, BookingPaymentStatus, BookingStatus, PaymentStatus
from hotelbilling.domain.audit import AuditService
from hotelbilling.domain.errors import ConflictError, NotFoundError, ValidationError
from hotelbilling.domain.invoice import (
    InvoiceService,
    count_nights,
    derive_invoice_state,
    room_charge_items,
)


def _booking(total, check_in, check_out):
    return Booking(
        id=1,
        guest_id=1,
        room_id=1,
        check_in=check_in,
        check_out=check_out,
        total_amount=Decimal(total),
        status=BookingStatus.CONFIRMED,
        payment_status=BookingPaymentStatus.PENDING,
        created_at=check_in,
    )


def _assert_consistent(invoice):
    assert invoice.due_amount == invoice.total_amount - invoice.paid_amount
    assert invoice.subtotal == sum(item.amount for item in invoice.items)
    for item in invoice.items:
        assert item.amount == item.quantity * item.rate


def test_build_invoice_room_charges_and_tax(sample_invoice):
    """Three nights at 300 with 54 tax."""
    assert len(sample_invoice.items) == 1
    item = sample_invoice.items[0]
    assert item.description == "Room Charges (3 nights)"
    assert item.quantity == 3
    assert item.rate == Decimal("100.00")
    assert item.amount == Decimal("300.00")

    assert sample_invoice.subtotal == Decimal("300.00")
    assert sample_invoice.tax == Decimal("54.00")
    assert sample_invoice.discount == Decimal("0.00")
    assert sample_invoice.total_amount == Decimal("354.00")
    assert sample_invoice.paid_amount == Decimal("0.00")
    assert sample_invoice.due_amount == Decimal("354.00")
    assert sample_invoice.payment_status == PaymentStatus.PENDING
    assert sample_invoice.payment_mode is None
    _assert_consistent(sample_invoice)


def test_build_invoice_copies_booking_snapshot(sample_invoice, sample_booking):
    assert sample_invoice.booking_id == sample_booking.id
    assert sample_invoice.guest_id == sample_booking.guest_id
    assert sample_invoice.room_id == sample_booking.room_id
    assert sample_invoice.check_in == sample_booking.check_in
    assert sample_invoice.check_out == sample_booking.check_out


def test_build_invoice_with_extra_items_and_discount(invoice_service, sample_booking):
    invoice = invoice_service.build_invoice(
        booking_id=sample_booking.id,
        extra_items=[
            {"description": "Laundry", "quantity": 2, "rate": "150"},
            {"description": "Minibar", "quantity": "1", "rate": Decimal("420.50")},
        ],
        tax="20",
        discount="10.50",
    )

    assert [item.description for item in invoice.items] == [
        "Room Charges (3 nights)",
        "Laundry",
        "Minibar",
    ]
    assert invoice.items[1].amount == Decimal("300.00")
    assert invoice.items[2].amount == Decimal("420.50")
    assert invoice.subtotal == Decimal("1020.50")
    assert invoice.total_amount == Decimal("1030.00")
    _assert_consistent(invoice)


def test_build_invoice_fractional_quantity(invoice_service, sample_booking):
    invoice = invoice_service.build_invoice(
        booking_id=sample_booking.id,
        extra_items=[{"description": "Parking (hours)", "quantity": "2.5", "rate": "10"}],
    )
    item = invoice.items[1]
    assert item.quantity == Decimal("2.5")
    assert item.amount == Decimal("25.00")
    _assert_consistent(invoice)


def test_build_invoice_missing_booking(invoice_service):
    with pytest.raises(NotFoundError, match="Booking 999 not found"):
        invoice_service.build_invoice(booking_id=999)


@pytest.mark.parametrize(
    "item, message",
    [
        ({"description": "Spa", "quantity": 0, "rate": "50"}, "quantity must be greater than 0"),
        ({"description": "Spa", "quantity": 1, "rate": "-50"}, "amount must be greater than 0"),
        ({"description": "Spa", "quantity": "two", "rate": "50"}, "must be a number"),
        ({"description": "Spa", "quantity": 1, "rate": "abc"}, "must be a number"),
        ({"description": "", "quantity": 1, "rate": "50"}, "description is required"),
        ({"description": "Spa", "quantity": "0.333", "rate": "1.00"}, "whole number of cents"),
        (
            {"description": "Spa", "quantity": 2, "rate": "50", "amount": "90"},
            "does not match",
        ),
    ],
)
def test_build_invoice_rejects_bad_items(invoice_service, sample_booking, item, message):
    with pytest.raises(ValidationError, match=message):
        invoice_service.build_invoice(booking_id=sample_booking.id, extra_items=[item])


def test_build_invoice_rejects_negative_tax(invoice_service, sample_booking):
    with pytest.raises(ValidationError, match="Tax cannot be negative"):
        invoice_service.build_invoice(booking_id=sample_booking.id, tax="-1")


def test_build_invoice_rejects_discount_above_total(invoice_service, sample_booking):
    with pytest.raises(ValidationError, match="Discount"):
        invoice_service.build_invoice(booking_id=sample_booking.id, discount="400")


def test_failed_build_does_not_consume_invoice_number(invoice_service, sample_booking):
    with pytest.raises(ValidationError):
        invoice_service.build_invoice(
            booking_id=sample_booking.id,
            extra_items=[{"description": "Bad", "quantity": 1, "rate": "-1"}],
            now=datetime(2024, 5, 1),
        )
    invoice = invoice_service.build_invoice(booking_id=sample_booking.id, now=datetime(2024, 5, 1))
    assert invoice.invoice_number == "INV-2024-0001"


def test_invoice_numbers_are_sequential_per_year(invoice_service, sample_booking):
    first = invoice_service.build_invoice(booking_id=sample_booking.id, now=datetime(2024, 6, 1))
    second = invoice_service.build_invoice(booking_id=sample_booking.id, now=datetime(2024, 6, 2))
    next_year = invoice_service.build_invoice(booking_id=sample_booking.id, now=datetime(2025, 1, 1))

    assert first.invoice_number == "INV-2024-0001"
    assert second.invoice_number == "INV-2024-0002"
    assert next_year.invoice_number == "INV-2025-0001"


def test_invoice_number_prefix(temp_db, sample_booking):
    service = InvoiceService(temp_db, invoice_prefix="HTL")
    invoice = service.build_invoice(booking_id=sample_booking.id, now=datetime(2024, 6, 1))
    assert invoice.invoice_number == "HTL-2024-0001"


def test_build_invoice_does_not_mutate_booking(invoice_service, booking_service, sample_booking):
    invoice_service.build_invoice(booking_id=sample_booking.id)
    assert booking_service.get_booking(sample_booking.id) == sample_booking


def test_list_invoices_filters_and_pages(invoice_service, sample_booking, booking_service, sample_room):
    other = booking_service.create_booking(
        guest_id=8,
        room_id=sample_room.id,
        check_in=datetime(2024, 4, 1),
        check_out=datetime(2024, 4, 2),
        total_amount="120",
    )
    for _ in range(3):
        invoice_service.build_invoice(booking_id=sample_booking.id)
    invoice_service.build_invoice(booking_id=other.id)

    page = invoice_service.list_invoices(booking_id=sample_booking.id, page=1, limit=2)
    assert page.total == 3
    assert page.pages == 2
    assert len(page.items) == 2
    assert all(inv.booking_id == sample_booking.id for inv in page.items)

    pending = invoice_service.list_invoices(statuses=["pending"])
    assert pending.total == 4
    assert invoice_service.list_invoices(statuses=["paid"]).total == 0


def test_list_invoices_rejects_unknown_status(invoice_service):
    with pytest.raises(ValidationError, match="Invalid payment status"):
        invoice_service.list_invoices(statuses=["overdue"])


def test_get_invoice_missing(invoice_service):
    assert invoice_service.get_invoice(42) is None
    with pytest.raises(NotFoundError):
        invoice_service.require_invoice(42)


# Pure helpers

@pytest.mark.parametrize(
    "total, paid, due, status",
    [
        ("354", "0", "354", PaymentStatus.PENDING),
        ("354", "200", "154", PaymentStatus.PARTIAL),
        ("354", "354", "0", PaymentStatus.PAID),
        ("354", "400", "-46", PaymentStatus.PAID),
        ("0", "0", "0", PaymentStatus.PAID),
    ],
)
def test_derive_invoice_state(total, paid, due, status):
    state = derive_invoice_state(Decimal(total), Decimal(paid))
    assert state.due_amount == Decimal(due)
    assert state.payment_status == status


def test_count_nights_rounds_part_days_up():
    check_in = datetime(2024, 3, 1, 14)
    assert count_nights(check_in, check_in + timedelta(days=3)) == 3
    assert count_nights(check_in, check_in + timedelta(days=2, hours=1)) == 3
    assert count_nights(check_in, check_in + timedelta(hours=3)) == 1
    assert count_nights(check_in, check_in) == 1


def test_count_nights_rejects_reversed_stay():
    with pytest.raises(ValidationError):
        count_nights(datetime(2024, 3, 2), datetime(2024, 3, 1))


def test_room_charge_items_uneven_split():
    booking = _booking("100", datetime(2024, 3, 1), datetime(2024, 3, 4))
    items = room_charge_items(booking)

    assert items[0].description == "Room Charges (3 nights)"
    assert items[0].rate == Decimal("33.33")
    assert items[0].amount == Decimal("99.99")
    assert items[1].description == "Room Charges (rounding)"
    assert items[1].amount == Decimal("0.01")
    assert sum(item.amount for item in items) == Decimal("100.00")
    for item in items:
        assert item.amount == item.quantity * item.rate


def test_room_charge_items_single_night_label():
    booking = _booking("80", datetime(2024, 3, 1), datetime(2024, 3, 2))
    items = room_charge_items(booking)
    assert [item.description for item in items] == ["Room Charges (1 nights)"]


def test_room_charge_items_total_below_one_cent_per_night():
    booking = _booking("0.02", datetime(2024, 3, 1), datetime(2024, 3, 4))
    items = room_charge_items(booking)

    assert len(items) == 1
    assert items[0].description == "Room Charges (3 nights)"
    assert items[0].quantity == 1
    assert items[0].rate == Decimal("0.02")
    assert items[0].amount == Decimal("0.02")


def test_build_invoice_for_tiny_booking_total(invoice_service, booking_service, sample_room):
    booking = booking_service.create_booking(
        guest_id=9,
        room_id=sample_room.id,
        check_in=datetime(2024, 3, 1),
        check_out=datetime(2024, 3, 4),
        total_amount="0.02",
    )
    invoice = invoice_service.build_invoice(booking_id=booking.id)

    assert invoice.subtotal == Decimal("0.02")
    assert invoice.total_amount == Decimal("0.02")
    assert all(item.amount > 0 for item in invoice.items)
    _assert_consistent(invoice)


# Editing invoices

def test_update_invoice_replaces_items_and_recomputes(invoice_service, sample_invoice):
    invoice = invoice_service.update_invoice(
        sample_invoice.id,
        items=[
            {"description": "Room Charges (2 nights)", "quantity": 2, "rate": "100"},
            {"description": "Laundry", "quantity": 1, "rate": "60"},
        ],
    )

    assert [item.description for item in invoice.items] == ["Room Charges (2 nights)", "Laundry"]
    assert invoice.subtotal == Decimal("260.00")
    assert invoice.tax == Decimal("54.00")
    assert invoice.total_amount == Decimal("314.00")
    assert invoice.due_amount == Decimal("314.00")
    assert invoice.payment_status == PaymentStatus.PENDING
    assert invoice.invoice_number == sample_invoice.invoice_number
    _assert_consistent(invoice)


def test_update_invoice_keeps_fields_not_given(invoice_service, sample_invoice):
    invoice = invoice_service.update_invoice(sample_invoice.id, discount="4")

    assert invoice.items == sample_invoice.items
    assert invoice.tax == Decimal("54.00")
    assert invoice.discount == Decimal("4.00")
    assert invoice.total_amount == Decimal("350.00")
    assert invoice.notes is None


def test_update_invoice_notes_set_and_clear(invoice_service, sample_invoice):
    invoice = invoice_service.update_invoice(sample_invoice.id, notes="  Corporate rate  ")
    assert invoice.notes == "Corporate rate"

    invoice = invoice_service.update_invoice(sample_invoice.id, notes="")
    assert invoice.notes is None
    assert invoice.total_amount == Decimal("354.00")


def test_update_invoice_rederives_status_from_paid_amount(
    invoice_service, payment_service, sample_invoice
):
    payment_service.apply_payment(amount="354", payment_mode="cash", invoice_id=sample_invoice.id)

    raised = invoice_service.update_invoice(sample_invoice.id, tax="100")
    assert raised.total_amount == Decimal("400.00")
    assert raised.paid_amount == Decimal("354.00")
    assert raised.due_amount == Decimal("46.00")
    assert raised.payment_status == PaymentStatus.PARTIAL

    lowered = invoice_service.update_invoice(sample_invoice.id, tax="0")
    assert lowered.total_amount == Decimal("300.00")
    assert lowered.due_amount == Decimal("-54.00")
    assert lowered.payment_status == PaymentStatus.PAID


@pytest.mark.parametrize(
    "items, message",
    [
        ([], "non-empty"),
        ([{"description": "Spa", "quantity": 0, "rate": "50"}], "Item 1: quantity"),
        (
            [
                {"description": "Spa", "quantity": 1, "rate": "50"},
                {"description": "", "quantity": 1, "rate": "50"},
            ],
            "Item 2: description is required",
        ),
    ],
)
def test_update_invoice_rejects_bad_items(invoice_service, sample_invoice, items, message):
    with pytest.raises(ValidationError, match=message):
        invoice_service.update_invoice(sample_invoice.id, items=items)
    assert invoice_service.require_invoice(sample_invoice.id) == sample_invoice


def test_update_invoice_rejects_discount_above_total(invoice_service, sample_invoice):
    with pytest.raises(ValidationError, match="Discount"):
        invoice_service.update_invoice(sample_invoice.id, discount="500")


def test_update_invoice_missing(invoice_service):
    with pytest.raises(NotFoundError, match="Invoice 42 not found"):
        invoice_service.update_invoice(42, tax="10")


def test_update_invoice_stale_snapshot_raises_conflict(
    invoice_service, payment_service, temp_db, sample_invoice, monkeypatch
):
    """An edit computed against an outdated paid amount must not be written."""
    stale = invoice_service.require_invoice(sample_invoice.id)
    payment_service.apply_payment(amount="200", payment_mode="card", invoice_id=sample_invoice.id)

    monkeypatch.setattr(temp_db, "get_invoice", lambda invoice_id: stale)
    with pytest.raises(ConflictError, match="modified by another payment"):
        invoice_service.update_invoice(
            sample_invoice.id, items=[{"description": "Suite", "quantity": 1, "rate": "500"}]
        )
    monkeypatch.undo()

    invoice = invoice_service.require_invoice(sample_invoice.id)
    assert invoice.items == sample_invoice.items
    assert invoice.total_amount == Decimal("354.00")
    assert invoice.paid_amount == Decimal("200.00")
    assert invoice.due_amount == Decimal("154.00")
    updates = AuditService(temp_db).list_entries("invoice", sample_invoice.id)
    assert [entry.field for entry in updates] == [None, "paid_amount"]


def test_update_invoice_audits_each_changed_field(invoice_service, temp_db, sample_invoice):
    invoice_service.update_invoice(
        sample_invoice.id,
        items=[{"description": "Room Charges (3 nights)", "quantity": 3, "rate": "90"}],
        tax="54",
        discount="10",
        updated_by="manager",
    )

    entries = AuditService(temp_db).list_entries("invoice", sample_invoice.id)
    updates = {entry.field: entry for entry in entries if entry.field is not None}
    assert set(updates) == {"items", "discount"}
    assert updates["discount"].old_value == "0.00"
    assert updates["discount"].new_value == "10.00"
    assert updates["discount"].changed_by == "manager"
    assert updates["items"].old_value == [
        {
            "description": "Room Charges (3 nights)",
            "quantity": "3",
            "rate": "100.00",
            "amount": "300.00",
        }
    ]
    assert updates["items"].new_value[0]["amount"] == "270.00"
