"""Shared pytest fixtures for hotelbilling tests."""

import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from hotelbilling.database.factories import create_sqlite_database
from hotelbilling.domain.booking import BookingService
from hotelbilling.domain.invoice import InvoiceService
from hotelbilling.domain.ledger import LedgerService
from hotelbilling.domain.payment import PaymentService
from hotelbilling.domain.report import ReportService
from hotelbilling.domain.vendor import VendorService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def booking_service(temp_db):
    """Create a BookingService with a temporary database."""
    return BookingService(temp_db)


@pytest.fixture
def invoice_service(temp_db):
    """Create an InvoiceService with a temporary database."""
    return InvoiceService(temp_db)


@pytest.fixture
def payment_service(temp_db):
    """Create a PaymentService with a temporary database."""
    return PaymentService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db)


@pytest.fixture
def vendor_service(temp_db):
    """Create a VendorService with a temporary database."""
    return VendorService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db)


@pytest.fixture
def sample_room(booking_service):
    """Create a Deluxe room type and one room of that type."""
    room_type = booking_service.create_room_type(name="Deluxe", price="100")
    return booking_service.create_room(room_number="101", room_type_id=room_type.id, floor=1)


@pytest.fixture
def sample_booking(booking_service, sample_room):
    """A three-night booking worth 300."""
    return booking_service.create_booking(
        guest_id=7,
        room_id=sample_room.id,
        check_in=datetime(2024, 3, 1, 14, 0),
        check_out=datetime(2024, 3, 4, 11, 0),
        total_amount=Decimal("300"),
    )


@pytest.fixture
def sample_invoice(invoice_service, sample_booking):
    """Invoice for the sample booking with 54 tax: total 354, nothing paid."""
    return invoice_service.build_invoice(
        booking_id=sample_booking.id,
        tax=Decimal("54"),
        now=datetime(2024, 3, 4, 12, 0),
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
