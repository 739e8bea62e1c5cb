"""End-to-end CLI tests."""

import json
from datetime import datetime, UTC

import pytest

from hotelbilling.cli.main import cli
from hotelbilling.domain.errors import PAYMENT_EXCEEDS_DUE


def _invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--timezone", "UTC", *args], **kwargs
    )


@pytest.fixture
def seeded_booking(cli_runner, temp_db):
    """Room type, room and a three-night booking created through the CLI."""
    result = _invoke(cli_runner, temp_db, "room-type", "create", "Deluxe", "--price", "100")
    assert result.exit_code == 0
    assert "Created room type 'Deluxe' (ID: 1)" in result.output

    result = _invoke(cli_runner, temp_db, "room", "create", "101", "--type", "1")
    assert result.exit_code == 0

    result = _invoke(
        cli_runner,
        temp_db,
        "booking",
        "create",
        "--guest",
        "7",
        "--room",
        "1",
        "--check-in",
        "2024-03-01 14:00",
        "--check-out",
        "2024-03-04 11:00",
        "--amount",
        "300",
    )
    assert result.exit_code == 0
    assert "Created booking 1" in result.output
    return 1


def test_invoice_payment_workflow(cli_runner, temp_db, seeded_booking):
    result = _invoke(cli_runner, temp_db, "invoice", "create", "1", "--tax", "54")
    assert result.exit_code == 0
    year = datetime.now(UTC).year
    assert f"Created invoice INV-{year}-0001" in result.output
    assert "Room Charges (3 nights)" in result.output
    assert "354.00" in result.output

    result = _invoke(
        cli_runner, temp_db, "payment", "add", "--invoice", "1", "--amount", "200", "--mode", "card"
    )
    assert result.exit_code == 0
    assert "Recorded payment 1 of 200.00 (card)" in result.output
    assert "Due: 154.00" in result.output
    assert "Status: partial" in result.output

    result = _invoke(
        cli_runner, temp_db, "payment", "add", "--invoice", "1", "--amount", "400", "--mode", "cash"
    )
    assert result.exit_code == 1
    assert PAYMENT_EXCEEDS_DUE in result.output

    result = _invoke(
        cli_runner, temp_db, "payment", "add", "--invoice", "1", "--amount", "154", "--mode", "cash"
    )
    assert result.exit_code == 0
    assert "Status: paid" in result.output

    result = _invoke(cli_runner, temp_db, "invoice", "show", "1", "--json")
    assert result.exit_code == 0
    invoice = json.loads(result.output)
    assert invoice["total_amount"] == "354.00"
    assert invoice["paid_amount"] == "354.00"
    assert invoice["due_amount"] == "0.00"
    assert invoice["payment_status"] == "paid"
    assert invoice["payment_mode"] == "card"
    assert invoice["items"][0]["quantity"] == "3"

    result = _invoke(cli_runner, temp_db, "payment", "list", "--invoice", "1")
    assert result.exit_code == 0
    assert "(2 payments)" in result.output

    result = _invoke(cli_runner, temp_db, "invoice", "list", "--status", "paid")
    assert result.exit_code == 0
    assert f"INV-{year}-0001" in result.output


def test_invoice_create_with_items(cli_runner, temp_db, seeded_booking):
    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "create",
        "1",
        "--item",
        "Laundry: shirts:2:150",
        "--discount",
        "50",
        "--json",
    )
    assert result.exit_code == 0
    invoice = json.loads(result.output)
    assert invoice["items"][1]["description"] == "Laundry: shirts"
    assert invoice["items"][1]["amount"] == "300.00"
    assert invoice["total_amount"] == "550.00"


def test_invoice_create_bad_item(cli_runner, temp_db, seeded_booking):
    result = _invoke(cli_runner, temp_db, "invoice", "create", "1", "--item", "Laundry")
    assert result.exit_code == 1
    assert "DESCRIPTION:QUANTITY:RATE" in result.output


def test_invoice_for_missing_booking(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "create", "9")
    assert result.exit_code == 1
    assert "Booking 9 not found" in result.output


def test_invoice_list_empty(cli_runner, temp_db):
    result = _invoke(cli_runner, temp_db, "invoice", "list")
    assert result.exit_code == 0
    assert "No invoices found." in result.output


def test_invoice_update(cli_runner, temp_db, seeded_booking):
    _invoke(cli_runner, temp_db, "invoice", "create", "1", "--tax", "54")
    _invoke(
        cli_runner, temp_db, "payment", "add", "--invoice", "1", "--amount", "100", "--mode", "card"
    )

    result = _invoke(
        cli_runner,
        temp_db,
        "invoice",
        "update",
        "1",
        "--item",
        "Room Charges (2 nights):2:100",
        "--item",
        "Laundry:1:60",
        "--discount",
        "14",
        "--updated-by",
        "manager",
        "--json",
    )
    assert result.exit_code == 0
    invoice = json.loads(result.output)
    assert [item["description"] for item in invoice["items"]] == [
        "Room Charges (2 nights)",
        "Laundry",
    ]
    assert invoice["subtotal"] == "260.00"
    assert invoice["total_amount"] == "300.00"
    assert invoice["paid_amount"] == "100.00"
    assert invoice["due_amount"] == "200.00"
    assert invoice["payment_status"] == "partial"

    result = _invoke(cli_runner, temp_db, "invoice", "update", "1", "--notes", "Late checkout")
    assert result.exit_code == 0
    assert "Updated invoice" in result.output
    assert "Notes: Late checkout" in result.output


def test_invoice_update_errors(cli_runner, temp_db, seeded_booking):
    result = _invoke(cli_runner, temp_db, "invoice", "update", "1", "--tax", "10")
    assert result.exit_code == 1
    assert "Invoice 1 not found" in result.output

    _invoke(cli_runner, temp_db, "invoice", "create", "1")
    result = _invoke(cli_runner, temp_db, "invoice", "update", "1", "--item", "Laundry:0:60")
    assert result.exit_code == 1
    assert "quantity must be greater than 0" in result.output


def test_audit_list(cli_runner, temp_db, seeded_booking):
    _invoke(cli_runner, temp_db, "invoice", "create", "1", "--issued-by", "frontdesk")
    _invoke(
        cli_runner,
        temp_db,
        "payment",
        "add",
        "--invoice",
        "1",
        "--amount",
        "120",
        "--mode",
        "cash",
        "--received-by",
        "cashier",
    )

    result = _invoke(cli_runner, temp_db, "audit", "list", "--entity", "invoice", "--id", "1")
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert len(lines) == 2
    assert "create | invoice 1 | frontdesk" in lines[0]
    assert 'paid_amount: "0.00" -> "120.00"' in lines[1]

    result = _invoke(cli_runner, temp_db, "audit", "list", "--entity", "payment", "--json")
    assert result.exit_code == 0
    entries = json.loads(result.output)
    assert [(e["action"], e["changed_by"]) for e in entries] == [("create", "cashier")]
    assert entries[0]["new_value"]["amount"] == "120.00"


def test_transaction_delete_records_actor(cli_runner, temp_db):
    _invoke(
        cli_runner, temp_db, "txn", "add", "--type", "revenue", "--category", "Restaurant",
        "--amount", "80", "--mode", "cash",
    )
    result = _invoke(
        cli_runner, temp_db, "txn", "delete", "1", "--yes", "--deleted-by", "auditor"
    )
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "audit", "list", "--entity", "transaction", "--json")
    entries = json.loads(result.output)
    assert [(e["action"], e["changed_by"]) for e in entries] == [
        ("create", None),
        ("delete", "auditor"),
    ]


def test_transaction_add_list_delete(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "txn",
        "add",
        "--type",
        "expense",
        "--category",
        "Salaries",
        "--amount",
        "25,000",
        "--mode",
        "netbanking",
        "--date",
        "2024-03-31",
    )
    assert result.exit_code == 0
    assert "Created transaction 1" in result.output
    assert "Amount: 25,000.00" in result.output

    result = _invoke(cli_runner, temp_db, "txn", "list", "--type", "expense")
    assert result.exit_code == 0
    assert "Salaries" in result.output

    result = _invoke(cli_runner, temp_db, "txn", "categories")
    assert result.output.strip() == "Salaries"

    result = _invoke(cli_runner, temp_db, "txn", "delete", "1", "--yes")
    assert result.exit_code == 0
    assert "Deleted transaction 1" in result.output

    result = _invoke(cli_runner, temp_db, "txn", "list")
    assert "No transactions found." in result.output


def test_transaction_delete_prompts(cli_runner, temp_db):
    _invoke(
        cli_runner, temp_db, "txn", "add", "--type", "revenue", "--category", "Restaurant",
        "--amount", "80", "--mode", "cash",
    )
    result = _invoke(cli_runner, temp_db, "txn", "delete", "1", input="n\n")
    assert result.exit_code == 1
    assert "Delete revenue of 80.00 in 'Restaurant'?" in result.output

    result = _invoke(cli_runner, temp_db, "txn", "list")
    assert "Restaurant" in result.output


def test_transaction_rejects_zero_amount(cli_runner, temp_db):
    result = _invoke(
        cli_runner, temp_db, "txn", "add", "--type", "revenue", "--category", "Others",
        "--amount", "0", "--mode", "cash",
    )
    assert result.exit_code == 1
    assert "greater than 0" in result.output


def test_vendor_create_and_pay(cli_runner, temp_db):
    result = _invoke(
        cli_runner,
        temp_db,
        "vendor",
        "create",
        "Fresh Linen Co",
        "--phone",
        "555-0100",
        "--outstanding",
        "1200",
    )
    assert result.exit_code == 0
    assert "Created vendor 'Fresh Linen Co' (ID: 1)" in result.output

    result = _invoke(
        cli_runner, temp_db, "vendor", "pay", "1", "--amount", "500", "--mode", "upi"
    )
    assert result.exit_code == 0
    assert "Paid 500.00 to 'Fresh Linen Co'" in result.output
    assert "Outstanding: 700.00" in result.output

    result = _invoke(
        cli_runner, temp_db, "vendor", "pay", "1", "--amount", "701", "--mode", "upi"
    )
    assert result.exit_code == 1
    assert "outstanding balance" in result.output

    result = _invoke(cli_runner, temp_db, "txn", "list", "--vendor", "1")
    assert "Payment to Fresh Linen Co" in result.output


def test_financial_report_json(cli_runner, temp_db):
    for txn_type, amount in (("revenue", "100"), ("revenue", "50"), ("expense", "30")):
        result = _invoke(
            cli_runner, temp_db, "txn", "add", "--type", txn_type, "--category", "Others",
            "--amount", amount, "--mode", "cash",
        )
        assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db, "report", "financial", "--period", "today", "--json")
    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["report_type"] == "financial"
    assert report["financial"]["revenue"]["total"] == "150.00"
    assert report["financial"]["expenses"]["total"] == "30.00"
    assert report["financial"]["profit"]["total"] == "120.00"
    assert set(report["date_range"]) == {"start", "end"}


def test_report_text_output(cli_runner, temp_db, seeded_booking):
    result = _invoke(
        cli_runner, temp_db, "report", "--start-date", "2024-03-01", "--end-date", "2024-03-31"
    )
    assert result.exit_code == 0
    assert "Report: all (custom)" in result.output
    assert "Profit: 0.00" in result.output
    assert "Stays in range: 1" in result.output


def test_report_reversed_dates(cli_runner, temp_db):
    result = _invoke(
        cli_runner, temp_db, "report", "--start-date", "2024-03-10", "--end-date", "2024-03-01"
    )
    assert result.exit_code == 1
    assert "End date must not be before start date" in result.output


def test_dashboard(cli_runner, temp_db):
    _invoke(
        cli_runner, temp_db, "txn", "add", "--type", "revenue", "--category", "Room Booking",
        "--amount", "100", "--mode", "card",
    )
    result = _invoke(cli_runner, temp_db, "dashboard")
    assert result.exit_code == 0
    assert "Today" in result.output
    assert "Room Booking" in result.output

    result = _invoke(cli_runner, temp_db, "dashboard", "--json")
    summary = json.loads(result.output)
    assert summary["today"]["revenue"] == "100.00"
    assert len(summary["last_30_days"]) == 30


def test_invalid_timezone(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--timezone", "Mars/Olympus", "dashboard"]
    )
    assert result.exit_code == 1
    assert "Unknown time zone" in result.output
