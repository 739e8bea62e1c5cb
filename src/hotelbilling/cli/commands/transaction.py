"""Ledger transaction commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import format_datetime, format_money
from hotelbilling.domain.entities import PaymentMode, TransactionFilter, TransactionType
from hotelbilling.domain.ledger import LedgerService
from hotelbilling.utils.amount_parser import parse_amount
from hotelbilling.utils.date_parser import end_of_day, parse_date, parse_datetime, start_of_day


def _service(ctx) -> LedgerService:
    return LedgerService(ctx.obj["db"], timezone=ctx.obj["settings"].timezone)


@click.group("txn")
def transaction_group():
    """Manage revenue and expense transactions."""
    pass


@transaction_group.command("add")
@click.option(
    "--type", "txn_type", required=True, type=click.Choice([t.value for t in TransactionType])
)
@click.option("--category", required=True, help='Category, e.g. "Salaries" or "Room Booking"')
@click.option("--amount", required=True, help="Positive amount")
@click.option("--mode", required=True, type=click.Choice([m.value for m in PaymentMode]))
@click.option("--date", "when", help="Date or date-time (default: now)")
@click.option("--reference", help="Reference number")
@click.option("--description", help="Description")
@click.option("--booking", "booking_id", type=int, help="Linked booking ID")
@click.option("--vendor", "vendor_id", type=int, help="Linked vendor ID")
@click.option("--created-by", help="Who entered the transaction")
@click.pass_context
def add_transaction(
    ctx,
    txn_type: str,
    category: str,
    amount: str,
    mode: str,
    when: str | None,
    reference: str | None,
    description: str | None,
    booking_id: int | None,
    vendor_id: int | None,
    created_by: str | None,
):
    """Add a revenue or expense transaction manually.

    Examples:
        hotelbilling txn add --type expense --category Salaries --amount 25000 --mode netbanking
        hotelbilling txn add --type revenue --category Restaurant --amount 840 --mode card --date yesterday
    """
    zone = ctx.obj["settings"].timezone
    try:
        txn_amount = parse_amount(amount)
        txn_date = parse_datetime(when, zone) if when else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        txn = _service(ctx).record_transaction(
            type=txn_type,
            category=category,
            amount=txn_amount,
            payment_mode=mode,
            date=txn_date,
            reference=reference,
            description=description,
            booking_id=booking_id,
            vendor_id=vendor_id,
            created_by=created_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Category: {txn.category}")
    click.echo(f"  Amount: {format_money(txn.amount)}")
    click.echo(f"  Date: {format_datetime(txn.date, zone)}")


@transaction_group.command("list")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]))
@click.option("--category", help="Exact category")
@click.option("--mode", type=click.Choice([m.value for m in PaymentMode]))
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--booking", "booking_id", type=int)
@click.option("--vendor", "vendor_id", type=int)
@click.option("--invoice", "invoice_id", type=int)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@click.pass_context
def list_transactions(
    ctx,
    txn_type: str | None,
    category: str | None,
    mode: str | None,
    start_date: str | None,
    end_date: str | None,
    booking_id: int | None,
    vendor_id: int | None,
    invoice_id: int | None,
    page: int,
    limit: int,
):
    """List ledger transactions, newest first."""
    zone = ctx.obj["settings"].timezone
    try:
        start = start_of_day(parse_date(start_date), zone) if start_date else None
        end = end_of_day(parse_date(end_date), zone) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    criteria = TransactionFilter(
        type=txn_type,
        category=category,
        payment_mode=mode,
        start=start,
        end=end,
        booking_id=booking_id,
        vendor_id=vendor_id,
        invoice_id=invoice_id,
    )
    try:
        result = _service(ctx).query_transactions(criteria, page=page, limit=limit)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No transactions found.")
        return

    click.echo(f"\nTransactions (page {result.page} of {result.pages}, {result.total} total):")
    click.echo("-" * 90)
    for txn in result.items:
        description = txn.description or ""
        click.echo(
            f"ID: {txn.id:4d} | {format_datetime(txn.date, zone)} | {txn.type.value:7s} | "
            f"{txn.category:18s} | {format_money(txn.amount):>12s} | {description}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.option("--deleted-by", help="Who deleted the transaction")
@click.pass_context
def delete_transaction(ctx, transaction_id: int, yes: bool, deleted_by: str | None):
    """Delete a manually entered transaction.

    Nothing else is adjusted: invoices and vendor totals stay as they are.
    """
    service = _service(ctx)
    try:
        txn = service.require_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not yes:
        click.confirm(
            f"Delete {txn.type.value} of {format_money(txn.amount)} in '{txn.category}'?",
            abort=True,
        )
    try:
        service.delete_transaction(transaction_id, deleted_by=deleted_by)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("categories")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]))
@click.pass_context
def list_categories(ctx, txn_type: str | None):
    """List categories in use."""
    categories = _service(ctx).list_categories(txn_type)
    if not categories:
        click.echo("No categories found.")
        return
    for category in categories:
        click.echo(category)


def register_commands(cli):
    """Register ledger transaction commands with main CLI."""
    cli.add_command(transaction_group)
