"""Payment commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import format_datetime, format_money
from hotelbilling.domain.entities import PaymentMode
from hotelbilling.domain.payment import PaymentService
from hotelbilling.utils.amount_parser import parse_amount
from hotelbilling.utils.date_parser import end_of_day, parse_date, start_of_day

MODES = [mode.value for mode in PaymentMode]


def _service(ctx) -> PaymentService:
    return PaymentService(ctx.obj["db"], timezone=ctx.obj["settings"].timezone)


@click.group("payment")
def payment_group():
    """Record and list payments."""
    pass


@payment_group.command("add")
@click.option("--amount", required=True, help="Amount received")
@click.option("--mode", required=True, type=click.Choice(MODES), help="Payment mode")
@click.option("--invoice", "invoice_id", type=int, help="Invoice to settle")
@click.option("--reference", help="External reference (card slip, UPI id, ...)")
@click.option("--notes", help="Notes")
@click.option("--received-by", help="Who received the payment")
@click.pass_context
def add_payment(
    ctx,
    amount: str,
    mode: str,
    invoice_id: int | None,
    reference: str | None,
    notes: str | None,
    received_by: str | None,
):
    """Record a payment, optionally against an invoice.

    Each call records a new payment; running it twice pays twice.

    Examples:
        hotelbilling payment add --invoice 1 --amount 200 --mode cash
        hotelbilling payment add --amount 500 --mode upi --notes "Advance for group booking"
    """
    try:
        paid = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        result = _service(ctx).apply_payment(
            amount=paid,
            payment_mode=mode,
            invoice_id=invoice_id,
            reference=reference,
            notes=notes,
            received_by=received_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded payment {result.payment.id} of {format_money(result.payment.amount)} ({mode})")
    if result.invoice is not None:
        invoice = result.invoice
        click.echo(f"  Invoice: {invoice.invoice_number}")
        click.echo(f"  Paid: {format_money(invoice.paid_amount)}")
        click.echo(f"  Due: {format_money(invoice.due_amount)}")
        click.echo(f"  Status: {invoice.payment_status.value}")
    click.echo(f"  Ledger transaction: {result.transaction.id} ({result.transaction.category})")


@payment_group.command("list")
@click.option("--invoice", "invoice_id", type=int, help="Only payments against this invoice")
@click.option("--mode", type=click.Choice(MODES), help="Only payments in this mode")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'today')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@click.pass_context
def list_payments(
    ctx,
    invoice_id: int | None,
    mode: str | None,
    start_date: str | None,
    end_date: str | None,
    page: int,
    limit: int,
):
    """List payments, newest first, with totals per mode."""
    zone = ctx.obj["settings"].timezone
    try:
        start = start_of_day(parse_date(start_date), zone) if start_date else None
        end = end_of_day(parse_date(end_date), zone) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)

    try:
        result, stats = _service(ctx).list_payments(
            invoice_id=invoice_id, payment_mode=mode, start=start, end=end, page=page, limit=limit
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No payments found.")
        return

    click.echo(f"\nPayments (page {result.page} of {result.pages}, {result.total} total):")
    click.echo("-" * 72)
    for p in result.items:
        invoice_label = f"Invoice {p.invoice_id}" if p.invoice_id is not None else "Direct"
        click.echo(
            f"ID: {p.id:4d} | {format_datetime(p.payment_date, zone)} | "
            f"{format_money(p.amount):>12s} | {p.payment_mode.value:10s} | {invoice_label}"
        )
    click.echo("-" * 72)
    for payment_mode, total in stats.by_mode.items():
        click.echo(f"  {payment_mode:12s} {format_money(total):>14s}")
    click.echo(f"  {'Total':12s} {format_money(stats.total_amount):>14s} ({stats.count} payments)")


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group)
