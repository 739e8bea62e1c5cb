"""Invoice commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import echo_json, format_datetime, format_money
from hotelbilling.domain.entities import Invoice
from hotelbilling.domain.invoice import InvoiceService
from hotelbilling.utils.amount_parser import parse_amount


def _service(ctx) -> InvoiceService:
    settings = ctx.obj["settings"]
    return InvoiceService(
        ctx.obj["db"], invoice_prefix=settings.invoice_prefix, timezone=settings.timezone
    )


def parse_item_option(value: str) -> dict:
    """Parse a "DESCRIPTION:QUANTITY:RATE" item option.

    The description may itself contain colons; the last two fields are
    always quantity and rate.

    Raises:
        ValueError: If the value does not have three fields
    """
    parts = value.rsplit(":", 2)
    if len(parts) != 3:
        raise ValueError(f"Item '{value}' must look like DESCRIPTION:QUANTITY:RATE")
    description, quantity, rate = (part.strip() for part in parts)
    return {"description": description, "quantity": quantity, "rate": rate}


def _echo_invoice(invoice: Invoice, zone) -> None:
    click.echo(f"Invoice {invoice.invoice_number} (ID: {invoice.id})")
    click.echo(f"  Booking: {invoice.booking_id}  Guest: {invoice.guest_id}  Room: {invoice.room_id}")
    click.echo(
        f"  Stay: {format_datetime(invoice.check_in, zone)} -> "
        f"{format_datetime(invoice.check_out, zone)}"
    )
    click.echo("")
    click.echo(f"  {'Description':<32s} {'Qty':>8s} {'Rate':>12s} {'Amount':>12s}")
    click.echo("  " + "-" * 67)
    for item in invoice.items:
        click.echo(
            f"  {item.description:<32s} {str(item.quantity):>8s} "
            f"{format_money(item.rate):>12s} {format_money(item.amount):>12s}"
        )
    click.echo("  " + "-" * 67)
    click.echo(f"  {'Subtotal':<54s}{format_money(invoice.subtotal):>13s}")
    click.echo(f"  {'Tax':<54s}{format_money(invoice.tax):>13s}")
    click.echo(f"  {'Discount':<54s}{format_money(invoice.discount):>13s}")
    click.echo(f"  {'Total':<54s}{format_money(invoice.total_amount):>13s}")
    click.echo(f"  {'Paid':<54s}{format_money(invoice.paid_amount):>13s}")
    click.echo(f"  {'Due':<54s}{format_money(invoice.due_amount):>13s}")
    click.echo(f"  Status: {invoice.payment_status.value}")
    if invoice.notes:
        click.echo(f"  Notes: {invoice.notes}")


@click.group("invoice")
def invoice_group():
    """Build and inspect invoices."""
    pass


@invoice_group.command("create")
@click.argument("booking_id", type=int)
@click.option(
    "--item",
    "items",
    multiple=True,
    help='Extra line as "DESCRIPTION:QUANTITY:RATE" (repeatable)',
)
@click.option("--tax", help="Tax amount (default 0)")
@click.option("--discount", help="Discount amount (default 0)")
@click.option("--notes", help="Notes printed on the invoice")
@click.option("--issued-by", help="Who issued the invoice")
@click.option("--json", "as_json", is_flag=True, help="Print the invoice as JSON")
@click.pass_context
def create_invoice(
    ctx,
    booking_id: int,
    items: tuple[str, ...],
    tax: str | None,
    discount: str | None,
    notes: str | None,
    issued_by: str | None,
    as_json: bool,
):
    """Create an invoice for a booking.

    The room charge for the stay is always the first line.

    Examples:
        hotelbilling invoice create 1 --tax 54
        hotelbilling invoice create 1 --item "Laundry:2:150" --item "Minibar:1:420.50"
    """
    try:
        extra_items = [parse_item_option(value) for value in items]
        tax_amount = parse_amount(tax) if tax else None
        discount_amount = parse_amount(discount) if discount else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        invoice = _service(ctx).build_invoice(
            booking_id=booking_id,
            extra_items=extra_items,
            tax=tax_amount,
            discount=discount_amount,
            notes=notes,
            issued_by=issued_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(invoice)
        return
    click.echo(f"Created invoice {invoice.invoice_number}")
    _echo_invoice(invoice, ctx.obj["settings"].timezone)


@invoice_group.command("update")
@click.argument("invoice_id", type=int)
@click.option(
    "--item",
    "items",
    multiple=True,
    help='Replacement line as "DESCRIPTION:QUANTITY:RATE" (repeatable; replaces all lines)',
)
@click.option("--tax", help="New tax amount")
@click.option("--discount", help="New discount amount")
@click.option("--notes", help='New notes ("" clears them)')
@click.option("--updated-by", help="Who edited the invoice")
@click.option("--json", "as_json", is_flag=True, help="Print the invoice as JSON")
@click.pass_context
def update_invoice(
    ctx,
    invoice_id: int,
    items: tuple[str, ...],
    tax: str | None,
    discount: str | None,
    notes: str | None,
    updated_by: str | None,
    as_json: bool,
):
    """Edit an invoice's lines, tax, discount or notes.

    Totals, due amount and status are recomputed from what has been paid.

    Examples:
        hotelbilling invoice update 3 --discount 25
        hotelbilling invoice update 3 --item "Room Charges (2 nights):2:100" --item "Laundry:1:60"
    """
    try:
        new_items = [parse_item_option(value) for value in items] if items else None
        tax_amount = parse_amount(tax) if tax else None
        discount_amount = parse_amount(discount) if discount else None
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    try:
        invoice = _service(ctx).update_invoice(
            invoice_id=invoice_id,
            items=new_items,
            tax=tax_amount,
            discount=discount_amount,
            notes=notes,
            updated_by=updated_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(invoice)
        return
    click.echo(f"Updated invoice {invoice.invoice_number}")
    _echo_invoice(invoice, ctx.obj["settings"].timezone)


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Print the invoice as JSON")
@click.pass_context
def show_invoice(ctx, invoice_id: int, as_json: bool):
    """Show an invoice with its lines and payment totals."""
    try:
        invoice = _service(ctx).require_invoice(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(invoice)
        return
    _echo_invoice(invoice, ctx.obj["settings"].timezone)


@invoice_group.command("list")
@click.option("--booking", "booking_id", type=int, help="Only invoices for this booking")
@click.option(
    "--status",
    "statuses",
    multiple=True,
    type=click.Choice(["pending", "partial", "paid"]),
    help="Only invoices in this payment status (repeatable)",
)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@click.pass_context
def list_invoices(ctx, booking_id: int | None, statuses: tuple[str, ...], page: int, limit: int):
    """List invoices, newest first."""
    try:
        result = _service(ctx).list_invoices(
            booking_id=booking_id, statuses=list(statuses), page=page, limit=limit
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not result.items:
        click.echo("No invoices found.")
        return

    click.echo(f"\nInvoices (page {result.page} of {result.pages}, {result.total} total):")
    click.echo("-" * 78)
    for inv in result.items:
        click.echo(
            f"{inv.invoice_number:16s} | Booking {inv.booking_id:<5d} | "
            f"Total {format_money(inv.total_amount):>12s} | "
            f"Due {format_money(inv.due_amount):>12s} | {inv.payment_status.value}"
        )


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group)
