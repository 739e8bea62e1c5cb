"""Vendor commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import format_money
from hotelbilling.domain.entities import PaymentMode
from hotelbilling.domain.vendor import VendorService
from hotelbilling.utils.amount_parser import parse_amount


def _service(ctx) -> VendorService:
    return VendorService(ctx.obj["db"], timezone=ctx.obj["settings"].timezone)


@click.group("vendor")
def vendor_group():
    """Manage vendors."""
    pass


@vendor_group.command("create")
@click.argument("name")
@click.option("--phone", required=True, help="Contact phone number")
@click.option("--contact", "contact_person", help="Contact person")
@click.option("--email", help="Email address")
@click.option("--outstanding", help="Amount currently owed (default 0)")
@click.pass_context
def create_vendor(
    ctx,
    name: str,
    phone: str,
    contact_person: str | None,
    email: str | None,
    outstanding: str | None,
):
    """Create a vendor.

    Examples:
        hotelbilling vendor create "Fresh Linen Co" --phone 555-0100 --outstanding 1200
    """
    try:
        balance = parse_amount(outstanding) if outstanding else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        vendor = _service(ctx).create_vendor(
            name=name,
            phone=phone,
            contact_person=contact_person,
            email=email,
            outstanding_balance=balance,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created vendor '{vendor.name}' (ID: {vendor.id})")


@vendor_group.command("list")
@click.pass_context
def list_vendors(ctx):
    """List vendors with their running totals."""
    vendors = _service(ctx).list_vendors()
    if not vendors:
        click.echo("No vendors found.")
        return

    click.echo("\nVendors:")
    click.echo("-" * 80)
    for v in vendors:
        click.echo(
            f"ID: {v.id:3d} | {v.name:24s} | Outstanding {format_money(v.outstanding_balance):>12s} "
            f"| Paid {format_money(v.total_paid):>12s} ({v.total_transactions})"
        )


@vendor_group.command("pay")
@click.argument("vendor_id", type=int)
@click.option("--amount", required=True, help="Amount to pay")
@click.option("--mode", required=True, type=click.Choice([m.value for m in PaymentMode]))
@click.option("--description", help='Description (default "Payment to <vendor>")')
@click.option("--reference", help="Reference number")
@click.option("--created-by", help="Who made the payment")
@click.pass_context
def pay_vendor(
    ctx,
    vendor_id: int,
    amount: str,
    mode: str,
    description: str | None,
    reference: str | None,
    created_by: str | None,
):
    """Pay a vendor and record the expense."""
    try:
        paid = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        result = _service(ctx).pay_vendor(
            vendor_id=vendor_id,
            amount=paid,
            payment_mode=mode,
            description=description,
            reference=reference,
            created_by=created_by,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Paid {format_money(paid)} to '{result.vendor.name}'")
    click.echo(f"  Outstanding: {format_money(result.vendor.outstanding_balance)}")
    click.echo(f"  Total paid: {format_money(result.vendor.total_paid)}")
    click.echo(f"  Ledger transaction: {result.transaction.id}")


def register_commands(cli):
    """Register vendor commands with main CLI."""
    cli.add_command(vendor_group)
