"""Room, booking and extra-service data entry commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import format_datetime, format_money
from hotelbilling.domain.booking import BookingService
from hotelbilling.domain.entities import (
    BookingPaymentStatus,
    BookingStatus,
    RoomStatus,
    ServiceBookingStatus,
)
from hotelbilling.utils.amount_parser import parse_amount
from hotelbilling.utils.date_parser import parse_datetime


def _service(ctx) -> BookingService:
    return BookingService(ctx.obj["db"], timezone=ctx.obj["settings"].timezone)


def _parse_amount_or_exit(ctx, value: str, label: str):
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@click.group("room-type")
def room_type_group():
    """Manage room types."""
    pass


@room_type_group.command("create")
@click.argument("name")
@click.option("--price", required=True, help="Default nightly price")
@click.pass_context
def create_room_type(ctx, name: str, price: str):
    """Create a room type.

    Examples:
        hotelbilling room-type create Deluxe --price 3500
    """
    service = _service(ctx)
    amount = _parse_amount_or_exit(ctx, price, "price")

    try:
        room_type = service.create_room_type(name=name, price=amount)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created room type '{room_type.name}' (ID: {room_type.id})")


@room_type_group.command("list")
@click.pass_context
def list_room_types(ctx):
    """List room types."""
    room_types = _service(ctx).list_room_types()
    if not room_types:
        click.echo("No room types found.")
        return

    click.echo("\nRoom types:")
    click.echo("-" * 50)
    for rt in room_types:
        click.echo(f"ID: {rt.id:3d} | {rt.name:20s} | {format_money(rt.price):>12s}")


@click.group("room")
def room_group():
    """Manage rooms."""
    pass


@room_group.command("create")
@click.argument("room_number")
@click.option("--type", "room_type_id", type=int, help="Room type ID")
@click.option("--floor", type=int, default=1, show_default=True, help="Floor number")
@click.option(
    "--status",
    type=click.Choice([s.value for s in RoomStatus]),
    default=RoomStatus.AVAILABLE.value,
    show_default=True,
)
@click.pass_context
def create_room(ctx, room_number: str, room_type_id: int | None, floor: int, status: str):
    """Create a room.

    Examples:
        hotelbilling room create 101 --type 1 --floor 1
    """
    try:
        room = _service(ctx).create_room(
            room_number=room_number, room_type_id=room_type_id, floor=floor, status=status
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created room {room.room_number} (ID: {room.id})")


@room_group.command("list")
@click.pass_context
def list_rooms(ctx):
    """List rooms."""
    rooms = _service(ctx).list_rooms()
    if not rooms:
        click.echo("No rooms found.")
        return

    click.echo("\nRooms:")
    click.echo("-" * 50)
    for room in rooms:
        click.echo(
            f"ID: {room.id:3d} | {room.room_number:8s} | Floor {room.floor:2d} | {room.status.value}"
        )


@click.group("booking")
def booking_group():
    """Manage booking snapshots."""
    pass


@booking_group.command("create")
@click.option("--guest", "guest_id", type=int, required=True, help="Guest ID")
@click.option("--room", "room_id", type=int, required=True, help="Room ID")
@click.option("--check-in", required=True, help="Check-in date or date-time")
@click.option("--check-out", required=True, help="Check-out date or date-time")
@click.option("--amount", required=True, help="Total booking amount")
@click.option(
    "--status",
    type=click.Choice([s.value for s in BookingStatus]),
    default=BookingStatus.CONFIRMED.value,
    show_default=True,
)
@click.option(
    "--payment-status",
    type=click.Choice([s.value for s in BookingPaymentStatus]),
    default=BookingPaymentStatus.PENDING.value,
    show_default=True,
)
@click.pass_context
def create_booking(
    ctx,
    guest_id: int,
    room_id: int,
    check_in: str,
    check_out: str,
    amount: str,
    status: str,
    payment_status: str,
):
    """Record a booking.

    Bare dates are read as the start of that day in the configured time zone.

    Examples:
        hotelbilling booking create --guest 7 --room 1 --check-in 2024-03-01 --check-out 2024-03-04 --amount 300
    """
    zone = ctx.obj["settings"].timezone
    try:
        check_in_at = parse_datetime(check_in, zone)
        check_out_at = parse_datetime(check_out, zone)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
    total = _parse_amount_or_exit(ctx, amount, "amount")

    try:
        booking = _service(ctx).create_booking(
            guest_id=guest_id,
            room_id=room_id,
            check_in=check_in_at,
            check_out=check_out_at,
            total_amount=total,
            status=status,
            payment_status=payment_status,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created booking {booking.id}")
    click.echo(f"  Check-in:  {format_datetime(booking.check_in, zone)}")
    click.echo(f"  Check-out: {format_datetime(booking.check_out, zone)}")
    click.echo(f"  Amount: {format_money(booking.total_amount)}")


@booking_group.command("show")
@click.argument("booking_id", type=int)
@click.pass_context
def show_booking(ctx, booking_id: int):
    """Show a booking."""
    zone = ctx.obj["settings"].timezone
    try:
        booking = _service(ctx).require_booking(booking_id)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Booking {booking.id}")
    click.echo(f"  Guest: {booking.guest_id}")
    click.echo(f"  Room: {booking.room_id}")
    click.echo(f"  Check-in:  {format_datetime(booking.check_in, zone)}")
    click.echo(f"  Check-out: {format_datetime(booking.check_out, zone)}")
    click.echo(f"  Amount: {format_money(booking.total_amount)}")
    click.echo(f"  Status: {booking.status.value} / {booking.payment_status.value}")


@click.group("service")
def service_group():
    """Manage extra services."""
    pass


@service_group.command("create")
@click.argument("name")
@click.option("--category", required=True, help="Service category, e.g. spa or laundry")
@click.option("--price", required=True, help="List price per unit")
@click.pass_context
def create_service(ctx, name: str, category: str, price: str):
    """Create an extra service."""
    amount = _parse_amount_or_exit(ctx, price, "price")
    try:
        service = _service(ctx).create_extra_service(name=name, category=category, price=amount)
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created service '{service.name}' (ID: {service.id})")


@service_group.command("book")
@click.argument("service_id", type=int)
@click.option("--guest", "guest_id", type=int, required=True, help="Guest ID")
@click.option("--quantity", type=int, default=1, show_default=True)
@click.option("--booking", "booking_id", type=int, help="Link to a room booking")
@click.option("--unit-price", help="Override the service's list price")
@click.option(
    "--status",
    type=click.Choice([s.value for s in ServiceBookingStatus]),
    default=ServiceBookingStatus.PENDING.value,
    show_default=True,
)
@click.pass_context
def book_service(
    ctx,
    service_id: int,
    guest_id: int,
    quantity: int,
    booking_id: int | None,
    unit_price: str | None,
    status: str,
):
    """Book an extra service for a guest."""
    price = _parse_amount_or_exit(ctx, unit_price, "unit price") if unit_price else None
    try:
        service_booking = _service(ctx).book_service(
            service_id=service_id,
            guest_id=guest_id,
            quantity=quantity,
            booking_id=booking_id,
            unit_price=price,
            status=status,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
    click.echo(
        f"Booked service {service_id} x{service_booking.quantity} "
        f"(ID: {service_booking.id}), total {format_money(service_booking.total_amount)}"
    )


def register_commands(cli):
    """Register booking snapshot commands with main CLI."""
    cli.add_command(room_type_group)
    cli.add_command(room_group)
    cli.add_command(booking_group)
    cli.add_command(service_group)
