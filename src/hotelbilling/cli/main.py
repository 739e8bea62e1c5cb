"""Main CLI entry point."""

import logging

import click

from hotelbilling.config import DB_PATH_ENV, TIMEZONE_ENV, load_settings
from hotelbilling.database.factories import create_sqlite_database
from hotelbilling.domain.errors import DomainError
from hotelbilling.cli.error_handling import handle_domain_error

# Import and register all commands at module level
from hotelbilling.cli.commands import (
    audit,
    booking,
    invoice,
    payment,
    report,
    transaction,
    vendor,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help=f"Path to database file (overrides {DB_PATH_ENV} environment variable)",
    envvar=DB_PATH_ENV,
)
@click.option(
    "--timezone",
    "timezone_name",
    help=f"IANA time zone for reporting periods (overrides {TIMEZONE_ENV}, default UTC)",
    envvar=TIMEZONE_ENV,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, timezone_name: str | None, verbose: bool):
    """Hotelbilling - Hotel accounts back office.

    Build invoices from bookings, apply payments against them, pay vendors
    and reconcile revenue and expenses by period.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        try:
            settings = load_settings(database_path=db_path, timezone_name=timezone_name)
        except DomainError as e:
            handle_domain_error(ctx, e)
        db = create_sqlite_database(database_path=settings.database_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
booking.register_commands(cli)
invoice.register_commands(cli)
payment.register_commands(cli)
transaction.register_commands(cli)
vendor.register_commands(cli)
report.register_commands(cli)
audit.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
