"""Report and dashboard commands."""

import click
from hotelbilling.cli.error_handling import handle_domain_error
from hotelbilling.cli.formatting import echo_json, format_datetime, format_money
from hotelbilling.domain.entities import ReportType
from hotelbilling.domain.report import ReportService
from hotelbilling.utils.date_parser import PERIODS, parse_datetime


def _service(ctx) -> ReportService:
    return ReportService(ctx.obj["db"], timezone=ctx.obj["settings"].timezone)


def _echo_groups(title: str, groups: dict, amount_key: str = "total") -> None:
    if not groups:
        return
    click.echo(f"  {title}:")
    for name, group in groups.items():
        count = group.get("count", group.get("bookings", 0))
        click.echo(f"    {name:<28s} {format_money(group[amount_key]):>14s}  ({count})")


def _echo_financial(section: dict) -> None:
    click.echo("\nFinancial")
    click.echo("-" * 60)
    for label, key in (("Revenue", "revenue"), ("Expenses", "expenses")):
        summary = section[key]
        click.echo(f"{label}: {format_money(summary['total'])} ({summary['count']} transactions)")
        _echo_groups("By category", summary["by_category"])
        _echo_groups("By payment mode", summary["by_payment_mode"])
    click.echo(f"Profit: {format_money(section['profit']['total'])}")


def _echo_occupancy(section: dict) -> None:
    click.echo("\nOccupancy")
    click.echo("-" * 60)
    click.echo(
        f"Rooms: {section['total_rooms']}  Booked: {section['booked_rooms']}  "
        f"Occupancy: {section['occupancy_rate']:.2f}%"
    )
    statuses = ", ".join(f"{k} {v}" for k, v in section["rooms_by_status"].items())
    click.echo(f"  By status: {statuses}")
    click.echo(
        f"  Stays in range: {section['bookings_in_range']}  "
        f"Check-ins: {section['check_ins']}  Check-outs: {section['check_outs']}"
    )
    _echo_groups("By room type", section["by_room_type"], amount_key="revenue")


def _echo_records(title: str, section: dict, groups: tuple[tuple[str, str], ...]) -> None:
    click.echo(f"\n{title}")
    click.echo("-" * 60)
    click.echo(f"Total: {section['total']}  Revenue: {format_money(section['total_revenue'])}")
    for label, key in groups:
        _echo_groups(label, section[key])


@click.command("report")
@click.argument(
    "report_type",
    type=click.Choice([t.value for t in ReportType]),
    default=ReportType.ALL.value,
    required=False,
)
@click.option(
    "--period",
    type=click.Choice(PERIODS),
    default="month",
    show_default=True,
    help="Calendar period in the configured time zone",
)
@click.option("--start-date", help="Start of a custom period")
@click.option("--end-date", help="End of a custom period (whole day included)")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def report(
    ctx,
    report_type: str,
    period: str,
    start_date: str | None,
    end_date: str | None,
    as_json: bool,
):
    """Generate a reconciliation report.

    Giving --start-date or --end-date implies --period custom.

    Examples:
        hotelbilling report financial --period today
        hotelbilling report occupancy --start-date 2024-03-01 --end-date 2024-03-15
        hotelbilling report --period year --json
    """
    zone = ctx.obj["settings"].timezone
    try:
        start = parse_datetime(start_date, zone) if start_date else None
        end = parse_datetime(end_date, zone) if end_date else None
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)
    if start is not None or end is not None:
        period = "custom"

    try:
        result = _service(ctx).generate_report(report_type, period=period, start=start, end=end)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if as_json:
        echo_json(result)
        return

    date_range = result["date_range"]
    click.echo(
        f"Report: {result['report_type']} ({result['period']}) "
        f"{format_datetime(date_range.start, zone)} to {format_datetime(date_range.end, zone)}"
    )
    if "financial" in result:
        _echo_financial(result["financial"])
    if "occupancy" in result:
        _echo_occupancy(result["occupancy"])
    if "bookings" in result:
        _echo_records(
            "Bookings",
            result["bookings"],
            (("By status", "by_status"), ("By payment status", "by_payment_status")),
        )
    if "services" in result:
        _echo_records(
            "Services",
            result["services"],
            (("By status", "by_status"), ("By category", "by_category")),
        )


@click.command("dashboard")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
@click.pass_context
def dashboard(ctx, as_json: bool):
    """Show today's, this month's and this year's figures."""
    zone = ctx.obj["settings"].timezone
    summary = _service(ctx).dashboard_summary()
    if as_json:
        echo_json(summary)
        return

    click.echo(f"{'':10s} {'Revenue':>14s} {'Expense':>14s} {'Profit':>14s}")
    for label in ("today", "month", "year"):
        figures = summary[label]
        click.echo(
            f"{label.capitalize():10s} {format_money(figures['revenue']):>14s} "
            f"{format_money(figures['expense']):>14s} {format_money(figures['profit']):>14s}"
        )

    if summary["revenue_by_category"]:
        click.echo("\nRevenue by category (this month):")
        for category, group in summary["revenue_by_category"].items():
            click.echo(f"  {category:<28s} {format_money(group['total']):>14s}")

    if summary["recent_transactions"]:
        click.echo("\nRecent transactions:")
        for txn in summary["recent_transactions"]:
            click.echo(
                f"  {format_datetime(txn.date, zone)} | {txn.type.value:7s} | "
                f"{txn.category:18s} | {format_money(txn.amount):>12s}"
            )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report)
    cli.add_command(dashboard)
