"""Audit trail commands."""

import json

import click
from hotelbilling.cli.formatting import echo_json, format_datetime
from hotelbilling.domain.audit import ENTITY_INVOICE, ENTITY_PAYMENT, ENTITY_TRANSACTION, AuditService


@click.group("audit")
def audit_group():
    """Inspect the audit trail."""
    pass


@audit_group.command("list")
@click.option(
    "--entity",
    "entity_type",
    type=click.Choice([ENTITY_INVOICE, ENTITY_PAYMENT, ENTITY_TRANSACTION]),
    help="Only entries for this kind of record",
)
@click.option("--id", "entity_id", type=int, help="Only entries for this record ID")
@click.option("--json", "as_json", is_flag=True, help="Print entries as JSON")
@click.pass_context
def list_entries(ctx, entity_type: str | None, entity_id: int | None, as_json: bool):
    """List recorded changes, oldest first.

    Examples:
        hotelbilling audit list --entity invoice --id 3
    """
    entries = AuditService(ctx.obj["db"]).list_entries(entity_type=entity_type, entity_id=entity_id)
    if as_json:
        echo_json(entries)
        return
    if not entries:
        click.echo("No audit entries found.")
        return

    zone = ctx.obj["settings"].timezone
    for entry in entries:
        line = (
            f"{format_datetime(entry.timestamp, zone)} | {entry.action.value:6s} | "
            f"{entry.entity_type} {entry.entity_id} | {entry.changed_by or '-'}"
        )
        if entry.field:
            line += (
                f" | {entry.field}: {json.dumps(entry.old_value)} -> {json.dumps(entry.new_value)}"
            )
        click.echo(line)


def register_commands(cli):
    """Register audit commands with main CLI."""
    cli.add_command(audit_group)
