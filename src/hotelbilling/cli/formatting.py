"""Output helpers shared by the CLI commands."""

import dataclasses
import json
from datetime import date, datetime, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Optional

import click


class ReportJSONEncoder(json.JSONEncoder):
    """JSON encoder for entities, Decimal, datetime and enums.

    Money is written as a string so cents survive the round trip.
    """

    def default(self, obj):
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
        return super().default(obj)


def echo_json(data) -> None:
    click.echo(json.dumps(data, cls=ReportJSONEncoder, indent=2))


def format_money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def format_datetime(moment: Optional[datetime], zone: tzinfo) -> str:
    """Render an aware datetime in the configured zone."""
    if moment is None:
        return "-"
    return moment.astimezone(zone).strftime("%Y-%m-%d %H:%M")
