"""Runtime configuration resolved from overrides and environment."""

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Optional

from hotelbilling.domain.errors import ValidationError
from hotelbilling.utils.date_parser import resolve_timezone

DB_PATH_ENV = "HOTELBILLING_DB_PATH"
TIMEZONE_ENV = "HOTELBILLING_TIMEZONE"
INVOICE_PREFIX_ENV = "HOTELBILLING_INVOICE_PREFIX"

DEFAULT_TIMEZONE = "UTC"
DEFAULT_INVOICE_PREFIX = "INV"


@dataclass(frozen=True)
class Settings:
    """Deployment settings shared by the CLI and the services."""

    database_path: str
    timezone_name: str
    invoice_prefix: str

    @property
    def timezone(self) -> tzinfo:
        return resolve_timezone(self.timezone_name)


def default_database_path() -> str:
    """Return ~/.hotelbilling/hotelbilling.db, creating the directory."""
    db_dir = Path.home() / ".hotelbilling"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "hotelbilling.db")


def load_settings(
    database_path: Optional[str] = None,
    timezone_name: Optional[str] = None,
    invoice_prefix: Optional[str] = None,
) -> Settings:
    """Build settings; explicit arguments win over environment variables.

    Raises:
        ValidationError: If the configured time zone is unknown
    """
    database_path = database_path or os.environ.get(DB_PATH_ENV) or default_database_path()
    timezone_name = timezone_name or os.environ.get(TIMEZONE_ENV) or DEFAULT_TIMEZONE
    invoice_prefix = (
        invoice_prefix or os.environ.get(INVOICE_PREFIX_ENV) or DEFAULT_INVOICE_PREFIX
    )

    try:
        resolve_timezone(timezone_name)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    return Settings(
        database_path=database_path,
        timezone_name=timezone_name,
        invoice_prefix=invoice_prefix.strip().upper(),
    )
