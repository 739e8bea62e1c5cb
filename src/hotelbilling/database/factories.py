"""Database factory functions for creating database instances."""

from typing import Optional

from hotelbilling.config import load_settings
from hotelbilling.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks
            HOTELBILLING_DB_PATH environment variable, then defaults to
            ~/.hotelbilling/hotelbilling.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = load_settings().database_path

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
