"""Database layer for hotelbilling application."""

from hotelbilling.database.base import Database
from hotelbilling.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
