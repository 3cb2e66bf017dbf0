"""Database layer for schoolbooks."""

from schoolbooks.database.base import Database
from schoolbooks.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
