"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from schoolbooks.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)

DB_PATH_ENV = "SCHOOLBOOKS_DB_PATH"
DEFAULT_DB_DIR = ".schoolbooks"
DEFAULT_DB_FILE = "schoolbooks.db"


def default_database_path() -> str:
    """Path of the ledger file: $SCHOOLBOOKS_DB_PATH or ~/.schoolbooks/schoolbooks.db.

    The default directory is created if missing.
    """
    from_env = os.environ.get(DB_PATH_ENV)
    if from_env:
        return from_env
    db_dir = Path.home() / DEFAULT_DB_DIR
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / DEFAULT_DB_FILE)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed ledger database.

    Args:
        database_path: Path to the SQLite file; see default_database_path when omitted

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    path = database_path or default_database_path()
    logger.debug("Opening ledger database at %s", path)
    return SQLAlchemyDatabase(f"sqlite:///{path}")
