"""Database schema initialization."""

from __future__ import annotations

import sqlite3

from pinv.db.connection import storage_errors

CURRENT_VERSION = 1


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the database schema via the migration runner (idempotent).

    Raises:
        StorageCorruptError: If the file is not a usable SQLite database.
        StorageUnavailableError: For any other database failure.
    """
    from pinv.db.migrations import run_migrations

    with storage_errors():
        run_migrations(conn)
