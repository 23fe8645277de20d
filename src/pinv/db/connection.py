"""SQLite connection layer and transaction scope."""

from __future__ import annotations

import functools
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

from pinv.errors import StorageCorruptError, StorageUnavailableError

_T = TypeVar("_T")

# Substrings SQLite uses when the file itself is damaged.
_CORRUPTION_MARKERS = ("malformed", "not a database", "corrupt")


class Database:
    """The single local pinv database file."""

    def __init__(self, db_path: Path | str) -> None:
        """Store the database path. Call connect() to open the connection.

        Args:
            db_path: Path to the SQLite database file (created if missing),
                or ``":memory:"``.
        """
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Open a connection with row access by name and foreign keys enforced."""
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with storage_errors():
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def __enter__(self) -> sqlite3.Connection:
        """Open the database and return the connection (context manager support)."""
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        """Close the connection when leaving the context manager."""
        if self._conn:
            self._conn.close()
            self._conn = None


def translate_error(exc: sqlite3.Error) -> StorageCorruptError | StorageUnavailableError:
    """Map a sqlite3 error onto the pinv storage error kinds."""
    message = str(exc)
    if isinstance(exc, sqlite3.DatabaseError) and any(
        marker in message.lower() for marker in _CORRUPTION_MARKERS
    ):
        return StorageCorruptError(f"Database is corrupt: {message}")
    return StorageUnavailableError(f"Database error: {message}")


@contextmanager
def storage_errors() -> Iterator[None]:
    """Re-raise any sqlite3.Error inside the block as a pinv StorageError."""
    try:
        yield
    except sqlite3.Error as exc:
        raise translate_error(exc) from exc


def storage_call(func: Callable[..., _T]) -> Callable[..., _T]:
    """Decorator form of :func:`storage_errors` for repository methods."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with storage_errors():
            return func(*args, **kwargs)

    return wrapper


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Scope one atomic unit of work: commit on success, roll back on any error.

    Nested use joins the outer transaction; only the outermost scope commits.
    """
    if conn.in_transaction:
        yield conn
        return

    with storage_errors():
        conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        with storage_errors():
            conn.rollback()
        raise
    with storage_errors():
        conn.commit()
