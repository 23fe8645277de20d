"""pinv database layer."""

from pinv.db.connection import Database, storage_errors, transaction
from pinv.db.migrations import MIGRATIONS, run_migrations
from pinv.db.repository import Repository
from pinv.db.schema import initialize

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "storage_errors",
    "transaction",
    "MIGRATIONS",
]
