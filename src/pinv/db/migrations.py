"""Forward-only migration runner for the pinv database schema.

Migrations are additive. A database written by an older pinv must stay
readable by every newer one, so tables and columns are only ever added.
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS catagories (
    id          TEXT PRIMARY KEY,
    created_at  DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS catagory_fields (
    catagory_id TEXT NOT NULL REFERENCES catagories(id) ON DELETE CASCADE,
    position    INTEGER NOT NULL,
    name        TEXT NOT NULL,
    type        TEXT NOT NULL CHECK (type IN ('t', 'i', 'r')),
    PRIMARY KEY (catagory_id, name),
    UNIQUE (catagory_id, position)
);

CREATE TABLE IF NOT EXISTS entries (
    key         TEXT PRIMARY KEY,
    catagory_id TEXT NOT NULL REFERENCES catagories(id),
    location    TEXT NOT NULL,
    quantity    INTEGER NOT NULL CHECK (quantity >= 0),
    fields      TEXT NOT NULL DEFAULT '{}',
    created     DATETIME NOT NULL DEFAULT (datetime('now')),
    modified    DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_entries_catagory ON entries(catagory_id);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
