"""Tests for the forward-only migration runner."""

from __future__ import annotations

import sqlite3

import pytest

from pinv.db.connection import Database
from pinv.db.migrations import MIGRATIONS, run_migrations
from pinv.db.schema import CURRENT_VERSION


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    return Database(tmp_path / "test.db").connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
    ).fetchone() is not None


# --- Bootstrap ---

def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0] == CURRENT_VERSION
    conn.close()


def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    run_migrations(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


@pytest.mark.parametrize("table", ["catagories", "catagory_fields", "entries"])
def test_run_migrations_creates_tables(tmp_path, table):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, table)
    conn.close()


def test_migrations_are_ordered():
    versions = [v for v, _ in MIGRATIONS]
    assert versions == sorted(versions)
    assert len(set(versions)) == len(versions)


# --- Constraints enforced by the schema ---

def test_negative_quantity_rejected_by_schema(tmp_db):
    tmp_db.execute("INSERT INTO catagories (id) VALUES ('caps')")
    with pytest.raises(sqlite3.IntegrityError):
        tmp_db.execute(
            "INSERT INTO entries (key, catagory_id, location, quantity) VALUES ('1', 'caps', '', -1)"
        )


def test_entry_requires_existing_catagory(tmp_db):
    with pytest.raises(sqlite3.IntegrityError):
        tmp_db.execute(
            "INSERT INTO entries (key, catagory_id, location, quantity) VALUES ('1', 'nope', '', 0)"
        )


def test_field_type_code_checked(tmp_db):
    tmp_db.execute("INSERT INTO catagories (id) VALUES ('caps')")
    with pytest.raises(sqlite3.IntegrityError):
        tmp_db.execute(
            "INSERT INTO catagory_fields (catagory_id, position, name, type) "
            "VALUES ('caps', 0, 'value', 'x')"
        )
