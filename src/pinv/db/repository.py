"""Repository for all pinv database operations.

Single interface for: catagories, catagory fields, entries.

Methods never commit. Callers group them inside
``pinv.db.connection.transaction`` so each mutating operation is one atomic
unit. Every sqlite3 error is re-raised as a pinv StorageError.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable

from pinv.db.connection import storage_call
from pinv.db.models import EntryRecord
from pinv.errors import CorruptEntryError, StorageCorruptError
from pinv.schema.types import Catagory, FieldDef, FieldType


class Repository:
    """Data access layer for catagories and entries.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see pinv.db.schema.initialize).
        """
        self._conn = conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    @storage_call
    def data_version(self) -> int:
        """SQLite's counter of commits made by *other* connections."""
        return self._conn.execute("PRAGMA data_version").fetchone()[0]

    # ------------------------------------------------------------------
    # Catagories
    # ------------------------------------------------------------------

    @storage_call
    def add_catagory(self, catagory: Catagory) -> None:
        """Insert a catagory and its fields in declaration order."""
        self._conn.execute("INSERT INTO catagories (id) VALUES (?)", (catagory.id,))
        for position, f in enumerate(catagory.fields):
            self._insert_field(catagory.id, position, f)

    @storage_call
    def add_catagory_field(self, catagory_id: str, field: FieldDef) -> None:
        """Append *field* after the catagory's existing fields."""
        row = self._conn.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM catagory_fields WHERE catagory_id = ?",
            (catagory_id,),
        ).fetchone()
        self._insert_field(catagory_id, row[0], field)

    def _insert_field(self, catagory_id: str, position: int, field: FieldDef) -> None:
        self._conn.execute(
            """
            INSERT INTO catagory_fields (catagory_id, position, name, type)
            VALUES (?, ?, ?, ?)
            """,
            (catagory_id, position, field.name, field.type.value),
        )

    @storage_call
    def get_catagory(self, catagory_id: str) -> Catagory | None:
        """Return a catagory by (canonical) id, or None if not found."""
        row = self._conn.execute(
            "SELECT id FROM catagories WHERE id = ?", (catagory_id,)
        ).fetchone()
        if row is None:
            return None
        return Catagory(id=row["id"], fields=self._fields_for(row["id"]))

    @storage_call
    def list_catagories(self) -> list[Catagory]:
        """Return all catagories in creation order."""
        rows = self._conn.execute("SELECT id FROM catagories ORDER BY rowid").fetchall()
        return [Catagory(id=r["id"], fields=self._fields_for(r["id"])) for r in rows]

    def _fields_for(self, catagory_id: str) -> tuple[FieldDef, ...]:
        rows = self._conn.execute(
            "SELECT name, type FROM catagory_fields WHERE catagory_id = ? ORDER BY position",
            (catagory_id,),
        ).fetchall()
        try:
            return tuple(FieldDef(name=r["name"], type=FieldType(r["type"])) for r in rows)
        except ValueError as exc:
            raise StorageCorruptError(
                f"Catagory '{catagory_id}' has an unreadable field definition: {exc}"
            ) from exc

    @storage_call
    def delete_catagory(self, catagory_id: str) -> None:
        """Delete a catagory; its field definitions cascade."""
        self._conn.execute("DELETE FROM catagories WHERE id = ?", (catagory_id,))

    @storage_call
    def count_entries(self, catagory_id: str) -> int:
        """Return the number of entries filed under *catagory_id*."""
        return self._conn.execute(
            "SELECT COUNT(*) FROM entries WHERE catagory_id = ?", (catagory_id,)
        ).fetchone()[0]

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @storage_call
    def add_entry(self, record: EntryRecord) -> None:
        """Insert a new entry row. Field values are stored as a JSON object."""
        self._conn.execute(
            """
            INSERT INTO entries (key, catagory_id, location, quantity, fields)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                record.key,
                record.catagory_id,
                record.location,
                record.quantity,
                json.dumps(record.fields),
            ),
        )

    @storage_call
    def key_exists(self, key: str) -> bool:
        return (
            self._conn.execute("SELECT 1 FROM entries WHERE key = ?", (key,)).fetchone()
            is not None
        )

    @storage_call
    def existing_keys(self, keys: Iterable[str]) -> set[str]:
        """Return the subset of *keys* already present in the database."""
        wanted = list(keys)
        if not wanted:
            return set()
        placeholders = ",".join("?" * len(wanted))
        rows = self._conn.execute(
            f"SELECT key FROM entries WHERE key IN ({placeholders})", wanted
        ).fetchall()
        return {r["key"] for r in rows}

    @storage_call
    def get_entry(self, key: str) -> EntryRecord | None:
        """Return the stored entry row for *key*, or None if not found."""
        row = self._conn.execute(
            """
            SELECT key, catagory_id, location, quantity, fields, created, modified
            FROM entries WHERE key = ?
            """,
            (key,),
        ).fetchone()
        return _row_to_record(row) if row else None

    @storage_call
    def list_entries(self, catagory_id: str) -> list[EntryRecord]:
        """Return every entry of a catagory in insertion order."""
        rows = self._conn.execute(
            """
            SELECT key, catagory_id, location, quantity, fields, created, modified
            FROM entries WHERE catagory_id = ? ORDER BY rowid
            """,
            (catagory_id,),
        ).fetchall()
        return [_row_to_record(r) for r in rows]

    @storage_call
    def update_entry(self, record: EntryRecord) -> None:
        """Overwrite location, quantity and fields, and touch ``modified``."""
        self._conn.execute(
            """
            UPDATE entries
            SET location = ?, quantity = ?, fields = ?, modified = datetime('now')
            WHERE key = ?
            """,
            (record.location, record.quantity, json.dumps(record.fields), record.key),
        )

    @storage_call
    def adjust_quantity(self, key: str, delta: int) -> bool:
        """Add *delta* to the quantity unless the result would be negative.

        Returns:
            True if a row was updated; False if the key is missing or the
            guard rejected the change.
        """
        cur = self._conn.execute(
            """
            UPDATE entries
            SET quantity = quantity + ?, modified = datetime('now')
            WHERE key = ? AND quantity + ? >= 0
            """,
            (delta, key, delta),
        )
        return cur.rowcount == 1

    @storage_call
    def delete_entry(self, key: str) -> bool:
        """Delete an entry row. Returns False if no row had *key*."""
        cur = self._conn.execute("DELETE FROM entries WHERE key = ?", (key,))
        return cur.rowcount == 1


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_record(row: sqlite3.Row) -> EntryRecord:
    try:
        fields = json.loads(row["fields"])
    except (TypeError, ValueError) as exc:
        raise CorruptEntryError(
            f"Entry '{row['key']}' has unreadable field data", key=row["key"]
        ) from exc
    if not isinstance(fields, dict):
        raise CorruptEntryError(
            f"Entry '{row['key']}' field data is not a mapping", key=row["key"]
        )
    return EntryRecord(
        key=row["key"],
        catagory_id=row["catagory_id"],
        location=row["location"],
        quantity=row["quantity"],
        fields=fields,
        created=row["created"],
        modified=row["modified"],
    )
