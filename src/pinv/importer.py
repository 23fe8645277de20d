"""Bulk import of entries from record-separated text files.

File layout (delimiter is the ASCII record separator ``\\x1e``, no quoting):

    resistors
    key␞location␞quantity␞resistance␞tolerance
    QkFTRTY0␞Drawer 1␞50␞220␞5%
    ...

Row 1 names the catagory, row 2 names the columns, every later row is one
entry. ``key``, ``location`` and ``quantity`` are required columns; all
other columns are field assignments (blank cells are left unset). Single
quotes are stripped from the catagory, column names, key and location;
field values are kept verbatim apart from surrounding whitespace.

Each entry is created in its own transaction: a failure stops the import
and reports the offending line, but entries already created stay created.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path

from pinv.db.models import Entry
from pinv.errors import PinvError
from pinv.store import EntryStore

DELIMITER = "\x1e"
_REQUIRED = ("key", "location", "quantity")


class ImportFormatError(ValueError):
    """Raised when an import file does not follow the expected layout."""


@dataclass
class ImportRow:
    line: int
    key: str
    location: str
    quantity: int
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class ImportBatch:
    catagory: str
    columns: list[str]
    rows: list[ImportRow] = field(default_factory=list)


def _clean(cell: str) -> str:
    return cell.strip().replace("'", "")


def read_import_file(path: Path) -> ImportBatch:
    """Parse an import file into an ImportBatch (no database access).

    Raises:
        ImportFormatError: If the header rows are missing, a required column
            is absent, a row has the wrong number of cells, or a quantity is
            not a non-negative integer.
        OSError: If the file cannot be read.
    """
    with path.open(encoding="utf-8", newline="") as handle:
        reader = csv.reader(handle, delimiter=DELIMITER, quoting=csv.QUOTE_NONE)
        rows = [r for r in reader if any(cell.strip() for cell in r)]

    if not rows:
        raise ImportFormatError(f"'{path}' is empty (expected a catagory row)")
    if len(rows) < 2:
        raise ImportFormatError(f"'{path}' is missing the column row")

    catagory = _clean(rows[0][0])
    columns = [_clean(c).lower() for c in rows[1]]
    missing = [c for c in _REQUIRED if c not in columns]
    if missing:
        raise ImportFormatError(f"'{path}' is missing required columns: {', '.join(missing)}")

    batch = ImportBatch(catagory=catagory, columns=columns)
    for line, cells in enumerate(rows[2:], start=3):
        if len(cells) != len(columns):
            raise ImportFormatError(
                f"'{path}' line {line}: expected {len(columns)} cells, got {len(cells)}"
            )
        values = dict(zip(columns, (c.strip() for c in cells)))
        try:
            quantity = int(values.pop("quantity"))
        except ValueError:
            raise ImportFormatError(f"'{path}' line {line}: quantity is not an integer") from None
        if quantity < 0:
            raise ImportFormatError(f"'{path}' line {line}: quantity cannot be negative")
        batch.rows.append(
            ImportRow(
                line=line,
                key=_clean(values.pop("key")),
                location=_clean(values.pop("location")),
                quantity=quantity,
                fields={k: v for k, v in values.items() if v},
            )
        )
    return batch


def import_entries(store: EntryStore, batch: ImportBatch) -> list[Entry]:
    """Create every row of *batch* in order and return the new entries.

    Raises:
        PinvError: The first store error, annotated with the file line.
    """
    created: list[Entry] = []
    for row in batch.rows:
        try:
            created.append(
                store.create(batch.catagory, row.key, row.location, row.quantity, row.fields)
            )
        except PinvError as exc:
            exc.add_note(f"while importing line {row.line} (key '{row.key}')")
            raise
    return created
