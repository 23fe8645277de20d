"""Tests for bulk import from record-separated files."""

from __future__ import annotations

from pathlib import Path

import pytest

from pinv.errors import DuplicateKeyError, EntryNotFoundError, UnknownFieldError
from pinv.importer import DELIMITER, ImportFormatError, import_entries, read_import_file


def _write(path: Path, rows: list[list[str]]) -> Path:
    path.write_text("\n".join(DELIMITER.join(r) for r in rows) + "\n", encoding="utf-8")
    return path


def _header():
    return [["resistors"], ["key", "location", "quantity", "resistance", "tolerance"]]


def test_read_import_file(tmp_path):
    path = _write(
        tmp_path / "parts.txt",
        _header() + [["'1A'", "'Drawer 1'", "50", "220", "5%"], ["1B", "Drawer 2", "3", "47", ""]],
    )
    batch = read_import_file(path)
    assert batch.catagory == "resistors"
    assert [r.key for r in batch.rows] == ["1A", "1B"]
    assert batch.rows[0].location == "Drawer 1"
    assert batch.rows[0].fields == {"resistance": "220", "tolerance": "5%"}
    assert batch.rows[1].fields == {"resistance": "47"}
    assert batch.rows[1].line == 4


def test_field_values_keep_quotes(tmp_path):
    path = _write(
        tmp_path / "parts.txt",
        [["'cables'"], ["key", "location", "quantity", "'label'"], ["1A", "Bin", "2", "3' O'Brien cable"]],
    )
    batch = read_import_file(path)
    assert batch.catagory == "cables"
    assert batch.rows[0].fields == {"label": "3' O'Brien cable"}


def test_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_text("", encoding="utf-8")
    with pytest.raises(ImportFormatError, match="empty"):
        read_import_file(path)


def test_missing_required_column(tmp_path):
    path = _write(tmp_path / "parts.txt", [["resistors"], ["key", "quantity"]])
    with pytest.raises(ImportFormatError, match="location"):
        read_import_file(path)


def test_wrong_cell_count(tmp_path):
    path = _write(tmp_path / "parts.txt", _header() + [["1A", "Drawer 1", "50"]])
    with pytest.raises(ImportFormatError, match="line 3"):
        read_import_file(path)


@pytest.mark.parametrize("quantity", ["many", "-1"])
def test_bad_quantity(tmp_path, quantity):
    path = _write(tmp_path / "parts.txt", _header() + [["1A", "Drawer 1", quantity, "", ""]])
    with pytest.raises(ImportFormatError, match="quantity"):
        read_import_file(path)


def test_import_entries(tmp_path, store, resistors):
    path = _write(tmp_path / "parts.txt", _header() + [["1A", "Drawer 1", "50", "220", "5%"]])
    created = import_entries(store, read_import_file(path))
    assert [e.key for e in created] == ["1A"]
    assert store.find("1A").fields == {"resistance": 220.0, "tolerance": "5%"}


def test_import_stops_at_first_error_with_note(tmp_path, store, resistors):
    store.create("resistors", "1B", "Bin", 1)
    path = _write(
        tmp_path / "parts.txt",
        _header()
        + [["1A", "Drawer 1", "1", "", ""], ["1B", "Drawer 1", "1", "", ""], ["1C", "Drawer 1", "1", "", ""]],
    )
    with pytest.raises(DuplicateKeyError) as exc_info:
        import_entries(store, read_import_file(path))
    assert "line 4" in exc_info.value.__notes__[0]
    assert store.find("1A").location == "Drawer 1"
    with pytest.raises(EntryNotFoundError):
        store.find("1C")


def test_import_unknown_column(tmp_path, store, resistors):
    path = _write(
        tmp_path / "parts.txt",
        [["resistors"], ["key", "location", "quantity", "colour"], ["1A", "Bin", "1", "red"]],
    )
    with pytest.raises(UnknownFieldError):
        import_entries(store, read_import_file(path))
