"""Tests for the pinv catagory commands."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from pinv.cli.main import app
from pinv.db.connection import Database
from pinv.db.repository import Repository
from pinv.db.schema import initialize
from pinv.schema.registry import SchemaRegistry
from pinv.store import EntryStore

runner = CliRunner()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_db(path: Path) -> Path:
    with Database(path) as conn:
        initialize(conn)
    return path


def _invoke(db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


# ---------------------------------------------------------------------------
# No database
# ---------------------------------------------------------------------------


def test_no_db_exits_1(tmp_path: Path) -> None:
    result = _invoke(tmp_path / "missing.db", "catagories")
    assert result.exit_code == 1
    assert "pinv init" in result.output
    assert not (tmp_path / "missing.db").exists()


# ---------------------------------------------------------------------------
# add-catagory
# ---------------------------------------------------------------------------


def test_add_catagory(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    result = _invoke(db, "add-catagory", "Resistors", "resistance:r", "tolerance:t")
    assert result.exit_code == 0, result.output
    assert "Added catagory resistors" in result.output

    with Database(db) as conn:
        registry = SchemaRegistry(Repository(conn))
        assert registry.resolve("resistors").field_names == ["resistance", "tolerance"]


def test_add_catagory_without_fields(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    result = _invoke(db, "add-catagory", "resistors")
    assert result.exit_code == 1
    assert "at least one field" in result.output


def test_add_catagory_bad_type_code(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    result = _invoke(db, "add-catagory", "resistors", "resistance:x")
    assert result.exit_code == 1
    assert "Invalid field type" in result.output


def test_add_catagory_duplicate(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    result = _invoke(db, "add-catagory", "RESISTORS", "value:r")
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert "pinv add-field" in result.output


# ---------------------------------------------------------------------------
# add-field
# ---------------------------------------------------------------------------


def test_add_field(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    result = _invoke(db, "add-field", "resistors", "power_rating:r")
    assert result.exit_code == 0, result.output
    assert "Added field power_rating" in result.output


def test_add_field_missing_catagory(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    result = _invoke(db, "add-field", "caps", "value:r")
    assert result.exit_code == 1
    assert "not found" in result.output
    assert "pinv catagories" in result.output


# ---------------------------------------------------------------------------
# remove-catagory
# ---------------------------------------------------------------------------


def test_remove_catagory_yes(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    result = _invoke(db, "remove-catagory", "resistors", "--yes")
    assert result.exit_code == 0, result.output
    assert "Removed catagory resistors" in result.output


def test_remove_catagory_declined(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    result = runner.invoke(app, ["remove-catagory", "resistors", "--db", str(db)], input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    assert "resistors" in _invoke(db, "catagories").output


def test_remove_catagory_not_empty(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    with Database(db) as conn:
        repo = Repository(conn)
        EntryStore(repo, SchemaRegistry(repo)).create("resistors", "1A", "Bin", 1)
    result = _invoke(db, "remove-catagory", "resistors", "--yes")
    assert result.exit_code == 1
    assert "still holds 1 entries" in result.output


# ---------------------------------------------------------------------------
# catagories
# ---------------------------------------------------------------------------


def test_catagories_empty(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    result = _invoke(db, "catagories")
    assert result.exit_code == 0
    assert "No catagories yet" in result.output


def test_catagories_lists_fields_and_counts(tmp_path: Path) -> None:
    db = _make_db(tmp_path / "pinv.db")
    _invoke(db, "add-catagory", "resistors", "resistance:r")
    _invoke(db, "add-catagory", "caps", "value:r")
    result = _invoke(db, "catagories")
    assert result.exit_code == 0
    assert "resistors" in result.output
    assert "caps" in result.output
    assert "resistance:r" in result.output
