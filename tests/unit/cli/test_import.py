"""Tests for pinv import."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from pinv.cli.main import app
from pinv.db.connection import Database
from pinv.db.repository import Repository
from pinv.db.schema import initialize
from pinv.importer import DELIMITER
from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import FieldDef

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> Path:
    path = tmp_path / "pinv.db"
    with Database(path) as conn:
        initialize(conn)
        SchemaRegistry(Repository(conn)).define_catagory(
            "resistors", [FieldDef.create("resistance", "r")]
        )
    return path


def _file(tmp_path: Path, *rows: str) -> Path:
    path = tmp_path / "parts.txt"
    lines = ["resistors", DELIMITER.join(["key", "location", "quantity", "resistance"]), *rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _row(*cells: str) -> str:
    return DELIMITER.join(cells)


def test_import(db: Path, tmp_path: Path) -> None:
    path = _file(tmp_path, _row("1A", "Drawer 1", "5", "220"), _row("1B", "Drawer 1", "2", ""))
    result = runner.invoke(app, ["import", str(path), "--db", str(db)])
    assert result.exit_code == 0, result.output
    assert "Imported 2 entries into resistors" in result.output
    listing = runner.invoke(app, ["list", "-c", "resistors", "--db", str(db)]).output
    assert "1A" in listing and "1B" in listing


def test_import_bad_value_reports_line(db: Path, tmp_path: Path) -> None:
    path = _file(tmp_path, _row("1A", "Drawer 1", "5", "220"), _row("1B", "Drawer 1", "2", "big"))
    result = runner.invoke(app, ["import", str(path), "--db", str(db)])
    assert result.exit_code == 1
    assert "line 4" in result.output


def test_import_malformed_file(db: Path, tmp_path: Path) -> None:
    path = tmp_path / "parts.txt"
    path.write_text("resistors\n", encoding="utf-8")
    result = runner.invoke(app, ["import", str(path), "--db", str(db)])
    assert result.exit_code == 1
    assert "missing the column row" in result.output


def test_import_missing_file(db: Path, tmp_path: Path) -> None:
    result = runner.invoke(app, ["import", str(tmp_path / "nope.txt"), "--db", str(db)])
    assert result.exit_code != 0
