"""Tests for pinv search."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from pinv.cli.main import app
from pinv.db.connection import Database
from pinv.db.repository import Repository
from pinv.db.schema import initialize
from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import FieldDef
from pinv.store import EntryStore

runner = CliRunner()


@pytest.fixture
def db(tmp_path: Path) -> Path:
    path = tmp_path / "pinv.db"
    with Database(path) as conn:
        initialize(conn)
        repo = Repository(conn)
        registry = SchemaRegistry(repo)
        registry.define_catagory(
            "resistors",
            [FieldDef.create("resistance", "r"), FieldDef.create("tolerance", "t")],
        )
        store = EntryStore(repo, registry)
        store.create("resistors", "R220", "Drawer 1", 5, {"resistance": 220.0, "tolerance": "5%"})
        store.create("resistors", "R47", "Drawer 1", 5, {"resistance": 47.0, "tolerance": "1%"})
        store.create("resistors", "R10K", "Drawer 2", 5, {"resistance": 10000.0})
    return path


def _search(db: Path, *where: str):
    args = ["search", "--catagory", "resistors", "--db", str(db)]
    for w in where:
        args += ["--where", w]
    return runner.invoke(app, args)


def test_single_constraint(db: Path) -> None:
    result = _search(db, "resistance>=100")
    assert result.exit_code == 0, result.output
    assert "R220" in result.output
    assert "R10K" in result.output
    assert "R47" not in result.output


def test_constraints_are_anded(db: Path) -> None:
    result = _search(db, "resistance>=100", "tolerance~5")
    assert result.exit_code == 0, result.output
    assert "R220" in result.output
    assert "R10K" not in result.output


def test_null_constraint(db: Path) -> None:
    result = _search(db, "tolerance=")
    assert result.exit_code == 0, result.output
    assert "R10K" in result.output
    assert "R220" not in result.output


def test_no_constraints_lists_all(db: Path) -> None:
    result = _search(db)
    assert result.exit_code == 0
    for key in ("R220", "R47", "R10K"):
        assert key in result.output


def test_no_matches(db: Path) -> None:
    result = _search(db, "resistance>1e9")
    assert result.exit_code == 0
    assert "No matching entries" in result.output


def test_contains_on_real_rejected(db: Path) -> None:
    result = _search(db, "resistance~2")
    assert result.exit_code == 1
    assert "cannot be used on real" in result.output


def test_unknown_field(db: Path) -> None:
    result = _search(db, "colour=red")
    assert result.exit_code == 1
    assert "no field 'colour'" in result.output


def test_malformed_constraint(db: Path) -> None:
    result = _search(db, "resistance")
    assert result.exit_code == 1
    assert "Invalid constraint" in result.output
