"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from pinv.db.connection import Database
from pinv.db.repository import Repository
from pinv.db.schema import initialize
from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import FieldDef
from pinv.store import EntryStore


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "pinv.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def registry(repo):
    return SchemaRegistry(repo)


@pytest.fixture
def store(repo, registry):
    return EntryStore(repo, registry)


@pytest.fixture
def resistors(registry):
    """A 'resistors' catagory: resistance (real), tolerance (text)."""
    return registry.define_catagory(
        "resistors",
        [FieldDef.create("resistance", "r"), FieldDef.create("tolerance", "t")],
    )
