"""Tests for the Repository data access layer."""

from __future__ import annotations

import pytest

from pinv.db.models import EntryRecord
from pinv.errors import CorruptEntryError, StorageCorruptError
from pinv.schema.types import Catagory, FieldDef, FieldType


def _catagory(id="caps", *names):
    fields = [FieldDef(n, FieldType.REAL) for n in (names or ("value",))]
    return Catagory(id=id, fields=tuple(fields))


def _record(key="1A", catagory_id="caps", location="Bin 3", quantity=4, fields=None):
    return EntryRecord(
        key=key,
        catagory_id=catagory_id,
        location=location,
        quantity=quantity,
        fields=fields if fields is not None else {"value": 4.7},
    )


# ------------------------------------------------------------------
# Catagories
# ------------------------------------------------------------------

def test_add_and_get_catagory(repo):
    repo.add_catagory(_catagory("caps", "value", "voltage"))
    result = repo.get_catagory("caps")
    assert result is not None
    assert result.field_names == ["value", "voltage"]


def test_get_catagory_not_found(repo):
    assert repo.get_catagory("nope") is None


def test_add_catagory_field_appends(repo):
    repo.add_catagory(_catagory("caps", "value"))
    repo.add_catagory_field("caps", FieldDef("package", FieldType.TEXT))
    assert [str(f) for f in repo.get_catagory("caps").fields] == ["value:r", "package:t"]


def test_list_catagories_creation_order(repo):
    repo.add_catagory(_catagory("zeners"))
    repo.add_catagory(_catagory("caps"))
    assert [c.id for c in repo.list_catagories()] == ["zeners", "caps"]


def test_delete_catagory_cascades_fields(repo, tmp_db):
    repo.add_catagory(_catagory("caps"))
    repo.delete_catagory("caps")
    assert repo.get_catagory("caps") is None
    assert tmp_db.execute("SELECT COUNT(*) FROM catagory_fields").fetchone()[0] == 0


def test_unreadable_field_type(repo, tmp_db):
    repo.add_catagory(_catagory("caps"))
    tmp_db.execute("PRAGMA ignore_check_constraints = ON")
    tmp_db.execute("UPDATE catagory_fields SET type = 'z'")
    with pytest.raises(StorageCorruptError):
        repo.get_catagory("caps")


# ------------------------------------------------------------------
# Entries
# ------------------------------------------------------------------

def test_add_and_get_entry(repo):
    repo.add_catagory(_catagory())
    repo.add_entry(_record())
    result = repo.get_entry("1A")
    assert result.location == "Bin 3"
    assert result.quantity == 4
    assert result.fields == {"value": 4.7}
    assert result.created is not None


def test_get_entry_not_found(repo):
    assert repo.get_entry("missing") is None


def test_existing_keys(repo):
    repo.add_catagory(_catagory())
    repo.add_entry(_record(key="1A"))
    repo.add_entry(_record(key="1B"))
    assert repo.existing_keys(["1A", "1C", "1B"]) == {"1A", "1B"}
    assert repo.existing_keys([]) == set()


def test_list_entries_insertion_order(repo):
    repo.add_catagory(_catagory())
    for key in ["Z", "A", "M"]:
        repo.add_entry(_record(key=key))
    assert [r.key for r in repo.list_entries("caps")] == ["Z", "A", "M"]
    assert repo.count_entries("caps") == 3


def test_adjust_quantity_guard(repo):
    repo.add_catagory(_catagory())
    repo.add_entry(_record(quantity=4))
    assert repo.adjust_quantity("1A", -4) is True
    assert repo.adjust_quantity("1A", -1) is False
    assert repo.get_entry("1A").quantity == 0


def test_adjust_quantity_missing_key(repo):
    assert repo.adjust_quantity("missing", 1) is False


def test_update_entry(repo):
    repo.add_catagory(_catagory())
    repo.add_entry(_record())
    repo.update_entry(_record(location="Bin 9", quantity=7, fields={}))
    result = repo.get_entry("1A")
    assert (result.location, result.quantity, result.fields) == ("Bin 9", 7, {})


def test_delete_entry(repo):
    repo.add_catagory(_catagory())
    repo.add_entry(_record())
    assert repo.delete_entry("1A") is True
    assert repo.delete_entry("1A") is False


def test_unreadable_field_json(repo, tmp_db):
    repo.add_catagory(_catagory())
    repo.add_entry(_record())
    tmp_db.execute("UPDATE entries SET fields = 'not json'")
    with pytest.raises(CorruptEntryError):
        repo.get_entry("1A")


def test_field_json_must_be_object(repo, tmp_db):
    repo.add_catagory(_catagory())
    repo.add_entry(_record())
    tmp_db.execute("UPDATE entries SET fields = '[1, 2]'")
    with pytest.raises(CorruptEntryError):
        repo.get_entry("1A")
