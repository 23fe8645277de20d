"""
Schema Registry for pinv.

The SchemaRegistry is the single authority for catagory definitions. It
provides:
- Definition of catagories from a list of typed fields
- Lookup by id (case-insensitive)
- Additive evolution (appending fields)
- Removal of catagories that hold no entries

Invariants:
    - Catagory ids are unique (case-insensitive)
    - A catagory always declares at least one field
    - Existing fields are never renamed, retyped or removed
    - Every mutation is committed to the database before it returns

Caching:
    Catagories are cached in memory. The cache is dropped after every write
    made through this registry, and reloaded whenever SQLite reports that
    another connection has committed (PRAGMA data_version).

Example:
    >>> registry = SchemaRegistry(Repository(conn))
    >>> registry.define_catagory("resistors", [
    ...     FieldDef.create("resistance", FieldType.REAL),
    ...     FieldDef.create("tolerance", FieldType.TEXT),
    ... ])
    >>> registry.resolve("RESISTORS").field_names
    ['resistance', 'tolerance']
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pinv.db.connection import transaction
from pinv.errors import (
    CatagoryNotEmptyError,
    CatagoryNotFoundError,
    DuplicateCatagoryError,
    DuplicateFieldError,
)
from pinv.schema.types import Catagory, FieldDef, check_name

if TYPE_CHECKING:
    from pinv.db.repository import Repository

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Defines, validates and resolves catagories.

    One registry is created per open database and handed by reference to the
    entry store, the constraint engine and the template engine. None of them
    keeps its own copy of a catagory.
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._cache: dict[str, Catagory] | None = None
        self._cache_version: int | None = None

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _catagories(self) -> dict[str, Catagory]:
        version = self._repo.data_version()
        if self._cache is None or version != self._cache_version:
            self._cache = {c.id: c for c in self._repo.list_catagories()}
            self._cache_version = version
            logger.debug(f"Loaded {len(self._cache)} catagories from database")
        return self._cache

    def invalidate(self) -> None:
        """Drop the cache; the next lookup reloads from the database."""
        self._cache = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def define_catagory(self, catagory_id: str, fields: list[FieldDef]) -> Catagory:
        """Define and persist a new catagory.

        Args:
            catagory_id: Case-insensitive id; same naming rule as fields.
            fields: Ordered, non-empty field definitions.

        Returns:
            The stored Catagory (canonical, lower-case names).

        Raises:
            EmptySchemaError: If *fields* is empty.
            InvalidFieldNameError: If the id or any field name is invalid or
                two fields collide.
            DuplicateCatagoryError: If the id already exists.
        """
        catagory = Catagory.create(catagory_id, fields)
        if catagory.id in self._catagories():
            raise DuplicateCatagoryError(
                f"Catagory '{catagory.id}' already exists", catagory=catagory.id
            )

        with transaction(self._repo.conn):
            self._repo.add_catagory(catagory)
        self.invalidate()
        logger.debug(f"Defined catagory {catagory.id} with fields {catagory.field_names}")
        return catagory

    def resolve(self, catagory_id: str) -> Catagory:
        """Return the catagory with *catagory_id* (case-insensitive).

        Raises:
            CatagoryNotFoundError: If no such catagory exists.
        """
        catagory = self._catagories().get(catagory_id.lower())
        if catagory is None:
            raise CatagoryNotFoundError(
                f"Catagory '{catagory_id}' not found", catagory=catagory_id
            )
        return catagory

    def add_field(self, catagory_id: str, field: FieldDef) -> Catagory:
        """Append a new field to an existing catagory.

        Entries written before the change read the new field as None.

        Raises:
            CatagoryNotFoundError: If the catagory does not exist.
            InvalidFieldNameError: If the field name is invalid or reserved.
            DuplicateFieldError: If the name is already declared.
        """
        catagory = self.resolve(catagory_id)
        field = FieldDef(name=check_name(field.name), type=field.type)
        if catagory.field(field.name) is not None:
            raise DuplicateFieldError(
                f"Catagory '{catagory.id}' already has a field '{field.name}'",
                catagory=catagory.id,
                field=field.name,
            )

        with transaction(self._repo.conn):
            self._repo.add_catagory_field(catagory.id, field)
        self.invalidate()
        logger.debug(f"Added field {field} to catagory {catagory.id}")
        return catagory.with_field(field)

    def list(self) -> list[Catagory]:
        """Return all catagories in creation order."""
        return list(self._catagories().values())

    def stats(self) -> list[tuple[Catagory, int]]:
        """Return ``(catagory, entry_count)`` pairs in creation order."""
        return [(c, self._repo.count_entries(c.id)) for c in self.list()]

    def remove_catagory(self, catagory_id: str) -> None:
        """Delete a catagory that holds no entries.

        Raises:
            CatagoryNotFoundError: If the catagory does not exist.
            CatagoryNotEmptyError: If any entry still references it.
        """
        catagory = self.resolve(catagory_id)
        with transaction(self._repo.conn):
            count = self._repo.count_entries(catagory.id)
            if count:
                raise CatagoryNotEmptyError(
                    f"Catagory '{catagory.id}' still holds {count} entries",
                    catagory=catagory.id,
                    entries=count,
                )
            self._repo.delete_catagory(catagory.id)
        self.invalidate()
        logger.debug(f"Removed catagory {catagory.id}")
