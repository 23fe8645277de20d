"""Entry store: create, read, update, delete and quantity adjustment.

Every operation validates its input completely against the current schema
before anything is written, and every mutation runs inside a single
transaction scope. Stored rows are re-validated on every read because the
catagory may have gained fields since the entry was written:

  - a declared field missing from the row reads as None
  - a stored field the catagory does not declare raises SchemaDriftError
  - a stored value of the wrong type raises CorruptEntryError
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pinv.db.connection import transaction
from pinv.db.models import Entry, EntryRecord
from pinv.db.repository import Repository
from pinv.errors import (
    CatagoryNotFoundError,
    CorruptEntryError,
    DuplicateKeyError,
    EntryNotFoundError,
    InsufficientQuantityError,
    NegativeQuantityError,
    PinvValidationError,
    SchemaDriftError,
    TypeMismatchError,
    UnknownFieldError,
)
from pinv.keys import encode_key
from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import INT64_MAX, Catagory, FieldType, FieldValue, check_text

logger = logging.getLogger(__name__)

_IMMUTABLE = frozenset(["key", "catagory", "created", "modified"])
_KEY_BATCH = 500


class EntryStore:
    """CRUD and quantity adjustment for entries, enforcing schema conformance."""

    def __init__(self, repo: Repository, registry: SchemaRegistry) -> None:
        self._repo = repo
        self._registry = registry

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        catagory_id: str,
        key: str,
        location: str,
        quantity: int,
        field_values: Mapping[str, Any] | None = None,
    ) -> Entry:
        """Create a new entry.

        Args:
            catagory_id: Catagory the entry belongs to.
            key: Caller-supplied key, unique across all catagories.
            location: Physical location of the item.
            quantity: Initial quantity (>= 0).
            field_values: Field name → value. Raw strings are parsed to the
                field's type; blank strings and missing fields are None.

        Raises:
            CatagoryNotFoundError, DuplicateKeyError, TypeMismatchError,
            UnknownFieldError, NegativeQuantityError.
        """
        catagory = self._registry.resolve(catagory_id)
        key = _check_key(key)
        location = _check_location(location)
        quantity = _check_quantity(quantity)

        values: dict[str, FieldValue] = {name: None for name in catagory.field_names}
        values.update(_coerce_updates(catagory, field_values or {}))

        record = EntryRecord(
            key=key,
            catagory_id=catagory.id,
            location=location,
            quantity=quantity,
            fields=_to_stored(values),
        )
        with transaction(self._repo.conn):
            if self._repo.key_exists(key):
                raise DuplicateKeyError(f"Key '{key}' is already in use", key=key)
            self._repo.add_entry(record)
        logger.debug(f"Created entry {key} in {catagory.id}")
        return self.find(key)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find(self, key: str) -> Entry:
        """Return the entry with *key*.

        Raises:
            EntryNotFoundError: If no entry has this key.
            SchemaDriftError, CorruptEntryError: If the stored row no longer
                fits its catagory.
        """
        record = self._repo.get_entry(key)
        if record is None:
            raise EntryNotFoundError(f"No entry with key '{key}'", key=key)
        try:
            catagory = self._registry.resolve(record.catagory_id)
        except CatagoryNotFoundError as exc:
            raise CorruptEntryError(
                f"Entry '{key}' references missing catagory '{record.catagory_id}'",
                key=key,
            ) from exc
        return _load(record, catagory)

    def list(self, catagory_id: str) -> list[Entry]:
        """Return every entry of a catagory in insertion order.

        Raises:
            CatagoryNotFoundError: If the catagory does not exist.
        """
        catagory = self._registry.resolve(catagory_id)
        return [_load(r, catagory) for r in self._repo.list_entries(catagory.id)]

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def modify(self, key: str, field_updates: Mapping[str, Any]) -> Entry:
        """Apply a partial update to an entry.

        ``location`` and ``quantity`` may be updated alongside fields. A blank
        string or None clears a field to Null. Unlisted fields are unchanged.

        Raises:
            EntryNotFoundError, UnknownFieldError, TypeMismatchError,
            NegativeQuantityError, PinvValidationError (immutable target).
        """
        entry = self.find(key)
        catagory = self._registry.resolve(entry.catagory)

        updates = {name.lower(): value for name, value in field_updates.items()}
        blocked = sorted(_IMMUTABLE & updates.keys())
        if blocked:
            raise PinvValidationError(
                f"'{blocked[0]}' cannot be modified", key=key, field=blocked[0]
            )

        location = entry.location
        quantity = entry.quantity
        if "location" in updates:
            location = _check_location(updates.pop("location"))
        if "quantity" in updates:
            quantity = _check_quantity(FieldType.INTEGER.coerce(updates.pop("quantity")))

        values = dict(entry.fields)
        values.update(_coerce_updates(catagory, updates))

        record = EntryRecord(
            key=entry.key,
            catagory_id=catagory.id,
            location=location,
            quantity=quantity,
            fields=_to_stored(values),
        )
        with transaction(self._repo.conn):
            self._repo.update_entry(record)
        logger.debug(f"Modified entry {key}: {sorted(field_updates)}")
        return self.find(key)

    def adjust_quantity(self, key: str, delta: int) -> Entry:
        """Add *delta* (may be negative) to an entry's quantity.

        Raises:
            EntryNotFoundError: If no entry has this key.
            InsufficientQuantityError: If the result would be negative; the
                stored quantity is left unchanged.
            TypeMismatchError: If the result would not fit a 64-bit integer.
        """
        delta = FieldType.INTEGER.coerce(delta)
        if delta is None:
            raise TypeMismatchError("Quantity change must be an integer", key=key)

        with transaction(self._repo.conn):
            record = self._repo.get_entry(key)
            if record is None:
                raise EntryNotFoundError(f"No entry with key '{key}'", key=key)
            if record.quantity + delta > INT64_MAX:
                raise TypeMismatchError(
                    f"Quantity of '{key}' out of range: {record.quantity} + {delta}",
                    key=key,
                    quantity=record.quantity,
                    delta=delta,
                )
            if not self._repo.adjust_quantity(key, delta):
                raise InsufficientQuantityError(
                    f"Cannot take {-delta} from '{key}': only {record.quantity} left",
                    key=key,
                    quantity=record.quantity,
                    delta=delta,
                )
        logger.debug(f"Adjusted quantity of {key} by {delta}")
        return self.find(key)

    def give(self, key: str, amount: int) -> Entry:
        """Increase quantity by a non-negative *amount*."""
        return self.adjust_quantity(key, _check_quantity(amount))

    def take(self, key: str, amount: int) -> Entry:
        """Decrease quantity by a non-negative *amount*."""
        return self.adjust_quantity(key, -_check_quantity(amount))

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, key: str) -> None:
        """Delete an entry.

        Raises:
            EntryNotFoundError: If no entry has this key.
        """
        with transaction(self._repo.conn):
            if not self._repo.delete_entry(key):
                raise EntryNotFoundError(f"No entry with key '{key}'", key=key)
        logger.debug(f"Deleted entry {key}")

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def next_available_keys(self, count: int, start: int = 0) -> list[str]:
        """Return the *count* smallest unused keys at or after *start*."""
        keys: list[str] = []
        number = start
        while len(keys) < count:
            size = min(max(count - len(keys), 1), _KEY_BATCH)
            batch = [encode_key(n) for n in range(number, number + size)]
            taken = self._repo.existing_keys(batch)
            keys.extend(k for k in batch if k not in taken)
            number += size
        return keys[:count]


# ------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key.strip():
        raise PinvValidationError("Entry key must be a non-empty string", key=key)
    return check_text(key, what="key")


def _check_location(location: Any) -> str:
    if not isinstance(location, str):
        raise TypeMismatchError(
            f"Location must be text, got {type(location).__name__}", value=location
        )
    return check_text(location, what="location")


def _check_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise TypeMismatchError(
            f"Quantity must be an integer, got {quantity!r}", value=quantity
        )
    quantity = FieldType.INTEGER.coerce(quantity)
    if quantity < 0:
        raise NegativeQuantityError(
            f"Quantity cannot be negative ({quantity})", quantity=quantity
        )
    return quantity


def _coerce_updates(catagory: Catagory, updates: Mapping[str, Any]) -> dict[str, FieldValue]:
    """Type-check a field name → value mapping against *catagory*."""
    coerced: dict[str, FieldValue] = {}
    for name, value in updates.items():
        field = catagory.field(name)
        if field is None:
            raise UnknownFieldError(
                f"Catagory '{catagory.id}' has no field '{name}'",
                catagory=catagory.id,
                field=name,
            )
        try:
            coerced[field.name] = field.type.coerce(value)
        except TypeMismatchError as exc:
            raise TypeMismatchError(
                f"Field '{field.name}': {exc.message}",
                field=field.name,
                **exc.details,
            ) from exc
    return coerced


def _to_stored(values: Mapping[str, FieldValue]) -> dict[str, FieldValue]:
    return {name: value for name, value in values.items() if value is not None}


def _load(record: EntryRecord, catagory: Catagory) -> Entry:
    """Validate a stored row against the current schema."""
    drift = [name for name in record.fields if catagory.field(name) is None]
    if drift:
        raise SchemaDriftError(
            f"Entry '{record.key}' stores fields not declared by "
            f"'{catagory.id}': {', '.join(sorted(drift))}",
            key=record.key,
            fields=drift,
        )

    fields: dict[str, FieldValue] = {}
    for f in catagory.fields:
        value = record.fields.get(f.name)
        if f.type is FieldType.REAL and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if not f.type.accepts(value):
            raise CorruptEntryError(
                f"Entry '{record.key}' field '{f.name}' holds {value!r}, "
                f"expected {f.type.name.lower()}",
                key=record.key,
                field=f.name,
            )
        fields[f.name] = value

    if isinstance(record.quantity, bool) or not isinstance(record.quantity, int) or record.quantity < 0:
        raise CorruptEntryError(
            f"Entry '{record.key}' has an invalid quantity {record.quantity!r}",
            key=record.key,
        )

    return Entry(
        key=record.key,
        catagory=catagory.id,
        location=record.location,
        quantity=record.quantity,
        fields=fields,
        created=record.created,
        modified=record.modified,
    )
