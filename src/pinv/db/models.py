"""Domain models for the pinv database layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pinv.schema.types import FieldValue


@dataclass
class EntryRecord:
    """An entry row exactly as stored, before schema validation."""

    key: str
    catagory_id: str
    location: str
    quantity: int
    fields: dict[str, Any] = field(default_factory=dict)
    created: str | None = None
    modified: str | None = None


@dataclass
class Entry:
    """A single inventoried record, validated against its catagory.

    ``fields`` holds one value per field the catagory declares, in
    declaration order; unset fields are None.
    """

    key: str
    catagory: str
    location: str
    quantity: int
    fields: dict[str, FieldValue] = field(default_factory=dict)
    created: str | None = None
    modified: str | None = None

    def value(self, name: str) -> Any:
        """Return a field or entry scalar by (case-insensitive) name."""
        lowered = name.lower()
        if lowered in ("key", "catagory", "location", "quantity", "created", "modified"):
            return getattr(self, lowered)
        return self.fields.get(lowered)
