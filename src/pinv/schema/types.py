"""Field types and catagory definitions.

A catagory is a user-defined schema: an id plus an ordered tuple of typed
fields. Field values are plain Python scalars drawn from a closed set:

    FieldType.TEXT     -> str
    FieldType.INTEGER  -> int   (signed 64-bit range, never bool)
    FieldType.REAL     -> float (int accepted and widened)
    Null               -> None  (valid for every type)

Invariants:
    - Names (catagory ids and field names) match NAME_RE and are stored
      lower-cased; comparisons are therefore case-insensitive.
    - A catagory has at least one field; field names are unique within it.
    - Existing fields are never renamed, retyped or removed. New fields are
      appended (see SchemaRegistry.add_field).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pinv.errors import (
    EmptySchemaError,
    InvalidFieldNameError,
    TypeMismatchError,
)

FieldValue = Union[str, int, float, None]

NAME_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Entry scalars and template placeholders share the namespace with fields.
RESERVED_NAMES: frozenset[str] = frozenset(
    ["key", "location", "quantity", "catagory", "created", "modified", "next_key"]
)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INTEGER_RE = re.compile(r"^[+-]?\d+$")

# Characters outside the XML 1.0 Char production.
_XML_ILLEGAL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class FieldType(Enum):
    """Datatypes a catagory field can hold.

    Values are the single-character codes used in ``name:code`` definitions.
    """

    TEXT = "t"
    INTEGER = "i"
    REAL = "r"

    @classmethod
    def from_code(cls, code: str) -> FieldType:
        """Convert a type code (``t``, ``i``, ``r``) or full name to a FieldType.

        Raises:
            ValueError: If *code* names no known type.
        """
        lowered = code.strip().lower()
        for kind in cls:
            if lowered in (kind.value, kind.name.lower()):
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid field type '{code}'. Valid types: {valid}")

    def parse(self, raw: str) -> FieldValue:
        """Coerce raw text to a value of this type. Blank text is Null.

        Raises:
            TypeMismatchError: If *raw* cannot be read as this type.
        """
        if raw == "":
            return None
        if self is FieldType.TEXT:
            return check_text(raw)
        text = raw.strip()
        if self is FieldType.INTEGER:
            if not _INTEGER_RE.match(text):
                raise TypeMismatchError(
                    f"'{raw}' is not a valid integer", value=raw, type=self.name
                )
            return _check_int_range(int(text))
        try:
            value = float(text)
        except ValueError:
            raise TypeMismatchError(
                f"'{raw}' is not a valid real", value=raw, type=self.name
            ) from None
        if not math.isfinite(value):
            raise TypeMismatchError(
                f"'{raw}' is not a finite real", value=raw, type=self.name
            )
        return value

    def coerce(self, value: Any) -> FieldValue:
        """Return *value* as a well-typed field value of this type.

        Strings go through :meth:`parse`; other values must already carry the
        right runtime type.

        Raises:
            TypeMismatchError: If *value* does not fit this type.
        """
        if value is None:
            return None
        if isinstance(value, str):
            return self.parse(value)
        if isinstance(value, bool):
            raise TypeMismatchError(
                f"boolean {value!r} is not a {self.name.lower()}",
                value=value,
                type=self.name,
            )
        if self is FieldType.INTEGER and isinstance(value, int):
            return _check_int_range(value)
        if self is FieldType.REAL and isinstance(value, (int, float)):
            value = float(value)
            if not math.isfinite(value):
                raise TypeMismatchError(
                    f"{value!r} is not a finite real", value=value, type=self.name
                )
            return value
        raise TypeMismatchError(
            f"{value!r} ({type(value).__name__}) is not a {self.name.lower()}",
            value=value,
            type=self.name,
        )

    def accepts(self, value: Any) -> bool:
        """True if *value* is already a well-typed value (or Null) for this type."""
        if value is None:
            return True
        if isinstance(value, bool):
            return False
        if self is FieldType.TEXT:
            return isinstance(value, str)
        if self is FieldType.INTEGER:
            return isinstance(value, int) and INT64_MIN <= value <= INT64_MAX
        return isinstance(value, float)


def _check_int_range(value: int) -> int:
    if not INT64_MIN <= value <= INT64_MAX:
        raise TypeMismatchError(
            f"{value} is outside the 64-bit integer range",
            value=value,
            type=FieldType.INTEGER.name,
        )
    return value


def check_text(value: str, *, what: str = "text") -> str:
    """Reject text holding control characters that XML cannot represent.

    Raises:
        TypeMismatchError: If *value* contains such a character.
    """
    bad = _XML_ILLEGAL_RE.search(value)
    if bad is not None:
        raise TypeMismatchError(
            f"{what.capitalize()} contains the control character {bad.group()!r}",
            value=value,
            type=FieldType.TEXT.name,
        )
    return value


def check_name(name: str, *, what: str = "field name", allow_reserved: bool = False) -> str:
    """Validate *name* against the naming rule and return its canonical form.

    Raises:
        InvalidFieldNameError: If the name is malformed or reserved.
    """
    if not isinstance(name, str) or not NAME_RE.match(name):
        raise InvalidFieldNameError(
            f"'{name}' is not a valid {what}: use letters, digits and "
            "underscores, not starting with a digit",
            name=name,
        )
    canonical = name.lower()
    if not allow_reserved and canonical in RESERVED_NAMES:
        raise InvalidFieldNameError(
            f"'{name}' is a reserved name and cannot be used as a {what}",
            name=name,
        )
    return canonical


@dataclass(frozen=True)
class FieldDef:
    """A named, typed attribute declared on a catagory."""

    name: str
    type: FieldType

    @classmethod
    def create(cls, name: str, type: FieldType | str) -> FieldDef:
        """Build a validated FieldDef with a canonical (lower-case) name."""
        kind = type if isinstance(type, FieldType) else FieldType.from_code(type)
        return cls(name=check_name(name), type=kind)

    @classmethod
    def from_text(cls, text: str) -> FieldDef:
        """Parse ``name:code``, e.g. ``max_volts:r``.

        Raises:
            ValueError: If the definition is not of the form ``name:code``.
        """
        name, sep, code = text.partition(":")
        if not sep or not code or ":" in code:
            raise ValueError(f"Invalid field definition '{text}' (expected name:t|i|r)")
        return cls.create(name, code)

    def __str__(self) -> str:
        return f"{self.name}:{self.type.value}"


@dataclass(frozen=True)
class Catagory:
    """A named schema: an ordered, non-empty tuple of field definitions."""

    id: str
    fields: tuple[FieldDef, ...]

    @classmethod
    def create(cls, id: str, fields: list[FieldDef] | tuple[FieldDef, ...]) -> Catagory:
        """Validate and build a catagory.

        Emptiness is checked before the id so an empty definition is always
        reported as EmptySchemaError.

        Raises:
            EmptySchemaError: If *fields* is empty.
            InvalidFieldNameError: If the id or a field name is invalid, or two
                fields share a name (case-insensitive).
        """
        if not fields:
            raise EmptySchemaError(
                f"Catagory '{id}' must declare at least one field", catagory=id
            )
        canonical_id = check_name(id, what="catagory id", allow_reserved=True)

        seen: set[str] = set()
        checked: list[FieldDef] = []
        for f in fields:
            name = check_name(f.name)
            if name in seen:
                raise InvalidFieldNameError(
                    f"Field '{f.name}' is declared more than once in '{id}'",
                    name=f.name,
                    catagory=id,
                )
            seen.add(name)
            checked.append(FieldDef(name=name, type=f.type))
        return cls(id=canonical_id, fields=tuple(checked))

    def field(self, name: str) -> FieldDef | None:
        """Return the field called *name* (case-insensitive), or None."""
        lowered = name.lower()
        for f in self.fields:
            if f.name == lowered:
                return f
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def with_field(self, field: FieldDef) -> Catagory:
        return Catagory(id=self.id, fields=self.fields + (field,))
