"""Catagory schemas: field types, definitions and the registry."""

from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import (
    RESERVED_NAMES,
    Catagory,
    FieldDef,
    FieldType,
    FieldValue,
    check_name,
)

__all__ = [
    "Catagory",
    "FieldDef",
    "FieldType",
    "FieldValue",
    "RESERVED_NAMES",
    "SchemaRegistry",
    "check_name",
]
