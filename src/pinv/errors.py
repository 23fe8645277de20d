"""Error types raised by the pinv core.

Every error carries:
  - message: human-readable cause
  - code:    stable identifier for programmatic handling
  - details: extra context (field names, keys, values)

Hierarchy:
  PinvError
    PinvValidationError (ValueError)   : the caller's input was rejected
    PinvNotFoundError   (LookupError)  : a catagory or entry does not exist
    StorageError                       : the database itself failed
    TemplateError                      : a label template could not be used

Validation errors are raised before anything is written. Storage errors are
never conflated with validation errors.
"""

from __future__ import annotations

from typing import Any


class PinvError(Exception):
    """Base exception for all pinv errors."""

    code = "PINV_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class PinvValidationError(PinvError, ValueError):
    """Input was rejected before any write was issued."""

    code = "VALIDATION_ERROR"


class EmptySchemaError(PinvValidationError):
    code = "EMPTY_SCHEMA"


class InvalidFieldNameError(PinvValidationError):
    """A catagory id or field name fails the name rule or is reserved."""

    code = "INVALID_FIELD_NAME"


class DuplicateFieldError(PinvValidationError):
    code = "DUPLICATE_FIELD"


class DuplicateCatagoryError(PinvValidationError):
    code = "DUPLICATE_CATAGORY"


class CatagoryNotEmptyError(PinvValidationError):
    code = "CATAGORY_NOT_EMPTY"


class DuplicateKeyError(PinvValidationError):
    code = "DUPLICATE_KEY"


class UnknownFieldError(PinvValidationError):
    code = "UNKNOWN_FIELD"


class TypeMismatchError(PinvValidationError):
    code = "TYPE_MISMATCH"


class NegativeQuantityError(PinvValidationError):
    code = "NEGATIVE_QUANTITY"


class InsufficientQuantityError(PinvValidationError):
    code = "INSUFFICIENT_QUANTITY"


class UnsupportedOperatorError(PinvValidationError):
    code = "UNSUPPORTED_OPERATOR"


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class PinvNotFoundError(PinvError, LookupError):
    code = "NOT_FOUND"


class CatagoryNotFoundError(PinvNotFoundError):
    code = "CATAGORY_NOT_FOUND"


class EntryNotFoundError(PinvNotFoundError):
    code = "ENTRY_NOT_FOUND"


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class StorageError(PinvError):
    """The backing database failed (I/O, locking, corruption)."""

    code = "STORAGE_ERROR"


class StorageUnavailableError(StorageError):
    code = "STORAGE_UNAVAILABLE"


class StorageCorruptError(StorageError):
    code = "STORAGE_CORRUPT"


class CorruptEntryError(StorageCorruptError):
    """A stored entry value disagrees with its declared field type."""

    code = "CORRUPT_ENTRY"


class SchemaDriftError(CorruptEntryError):
    """A stored entry carries a field its catagory does not declare."""

    code = "SCHEMA_DRIFT"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateError(PinvError):
    code = "TEMPLATE_ERROR"


class TemplateNotFoundError(TemplateError):
    code = "TEMPLATE_NOT_FOUND"


class CorruptTemplateError(TemplateError):
    code = "CORRUPT_TEMPLATE"


class UnboundPlaceholderError(TemplateError):
    code = "UNBOUND_PLACEHOLDER"
