"""pinv rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from pinv.cli.errors import err_no_db
    console.print(err_no_db(str(db)))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape

from pinv.errors import (
    CatagoryNotEmptyError,
    CatagoryNotFoundError,
    CorruptEntryError,
    CorruptTemplateError,
    DuplicateCatagoryError,
    DuplicateKeyError,
    EntryNotFoundError,
    InsufficientQuantityError,
    PinvError,
    StorageError,
    TemplateNotFoundError,
    UnboundPlaceholderError,
    UnknownFieldError,
)


def err_no_db(db_path: str) -> str:
    """No database at the configured path."""
    return (
        f"[red]Error:[/] No database found at '{escape(db_path)}'.\n"
        f"  Run:  pinv init --db {escape(db_path)}"
    )


def err_catagory_not_found(catagory: str) -> str:
    return (
        f"[red]Error:[/] Catagory '{escape(catagory)}' not found.\n"
        "  Run:  pinv catagories  to see all catagories."
    )


def err_duplicate_catagory(catagory: str) -> str:
    return (
        f"[red]Error:[/] Catagory '{escape(catagory)}' already exists.\n"
        f"  Use:  pinv add-field {escape(catagory)} NAME:TYPE  to extend it."
    )


def err_catagory_not_empty(catagory: str, count: int) -> str:
    return (
        f"[red]Error:[/] Catagory '{escape(catagory)}' still holds {count} entries.\n"
        f"  Run:  pinv list --catagory {escape(catagory)}  and delete them first."
    )


def err_entry_not_found(key: str) -> str:
    return (
        f"[yellow]Entry not found:[/] no entry has key '{escape(key)}'.\n"
        "  Run:  pinv list --catagory <catagory>  to see stored keys."
    )


def err_duplicate_key(key: str) -> str:
    return (
        f"[red]Error:[/] Key '{escape(key)}' is already in use.\n"
        f"  Run:  pinv find {escape(key)}  to see it, or pick an unused key "
        "(pinv key-sheet prints a sheet of them)."
    )


def err_unknown_field(field: str, catagory: str) -> str:
    return (
        f"[red]Error:[/] Catagory '{escape(catagory)}' has no field '{escape(field)}'.\n"
        "  Run:  pinv catagories  to see declared fields, or\n"
        f"        pinv add-field {escape(catagory)} {escape(field)}:t  to declare it."
    )


def err_insufficient_quantity(key: str, have: int, delta: int) -> str:
    return (
        f"[red]Error:[/] Cannot take {-delta} from '{escape(key)}': only {have} left.\n"
        f"  Use:  pinv take --key {escape(key)} {have}  to take everything."
    )


def err_bad_assignment(text: str) -> str:
    return (
        f"[red]Error:[/] Invalid assignment '{escape(text)}'.\n"
        "  Use:  field=value  (an empty value clears the field)"
    )


def err_template_not_found(source: str, builtin: list[str]) -> str:
    available = ", ".join(builtin) if builtin else "(none)"
    return (
        f"[red]Error:[/] Template '{escape(source)}' not found.\n"
        f"  Builtin templates: {available}\n"
        "  Run:  pinv templates"
    )


def err_corrupt_template(message: str) -> str:
    return (
        f"[red]Error:[/] {escape(message)}\n"
        "  Run:  gzip -k label.svg  to compress a plain SVG template."
    )


def err_unbound_placeholder(names: list[str]) -> str:
    listed = ", ".join("{{" + n + "}}" for n in names)
    return (
        f"[red]Error:[/] Template placeholders have no value: {escape(listed)}\n"
        "  Use:  --lenient  to leave them blank, or add the fields to the catagory."
    )


def err_storage(message: str) -> str:
    return (
        f"[red]Error:[/] The database failed: {escape(message)}\n"
        "  Check the file permissions and free disk space, or restore the\n"
        "  database file from a backup."
    )


def err_invalid_input(message: str) -> str:
    return (
        f"[red]Error:[/] {escape(message)}\n"
        "  Fix the value and run the command again."
    )


def warn_delete_irreversible() -> str:
    return "[yellow]⚠[/] Once an entry is deleted it cannot be restored."


def err_for(exc: PinvError) -> str:
    """Pick the actionable message for a core error."""
    details = exc.details
    if isinstance(exc, CatagoryNotFoundError):
        return err_catagory_not_found(str(details.get("catagory", "")))
    if isinstance(exc, DuplicateCatagoryError):
        return err_duplicate_catagory(str(details.get("catagory", "")))
    if isinstance(exc, CatagoryNotEmptyError):
        return err_catagory_not_empty(str(details.get("catagory", "")), details.get("entries", 0))
    if isinstance(exc, EntryNotFoundError):
        return err_entry_not_found(str(details.get("key", "")))
    if isinstance(exc, DuplicateKeyError):
        return err_duplicate_key(str(details.get("key", "")))
    if isinstance(exc, UnknownFieldError) and "catagory" in details:
        return err_unknown_field(str(details.get("field", "")), str(details["catagory"]))
    if isinstance(exc, InsufficientQuantityError):
        return err_insufficient_quantity(
            str(details.get("key", "")), details.get("quantity", 0), details.get("delta", 0)
        )
    if isinstance(exc, TemplateNotFoundError):
        return err_template_not_found(str(details.get("source", "")), details.get("builtin", []))
    if isinstance(exc, CorruptTemplateError):
        return err_corrupt_template(exc.message)
    if isinstance(exc, UnboundPlaceholderError):
        return err_unbound_placeholder(details.get("placeholders", []))
    if isinstance(exc, (StorageError, CorruptEntryError)):
        return err_storage(exc.message)
    return err_invalid_input(exc.message)
