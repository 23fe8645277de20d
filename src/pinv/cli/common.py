"""Shared plumbing for pinv commands: database opening, error mapping, output."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pinv.cli.errors import err_bad_assignment, err_for, err_invalid_input, err_no_db
from pinv.config import ConfigError, PinvConfig, load_config
from pinv.db.connection import Database
from pinv.db.models import Entry
from pinv.db.repository import Repository
from pinv.db.schema import initialize
from pinv.errors import PinvError
from pinv.schema.registry import SchemaRegistry
from pinv.schema.types import Catagory
from pinv.store import EntryStore

console = Console()

DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the pinv database (default: from config)."),
]


@dataclass
class Inventory:
    """Everything a command needs, wired to one open connection."""

    repo: Repository
    registry: SchemaRegistry
    store: EntryStore


def load_cfg() -> PinvConfig:
    """Load config, turning a ConfigError into a clean exit."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_invalid_input(str(exc)))
        raise typer.Exit(1) from None


def resolve_db(db: Path | None) -> Path:
    """--db flag wins; otherwise the configured database path."""
    return db if db is not None else load_cfg().database.path


@contextmanager
def core_errors() -> Iterator[None]:
    """Print any core error as an actionable message and exit 1."""
    try:
        yield
    except PinvError as exc:
        console.print(err_for(exc))
        raise typer.Exit(1) from None


@contextmanager
def open_inventory(db: Path | None) -> Iterator[Inventory]:
    """Open an existing database; exit 1 if it does not exist."""
    db_path = resolve_db(db)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with core_errors():
        conn = Database(db_path).connect()
    try:
        with core_errors():
            initialize(conn)
            repo = Repository(conn)
            registry = SchemaRegistry(repo)
            yield Inventory(repo=repo, registry=registry, store=EntryStore(repo, registry))
    finally:
        conn.close()


def parse_assignments(assignments: list[str] | None) -> dict[str, str]:
    """Split ``field=value`` arguments on the first ``=``."""
    values: dict[str, str] = {}
    for text in assignments or []:
        name, sep, value = text.partition("=")
        if not sep or not name.strip():
            console.print(err_bad_assignment(text))
            raise typer.Exit(1)
        values[name.strip()] = value
    return values


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _cell(value: object) -> str:
    return "" if value is None else escape(str(value))


def entry_table(entry: Entry) -> Table:
    """Two-column view of one entry: scalars first, then fields."""
    table = Table(title=f"ENTRY {escape(entry.key)}, CATAGORY {escape(entry.catagory)}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("location", _cell(entry.location))
    table.add_row("quantity", _cell(entry.quantity))
    table.add_row("created", _cell(entry.created))
    table.add_row("modified", _cell(entry.modified))
    for name, value in entry.fields.items():
        table.add_row(name, _cell(value))
    return table


def entries_table(catagory: Catagory, entries: list[Entry]) -> Table:
    """One row per entry, one column per scalar and declared field."""
    table = Table(title=f"{escape(catagory.id)} ({len(entries)})")
    for heading in ["key", "location", "quantity", *catagory.field_names]:
        table.add_column(heading)
    for e in entries:
        table.add_row(
            _cell(e.key),
            _cell(e.location),
            _cell(e.quantity),
            *(_cell(e.fields.get(name)) for name in catagory.field_names),
        )
    return table


def catagory_table(catagory: Catagory) -> Table:
    table = Table(title=f"CATAGORY {escape(catagory.id)}")
    table.add_column("Field")
    table.add_column("Type")
    for f in catagory.fields:
        table.add_row(f.name, f.type.name)
    return table
