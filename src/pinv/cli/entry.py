"""pinv entry commands: add, find, modify, give, take, delete, list.

Usage:
  pinv add --catagory resistors --key 1A --location "Drawer 1" --quantity 50 resistance=220
  pinv find 1A
  pinv modify --key 1A tolerance=5% location="Drawer 2"
  pinv give --key 1A 10
  pinv take --key 1A 3
  pinv delete 1A --yes
  pinv list --catagory resistors
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape

from pinv.cli.common import (
    DbOption,
    console,
    core_errors,
    entries_table,
    entry_table,
    open_inventory,
    parse_assignments,
)
from pinv.cli.errors import warn_delete_irreversible

_KEY_HELP = "Entry key."
_ASSIGN_HELP = "Field assignments as name=value (an empty value clears the field)."


def add_cmd(
    catagory: Annotated[str, typer.Option("--catagory", "-c", help="Catagory of the new entry.")],
    key: Annotated[str, typer.Option("--key", "-k", help="Unique key for the new entry.")],
    location: Annotated[str, typer.Option("--location", "-l", help="Where the item is stored.")],
    quantity: Annotated[int, typer.Option("--quantity", "-q", help="Initial quantity.")] = 0,
    assignments: Annotated[list[str] | None, typer.Argument(help=_ASSIGN_HELP)] = None,
    db: DbOption = None,
) -> None:
    """Add a new entry to a catagory."""
    values = parse_assignments(assignments)
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.create(catagory, key, location, quantity, values)
        console.print(entry_table(entry))
        console.print(f"[green]✓[/] Added {escape(entry.key)} to {escape(entry.catagory)}")


def find_cmd(
    key: Annotated[str, typer.Argument(help=_KEY_HELP)],
    db: DbOption = None,
) -> None:
    """Show one entry by key."""
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.find(key)
        console.print(entry_table(entry))


def modify_cmd(
    key: Annotated[str, typer.Option("--key", "-k", help=_KEY_HELP)],
    assignments: Annotated[list[str], typer.Argument(help=_ASSIGN_HELP)],
    db: DbOption = None,
) -> None:
    """Change fields, location or quantity of an entry."""
    values = parse_assignments(assignments)
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.modify(key, values)
        console.print(entry_table(entry))
        console.print(f"[green]✓[/] Modified {escape(entry.key)}")


def give_cmd(
    key: Annotated[str, typer.Option("--key", "-k", help=_KEY_HELP)],
    amount: Annotated[int, typer.Argument(help="How many to add.")],
    db: DbOption = None,
) -> None:
    """Increase the quantity of an entry."""
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.give(key, amount)
        console.print(f"[green]✓[/] {escape(entry.key)}: quantity {entry.quantity}")


def take_cmd(
    key: Annotated[str, typer.Option("--key", "-k", help=_KEY_HELP)],
    amount: Annotated[int, typer.Argument(help="How many to remove.")],
    db: DbOption = None,
) -> None:
    """Decrease the quantity of an entry (never below zero)."""
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.take(key, amount)
        console.print(f"[green]✓[/] {escape(entry.key)}: quantity {entry.quantity}")


def delete_cmd(
    key: Annotated[str, typer.Argument(help=_KEY_HELP)],
    db: DbOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
) -> None:
    """Delete an entry permanently."""
    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.find(key)
        console.print(entry_table(entry))

        if not yes:
            console.print(warn_delete_irreversible())
            if not typer.confirm("Delete this entry?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        with core_errors():
            inv.store.delete(entry.key)
        console.print(f"[green]✓[/] Deleted {escape(entry.key)}")


def list_cmd(
    catagory: Annotated[str, typer.Option("--catagory", "-c", help="Catagory to list.")],
    db: DbOption = None,
) -> None:
    """List every entry of a catagory."""
    with open_inventory(db) as inv:
        with core_errors():
            resolved = inv.registry.resolve(catagory)
            entries = inv.store.list(resolved.id)
        console.print(entries_table(resolved, entries))
