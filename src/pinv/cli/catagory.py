"""pinv catagory commands: define, extend, remove and list catagories.

Usage:
  pinv add-catagory resistors resistance:r tolerance:t
  pinv add-field resistors power_rating:r
  pinv remove-catagory resistors --yes
  pinv catagories
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from pinv.cli.common import DbOption, catagory_table, console, core_errors, open_inventory
from pinv.cli.errors import err_invalid_input
from pinv.schema.types import FieldDef


def _parse_field_defs(texts: list[str]) -> list[FieldDef]:
    fields: list[FieldDef] = []
    for text in texts:
        try:
            fields.append(FieldDef.from_text(text))
        except ValueError as exc:
            console.print(err_invalid_input(str(exc)))
            raise typer.Exit(1) from None
    return fields


def add_catagory_cmd(
    catagory: Annotated[str, typer.Argument(help="Name of the new catagory.")],
    fields: Annotated[
        list[str] | None,
        typer.Argument(help="Field definitions as name:type (t=text, i=integer, r=real)."),
    ] = None,
    db: DbOption = None,
) -> None:
    """Define a new catagory with typed fields."""
    with open_inventory(db) as inv:
        with core_errors():
            defined = inv.registry.define_catagory(catagory, _parse_field_defs(fields or []))
        console.print(catagory_table(defined))
        console.print(f"[green]✓[/] Added catagory {escape(defined.id)}")


def add_field_cmd(
    catagory: Annotated[str, typer.Argument(help="Catagory to extend.")],
    field: Annotated[str, typer.Argument(help="New field as name:type.")],
    db: DbOption = None,
) -> None:
    """Append a field to an existing catagory (existing entries read it as empty)."""
    (new_field,) = _parse_field_defs([field])
    with open_inventory(db) as inv:
        with core_errors():
            updated = inv.registry.add_field(catagory, new_field)
        console.print(catagory_table(updated))
        console.print(f"[green]✓[/] Added field {escape(new_field.name)} to {escape(updated.id)}")


def remove_catagory_cmd(
    catagory: Annotated[str, typer.Argument(help="Catagory to remove (must be empty).")],
    db: DbOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
) -> None:
    """Remove a catagory that holds no entries."""
    with open_inventory(db) as inv:
        with core_errors():
            existing = inv.registry.resolve(catagory)
        console.print(catagory_table(existing))

        if not yes:
            if not typer.confirm("Remove this catagory?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        with core_errors():
            inv.registry.remove_catagory(existing.id)
        console.print(f"[green]✓[/] Removed catagory {escape(existing.id)}")


def catagories_cmd(
    db: DbOption = None,
) -> None:
    """List all catagories with their fields and entry counts."""
    with open_inventory(db) as inv:
        with core_errors():
            stats = inv.registry.stats()

        if not stats:
            console.print("[dim]No catagories yet.[/]  Run:  pinv add-catagory NAME FIELD:TYPE ...")
            return

        table = Table(title="Catagories")
        table.add_column("Catagory", style="bold")
        table.add_column("Fields")
        table.add_column("Entries", justify="right")
        for catagory, count in stats:
            table.add_row(
                escape(catagory.id),
                ", ".join(str(f) for f in catagory.fields),
                str(count),
            )
        console.print(table)
