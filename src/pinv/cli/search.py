"""pinv search: filter one catagory by typed constraints.

Usage:
  pinv search --catagory resistors --where "resistance>=100" --where "tolerance~5"

Constraints are ANDed. Operators: = != < <= > >= ~ (contains, text only).
An empty value means "no value": --where "tolerance=" finds unset tolerances.
"""

from __future__ import annotations

from typing import Annotated

import typer

from pinv.cli.common import DbOption, console, core_errors, entries_table, open_inventory
from pinv.query import search


def search_cmd(
    catagory: Annotated[str, typer.Option("--catagory", "-c", help="Catagory to search.")],
    where: Annotated[
        list[str] | None,
        typer.Option("--where", "-w", help="Constraint as field<op>value. Repeatable."),
    ] = None,
    db: DbOption = None,
) -> None:
    """Find entries in a catagory matching every --where constraint."""
    with open_inventory(db) as inv:
        with core_errors():
            resolved = inv.registry.resolve(catagory)
            matches = search(inv.store, resolved.id, where or [])
        if not matches:
            console.print("[dim]No matching entries.[/]")
            return
        console.print(entries_table(resolved, matches))
