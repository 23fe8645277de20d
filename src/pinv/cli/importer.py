"""pinv import: bulk-create entries from a record-separated text file.

Usage:
  pinv import parts.txt

See pinv.importer for the file layout.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from pinv.cli.common import DbOption, console, open_inventory
from pinv.cli.errors import err_for, err_invalid_input
from pinv.errors import PinvError
from pinv.importer import ImportFormatError, import_entries, read_import_file


def import_cmd(
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, readable=True, help="File to import."),
    ],
    db: DbOption = None,
) -> None:
    """Import entries into one catagory from a file."""
    try:
        batch = read_import_file(file)
    except (ImportFormatError, OSError, UnicodeDecodeError) as exc:
        console.print(err_invalid_input(str(exc)))
        raise typer.Exit(1) from None

    with open_inventory(db) as inv:
        try:
            created = import_entries(inv.store, batch)
        except PinvError as exc:
            console.print(err_for(exc))
            for note in getattr(exc, "__notes__", []):
                console.print(f"  [dim]{escape(note)}[/]")
            raise typer.Exit(1) from None

    console.print(
        f"[green]✓[/] Imported {len(created)} entries into {escape(batch.catagory)}"
    )
