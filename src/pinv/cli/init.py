"""pinv init: create the database and the global config.

Creates:
  ~/.pinv/config.yaml   global config with defaults (created once, mode 0o600)
  <database path>       empty inventory with the current schema

The database path comes from --db, else from config (PINV_DB, pinv.yaml,
~/.pinv/config.yaml).
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from pinv.cli.common import DbOption, console, core_errors, resolve_db
from pinv.config import ensure_global_config
from pinv.db.connection import Database
from pinv.db.schema import initialize


def init_cmd(
    db: DbOption = None,
    global_config: Annotated[
        Path | None,
        typer.Option("--global-config", hidden=True, help="Override the global config path."),
    ] = None,
) -> None:
    """Initialize a pinv inventory database."""
    cfg_path = ensure_global_config(global_config)
    console.print(f"  [green]✓[/] {escape(str(cfg_path))} (global config)")

    db_path = resolve_db(db)
    existed = db_path.exists()

    with core_errors():
        with Database(db_path) as conn:
            initialize(conn)

    if existed:
        console.print(f"  [green]✓[/] {escape(str(db_path))} (already initialized, schema up to date)")
    else:
        console.print(f"  [green]✓[/] {escape(str(db_path))} (new inventory)")

    console.print("\nNext steps:")
    console.print("  1. pinv add-catagory NAME FIELD:TYPE ...   (define a catagory)")
    console.print("  2. pinv add --catagory NAME --key KEY ...  (add entries)")
    console.print("  3. pinv key-sheet keys.svg                 (print unused keys)")
