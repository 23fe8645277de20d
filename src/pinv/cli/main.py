"""pinv CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from pinv.cli.catagory import (
    add_catagory_cmd,
    add_field_cmd,
    catagories_cmd,
    remove_catagory_cmd,
)
from pinv.cli.entry import (
    add_cmd,
    delete_cmd,
    find_cmd,
    give_cmd,
    list_cmd,
    modify_cmd,
    take_cmd,
)
from pinv.cli.importer import import_cmd
from pinv.cli.init import init_cmd
from pinv.cli.label import key_sheet_cmd, label_cmd, templates_cmd
from pinv.cli.search import search_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("pinv")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pinv {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="pinv",
    help=(
        "pinv: personal inventory tracker.\n\n"
        "  pinv add-catagory  Define a catagory of typed fields.\n"
        "  pinv add           Store an entry; find, modify, give, take, delete it.\n"
        "  pinv search        Filter a catagory by typed constraints.\n"
        "  pinv label         Fill an SVG label template for an entry."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """pinv: personal inventory tracker."""


app.command("init")(init_cmd)

app.command("add-catagory")(add_catagory_cmd)
app.command("add-field")(add_field_cmd)
app.command("remove-catagory")(remove_catagory_cmd)
app.command("catagories")(catagories_cmd)

app.command("add")(add_cmd)
app.command("find")(find_cmd)
app.command("modify")(modify_cmd)
app.command("give")(give_cmd)
app.command("take")(take_cmd)
app.command("delete")(delete_cmd)
app.command("list")(list_cmd)

app.command("search")(search_cmd)

app.command("label")(label_cmd)
app.command("key-sheet")(key_sheet_cmd)
app.command("templates")(templates_cmd)

app.command("import")(import_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed pinv version."""
    typer.echo(f"pinv {_installed_version()}")


if __name__ == "__main__":
    app()
