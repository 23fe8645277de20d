"""pinv label commands: fill SVG templates for one entry or a sheet of keys.

Usage:
  pinv label 1A label.svg
  pinv label 1A label.svg --template ~/labels/small.svg.gz --lenient
  pinv key-sheet keys.svg --template avery_18160 --start 100
  pinv templates
"""

from __future__ import annotations

import warnings
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from pinv.cli.common import DbOption, console, core_errors, load_cfg, open_inventory
from pinv.cli.errors import err_invalid_input
from pinv.labels.templates import TemplateDoc, fill, fill_key_sheet, list_builtin, load_template
from pinv.labels.writer import LabelOutput

_DEFAULT_LABEL = "entry_label"
_DEFAULT_SHEET = "avery_18160"

StrictOption = Annotated[
    bool | None,
    typer.Option(
        "--strict/--lenient",
        help="Fail on unbound placeholders, or leave them blank (default: from config).",
    ),
]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Overwrite without asking.")]
TemplateDirOption = Annotated[
    Path | None,
    typer.Option("--template-dir", help="Directory of user templates (default: from config)."),
]


def _prepare_output(output: Path, yes: bool) -> LabelOutput:
    with core_errors():
        target = LabelOutput.from_arg(output)

    if not target.may_write(yes=yes):
        console.print("  [dim]Cancelled.[/]")
        raise typer.Exit(0)
    return target


def _render(render: Callable[[], bytes]) -> bytes:
    """Run a fill, echoing lenient-mode warnings to the console."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UserWarning)
        with core_errors():
            content = render()
    for w in caught:
        console.print(f"[yellow]⚠[/] {escape(str(w.message))}")
    return content


def _load(template: str, template_dir: Path | None) -> tuple[TemplateDoc, bool]:
    cfg = load_cfg()
    directory = template_dir if template_dir is not None else cfg.templates.directory
    with core_errors():
        doc = load_template(template, directory)
    return doc, cfg.templates.strict


def label_cmd(
    key: Annotated[str, typer.Argument(help="Key of the entry to label.")],
    output: Annotated[Path, typer.Argument(help="Where to write the filled SVG.")],
    template: Annotated[
        str, typer.Option("--template", "-t", help="Builtin id, file path, or template name.")
    ] = _DEFAULT_LABEL,
    template_dir: TemplateDirOption = None,
    strict: StrictOption = None,
    yes: YesOption = False,
    db: DbOption = None,
) -> None:
    """Fill a label template with one entry's values."""
    target = _prepare_output(output, yes)
    doc, default_strict = _load(template, template_dir)
    policy = default_strict if strict is None else strict

    with open_inventory(db) as inv:
        with core_errors():
            entry = inv.store.find(key)
        content = _render(lambda: fill(doc, entry, inv.registry, strict=policy))

    target.write(content)
    console.print(f"  [green]✓[/] Written to [bold]{escape(str(target.path))}[/]")


def key_sheet_cmd(
    output: Annotated[Path, typer.Argument(help="Where to write the filled SVG.")],
    template: Annotated[
        str, typer.Option("--template", "-t", help="Builtin id, file path, or template name.")
    ] = _DEFAULT_SHEET,
    start: Annotated[
        int, typer.Option("--start", min=0, help="Smallest key number to consider.")
    ] = 0,
    template_dir: TemplateDirOption = None,
    strict: StrictOption = None,
    yes: YesOption = False,
    db: DbOption = None,
) -> None:
    """Print a sheet of unused keys, one per {{next_key}} slot."""
    target = _prepare_output(output, yes)
    doc, default_strict = _load(template, template_dir)
    policy = default_strict if strict is None else strict

    if doc.slot_count == 0:
        console.print(err_invalid_input(f"Template '{doc.name}' has no {{{{next_key}}}} slots."))
        raise typer.Exit(1)

    with open_inventory(db) as inv:
        with core_errors():
            keys = inv.store.next_available_keys(doc.slot_count, start=start)
        content = _render(lambda: fill_key_sheet(doc, keys, strict=policy))

    target.write(content)
    console.print(
        f"  [green]✓[/] {len(keys)} keys ({escape(keys[0])} … {escape(keys[-1])}) "
        f"written to [bold]{escape(str(target.path))}[/]"
    )


def templates_cmd(template_dir: TemplateDirOption = None) -> None:
    """List builtin templates and those in the user template directory."""
    directory = template_dir if template_dir is not None else load_cfg().templates.directory
    table = Table(title="Templates")
    table.add_column("Name", style="bold")
    table.add_column("Source")

    for name in list_builtin():
        table.add_row(escape(name), "builtin")

    if directory.is_dir():
        for path in sorted(directory.glob("*.svg.gz")):
            table.add_row(escape(path.name[: -len(".svg.gz")]), escape(str(path)))

    console.print(table)
