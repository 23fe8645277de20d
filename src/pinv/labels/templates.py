"""Label templates: load gzip-compressed SVG documents and fill placeholders.

Placeholder syntax (case-insensitive, whitespace allowed inside braces):

    {{key}}  {{location}}  {{quantity}}  {{catagory}}
    {{created}}  {{modified}}  {{<any declared field>}}
    {{next_key}}   ← key sheets only (see fill_key_sheet)

Values are XML-escaped before insertion and the filled document is checked
for well-formedness before it is returned, so substitution can never break
the surrounding markup.

Unbound placeholders (names the entry's catagory does not declare) follow an
explicit policy chosen by the caller:
  strict=True   → UnboundPlaceholderError
  strict=False  → blank-filled, one UserWarning per name
"""

from __future__ import annotations

import gzip
import html
import re
import warnings
import zlib
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING
from xml.etree import ElementTree

from pinv.db.models import Entry
from pinv.errors import (
    CorruptTemplateError,
    TemplateNotFoundError,
    UnboundPlaceholderError,
)

if TYPE_CHECKING:
    from pinv.schema.registry import SchemaRegistry

_BUILTIN_PACKAGE = "pinv.labels.builtin"
_TEMPLATE_SUFFIX = ".svg.gz"

PLACEHOLDER_RE: re.Pattern[str] = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
NEXT_KEY = "next_key"

_ENTRY_SCALARS = ("key", "location", "quantity", "catagory", "created", "modified")


@dataclass(frozen=True)
class TemplateDoc:
    """A decompressed, well-formed template ready to be filled."""

    name: str
    text: str

    @property
    def placeholders(self) -> list[str]:
        """Distinct placeholder names in document order (lower-cased)."""
        seen: dict[str, None] = {}
        for match in PLACEHOLDER_RE.finditer(self.text):
            seen.setdefault(match.group(1).lower(), None)
        return list(seen)

    @property
    def slot_count(self) -> int:
        """Number of ``{{next_key}}`` slots on a key sheet."""
        return sum(
            1 for m in PLACEHOLDER_RE.finditer(self.text) if m.group(1).lower() == NEXT_KEY
        )


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


def list_builtin() -> list[str]:
    """Return the ids of the templates bundled with pinv, sorted."""
    root = resources.files(_BUILTIN_PACKAGE)
    return sorted(
        item.name[: -len(_TEMPLATE_SUFFIX)]
        for item in root.iterdir()
        if item.name.endswith(_TEMPLATE_SUFFIX)
    )


def load_template(source: str | Path, template_dir: Path | None = None) -> TemplateDoc:
    """Load a template by builtin id, by file path, or by name in *template_dir*.

    Resolution order: builtin id → existing file path →
    ``<template_dir>/<source>.svg.gz``.

    Raises:
        TemplateNotFoundError: If nothing matches *source*.
        CorruptTemplateError: If the data is not gzip, not UTF-8, or not
            well-formed XML.
    """
    text_source = str(source)
    if text_source in list_builtin():
        data = resources.files(_BUILTIN_PACKAGE).joinpath(text_source + _TEMPLATE_SUFFIX).read_bytes()
        return parse_template(text_source, data)

    for candidate in _candidate_paths(Path(source), template_dir):
        if candidate.is_file():
            try:
                data = candidate.read_bytes()
            except OSError as exc:
                raise TemplateNotFoundError(
                    f"Cannot read template '{candidate}': {exc}", source=str(candidate)
                ) from exc
            return parse_template(candidate.name, data)

    raise TemplateNotFoundError(
        f"Template '{text_source}' not found", source=text_source, builtin=list_builtin()
    )


def _candidate_paths(path: Path, template_dir: Path | None) -> Iterator[Path]:
    yield path
    if template_dir is not None and not path.is_absolute():
        yield template_dir / path
        yield template_dir / (path.name + _TEMPLATE_SUFFIX)


def parse_template(name: str, compressed: bytes) -> TemplateDoc:
    """Decompress and check a gzip-compressed SVG template."""
    try:
        raw = gzip.decompress(compressed)
    except (OSError, EOFError, zlib.error) as exc:
        raise CorruptTemplateError(
            f"Template '{name}' is not valid gzip data: {exc}", source=name
        ) from exc
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CorruptTemplateError(
            f"Template '{name}' is not UTF-8 text: {exc}", source=name
        ) from exc
    _check_well_formed(name, text)
    return TemplateDoc(name=name, text=text)


def compress_template(text: str) -> bytes:
    """Return *text* in the on-disk template format (gzip of UTF-8)."""
    return gzip.compress(text.encode("utf-8"))


def _check_well_formed(name: str, text: str) -> None:
    try:
        ElementTree.fromstring(text.encode("utf-8"))
    except ElementTree.ParseError as exc:
        raise CorruptTemplateError(
            f"Template '{name}' is not well-formed XML: {exc}", source=name
        ) from exc


# ------------------------------------------------------------------
# Filling
# ------------------------------------------------------------------


def render_value(value: object) -> str:
    """Render a field or scalar for a label. Null is the empty string."""
    if value is None:
        return ""
    return str(value)


def entry_bindings(entry: Entry, registry: SchemaRegistry) -> dict[str, str]:
    """Return every placeholder name *entry* can fill, mapped to its text.

    Fields come from the catagory as currently declared in *registry*.
    """
    catagory = registry.resolve(entry.catagory)
    bindings = {name: render_value(getattr(entry, name)) for name in _ENTRY_SCALARS}
    for f in catagory.fields:
        bindings[f.name] = render_value(entry.fields.get(f.name))
    return bindings


def fill(
    template: TemplateDoc,
    entry: Entry,
    registry: SchemaRegistry,
    *,
    strict: bool,
) -> bytes:
    """Fill *template* with one entry's scalars and fields.

    Args:
        template: A loaded template.
        entry: The entry to render.
        registry: Used to resolve the entry's catagory (declared fields).
        strict: Unbound-placeholder policy; see module docstring.

    Returns:
        The filled document, UTF-8 encoded.

    Raises:
        UnboundPlaceholderError: In strict mode, if the template names a field
            the catagory does not declare.
    """
    bindings = entry_bindings(entry, registry)
    return _substitute(template, lambda name: bindings.get(name), strict=strict)


def fill_key_sheet(
    template: TemplateDoc,
    keys: Iterable[str],
    *,
    strict: bool,
) -> bytes:
    """Fill each ``{{next_key}}`` slot with the next key from *keys*.

    Raises:
        ValueError: If *keys* runs out before the slots do.
        UnboundPlaceholderError: In strict mode, for any other placeholder.
    """
    supply = iter(keys)

    def lookup(name: str) -> str | None:
        if name != NEXT_KEY:
            return None
        try:
            return next(supply)
        except StopIteration:
            raise ValueError(
                f"Not enough keys for template '{template.name}' "
                f"({template.slot_count} slots)"
            ) from None

    return _substitute(template, lookup, strict=strict)


def _substitute(
    template: TemplateDoc, lookup: Callable[[str], str | None], *, strict: bool
) -> bytes:
    unbound: list[str] = []

    def replace(match: re.Match[str]) -> str:
        name = match.group(1).lower()
        value = lookup(name)
        if value is None:
            if name not in unbound:
                unbound.append(name)
            return ""
        return html.escape(value, quote=True)

    filled = PLACEHOLDER_RE.sub(replace, template.text)

    if unbound:
        if strict:
            raise UnboundPlaceholderError(
                f"Template '{template.name}' uses unbound placeholders: {', '.join(unbound)}",
                template=template.name,
                placeholders=unbound,
            )
        for name in unbound:
            warnings.warn(
                f"Template '{template.name}' placeholder '{{{{{name}}}}}' is unbound; left blank.",
                UserWarning,
                stacklevel=3,
            )

    _check_well_formed(template.name, filled)
    return filled.encode("utf-8")
