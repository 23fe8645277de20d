"""Constraint engine: typed comparison predicates over entries.

A Constraint compares one field of an entry against an operand of the same
type. A FilterSet holds constraints in the order they were added and keeps
only the entries that satisfy all of them.

Truth table for Null (None):
  - a Null field never satisfies a comparison against a non-Null operand,
    NEQ included
  - a Null operand is only allowed with EQ (field is Null) and NEQ (field is
    not Null)

Text EQ/NEQ are exact; CONTAINS is a case-insensitive substring test.
Numeric comparisons use plain numeric ordering; real equality is exact, so
callers needing a tolerance should compare against a range instead.

The entry scalars ``key``, ``location`` (text) and ``quantity`` (integer)
can be constrained like declared fields.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pinv.db.models import Entry
from pinv.errors import TypeMismatchError, UnknownFieldError, UnsupportedOperatorError
from pinv.schema.types import Catagory, FieldDef, FieldType, FieldValue

if TYPE_CHECKING:
    from pinv.store import EntryStore


class ComparisonOp(Enum):
    EQ = "="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    CONTAINS = "~"

    @classmethod
    def parse(cls, text: str) -> ComparisonOp:
        """Accept a symbol (``>=``), an alias (``==``) or a name (``gte``).

        Raises:
            UnsupportedOperatorError: If *text* names no operator.
        """
        lowered = text.strip().lower()
        if lowered == "==":
            return cls.EQ
        for op in cls:
            if lowered in (op.value, op.name.lower()):
                return op
        raise UnsupportedOperatorError(f"Unknown operator '{text}'", operator=text)


NUMERIC_OPS = frozenset(
    [ComparisonOp.EQ, ComparisonOp.NEQ, ComparisonOp.LT, ComparisonOp.LTE, ComparisonOp.GT, ComparisonOp.GTE]
)
TEXT_OPS = frozenset([ComparisonOp.EQ, ComparisonOp.NEQ, ComparisonOp.CONTAINS])

SCALAR_FIELDS: dict[str, FieldDef] = {
    "key": FieldDef("key", FieldType.TEXT),
    "location": FieldDef("location", FieldType.TEXT),
    "quantity": FieldDef("quantity", FieldType.INTEGER),
}

_COMPARATORS = {
    ComparisonOp.EQ: operator.eq,
    ComparisonOp.NEQ: operator.ne,
    ComparisonOp.LT: operator.lt,
    ComparisonOp.LTE: operator.le,
    ComparisonOp.GT: operator.gt,
    ComparisonOp.GTE: operator.ge,
    ComparisonOp.CONTAINS: lambda value, operand: operand.casefold() in value.casefold(),
}

# Longest symbols first so "<=" is not read as "<".
_EXPRESSION_RE = re.compile(r"^\s*([A-Za-z0-9_]+)\s*(<=|>=|!=|==|=|<|>|~)(.*)$", re.DOTALL)


@dataclass(frozen=True)
class Constraint:
    """A single typed comparison: ``field <operator> operand``."""

    field: FieldDef
    operator: ComparisonOp
    operand: FieldValue

    def matches(self, entry: Entry) -> bool:
        value = entry.value(self.field.name)
        if self.operand is None:
            if self.operator is ComparisonOp.EQ:
                return value is None
            return value is not None
        if value is None or not self.field.type.accepts(value):
            return False
        return bool(_COMPARATORS[self.operator](value, self.operand))

    def __str__(self) -> str:
        operand = "" if self.operand is None else self.operand
        return f"{self.field.name}{self.operator.value}{operand}"


def make_constraint(
    catagory: Catagory,
    field_name: str,
    op: ComparisonOp | str,
    raw_operand: Any,
) -> Constraint:
    """Build a constraint, type-checked against *catagory*.

    Raises:
        UnknownFieldError: If the catagory has no such field.
        UnsupportedOperatorError: If the operator does not apply to the
            field's type, or is an ordering operator with a Null operand.
        TypeMismatchError: If *raw_operand* cannot be read as the field's type.
    """
    target = catagory.field(field_name) or SCALAR_FIELDS.get(field_name.lower())
    if target is None:
        raise UnknownFieldError(
            f"Catagory '{catagory.id}' has no field '{field_name}'",
            catagory=catagory.id,
            field=field_name,
        )

    comparison = op if isinstance(op, ComparisonOp) else ComparisonOp.parse(op)
    allowed = TEXT_OPS if target.type is FieldType.TEXT else NUMERIC_OPS
    if comparison not in allowed:
        raise UnsupportedOperatorError(
            f"'{comparison.value}' cannot be used on {target.type.name.lower()} "
            f"field '{target.name}'",
            field=target.name,
            operator=comparison.value,
        )

    try:
        operand = target.type.coerce(raw_operand)
    except TypeMismatchError as exc:
        raise TypeMismatchError(
            f"Field '{target.name}': {exc.message}", field=target.name, **exc.details
        ) from exc

    if operand is None and comparison not in (ComparisonOp.EQ, ComparisonOp.NEQ):
        raise UnsupportedOperatorError(
            f"'{comparison.value}' needs a value to compare '{target.name}' against",
            field=target.name,
            operator=comparison.value,
        )
    return Constraint(field=target, operator=comparison, operand=operand)


def parse_constraint(catagory: Catagory, expression: str) -> Constraint:
    """Build a constraint from ``field<op>value`` text, e.g. ``resistance>=100``.

    An empty value means Null: ``tolerance=`` matches entries with no tolerance.
    """
    match = _EXPRESSION_RE.match(expression)
    if not match:
        raise UnsupportedOperatorError(
            f"Invalid constraint '{expression}' (expected field<op>value, "
            "op one of = != < <= > >= ~)",
            expression=expression,
        )
    name, symbol, raw = match.groups()
    return make_constraint(catagory, name, symbol, raw.strip())


@dataclass
class FilterSet:
    """Ordered, conjunctive set of constraints for one search or session."""

    constraints: list[Constraint] = field(default_factory=list)

    def push(self, constraint: Constraint) -> None:
        self.constraints.append(constraint)

    def pop_last(self) -> Constraint | None:
        """Remove and return the most recent constraint; no-op when empty."""
        if not self.constraints:
            return None
        return self.constraints.pop()

    def clear(self) -> None:
        self.constraints.clear()

    def __iter__(self) -> Iterator[Constraint]:
        return iter(self.constraints)

    def __len__(self) -> int:
        return len(self.constraints)


def apply(entries: Iterable[Entry], filter_set: FilterSet) -> list[Entry]:
    """Return the entries satisfying every constraint, preserving order."""
    return [e for e in entries if all(c.matches(e) for c in filter_set)]


def search(store: EntryStore, catagory_id: str, expressions: Iterable[str]) -> list[Entry]:
    """List a catagory and filter it with ``field<op>value`` expressions."""
    catagory = store.registry.resolve(catagory_id)
    filter_set = FilterSet()
    for expression in expressions:
        filter_set.push(parse_constraint(catagory, expression))
    return apply(store.list(catagory.id), filter_set)
