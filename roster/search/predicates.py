"""Structured search predicates and their in-memory evaluation.

The planner builds these; a store either evaluates them directly over a
snapshot (``evaluate``) or compiles them into SQL.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .types import PersonRecord


class Column(str, Enum):
    """Person attributes a clause can test."""
    ID = "id"
    EMAIL = "email"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    CALLSIGN = "callsign"
    CALLSIGN_NORMALIZED = "callsign_normalized"
    CALLSIGN_SOUNDEX = "callsign_soundex"
    FORMERLY_KNOWN_AS = "formerly_known_as"
    STATUS = "status"


# Derived keys are stored canonical; everything else compares case-insensitively
CANONICAL_COLUMNS = frozenset({
    Column.ID,
    Column.CALLSIGN_NORMALIZED,
    Column.CALLSIGN_SOUNDEX,
    Column.STATUS,
})


class Op(str, Enum):
    """Comparison operators."""
    EQUALS = "eq"
    STARTS_WITH = "prefix"
    CONTAINS = "contains"
    IN = "in"
    NOT_IN = "not_in"


@dataclass(frozen=True)
class Clause:
    """Single column comparison."""
    column: Column
    op: Op
    value: object


@dataclass(frozen=True)
class AllOf:
    """Conjunction; an empty AllOf matches everything."""
    parts: tuple[Predicate, ...]


@dataclass(frozen=True)
class AnyOf:
    """Disjunction; an empty AnyOf matches nothing."""
    parts: tuple[Predicate, ...]


Predicate = Union[Clause, AllOf, AnyOf]

MATCH_NOTHING = AnyOf(())


def _fold(column: Column, value: object) -> object:
    if column in CANONICAL_COLUMNS or not isinstance(value, str):
        return value
    return value.lower()


def _clause_matches(clause: Clause, record: PersonRecord) -> bool:
    actual = getattr(record, clause.column.value)

    if clause.op is Op.IN:
        return actual in clause.value
    if clause.op is Op.NOT_IN:
        return actual not in clause.value

    if actual is None:
        return False

    actual = _fold(clause.column, actual)
    expected = _fold(clause.column, clause.value)

    if clause.op is Op.EQUALS:
        return actual == expected
    if clause.op is Op.STARTS_WITH:
        return str(actual).startswith(str(expected))
    if clause.op is Op.CONTAINS:
        return str(expected) in str(actual)

    raise ValueError(f"Unsupported operator: {clause.op}")


def evaluate(predicate: Predicate | None, record: PersonRecord) -> bool:
    """Check a record against a predicate. ``None`` matches every record."""
    if predicate is None:
        return True
    if isinstance(predicate, Clause):
        return _clause_matches(predicate, record)
    if isinstance(predicate, AllOf):
        return all(evaluate(part, record) for part in predicate.parts)
    if isinstance(predicate, AnyOf):
        return any(evaluate(part, record) for part in predicate.parts)
    raise TypeError(f"Not a predicate: {predicate!r}")


def all_of(*parts: Predicate | None) -> Predicate | None:
    """AND the given predicates, dropping ``None`` and flattening nested ANDs."""
    kept: list[Predicate] = []
    for part in parts:
        if part is None:
            continue
        if isinstance(part, AllOf):
            kept.extend(part.parts)
        else:
            kept.append(part)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return AllOf(tuple(kept))
