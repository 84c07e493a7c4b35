"""Person stores: where search predicates are evaluated.

Higher-level code depends on the PersonStore protocol. Two implementations:

* SnapshotPersonStore: a read-only, in-memory tuple of PersonRecord rows.
* SqlPersonStore: compiles predicates to SQLAlchemy and runs them on an
  AsyncSession against the person table.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import and_, false, func, or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from . import models
from .search.predicates import (
    CANONICAL_COLUMNS,
    AllOf,
    AnyOf,
    Clause,
    Column,
    Op,
    Predicate,
    evaluate,
)
from .search.types import PersonRecord

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


class PersonStore(Protocol):
    """Read access to person records for the search engine."""

    async def get(self, person_id: int) -> PersonRecord | None:
        """Exact id lookup, regardless of status."""
        ...

    async def select(self, predicate: Predicate | None) -> list[PersonRecord]:
        """All records matching the predicate (None = all records), unordered."""
        ...

    async def contact_opt_outs(self, person_ids: Sequence[int], alert_id: int) -> set[int]:
        """Ids among ``person_ids`` that turned off email for ``alert_id``."""
        ...

    async def by_normalized_callsigns(self, keys: Sequence[str]) -> list[PersonRecord]:
        """Records whose normalized callsign is one of ``keys``."""
        ...


class SnapshotPersonStore:
    """In-memory store over a fixed snapshot of records."""

    def __init__(
        self,
        records: Iterable[PersonRecord],
        contact_opt_outs: Iterable[tuple[int, int]] = (),
    ) -> None:
        """
        Args:
            records: Person rows; ids must be unique
            contact_opt_outs: (person_id, alert_id) pairs with email turned off
        """
        self._records = tuple(records)
        self._by_id = {record.id: record for record in self._records}
        if len(self._by_id) != len(self._records):
            raise ValueError("Snapshot contains duplicate person ids")
        self._opt_outs = frozenset(contact_opt_outs)

    async def get(self, person_id: int) -> PersonRecord | None:
        return self._by_id.get(person_id)

    async def select(self, predicate: Predicate | None) -> list[PersonRecord]:
        return [record for record in self._records if evaluate(predicate, record)]

    async def contact_opt_outs(self, person_ids: Sequence[int], alert_id: int) -> set[int]:
        return {pid for pid in person_ids if (pid, alert_id) in self._opt_outs}

    async def by_normalized_callsigns(self, keys: Sequence[str]) -> list[PersonRecord]:
        wanted = set(keys)
        return [record for record in self._records if record.callsign_normalized in wanted]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _compile_clause(clause: Clause) -> ColumnElement[bool]:
    column = getattr(models.Person, clause.column.value)
    canonical = clause.column in CANONICAL_COLUMNS

    if clause.op is Op.IN:
        return column.in_(list(clause.value))
    if clause.op is Op.NOT_IN:
        return column.not_in(list(clause.value))

    if clause.op is Op.EQUALS:
        if canonical:
            return column == clause.value
        return func.lower(column) == str(clause.value).lower()

    escaped = escape_like(str(clause.value))
    if clause.op is Op.STARTS_WITH:
        pattern = f"{escaped}%"
    elif clause.op is Op.CONTAINS:
        pattern = f"%{escaped}%"
    else:
        raise ValueError(f"Unsupported operator: {clause.op}")

    if canonical:
        return column.like(pattern, escape=LIKE_ESCAPE)
    return column.ilike(pattern, escape=LIKE_ESCAPE)


def compile_predicate(predicate: Predicate | None) -> ColumnElement[bool]:
    """Translate a predicate into a SQLAlchemy boolean expression."""
    if predicate is None:
        return true()
    if isinstance(predicate, Clause):
        return _compile_clause(predicate)
    if isinstance(predicate, AllOf):
        if not predicate.parts:
            return true()
        return and_(*(compile_predicate(part) for part in predicate.parts))
    if isinstance(predicate, AnyOf):
        if not predicate.parts:
            return false()
        return or_(*(compile_predicate(part) for part in predicate.parts))
    raise TypeError(f"Not a predicate: {predicate!r}")


class SqlPersonStore:
    """Store backed by the person table through an AsyncSession.

    Database errors propagate unchanged.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, person_id: int) -> PersonRecord | None:
        person = await self._session.get(models.Person, person_id)
        return person.to_record() if person else None

    async def select(self, predicate: Predicate | None) -> list[PersonRecord]:
        query = select(models.Person).where(compile_predicate(predicate))
        result = await self._session.execute(query)
        records = [person.to_record() for person in result.scalars().all()]
        logger.debug(f"Store returned {len(records)} rows")
        return records

    async def contact_opt_outs(self, person_ids: Sequence[int], alert_id: int) -> set[int]:
        if not person_ids:
            return set()
        query = select(models.AlertPerson.person_id).where(
            models.AlertPerson.person_id.in_(list(person_ids)),
            models.AlertPerson.alert_id == alert_id,
            models.AlertPerson.use_email.is_(False),
        )
        result = await self._session.execute(query)
        return set(result.scalars().all())

    async def by_normalized_callsigns(self, keys: Sequence[str]) -> list[PersonRecord]:
        if not keys:
            return []
        query = select(models.Person).where(models.Person.callsign_normalized.in_(list(keys)))
        result = await self._session.execute(query)
        return [person.to_record() for person in result.scalars().all()]
