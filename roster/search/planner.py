"""Query planning: pick a search mode and build its predicate.

Modes are evaluated in a fixed order: numeric id (``+42``), email (``@``),
field-scoped (``search_fields``), default callsign substring. A missing
query browses every record.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from .normalization import normalize_callsign, normalize_whitespace
from .phonetic import phonetic_key
from .predicates import MATCH_NOTHING, AnyOf, AllOf, Clause, Column, Op, Predicate, all_of
from .types import PersonStatus, SearchQuery

logger = logging.getLogger(__name__)

ID_MARKER = "+"
# Largest id a BIGINT column can hold
MAX_PERSON_ID = 2 ** 63 - 1


class SearchError(Exception):
    """Base error for the search engine."""
    pass


class InvalidArgumentError(SearchError, ValueError):
    """Raised when a request names an unknown field, mode, or bad paging value."""
    pass


class SearchMode(str, Enum):
    """How a query is matched and ranked."""
    NUMERIC_ID = "numeric_id"
    EMAIL = "email"
    FIELDS = "fields"
    DEFAULT = "default"
    BROWSE = "browse"
    CONTACT = "contact"


class SearchField(str, Enum):
    """Fields a caller may scope a search to."""
    EMAIL = "email"
    NAME = "name"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    CALLSIGN = "callsign"
    FORMERLY_KNOWN_AS = "formerly_known_as"


class ContactMode(str, Enum):
    """Contact lookup flavours; they differ only in permitted statuses."""
    CONTACT = "contact"
    MESSAGE = "message"
    ALL = "all"


CONTACT_STATUSES: dict[ContactMode, tuple[str, ...] | None] = {
    ContactMode.CONTACT: (PersonStatus.ACTIVE.value, PersonStatus.INACTIVE.value),
    ContactMode.MESSAGE: (
        PersonStatus.ACTIVE.value,
        PersonStatus.INACTIVE.value,
        PersonStatus.ALPHA.value,
    ),
    ContactMode.ALL: None,
}


@dataclass(frozen=True)
class QueryPlan:
    """Outcome of planning: mode, comparison keys, and predicate.

    ``predicate`` of ``None`` means every record is admitted.
    """
    mode: SearchMode
    text: str = ""
    normalized: str = ""
    phonetic: str = ""
    predicate: Predicate | None = None
    person_id: int | None = None


def _contains(column: Column, value: str) -> Clause:
    return Clause(column, Op.CONTAINS, value)


def _name_clause(text: str, normalized: str, phonetic: str) -> list[Predicate]:
    clauses: list[Predicate] = [
        _contains(Column.FIRST_NAME, text),
        _contains(Column.LAST_NAME, text),
    ]
    if " " in text:
        # Only the first two words are used: first name, then last name
        first, last = text.split(" ")[:2]
        clauses.append(AllOf((
            _contains(Column.FIRST_NAME, first),
            _contains(Column.LAST_NAME, last),
        )))
    return clauses


def _callsign_clause(text: str, normalized: str, phonetic: str) -> list[Predicate]:
    clauses: list[Predicate] = []
    if normalized:
        clauses.append(Clause(Column.CALLSIGN_NORMALIZED, Op.EQUALS, normalized))
        clauses.append(Clause(Column.CALLSIGN_NORMALIZED, Op.CONTAINS, normalized))
    if phonetic:
        clauses.append(Clause(Column.CALLSIGN_SOUNDEX, Op.EQUALS, phonetic))
        clauses.append(Clause(Column.CALLSIGN_SOUNDEX, Op.STARTS_WITH, phonetic))
    return clauses


def _raw_field_clause(column: Column) -> Callable[[str, str, str], list[Predicate]]:
    def build(text: str, normalized: str, phonetic: str) -> list[Predicate]:
        return [_contains(column, text)]
    return build


FIELD_CLAUSES: dict[SearchField, Callable[[str, str, str], list[Predicate]]] = {
    SearchField.NAME: _name_clause,
    SearchField.CALLSIGN: _callsign_clause,
    SearchField.EMAIL: _raw_field_clause(Column.EMAIL),
    SearchField.FIRST_NAME: _raw_field_clause(Column.FIRST_NAME),
    SearchField.LAST_NAME: _raw_field_clause(Column.LAST_NAME),
    SearchField.FORMERLY_KNOWN_AS: _raw_field_clause(Column.FORMERLY_KNOWN_AS),
}


def parse_search_fields(names: Iterable[str]) -> list[SearchField]:
    """Validate field names against the whitelist, preserving order.

    Raises:
        InvalidArgumentError: On the first unknown name
    """
    fields: list[SearchField] = []
    for name in names:
        try:
            field = SearchField(name)
        except ValueError:
            raise InvalidArgumentError(f"Search field '{name}' is not allowed.") from None
        if field not in fields:
            fields.append(field)
    return fields


def parse_contact_mode(mode: str | ContactMode) -> ContactMode:
    """Validate a contact lookup sub-mode."""
    try:
        return ContactMode(mode)
    except ValueError:
        raise InvalidArgumentError(f"Unknown type [{mode}]") from None


def parse_person_id(text: str) -> int | None:
    """Parse the id after the ``+`` marker; None when it is not an integer."""
    digits = text.lstrip(ID_MARKER).strip()
    if not digits.isdigit():
        return None
    try:
        person_id = int(digits)
    except ValueError:
        return None
    return person_id if person_id <= MAX_PERSON_ID else None


def status_predicate(
    statuses: Iterable[str] | None = None,
    exclude_statuses: Iterable[str] | None = None,
) -> Predicate | None:
    """Build the status include/exclude constraint, if any."""
    parts: list[Predicate] = []
    if statuses is not None:
        parts.append(Clause(Column.STATUS, Op.IN, tuple(statuses)))
    if exclude_statuses is not None:
        parts.append(Clause(Column.STATUS, Op.NOT_IN, tuple(exclude_statuses)))
    return all_of(*parts)


def plan_query(query: SearchQuery) -> QueryPlan:
    """Select a search mode for a request and build its predicate.

    Args:
        query: Raw search request

    Returns:
        QueryPlan for the store and ranker

    Raises:
        InvalidArgumentError: If ``search_fields`` names an unknown field
    """
    text = normalize_whitespace(query.query or "")
    statuses = status_predicate(query.statuses, query.exclude_statuses)

    if not text:
        logger.debug("Browse mode: no query text")
        return QueryPlan(mode=SearchMode.BROWSE, predicate=statuses)

    if text.startswith(ID_MARKER):
        person_id = parse_person_id(text)
        logger.debug(f"Numeric id mode: {text!r} -> {person_id}")
        if person_id is None:
            return QueryPlan(mode=SearchMode.NUMERIC_ID, text=text, predicate=MATCH_NOTHING)
        return QueryPlan(
            mode=SearchMode.NUMERIC_ID,
            text=text,
            predicate=Clause(Column.ID, Op.EQUALS, person_id),
            person_id=person_id,
        )

    normalized = normalize_callsign(text)
    phonetic = phonetic_key(text)

    if "@" in text:
        # An at-sign forces an email-only search, whatever the field scope
        predicate: Predicate = AnyOf((
            Clause(Column.EMAIL, Op.EQUALS, text),
            _contains(Column.EMAIL, text),
        ))
        mode = SearchMode.EMAIL
    elif query.search_fields:
        fields = parse_search_fields(query.search_fields)
        clauses: list[Predicate] = []
        for field in fields:
            clauses.extend(FIELD_CLAUSES[field](text, normalized, phonetic))
        predicate = AnyOf(tuple(clauses))
        mode = SearchMode.FIELDS
    else:
        predicate = _contains(Column.CALLSIGN, text)
        mode = SearchMode.DEFAULT

    logger.debug(f"{mode.value} mode: normalized={normalized!r} phonetic={phonetic!r}")
    return QueryPlan(
        mode=mode,
        text=text,
        normalized=normalized,
        phonetic=phonetic,
        predicate=all_of(predicate, statuses),
    )


def plan_contact_lookup(text: str, mode: str | ContactMode) -> QueryPlan:
    """Plan an approximate callsign lookup for contact or messaging.

    Raises:
        InvalidArgumentError: If ``mode`` is not contact, message, or all
    """
    contact_mode = parse_contact_mode(mode)
    text = normalize_whitespace(text or "")
    normalized = normalize_callsign(text)
    phonetic = phonetic_key(text)

    clauses: list[Predicate] = []
    if phonetic:
        clauses.append(Clause(Column.CALLSIGN_SOUNDEX, Op.EQUALS, phonetic))
    if normalized:
        clauses.append(Clause(Column.CALLSIGN_NORMALIZED, Op.EQUALS, normalized))
        clauses.append(Clause(Column.CALLSIGN_NORMALIZED, Op.CONTAINS, normalized))

    allowed = CONTACT_STATUSES[contact_mode]
    return QueryPlan(
        mode=SearchMode.CONTACT,
        text=text,
        normalized=normalized,
        phonetic=phonetic,
        predicate=all_of(AnyOf(tuple(clauses)), status_predicate(allowed)),
    )
