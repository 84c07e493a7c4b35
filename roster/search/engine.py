"""Search entry points: plan, fetch from a store, rank, paginate.

Only the store awaits I/O; everything else here is a pure transformation
of the request and the rows the store returns.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..config import settings
from .normalization import normalize_callsign
from .pagination import paginate
from .planner import ContactMode, SearchMode, parse_contact_mode, plan_contact_lookup, plan_query
from .ranking import rank_candidates
from .types import ContactRow, PersonRecord, PersonStatus, SearchQuery, SearchResult

if TYPE_CHECKING:
    from ..store import PersonStore

logger = logging.getLogger(__name__)


async def search_people(store: PersonStore, query: SearchQuery) -> SearchResult:
    """Resolve a free-text query to ranked person records.

    Args:
        store: Person store evaluating predicates
        query: Search request

    Returns:
        SearchResult with PersonRecord rows

    Raises:
        InvalidArgumentError: Unknown search field or negative paging value
    """
    plan = plan_query(query)

    if plan.mode is SearchMode.NUMERIC_ID:
        # Single-row lookup: no status filter, no pagination
        person = await store.get(plan.person_id) if plan.person_id is not None else None
        found = 1 if person else 0
        logger.info(f"Numeric id search {plan.text!r}: {found} match")
        return SearchResult(rows=[person] if person else [], total=found, limit=found)

    records = await store.select(plan.predicate)
    ranked = rank_candidates(plan, records)
    page = paginate(ranked, offset=query.offset, limit=query.limit)

    logger.info(f"Person search ({plan.mode.value}): {page.total} matches, returning {len(page.rows)}")
    return SearchResult(
        rows=[candidate.record for candidate in page.rows],
        total=page.total,
        limit=page.limit,
    )


async def lookup_contacts(
    store: PersonStore,
    text: str,
    mode: str | ContactMode,
    limit: int | None = None,
) -> SearchResult:
    """Find people by approximate callsign for contact or messaging.

    Rows are ContactRow objects. ``allow_contact`` is False only for people
    who opted out of email for the configured contact alert.

    Raises:
        InvalidArgumentError: Unknown sub-mode or negative limit
    """
    contact_mode = parse_contact_mode(mode)
    plan = plan_contact_lookup(text, contact_mode)
    if limit is None:
        limit = settings.search.contact_default_limit

    records = await store.select(plan.predicate)
    page = paginate(rank_candidates(plan, records), limit=limit)

    people = [candidate.record for candidate in page.rows]
    opted_out = await store.contact_opt_outs(
        [person.id for person in people],
        settings.search.contact_alert_id,
    ) if people else set()

    rows = [
        ContactRow(
            id=person.id,
            callsign=person.callsign,
            is_inactive=person.status == PersonStatus.INACTIVE.value,
            allow_contact=person.id not in opted_out,
        )
        for person in people
    ]
    logger.info(f"Contact lookup ({contact_mode.value}): {page.total} matches for {plan.text!r}")
    return SearchResult(rows=rows, total=page.total, limit=page.limit)


async def find_all_by_callsigns(
    store: PersonStore,
    callsigns: Iterable[str],
) -> dict[str, PersonRecord]:
    """Bulk lookup by callsign, keyed by normalized callsign.

    Callsigns that match nobody are absent from the result.
    """
    keys = {normalize_callsign(callsign) for callsign in callsigns}
    keys.discard("")
    if not keys:
        return {}

    records = await store.by_normalized_callsigns(sorted(keys))
    return {record.callsign_normalized.lower(): record for record in records}
