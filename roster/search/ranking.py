"""Tiered ranking of search candidates.

Each candidate gets an integer tier (lower ranks first); ties break on the
natural callsign key and then on record id, so the order never depends on
storage iteration order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable

from .normalization import natural_sort_key
from .planner import QueryPlan, SearchMode
from .types import PersonRecord

logger = logging.getLogger(__name__)


class EmailTier(IntEnum):
    EXACT = 1
    PREFIX = 2
    SUBSTRING = 3
    OTHER = 4


class CallsignTier(IntEnum):
    EXACT = 1
    PREFIX = 2
    SUBSTRING = 3
    PHONETIC_EXACT = 4
    PHONETIC_PREFIX = 5
    PHONETIC_SUBSTRING = 6
    OTHER = 7


class ContactTier(IntEnum):
    EXACT = 1
    PHONETIC_EXACT = 2
    OTHER = 3


BROWSE_TIER = 1


@dataclass(frozen=True)
class Candidate:
    """A matched record with its ranking keys."""
    record: PersonRecord
    tier: int
    callsign_key: tuple = field(default=(), compare=False)

    def sort_key(self) -> tuple:
        return (self.tier, self.callsign_key, self.record.id)


def email_tier(plan: QueryPlan, record: PersonRecord) -> EmailTier:
    email = (record.email or "").lower()
    wanted = plan.text.lower()
    if email == wanted:
        return EmailTier.EXACT
    if email.startswith(wanted):
        return EmailTier.PREFIX
    if wanted in email:
        return EmailTier.SUBSTRING
    return EmailTier.OTHER


def callsign_tier(plan: QueryPlan, record: PersonRecord) -> CallsignTier:
    normalized = record.callsign_normalized or ""
    soundex = record.callsign_soundex or ""

    if plan.normalized:
        if normalized == plan.normalized:
            return CallsignTier.EXACT
        if normalized.startswith(plan.normalized):
            return CallsignTier.PREFIX
        if plan.normalized in normalized:
            return CallsignTier.SUBSTRING

    if plan.phonetic:
        if soundex == plan.phonetic:
            return CallsignTier.PHONETIC_EXACT
        if soundex.startswith(plan.phonetic):
            return CallsignTier.PHONETIC_PREFIX
        if plan.phonetic in soundex:
            return CallsignTier.PHONETIC_SUBSTRING

    return CallsignTier.OTHER


def contact_tier(plan: QueryPlan, record: PersonRecord) -> ContactTier:
    if plan.normalized and record.callsign_normalized == plan.normalized:
        return ContactTier.EXACT
    if plan.phonetic and record.callsign_soundex == plan.phonetic:
        return ContactTier.PHONETIC_EXACT
    return ContactTier.OTHER


def assign_tier(plan: QueryPlan, record: PersonRecord) -> int:
    """Tier of a record under the plan's mode."""
    if plan.mode is SearchMode.EMAIL:
        return int(email_tier(plan, record))
    if plan.mode is SearchMode.CONTACT:
        return int(contact_tier(plan, record))
    if plan.mode in (SearchMode.BROWSE, SearchMode.NUMERIC_ID):
        return BROWSE_TIER
    return int(callsign_tier(plan, record))


def rank_candidates(plan: QueryPlan, records: Iterable[PersonRecord]) -> list[Candidate]:
    """Attach tiers and return candidates in total order."""
    candidates = [
        Candidate(
            record=record,
            tier=assign_tier(plan, record),
            callsign_key=natural_sort_key(record.callsign),
        )
        for record in records
    ]
    candidates.sort(key=Candidate.sort_key)
    logger.debug(f"Ranked {len(candidates)} candidates ({plan.mode.value} mode)")
    return candidates
