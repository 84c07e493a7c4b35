"""Value types shared by the search pipeline and the stores."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PersonStatus(str, Enum):
    """Account states a person record can be in."""
    ACTIVE = "active"
    ALPHA = "alpha"
    AUDITOR = "auditor"
    BONKED = "bonked"
    DECEASED = "deceased"
    DISMISSED = "dismissed"
    INACTIVE = "inactive"
    INACTIVE_EXTENSION = "inactive extension"
    NON_RANGER = "non ranger"
    PAST_PROSPECTIVE = "past prospective"
    PROSPECTIVE = "prospective"
    PROSPECTIVE_WAITLIST = "prospective waitlist"
    RESIGNED = "resigned"
    RETIRED = "retired"
    SUSPENDED = "suspended"
    UBERBONKED = "uberbonked"
    VINTAGE = "vintage"


@dataclass(frozen=True)
class PersonRecord:
    """Read-only view of a stored person row.

    ``callsign_normalized`` and ``callsign_soundex`` are precomputed by the
    write path and are never recomputed here.
    """
    id: int
    callsign: str
    callsign_normalized: str = ""
    callsign_soundex: str = ""
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    formerly_known_as: str | None = None
    status: str = PersonStatus.ACTIVE.value


@dataclass
class SearchQuery:
    """Parameters of a person search request."""
    query: str | None = None
    search_fields: list[str] | None = None
    statuses: list[str] | None = None
    exclude_statuses: list[str] | None = None
    limit: int | None = None
    offset: int = 0


@dataclass
class ContactRow:
    """Person summary returned by contact lookups."""
    id: int
    callsign: str
    is_inactive: bool = False
    allow_contact: bool = True


@dataclass
class SearchResult:
    """Ranked, paginated search output."""
    rows: list = field(default_factory=list)
    total: int = 0
    limit: int = 0
