# tests/conftest.py
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Ensure project root importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; point the app at SQLite before importing it
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

from roster.search.normalization import normalize_callsign  # noqa: E402
from roster.search.phonetic import phonetic_key  # noqa: E402
from roster.search.types import PersonRecord  # noqa: E402
from roster.store import SnapshotPersonStore  # noqa: E402


def make_person(person_id: int, callsign: str, **fields) -> PersonRecord:
    """Build a record with derived keys computed the way the write path does."""
    return PersonRecord(
        id=person_id,
        callsign=callsign,
        callsign_normalized=normalize_callsign(callsign),
        callsign_soundex=phonetic_key(callsign),
        **fields,
    )


RANGERS = [
    make_person(1, "Ranger10", email="ten@example.com", first_name="Tom", last_name="Tenner"),
    make_person(2, "Ranger2", email="two@example.com", first_name="Tara", last_name="Twofold", status="inactive"),
    make_person(3, "Ranger", email="ranger@example.com", first_name="Rae", last_name="Ranger"),
    make_person(4, "Danger Ranger", email="danger.ranger@example.com", first_name="Dan", last_name="Ger"),
    make_person(5, "O'Ranger-99", email="ranger@example.com.au", first_name="Olive", last_name="Oranje"),
]

PHONETIC = [
    make_person(10, "Zed", last_name="Filson"),
    make_person(11, "Philip"),
    make_person(12, "Kphil", last_name="Filmore"),
    make_person(13, "Phil"),
    make_person(14, "Filbert"),
    make_person(15, "Fil"),
]

NAMES = [
    make_person(30, "Hotshot", first_name="Jane", last_name="Smith"),
    make_person(31, "Sparky", first_name="Janet", last_name="Smithers"),
    make_person(32, "Doc", first_name="Jane", last_name="Doe"),
    make_person(33, "Blaze", first_name="Smith", last_name="Jane"),
]

CONTACTS = [
    make_person(20, "Hubcap", status="active"),
    make_person(21, "Hubkap", status="inactive"),
    make_person(22, "Hubcaps", status="active"),
    make_person(23, "Hubcap2", status="alpha"),
    make_person(24, "Hubcapper", status="suspended"),
]

DECEASED = make_person(42, "Gone Fishing", status="deceased")


@pytest.fixture()
def rangers_store() -> SnapshotPersonStore:
    return SnapshotPersonStore(RANGERS)


@pytest.fixture()
def phonetic_store() -> SnapshotPersonStore:
    return SnapshotPersonStore(PHONETIC)


@pytest.fixture()
def names_store() -> SnapshotPersonStore:
    return SnapshotPersonStore(NAMES)


@pytest.fixture()
def contacts_store() -> SnapshotPersonStore:
    from roster.config import settings

    return SnapshotPersonStore(
        CONTACTS,
        contact_opt_outs=[(22, settings.search.contact_alert_id)],
    )


@pytest.fixture()
def full_store() -> SnapshotPersonStore:
    return SnapshotPersonStore(RANGERS + PHONETIC + NAMES + CONTACTS + [DECEASED])
