"""SqlPersonStore against an in-memory SQLite database.

The SQL path must rank exactly like the snapshot path for the same rows.
"""
from __future__ import annotations

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from roster.config import settings
from roster.models import AlertPerson, Base, Person
from roster.search.engine import find_all_by_callsigns, lookup_contacts, search_people
from roster.search.predicates import Clause, Column, Op
from roster.search.types import SearchQuery
from roster.store import SnapshotPersonStore, SqlPersonStore, compile_predicate, escape_like

from conftest import CONTACTS, NAMES, PHONETIC, RANGERS

ALL_PEOPLE = RANGERS + PHONETIC + NAMES + CONTACTS

QUERIES = [
    SearchQuery(query="ranger"),
    SearchQuery(query="ranger", offset=1, limit=2),
    SearchQuery(query="ranger@example.com"),
    SearchQuery(query="RANGER@EXAMPLE.COM"),
    SearchQuery(query="fil", search_fields=["callsign", "last_name"]),
    SearchQuery(query="Jane Smith", search_fields=["name"]),
    SearchQuery(query="hub", search_fields=["callsign"], exclude_statuses=["suspended"]),
    SearchQuery(query="ranger", statuses=["active", "inactive"]),
    SearchQuery(statuses=["alpha"]),
    SearchQuery(query="+13"),
    SearchQuery(query="+4040"),
]


async def _with_database(check):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    try:
        async with session_maker() as session:
            for record in ALL_PEOPLE:
                session.add(Person(
                    id=record.id,
                    callsign=record.callsign,
                    email=record.email,
                    first_name=record.first_name,
                    last_name=record.last_name,
                    formerly_known_as=record.formerly_known_as,
                    status=record.status,
                ))
            await session.flush()
            session.add(AlertPerson(
                person_id=22,
                alert_id=settings.search.contact_alert_id,
                use_email=False,
            ))
            session.add(AlertPerson(person_id=20, alert_id=settings.search.contact_alert_id, use_email=True))
            await session.commit()

        async with session_maker() as session:
            return await check(SqlPersonStore(session))
    finally:
        await engine.dispose()


def test_written_rows_carry_same_derived_keys():
    async def check(store):
        return await store.select(None)

    rows = asyncio.run(_with_database(check))
    by_id = {row.id: row for row in rows}
    for record in ALL_PEOPLE:
        assert by_id[record.id] == record


@pytest.mark.parametrize("query", QUERIES, ids=lambda q: repr(q.query))
def test_sql_store_matches_snapshot_store(query):
    async def check(store):
        return await search_people(store, query)

    sql_result = asyncio.run(_with_database(check))
    snapshot_result = asyncio.run(search_people(SnapshotPersonStore(ALL_PEOPLE), query))

    assert [row.id for row in sql_result.rows] == [row.id for row in snapshot_result.rows]
    assert sql_result.total == snapshot_result.total
    assert sql_result.limit == snapshot_result.limit


def test_sql_contact_lookup_reads_opt_outs():
    async def check(store):
        return await lookup_contacts(store, "hubcap", "contact")

    result = asyncio.run(_with_database(check))
    assert [(row.id, row.allow_contact, row.is_inactive) for row in result.rows] == [
        (20, True, False),
        (21, True, True),
        (22, False, False),
    ]


def test_sql_bulk_callsign_lookup():
    async def check(store):
        return await find_all_by_callsigns(store, ["hub cap", "Phil", "missing"])

    found = asyncio.run(_with_database(check))
    assert {key: person.id for key, person in found.items()} == {"hubcap": 20, "phil": 13}


def test_like_wildcards_match_literally():
    people = [
        Person(id=1, callsign="100% Fun", status="active"),
        Person(id=2, callsign="1000 Fun", status="active"),
        Person(id=3, callsign="Snake_Eyes", status="active"),
        Person(id=4, callsign="SnakeXEyes", status="active"),
    ]

    async def check(store):
        percent = await search_people(store, SearchQuery(query="0%"))
        underscore = await search_people(store, SearchQuery(query="e_e"))
        return [row.id for row in percent.rows], [row.id for row in underscore.rows]

    async def scenario():
        engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_maker = async_sessionmaker(bind=engine, expire_on_commit=False)
        try:
            async with session_maker() as session:
                session.add_all(people)
                await session.commit()
                return await check(SqlPersonStore(session))
        finally:
            await engine.dispose()

    percent_ids, underscore_ids = asyncio.run(scenario())
    assert percent_ids == [1]
    assert underscore_ids == [3]


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_canonical_columns_compare_exactly():
    expr = compile_predicate(Clause(Column.CALLSIGN_SOUNDEX, Op.STARTS_WITH, "FL"))
    assert "lower" not in str(expr)
