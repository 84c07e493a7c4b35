from __future__ import annotations

import random

from roster.search.planner import SearchMode, plan_contact_lookup, plan_query
from roster.search.ranking import CallsignTier, ContactTier, EmailTier, assign_tier, rank_candidates
from roster.search.types import SearchQuery

from conftest import CONTACTS, PHONETIC, RANGERS, make_person


def _ids(candidates):
    return [c.record.id for c in candidates]


def test_callsign_tiers_exact_prefix_substring():
    plan = plan_query(SearchQuery(query="ranger"))
    tiers = {r.id: assign_tier(plan, r) for r in RANGERS}
    assert tiers == {
        3: CallsignTier.EXACT,
        1: CallsignTier.PREFIX,
        2: CallsignTier.PREFIX,
        4: CallsignTier.SUBSTRING,
        5: CallsignTier.SUBSTRING,
    }


def test_natural_order_within_tier_then_id():
    plan = plan_query(SearchQuery(query="ranger"))
    assert _ids(rank_candidates(plan, RANGERS)) == [3, 2, 1, 4, 5]


def test_order_is_independent_of_input_order():
    plan = plan_query(SearchQuery(query="ranger"))
    shuffled = list(RANGERS)
    random.Random(7).shuffle(shuffled)
    assert _ids(rank_candidates(plan, shuffled)) == _ids(rank_candidates(plan, RANGERS))


def test_identical_callsigns_break_ties_by_id():
    plan = plan_query(SearchQuery(query="twin"))
    twins = [make_person(9, "Twin"), make_person(8, "twin")]
    assert _ids(rank_candidates(plan, twins)) == [8, 9]


def test_phonetic_tiers_follow_normalized_tiers():
    plan = plan_query(SearchQuery(query="Fil", search_fields=["callsign", "last_name"]))
    ranked = rank_candidates(plan, PHONETIC)
    assert [(c.record.callsign, c.tier) for c in ranked] == [
        ("Fil", CallsignTier.EXACT),
        ("Filbert", CallsignTier.PREFIX),
        ("Phil", CallsignTier.PHONETIC_EXACT),
        ("Philip", CallsignTier.PHONETIC_PREFIX),
        ("Kphil", CallsignTier.PHONETIC_SUBSTRING),
        ("Zed", CallsignTier.OTHER),
    ]


def test_tiers_are_monotonic():
    plan = plan_query(SearchQuery(query="Fil", search_fields=["callsign", "last_name"]))
    tiers = [c.tier for c in rank_candidates(plan, PHONETIC)]
    assert tiers == sorted(tiers)


def test_email_tiers():
    plan = plan_query(SearchQuery(query="ranger@example.com"))
    assert plan.mode is SearchMode.EMAIL
    tiers = {r.id: assign_tier(plan, r) for r in RANGERS}
    assert tiers[3] == EmailTier.EXACT
    assert tiers[5] == EmailTier.PREFIX
    assert tiers[4] == EmailTier.SUBSTRING
    assert tiers[1] == EmailTier.OTHER


def test_email_tier_is_case_insensitive():
    plan = plan_query(SearchQuery(query="RANGER@Example.com"))
    assert assign_tier(plan, RANGERS[2]) == EmailTier.EXACT


def test_contact_tiers():
    plan = plan_contact_lookup("hubcap", "all")
    tiers = {r.id: assign_tier(plan, r) for r in CONTACTS}
    assert tiers == {
        20: ContactTier.EXACT,
        21: ContactTier.PHONETIC_EXACT,
        22: ContactTier.OTHER,
        23: ContactTier.OTHER,
        24: ContactTier.OTHER,
    }


def test_browse_orders_by_callsign_only():
    plan = plan_query(SearchQuery())
    assert [c.record.callsign for c in rank_candidates(plan, RANGERS)] == [
        "Danger Ranger",
        "O'Ranger-99",
        "Ranger",
        "Ranger2",
        "Ranger10",
    ]
