from __future__ import annotations

import copy
from datetime import date, datetime

import pandas as pd

from src.profile.schema import UserProfile
from src.rank.matcher import (
    evaluate_scholarship,
    evaluate_scholarships,
    rank_matches,
    resolve_deadline,
    score_scholarships,
)

CS_SCHOLARSHIP = {
    "id": 1,
    "title": "Tech Leaders Award",
    "major": "Computer Science",
    "gpa": 3.0,
    "classification": "Senior",
    "career_interests": ["Technology"],
    "deadline": "2026-03-01",
}

CS_PROFILE = {
    "name": "Ada",
    "major": "Computer Science",
    "gpa": 3.5,
    "gradYear": 2026,
    "classification": "Senior",
    "selectedInterests": ["Technology"],
}


def test_qualifying_scholarship_is_returned_with_match_metadata() -> None:
    ranked = score_scholarships([CS_SCHOLARSHIP], CS_PROFILE)

    assert len(ranked) == 1
    assert ranked[0]["qualifies"] is True
    assert ranked[0]["disqualificationReasons"] == []
    assert ranked[0]["matchScore"] == 8
    assert ranked[0]["title"] == "Tech Leaders Award"


def test_low_gpa_is_excluded_with_gpa_reason() -> None:
    profile = {**CS_PROFILE, "gpa": 2.9}

    assert score_scholarships([CS_SCHOLARSHIP], profile) == []
    result = evaluate_scholarship(CS_SCHOLARSHIP, profile)
    assert result["qualifies"] is False
    assert result["matchScore"] == 0
    assert any("GPA" in reason for reason in result["disqualificationReasons"])


def test_comma_major_and_empty_classification_qualify() -> None:
    scholarship = {"id": 2, "major": "Biology,Chemistry", "classification": ""}
    profile = UserProfile(major="Chemistry", classification="Junior")

    ranked = score_scholarships([scholarship], profile)

    assert [result["id"] for result in ranked] == [2]


def test_disqualified_records_always_score_zero() -> None:
    scholarships = [
        {"id": "a", "major": "History", "required_major": "Computer Science", "min_gpa": 1.0},
        {"id": "b", "gpa": 4.0, "classification": "Senior"},
    ]

    results = evaluate_scholarships(scholarships, CS_PROFILE)

    assert [result["qualifies"] for result in results] == [False, False]
    assert [result["matchScore"] for result in results] == [0, 0]


def test_open_major_adds_three_points_and_never_disqualifies() -> None:
    ranked = score_scholarships([{"id": "open", "major": "any"}], UserProfile(major="Music"))

    assert ranked[0]["matchScore"] == 3


def test_equal_scores_break_ties_by_earlier_deadline() -> None:
    scholarships = [
        {"id": "later", "required_major": "Computer Science", "deadline": "2026-01-01"},
        {"id": "sooner", "required_major": "Computer Science", "deadline": "2025-06-01"},
    ]

    ranked = score_scholarships(scholarships, CS_PROFILE)

    assert [result["id"] for result in ranked] == ["sooner", "later"]
    assert [result["matchScore"] for result in ranked] == [10, 10]


def test_ranking_orders_by_score_then_deadline_with_unparsable_last() -> None:
    scholarships = [
        {"id": "low", "deadline": "2025-01-01"},
        {"id": "bad-date", "classification": "Senior", "deadline": "rolling"},
        {"id": "missing-date", "classification": "Senior"},
        {"id": "dated", "classification": "Senior", "deadline": date(2026, 5, 1)},
        {"id": "top", "classification": "Senior", "required_major": "Computer Science"},
    ]

    ranked = score_scholarships(scholarships, CS_PROFILE)

    assert [result["id"] for result in ranked] == ["top", "dated", "bad-date", "missing-date", "low"]
    for current, following in zip(ranked, ranked[1:]):
        assert current["matchScore"] >= following["matchScore"]


def test_output_only_contains_qualifying_records() -> None:
    scholarships = [
        CS_SCHOLARSHIP,
        {"id": 3, "major": "History"},
        {"id": 4, "career_interests": ["Law"]},
        {"id": 5},
    ]

    ranked = score_scholarships(scholarships, CS_PROFILE)

    assert len(ranked) <= len(scholarships)
    assert all(result["qualifies"] is True for result in ranked)
    assert sorted(result["id"] for result in ranked) == [1, 5]


def test_engine_does_not_mutate_inputs() -> None:
    scholarships = [copy.deepcopy(CS_SCHOLARSHIP), {"id": 9, "major": "History"}]
    profile = dict(CS_PROFILE)
    before_scholarships = copy.deepcopy(scholarships)
    before_profile = copy.deepcopy(profile)

    score_scholarships(scholarships, profile)

    assert scholarships == before_scholarships
    assert profile == before_profile
    assert "qualifies" not in scholarships[0]


def test_empty_and_missing_catalogs_produce_empty_output() -> None:
    assert score_scholarships([], CS_PROFILE) == []
    assert score_scholarships(None, CS_PROFILE) == []
    assert rank_matches([]) == []


def test_non_mapping_records_are_skipped() -> None:
    ranked = score_scholarships(["not a record", None, {"id": "ok"}], CS_PROFILE)

    assert [result["id"] for result in ranked] == ["ok"]


def test_resolve_deadline_tolerates_bad_values() -> None:
    assert resolve_deadline("2026-01-01") == pd.Timestamp("2026-01-01")
    assert resolve_deadline("2026-01-01T05:00:00+05:00") == pd.Timestamp("2026-01-01T00:00:00")
    assert pd.isna(resolve_deadline("not a date"))
    assert pd.isna(resolve_deadline(""))
    assert pd.isna(resolve_deadline(None))
    assert pd.isna(resolve_deadline(["2026-01-01"]))
    assert pd.isna(resolve_deadline(20250101))
    assert pd.isna(resolve_deadline(1.5))


def test_far_future_and_far_past_deadlines_do_not_break_ranking() -> None:
    scholarships = [
        {"id": "year-3000-text", "classification": "Senior", "deadline": "3000-01-01"},
        {"id": "soon", "classification": "Senior", "deadline": "2025-01-01"},
        {"id": "year-3000-date", "classification": "Senior", "deadline": date(3000, 1, 1)},
        {"id": "year-1500", "classification": "Senior", "deadline": datetime(1500, 1, 1)},
    ]

    ranked = score_scholarships(scholarships, CS_PROFILE)

    ids = [result["id"] for result in ranked]
    assert sorted(ids) == sorted(record["id"] for record in scholarships)
    assert ids.index("soon") < ids.index("year-3000-text")
    assert ids.index("soon") < ids.index("year-3000-date")


def test_integer_deadline_sorts_with_undated_records() -> None:
    scholarships = [
        {"id": "int-date", "classification": "Senior", "deadline": 20250101},
        {"id": "dated", "classification": "Senior", "deadline": "2026-05-01"},
    ]

    ranked = score_scholarships(scholarships, CS_PROFILE)

    assert [result["id"] for result in ranked] == ["dated", "int-date"]
