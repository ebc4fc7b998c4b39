from __future__ import annotations

from src.profile.schema import UserProfile
from src.rank.scoring import match_score
from src.rank.weights import MatchBonusWeights

PROFILE = UserProfile(
    name="Ada",
    major="Computer Science",
    gpa=3.6,
    classification="Junior",
    selected_interests=["Technology"],
)


def test_match_score_is_zero_without_bonus_fields() -> None:
    assert match_score({"title": "Plain Award"}, PROFILE) == 0


def test_required_major_bonus_is_independent_of_eligibility_major() -> None:
    assert match_score({"required_major": "Computer Science"}, PROFILE) == 10
    assert match_score({"required_major": "Biology", "major": "Computer Science"}, PROFILE) == 0


def test_required_major_bonus_needs_both_values() -> None:
    assert match_score({"required_major": None}, UserProfile(major="")) == 0
    assert match_score({"required_major": ""}, UserProfile(major="")) == 0


def test_gpa_buffer_bonus_steps() -> None:
    assert match_score({"min_gpa": 3.5}, PROFILE) == 0
    assert match_score({"min_gpa": 3.1}, PROFILE) == 5
    assert match_score({"min_gpa": 2.6}, PROFILE) == 10
    assert match_score({"min_gpa": 0}, PROFILE) == 10


def test_gpa_buffer_bonus_tolerates_float_rounding_at_threshold() -> None:
    profile = UserProfile(gpa=3.3)

    assert match_score({"min_gpa": 2.8}, profile) == 5


def test_gpa_buffer_bonus_skips_invalid_values() -> None:
    assert match_score({"min_gpa": "n/a"}, PROFILE) == 0
    assert match_score({"min_gpa": 2.0}, UserProfile(gpa=None)) == 0


def test_classification_bonus_for_single_value_list_and_comma_string() -> None:
    assert match_score({"classification": "Junior"}, PROFILE) == 8
    assert match_score({"classification": ["Sophomore", "Junior"]}, PROFILE) == 8
    assert match_score({"classification": "Junior,Senior"}, PROFILE) == 8
    assert match_score({"classification": "any"}, PROFILE) == 0
    assert match_score({"classification": ""}, PROFILE) == 0


def test_open_major_bonus_only_for_any_sentinel() -> None:
    assert match_score({"major": "any"}, PROFILE) == 3
    assert match_score({"major": "Computer Science"}, PROFILE) == 0
    assert match_score({"major": ["any"]}, PROFILE) == 0


def test_bonuses_accumulate() -> None:
    scholarship = {
        "major": "any",
        "required_major": "Computer Science",
        "min_gpa": 2.5,
        "classification": "Junior",
    }

    assert match_score(scholarship, PROFILE) == 10 + 10 + 8 + 3


def test_match_score_uses_custom_weights() -> None:
    weights = MatchBonusWeights(required_major=1, gpa_buffer_step=2, classification=3, open_major=4)
    scholarship = {
        "major": "any",
        "required_major": "Computer Science",
        "min_gpa": 2.5,
        "classification": "Junior",
    }

    assert match_score(scholarship, PROFILE, weights) == 1 + 4 + 3 + 4
