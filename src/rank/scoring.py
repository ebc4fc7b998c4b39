from __future__ import annotations

from typing import Any

from src.rank.eligibility import (
    ANY_SENTINEL,
    clean_text,
    get_field,
    normalize_candidates,
    parse_float,
    profile_classification,
    profile_gpa,
    profile_major,
)
from src.rank.weights import GPA_BUFFER_THRESHOLDS, MatchBonusWeights


def _required_major_bonus(scholarship: Any, profile: Any, weights: MatchBonusWeights) -> int:
    required_major = clean_text(get_field(scholarship, "required_major"))
    user_major = profile_major(profile)
    if required_major and user_major and required_major == user_major:
        return weights.required_major
    return 0


def _gpa_buffer_bonus(scholarship: Any, profile: Any, weights: MatchBonusWeights) -> int:
    min_gpa = parse_float(get_field(scholarship, "min_gpa"))
    user_gpa = profile_gpa(profile)
    if min_gpa is None or user_gpa is None:
        return 0
    buffer = round(user_gpa - min_gpa, 6)
    steps = sum(1 for threshold in GPA_BUFFER_THRESHOLDS if buffer >= threshold)
    return steps * weights.gpa_buffer_step


def _classification_bonus(scholarship: Any, profile: Any, weights: MatchBonusWeights) -> int:
    candidates = normalize_candidates(get_field(scholarship, "classification"))
    user_classification = profile_classification(profile)
    if user_classification and user_classification in candidates:
        return weights.classification
    return 0


def _open_major_bonus(scholarship: Any, weights: MatchBonusWeights) -> int:
    raw_major = get_field(scholarship, "major")
    if isinstance(raw_major, str) and raw_major.strip() == ANY_SENTINEL:
        return weights.open_major
    return 0


def match_score(
    scholarship: Any,
    profile: Any,
    weights: MatchBonusWeights | None = None,
) -> int:
    active_weights = weights or MatchBonusWeights.baseline()
    return (
        _required_major_bonus(scholarship, profile, active_weights)
        + _gpa_buffer_bonus(scholarship, profile, active_weights)
        + _classification_bonus(scholarship, profile, active_weights)
        + _open_major_bonus(scholarship, active_weights)
    )
