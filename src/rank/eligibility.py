from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Mapping
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)

ANY_SENTINEL = "any"


def get_field(source: Any, key: str, *aliases: str) -> Any:
    for name in (key, *aliases):
        if isinstance(source, (Mapping, pd.Series)):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if not _is_missing(value):
            return value
    return None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (list, tuple, set, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_text(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def has_requirement(value: Any) -> bool:
    if _is_missing(value):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def normalize_candidates(value: Any) -> list[str]:
    if _is_missing(value):
        return []
    if isinstance(value, str):
        if "," in value:
            return [part.strip() for part in value.split(",") if part.strip()]
        cleaned = value.strip()
        return [cleaned] if cleaned else []
    if isinstance(value, (list, tuple, set)):
        return [text for text in (clean_text(item) for item in value) if text]
    if isinstance(value, numbers.Number):
        return [str(value)]
    logger.debug("Ignoring unsupported requirement value of type %s", type(value).__name__)
    return []


def _is_open(value: Any, candidates: list[str]) -> bool:
    if isinstance(value, str) and value.strip() == ANY_SENTINEL:
        return True
    return not candidates or ANY_SENTINEL in candidates


def parse_float(value: Any) -> float | None:
    if _is_missing(value) or isinstance(value, bool):
        return None
    try:
        numeric = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def format_gpa(value: float) -> str:
    return f"{value:g}"


def profile_major(profile: Any) -> str:
    return clean_text(get_field(profile, "major"))


def profile_classification(profile: Any) -> str:
    return clean_text(get_field(profile, "classification"))


def profile_gpa(profile: Any) -> float | None:
    return parse_float(get_field(profile, "gpa"))


def profile_interests(profile: Any) -> list[str]:
    return normalize_candidates(
        get_field(profile, "selected_interests", "selectedInterests", "career_interests")
    )


def _major_reason(scholarship: Any, profile: Any) -> str | None:
    raw = get_field(scholarship, "major")
    candidates = normalize_candidates(raw)
    if _is_open(raw, candidates):
        return None
    if profile_major(profile) in candidates:
        return None
    return f"Requires one of: {', '.join(candidates)}"


def _gpa_reason(scholarship: Any, profile: Any) -> str | None:
    raw = get_field(scholarship, "gpa")
    if not has_requirement(raw):
        return None
    required_gpa = parse_float(raw)
    if required_gpa is None:
        logger.debug("Ignoring non-numeric GPA requirement %r", raw)
        return None
    user_gpa = profile_gpa(profile)
    if user_gpa is None:
        return "GPA required"
    if user_gpa < required_gpa:
        return f"Requires minimum {format_gpa(required_gpa)} GPA"
    return None


def _classification_reason(scholarship: Any, profile: Any) -> str | None:
    raw = get_field(scholarship, "classification")
    candidates = normalize_candidates(raw)
    if _is_open(raw, candidates):
        return None
    if profile_classification(profile) in candidates:
        return None
    return f"Only for {', '.join(candidates)}"


def _career_interest_reason(scholarship: Any, profile: Any) -> str | None:
    required = normalize_candidates(get_field(scholarship, "career_interests"))
    if not required:
        return None
    if set(required) & set(profile_interests(profile)):
        return None
    return f"Requires career interests in: {', '.join(required)}"


_CHECKS = (_major_reason, _gpa_reason, _classification_reason, _career_interest_reason)


def eligibility_reasons(scholarship: Any, profile: Any) -> list[str]:
    reasons: list[str] = []
    for check in _CHECKS:
        reason = check(scholarship, profile)
        if reason is not None:
            reasons.append(reason)
    return reasons


def apply_eligibility_filter(
    df: pd.DataFrame, profile: Any
) -> tuple[pd.DataFrame, pd.DataFrame]:
    with_reasons_df = df.copy()
    if with_reasons_df.empty:
        with_reasons_df["reasons"] = pd.Series(dtype=object)
        return with_reasons_df.copy(), with_reasons_df.copy()

    with_reasons_df["reasons"] = with_reasons_df.apply(
        lambda row: eligibility_reasons(scholarship=row, profile=profile),
        axis=1,
    )

    is_disqualified = with_reasons_df["reasons"].map(bool)
    disqualified_df = with_reasons_df[is_disqualified].copy()
    qualified_df = with_reasons_df[~is_disqualified].copy()

    return qualified_df, disqualified_df
