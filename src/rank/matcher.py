from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

import pandas as pd
from pandas.errors import OutOfBoundsDatetime

from src.rank.eligibility import eligibility_reasons
from src.rank.scoring import match_score
from src.rank.weights import MatchBonusWeights

logger = logging.getLogger(__name__)


def resolve_deadline(value: Any) -> pd.Timestamp:
    if isinstance(value, str):
        if not value.strip():
            return pd.NaT
    elif not isinstance(value, date):
        return pd.NaT
    try:
        deadline = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if not isinstance(deadline, pd.Timestamp) or pd.isna(deadline):
        return pd.NaT
    try:
        if deadline.tzinfo is not None:
            deadline = deadline.tz_convert("UTC").tz_localize(None)
        return deadline.as_unit("us")
    except (OutOfBoundsDatetime, OverflowError):
        return pd.NaT


def _scholarship_label(scholarship: Mapping[str, Any]) -> str:
    return str(
        scholarship.get("title")
        or scholarship.get("name")
        or scholarship.get("id")
        or "<untitled>"
    )


def evaluate_scholarship(
    scholarship: Mapping[str, Any],
    profile: Any,
    weights: MatchBonusWeights | None = None,
) -> dict[str, Any]:
    reasons = eligibility_reasons(scholarship, profile)
    qualifies = not reasons
    score = match_score(scholarship, profile, weights) if qualifies else 0

    if qualifies:
        logger.debug("Qualified for %s with score=%d", _scholarship_label(scholarship), score)
    else:
        logger.debug("Disqualified from %s: %s", _scholarship_label(scholarship), "; ".join(reasons))

    return {
        **scholarship,
        "qualifies": qualifies,
        "matchScore": score,
        "disqualificationReasons": reasons,
    }


def evaluate_scholarships(
    scholarships: Iterable[Any] | None,
    profile: Any,
    weights: MatchBonusWeights | None = None,
) -> list[dict[str, Any]]:
    results: list[dict[str, Any]] = []
    for position, scholarship in enumerate(scholarships or []):
        if not isinstance(scholarship, Mapping):
            logger.warning(
                "Skipping scholarship at position %d: expected a mapping, got %s",
                position,
                type(scholarship).__name__,
            )
            continue
        results.append(evaluate_scholarship(scholarship, profile, weights))
    return results


def rank_matches(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    qualified = [result for result in results if result.get("qualifies") is True]
    if not qualified:
        return []

    order_df = pd.DataFrame(
        {
            "match_score": [int(result.get("matchScore") or 0) for result in qualified],
            "deadline": pd.Series(
                [resolve_deadline(result.get("deadline")) for result in qualified],
                dtype="datetime64[us]",
            ),
            "position": range(len(qualified)),
        }
    )
    order_df = order_df.sort_values(
        by=["match_score", "deadline", "position"],
        ascending=[False, True, True],
        na_position="last",
        kind="mergesort",
    )
    return [qualified[position] for position in order_df["position"].tolist()]


def score_scholarships(
    scholarships: Iterable[Any] | None,
    profile: Any,
    weights: MatchBonusWeights | None = None,
) -> list[dict[str, Any]]:
    results = evaluate_scholarships(scholarships, profile, weights)
    ranked = rank_matches(results)
    logger.info("Matched scholarships evaluated=%d qualified=%d", len(results), len(ranked))
    return ranked
