from __future__ import annotations

from typing import Any

import pandas as pd


def format_award_amount(value: Any) -> str:
    amount = _coerce_float(value)
    if amount is None:
        text = "" if value is None else str(value).strip()
        return text or "Unknown"
    return f"${max(amount, 0.0):,.0f}"


def yes_no(value: Any) -> str:
    if isinstance(value, str):
        return "Yes" if value.strip().lower() in {"true", "yes", "y", "1"} else "No"
    try:
        if pd.isna(value):
            return "No"
    except (TypeError, ValueError):
        pass
    return "Yes" if bool(value) else "No"


def match_badge(score: Any) -> str | None:
    numeric = _coerce_float(score)
    if numeric is None or numeric <= 0:
        return None
    return f"{numeric:.0f} points"


def reasons_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(str(item) for item in value if str(item).strip())
    return str(value)


def card_details(result: dict[str, Any]) -> dict[str, Any]:
    previous_winners = result.get("prevWon") or result.get("prev_won")
    return {
        "title": str(result.get("name") or result.get("title") or "Untitled scholarship"),
        "badge": match_badge(result.get("matchScore")),
        "amount": format_award_amount(result.get("award_amount")),
        "deadline": str(result.get("deadline") or "Not listed"),
        "essay_required": yes_no(result.get("essay_required")),
        "recommendation_required": yes_no(result.get("recommendation_required")),
        "previous_winners": str(previous_winners) if previous_winners else None,
        "application_link": str(result.get("application_link") or "") or None,
    }


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(numeric):
        return None
    return numeric
