from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

GPA_BUFFER_THRESHOLDS = (0.5, 1.0)

_WEIGHT_FIELDS = ("required_major", "gpa_buffer_step", "classification", "open_major")


@dataclass(frozen=True, slots=True)
class MatchBonusWeights:
    """Points added to a qualifying scholarship's match score.

    `gpa_buffer_step` is awarded once per threshold in `GPA_BUFFER_THRESHOLDS`
    that the student's GPA clears over `min_gpa`.
    """

    required_major: int
    gpa_buffer_step: int
    classification: int
    open_major: int

    def __post_init__(self) -> None:
        for field_name in _WEIGHT_FIELDS:
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Bonus weight '{field_name}' must be a number.")
            if not math.isfinite(value):
                raise ValueError(f"Bonus weight '{field_name}' must be finite.")
            if value < 0 or int(value) != value:
                raise ValueError(f"Bonus weight '{field_name}' must be a non-negative integer.")
            object.__setattr__(self, field_name, int(value))

    @classmethod
    def baseline(cls) -> MatchBonusWeights:
        return cls(required_major=10, gpa_buffer_step=5, classification=8, open_major=3)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> MatchBonusWeights:
        values = payload or {}
        baseline = cls.baseline()
        return cls(
            required_major=values.get("required_major", baseline.required_major),
            gpa_buffer_step=values.get("gpa_buffer_step", baseline.gpa_buffer_step),
            classification=values.get("classification", baseline.classification),
            open_major=values.get("open_major", baseline.open_major),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "required_major": self.required_major,
            "gpa_buffer_step": self.gpa_buffer_step,
            "classification": self.classification,
            "open_major": self.open_major,
        }


def load_bonus_weights(path: Path | None) -> MatchBonusWeights:
    if path is None or not path.exists():
        return MatchBonusWeights.baseline()
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Bonus weights file '{path}' must contain a JSON object.")
    return MatchBonusWeights.from_mapping(payload.get("bonus_weights", payload))
