from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.rank.weights import MatchBonusWeights, load_bonus_weights


def test_baseline_weights_match_documented_points() -> None:
    assert MatchBonusWeights.baseline().to_dict() == {
        "required_major": 10,
        "gpa_buffer_step": 5,
        "classification": 8,
        "open_major": 3,
    }


@pytest.mark.parametrize("bad_value", [-1, 2.5, float("inf"), "ten", True])
def test_bonus_weights_reject_invalid_values(bad_value) -> None:  # noqa: ANN001
    with pytest.raises(ValueError):
        MatchBonusWeights.from_mapping({"classification": bad_value})


def test_from_mapping_falls_back_to_baseline_and_coerces_whole_floats() -> None:
    weights = MatchBonusWeights.from_mapping({"open_major": 6.0})

    assert weights.open_major == 6
    assert isinstance(weights.open_major, int)
    assert weights.required_major == 10


def test_load_bonus_weights_reads_optional_file(tmp_path: Path) -> None:
    assert load_bonus_weights(tmp_path / "missing.json") == MatchBonusWeights.baseline()
    assert load_bonus_weights(None) == MatchBonusWeights.baseline()

    weights_path = tmp_path / "match_weights.json"
    weights_path.write_text(json.dumps({"bonus_weights": {"required_major": 12}}), encoding="utf-8")

    assert load_bonus_weights(weights_path).required_major == 12


def test_load_bonus_weights_rejects_non_object_payload(tmp_path: Path) -> None:
    weights_path = tmp_path / "match_weights.json"
    weights_path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ValueError):
        load_bonus_weights(weights_path)
