from __future__ import annotations

import json
import logging
from pathlib import Path

from scripts.match_profile import build_match_tables, main
from src.profile.schema import UserProfile

CATALOG = [
    {"id": 1, "title": "Open Award", "major": "any", "deadline": "2026-05-01"},
    {"id": 2, "title": "Chemistry Prize", "major": "Biology,Chemistry", "required_major": "Chemistry"},
    {"id": 3, "title": "History Grant", "major": "History"},
]


def test_build_match_tables_ranks_and_explains_exclusions() -> None:
    profile = UserProfile(major="Chemistry", gpa=3.1, classification="Junior")

    matches_df, excluded_df = build_match_tables(CATALOG, profile)

    assert matches_df["id"].tolist() == [2, 1]
    assert matches_df["matchScore"].tolist() == [10, 3]
    assert excluded_df.to_dict(orient="records") == [
        {"id": 3, "title": "History Grant", "reasons": "Requires one of: History"}
    ]


def test_main_prints_matches_from_snapshot(tmp_path: Path, capsys) -> None:  # noqa: ANN001
    profile_path = tmp_path / "profile.json"
    profile_path.write_text(json.dumps({"name": "Ada", "major": "Art"}), encoding="utf-8")
    snapshot_path = tmp_path / "scholarships_snapshot_20260101.json"
    snapshot_path.write_text(json.dumps(CATALOG), encoding="utf-8")

    exit_code = main(
        [
            "--profile",
            str(profile_path),
            "--snapshot",
            str(snapshot_path),
            "--weights",
            str(tmp_path / "missing.json"),
            "--show-excluded",
        ]
    )

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Open Award" in output
    assert "Excluded scholarships (2)" in output
    assert "Catalog changes" not in output


def test_main_reports_catalog_changes_and_incomplete_profile(tmp_path: Path, capsys, caplog) -> None:  # noqa: ANN001
    profile_path = tmp_path / "profile.json"
    profile_path.write_text(json.dumps({"name": "Ada", "major": "Art"}), encoding="utf-8")
    snapshot_path = tmp_path / "scholarships_snapshot_20260101.json"
    snapshot_path.write_text(json.dumps(CATALOG), encoding="utf-8")
    changes = {"added": [CATALOG[0], CATALOG[1]], "removed": [], "changed": [{"id": 3, "fields_changed": {}}]}
    (tmp_path / "changes_20260101.json").write_text(json.dumps(changes), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="match_profile"):
        exit_code = main(
            ["--profile", str(profile_path), "--snapshot", str(snapshot_path), "--weights", str(tmp_path / "w.json")]
        )

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "Catalog changes since last snapshot: 2 added, 0 removed, 1 changed" in output
    assert any("is incomplete" in record.getMessage() for record in caplog.records)
