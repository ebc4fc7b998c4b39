from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.io.snapshotting import get_latest_snapshot_path, load_snapshot_changes, read_snapshot
from src.profile.schema import UserProfile
from src.rank.matcher import evaluate_scholarships, rank_matches
from src.rank.weights import load_bonus_weights

PROCESSED_DIR = ROOT_DIR / "data" / "processed"
DEFAULT_WEIGHTS_PATH = PROCESSED_DIR / "match_weights.json"
MATCH_COLUMNS = ["id", "title", "matchScore", "deadline", "award_amount", "application_link"]
EXCLUDED_COLUMNS = ["id", "title", "reasons"]

logger = logging.getLogger("match_profile")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Rank catalog scholarships for one student profile.")
    parser.add_argument("--profile", type=Path, required=True, help="Profile JSON file.")
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Catalog snapshot JSON. Defaults to the latest snapshot in data/processed.",
    )
    parser.add_argument("--weights", type=Path, default=DEFAULT_WEIGHTS_PATH)
    parser.add_argument("--top-n", type=int, default=25)
    parser.add_argument("--show-excluded", action="store_true")
    return parser.parse_args(argv)


def _load_profile(profile_path: Path) -> UserProfile:
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile file not found: {profile_path}")
    payload = json.loads(profile_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Profile file must contain a JSON object.")
    return UserProfile.from_mapping(payload)


def _resolve_snapshot(snapshot_path: Path | None) -> Path:
    if snapshot_path is not None:
        return snapshot_path
    latest = get_latest_snapshot_path(PROCESSED_DIR)
    if latest is None:
        raise FileNotFoundError(
            f"No catalog snapshot found in '{PROCESSED_DIR}'. Run scripts/fetch_catalog.py first."
        )
    return latest


def build_match_tables(
    scholarships: list[dict[str, Any]],
    profile: UserProfile,
    *,
    weights_path: Path | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    weights = load_bonus_weights(weights_path)
    results = evaluate_scholarships(scholarships, profile, weights)
    ranked = rank_matches(results)

    matches_df = pd.DataFrame(ranked)
    if "title" not in matches_df.columns and "name" in matches_df.columns:
        matches_df["title"] = matches_df["name"]
    matches_df = matches_df[[column for column in MATCH_COLUMNS if column in matches_df.columns]]

    excluded = [
        {
            "id": result.get("id"),
            "title": result.get("title") or result.get("name"),
            "reasons": "; ".join(result["disqualificationReasons"]),
        }
        for result in results
        if not result["qualifies"]
    ]
    excluded_df = pd.DataFrame(excluded, columns=EXCLUDED_COLUMNS)
    return matches_df.reset_index(drop=True), excluded_df


def _changes_summary(changes: dict[str, Any]) -> str:
    counts = {key: len(changes.get(key) or []) for key in ("added", "removed", "changed")}
    return (
        f"Catalog changes since last snapshot: {counts['added']} added, "
        f"{counts['removed']} removed, {counts['changed']} changed"
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    profile = _load_profile(args.profile)
    if not profile.is_complete:
        logger.warning("Profile %s is incomplete; some requirements cannot be met", args.profile)
    snapshot_path = _resolve_snapshot(args.snapshot)
    scholarships = read_snapshot(snapshot_path)
    logger.info("Loaded %d scholarships from %s", len(scholarships), snapshot_path)
    changes = load_snapshot_changes(snapshot_path)
    if changes is not None:
        print(_changes_summary(changes))

    matches_df, excluded_df = build_match_tables(
        scholarships,
        profile,
        weights_path=args.weights,
    )

    if matches_df.empty:
        print("No matching scholarships found.")
        print("Try updating your profile or check back later for new scholarships.")
    else:
        print(f"Top matches ({min(args.top_n, len(matches_df))} of {len(matches_df)}):")
        print(matches_df.head(args.top_n).to_string(index=False))

    if args.show_excluded and not excluded_df.empty:
        print()
        print(f"Excluded scholarships ({len(excluded_df)}):")
        print(excluded_df.to_string(index=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
