from __future__ import annotations

import json
import re
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import pandas as pd

SNAPSHOT_PREFIX = "scholarships_snapshot_"
CHANGES_PREFIX = "changes_"
SNAPSHOT_PATTERN = re.compile(r"^scholarships_snapshot_(\d{8})\.json$")

ID_FIELD = "id"
TRACKED_DIFF_FIELDS = (
    "deadline",
    "award_amount",
    "title",
    "major",
    "gpa",
    "classification",
    "career_interests",
)


def _coerce_output_date(run_date: date | str | None) -> date:
    if run_date is None:
        return datetime.now(tz=UTC).date()
    if isinstance(run_date, date):
        return run_date
    return datetime.strptime(run_date, "%Y%m%d").date()


def _snapshot_filename(run_date: date) -> str:
    return f"{SNAPSHOT_PREFIX}{run_date.strftime('%Y%m%d')}.json"


def _changes_filename(run_date: date) -> str:
    return f"{CHANGES_PREFIX}{run_date.strftime('%Y%m%d')}.json"


def changes_path_for_snapshot(snapshot_path: Path) -> Path | None:
    match = SNAPSHOT_PATTERN.match(snapshot_path.name)
    if not match:
        return None
    return snapshot_path.parent / f"{CHANGES_PREFIX}{match.group(1)}.json"


def load_snapshot_changes(snapshot_path: Path) -> dict[str, Any] | None:
    changes_path = changes_path_for_snapshot(snapshot_path)
    if changes_path is None or not changes_path.exists():
        return None
    payload = json.loads(changes_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Changes file must contain a JSON object: {changes_path}")
    return payload


def _jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        if value.tzinfo is not None:
            return value.tz_convert("UTC").isoformat()
        return value.isoformat()
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def _record_id(record: dict[str, Any]) -> str | None:
    value = record.get(ID_FIELD)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def list_snapshot_files(processed_dir: Path) -> list[Path]:
    snapshots: list[tuple[datetime, Path]] = []
    for candidate in processed_dir.glob("scholarships_snapshot_*.json"):
        match = SNAPSHOT_PATTERN.match(candidate.name)
        if not match:
            continue
        snapshot_date = datetime.strptime(match.group(1), "%Y%m%d")
        snapshots.append((snapshot_date, candidate))

    snapshots.sort(key=lambda item: item[0])
    return [item[1] for item in snapshots]


def get_latest_snapshot_path(processed_dir: Path) -> Path | None:
    snapshots = list_snapshot_files(processed_dir)
    if not snapshots:
        return None
    return snapshots[-1]


def read_snapshot(snapshot_path: Path) -> list[dict[str, Any]]:
    payload = json.loads(snapshot_path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"Snapshot '{snapshot_path}' must contain a JSON array of records.")
    return [record for record in payload if isinstance(record, dict)]


def load_latest_snapshot(processed_dir: Path) -> list[dict[str, Any]]:
    latest_path = get_latest_snapshot_path(processed_dir)
    if latest_path is None:
        raise FileNotFoundError(
            f"No catalog snapshot found in '{processed_dir}'. "
            "Run scripts/fetch_catalog.py to generate scholarships_snapshot_YYYYMMDD.json."
        )
    return read_snapshot(latest_path)


def find_prior_snapshot(processed_dir: Path, target_date: date) -> Path | None:
    target_name = _snapshot_filename(target_date)
    candidates = [path for path in list_snapshot_files(processed_dir) if path.name != target_name]
    return candidates[-1] if candidates else None


def prepare_snapshot_records(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    prepared = [_jsonable(dict(record)) for record in records]
    return sorted(prepared, key=lambda record: str(_record_id(record) or ""))


def write_json_atomic(payload: Any, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = output_path.parent / f"{output_path.name}.{uuid4().hex}.tmp"
    try:
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        temp_path.replace(output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def _records_by_id(records: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    keyed: dict[str, dict[str, Any]] = {}
    for record in records:
        record_id = _record_id(record)
        if record_id is not None and record_id not in keyed:
            keyed[record_id] = record
    return keyed


def build_delta(
    current: list[dict[str, Any]], prior: list[dict[str, Any]] | None
) -> dict[str, Any]:
    current_records = _records_by_id(current)
    prior_records = _records_by_id(prior or [])

    current_ids = set(current_records)
    prior_ids = set(prior_records)

    added_ids = sorted(current_ids - prior_ids)
    removed_ids = sorted(prior_ids - current_ids)
    shared_ids = sorted(current_ids & prior_ids)

    added = [_jsonable(current_records[record_id]) for record_id in added_ids]
    removed = [_jsonable(prior_records[record_id]) for record_id in removed_ids]

    changed: list[dict[str, Any]] = []
    for record_id in shared_ids:
        old_record = prior_records[record_id]
        new_record = current_records[record_id]
        fields_changed: dict[str, Any] = {}
        for field in TRACKED_DIFF_FIELDS:
            old_value = _jsonable(old_record.get(field))
            new_value = _jsonable(new_record.get(field))
            if old_value != new_value:
                fields_changed[field] = {"old": old_value, "new": new_value}

        if fields_changed:
            changed.append({ID_FIELD: record_id, "fields_changed": fields_changed})

    return {"added": added, "removed": removed, "changed": changed}


def build_and_write_snapshot(
    records: list[dict[str, Any]],
    *,
    processed_dir: Path,
    run_date: date | str | None = None,
) -> tuple[Path, Path, dict[str, Any]]:
    snapshot_date = _coerce_output_date(run_date)
    snapshot_records = prepare_snapshot_records(records)

    processed_dir.mkdir(parents=True, exist_ok=True)
    prior_snapshot_path = find_prior_snapshot(processed_dir, snapshot_date)
    prior_records = read_snapshot(prior_snapshot_path) if prior_snapshot_path else None

    snapshot_path = processed_dir / _snapshot_filename(snapshot_date)
    changes_path = processed_dir / _changes_filename(snapshot_date)

    delta = build_delta(snapshot_records, prior_records)
    write_json_atomic(snapshot_records, snapshot_path)
    write_json_atomic(delta, changes_path)
    return snapshot_path, changes_path, delta
