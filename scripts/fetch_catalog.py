from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.io.record_store import RecordStore, StoreSettings
from src.io.snapshotting import (
    ID_FIELD,
    build_and_write_snapshot,
    find_prior_snapshot,
    read_snapshot,
    write_json_atomic,
)

logger = logging.getLogger("fetch_catalog")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch the scholarship catalog and write a local snapshot.")
    parser.add_argument("--processed-dir", type=Path, default=ROOT_DIR / "data" / "processed")
    parser.add_argument("--report-dir", type=Path, default=ROOT_DIR / "reports" / "catalog_runs")
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Run date in YYYYMMDD format. Defaults to current UTC date.",
    )
    parser.add_argument("--request-timeout-seconds", type=float, default=None)
    return parser.parse_args()


def _resolve_repo_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return ROOT_DIR / path


def _coerce_run_date(run_date: str | None) -> date:
    if run_date is None:
        return datetime.now(tz=UTC).date()
    return datetime.strptime(run_date, "%Y%m%d").date()


def _missing_text(value: Any) -> bool:
    return value is None or not str(value).strip()


def _count_missing_id_or_title(records: list[dict[str, Any]]) -> int:
    return sum(
        1
        for record in records
        if _missing_text(record.get(ID_FIELD))
        or (_missing_text(record.get("title")) and _missing_text(record.get("name")))
    )


def _build_guardrail_warnings(
    *,
    prior_count: int | None,
    current_count: int,
    missing_id_or_title_count: int,
) -> list[str]:
    warnings: list[str] = []
    if prior_count and prior_count > 0 and current_count < (prior_count * 0.5):
        warnings.append(
            f"Record count dropped by more than 50% vs prior snapshot "
            f"({current_count} vs {prior_count})."
        )
    if current_count > 0:
        missing_ratio = missing_id_or_title_count / current_count
        if missing_ratio > 0.05:
            warnings.append(
                f"More than 5% of records are missing id or title "
                f"({missing_id_or_title_count}/{current_count}, {missing_ratio:.1%})."
            )
    return warnings


def _exception_summary(exc: Exception) -> dict[str, str]:
    return {"type": type(exc).__name__, "message": str(exc)}


def fetch_catalog(
    *,
    date: date | None = None,
    processed_dir: Path | None = None,
    report_dir: Path | None = None,
    store: RecordStore | None = None,
    request_timeout_seconds: float | None = None,
) -> dict[str, Any]:
    started_at = datetime.now(tz=UTC)
    resolved_processed_dir = _resolve_repo_path(processed_dir or (ROOT_DIR / "data" / "processed"))
    resolved_report_dir = _resolve_repo_path(report_dir or (ROOT_DIR / "reports" / "catalog_runs"))
    effective_run_date = date or datetime.now(tz=UTC).date()
    report_stamp = started_at.strftime("%Y%m%dT%H%M%SZ")
    report_path = resolved_report_dir / f"catalog_{report_stamp}.json"

    records: list[dict[str, Any]] = []
    guardrail_warnings: list[str] = []
    prior_count: int | None = None
    prior_snapshot_path: Path | None = None
    snapshot_path: Path | None = None
    changes_path: Path | None = None
    delta: dict[str, Any] = {"added": [], "removed": [], "changed": []}
    missing_id_or_title_count = 0
    snapshot_skip_reason: str | None = None
    run_exception: dict[str, str] | None = None

    try:
        active_store = store
        if active_store is None:
            settings = StoreSettings.from_env()
            if request_timeout_seconds is not None:
                settings = StoreSettings(
                    url=settings.url,
                    service_key=settings.service_key,
                    timeout_seconds=request_timeout_seconds,
                )
            active_store = RecordStore.from_settings(settings)
        try:
            records = active_store.fetch_scholarships()
        finally:
            if store is None:
                active_store.close()

        prior_snapshot_path = find_prior_snapshot(resolved_processed_dir, effective_run_date)
        if prior_snapshot_path is not None:
            try:
                prior_count = len(read_snapshot(prior_snapshot_path))
            except Exception:
                logger.exception("Failed to read prior snapshot at %s", prior_snapshot_path)

        if records:
            missing_id_or_title_count = _count_missing_id_or_title(records)
            guardrail_warnings = _build_guardrail_warnings(
                prior_count=prior_count,
                current_count=len(records),
                missing_id_or_title_count=missing_id_or_title_count,
            )
            for warning in guardrail_warnings:
                logger.warning("Guardrail: %s", warning)

            snapshot_path, changes_path, delta = build_and_write_snapshot(
                records,
                processed_dir=resolved_processed_dir,
                run_date=effective_run_date,
            )
            logger.info("Wrote snapshot %s records=%d", snapshot_path, len(records))
        else:
            snapshot_skip_reason = "Record store returned no scholarships; snapshot and delta were skipped."
            logger.warning(snapshot_skip_reason)
    except Exception as exc:
        run_exception = _exception_summary(exc)
        logger.exception("Catalog fetch failed.")
        if not records:
            snapshot_skip_reason = snapshot_skip_reason or "Fetch failed before any records were read."
        else:
            snapshot_skip_reason = snapshot_skip_reason or "Snapshot generation failed after records were read."
    finally:
        finished_at = datetime.now(tz=UTC)
        if run_exception is not None:
            status = "partial" if records else "failed"
        elif not records:
            status = "failed"
        else:
            status = "success"

        report_payload = {
            "status": status,
            "run_started_at": started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "run_finished_at": finished_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "duration_seconds": round((finished_at - started_at).total_seconds(), 3),
            "run_date": effective_run_date.isoformat(),
            "records": {
                "fetched_total": len(records),
                "prior_snapshot_total": prior_count,
                "missing_id_or_title_count": missing_id_or_title_count,
            },
            "artifact_paths": {
                "snapshot": str(snapshot_path.resolve()) if snapshot_path else None,
                "delta": str(changes_path.resolve()) if changes_path else None,
                "report": str(report_path.resolve()),
                "prior_snapshot": str(prior_snapshot_path.resolve()) if prior_snapshot_path else None,
            },
            "artifact_notes": {"snapshot_skip_reason": snapshot_skip_reason},
            "guardrail_warnings": guardrail_warnings,
            "delta_counts": {
                "added": len(delta["added"]),
                "removed": len(delta["removed"]),
                "changed": len(delta["changed"]),
            },
            "exception_summary": run_exception,
        }
        write_json_atomic(report_payload, report_path)
    return report_payload


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    report = fetch_catalog(
        date=_coerce_run_date(args.date),
        processed_dir=args.processed_dir,
        report_dir=args.report_dir,
        request_timeout_seconds=args.request_timeout_seconds,
    )

    print(f"Run status: {report['status']}")
    print(f"Wrote snapshot: {report['artifact_paths']['snapshot']}")
    print(f"Wrote changes: {report['artifact_paths']['delta']}")
    print(f"Wrote catalog report: {report['artifact_paths']['report']}")
    print(
        "Delta counts: "
        f"added={report['delta_counts']['added']}, "
        f"removed={report['delta_counts']['removed']}, "
        f"changed={report['delta_counts']['changed']}"
    )
    return 0 if report["status"] != "failed" else 1


if __name__ == "__main__":
    raise SystemExit(main())
