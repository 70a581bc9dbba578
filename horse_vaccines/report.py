"""Status report for the stable.

Builds the JSON report behind the three views of the application (dashboard
feed and counters, horse list grouped by priority, per-horse detail) from the
record store and today's date, and writes it as an artifact.

**Output Contract:**
- Writes output/report_<run_id>.json
- Dates are ISO 8601 strings (YYYY-MM-DD) with a localized "display" copy
- Enum values are stored as their codes ("en_retard", "GRIPPE", "rhino_todo")
- Statuses are recomputed for every report; nothing is read back from
  earlier reports
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config_loader import DATE_FORMATS
from .data_models import DashboardSummary, HorseGroups, HorseStatus, UpcomingItem, VaccineTrack
from .enums import Language
from .records import RecordStore
from .status import (
    build_dashboard,
    classify_bucket,
    compute_all_statuses,
    filter_horses,
    group_horses,
)
from .translation_helpers import (
    age_label,
    bucket_label,
    display_label,
    format_display_date,
    horse_display_name,
    status_label,
    track_labels,
    vaccine_label,
)

LOG = logging.getLogger(__name__)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def serialize_track(
    track: VaccineTrack, lang: str, date_format: str, include_details: bool
) -> Dict[str, Any]:
    """Serialize one vaccine track with its display labels."""
    payload: Dict[str, Any] = {
        "vaccine_type": track.vaccine_type.value,
        "dose_count": track.dose_count,
        "last_date": _iso(track.last_date),
        "next_due": _iso(track.next_due),
        "days_until": track.days_until,
        "status": track.status.value,
        "display": track_labels(track, lang, date_format),
    }
    if include_details:
        payload["dose_history"] = [d.isoformat() for d in track.dose_dates]
    return payload


def serialize_horse(
    status: HorseStatus,
    today: date,
    lang: str,
    date_format: str = "medium",
    include_details: bool = True,
) -> Dict[str, Any]:
    """Serialize a horse card: identity, both tracks, overall status and bucket."""
    horse = status.horse
    bucket = classify_bucket(status)
    payload: Dict[str, Any] = {
        "id": horse.id,
        "display_name": horse_display_name(horse, lang),
        "age": age_label(horse, today, lang),
        "overall": status.overall.value,
        "overall_label": status_label(status.overall, lang),
        "bucket": bucket.value,
        "influenza": serialize_track(status.influenza, lang, date_format, include_details),
        "rhino": serialize_track(status.rhino, lang, date_format, include_details),
    }
    if include_details:
        payload["pedigree"] = {
            "sire": horse.sire,
            "dam": horse.dam,
            "dam_sire": horse.dam_sire,
        }
    return payload


def serialize_upcoming(item: UpcomingItem, lang: str, date_format: str) -> Dict[str, Any]:
    return {
        "key": item.key,
        "horse_id": item.horse_id,
        "horse_name": item.horse_name or display_label("labels", "unnamed", lang),
        "vaccine_type": item.vaccine_type.value,
        "vaccine_label": vaccine_label(item.vaccine_type, lang),
        "due_date": item.due_date.isoformat(),
        "due_date_display": format_display_date(item.due_date, lang, date_format),
        "status": item.status.value,
        "status_label": status_label(item.status, lang),
    }


def serialize_dashboard(
    summary: DashboardSummary, lang: str, date_format: str
) -> Dict[str, Any]:
    return {
        "total_horses": summary.total_horses,
        "upcoming_count": summary.upcoming_count,
        "up_to_date_count": summary.up_to_date_count,
        "up_to_date_percentage": round(summary.up_to_date_percentage, 1),
        "upcoming": [serialize_upcoming(item, lang, date_format) for item in summary.upcoming],
    }


def serialize_groups(groups: HorseGroups, lang: str) -> Dict[str, Any]:
    """Bucket code -> label, count and horse ids (in list order)."""
    return {
        "total": groups.total,
        "buckets": {
            bucket.value: {
                "label": bucket_label(bucket, lang),
                "count": len(members),
                "horse_ids": [status.horse.id for status in members],
            }
            for bucket, members in groups.buckets.items()
        },
    }


def build_report(
    store: RecordStore,
    today: date,
    language: str | None = None,
    config: Optional[Dict[str, Any]] = None,
    search: Optional[str] = None,
    run_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Compute every status and assemble the report.

    Parameters
    ----------
    store : RecordStore
        Source of horses and vaccination events.
    today : date
        Date the statuses are computed for.
    language : str, optional
        Display language; defaults to config's ``language``, then French.
    config : dict, optional
        Validated configuration (see config_loader.load_config).
    search : str, optional
        Horse-name filter applied to the list groups only; the dashboard
        always covers every horse.
    run_id : str, optional
        Identifier stored in the report.

    Returns
    -------
    Dict[str, Any]
        JSON-serializable report.
    """
    config = config or {}
    report_config = config.get("report", {}) or {}
    lang = Language.from_string(language or config.get("language")).value
    date_format = report_config.get("date_format", "medium")
    if date_format not in DATE_FORMATS:
        raise ValueError(f"Unsupported date format: {date_format}")
    include_details = report_config.get("include_details", True)

    statuses = compute_all_statuses(store.list_horses(), store.list_vaccinations(), today)
    listed = filter_horses(statuses, search)

    LOG.info(
        "Computed statuses for %d horses (%d listed after search %r)",
        len(statuses),
        len(listed),
        search,
    )

    horses: List[Dict[str, Any]] = [
        serialize_horse(status, today, lang, date_format, include_details)
        for status in listed
    ]

    return {
        "run_id": run_id,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "today": today.isoformat(),
        "language": lang,
        "search": search or None,
        "dashboard": serialize_dashboard(build_dashboard(statuses, today), lang, date_format),
        "groups": serialize_groups(group_horses(listed), lang),
        "horses": horses,
    }


def write_report(output_dir: Path, run_id: str, report: Dict[str, Any]) -> Path:
    """Write the report to output_dir/report_<run_id>.json."""
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / f"report_{run_id}.json"
    report_path.write_text(
        json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    LOG.info("Wrote status report to %s", report_path)
    return report_path
