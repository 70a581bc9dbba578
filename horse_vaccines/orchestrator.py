"""Vaccination report orchestrator.

Runs the stable's vaccination report end to end: load configuration, load the
horse and vaccination exports, compute every status for the requested day,
and write the JSON report.

**Error Handling Philosophy:**

- **Infrastructure Errors** (missing files, missing columns, config errors)
  fail fast: the run stops and exits with code 1.
- **Data Errors** (a row with an unparseable date, an unknown vaccine or an
  unknown horse) are logged and skipped; the report is still produced and
  the skipped rows are listed in the console summary.

**Exit Codes:**
- 0: Report written successfully
- 1: Run failed (invalid arguments, infrastructure error)
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
import traceback
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import records, report
from .config_loader import get_log_level, load_config
from .due_dates import coerce_date
from .enums import Language

SCRIPT_DIR = Path(__file__).resolve().parent
ROOT_DIR = SCRIPT_DIR.parent
DEFAULT_OUTPUT_DIR = ROOT_DIR / "output"
DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "parameters.yaml"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute horse vaccination statuses and write the stable report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s chevaux.csv vaccinations.csv
  %(prog)s horses.xlsx vaccinations.xlsx --language en --today 2024-06-01
        """,
    )

    parser.add_argument(
        "horses_file",
        type=Path,
        help="Horse export (CSV or Excel)",
    )
    parser.add_argument(
        "vaccinations_file",
        type=Path,
        help="Vaccination export (CSV or Excel)",
    )
    parser.add_argument(
        "--language",
        choices=sorted(Language.all_codes()),
        default=None,
        help="Display language (default: from configuration)",
    )
    parser.add_argument(
        "--today",
        type=str,
        default=None,
        help="Compute statuses as of this date, YYYY-MM-DD (default: current date)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_OUTPUT_DIR,
        dest="output_dir",
        help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        dest="config_path",
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--search",
        type=str,
        default=None,
        help="Only list horses whose name contains this text (accents ignored)",
    )

    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments and resolve --today.

    Raises
    ------
    FileNotFoundError
        If an input file does not exist.
    ValueError
        If --today is not a valid date.
    """
    for path in (args.horses_file, args.vaccinations_file):
        if not path.exists():
            raise FileNotFoundError(f"Input file not found: {path}")

    if args.today is None:
        args.today = date.today()
    else:
        parsed = coerce_date(args.today)
        if parsed is None:
            raise ValueError(f"Invalid --today date: {args.today}. Expected YYYY-MM-DD.")
        args.today = parsed


def configure_logging(output_dir: Path, run_id: str, level: int = logging.INFO) -> Path:
    """Configure file logging for the run.

    Parameters
    ----------
    output_dir : Path
        Root output directory where logs subdirectory will be created.
    run_id : str
        Unique run identifier used in log filename.
    level : int
        Root logger level.

    Returns
    -------
    Path
        Path to the created log file.
    """
    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"report_{run_id}.log"

    handler = logging.FileHandler(log_path, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
        if isinstance(existing, logging.FileHandler):
            existing.close()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    return log_path


def print_header(horses_file: Path, today: date) -> None:
    """Print the run header."""
    print()
    print("🐴 Starting vaccination report")
    print(f"🗂️  Horses: {horses_file}")
    print(f"📅 Statuses as of {today.isoformat()}")
    print()


def print_step(step_num: int, description: str) -> None:
    """Print a step header."""
    print()
    print(f"{'=' * 60}")
    print(f"Step {step_num}: {description}")
    print(f"{'=' * 60}")


def print_step_complete(step_num: int, description: str, duration: float) -> None:
    """Print step completion message."""
    print(f"✅ Step {step_num}: {description} complete in {duration:.1f} seconds.")


def run_step_1_load_records(
    horses_file: Path, vaccinations_file: Path
) -> tuple[records.RecordStore, List[str]]:
    """Step 1: Load horse and vaccination exports."""
    print_step(1, "Loading records")

    store, warnings = records.load_store(horses_file, vaccinations_file)

    print(f"🐎 Horses loaded: {len(store.list_horses())}")
    print(f"💉 Vaccinations loaded: {len(store.list_vaccinations())}")
    if warnings:
        print("Warnings detected while loading:")
        for warning in warnings:
            print(f" - {warning}")
    return store, warnings


def run_step_2_build_report(
    store: records.RecordStore,
    today: date,
    language: Optional[str],
    config: Dict[str, Any],
    search: Optional[str],
    output_dir: Path,
    run_id: str,
) -> Dict[str, Any]:
    """Step 2: Compute statuses and write the report."""
    print_step(2, "Computing statuses")

    payload = report.build_report(
        store,
        today,
        language=language,
        config=config,
        search=search,
        run_id=run_id,
    )
    report_path = report.write_report(output_dir, run_id, payload)
    print(f"📄 Report: {report_path}")
    return payload


def print_summary(
    step_times: list[tuple[str, float]],
    total_duration: float,
    payload: Dict[str, Any],
) -> None:
    """Print the dashboard figures, the upcoming feed and timings."""
    dashboard = payload["dashboard"]
    groups = payload["groups"]

    print()
    print(f"{'=' * 60}")
    print("🎉 Report completed successfully!")
    print(f"{'=' * 60}")
    print()
    print(
        f"🐴 Horses: {dashboard['total_horses']}  "
        f"| Up to date: {dashboard['up_to_date_count']} "
        f"({dashboard['up_to_date_percentage']:.0f}%)  "
        f"| Upcoming: {dashboard['upcoming_count']}"
    )

    for bucket in groups["buckets"].values():
        print(f"  - {bucket['label']}: {bucket['count']}")

    if dashboard["upcoming"]:
        print()
        print("📋 Upcoming vaccinations:")
        for item in dashboard["upcoming"]:
            print(
                f"  {item['status_label']:<12} {item['due_date_display']:<16} "
                f"{item['vaccine_label']:<10} {item['horse_name']}"
            )

    print()
    print("🕒 Time Summary:")
    for step_name, duration in step_times:
        print(f"  - {step_name:<25} {duration:.1f}s")
    print(f"  - {'Total Time':<25} {total_duration:.1f}s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the report orchestrator."""
    try:
        args = parse_args(argv)
        validate_args(args)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    output_dir = args.output_dir.resolve()
    run_id = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")

    try:
        config = load_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    log_path = configure_logging(output_dir, run_id, get_log_level(config))
    print_header(args.horses_file, args.today)

    total_start = time.time()
    step_times: list[tuple[str, float]] = []

    try:
        step_start = time.time()
        store, _ = run_step_1_load_records(args.horses_file, args.vaccinations_file)
        step_duration = time.time() - step_start
        step_times.append(("Loading", step_duration))
        print_step_complete(1, "Loading", step_duration)

        step_start = time.time()
        payload = run_step_2_build_report(
            store,
            args.today,
            args.language,
            config,
            args.search,
            output_dir,
            run_id,
        )
        step_duration = time.time() - step_start
        step_times.append(("Report", step_duration))
        print_step_complete(2, "Report", step_duration)

        print_summary(step_times, time.time() - total_start, payload)
        print(f"Log written to {log_path}")
        return 0

    except Exception as exc:
        logging.getLogger(__name__).exception("Report failed")
        print(f"\n❌ Report failed: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
