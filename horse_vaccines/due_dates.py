"""Due-date and status calculator for equine vaccinations.

Applies the national primo-vaccination protocol used for both influenza and
rhinopneumonitis:

- 1st dose -> next dose 1 month later
- 2nd dose -> next dose 6 months later
- 3rd dose and every booster after it -> next dose 1 year later

The rule is keyed on the total number of doses recorded and anchored on the
most recent dose date.

**Contracts:**

- Dose values that are not valid calendar dates are discarded, never raised.
- No dose -> no next due date -> ``DueStatus.NOT_STARTED``.
- ``today`` is always passed in by the caller; nothing here reads the clock.
- Month arithmetic uses ``dateutil.relativedelta``: the day of month is
  clipped to the last valid day of the target month (Jan 31 + 1 month is
  Feb 28/29, Feb 29 + 1 year is Feb 28).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable as IterableABC
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta

from .enums import DoseKind, DueStatus

LOG = logging.getLogger(__name__)

DUE_SOON_DAYS = 30
UP_TO_DATE_MONTHS = 12
PRIMO_DOSES = 3

# Full calendar date, optionally followed by a time of day
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ].*)?$")

# Interval to the next dose, by number of doses recorded (capped at 3)
PROTOCOL_INTERVALS = {
    1: relativedelta(months=1),
    2: relativedelta(months=6),
    3: relativedelta(years=1),
}


def coerce_date(value: Any) -> Optional[date]:
    """Convert a date-like value to a calendar date.

    Parameters
    ----------
    value : Any
        ``date``, ``datetime``, ``pd.Timestamp`` or ``YYYY-MM-DD`` string
        (optionally followed by a time). The time of day, if any, is dropped;
        reduced-precision strings such as "2024" or "2024-01" are rejected.

    Returns
    -------
    Optional[date]
        The calendar date, or None if value is missing or not a valid date.

    Examples
    --------
    >>> coerce_date("2024-01-10")
    datetime.date(2024, 1, 10)
    >>> coerce_date("2024-02-30") is None
    True
    >>> coerce_date("2024-01") is None
    True
    """
    if isinstance(value, str):
        text = value.strip()
        if not text or not ISO_DATE_PATTERN.match(text):
            return None
        parsed = pd.to_datetime(text, errors="coerce", format="ISO8601")
        if pd.isna(parsed):
            return None
        return parsed.date()

    if isinstance(value, datetime):
        # Covers pd.Timestamp and pd.NaT
        if pd.isna(value):
            return None
        return value.date()

    if isinstance(value, date):
        return value

    return None


def valid_dose_dates(dose_dates: Iterable[Any] | None) -> List[date]:
    """Keep only the values that are valid calendar dates.

    Invalid values are dropped and logged; order and duplicates are kept. A
    single value passed instead of a collection is treated as a one-dose
    history.
    """
    if dose_dates is None:
        return []
    if isinstance(dose_dates, (str, date)) or not isinstance(dose_dates, IterableABC):
        LOG.warning("Expected a collection of dose dates, got %r", dose_dates)
        dose_dates = [dose_dates]

    valid: List[date] = []
    for value in dose_dates:
        coerced = coerce_date(value)
        if coerced is None:
            LOG.warning("Ignoring invalid dose date: %r", value)
            continue
        valid.append(coerced)
    return valid


def compute_next_due(dose_dates: Iterable[Any] | None) -> Optional[date]:
    """Compute when the next dose is due from a vaccine's dose history.

    Parameters
    ----------
    dose_dates : Iterable[Any] | None
        Dose dates for one vaccine on one horse, in any order. May be empty,
        contain duplicates or contain invalid values (which are ignored).

    Returns
    -------
    Optional[date]
        Most recent dose + 1 month (1 dose), + 6 months (2 doses) or
        + 1 year (3 or more doses). None when no valid dose is recorded,
        or when the result falls outside the supported date range.

    Examples
    --------
    >>> compute_next_due([date(2024, 1, 10)])
    datetime.date(2024, 2, 10)
    >>> compute_next_due([date(2024, 1, 10), date(2024, 1, 20)])
    datetime.date(2024, 7, 20)
    """
    valid = valid_dose_dates(dose_dates)
    if not valid:
        return None

    anchor = max(valid)
    interval = PROTOCOL_INTERVALS[min(len(valid), PRIMO_DOSES)]

    try:
        return anchor + interval
    except (OverflowError, ValueError) as exc:
        LOG.warning("Cannot compute next due date from %s: %s", anchor, exc)
        return None


def _require_today(today: Any) -> date:
    coerced = coerce_date(today)
    if coerced is None:
        raise ValueError(f"today must be a valid date, got {today!r}")
    return coerced


def days_until(due_date: Any, today: Any) -> Optional[int]:
    """Whole days from today to due_date, negative when due_date has passed.

    Both values are compared as calendar dates (midnight), so the time of
    day never changes the result.

    Raises
    ------
    ValueError
        If today is not a valid date.
    """
    today_day = _require_today(today)
    due_day = coerce_date(due_date)
    if due_day is None:
        return None
    return (due_day - today_day).days


def compute_status(due_date: Any, today: Any) -> DueStatus:
    """Classify a next-due date relative to today.

    Parameters
    ----------
    due_date : Any
        Next due date (date-like), or None when no dose has been recorded.
    today : Any
        Current date, injected by the caller.

    Returns
    -------
    DueStatus
        NOT_STARTED if due_date is None or invalid; OVERDUE if due_date is
        before today; DUE_SOON if it is today or within the next
        ``DUE_SOON_DAYS`` days (inclusive); UP_TO_DATE otherwise.

    Raises
    ------
    ValueError
        If today is not a valid date.
    """
    diff_days = days_until(due_date, today)
    if diff_days is None:
        return DueStatus.NOT_STARTED
    if diff_days < 0:
        return DueStatus.OVERDUE
    if diff_days <= DUE_SOON_DAYS:
        return DueStatus.DUE_SOON
    return DueStatus.UP_TO_DATE


def dose_kind(dose_count: int) -> Optional[Tuple[DoseKind, int]]:
    """Describe the programme phase reached after dose_count doses.

    Returns ``(DoseKind.PRIMO, n)`` for the first three doses and
    ``(DoseKind.BOOSTER, n)`` for the n-th booster after them; None when
    no dose has been given.
    """
    if dose_count <= 0:
        return None
    if dose_count <= PRIMO_DOSES:
        return (DoseKind.PRIMO, dose_count)
    return (DoseKind.BOOSTER, dose_count - PRIMO_DOSES)


def months_between(start: date, end: date) -> int:
    """Number of whole calendar months from start to end.

    Negative when end is before start.
    """
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def is_recent_dose(
    last_dose: Any, today: Any, months: int = UP_TO_DATE_MONTHS
) -> bool:
    """Check that a dose exists and is less than ``months`` whole months old.

    Used by the dashboard's up-to-date counter, which ignores
    the protocol intervals and the due-soon window.
    """
    today_day = _require_today(today)
    last_day = coerce_date(last_dose)
    if last_day is None:
        return False
    return months_between(last_day, today_day) < months
