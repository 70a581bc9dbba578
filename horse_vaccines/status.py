"""Per-horse status, list grouping and dashboard aggregation.

Everything here is recomputed from the vaccination events and today's date
on every call. Nothing is cached or stored, so a status can never drift from
the underlying records.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Sequence

from .data_models import (
    DashboardSummary,
    Horse,
    HorseGroups,
    HorseStatus,
    UpcomingItem,
    VaccinationEvent,
    VaccineTrack,
)
from .due_dates import (
    compute_next_due,
    compute_status,
    days_until,
    is_recent_dose,
    valid_dose_dates,
)
from .enums import DueStatus, PriorityBucket, VaccineType
from .records import display_name
from .utils import strip_accents


def _dose_values(
    vaccine_type: VaccineType, doses: Iterable[VaccinationEvent | Any]
) -> List[Any]:
    """Extract raw date values for one vaccine.

    Accepts VaccinationEvent objects (filtered by vaccine type) or bare
    date-like values (taken as already filtered).
    """
    values: List[Any] = []
    for dose in doses:
        if isinstance(dose, VaccinationEvent):
            if dose.vaccine_type is vaccine_type:
                values.append(dose.date)
        else:
            values.append(dose)
    return values


def compute_vaccine_track(
    vaccine_type: VaccineType,
    doses: Iterable[VaccinationEvent | Any],
    today: date,
) -> VaccineTrack:
    """Build the derived state of one vaccine for one horse.

    Parameters
    ----------
    vaccine_type : VaccineType
        Vaccine to compute.
    doses : Iterable[VaccinationEvent | Any]
        The horse's vaccination events (other vaccines are ignored), or the
        dose dates of this vaccine.
    today : date
        Current date.

    Returns
    -------
    VaccineTrack
        Dose history (most recent first), last date, next due date, status
        and days until due.
    """
    values = _dose_values(vaccine_type, doses)
    dose_dates = tuple(sorted(valid_dose_dates(values), reverse=True))
    next_due = compute_next_due(dose_dates)

    return VaccineTrack(
        vaccine_type=vaccine_type,
        dose_dates=dose_dates,
        last_date=dose_dates[0] if dose_dates else None,
        next_due=next_due,
        status=compute_status(next_due, today),
        days_until=days_until(next_due, today),
    )


def overall_status(*tracks: VaccineTrack) -> DueStatus:
    """Most urgent status among the given tracks."""
    return DueStatus.most_urgent(*(track.status for track in tracks))


def compute_horse_status(
    horse: Horse, events: Iterable[VaccinationEvent], today: date
) -> HorseStatus:
    """Compute both vaccine tracks of a horse and its overall status.

    Events belonging to other horses are ignored.
    """
    own_events = [event for event in events if event.horse_id == horse.id]
    influenza = compute_vaccine_track(VaccineType.INFLUENZA, own_events, today)
    rhino = compute_vaccine_track(VaccineType.RHINO, own_events, today)

    return HorseStatus(
        horse=horse,
        influenza=influenza,
        rhino=rhino,
        overall=overall_status(influenza, rhino),
    )


def compute_all_statuses(
    horses: Sequence[Horse], events: Iterable[VaccinationEvent], today: date
) -> List[HorseStatus]:
    """Compute the status of every horse, keeping the order of horses."""
    events_by_horse: Dict[str, List[VaccinationEvent]] = {}
    for event in events:
        events_by_horse.setdefault(event.horse_id, []).append(event)

    return [
        compute_horse_status(horse, events_by_horse.get(horse.id, []), today)
        for horse in horses
    ]


def classify_bucket(status: HorseStatus) -> PriorityBucket:
    """Place a horse into exactly one priority bucket.

    Precedence:
    1. URGENT: either track is overdue.
    2. SOON: either track is due soon.
    3. RHINO_TODO: influenza is up to date and no rhino dose was ever given.
    4. OK: everything else.
    """
    statuses = {track.status for track in status.tracks}

    if DueStatus.OVERDUE in statuses:
        return PriorityBucket.URGENT
    if DueStatus.DUE_SOON in statuses:
        return PriorityBucket.SOON
    if status.influenza.status is DueStatus.UP_TO_DATE and status.rhino.dose_count == 0:
        return PriorityBucket.RHINO_TODO
    return PriorityBucket.OK


def group_horses(statuses: Iterable[HorseStatus]) -> HorseGroups:
    """Group horses into the list page's priority buckets."""
    buckets: Dict[PriorityBucket, List[HorseStatus]] = {
        bucket: [] for bucket in PriorityBucket
    }
    for status in statuses:
        buckets[classify_bucket(status)].append(status)
    return HorseGroups(buckets=buckets)


def build_upcoming_feed(statuses: Iterable[HorseStatus]) -> List[UpcomingItem]:
    """Collect overdue and due-soon tracks across horses.

    Overdue entries come before due-soon entries whatever their dates; each
    group is sorted by due date, soonest first.
    """
    items: List[UpcomingItem] = []
    for status in statuses:
        for track in status.tracks:
            if not track.status.needs_action or track.next_due is None:
                continue
            items.append(
                UpcomingItem(
                    horse_id=status.horse.id,
                    horse_name=display_name(status.horse),
                    vaccine_type=track.vaccine_type,
                    due_date=track.next_due,
                    status=track.status,
                )
            )

    items.sort(key=lambda item: (item.status.rank, item.due_date))
    return items


def is_horse_up_to_date(status: HorseStatus, today: date) -> bool:
    """Both vaccines have a dose less than 12 months old.

    Independent of the due-date status: a horse can count as up to date here
    while one of its tracks is due soon or even overdue.
    """
    return all(is_recent_dose(track.last_date, today) for track in status.tracks)


def count_up_to_date(statuses: Iterable[HorseStatus], today: date) -> int:
    return sum(1 for status in statuses if is_horse_up_to_date(status, today))


def build_dashboard(statuses: Sequence[HorseStatus], today: date) -> DashboardSummary:
    """Aggregate figures and upcoming feed for the home page."""
    return DashboardSummary(
        total_horses=len(statuses),
        up_to_date_count=count_up_to_date(statuses, today),
        upcoming=build_upcoming_feed(statuses),
    )


def filter_horses(
    statuses: Iterable[HorseStatus], query: str | None
) -> List[HorseStatus]:
    """Keep horses whose display name contains query.

    Matching ignores case and accents; a blank query keeps every horse.
    """
    statuses = list(statuses)
    needle = strip_accents((query or "").strip())
    if not needle:
        return statuses
    return [
        status
        for status in statuses
        if needle in strip_accents(display_name(status.horse))
    ]
