"""Data models for the horse vaccination tracker.

Stored records (Horse, VaccinationEvent) come from the record store. Every
other model is derived on each read from those records and today's date and
is never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from .due_dates import dose_kind
from .enums import DoseKind, DueStatus, PriorityBucket, VaccineType


@dataclass(frozen=True)
class Horse:
    """Horse record as kept by the stable.

    Fields
    ------
    id : str
        Opaque record identifier.
    name : str
        Horse name.
    affixe : str
        Breeder's prefix/suffix registered with the horse's name.
    birthdate : Optional[date]
        Full date of birth, when known.
    birth_year : Optional[int]
        Year of birth, used when only the year is known.
    sire, dam, dam_sire : Optional[str]
        Pedigree names.
    """

    id: str
    name: str
    affixe: str = ""
    birthdate: Optional[date] = None
    birth_year: Optional[int] = None
    sire: Optional[str] = None
    dam: Optional[str] = None
    dam_sire: Optional[str] = None


@dataclass(frozen=True)
class VaccinationEvent:
    """One recorded dose of a vaccine given to a horse.

    Fields
    ------
    id : str
        Opaque record identifier.
    horse_id : str
        Identifier of the owning horse.
    vaccine_type : VaccineType
        INFLUENZA or RHINO.
    date : date
        Calendar date of the dose (no time component).
    note : Optional[str]
        Free-text note.
    """

    id: str
    horse_id: str
    vaccine_type: VaccineType
    date: date
    note: Optional[str] = None


@dataclass(frozen=True)
class VaccineTrack:
    """Derived state of one vaccine for one horse.

    Fields
    ------
    vaccine_type : VaccineType
        Vaccine this track describes.
    dose_dates : Tuple[date, ...]
        Valid dose dates, most recent first.
    last_date : Optional[date]
        Most recent dose, None when no dose is recorded.
    next_due : Optional[date]
        Date the next dose is due, None when the programme has not started.
    status : DueStatus
        Classification of next_due relative to today.
    days_until : Optional[int]
        Whole days until next_due (negative when late).
    """

    vaccine_type: VaccineType
    dose_dates: Tuple[date, ...]
    last_date: Optional[date]
    next_due: Optional[date]
    status: DueStatus
    days_until: Optional[int] = None

    @property
    def dose_count(self) -> int:
        return len(self.dose_dates)

    @property
    def kind(self) -> Optional[Tuple[DoseKind, int]]:
        """Programme phase reached, e.g. (DoseKind.PRIMO, 2)."""
        return dose_kind(self.dose_count)


@dataclass(frozen=True)
class HorseStatus:
    """Both vaccine tracks of a horse plus the most urgent of the two."""

    horse: Horse
    influenza: VaccineTrack
    rhino: VaccineTrack
    overall: DueStatus

    def track(self, vaccine_type: VaccineType) -> VaccineTrack:
        if vaccine_type is VaccineType.INFLUENZA:
            return self.influenza
        return self.rhino

    @property
    def tracks(self) -> Tuple[VaccineTrack, VaccineTrack]:
        return (self.influenza, self.rhino)


@dataclass(frozen=True)
class UpcomingItem:
    """One entry of the dashboard's upcoming/overdue feed."""

    horse_id: str
    horse_name: str
    vaccine_type: VaccineType
    due_date: date
    status: DueStatus

    @property
    def key(self) -> str:
        return f"{self.horse_id}-{self.vaccine_type.value.lower()}"


@dataclass(frozen=True)
class HorseGroups:
    """Horses placed into the four priority buckets of the list page.

    Parameters
    ----------
    buckets : Dict[PriorityBucket, List[HorseStatus]]
        Every bucket is present, possibly empty. Input order is kept inside
        each bucket.
    """

    buckets: Dict[PriorityBucket, List[HorseStatus]]

    def __getitem__(self, bucket: PriorityBucket) -> List[HorseStatus]:
        return self.buckets[bucket]

    @property
    def counts(self) -> Dict[PriorityBucket, int]:
        return {bucket: len(members) for bucket, members in self.buckets.items()}

    @property
    def total(self) -> int:
        return sum(len(members) for members in self.buckets.values())


@dataclass(frozen=True)
class DashboardSummary:
    """Aggregate figures and feed shown on the home page.

    Parameters
    ----------
    total_horses : int
        Number of horses considered.
    up_to_date_count : int
        Horses whose latest influenza and rhino doses are both under 12
        months old.
    upcoming : List[UpcomingItem]
        Overdue entries first, then due-soon entries, each by due date.
    """

    total_horses: int
    up_to_date_count: int
    upcoming: List[UpcomingItem] = field(default_factory=list)

    @property
    def upcoming_count(self) -> int:
        return len(self.upcoming)

    @property
    def up_to_date_percentage(self) -> float:
        if self.total_horses <= 0:
            return 0.0
        return self.up_to_date_count / self.total_horses * 100
