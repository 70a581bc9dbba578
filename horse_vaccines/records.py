"""Horse and vaccination records.

Holds the stable's records in memory and loads them from spreadsheet exports
(CSV or Excel). Status computation never touches this module's storage; it
only receives the records read from it.

**Validation Contract:**

What the store validates on every write:
- Horse name and affixe are present (non-blank)
- Vaccination events reference an existing horse
- Vaccine type is INFLUENZA or RHINO
- Dose date is a valid calendar date

**Error Handling:**
- Invalid values raise ``ValueError``; unknown identifiers raise ``KeyError``
- Missing input files or required columns raise immediately (infrastructure)
- Bad rows in an export (unparseable date, unknown vaccine, orphan
  vaccination) are logged as warnings and skipped; loading continues
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd
from rapidfuzz import fuzz, process

from .data_models import Horse, VaccinationEvent
from .due_dates import coerce_date
from .enums import VaccineType
from .utils import (
    clean_optional,
    normalize_header,
    string_or_empty,
    strip_accents,
    synthesize_identifier,
)

LOG = logging.getLogger(__name__)

THRESHOLD = 85
MIN_BIRTH_YEAR = 1900

HORSE_COLUMNS = [
    "ID",
    "NAME",
    "AFFIXE",
    "BIRTHDATE",
    "BIRTH YEAR",
    "SIRE",
    "DAM",
    "DAM SIRE",
]
REQUIRED_HORSE_COLUMNS = ["NAME", "AFFIXE"]

VACCINATION_COLUMNS = ["ID", "HORSE ID", "TYPE", "DATE", "NOTE"]
REQUIRED_VACCINATION_COLUMNS = ["HORSE ID", "TYPE", "DATE"]

# French headers used by the stable's exports
HEADER_ALIASES = {
    "nom": "NAME",
    "date de naissance": "BIRTHDATE",
    "annee de naissance": "BIRTH YEAR",
    "pere": "SIRE",
    "mere": "DAM",
    "pere de mere": "DAM SIRE",
    "cheval": "HORSE ID",
    "cheval id": "HORSE ID",
    "horse": "HORSE ID",
    "vaccin": "TYPE",
    "vaccine": "TYPE",
    "vaccine type": "TYPE",
    "remarque": "NOTE",
}


def display_name(horse: Horse) -> str:
    """Name and affixe joined by a space; empty string when both are blank."""
    return " ".join(
        part for part in (string_or_empty(horse.name), string_or_empty(horse.affixe)) if part
    )


def age_years(horse: Horse, today: date) -> Optional[int]:
    """Age of a horse in whole years on ``today``.

    Uses the full birthdate when known, otherwise the birth year (accepted
    between 1900 and today's year). Returns None when neither is usable.
    """
    if horse.birthdate is not None and horse.birthdate <= today:
        age = today.year - horse.birthdate.year
        # Adjust if the birthday hasn't occurred yet this year
        if (today.month, today.day) < (horse.birthdate.month, horse.birthdate.day):
            age -= 1
        return age

    if horse.birth_year is not None and MIN_BIRTH_YEAR <= horse.birth_year <= today.year:
        return today.year - horse.birth_year

    return None


def _new_id() -> str:
    return uuid.uuid4().hex


def _require_text(value: Any, field_name: str) -> str:
    text = string_or_empty(value)
    if not text:
        raise ValueError(f"Horse {field_name} is required")
    return text


def _require_dose_date(value: Any) -> date:
    if value is None or string_or_empty(value) == "":
        raise ValueError("Vaccination date is required")
    dose_date = coerce_date(value)
    if dose_date is None:
        raise ValueError(f"Invalid vaccination date: {value!r}. Expected YYYY-MM-DD.")
    return dose_date


def _coerce_birth_year(value: Any) -> Optional[int]:
    if value is None or string_or_empty(value) == "":
        return None
    year = pd.to_numeric(value, errors="coerce")
    if pd.isna(year) or int(year) != year:
        raise ValueError(f"Invalid birth year: {value!r}")
    return int(year)


class RecordStore:
    """In-memory store of horses and their vaccination events.

    Records are keyed by opaque hex identifiers. Reads return immutable
    dataclasses; updates replace the stored record.
    """

    def __init__(self) -> None:
        self._horses: Dict[str, Horse] = {}
        self._vaccinations: Dict[str, VaccinationEvent] = {}

    # Horses

    def create_horse(
        self,
        name: str,
        affixe: str,
        *,
        birthdate: Any = None,
        birth_year: Any = None,
        sire: Optional[str] = None,
        dam: Optional[str] = None,
        dam_sire: Optional[str] = None,
        vaccinations: Iterable[Tuple[Any, Any]] = (),
        horse_id: Optional[str] = None,
    ) -> Horse:
        """Create a horse, optionally with its past doses.

        Parameters
        ----------
        name, affixe : str
            Required, stripped.
        birthdate : Any
            Full date of birth (date-like). An invalid value raises.
        birth_year : Any
            Year of birth when only the year is known.
        vaccinations : Iterable[Tuple[Any, Any]]
            ``(vaccine_type, date)`` pairs recorded with the horse.
        horse_id : str, optional
            Identifier to use (e.g. from an export); generated when omitted.

        Raises
        ------
        ValueError
            If a required field is blank, a date or year is invalid, the
            identifier is already taken, or a vaccination is invalid.
        """
        horse_id = string_or_empty(horse_id) or _new_id()
        if horse_id in self._horses:
            raise ValueError(f"Horse id already exists: {horse_id}")

        parsed_birthdate = None
        if birthdate is not None and string_or_empty(birthdate) != "":
            parsed_birthdate = coerce_date(birthdate)
            if parsed_birthdate is None:
                raise ValueError(f"Invalid birthdate: {birthdate!r}")

        # Validate every dose before storing anything
        doses = [
            (VaccineType.from_string(vaccine_type), _require_dose_date(dose_date))
            for vaccine_type, dose_date in vaccinations
        ]

        horse = Horse(
            id=horse_id,
            name=_require_text(name, "name"),
            affixe=_require_text(affixe, "affixe"),
            birthdate=parsed_birthdate,
            birth_year=_coerce_birth_year(birth_year),
            sire=clean_optional(sire),
            dam=clean_optional(dam),
            dam_sire=clean_optional(dam_sire),
        )
        self._horses[horse.id] = horse

        for vaccine_type, dose_date in doses:
            self.add_vaccination(horse.id, vaccine_type, dose_date)

        LOG.info("Created horse %s (%s)", horse.id, display_name(horse))
        return horse

    def get_horse(self, horse_id: str) -> Horse:
        try:
            return self._horses[horse_id]
        except KeyError:
            raise KeyError(f"Unknown horse id: {horse_id}") from None

    def list_horses(self) -> List[Horse]:
        """All horses ordered by name, then affixe, ignoring case and accents."""
        return sorted(
            self._horses.values(),
            key=lambda horse: (strip_accents(horse.name), strip_accents(horse.affixe), horse.id),
        )

    def update_horse(self, horse_id: str, **changes: Any) -> Horse:
        """Replace fields of a horse.

        Raises
        ------
        KeyError
            If the horse does not exist.
        ValueError
            If a field is unknown or an updated value is invalid.
        """
        horse = self.get_horse(horse_id)
        allowed = {f.name for f in dataclasses.fields(Horse)} - {"id"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(
                f"Unknown horse field(s) {sorted(unknown)}. Allowed: {sorted(allowed)}"
            )

        if "name" in changes:
            changes["name"] = _require_text(changes["name"], "name")
        if "affixe" in changes:
            changes["affixe"] = _require_text(changes["affixe"], "affixe")
        if "birthdate" in changes:
            raw = changes["birthdate"]
            if raw is None or string_or_empty(raw) == "":
                changes["birthdate"] = None
            else:
                parsed = coerce_date(raw)
                if parsed is None:
                    raise ValueError(f"Invalid birthdate: {raw!r}")
                changes["birthdate"] = parsed
        if "birth_year" in changes:
            changes["birth_year"] = _coerce_birth_year(changes["birth_year"])
        for key in ("sire", "dam", "dam_sire"):
            if key in changes:
                changes[key] = clean_optional(changes[key])

        updated = dataclasses.replace(horse, **changes)
        self._horses[horse_id] = updated
        return updated

    def delete_horse(self, horse_id: str) -> None:
        """Delete a horse and its vaccination events."""
        self.get_horse(horse_id)
        del self._horses[horse_id]
        orphaned = [
            event.id for event in self._vaccinations.values() if event.horse_id == horse_id
        ]
        for event_id in orphaned:
            del self._vaccinations[event_id]
        LOG.info("Deleted horse %s and %d vaccination(s)", horse_id, len(orphaned))

    # Vaccinations

    def add_vaccination(
        self,
        horse_id: str,
        vaccine_type: VaccineType | str,
        dose_date: Any,
        note: Optional[str] = None,
        vaccination_id: Optional[str] = None,
    ) -> VaccinationEvent:
        """Record one dose.

        Raises
        ------
        KeyError
            If the horse does not exist.
        ValueError
            If the vaccine type or date is missing or invalid, or the
            identifier is already taken.
        """
        if not string_or_empty(horse_id):
            raise ValueError("horse_id is required")
        self.get_horse(horse_id)

        if not isinstance(vaccine_type, VaccineType):
            vaccine_type = VaccineType.from_string(vaccine_type)

        vaccination_id = string_or_empty(vaccination_id) or _new_id()
        if vaccination_id in self._vaccinations:
            raise ValueError(f"Vaccination id already exists: {vaccination_id}")

        event = VaccinationEvent(
            id=vaccination_id,
            horse_id=horse_id,
            vaccine_type=vaccine_type,
            date=_require_dose_date(dose_date),
            note=clean_optional(note),
        )
        self._vaccinations[event.id] = event
        return event

    def record_dose_today(
        self, horse_id: str, vaccine_type: VaccineType | str, today: date
    ) -> VaccinationEvent:
        """One-click "done today": record a dose dated today."""
        return self.add_vaccination(horse_id, vaccine_type, today)

    def get_vaccination(self, vaccination_id: str) -> VaccinationEvent:
        try:
            return self._vaccinations[vaccination_id]
        except KeyError:
            raise KeyError(f"Unknown vaccination id: {vaccination_id}") from None

    def update_vaccination_date(self, vaccination_id: str, dose_date: Any) -> VaccinationEvent:
        """Correct the date of a recorded dose."""
        event = self.get_vaccination(vaccination_id)
        updated = dataclasses.replace(event, date=_require_dose_date(dose_date))
        self._vaccinations[vaccination_id] = updated
        return updated

    def delete_vaccination(self, vaccination_id: str) -> None:
        self.get_vaccination(vaccination_id)
        del self._vaccinations[vaccination_id]

    def list_vaccinations(
        self,
        horse_id: Optional[str] = None,
        vaccine_type: VaccineType | str | None = None,
    ) -> List[VaccinationEvent]:
        """Vaccination events, most recent first, optionally filtered."""
        if vaccine_type is not None and not isinstance(vaccine_type, VaccineType):
            vaccine_type = VaccineType.from_string(vaccine_type)

        events = [
            event
            for event in self._vaccinations.values()
            if (horse_id is None or event.horse_id == horse_id)
            and (vaccine_type is None or event.vaccine_type is vaccine_type)
        ]
        return sorted(events, key=lambda event: event.date, reverse=True)


def map_columns(
    df: pd.DataFrame,
    canonical_columns: Sequence[str],
    aliases: Mapping[str, str] = HEADER_ALIASES,
) -> Tuple[pd.DataFrame, Dict[str, str]]:
    """Map dataframe headers to canonical column names.

    Each header is normalized (case, accents, separators), then matched in
    order against the aliases, the exact canonical names, and finally the
    closest canonical name by ``fuzz.ratio`` (score >= THRESHOLD). A canonical
    name is assigned to at most one header, first come first served; headers
    that match nothing are left unchanged.

    Returns
    -------
    tuple[pd.DataFrame, dict]
        The renamed dataframe and the mapping {original header: canonical}.
    """
    normalized_canonical = [normalize_header(col) for col in canonical_columns]
    col_map: Dict[str, str] = {}
    taken: set[str] = set()

    for original in df.columns:
        header = normalize_header(original)
        target = aliases.get(header)
        if target is not None and target not in canonical_columns:
            target = None

        if target is None and header in normalized_canonical:
            target = canonical_columns[normalized_canonical.index(header)]

        if target is None:
            match = process.extractOne(
                header,
                normalized_canonical,
                scorer=fuzz.ratio,
                score_cutoff=THRESHOLD,
            )
            if match is not None:
                _, score, index = match
                target = canonical_columns[index]
                LOG.info("Matching '%s' to '%s' with score %.0f", original, target, score)

        if target is None or target in taken:
            continue
        col_map[original] = target
        taken.add(target)

    return df.rename(columns=col_map), col_map


def read_table(file_path: Path) -> pd.DataFrame:
    """Read a CSV or Excel export into a DataFrame of strings.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file type is unsupported or a CSV cannot be decoded.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    ext = file_path.suffix.lower()
    if ext in [".xlsx", ".xls"]:
        df = pd.read_excel(file_path, engine="openpyxl", dtype=str)
    elif ext == ".csv":
        # Try common encodings
        for enc in ["utf-8-sig", "latin-1", "cp1252"]:
            try:
                # Let pandas sniff the delimiter
                df = pd.read_csv(
                    file_path, sep=None, encoding=enc, engine="python", dtype=str
                )
                break
            except (UnicodeDecodeError, pd.errors.ParserError):
                continue
        else:
            raise ValueError("Could not decode CSV with common encodings or delimiters")
    else:
        raise ValueError(f"Unsupported file type: {ext}")

    LOG.info("Loaded %s rows from %s", len(df), file_path)
    return df


def _prepare(df: pd.DataFrame, canonical: Sequence[str], required: Sequence[str]) -> pd.DataFrame:
    mapped, _ = map_columns(df, canonical)
    missing = [col for col in required if col not in mapped.columns]
    if missing:
        raise ValueError(
            f"Missing required columns: {missing} \n Found columns: {list(df.columns)} "
        )
    mapped = mapped.copy()
    for col in canonical:
        if col not in mapped.columns:
            mapped[col] = None
    return mapped


def load_horses(store: RecordStore, file_path: Path) -> List[str]:
    """Load horses from an export into store.

    Rows without an ID column value get a deterministic identifier derived
    from name and affixe. Invalid rows are logged and skipped.

    Returns
    -------
    List[str]
        Warnings for skipped rows.
    """
    df = _prepare(read_table(file_path), HORSE_COLUMNS, REQUIRED_HORSE_COLUMNS)
    warnings: List[str] = []

    for row_number, row in enumerate(df.to_dict(orient="records"), start=2):
        name = string_or_empty(row["NAME"])
        affixe = string_or_empty(row["AFFIXE"])
        horse_id = synthesize_identifier(row["ID"], f"{name}|{affixe}", "hrs")
        try:
            store.create_horse(
                name,
                affixe,
                birthdate=clean_optional(row["BIRTHDATE"]),
                birth_year=clean_optional(row["BIRTH YEAR"]),
                sire=row["SIRE"],
                dam=row["DAM"],
                dam_sire=row["DAM SIRE"],
                horse_id=horse_id,
            )
        except ValueError as exc:
            message = f"Skipping horse row {row_number} in {Path(file_path).name}: {exc}"
            LOG.warning(message)
            warnings.append(message)

    return warnings


def load_vaccinations(store: RecordStore, file_path: Path) -> List[str]:
    """Load vaccination events from an export into store.

    Rows with an unknown horse, unknown vaccine type or invalid date are
    logged and skipped.

    Returns
    -------
    List[str]
        Warnings for skipped rows.
    """
    df = _prepare(read_table(file_path), VACCINATION_COLUMNS, REQUIRED_VACCINATION_COLUMNS)
    warnings: List[str] = []

    for row_number, row in enumerate(df.to_dict(orient="records"), start=2):
        try:
            store.add_vaccination(
                string_or_empty(row["HORSE ID"]),
                string_or_empty(row["TYPE"]),
                clean_optional(row["DATE"]),
                note=row["NOTE"],
                vaccination_id=clean_optional(row["ID"]),
            )
        except (KeyError, ValueError) as exc:
            # KeyError str() keeps the quotes; unwrap for readable messages
            reason = exc.args[0] if exc.args else exc
            message = (
                f"Skipping vaccination row {row_number} in {Path(file_path).name}: {reason}"
            )
            LOG.warning(message)
            warnings.append(message)

    return warnings


def load_store(horses_path: Path, vaccinations_path: Path) -> Tuple[RecordStore, List[str]]:
    """Build a store from a horses export and a vaccinations export.

    Returns
    -------
    tuple[RecordStore, List[str]]
        The populated store and all warnings raised while loading.
    """
    store = RecordStore()
    warnings = load_horses(store, horses_path)
    warnings.extend(load_vaccinations(store, vaccinations_path))
    LOG.info(
        "Store holds %d horses and %d vaccinations (%d rows skipped)",
        len(store.list_horses()),
        len(store.list_vaccinations()),
        len(warnings),
    )
    return store, warnings
