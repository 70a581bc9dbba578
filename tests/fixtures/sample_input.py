"""Mock data generators for test fixtures and sample input.

This module provides utilities to generate realistic test data:
- Horse and VaccinationEvent records for calculator and status tests
- Populated record stores covering every priority bucket
- CSV exports for loader and orchestrator tests
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from horse_vaccines.data_models import Horse, VaccinationEvent
from horse_vaccines.enums import VaccineType
from horse_vaccines.records import RecordStore

# Reference day used by the stable scenario below
TODAY = date(2024, 6, 1)


def make_horse(
    horse_id: str = "h1",
    name: str = "Tornade",
    affixe: str = "du Tricastin",
    birthdate: Optional[date] = None,
    birth_year: Optional[int] = None,
) -> Horse:
    """Build a Horse record with sensible defaults."""
    return Horse(
        id=horse_id,
        name=name,
        affixe=affixe,
        birthdate=birthdate,
        birth_year=birth_year,
    )


def make_events(
    horse_id: str,
    vaccine_type: VaccineType,
    dates: Iterable[date],
) -> List[VaccinationEvent]:
    """Build one VaccinationEvent per date for a horse and vaccine."""
    return [
        VaccinationEvent(
            id=f"{horse_id}-{vaccine_type.value.lower()}-{index}",
            horse_id=horse_id,
            vaccine_type=vaccine_type,
            date=dose_date,
        )
        for index, dose_date in enumerate(dates, start=1)
    ]


def create_stable_store() -> RecordStore:
    """Store with one horse per priority bucket, as of TODAY (2024-06-01).

    - "Alezan": influenza overdue (single dose 2024-01-10, due 2024-02-10)
    - "Bijou": rhino due soon (two doses, last 2023-12-15, due 2024-06-15)
    - "Cador": influenza up to date, rhino never started
    - "Eclair": both up to date (boosters in 2024)
    - "Fanfan": nothing recorded at all
    """
    store = RecordStore()

    alezan = store.create_horse("Alezan", "des Prés", horse_id="alezan", birth_year=2015)
    store.add_vaccination(alezan.id, VaccineType.INFLUENZA, date(2024, 1, 10))

    bijou = store.create_horse("Bijou", "de la Combe", horse_id="bijou")
    store.add_vaccination(bijou.id, VaccineType.RHINO, date(2023, 11, 15))
    store.add_vaccination(bijou.id, VaccineType.RHINO, date(2023, 12, 15))
    for d in (date(2022, 3, 1), date(2022, 4, 1), date(2024, 3, 1)):
        store.add_vaccination(bijou.id, VaccineType.INFLUENZA, d)

    cador = store.create_horse("Cador", "du Tricastin", horse_id="cador")
    for d in (date(2022, 1, 5), date(2022, 2, 5), date(2024, 2, 5)):
        store.add_vaccination(cador.id, VaccineType.INFLUENZA, d)

    eclair = store.create_horse(
        "Éclair", "du Tricastin", horse_id="eclair", birthdate=date(2018, 4, 20)
    )
    for vaccine_type in VaccineType:
        for d in (date(2021, 1, 10), date(2021, 2, 10), date(2021, 8, 10), date(2024, 1, 20)):
            store.add_vaccination(eclair.id, vaccine_type, d)

    store.create_horse("Fanfan", "des Prés", horse_id="fanfan")
    return store


def write_horses_csv(path: Path, rows: Sequence[dict]) -> Path:
    """Write horse rows (dicts keyed by header) to a CSV export."""
    pd.DataFrame(list(rows)).to_csv(path, index=False)
    return path


def write_vaccinations_csv(path: Path, rows: Sequence[dict]) -> Path:
    """Write vaccination rows (dicts keyed by header) to a CSV export."""
    pd.DataFrame(list(rows)).to_csv(path, index=False)
    return path


def default_horse_rows() -> List[dict]:
    """French-headed horse export matching create_stable_store's first horses."""
    return [
        {"ID": "alezan", "Nom": "Alezan", "Affixe": "des Prés", "Année de naissance": "2015"},
        {"ID": "bijou", "Nom": "Bijou", "Affixe": "de la Combe", "Année de naissance": ""},
        {"ID": "cador", "Nom": "Cador", "Affixe": "du Tricastin", "Année de naissance": ""},
    ]


def default_vaccination_rows() -> List[dict]:
    """Vaccination export for default_horse_rows, including one bad row."""
    return [
        {"horse_id": "alezan", "type": "GRIPPE", "date": "2024-01-10", "note": ""},
        {"horse_id": "bijou", "type": "RHINO", "date": "2023-11-15", "note": ""},
        {"horse_id": "bijou", "type": "RHINO", "date": "2023-12-15", "note": "lot 42"},
        {"horse_id": "cador", "type": "GRIPPE", "date": "2022-01-05", "note": ""},
        {"horse_id": "cador", "type": "GRIPPE", "date": "2022-02-05", "note": ""},
        {"horse_id": "cador", "type": "GRIPPE", "date": "2024-02-05", "note": ""},
        {"horse_id": "cador", "type": "GRIPPE", "date": "2024-02-31", "note": "typo"},
    ]
