"""Translation and formatting helpers for display labels.

Provides localized labels for statuses, vaccines, list buckets and dose
kinds, plus locale-aware date and age formatting.

**Contracts:**

- Canonical keys are enum values (e.g. "en_retard", "GRIPPE", "rhino_todo")
- Labels live in config/translations/{lang}_{domain}.json
- Missing translations fall back leniently (return the key + log warning)
  unless strict=True
- Dates are formatted with Babel in the language's locale
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Literal, Optional

from babel import Locale
from babel.dates import format_date

from .data_models import Horse, VaccineTrack
from .due_dates import dose_kind
from .enums import DueStatus, Language, PriorityBucket, VaccineType
from .records import age_years, display_name

SCRIPT_DIR = Path(__file__).resolve().parent
CONFIG_DIR = SCRIPT_DIR.parent / "config"
TRANSLATIONS_DIR = CONFIG_DIR / "translations"

LOG = logging.getLogger(__name__)

Domain = Literal["status", "vaccines", "buckets", "labels"]

# Cache for loaded translations; populated on first use per run
_TRANSLATION_CACHES: Dict[tuple[str, str], Dict[str, str]] = {}
_LOGGED_MISSING_KEYS: set = set()


def load_translations(domain: Domain, lang: str) -> Dict[str, str]:
    """Load translation map for a domain and language from config.

    Parameters
    ----------
    domain : Domain
        Label domain ("status", "vaccines", "buckets" or "labels").
    lang : str
        Language code (e.g., "fr", "en").

    Returns
    -------
    Dict[str, str]
        Map from canonical keys to localized display strings.
        Returns empty dict if file does not exist.
    """
    cache_key = (domain, lang)
    if cache_key in _TRANSLATION_CACHES:
        return _TRANSLATION_CACHES[cache_key]

    translation_file = TRANSLATIONS_DIR / f"{lang}_{domain}.json"
    if not translation_file.exists():
        _TRANSLATION_CACHES[cache_key] = {}
        return _TRANSLATION_CACHES[cache_key]

    try:
        with open(translation_file, encoding="utf-8") as f:
            _TRANSLATION_CACHES[cache_key] = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        LOG.warning(f"Failed to load translations for {lang}_{domain}: {e}")
        _TRANSLATION_CACHES[cache_key] = {}

    return _TRANSLATION_CACHES[cache_key]


def display_label(domain: Domain, key: str, lang: str, *, strict: bool = False) -> str:
    """Translate a canonical key to a localized display label.

    Falls back leniently to the key itself if missing (unless strict=True),
    and logs a single warning per unique missing key.

    Raises
    ------
    KeyError
        If strict=True and translation is missing.

    Examples
    --------
    >>> display_label("status", "en_retard", "fr")
    'En retard'
    >>> display_label("status", "en_retard", "en")
    'Overdue'
    """
    translations = load_translations(domain, lang)
    if key in translations:
        return translations[key]

    missing_key = f"{domain}:{lang}:{key}"
    if missing_key not in _LOGGED_MISSING_KEYS:
        _LOGGED_MISSING_KEYS.add(missing_key)
        LOG.warning(
            f"Missing translation for {domain} in language {lang}: {key}. "
            f"Using canonical key."
        )

    if strict:
        raise KeyError(f"Missing translation for {domain} in language {lang}: {key}")

    return key


def status_label(status: DueStatus, lang: str) -> str:
    return display_label("status", status.value, lang)


def vaccine_label(vaccine_type: VaccineType, lang: str) -> str:
    return display_label("vaccines", vaccine_type.value, lang)


def bucket_label(bucket: PriorityBucket, lang: str) -> str:
    return display_label("buckets", bucket.value, lang)


def dose_kind_label(dose_count: int, lang: str) -> str:
    """Label of the programme phase, e.g. "Primo 2" or "Rappel 1"."""
    kind = dose_kind(dose_count)
    if kind is None:
        return display_label("labels", "no_dose", lang)
    phase, number = kind
    return display_label("labels", phase.value, lang).format(number=number)


def format_display_date(
    value: Optional[date], lang: str, date_format: str = "medium"
) -> str:
    """Format a date with the language's locale, "—" when missing.

    Examples
    --------
    >>> format_display_date(date(2024, 2, 10), "fr", "long")
    '10 février 2024'
    >>> format_display_date(date(2024, 2, 10), "en", "long")
    'February 10, 2024'
    """
    if value is None:
        return display_label("labels", "no_date", lang)
    locale = Language.from_string(lang).locale
    return format_date(value, format=date_format, locale=locale)


def horse_display_name(horse: Horse, lang: str) -> str:
    """Name and affixe, or the localized "unnamed" label."""
    return display_name(horse) or display_label("labels", "unnamed", lang)


def age_label(horse: Horse, today: date, lang: str) -> str:
    """Localized age, e.g. "7 ans", "1 year", "12 ans (né en 2012)".

    The birth year is appended when the age was derived from it alone.
    """
    years = age_years(horse, today)
    if years is None:
        return display_label("labels", "age_unknown", lang)

    locale = Locale.parse(Language.from_string(lang).locale)
    category = locale.plural_form(years)
    if category != "one":
        category = "other"
    text = display_label("labels", f"age_{category}", lang).format(years=years)

    # Age came from the birth year (no birthdate, or one in the future)
    if horse.birthdate is None or horse.birthdate > today:
        text = display_label("labels", "born_in", lang).format(
            age=text, year=horse.birth_year
        )
    return text


def track_labels(track: VaccineTrack, lang: str, date_format: str = "medium") -> Dict[str, str]:
    """Display strings for one vaccine track."""
    return {
        "vaccine": vaccine_label(track.vaccine_type, lang),
        "status": status_label(track.status, lang),
        "kind": dose_kind_label(track.dose_count, lang),
        "last_date": format_display_date(track.last_date, lang, date_format),
        "next_due": format_display_date(track.next_due, lang, date_format),
    }


def clear_caches() -> None:
    """Clear all translation caches.

    Useful for testing or reloading configs during runtime.
    """
    _TRANSLATION_CACHES.clear()
    _LOGGED_MISSING_KEYS.clear()
