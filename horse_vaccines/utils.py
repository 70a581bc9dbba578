"""Utility functions shared by the record loaders, search and reports.

Provides safe string conversion of spreadsheet cells, accent folding for
search and header matching, and deterministic identifiers for rows that come
without one."""

from __future__ import annotations

import re
import unicodedata
from hashlib import sha1
from typing import Any, Optional

import pandas as pd


def string_or_empty(value: Any) -> str:
    """Safely convert value to string, returning empty string for None/NaN.

    Parameters
    ----------
    value : Any
        Value to convert (may be None, NaN, empty string, or any type)

    Returns
    -------
    str
        Stringified, stripped value or empty string for None/NaN values
    """
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def clean_optional(value: Any) -> Optional[str]:
    """Convert a cell to a stripped string, or None when missing or blank."""
    text = string_or_empty(value)
    return text or None


def strip_accents(text: str) -> str:
    """Lowercase text and remove diacritics ("Éclair" -> "eclair")."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def normalize_header(col: Any) -> str:
    """Normalize a column header prior to matching.

    Examples
    --------
    >>> normalize_header("  Date_de-Naissance ")
    'date de naissance'
    """
    col_normalized = strip_accents(str(col)).strip().replace("_", " ").replace("-", " ")
    return re.sub(r"\s+", " ", col_normalized)


def synthesize_identifier(existing: Any, source: str, prefix: str) -> str:
    """Return existing if set, else a deterministic identifier derived from source."""
    existing = string_or_empty(existing)
    if existing:
        return existing

    base = (source or "").strip().lower() or "unknown"
    digest = sha1(base.encode("utf-8")).hexdigest()[:10]
    return f"{prefix}_{digest}"
