"""Unit tests for utils module - cell conversion, accent folding and identifiers.

Tests cover:
- Safe string conversion of None/NaN spreadsheet cells
- Accent-insensitive folding used by search and sorting
- Header normalization before column matching
- Deterministic identifiers for rows without one

Real-world significance:
- French exports carry accented headers and names ("Éclair", "Année")
- Re-loading the same export must give the same horse identifiers
"""

from __future__ import annotations

import math

import pandas as pd
import pytest

from horse_vaccines import utils


@pytest.mark.unit
class TestStringOrEmpty:
    """Unit tests for string_or_empty() and clean_optional()."""

    @pytest.mark.parametrize("value", [None, math.nan, pd.NA, "", "   "])
    def test_missing_values(self, value) -> None:
        assert utils.string_or_empty(value) == ""
        assert utils.clean_optional(value) is None

    def test_values_are_stripped(self) -> None:
        assert utils.string_or_empty("  Bijou ") == "Bijou"
        assert utils.clean_optional(" lot 42 ") == "lot 42"

    def test_numbers_are_stringified(self) -> None:
        assert utils.string_or_empty(2015) == "2015"


@pytest.mark.unit
class TestStripAccents:
    def test_lowercases_and_removes_diacritics(self) -> None:
        assert utils.strip_accents("Éclair des Prés") == "eclair des pres"

    def test_plain_text_unchanged_but_lowercased(self) -> None:
        assert utils.strip_accents("Cador") == "cador"


@pytest.mark.unit
class TestNormalizeHeader:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("  Date_de-Naissance ", "date de naissance"),
            ("Année de naissance", "annee de naissance"),
            ("HORSE   ID", "horse id"),
            ("horse_id", "horse id"),
        ],
    )
    def test_normalize(self, header, expected) -> None:
        assert utils.normalize_header(header) == expected


@pytest.mark.unit
class TestSynthesizeIdentifier:
    def test_existing_identifier_is_kept(self) -> None:
        assert utils.synthesize_identifier(" h1 ", "Bijou|de la Combe", "hrs") == "h1"

    def test_generated_identifier_is_deterministic(self) -> None:
        first = utils.synthesize_identifier(None, "Bijou|de la Combe", "hrs")
        second = utils.synthesize_identifier(math.nan, "bijou|de la combe", "hrs")

        assert first == second
        assert first.startswith("hrs_")
        assert len(first) == len("hrs_") + 10

    def test_different_sources_differ(self) -> None:
        assert utils.synthesize_identifier(None, "Bijou|x", "hrs") != utils.synthesize_identifier(
            None, "Cador|x", "hrs"
        )
