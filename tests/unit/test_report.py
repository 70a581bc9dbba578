"""Unit tests for report module - JSON report assembly and writing.

Tests cover:
- Dashboard counters, percentage and feed serialization
- Priority groups with localized labels
- Horse cards with tracks, details and pedigree
- Search filtering applied to the list only
- Configuration-driven language, date format and detail level
- Writing the report artifact

Real-world significance:
- The report is the single artifact the stable opens each morning
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from horse_vaccines import report
from horse_vaccines.records import RecordStore


@pytest.mark.unit
class TestBuildReport:
    """Unit tests for build_report()."""

    def test_top_level_fields(self, stable_store, today, default_config, run_id) -> None:
        result = report.build_report(stable_store, today, config=default_config, run_id=run_id)

        assert result["run_id"] == run_id
        assert result["today"] == "2024-06-01"
        assert result["language"] == "fr"
        assert result["search"] is None
        assert "generated_at" in result

    def test_dashboard(self, stable_store, today, default_config) -> None:
        dashboard = report.build_report(stable_store, today, config=default_config)["dashboard"]

        assert dashboard["total_horses"] == 5
        assert dashboard["up_to_date_count"] == 2
        assert dashboard["up_to_date_percentage"] == 40.0
        assert dashboard["upcoming_count"] == 2

        first, second = dashboard["upcoming"]
        assert first == {
            "key": "alezan-grippe",
            "horse_id": "alezan",
            "horse_name": "Alezan des Prés",
            "vaccine_type": "GRIPPE",
            "vaccine_label": "Grippe",
            "due_date": "2024-02-10",
            "due_date_display": "10 févr. 2024",
            "status": "en_retard",
            "status_label": "En retard",
        }
        assert second["key"] == "bijou-rhino"
        assert second["status"] == "bientot"

    def test_groups(self, stable_store, today, default_config) -> None:
        groups = report.build_report(stable_store, today, config=default_config)["groups"]

        assert groups["total"] == 5
        assert list(groups["buckets"]) == ["urgent", "soon", "rhino_todo", "ok"]
        assert groups["buckets"]["rhino_todo"] == {
            "label": "Rhino à lancer",
            "count": 1,
            "horse_ids": ["cador"],
        }
        assert groups["buckets"]["ok"]["horse_ids"] == ["eclair", "fanfan"]

    def test_horse_card(self, stable_store, today, default_config) -> None:
        horses = report.build_report(stable_store, today, config=default_config)["horses"]
        cards = {card["id"]: card for card in horses}

        eclair = cards["eclair"]
        assert eclair["display_name"] == "Éclair du Tricastin"
        assert eclair["age"] == "6 ans"
        assert eclair["overall"] == "a_jour"
        assert eclair["bucket"] == "ok"
        assert eclair["influenza"]["dose_count"] == 4
        assert eclair["influenza"]["next_due"] == "2025-01-20"
        assert eclair["influenza"]["display"]["kind"] == "Rappel 1"
        assert eclair["influenza"]["dose_history"][0] == "2024-01-20"
        assert eclair["pedigree"] == {"sire": None, "dam": None, "dam_sire": None}

        assert cards["alezan"]["age"] == "9 ans (né en 2015)"
        fanfan = cards["fanfan"]
        assert fanfan["overall"] == "a_faire"
        assert fanfan["rhino"]["next_due"] is None
        assert fanfan["rhino"]["display"]["next_due"] == "—"

    def test_without_details(self, stable_store, today, default_config) -> None:
        default_config["report"]["include_details"] = False

        horses = report.build_report(stable_store, today, config=default_config)["horses"]

        assert "pedigree" not in horses[0]
        assert "dose_history" not in horses[0]["influenza"]

    def test_language_argument_overrides_config(self, stable_store, today, default_config) -> None:
        default_config["report"]["date_format"] = "long"

        result = report.build_report(stable_store, today, language="en", config=default_config)

        assert result["language"] == "en"
        first = result["dashboard"]["upcoming"][0]
        assert first["vaccine_label"] == "Influenza"
        assert first["due_date_display"] == "February 10, 2024"
        assert result["groups"]["buckets"]["rhino_todo"]["label"] == "Rhino to start"

    def test_defaults_without_config(self, stable_store, today) -> None:
        result = report.build_report(stable_store, today)
        assert result["language"] == "fr"
        assert "pedigree" in result["horses"][0]

    def test_search_filters_list_but_not_dashboard(self, stable_store, today, default_config) -> None:
        result = report.build_report(stable_store, today, config=default_config, search="pres")

        assert result["search"] == "pres"
        assert [card["id"] for card in result["horses"]] == ["alezan", "fanfan"]
        assert result["groups"]["total"] == 2
        assert result["dashboard"]["total_horses"] == 5

    def test_unsupported_date_format_raises(self, stable_store, today, default_config) -> None:
        default_config["report"]["date_format"] = "iso"
        with pytest.raises(ValueError, match="Unsupported date format"):
            report.build_report(stable_store, today, config=default_config)

    def test_empty_store(self, today) -> None:
        result = report.build_report(RecordStore(), today)

        assert result["dashboard"]["total_horses"] == 0
        assert result["dashboard"]["up_to_date_percentage"] == 0.0
        assert result["horses"] == []


@pytest.mark.unit
class TestWriteReport:
    """Unit tests for write_report()."""

    def test_writes_utf8_json(self, tmp_path: Path, stable_store, today, run_id) -> None:
        payload = report.build_report(stable_store, today, run_id=run_id)

        path = report.write_report(tmp_path / "out", run_id, payload)

        assert path == tmp_path / "out" / f"report_{run_id}.json"
        text = path.read_text(encoding="utf-8")
        assert "Éclair" in text
        assert json.loads(text)["dashboard"]["total_horses"] == 5
