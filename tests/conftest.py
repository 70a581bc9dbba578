"""Shared pytest fixtures for unit and integration tests.

This module provides:
- A fixed reference date so statuses never depend on the wall clock
- A populated record store covering every priority bucket
- Configuration fixtures for parameter testing
- Translation cache reset for test isolation
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

from horse_vaccines import translation_helpers
from horse_vaccines.records import RecordStore
from tests.fixtures import sample_input


@pytest.fixture(autouse=True)
def clear_translation_caches() -> Generator[None, None, None]:
    """Reset translation caches so tests never see each other's loads."""
    translation_helpers.clear_caches()
    yield
    translation_helpers.clear_caches()


@pytest.fixture
def today() -> date:
    """Reference day for the stable scenario (2024-06-01)."""
    return sample_input.TODAY


@pytest.fixture
def stable_store() -> RecordStore:
    """Record store with one horse per priority bucket.

    Real-world significance:
    - Mirrors a small stable: one horse late, one due soon, one waiting for
      its rhino programme, one fully current, one never vaccinated
    """
    return sample_input.create_stable_store()


@pytest.fixture
def default_config() -> Dict[str, Any]:
    """Provide a minimal valid configuration.

    Returns
    -------
    Dict[str, Any]
        Configuration dict with all standard sections
    """
    return {
        "language": "fr",
        "report": {
            "date_format": "medium",
            "include_details": True,
        },
        "logging": {
            "level": "INFO",
        },
    }


@pytest.fixture
def config_file(tmp_path: Path, default_config: Dict[str, Any]) -> Path:
    """Create a temporary config file with default configuration."""
    config_path = tmp_path / "parameters.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(default_config, f)
    return config_path


@pytest.fixture
def run_id() -> str:
    """Provide a consistent run ID for testing report generation."""
    return "test_run_20240601_120000"
