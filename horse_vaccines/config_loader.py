"""Configuration loading utilities for the vaccination tracker.

Provides a centralized way to load and validate the parameters.yaml
configuration file used by the report command.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .enums import Language

SCRIPT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = SCRIPT_DIR.parent / "config" / "parameters.yaml"

DATE_FORMATS = ("short", "medium", "long", "full")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and parse the parameters.yaml configuration file.

    Automatically validates the configuration after loading.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file. If not provided, uses the default
        location (config/parameters.yaml in the project root).

    Returns
    -------
    Dict[str, Any]
        Parsed and validated YAML configuration as a nested dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the configuration file is invalid YAML.
    ValueError
        If the configuration fails validation (see validate_config).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration must be a mapping, got {type(config).__name__}"
        )

    validate_config(config)
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration for consistency and allowed values.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary (result of load_config).

    Raises
    ------
    ValueError
        If a value is missing or invalid.

    Notes
    -----
    **Validation checks:**

    - **Language:** If set, must be a supported language code
    - **Report:** date_format must be a Babel format name; include_details must be boolean
    - **Logging:** level must be a standard logging level name
    """
    language = config.get("language")
    if language is not None:
        if not isinstance(language, str):
            raise ValueError(f"language must be a string, got {type(language).__name__}")
        try:
            Language.from_string(language)
        except ValueError as exc:
            raise ValueError(f"Invalid language: {exc}") from exc

    report_config = config.get("report", {}) or {}
    date_format = report_config.get("date_format", "medium")
    if date_format not in DATE_FORMATS:
        raise ValueError(
            f"report.date_format must be one of {', '.join(DATE_FORMATS)}, got {date_format!r}"
        )

    include_details = report_config.get("include_details", True)
    if not isinstance(include_details, bool):
        raise ValueError(
            f"report.include_details must be a boolean, "
            f"got {type(include_details).__name__}"
        )

    logging_config = config.get("logging", {}) or {}
    level = logging_config.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
        raise ValueError(
            f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level!r}"
        )


def get_log_level(config: Dict[str, Any]) -> int:
    """Numeric logging level from a validated configuration."""
    level = (config.get("logging", {}) or {}).get("level", "INFO")
    return logging.getLevelName(level.upper())
