"""
Configuration loading and validation.

This module handles loading of the YAML run configuration and
validates that the required fields are present.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ["data", "output"]
VALID_OUTPUT_FORMATS = ["csv", "parquet"]


def load_config(filepath: str | Path) -> dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        filepath: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If the file is empty
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Loading configuration from {filepath}")
    with open(path, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate configuration and return list of issues.

    Args:
        config: Configuration dictionary

    Returns:
        List of issue messages (empty if valid)
    """
    issues = []

    for section in REQUIRED_SECTIONS:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    for dataset in ["respondents", "comfort_food"]:
        if get_config_value(config, f"data.{dataset}.path") is None:
            issues.append(f"Missing data.{dataset}.path")

    output_format = get_config_value(config, "output.format", "csv")
    if output_format not in VALID_OUTPUT_FORMATS:
        issues.append(
            f"output.format must be one of {VALID_OUTPUT_FORMATS}, got '{output_format}'"
        )

    verbosity = get_config_value(config, "global.verbosity", 0)
    if not isinstance(verbosity, int):
        issues.append(f"global.verbosity must be an integer, got {verbosity!r}")

    return issues


def get_config_value(config: dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "data.respondents.path")
        default: Default value if path doesn't exist

    Returns:
        Configuration value or default
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
