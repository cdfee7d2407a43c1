"""Configuration loader and validator."""

import logging
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DB_PATH = ".padelrr/padelrr.sqlite"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Configuration validation error."""

    pass


def load_config(path: str) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file

    Returns:
        Dictionary with configuration values

    Raises:
        ConfigError: If file not found or invalid YAML
    """
    config_file = Path(path)

    if not config_file.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}")

    if config is None:
        raise ConfigError("Config file is empty")

    if not isinstance(config, dict):
        raise ConfigError("Config file must contain a mapping")

    return config


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Validated and normalized configuration

    Raises:
        ConfigError: If validation fails
    """
    validated = {}

    # Database path (optional)
    db_path = config.get("database_path", DEFAULT_DB_PATH)
    if not isinstance(db_path, str) or not db_path.strip():
        raise ConfigError("database_path must be a non-empty string")
    validated["database_path"] = db_path

    # Competition points (optional, default 3 per win / 1 per draw)
    for key, default in (("points_per_win", 3), ("points_per_draw", 1)):
        value = config.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigError(f"{key} must be a non-negative integer, got {value!r}")
        validated[key] = value

    if validated["points_per_draw"] > validated["points_per_win"]:
        raise ConfigError("points_per_draw cannot exceed points_per_win")

    # Log level (optional, default INFO)
    log_level = str(config.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{log_level}'")
    validated["log_level"] = log_level

    unknown = set(config) - {"database_path", "points_per_win", "points_per_draw", "log_level"}
    if unknown:
        logging.getLogger(__name__).warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    return validated


def default_config() -> dict[str, Any]:
    """Configuration used when no file is given."""
    return validate_config({})


def load_and_validate_config(path: str) -> dict[str, Any]:
    """Load and validate configuration in one step.

    Args:
        path: Path to YAML config file

    Returns:
        Validated configuration dictionary

    Raises:
        ConfigError: If loading or validation fails
    """
    config = load_config(path)
    return validate_config(config)
