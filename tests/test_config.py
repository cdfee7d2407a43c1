"""Tests for configuration loading."""

import pytest

from padelrr.config_loader import (
    DEFAULT_DB_PATH,
    ConfigError,
    default_config,
    load_and_validate_config,
    validate_config,
)


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_defaults():
    cfg = default_config()

    assert cfg["database_path"] == DEFAULT_DB_PATH
    assert cfg["points_per_win"] == 3
    assert cfg["points_per_draw"] == 1
    assert cfg["log_level"] == "INFO"


def test_load_valid_file(tmp_path):
    path = write_config(
        tmp_path,
        "database_path: data/club.sqlite\npoints_per_win: 2\npoints_per_draw: 1\nlog_level: debug\n",
    )
    cfg = load_and_validate_config(path)

    assert cfg["database_path"] == "data/club.sqlite"
    assert cfg["points_per_win"] == 2
    assert cfg["log_level"] == "DEBUG"


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_and_validate_config(str(tmp_path / "nope.yaml"))


def test_empty_file(tmp_path):
    with pytest.raises(ConfigError, match="empty"):
        load_and_validate_config(write_config(tmp_path, ""))


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_and_validate_config(write_config(tmp_path, "points_per_win: [3\n"))


def test_not_a_mapping(tmp_path):
    with pytest.raises(ConfigError, match="mapping"):
        load_and_validate_config(write_config(tmp_path, "- 1\n- 2\n"))


@pytest.mark.parametrize(
    "config",
    [
        {"points_per_win": -1},
        {"points_per_win": "3"},
        {"points_per_draw": True},
        {"points_per_win": 1, "points_per_draw": 2},
        {"log_level": "LOUD"},
        {"database_path": ""},
    ],
)
def test_invalid_values(config):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_unknown_keys_are_ignored_with_warning(caplog):
    cfg = validate_config({"points_per_win": 3, "colour": "blue"})

    assert "colour" not in cfg
    assert "colour" in caplog.text
