"""Tests for alert suppression config loader."""

import json

import pytest

from alert_suppression.alert_suppression_manager_helpers.config_loader import (
    build_settings_from_config,
    load_suppression_config,
    load_suppression_settings,
)
from alert_suppression.alert_suppression_manager_helpers.settings import SuppressionSettings
from alert_suppression.exceptions import ConfigurationError


def _write_config(tmp_path, payload) -> str:
    path = tmp_path / "suppression_config.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return str(path)


def test_load_suppression_config_success(tmp_path):
    """Test successful config loading."""
    path = _write_config(tmp_path, {"alert_suppression": {"grouping_threshold": 4, "numeric_tolerance_ratio": 0.1}})

    config = load_suppression_config(path)

    assert config == {"grouping_threshold": 4, "numeric_tolerance_ratio": 0.1}


def test_load_suppression_config_file_not_found(tmp_path):
    """Test config loading when file not found."""
    with pytest.raises(FileNotFoundError, match="Alert suppression config not found"):
        load_suppression_config(str(tmp_path / "missing.json"))


def test_load_suppression_config_invalid_json(tmp_path):
    """Test config loading with invalid JSON."""
    path = _write_config(tmp_path, "{not json")

    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_suppression_config(path)


def test_load_suppression_config_missing_section(tmp_path):
    path = _write_config(tmp_path, {"other": {}})

    with pytest.raises(ConfigurationError, match="missing 'alert_suppression' section"):
        load_suppression_config(path)


def test_section_must_be_mapping(tmp_path):
    path = _write_config(tmp_path, {"alert_suppression": [1, 2]})

    with pytest.raises(TypeError):
        load_suppression_config(path)


@pytest.mark.parametrize(
    "section, error",
    [
        ({"unknown_field": 1}, ValueError),
        ({"grouping_threshold": "3"}, TypeError),
        ({"grouping_threshold": True}, TypeError),
        ({"duplicate_window_minutes": 1.5}, TypeError),
        ({"cache_ttl_seconds": -1}, ValueError),
        ({"context_match_ratio": 1.5}, ValueError),
        ({"team_hourly_limit": -5}, ValueError),
        ({"metric_hourly_limit": 2.5}, TypeError),
    ],
)
def test_invalid_fields(tmp_path, section, error):
    path = _write_config(tmp_path, {"alert_suppression": section})

    with pytest.raises(error):
        load_suppression_config(path)


def test_build_settings_uses_defaults_for_missing_fields():
    settings = build_settings_from_config({"grouping_threshold": 6})

    assert settings.grouping_threshold == 6
    assert settings.duplicate_window_minutes == 30
    assert settings.numeric_tolerance_ratio == 0.05


def test_environment_overrides_config(monkeypatch):
    monkeypatch.setenv("ALERT_SUPPRESSION_GROUPING_THRESHOLD", "9")
    monkeypatch.setenv("ALERT_SUPPRESSION_CONTEXT_MATCH_RATIO", "0.5")

    settings = build_settings_from_config({"grouping_threshold": 6})

    assert settings.grouping_threshold == 9
    assert settings.context_match_ratio == 0.5


def test_scoped_limits_are_configurable(monkeypatch):
    monkeypatch.setenv("ALERT_SUPPRESSION_SEVERITY_HOURLY_LIMIT", "40")

    settings = build_settings_from_config({"team_hourly_limit": 500, "metric_hourly_limit": 100})

    assert settings.team_hourly_limit == 500
    assert settings.metric_hourly_limit == 100
    assert settings.severity_hourly_limit == 40


def test_scoped_limits_are_disabled_by_default():
    settings = SuppressionSettings()

    assert (settings.team_hourly_limit, settings.metric_hourly_limit, settings.severity_hourly_limit) == (0, 0, 0)


def test_invalid_environment_override(monkeypatch):
    monkeypatch.setenv("ALERT_SUPPRESSION_CACHE_TTL_SECONDS", "five minutes")

    with pytest.raises(ConfigurationError):
        build_settings_from_config({})


def test_repository_config_matches_defaults():
    """The shipped config file carries the built-in defaults."""
    from pathlib import Path

    config_path = Path(__file__).resolve().parents[3] / "config" / "suppression_config.json"

    assert load_suppression_settings(str(config_path)) == SuppressionSettings()
