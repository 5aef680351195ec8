import json

import pytest

from alert_suppression import config_loader
from alert_suppression.config_loader import BaseConfigLoader, load_config
from alert_suppression.exceptions import ConfigurationError


def test_load_json_file(tmp_path):
    (tmp_path / "settings.json").write_text(json.dumps({"alert_suppression": {"cache_ttl_seconds": 60}}))

    loader = BaseConfigLoader(tmp_path)

    assert loader.load_json_file("settings.json") == {"alert_suppression": {"cache_ttl_seconds": 60}}


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        BaseConfigLoader(tmp_path).load_json_file("absent.json")


def test_invalid_json_raises_configuration_error(tmp_path):
    (tmp_path / "broken.json").write_text("{oops")

    with pytest.raises(ConfigurationError, match="broken.json"):
        BaseConfigLoader(tmp_path).load_json_file("broken.json")


def test_load_config_uses_explicit_directory(tmp_path):
    (tmp_path / "other.json").write_text("{}")

    assert load_config("other.json", config_dir=tmp_path) == {}


def test_load_config_defaults_to_working_directory_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "local.json").write_text('{"source": "cwd"}')
    monkeypatch.chdir(tmp_path)

    assert config_loader._resolve_config_dir() == config_dir
    assert load_config("local.json") == {"source": "cwd"}
