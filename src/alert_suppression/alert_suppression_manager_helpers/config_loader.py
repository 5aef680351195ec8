"""Configuration loading and validation for alert suppression.

Delegates to load_config() for JSON loading, provides domain-specific validation
and environment overrides.
"""

from pathlib import Path
from typing import Any, Dict

from ..config import env_float, env_int
from ..config_loader import load_config
from ..exceptions import ConfigurationError
from .settings import SETTING_FIELD_NAMES, SuppressionSettings

DEFAULT_CONFIG_PATH = "config/suppression_config.json"
ENV_PREFIX = "ALERT_SUPPRESSION_"

# Error messages
ERR_CONFIG_NOT_FOUND = "Alert suppression config not found at {config_path}"
ERR_MISSING_ALERT_SUPPRESSION_SECTION = "suppression_config.json missing 'alert_suppression' section"

_FLOAT_FIELDS = {"numeric_tolerance_ratio", "context_match_ratio", "store_timeout_seconds"}
_RATIO_FIELDS = {"numeric_tolerance_ratio", "context_match_ratio"}


def load_suppression_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load the alert suppression section and fail if it is malformed.

    Args:
        config_path: Path to configuration file

    Returns:
        Alert suppression configuration dictionary

    Raises:
        FileNotFoundError: If config file not found
        ValueError: If unknown or out-of-range fields are present
        TypeError: If a field has the wrong type
        ConfigurationError: If JSON is invalid or the section is missing
    """
    path = Path(config_path)

    try:
        config = load_config(path.name, config_dir=path.parent)
    except FileNotFoundError as exc:
        raise FileNotFoundError(ERR_CONFIG_NOT_FOUND.format(config_path=config_path)) from exc
    except ConfigurationError as exc:
        raise ConfigurationError(f"Invalid JSON in {config_path}") from exc

    if "alert_suppression" not in config:
        raise ConfigurationError(ERR_MISSING_ALERT_SUPPRESSION_SECTION)

    alert_config = config["alert_suppression"]
    if not isinstance(alert_config, dict):
        raise TypeError("alert_suppression must be a mapping")
    _validate_fields(alert_config)
    return alert_config


def _validate_fields(alert_config: Dict[str, Any]) -> None:
    unknown = set(alert_config).difference(SETTING_FIELD_NAMES)
    if unknown:
        raise ValueError(f"alert_suppression has unknown keys: {sorted(unknown)}")

    for name, value in alert_config.items():
        expected = (int, float) if name in _FLOAT_FIELDS else (int,)
        if isinstance(value, bool) or not isinstance(value, expected):
            raise TypeError(f"alert_suppression.{name} must be numeric, got {type(value).__name__}")
        if value < 0:
            raise ValueError(f"alert_suppression.{name} must be non-negative (got {value})")
        if name in _RATIO_FIELDS and value > 1:
            raise ValueError(f"alert_suppression.{name} must be between 0 and 1 (got {value})")


def build_settings_from_config(config: Dict[str, Any]) -> SuppressionSettings:
    """
    Build SuppressionSettings from a loaded section, applying environment overrides.

    Every field can be overridden with ``ALERT_SUPPRESSION_<FIELD>``; fields that
    are neither configured nor overridden keep their defaults.
    """
    values: Dict[str, Any] = {}
    for name in SETTING_FIELD_NAMES:
        env_name = f"{ENV_PREFIX}{name.upper()}"
        configured = config.get(name)
        if name in _FLOAT_FIELDS:
            value = env_float(env_name, or_value=configured)
        else:
            value = env_int(env_name, or_value=configured)
        if value is not None:
            values[name] = value
    return SuppressionSettings(**values)


def load_suppression_settings(config_path: str = DEFAULT_CONFIG_PATH) -> SuppressionSettings:
    """Load, validate and build settings in one call."""
    return build_settings_from_config(load_suppression_config(config_path))


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "build_settings_from_config",
    "load_suppression_config",
    "load_suppression_settings",
]
