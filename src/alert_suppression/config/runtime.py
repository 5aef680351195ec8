"""Typed readers for environment overrides (``REDIS_*``, ``ALERT_SUPPRESSION_*``, ``LOG_*``)."""

from __future__ import annotations

import os
from typing import Callable, TypeVar

from ..exceptions import ConfigurationError

_ValueT = TypeVar("_ValueT")

_TRUE_VALUES = frozenset({"1", "true", "t", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "f", "no", "n", "off"})


def _missing(name: str) -> ConfigurationError:
    return ConfigurationError(f"Required environment variable {name!r} is not set")


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Return ``name`` from the environment, or ``or_value`` when unset or blank."""
    raw = os.getenv(name)
    if raw is not None and strip:
        raw = raw.strip()
    if raw is None or (raw == "" and not allow_blank):
        if required:
            raise _missing(name)
        return or_value
    return raw


def _env_typed(
    name: str,
    or_value: _ValueT | None,
    required: bool,
    convert: Callable[[str], _ValueT],
    kind: str,
) -> _ValueT | None:
    raw = env_str(name)
    if raw is None:
        if required and or_value is None:
            raise _missing(name)
        return or_value
    try:
        return convert(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be {kind} (got {raw!r})") from exc


def _to_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(raw)


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    return _env_typed(name, or_value, required, int, "an integer")


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    return _env_typed(name, or_value, required, float, "a float")


def env_bool(name: str, or_value: bool | None = None, *, required: bool = False) -> bool | None:
    """Accepts 1/0, true/false, yes/no, on/off (any case)."""
    return _env_typed(name, or_value, required, _to_bool, "a boolean")
