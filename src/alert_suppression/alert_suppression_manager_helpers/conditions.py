"""Typed condition variants for custom suppression rules.

Stored rules carry their conditions as a loose JSON object. Parsing turns each
recognised key into one variant; anything malformed becomes an
``InvalidCondition`` so the rule can still be loaded and is skipped when it is
evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Mapping, Tuple, Union

logger = logging.getLogger(__name__)

KNOWN_CONDITION_KEYS = ("metric_name", "severity", "time_window_minutes", "required_tags")
VALID_SEVERITY_VALUES = frozenset({"critical", "high", "medium", "low", "info"})


@dataclass(frozen=True)
class MetricNameCondition:
    metric_name: str


@dataclass(frozen=True)
class SeverityCondition:
    severities: FrozenSet[str]


@dataclass(frozen=True)
class WindowCountCondition:
    """Holds when at least ``max_alerts`` alerts were raised in the trailing window."""

    window_minutes: float
    max_alerts: int


@dataclass(frozen=True)
class RequiredTagsCondition:
    tags: FrozenSet[str]


@dataclass(frozen=True)
class InvalidCondition:
    key: str
    detail: str


Condition = Union[
    MetricNameCondition,
    SeverityCondition,
    WindowCountCondition,
    RequiredTagsCondition,
    InvalidCondition,
]


def parse_conditions(raw: Any, *, max_alerts_per_window: int) -> Tuple[Condition, ...]:
    """
    Convert a stored condition mapping into condition variants.

    Args:
        raw: Decoded ``conditions`` JSON object
        max_alerts_per_window: Owning rule's threshold for window-count conditions

    Returns:
        Tuple of condition variants in a stable key order
    """
    if raw is None:
        return ()
    if not isinstance(raw, Mapping):
        return (InvalidCondition("conditions", f"expected an object, got {type(raw).__name__}"),)

    parsed: List[Condition] = []
    for key in KNOWN_CONDITION_KEYS:
        value = raw.get(key)
        # Falsy values mean "condition not set".
        if value is None or (not isinstance(value, bool) and value in ("", [], 0)):
            continue
        parsed.append(_parse_single(key, value, max_alerts_per_window))

    for key in sorted(set(raw) - set(KNOWN_CONDITION_KEYS)):
        parsed.append(InvalidCondition(str(key), "unknown condition key"))

    return tuple(parsed)


def _parse_single(key: str, value: Any, max_alerts_per_window: int) -> Condition:
    if key == "metric_name":
        if not isinstance(value, str):
            return InvalidCondition(key, "metric_name must be a string")
        return MetricNameCondition(value)

    if key == "severity":
        values = [value] if isinstance(value, str) else value
        if not isinstance(values, list) or not all(isinstance(item, str) for item in values):
            return InvalidCondition(key, "severity must be a string or list of strings")
        unknown = sorted(set(values) - VALID_SEVERITY_VALUES)
        if unknown:
            return InvalidCondition(key, f"unknown severities: {', '.join(unknown)}")
        return SeverityCondition(frozenset(values))

    if key == "time_window_minutes":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            return InvalidCondition(key, "time_window_minutes must be a positive number")
        return WindowCountCondition(window_minutes=float(value), max_alerts=max_alerts_per_window)

    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return InvalidCondition(key, "required_tags must be a list of strings")
    return RequiredTagsCondition(frozenset(value))


def serialize_conditions(conditions: Tuple[Condition, ...]) -> dict[str, Any]:
    """Inverse of :func:`parse_conditions` for storage; invalid entries are dropped."""
    payload: dict[str, Any] = {}
    for condition in conditions:
        match condition:
            case MetricNameCondition(metric_name=metric_name):
                payload["metric_name"] = metric_name
            case SeverityCondition(severities=severities):
                payload["severity"] = sorted(severities)
            case WindowCountCondition(window_minutes=window_minutes):
                payload["time_window_minutes"] = window_minutes
            case RequiredTagsCondition(tags=tags):
                payload["required_tags"] = sorted(tags)
            case InvalidCondition(key=key, detail=detail):
                logger.debug("Dropping invalid condition %s on serialise: %s", key, detail)
    return payload


__all__ = [
    "Condition",
    "InvalidCondition",
    "MetricNameCondition",
    "RequiredTagsCondition",
    "SeverityCondition",
    "WindowCountCondition",
    "parse_conditions",
    "serialize_conditions",
]
