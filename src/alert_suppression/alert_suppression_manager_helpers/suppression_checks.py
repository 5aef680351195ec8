"""Individual suppression checks.

Each check inspects a SuppressionContext and returns a suppressing
SuppressionResult, or None when it does not apply.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from ..exceptions import EvaluationError
from .conditions import (
    Condition,
    InvalidCondition,
    MetricNameCondition,
    RequiredTagsCondition,
    SeverityCondition,
    WindowCountCondition,
)
from .models import (
    HIGH_SEVERITIES,
    LOW_SEVERITIES,
    Alert,
    SuppressionContext,
    SuppressionReason,
    SuppressionResult,
    SuppressionRule,
)
from .settings import SuppressionSettings

logger = logging.getLogger(__name__)

CUSTOM_RULE_ERRORS = (EvaluationError, TypeError, ValueError, KeyError, AttributeError)


def check_maintenance_windows(context: SuppressionContext) -> Optional[SuppressionResult]:
    for window in context.maintenance_windows:
        if not window.enabled or not window.contains(context.now):
            continue
        if not window.covers(context.alert):
            continue
        return SuppressionResult(
            should_suppress=True,
            reason=SuppressionReason.MAINTENANCE_WINDOW,
            suppress_until=window.end_time,
            maintenance_window_id=window.id,
            metadata={
                "maintenance_window": window.name,
                "window_id": window.id,
                "end_time": window.end_time.isoformat(),
            },
        )
    return None


def _values_within_tolerance(candidate: Alert, other: Alert, tolerance_ratio: float) -> bool:
    if candidate.metric_value is None or other.metric_value is None:
        return False
    # Relative to the candidate, so 100 vs a prior 105.1 differs while 105.1 vs 100 matches.
    tolerance = abs(candidate.metric_value * tolerance_ratio)
    return abs(candidate.metric_value - other.metric_value) <= tolerance


def _contexts_match(candidate: Alert, other: Alert, match_ratio: float) -> bool:
    common_keys = set(candidate.context).intersection(other.context)
    if not common_keys:
        return False
    matching = sum(1 for key in common_keys if candidate.context[key] == other.context[key])
    return matching / len(common_keys) >= match_ratio


def find_duplicates(context: SuppressionContext, settings: SuppressionSettings) -> List[Alert]:
    cutoff = context.now - settings.duplicate_window
    candidate = context.alert
    return [
        other
        for other in context.recent_alerts
        if other.alert_rule_id == candidate.alert_rule_id
        and other.created_at >= cutoff
        and (
            _values_within_tolerance(candidate, other, settings.numeric_tolerance_ratio)
            or _contexts_match(candidate, other, settings.context_match_ratio)
        )
    ]


def check_duplicates(context: SuppressionContext, settings: SuppressionSettings) -> Optional[SuppressionResult]:
    duplicates = find_duplicates(context, settings)
    if not duplicates:
        return None
    return SuppressionResult(
        should_suppress=True,
        reason=SuppressionReason.DUPLICATE_ALERT,
        suppress_until=context.now + settings.duplicate_window,
        related_alerts=tuple(alert.id for alert in duplicates),
        metadata={
            "duplicate_count": len(duplicates),
            "window_minutes": settings.duplicate_window_minutes,
            "most_recent_duplicate": duplicates[0].id,
        },
    )


def _rate_limited(
    counted: List[Alert], scope: str, scope_value: str, limit: int, settings: SuppressionSettings
) -> SuppressionResult:
    most_recent = max(alert.created_at for alert in counted)
    suppress_until = most_recent + settings.rate_limit_window
    return SuppressionResult(
        should_suppress=True,
        reason=SuppressionReason.RATE_LIMIT_EXCEEDED,
        suppress_until=suppress_until,
        metadata={
            "scope": scope,
            "scope_value": scope_value,
            "current_count": len(counted),
            "max_allowed": limit,
            "window_minutes": settings.rate_limit_window_minutes,
            "next_allowed_at": suppress_until.isoformat(),
        },
    )


_ScopedLimit = Tuple[str, Optional[str], int, Callable[[Alert], bool]]


def _scoped_limits(candidate: Alert, settings: SuppressionSettings) -> List[_ScopedLimit]:
    return [
        ("team", candidate.team_id, settings.team_hourly_limit, lambda alert: alert.team_id == candidate.team_id),
        ("metric", candidate.metric_name, settings.metric_hourly_limit, lambda alert: alert.metric_name == candidate.metric_name),
        ("severity", candidate.severity.value, settings.severity_hourly_limit, lambda alert: alert.severity is candidate.severity),
    ]


def check_rate_limit(context: SuppressionContext, settings: SuppressionSettings) -> Optional[SuppressionResult]:
    """
    Rule cap, then the team, metric and severity caps, then the per-rule cooldown.

    All caps count alerts in the trailing rate-limit window. A scoped cap of 0
    is disabled, as is the team cap for alerts without a team.
    """
    rule = context.rule
    window_start = context.now - settings.rate_limit_window
    in_window = [alert for alert in context.recent_alerts if alert.created_at >= window_start]
    alerts_for_rule = [alert for alert in in_window if alert.alert_rule_id == rule.id]

    if alerts_for_rule and len(alerts_for_rule) >= rule.max_alerts_per_hour:
        return _rate_limited(alerts_for_rule, "rule", rule.id, rule.max_alerts_per_hour, settings)

    for scope, scope_value, limit, same_scope in _scoped_limits(context.alert, settings):
        if limit <= 0 or scope_value is None:
            continue
        in_scope = [alert for alert in in_window if same_scope(alert)]
        if len(in_scope) >= limit:
            return _rate_limited(in_scope, scope, scope_value, limit, settings)

    if rule.cooldown_minutes <= 0:
        return None

    cooldown = timedelta(minutes=rule.cooldown_minutes)
    in_cooldown = [alert for alert in alerts_for_rule if alert.created_at >= context.now - cooldown]
    if not in_cooldown:
        return None

    last_alert_at = max(alert.created_at for alert in in_cooldown)
    suppress_until = last_alert_at + cooldown
    return SuppressionResult(
        should_suppress=True,
        reason=SuppressionReason.COOLDOWN_PERIOD,
        suppress_until=suppress_until,
        metadata={
            "cooldown_minutes": rule.cooldown_minutes,
            "last_alert_at": last_alert_at.isoformat(),
            "next_allowed_at": suppress_until.isoformat(),
        },
    )


def check_severity_threshold(context: SuppressionContext, settings: SuppressionSettings) -> Optional[SuppressionResult]:
    if context.alert.severity not in LOW_SEVERITIES:
        return None

    window_start = context.now - settings.severity_threshold_window
    high_severity_count = sum(
        1 for alert in context.recent_alerts if alert.severity in HIGH_SEVERITIES and alert.created_at >= window_start
    )
    if high_severity_count < settings.severity_threshold_count:
        return None

    return SuppressionResult(
        should_suppress=True,
        reason=SuppressionReason.HIGH_SEVERITY_THRESHOLD,
        suppress_until=context.now + settings.severity_threshold_window,
        metadata={
            "high_severity_count": high_severity_count,
            "threshold": settings.severity_threshold_count,
            "suppression_minutes": settings.severity_threshold_window_minutes,
        },
    )


def _alerts_in_window(alerts: Tuple[Alert, ...], now: datetime, window_minutes: float) -> int:
    window_start = now - timedelta(minutes=window_minutes)
    return sum(1 for alert in alerts if alert.created_at >= window_start)


def condition_holds(condition: Condition, context: SuppressionContext) -> bool:
    """
    Evaluate one condition variant against the candidate and its history.

    Raises:
        EvaluationError: If the condition is malformed
    """
    alert = context.alert
    match condition:
        case MetricNameCondition(metric_name=metric_name):
            return alert.metric_name == metric_name
        case SeverityCondition(severities=severities):
            return alert.severity.value in severities
        case WindowCountCondition(window_minutes=window_minutes, max_alerts=max_alerts):
            return _alerts_in_window(context.recent_alerts, context.now, window_minutes) >= max_alerts
        case RequiredTagsCondition(tags=tags):
            return tags.issubset(alert.tags)
        case InvalidCondition(key=key, detail=detail):
            raise EvaluationError(f"Malformed condition '{key}': {detail}", condition_key=key)
    raise EvaluationError(f"Unsupported condition type {type(condition).__name__}")


def rule_matches(rule: SuppressionRule, context: SuppressionContext) -> bool:
    if not rule.applies_to(context.alert):
        return False
    return all(condition_holds(condition, context) for condition in rule.conditions)


def check_custom_rules(context: SuppressionContext) -> Optional[SuppressionResult]:
    """
    Scan enabled rules by descending priority; the first match suppresses.

    A rule that fails to evaluate is logged and treated as not matching so
    lower-priority rules are still considered.
    """
    rules = sorted((rule for rule in context.suppression_rules if rule.enabled), key=lambda rule: rule.priority, reverse=True)
    for rule in rules:
        try:
            matched = rule_matches(rule, context)
        except CUSTOM_RULE_ERRORS as exc:
            logger.error("Error evaluating custom suppression rule %s: %s", rule.id, exc)
            continue
        if not matched:
            continue

        return SuppressionResult(
            should_suppress=True,
            reason=SuppressionReason.CUSTOM_RULE_MATCHED,
            suppress_until=context.now + timedelta(minutes=rule.suppression_duration_minutes),
            suppression_rule_id=rule.id,
            metadata={
                "rule_name": rule.name,
                "rule_type": rule.rule_type.value,
                "suppression_minutes": rule.suppression_duration_minutes,
            },
        )
    return None


__all__ = [
    "check_custom_rules",
    "check_duplicates",
    "check_maintenance_windows",
    "check_rate_limit",
    "check_severity_threshold",
    "condition_holds",
    "find_duplicates",
    "rule_matches",
]
