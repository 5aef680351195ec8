from __future__ import annotations

"""
Serialisation helpers for suppression store payloads.

The codec layer keeps payload validation away from the Redis orchestration so
malformed entries fail fast and the store can skip them.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

import orjson
from dateutil.parser import isoparse

from ..alert_suppression_manager_helpers.conditions import parse_conditions, serialize_conditions
from ..alert_suppression_manager_helpers.models import (
    Alert,
    AuditRecord,
    MaintenanceWindow,
    RecurrenceSpec,
    RecurrenceType,
    RuleType,
    Severity,
    SuppressionReason,
    SuppressionRule,
)

JsonLike = Union[str, bytes, Dict[str, Any]]

# Decoding a stored payload can fail with any of these
PAYLOAD_ERRORS = (ValueError, TypeError, KeyError)


def _ensure_mapping(payload: JsonLike) -> Dict[str, Any]:
    match payload:
        case dict():
            return payload
        case bytes():
            text_payload = payload.decode("utf-8")
        case str():
            text_payload = payload
        case _:
            raise TypeError(f"Unsupported payload type: {type(payload)!r}")

    try:
        data = orjson.loads(text_payload)
    except orjson.JSONDecodeError as exc:
        raise ValueError("Suppression payload is not valid JSON") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Suppression payload must be an object, got {type(data).__name__}")
    return data


def _dumps(payload: Dict[str, Any]) -> str:
    return orjson.dumps(payload).decode("utf-8")


def _parse_datetime(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO-8601 string, got {type(value).__name__}")
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return _parse_datetime(value)


def _optional_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    return isoparse(value).date()


def _optional_isoformat(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _mapping_field(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object")
    return value


def _decode_alert(payload: JsonLike) -> Alert:
    data = _ensure_mapping(payload)
    metric_value = data.get("metric_value")
    return Alert(
        id=str(data["id"]),
        alert_rule_id=str(data["alert_rule_id"]),
        severity=Severity(data["severity"]),
        metric_name=str(data["metric_name"]),
        created_at=_parse_datetime(data["created_at"]),
        metric_value=float(metric_value) if metric_value is not None else None,
        context=_mapping_field(data, "context"),
        tags=_mapping_field(data, "tags"),
        team_id=data.get("team_id"),
        title=data.get("title") or "",
    )


def _alert_to_payload(alert: Alert) -> Dict[str, Any]:
    return {
        "id": alert.id,
        "alert_rule_id": alert.alert_rule_id,
        "severity": alert.severity.value,
        "metric_name": alert.metric_name,
        "created_at": alert.created_at.isoformat(),
        "metric_value": alert.metric_value,
        "context": alert.context,
        "tags": alert.tags,
        "team_id": alert.team_id,
        "title": alert.title,
    }


def _decode_suppression_rule(payload: JsonLike) -> SuppressionRule:
    data = _ensure_mapping(payload)
    max_alerts_per_window = int(data.get("max_alerts_per_window", 5))
    return SuppressionRule(
        id=str(data["id"]),
        name=str(data["name"]),
        rule_type=RuleType(data["rule_type"]),
        conditions=parse_conditions(data.get("conditions") or {}, max_alerts_per_window=max_alerts_per_window),
        suppression_duration_minutes=int(data.get("suppression_duration_minutes", 60)),
        max_alerts_per_window=max_alerts_per_window,
        window_size_minutes=int(data.get("window_size_minutes", 60)),
        enabled=bool(data.get("enabled", True)),
        priority=int(data.get("priority", 1)),
        team_id=data.get("team_id"),
        description=data.get("description"),
    )


def _suppression_rule_to_payload(rule: SuppressionRule) -> Dict[str, Any]:
    return {
        "id": rule.id,
        "name": rule.name,
        "rule_type": rule.rule_type.value,
        "conditions": serialize_conditions(rule.conditions),
        "suppression_duration_minutes": rule.suppression_duration_minutes,
        "max_alerts_per_window": rule.max_alerts_per_window,
        "window_size_minutes": rule.window_size_minutes,
        "enabled": rule.enabled,
        "priority": rule.priority,
        "team_id": rule.team_id,
        "description": rule.description,
    }


def _decode_recurrence(data: Dict[str, Any]) -> Optional[RecurrenceSpec]:
    recurrence_type = data.get("recurrence_type")
    if not data.get("recurring") or recurrence_type is None:
        return None
    return RecurrenceSpec(
        recurrence_type=RecurrenceType(recurrence_type),
        interval=int(data.get("recurrence_interval") or 1),
        max_occurrences=int(data.get("max_occurrences") or 52),
        end_date=_optional_date(data.get("recurrence_end_date")),
    )


def _decode_maintenance_window(payload: JsonLike) -> MaintenanceWindow:
    data = _ensure_mapping(payload)
    start_time = _parse_datetime(data["start_time"])
    end_time = _parse_datetime(data["end_time"])
    if end_time <= start_time:
        raise ValueError(f"Maintenance window {data['id']} ends before it starts")
    return MaintenanceWindow(
        id=str(data["id"]),
        name=str(data["name"]),
        start_time=start_time,
        end_time=end_time,
        affected_systems=frozenset(data.get("affected_systems") or ()),
        affected_severities=frozenset(Severity(value) for value in data.get("affected_severities") or ()),
        suppress_all=bool(data.get("suppress_all", False)),
        enabled=bool(data.get("enabled", True)),
        team_id=data.get("team_id"),
        recurring=bool(data.get("recurring", False)),
        recurrence=_decode_recurrence(data),
    )


def _maintenance_window_to_payload(window: MaintenanceWindow) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": window.id,
        "name": window.name,
        "start_time": window.start_time.isoformat(),
        "end_time": window.end_time.isoformat(),
        "affected_systems": sorted(window.affected_systems),
        "affected_severities": sorted(severity.value for severity in window.affected_severities),
        "suppress_all": window.suppress_all,
        "enabled": window.enabled,
        "team_id": window.team_id,
        "recurring": window.recurring,
    }
    if window.recurrence is not None:
        payload["recurrence_type"] = window.recurrence.recurrence_type.value
        payload["recurrence_interval"] = window.recurrence.interval
        payload["max_occurrences"] = window.recurrence.max_occurrences
        payload["recurrence_end_date"] = _optional_isoformat(window.recurrence.end_date)
    return payload


def _decode_audit_record(payload: JsonLike) -> AuditRecord:
    data = _ensure_mapping(payload)
    return AuditRecord(
        alert_id=str(data["alert_id"]),
        suppressed=bool(data["suppressed"]),
        reason=SuppressionReason(data["reason"]),
        created_at=_parse_datetime(data["created_at"]),
        suppression_rule_id=data.get("suppression_rule_id"),
        maintenance_window_id=data.get("maintenance_window_id"),
        suppress_until=_optional_datetime(data.get("suppress_until")),
        metadata=_mapping_field(data, "metadata"),
    )


def _audit_record_to_payload(record: AuditRecord) -> Dict[str, Any]:
    return {
        "alert_id": record.alert_id,
        "suppressed": record.suppressed,
        "reason": record.reason.value,
        "created_at": record.created_at.isoformat(),
        "suppression_rule_id": record.suppression_rule_id,
        "maintenance_window_id": record.maintenance_window_id,
        "suppress_until": _optional_isoformat(record.suppress_until),
        "metadata": record.metadata,
    }


def _default(value: Any) -> Any:
    match value:
        case set() | frozenset():
            return list(value)
        case _:
            raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


@dataclass(frozen=True)
class SuppressionCodec:
    """Encode and decode suppression store payloads."""

    def decode_alert(self, payload: JsonLike) -> Alert:
        return _decode_alert(payload)

    def encode_alert(self, alert: Alert) -> str:
        return _dumps(_alert_to_payload(alert))

    def decode_suppression_rule(self, payload: JsonLike) -> SuppressionRule:
        return _decode_suppression_rule(payload)

    def encode_suppression_rule(self, rule: SuppressionRule) -> str:
        return _dumps(_suppression_rule_to_payload(rule))

    def decode_maintenance_window(self, payload: JsonLike) -> MaintenanceWindow:
        return _decode_maintenance_window(payload)

    def encode_maintenance_window(self, window: MaintenanceWindow) -> str:
        return _dumps(_maintenance_window_to_payload(window))

    def decode_audit_record(self, payload: JsonLike) -> AuditRecord:
        return _decode_audit_record(payload)

    def encode_audit_record(self, record: AuditRecord) -> str:
        # Metadata may carry datetimes or sets from the checks
        return orjson.dumps(_audit_record_to_payload(record), default=_default).decode("utf-8")


__all__ = ["PAYLOAD_ERRORS", "SuppressionCodec"]
