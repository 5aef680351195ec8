"""Shared data structures for alert suppression evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Set, Tuple

from .conditions import Condition


class Severity(Enum):
    """Alert severity levels, most urgent first."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


HIGH_SEVERITIES: FrozenSet[Severity] = frozenset({Severity.CRITICAL, Severity.HIGH})
LOW_SEVERITIES: FrozenSet[Severity] = frozenset({Severity.LOW, Severity.INFO})


class RuleType(Enum):
    """Categories an administrator can assign to a suppression rule."""

    DUPLICATE = "duplicate"
    RATE_LIMIT = "rate_limit"
    MAINTENANCE = "maintenance"
    GROUPING = "grouping"
    THRESHOLD = "threshold"
    CUSTOM = "custom"


class SuppressionReason(Enum):
    """Why an alert was (or was not) suppressed."""

    MAINTENANCE_WINDOW = "maintenance_window"
    DUPLICATE_ALERT = "duplicate_alert"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    COOLDOWN_PERIOD = "cooldown_period"
    ALERT_GROUPING = "alert_grouping"
    HIGH_SEVERITY_THRESHOLD = "high_severity_threshold"
    CUSTOM_RULE_MATCHED = "custom_rule_matched"
    NO_SUPPRESSION_APPLIED = "no_suppression_applied"
    SUPPRESSION_EVALUATION_ERROR = "suppression_evaluation_error"


class RecurrenceType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Alert:
    """A raised monitoring alert awaiting a delivery decision."""

    id: str
    alert_rule_id: str
    severity: Severity
    metric_name: str
    created_at: datetime
    metric_value: Optional[float] = None
    context: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, Any] = field(default_factory=dict)
    team_id: Optional[str] = None
    title: str = ""


@dataclass(frozen=True)
class AlertRule:
    """The alerting rule that produced an alert; carries its frequency caps."""

    id: str
    max_alerts_per_hour: int
    cooldown_minutes: int = 0


@dataclass(frozen=True)
class SuppressionRule:
    """
    Administrator-defined suppression policy.

    Rules are evaluated in descending ``priority`` order. The condition set is
    parsed into tagged condition variants when the rule is decoded.
    """

    id: str
    name: str
    rule_type: RuleType
    conditions: Tuple[Condition, ...] = ()
    suppression_duration_minutes: int = 60
    max_alerts_per_window: int = 5
    window_size_minutes: int = 60
    enabled: bool = True
    priority: int = 1
    team_id: Optional[str] = None
    description: Optional[str] = None

    def applies_to(self, alert: Alert) -> bool:
        return self.team_id is None or self.team_id == alert.team_id


@dataclass(frozen=True)
class RecurrenceSpec:
    """How a recurring maintenance window repeats."""

    recurrence_type: RecurrenceType
    interval: int = 1
    max_occurrences: int = 52
    end_date: Optional[date] = None


@dataclass(frozen=True)
class MaintenanceWindow:
    """Scheduled time range during which matching alerts are withheld."""

    id: str
    name: str
    start_time: datetime
    end_time: datetime
    affected_systems: FrozenSet[str] = frozenset()
    affected_severities: FrozenSet[Severity] = frozenset()
    suppress_all: bool = False
    enabled: bool = True
    team_id: Optional[str] = None
    recurring: bool = False
    recurrence: Optional[RecurrenceSpec] = None

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def contains(self, instant: datetime) -> bool:
        return self.start_time <= instant <= self.end_time

    def covers(self, alert: Alert) -> bool:
        return self.suppress_all or alert.metric_name in self.affected_systems or alert.severity in self.affected_severities


@dataclass
class AlertGroup:
    """Related alerts clustered under one composite signature."""

    group_key: str
    alert_ids: List[str]
    first_alert: Alert
    last_alert: Alert
    severities: Set[Severity] = field(default_factory=set)
    time_span_minutes: float = 0.0

    @property
    def count(self) -> int:
        return len(self.alert_ids)

    def add(self, alert: Alert, now: datetime) -> None:
        self.alert_ids.append(alert.id)
        self.last_alert = alert
        self.severities.add(alert.severity)
        self.time_span_minutes = (now - self.first_alert.created_at).total_seconds() / 60


@dataclass(frozen=True)
class SuppressionResult:
    """
    Outcome of a suppression evaluation.

    Carries the decision, its reason and the supporting data that the audit log
    and the delivery pipeline consume.
    """

    should_suppress: bool
    reason: SuppressionReason
    suppress_until: Optional[datetime] = None
    group_key: Optional[str] = None
    related_alerts: Tuple[str, ...] = ()
    suppression_rule_id: Optional[str] = None
    maintenance_window_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: SuppressionReason = SuppressionReason.NO_SUPPRESSION_APPLIED, **metadata: Any) -> "SuppressionResult":
        return cls(should_suppress=False, reason=reason, metadata=dict(metadata))


@dataclass(frozen=True)
class AuditRecord:
    """One durable entry in the suppression audit log."""

    alert_id: str
    suppressed: bool
    reason: SuppressionReason
    created_at: datetime
    suppression_rule_id: Optional[str] = None
    maintenance_window_id: Optional[str] = None
    suppress_until: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_result(cls, alert: Alert, result: SuppressionResult, created_at: datetime) -> "AuditRecord":
        return cls(
            alert_id=alert.id,
            suppressed=result.should_suppress,
            reason=result.reason,
            created_at=created_at,
            suppression_rule_id=result.suppression_rule_id,
            maintenance_window_id=result.maintenance_window_id,
            suppress_until=result.suppress_until,
            metadata=dict(result.metadata),
        )


@dataclass(frozen=True)
class SuppressionContext:
    """Working set assembled for one evaluation."""

    alert: Alert
    rule: AlertRule
    now: datetime
    recent_alerts: Tuple[Alert, ...] = ()
    suppression_rules: Tuple[SuppressionRule, ...] = ()
    maintenance_windows: Tuple[MaintenanceWindow, ...] = ()


__all__ = [
    "Alert",
    "AlertGroup",
    "AlertRule",
    "AuditRecord",
    "HIGH_SEVERITIES",
    "LOW_SEVERITIES",
    "MaintenanceWindow",
    "RecurrenceSpec",
    "RecurrenceType",
    "RuleType",
    "Severity",
    "SuppressionContext",
    "SuppressionReason",
    "SuppressionResult",
    "SuppressionRule",
]
