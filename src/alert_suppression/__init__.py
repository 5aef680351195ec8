"""Alert suppression decision engine."""

from .alert_suppression_manager import AlertSuppressionManager
from .alert_suppression_manager_helpers.models import (
    Alert,
    AlertRule,
    AuditRecord,
    MaintenanceWindow,
    RecurrenceSpec,
    RecurrenceType,
    RuleType,
    Severity,
    SuppressionReason,
    SuppressionResult,
    SuppressionRule,
)
from .alert_suppression_manager_helpers.settings import SuppressionSettings

__all__ = [
    "Alert",
    "AlertRule",
    "AlertSuppressionManager",
    "AuditRecord",
    "MaintenanceWindow",
    "RecurrenceSpec",
    "RecurrenceType",
    "RuleType",
    "Severity",
    "SuppressionReason",
    "SuppressionResult",
    "SuppressionRule",
    "SuppressionSettings",
]
