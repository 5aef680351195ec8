"""Tests for the ordered suppression pipeline."""

from datetime import timedelta
from unittest.mock import MagicMock

from alert_suppression.alert_suppression_manager_helpers.grouping_engine import AlertGroupingEngine
from alert_suppression.alert_suppression_manager_helpers.models import (
    AlertRule,
    MaintenanceWindow,
    SuppressionContext,
    SuppressionReason,
)
from alert_suppression.alert_suppression_manager_helpers.settings import SuppressionSettings
from alert_suppression.alert_suppression_manager_helpers.suppression_pipeline import SuppressionPipeline


def _pipeline():
    settings = SuppressionSettings()
    return SuppressionPipeline(settings, AlertGroupingEngine(settings))


def test_check_order():
    assert [name for name, _ in _pipeline().checks] == [
        "maintenance_window",
        "duplicate",
        "rate_limit",
        "grouping",
        "severity_threshold",
        "custom_rules",
    ]


def test_maintenance_wins_over_duplicate(make_alert, fixed_now):
    window = MaintenanceWindow(
        id="mw",
        name="Upgrade",
        start_time=fixed_now - timedelta(minutes=1),
        end_time=fixed_now + timedelta(minutes=1),
        suppress_all=True,
    )
    previous = make_alert(created_at=fixed_now - timedelta(minutes=1), metric_value=10.0)
    context = SuppressionContext(
        alert=make_alert(metric_value=10.0),
        rule=AlertRule(id="rule-1", max_alerts_per_hour=10),
        now=fixed_now,
        recent_alerts=(previous,),
        maintenance_windows=(window,),
    )

    result = _pipeline().run(context)

    assert result.reason is SuppressionReason.MAINTENANCE_WINDOW


def test_no_check_applies(make_alert, fixed_now):
    context = SuppressionContext(alert=make_alert(), rule=AlertRule(id="rule-1", max_alerts_per_hour=10), now=fixed_now)

    result = _pipeline().run(context)

    assert result.should_suppress is False
    assert result.reason is SuppressionReason.NO_SUPPRESSION_APPLIED


def test_failing_check_is_skipped(make_alert, fixed_now):
    pipeline = _pipeline()
    pipeline.grouping_engine = MagicMock()
    pipeline.grouping_engine.process.side_effect = ValueError("corrupt group")
    context = SuppressionContext(alert=make_alert(), rule=AlertRule(id="rule-1", max_alerts_per_hour=10), now=fixed_now)

    result = pipeline.run(context)

    assert result.reason is SuppressionReason.NO_SUPPRESSION_APPLIED
