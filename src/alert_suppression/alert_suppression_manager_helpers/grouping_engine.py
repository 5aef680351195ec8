"""In-memory clustering of related alerts under a composite signature."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Dict, Optional

from .models import Alert, AlertGroup, SuppressionReason, SuppressionResult
from .settings import SuppressionSettings

logger = logging.getLogger(__name__)


def generate_group_key(alert: Alert) -> str:
    """Signature of metric name, severity, rule id and the sorted context keys."""
    context_keys = json.dumps(sorted(str(key) for key in alert.context))
    return "|".join([alert.metric_name, alert.severity.value, alert.alert_rule_id, context_keys])


class AlertGroupingEngine:
    """
    Tracks alert groups and decides when a repeat should be folded into its group.

    Every alert that reaches the grouping check is counted. Once a group that is
    still inside the grouping window already holds ``grouping_threshold``
    members, further alerts join it and are suppressed. A group whose window has
    lapsed is restarted with the candidate as its first member.

    Not safe for concurrent use on its own; callers serialise access.
    """

    def __init__(self, settings: SuppressionSettings):
        self.settings = settings
        self.groups: Dict[str, AlertGroup] = {}

    def __len__(self) -> int:
        return len(self.groups)

    def get_group(self, group_key: str) -> Optional[AlertGroup]:
        return self.groups.get(group_key)

    def process(self, alert: Alert, now: datetime) -> Optional[SuppressionResult]:
        """
        Record ``alert`` against its group.

        Returns:
            A suppressing result when the group was already at its threshold,
            otherwise None
        """
        group_key = generate_group_key(alert)
        group = self.groups.get(group_key)

        if group is None or now - group.first_alert.created_at > self.settings.grouping_window:
            self.groups[group_key] = AlertGroup(
                group_key=group_key,
                alert_ids=[alert.id],
                first_alert=alert,
                last_alert=alert,
                severities={alert.severity},
            )
            logger.debug("Started alert group %s with %s", group_key, alert.id)
            return None

        threshold_reached = group.count >= self.settings.grouping_threshold
        group.add(alert, now)
        if not threshold_reached:
            return None

        return SuppressionResult(
            should_suppress=True,
            reason=SuppressionReason.ALERT_GROUPING,
            group_key=group_key,
            related_alerts=tuple(group.alert_ids),
            metadata={
                "group_size": group.count,
                "time_span_minutes": group.time_span_minutes,
                "first_alert_at": group.first_alert.created_at.isoformat(),
                "grouping_severities": sorted(severity.value for severity in group.severities),
            },
        )

    def evict_stale(self, now: datetime) -> int:
        """Drop groups whose first member is older than the retention horizon."""
        cutoff = now - self.settings.group_retention
        stale_keys = [key for key, group in self.groups.items() if group.first_alert.created_at < cutoff]
        for key in stale_keys:
            del self.groups[key]
        return len(stale_keys)


__all__ = ["AlertGroupingEngine", "generate_group_key"]
