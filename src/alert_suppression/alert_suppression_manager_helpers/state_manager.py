"""Statistics surface for the alert suppression engine."""

from __future__ import annotations

from typing import Any, Dict

from .suppression_tracker import SuppressionTracker, TrackedDecision


class StateManager:
    """Builds read-only operational counters from engine state and decision history."""

    def __init__(self, tracker: SuppressionTracker):
        """
        Initialize state manager.

        Args:
            tracker: Suppression tracker instance
        """
        self.tracker = tracker

    def get_suppression_statistics(
        self,
        active_groups: int,
        cache_size: int,
        suppression_rules: int,
        maintenance_windows: int,
    ) -> Dict[str, Any]:
        """
        Get statistics about alert suppression activity.

        Args:
            active_groups: Number of alert groups currently tracked
            cache_size: Number of decision cache entries
            suppression_rules: Number of loaded custom suppression rules
            maintenance_windows: Number of loaded maintenance windows

        Returns:
            Dictionary with suppression statistics
        """
        decisions = self.tracker.get_all_decisions() if self.tracker.has_history() else []
        total_decisions = len(decisions)
        suppressed_count = sum(1 for d in decisions if d.result.should_suppress)

        suppression_rate = 0.0
        if total_decisions > 0:
            suppression_rate = suppressed_count / total_decisions

        return {
            "active_groups": active_groups,
            "cache_size": cache_size,
            "suppression_rules": suppression_rules,
            "maintenance_windows": maintenance_windows,
            "total_decisions": total_decisions,
            "suppressed_count": suppressed_count,
            "suppression_rate": suppression_rate,
            "by_reason": self._compute_by_reason_stats(decisions),
        }

    def _compute_by_reason_stats(self, decisions: list[TrackedDecision]) -> Dict[str, int]:
        """Count decisions grouped by reason."""
        by_reason: Dict[str, int] = {}
        for decision in decisions:
            reason = decision.result.reason.value
            by_reason[reason] = by_reason.get(reason, 0) + 1
        return by_reason


__all__ = ["StateManager"]
