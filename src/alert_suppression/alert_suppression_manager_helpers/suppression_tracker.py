"""Tracking suppression decisions and maintaining decision history."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List

from .models import SuppressionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedDecision:
    """
    A decision as returned to the caller.

    Kept in memory for debugging and for the statistics surface, independent of
    whether the audit write succeeded.
    """

    alert_id: str
    alert_rule_id: str
    result: SuppressionResult
    decided_at: datetime
    from_cache: bool = False


class SuppressionTracker:
    """Tracks suppression decisions for debugging and monitoring."""

    def __init__(self, max_history_entries: int = 1000):
        """
        Initialize suppression tracker.

        Args:
            max_history_entries: Maximum number of history entries to retain
        """
        self.suppression_history: List[TrackedDecision] = []
        self.max_history_entries = max_history_entries

    def record_decision(self, decision: TrackedDecision) -> None:
        """
        Record a suppression decision for debugging and monitoring.

        Args:
            decision: Suppression decision to record
        """
        self.suppression_history.append(decision)

        # Trim history to prevent memory growth
        if len(self.suppression_history) > self.max_history_entries:
            self.suppression_history = self.suppression_history[-self.max_history_entries :]

    def get_recent_decisions(self, limit: int = 50) -> List[TrackedDecision]:
        """
        Get recent suppression decisions for debugging.

        Args:
            limit: Maximum number of decisions to return

        Returns:
            List of recent suppression decisions
        """
        if not self.suppression_history or limit <= 0:
            return []
        return self.suppression_history[-limit:]

    def has_history(self) -> bool:
        """Check if any decisions have been recorded."""
        return len(self.suppression_history) > 0

    def get_all_decisions(self) -> List[TrackedDecision]:
        """Get all recorded decisions."""
        return self.suppression_history.copy()


__all__ = ["SuppressionTracker", "TrackedDecision"]
