"""
Key builders for the suppression store.

Every Redis key the store touches is built here so the layout stays easy to
audit when indices are added.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SuppressionKeyBuilder:
    """Builds Redis keys for alert history, rules, windows and the audit log."""

    prefix: str = "alert_suppression"

    def alerts(self, team_id: Optional[str] = None) -> str:
        """Sorted set of alert payloads scored by creation epoch."""
        if team_id is None:
            return f"{self.prefix}:alerts"
        return f"{self.prefix}:alerts:by_team:{team_id}"

    def suppression_rules(self) -> str:
        """Hash of suppression rule payloads keyed by rule id."""
        return f"{self.prefix}:rules"

    def maintenance_windows(self) -> str:
        """Hash of maintenance window payloads keyed by window id."""
        return f"{self.prefix}:maintenance_windows"

    def audit_log(self) -> str:
        """Sorted set of audit records scored by decision epoch."""
        return f"{self.prefix}:audit"


__all__ = ["SuppressionKeyBuilder"]
