"""Read/write contract the engine needs from the durable store."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from .models import Alert, AuditRecord, MaintenanceWindow, SuppressionRule


class SuppressionStore(Protocol):
    async def fetch_alerts_since(self, since: datetime, team_id: Optional[str] = None) -> List[Alert]:
        """Alerts created at or after ``since``, newest first."""
        ...

    async def fetch_enabled_suppression_rules(self) -> List[SuppressionRule]:
        """Enabled custom suppression rules ordered by descending priority."""
        ...

    async def fetch_active_maintenance_windows(self, at: datetime) -> List[MaintenanceWindow]:
        """Enabled maintenance windows (or recurrences) whose range contains ``at``."""
        ...

    async def fetch_upcoming_maintenance_windows(self, at: datetime) -> List[MaintenanceWindow]:
        """Enabled maintenance windows that have not ended by ``at``."""
        ...

    async def append_audit_record(self, record: AuditRecord) -> None:
        ...


__all__ = ["SuppressionStore"]
