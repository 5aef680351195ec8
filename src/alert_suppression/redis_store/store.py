"""
Redis-backed store for suppression rules, maintenance windows, alert history
and the suppression audit log.

Reads skip payloads that fail to decode so one bad entry cannot block an
evaluation; Redis failures are raised as ``StoreError`` for the retry layer.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, List, Optional, TypeVar

from redis.exceptions import RedisError

from ..alert_suppression_manager_helpers.maintenance_schedule import active_windows, is_upcoming
from ..alert_suppression_manager_helpers.models import Alert, AuditRecord, MaintenanceWindow, SuppressionRule
from ..exceptions import StoreError
from .codec import PAYLOAD_ERRORS, SuppressionCodec
from .keys import SuppressionKeyBuilder
from .typing import RedisClient, ensure_awaitable

logger = logging.getLogger(__name__)

REDIS_ERRORS = (RedisError, asyncio.TimeoutError, OSError)

_ResultT = TypeVar("_ResultT")


def _score(instant: datetime) -> float:
    return instant.timestamp()


class RedisSuppressionStore:
    """Persists the tables the suppression engine reads and the audit log it writes."""

    def __init__(
        self,
        redis: RedisClient,
        *,
        keys: Optional[SuppressionKeyBuilder] = None,
        codec: Optional[SuppressionCodec] = None,
    ) -> None:
        self.redis = redis
        self._keys = keys or SuppressionKeyBuilder()
        self._codec = codec or SuppressionCodec()

    async def _call(self, label: str, command: "Awaitable[_ResultT] | _ResultT") -> _ResultT:
        try:
            return await ensure_awaitable(command)
        except REDIS_ERRORS as exc:
            raise StoreError(f"Redis {label} failed", operation=label) from exc

    # Alert history

    async def record_alert(self, alert: Alert) -> None:
        """Add ``alert`` to the global history and, when it has one, its team history."""
        payload = self._codec.encode_alert(alert)
        score = _score(alert.created_at)
        await self._call("zadd", self.redis.zadd(self._keys.alerts(), {payload: score}))
        if alert.team_id is not None:
            await self._call("zadd", self.redis.zadd(self._keys.alerts(alert.team_id), {payload: score}))

    async def fetch_alerts_since(self, since: datetime, team_id: Optional[str] = None) -> List[Alert]:
        """Alerts created at or after ``since``, newest first."""
        raw_entries = await self._call(
            "zrevrangebyscore",
            self.redis.zrevrangebyscore(self._keys.alerts(team_id), "+inf", _score(since)),
        )
        alerts = self._decode_all(raw_entries, self._codec.decode_alert, "alert")
        return [alert for alert in alerts if alert.created_at >= since]

    async def trim_alerts_before(self, cutoff: datetime, team_ids: Optional[List[str]] = None) -> int:
        """Drop history older than ``cutoff``; returns the number of global entries removed."""
        max_score = f"({_score(cutoff)}"
        removed = await self._call("zremrangebyscore", self.redis.zremrangebyscore(self._keys.alerts(), "-inf", max_score))
        for team_id in team_ids or []:
            await self._call(
                "zremrangebyscore",
                self.redis.zremrangebyscore(self._keys.alerts(team_id), "-inf", max_score),
            )
        return int(removed or 0)

    # Suppression rules

    async def save_suppression_rule(self, rule: SuppressionRule) -> None:
        await self._call(
            "hset",
            self.redis.hset(self._keys.suppression_rules(), rule.id, self._codec.encode_suppression_rule(rule)),
        )

    async def delete_suppression_rule(self, rule_id: str) -> bool:
        removed = await self._call("hdel", self.redis.hdel(self._keys.suppression_rules(), rule_id))
        return bool(removed)

    async def fetch_enabled_suppression_rules(self) -> List[SuppressionRule]:
        """Enabled rules ordered by descending priority."""
        raw = await self._call("hgetall", self.redis.hgetall(self._keys.suppression_rules()))
        rules = self._decode_all(list(raw.values()), self._codec.decode_suppression_rule, "suppression rule")
        enabled = [rule for rule in rules if rule.enabled]
        return sorted(enabled, key=lambda rule: rule.priority, reverse=True)

    # Maintenance windows

    async def save_maintenance_window(self, window: MaintenanceWindow) -> None:
        await self._call(
            "hset",
            self.redis.hset(
                self._keys.maintenance_windows(),
                window.id,
                self._codec.encode_maintenance_window(window),
            ),
        )

    async def delete_maintenance_window(self, window_id: str) -> bool:
        removed = await self._call("hdel", self.redis.hdel(self._keys.maintenance_windows(), window_id))
        return bool(removed)

    async def _fetch_maintenance_windows(self) -> List[MaintenanceWindow]:
        raw = await self._call("hgetall", self.redis.hgetall(self._keys.maintenance_windows()))
        return self._decode_all(list(raw.values()), self._codec.decode_maintenance_window, "maintenance window")

    async def fetch_active_maintenance_windows(self, at: datetime) -> List[MaintenanceWindow]:
        """Enabled windows, recurring ones expanded, whose range contains ``at``."""
        return active_windows(await self._fetch_maintenance_windows(), at)

    async def fetch_upcoming_maintenance_windows(self, at: datetime) -> List[MaintenanceWindow]:
        """Enabled windows with an occurrence that has not yet ended."""
        windows = await self._fetch_maintenance_windows()
        upcoming = [window for window in windows if is_upcoming(window, at)]
        return sorted(upcoming, key=lambda window: window.start_time)

    # Audit log

    async def append_audit_record(self, record: AuditRecord) -> None:
        payload = self._codec.encode_audit_record(record)
        await self._call("zadd", self.redis.zadd(self._keys.audit_log(), {payload: _score(record.created_at)}))

    async def fetch_audit_records(self, since: datetime) -> List[AuditRecord]:
        """Audit records written at or after ``since``, oldest first."""
        raw_entries = await self._call(
            "zrangebyscore",
            self.redis.zrangebyscore(self._keys.audit_log(), _score(since), "+inf"),
        )
        return self._decode_all(raw_entries, self._codec.decode_audit_record, "audit record")

    @staticmethod
    def _decode_all(raw_entries: List[Any], decode, label: str) -> List[Any]:
        decoded = []
        for raw in raw_entries or []:
            try:
                decoded.append(decode(raw))
            except PAYLOAD_ERRORS as exc:
                logger.warning("Skipping malformed %s payload: %s", label, exc)
        return decoded


__all__ = ["REDIS_ERRORS", "RedisSuppressionStore"]
