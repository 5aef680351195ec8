"""Short-lived memoization of suppressing decisions."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import orjson

from ..exceptions import CacheCorruptionError
from .models import SuppressionContext, SuppressionReason, SuppressionResult

logger = logging.getLogger(__name__)

_FINGERPRINT_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS


@dataclass(frozen=True)
class CachedDecision:
    result: SuppressionResult
    cached_at: datetime


def _fingerprint(payload: Any) -> str:
    return hashlib.sha256(orjson.dumps(payload, default=str, option=_FINGERPRINT_OPTIONS)).hexdigest()[:16]


class DecisionCache:
    """
    Caches suppressing decisions keyed on the inputs they were computed from.

    The key covers the candidate (rule, metric, severity, team, value, context
    and tags), the alert rule's caps, the history it was compared against
    (size and newest id), the loaded rule and window ids, and the evaluation
    instant truncated to ``bucket_seconds``. Any new alert in the history
    therefore produces a different key. Only suppressing results are stored;
    an allow decision is always recomputed. Entries older than ``ttl_seconds``
    are treated as misses.
    """

    def __init__(self, ttl_seconds: int, bucket_seconds: int):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.bucket_seconds = max(1, bucket_seconds)
        self._entries: Dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def make_key(self, context: SuppressionContext) -> str:
        alert = context.alert
        rule = context.rule
        bucket = int(context.now.timestamp()) // self.bucket_seconds
        newest_id = context.recent_alerts[0].id if context.recent_alerts else ""
        inputs = _fingerprint(
            {
                "value": alert.metric_value,
                "context": alert.context,
                "tags": alert.tags,
                "caps": [rule.max_alerts_per_hour, rule.cooldown_minutes],
                "rules": [suppression_rule.id for suppression_rule in context.suppression_rules],
                "windows": [window.id for window in context.maintenance_windows],
            }
        )
        return "|".join(
            (
                alert.alert_rule_id,
                alert.metric_name,
                alert.severity.value,
                alert.team_id or "",
                f"{len(context.recent_alerts)}:{newest_id}",
                inputs,
                str(bucket),
            )
        )

    def get(self, key: str, now: datetime) -> Optional[SuppressionResult]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        try:
            decision = self._validate(key, entry)
        except CacheCorruptionError as exc:
            logger.warning("Discarding malformed decision cache entry: %s", exc)
            self._entries.pop(key, None)
            return None
        if now - decision.cached_at >= self.ttl or not decision.result.should_suppress:
            self._entries.pop(key, None)
            return None
        return decision.result

    def put(self, key: str, result: SuppressionResult, now: datetime) -> None:
        if not result.should_suppress or result.reason is SuppressionReason.SUPPRESSION_EVALUATION_ERROR:
            return
        self._entries[key] = CachedDecision(result=result, cached_at=now)

    def clear(self) -> int:
        size = len(self._entries)
        self._entries.clear()
        return size

    @staticmethod
    def _validate(key: str, entry: Any) -> CachedDecision:
        if not isinstance(entry, CachedDecision):
            raise CacheCorruptionError(f"Entry {key!r} has type {type(entry).__name__}", cache_key=key)
        if not isinstance(entry.result, SuppressionResult) or not isinstance(entry.cached_at, datetime):
            raise CacheCorruptionError(f"Entry {key!r} is missing its result or timestamp", cache_key=key)
        return entry


__all__ = ["CachedDecision", "DecisionCache"]
