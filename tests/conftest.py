"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from alert_suppression.alert_suppression_manager import AlertSuppressionManager
from alert_suppression.alert_suppression_manager_helpers.models import Alert, AlertRule, Severity
from alert_suppression.alert_suppression_manager_helpers.settings import SuppressionSettings
from alert_suppression.redis_store import RedisSuppressionStore
from alert_suppression.retry import StoreRetryPolicy

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def _parse_bound(bound: float | str) -> tuple[float, bool]:
    """Return (value, exclusive) for a redis score bound."""
    if isinstance(bound, str):
        if bound.startswith("("):
            return float(bound[1:]), True
        return float(bound), False
    return float(bound), False


def _in_range(score: float, min_score: float | str, max_score: float | str) -> bool:
    min_val, min_exclusive = _parse_bound(min_score)
    max_val, max_exclusive = _parse_bound(max_score)
    above_min = score > min_val if min_exclusive else score >= min_val
    below_max = score < max_val if max_exclusive else score <= max_val
    return above_min and below_max


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._data: dict[str, Any] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._sorted_sets: dict[str, dict[str, float]] = {}

    async def set(self, key: str, value: str | bytes) -> bool:
        """Set a string value."""
        self._data[key] = value if isinstance(value, str) else value.decode()
        return True

    async def get(self, key: str) -> str | None:
        """Get a string value."""
        return self._data.get(key)

    async def hset(
        self, key: str, mapping: dict[str, str] | str | None = None, field: str | None = None, value: str | None = None, **kwargs: Any
    ) -> int:
        """Set hash fields. Supports both hset(key, field, value) and hset(key, mapping={...})."""
        if key not in self._hashes:
            self._hashes[key] = {}

        if isinstance(mapping, str) and isinstance(field, str) and value is None:
            update_map = {mapping: field}
        elif isinstance(mapping, dict):
            update_map = mapping
        else:
            update_map = kwargs

        added = sum(1 for k in update_map if k not in self._hashes[key])
        self._hashes[key].update(update_map)
        return added

    async def hget(self, key: str, field: str) -> str | None:
        """Get a hash field."""
        return self._hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        """Get all fields in a hash."""
        return self._hashes.get(key, {}).copy()

    async def hdel(self, key: str, *fields: str) -> int:
        """Delete hash fields."""
        if key not in self._hashes:
            return 0
        deleted = sum(1 for f in fields if f in self._hashes[key])
        for f in fields:
            self._hashes[key].pop(f, None)
        return deleted

    async def delete(self, *keys: str) -> int:
        """Delete keys."""
        deleted = 0
        for key in keys:
            for store in (self._data, self._hashes, self._sorted_sets):
                if key in store:
                    del store[key]
                    deleted += 1
        return deleted

    async def zadd(self, key: str, mapping: dict[str, float] | None = None, **kwargs) -> int:
        """Add members to a sorted set."""
        if key not in self._sorted_sets:
            self._sorted_sets[key] = {}

        update_map = mapping or kwargs
        added = sum(1 for k in update_map if k not in self._sorted_sets[key])
        self._sorted_sets[key].update(update_map)
        return added

    async def zrangebyscore(self, key: str, min_score: float | str, max_score: float | str, withscores: bool = False) -> list:
        """Get members of a sorted set by score range, lowest score first."""
        members = self._sorted_sets.get(key, {})
        filtered = [(m, s) for m, s in members.items() if _in_range(s, min_score, max_score)]
        filtered.sort(key=lambda x: x[1])

        if withscores:
            return filtered
        return [m for m, _ in filtered]

    async def zrevrangebyscore(self, key: str, max_score: float | str, min_score: float | str, withscores: bool = False) -> list:
        """Get members of a sorted set by score range, highest score first."""
        ascending = await self.zrangebyscore(key, min_score, max_score, withscores=True)
        descending = list(reversed(ascending))
        if withscores:
            return descending
        return [m for m, _ in descending]

    async def zremrangebyscore(self, key: str, min_score: float | str, max_score: float | str) -> int:
        """Remove members of a sorted set within a score range."""
        members = self._sorted_sets.get(key, {})
        doomed = [m for m, s in members.items() if _in_range(s, min_score, max_score)]
        for member in doomed:
            del members[member]
        return len(doomed)

    async def ping(self) -> str:
        """Ping the Redis server."""
        return "PONG"

    def dump_hash(self, key: str) -> dict[str, str]:
        """Get hash contents synchronously for assertions."""
        return self._hashes.get(key, {}).copy()

    def dump_sorted_set(self, key: str) -> dict[str, float]:
        """Get sorted set contents synchronously for assertions."""
        return self._sorted_sets.get(key, {}).copy()


@pytest.fixture
def fake_redis() -> FakeRedis:
    """Provide a fake Redis instance."""
    return FakeRedis()


@pytest.fixture
def suppression_store(fake_redis) -> RedisSuppressionStore:
    """Provide a suppression store backed by fake Redis."""
    return RedisSuppressionStore(fake_redis)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fast_retry_policy() -> StoreRetryPolicy:
    """Single attempt, no backoff, so failure paths stay fast."""
    return StoreRetryPolicy(max_attempts=1, initial_delay=0.0, jitter_ratio=0.0, attempt_timeout=1.0)


@pytest.fixture
def make_alert():
    """Factory for alerts with unique ids."""
    counter = itertools.count(1)

    def factory(
        *,
        created_at: datetime = FIXED_NOW,
        alert_rule_id: str = "rule-1",
        severity: Severity = Severity.HIGH,
        metric_name: str = "cpu_usage",
        metric_value: float | None = None,
        context: dict | None = None,
        tags: dict | None = None,
        team_id: str | None = None,
        alert_id: str | None = None,
    ) -> Alert:
        return Alert(
            id=alert_id or f"alert-{next(counter)}",
            alert_rule_id=alert_rule_id,
            severity=severity,
            metric_name=metric_name,
            created_at=created_at,
            metric_value=metric_value,
            context=context or {},
            tags=tags or {},
            team_id=team_id,
        )

    return factory


@pytest.fixture
def alert_rule() -> AlertRule:
    return AlertRule(id="rule-1", max_alerts_per_hour=10, cooldown_minutes=0)


class MutableClock:
    """Clock whose current instant tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(FIXED_NOW)


@pytest.fixture
def build_manager(suppression_store, clock, fast_retry_policy):
    """Factory for managers wired to the fake store and the mutable clock."""

    def factory(store=None, settings: SuppressionSettings | None = None) -> AlertSuppressionManager:
        return AlertSuppressionManager(
            store or suppression_store,
            settings=settings or SuppressionSettings(),
            config_path=None,
            time_provider=clock,
            retry_policy=fast_retry_policy,
        )

    return factory
