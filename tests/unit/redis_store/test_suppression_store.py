"""Tests for the Redis-backed suppression store."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import RedisError

from alert_suppression.alert_suppression_manager_helpers.conditions import MetricNameCondition
from alert_suppression.alert_suppression_manager_helpers.models import (
    AuditRecord,
    MaintenanceWindow,
    RecurrenceSpec,
    RecurrenceType,
    RuleType,
    SuppressionReason,
    SuppressionRule,
)
from alert_suppression.exceptions import StoreError
from alert_suppression.redis_store import RedisSuppressionStore, SuppressionKeyBuilder

KEYS = SuppressionKeyBuilder()


def _rule(rule_id, priority, *, enabled=True):
    return SuppressionRule(
        id=rule_id,
        name=rule_id,
        rule_type=RuleType.CUSTOM,
        conditions=(MetricNameCondition("cpu_usage"),),
        priority=priority,
        enabled=enabled,
    )


def _window(window_id, start, hours=1, **kwargs):
    return MaintenanceWindow(
        id=window_id,
        name=window_id,
        start_time=start,
        end_time=start + timedelta(hours=hours),
        suppress_all=True,
        **kwargs,
    )


class TestAlertHistory:
    @pytest.mark.asyncio
    async def test_fetch_returns_newest_first(self, suppression_store, make_alert, fixed_now):
        for minutes in (30, 10, 20):
            await suppression_store.record_alert(make_alert(created_at=fixed_now - timedelta(minutes=minutes)))

        alerts = await suppression_store.fetch_alerts_since(fixed_now - timedelta(minutes=25))

        assert [alert.created_at for alert in alerts] == [
            fixed_now - timedelta(minutes=10),
            fixed_now - timedelta(minutes=20),
        ]

    @pytest.mark.asyncio
    async def test_team_history_is_indexed_separately(self, suppression_store, fake_redis, make_alert, fixed_now):
        await suppression_store.record_alert(make_alert(team_id="team-a"))
        await suppression_store.record_alert(make_alert(team_id="team-b"))
        await suppression_store.record_alert(make_alert())

        team_alerts = await suppression_store.fetch_alerts_since(fixed_now - timedelta(hours=1), team_id="team-a")

        assert [alert.team_id for alert in team_alerts] == ["team-a"]
        assert len(fake_redis.dump_sorted_set(KEYS.alerts())) == 3

    @pytest.mark.asyncio
    async def test_trim_removes_entries_before_cutoff(self, suppression_store, fake_redis, make_alert, fixed_now):
        cutoff = fixed_now - timedelta(hours=1)
        await suppression_store.record_alert(make_alert(created_at=cutoff - timedelta(minutes=1), team_id="team-a"))
        await suppression_store.record_alert(make_alert(created_at=cutoff, team_id="team-a"))

        removed = await suppression_store.trim_alerts_before(cutoff, team_ids=["team-a"])

        assert removed == 1
        assert len(fake_redis.dump_sorted_set(KEYS.alerts())) == 1
        assert len(fake_redis.dump_sorted_set(KEYS.alerts("team-a"))) == 1

    @pytest.mark.asyncio
    async def test_malformed_history_entries_are_skipped(self, suppression_store, fake_redis, make_alert, fixed_now):
        await suppression_store.record_alert(make_alert())
        await fake_redis.zadd(KEYS.alerts(), {"not json": fixed_now.timestamp()})
        await fake_redis.zadd(KEYS.alerts(), {'{"id": "missing-fields"}': fixed_now.timestamp()})

        alerts = await suppression_store.fetch_alerts_since(fixed_now - timedelta(minutes=1))

        assert len(alerts) == 1


class TestSuppressionRules:
    @pytest.mark.asyncio
    async def test_enabled_rules_sorted_by_priority(self, suppression_store):
        await suppression_store.save_suppression_rule(_rule("low", 1))
        await suppression_store.save_suppression_rule(_rule("high", 9))
        await suppression_store.save_suppression_rule(_rule("off", 50, enabled=False))

        rules = await suppression_store.fetch_enabled_suppression_rules()

        assert [rule.id for rule in rules] == ["high", "low"]
        assert rules[0].conditions == (MetricNameCondition("cpu_usage"),)

    @pytest.mark.asyncio
    async def test_delete_rule(self, suppression_store):
        await suppression_store.save_suppression_rule(_rule("gone", 1))

        assert await suppression_store.delete_suppression_rule("gone") is True
        assert await suppression_store.delete_suppression_rule("gone") is False
        assert await suppression_store.fetch_enabled_suppression_rules() == []

    @pytest.mark.asyncio
    async def test_rule_with_bad_type_is_skipped(self, suppression_store, fake_redis):
        await suppression_store.save_suppression_rule(_rule("good", 1))
        await fake_redis.hset(KEYS.suppression_rules(), "bad", '{"id": "bad", "name": "bad", "rule_type": "mystery"}')

        rules = await suppression_store.fetch_enabled_suppression_rules()

        assert [rule.id for rule in rules] == ["good"]


class TestMaintenanceWindows:
    @pytest.mark.asyncio
    async def test_active_windows(self, suppression_store, fixed_now):
        await suppression_store.save_maintenance_window(_window("now", fixed_now - timedelta(minutes=30)))
        await suppression_store.save_maintenance_window(_window("later", fixed_now + timedelta(hours=2)))
        await suppression_store.save_maintenance_window(
            _window("disabled", fixed_now - timedelta(minutes=30), enabled=False)
        )

        active = await suppression_store.fetch_active_maintenance_windows(fixed_now)

        assert [window.id for window in active] == ["now"]

    @pytest.mark.asyncio
    async def test_recurring_window_is_expanded(self, suppression_store, fixed_now):
        window = _window(
            "nightly",
            fixed_now - timedelta(days=3, minutes=30),
            recurring=True,
            recurrence=RecurrenceSpec(RecurrenceType.DAILY, max_occurrences=7),
        )
        await suppression_store.save_maintenance_window(window)

        active = await suppression_store.fetch_active_maintenance_windows(fixed_now)

        assert len(active) == 1
        assert active[0].start_time == fixed_now - timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_upcoming_windows_sorted_by_start(self, suppression_store, fixed_now):
        await suppression_store.save_maintenance_window(_window("second", fixed_now + timedelta(hours=5)))
        await suppression_store.save_maintenance_window(_window("first", fixed_now + timedelta(hours=1)))
        await suppression_store.save_maintenance_window(_window("past", fixed_now - timedelta(hours=5)))

        upcoming = await suppression_store.fetch_upcoming_maintenance_windows(fixed_now)

        assert [window.id for window in upcoming] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_delete_window(self, suppression_store, fixed_now):
        await suppression_store.save_maintenance_window(_window("now", fixed_now))

        assert await suppression_store.delete_maintenance_window("now") is True
        assert await suppression_store.fetch_upcoming_maintenance_windows(fixed_now) == []


class TestAuditLog:
    @pytest.mark.asyncio
    async def test_append_and_fetch(self, suppression_store, fixed_now):
        record = AuditRecord(
            alert_id="alert-1",
            suppressed=True,
            reason=SuppressionReason.COOLDOWN_PERIOD,
            created_at=fixed_now,
            suppress_until=fixed_now + timedelta(minutes=10),
            metadata={"cooldown_minutes": 10},
        )
        await suppression_store.append_audit_record(record)

        assert await suppression_store.fetch_audit_records(fixed_now - timedelta(minutes=1)) == [record]
        assert await suppression_store.fetch_audit_records(fixed_now + timedelta(minutes=1)) == []


class TestRedisFailures:
    @pytest.mark.asyncio
    async def test_redis_error_becomes_store_error(self, make_alert):
        redis = MagicMock()
        redis.zadd = AsyncMock(side_effect=RedisError("connection lost"))
        store = RedisSuppressionStore(redis)

        with pytest.raises(StoreError) as exc_info:
            await store.record_alert(make_alert())

        assert exc_info.value.operation == "zadd"
        assert isinstance(exc_info.value.__cause__, RedisError)

    @pytest.mark.asyncio
    async def test_os_error_on_read(self, fixed_now):
        redis = MagicMock()
        redis.hgetall = AsyncMock(side_effect=ConnectionRefusedError("refused"))
        store = RedisSuppressionStore(redis)

        with pytest.raises(StoreError, match="hgetall"):
            await store.fetch_active_maintenance_windows(fixed_now)

    def test_custom_key_prefix(self):
        keys = SuppressionKeyBuilder(prefix="staging")

        assert keys.alerts() == "staging:alerts"
        assert keys.alerts("ops") == "staging:alerts:by_team:ops"
        assert keys.suppression_rules() == "staging:rules"
        assert keys.audit_log() == "staging:audit"
