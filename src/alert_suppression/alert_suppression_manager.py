"""Alert suppression manager for deciding whether a new alert should be delivered."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .alert_suppression_manager_helpers.audit_sink import AuditSink
from .alert_suppression_manager_helpers.config_loader import DEFAULT_CONFIG_PATH, load_suppression_settings
from .alert_suppression_manager_helpers.context_builder import ContextBuilder
from .alert_suppression_manager_helpers.decision_cache import DecisionCache
from .alert_suppression_manager_helpers.grouping_engine import AlertGroupingEngine
from .alert_suppression_manager_helpers.housekeeping import HousekeepingLoop
from .alert_suppression_manager_helpers.models import (
    Alert,
    AlertRule,
    MaintenanceWindow,
    SuppressionReason,
    SuppressionResult,
    SuppressionRule,
)
from .alert_suppression_manager_helpers.settings import SuppressionSettings
from .alert_suppression_manager_helpers.state_manager import StateManager
from .alert_suppression_manager_helpers.store_protocol import SuppressionStore
from .alert_suppression_manager_helpers.suppression_pipeline import SuppressionPipeline
from .alert_suppression_manager_helpers.suppression_tracker import SuppressionTracker, TrackedDecision
from .exceptions import ApplicationError, ConfigLoadError
from .retry import StoreRetryPolicy

logger = logging.getLogger(__name__)

EVALUATION_ERRORS = (ApplicationError, RuntimeError, TypeError, ValueError, KeyError, AttributeError, ArithmeticError)

TimeProvider = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _resolve_settings(settings: Optional[SuppressionSettings], config_path: Optional[str]) -> SuppressionSettings:
    if settings is not None:
        return settings
    if config_path is None:
        return SuppressionSettings()
    return load_suppression_settings(config_path)


@dataclass
class _SuppressionComponents:
    context_builder: ContextBuilder
    grouping_engine: AlertGroupingEngine
    pipeline: SuppressionPipeline
    decision_cache: DecisionCache
    audit_sink: AuditSink
    tracker: SuppressionTracker
    state_manager: StateManager


def _build_components(
    store: SuppressionStore,
    settings: SuppressionSettings,
    retry_policy: Optional[StoreRetryPolicy],
) -> _SuppressionComponents:
    policy = retry_policy or StoreRetryPolicy(
        max_attempts=settings.store_retry_attempts,
        attempt_timeout=settings.store_timeout_seconds,
    )
    context_builder = ContextBuilder(store, settings, retry_policy=policy)
    grouping_engine = AlertGroupingEngine(settings)
    pipeline = SuppressionPipeline(settings, grouping_engine)
    decision_cache = DecisionCache(settings.cache_ttl_seconds, settings.cache_bucket_seconds)
    audit_sink = AuditSink(store, retry_policy=policy)
    tracker = SuppressionTracker(max_history_entries=settings.decision_history_size)
    state_manager = StateManager(tracker)
    return _SuppressionComponents(
        context_builder=context_builder,
        grouping_engine=grouping_engine,
        pipeline=pipeline,
        decision_cache=decision_cache,
        audit_sink=audit_sink,
        tracker=tracker,
        state_manager=state_manager,
    )


def _log_configuration(settings: SuppressionSettings) -> None:
    logger.debug(
        "Alert suppression manager initialized (duplicate_window: %smin, grouping: %s in %smin, cache_ttl: %ss)",
        settings.duplicate_window_minutes,
        settings.grouping_threshold,
        settings.grouping_window_minutes,
        settings.cache_ttl_seconds,
    )


class AlertSuppressionManager:
    """
    Decides whether each new alert is delivered or silenced.

    The instance owns the grouping table, the decision cache and the decision
    history. Evaluations may run concurrently; mutations of that shared state
    are serialized by one lock while store reads happen outside it.
    """

    def __init__(
        self,
        store: SuppressionStore,
        settings: Optional[SuppressionSettings] = None,
        config_path: Optional[str] = DEFAULT_CONFIG_PATH,
        time_provider: Optional[TimeProvider] = None,
        retry_policy: Optional[StoreRetryPolicy] = None,
    ):
        """
        Initialize alert suppression manager.

        Args:
            store: Rule, window, history and audit store
            settings: Explicit thresholds; when omitted they are loaded from ``config_path``
            config_path: JSON config location, or None to use built-in defaults
            time_provider: Clock used for every evaluation and sweep
            retry_policy: Retry policy for store I/O
        """
        self.store = store
        self.settings = _resolve_settings(settings, config_path)
        self.time_provider: TimeProvider = time_provider or _utc_now
        components = _build_components(store, self.settings, retry_policy)
        self.context_builder = components.context_builder
        self.grouping_engine = components.grouping_engine
        self.pipeline = components.pipeline
        self.decision_cache = components.decision_cache
        self.audit_sink = components.audit_sink
        self.tracker = components.tracker
        self.state_manager = components.state_manager
        self.housekeeping = HousekeepingLoop(self.run_housekeeping, self.settings.housekeeping_interval_seconds)
        self.suppression_rules: List[SuppressionRule] = []
        self.maintenance_windows: List[MaintenanceWindow] = []
        self._lock = asyncio.Lock()
        _log_configuration(self.settings)

    async def start(self) -> None:
        """Load the rule and window tables and start periodic housekeeping."""
        await self.refresh_configuration()
        await self.housekeeping.start()

    async def stop(self) -> None:
        """Stop periodic housekeeping."""
        await self.housekeeping.stop()

    async def refresh_configuration(self) -> None:
        """Reload the suppression rule and maintenance window tables."""
        now = self.time_provider()
        try:
            rules, windows = await self.context_builder.load_configuration_tables(now)
        except ConfigLoadError:
            logger.error("Error loading suppression configuration", exc_info=True)
            async with self._lock:
                self.suppression_rules = []
                self.maintenance_windows = []
            return

        async with self._lock:
            self.suppression_rules = rules
            self.maintenance_windows = windows
        logger.info(
            "Loaded %s suppression rules and %s maintenance windows",
            len(rules),
            len(windows),
        )

    async def evaluate(self, alert: Alert, rule: AlertRule) -> SuppressionResult:
        """
        Decide whether ``alert`` should be suppressed.

        Never raises: an internal failure yields a non-suppressing result with
        reason ``suppression_evaluation_error``. Every decision is audited; a
        failed audit write does not change the decision.

        Args:
            alert: Candidate alert
            rule: Alert rule that produced the candidate

        Returns:
            SuppressionResult describing the decision
        """
        now = self.time_provider()
        from_cache = False
        try:
            result, from_cache = await self._decide(alert, rule, now)
        except EVALUATION_ERRORS as exc:
            logger.error("Error evaluating suppression for alert %s", alert.id, exc_info=True)
            result = SuppressionResult.allow(SuppressionReason.SUPPRESSION_EVALUATION_ERROR, error=str(exc))

        await self.audit_sink.record(alert, result, now)
        self.tracker.record_decision(
            TrackedDecision(
                alert_id=alert.id,
                alert_rule_id=alert.alert_rule_id,
                result=result,
                decided_at=now,
                from_cache=from_cache,
            )
        )
        logger.debug(
            "Alert %s %s (%s)",
            alert.id,
            "suppressed" if result.should_suppress else "delivered",
            result.reason.value,
        )
        return result

    async def _decide(self, alert: Alert, rule: AlertRule, now: datetime):
        context = await self.context_builder.build_context(alert=alert, rule=rule, now=now)

        async with self._lock:
            cache_key = self.decision_cache.make_key(context)
            cached = self.decision_cache.get(cache_key, now)
            if cached is not None:
                return cached, True
            result = self.pipeline.run(context)
            self.decision_cache.put(cache_key, result, now)
        return result, False

    async def run_housekeeping(self) -> Dict[str, int]:
        """
        Evict stale groups, clear the decision cache and reload the tables.

        Returns:
            Counts of evicted groups and cleared cache entries
        """
        now = self.time_provider()
        async with self._lock:
            evicted_groups = self.grouping_engine.evict_stale(now)
            cleared_entries = self.decision_cache.clear()
        await self.refresh_configuration()
        logger.info(
            "Suppression housekeeping evicted %s groups and cleared %s cache entries",
            evicted_groups,
            cleared_entries,
        )
        return {"evicted_groups": evicted_groups, "cleared_cache_entries": cleared_entries}

    def get_suppression_statistics(self) -> Dict[str, Any]:
        return self.state_manager.get_suppression_statistics(
            active_groups=len(self.grouping_engine),
            cache_size=len(self.decision_cache),
            suppression_rules=len(self.suppression_rules),
            maintenance_windows=len(self.maintenance_windows),
        )

    def get_recent_decisions(self, limit: int = 50) -> List[TrackedDecision]:
        return self.tracker.get_recent_decisions(limit)


__all__ = ["AlertSuppressionManager"]
