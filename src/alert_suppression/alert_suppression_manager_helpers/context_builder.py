"""Context building for alert suppression evaluation."""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from ..exceptions import ConfigLoadError
from ..retry import StoreRetryError, StoreRetryPolicy, execute_with_retry
from .maintenance_schedule import active_windows
from .models import Alert, AlertRule, MaintenanceWindow, SuppressionContext, SuppressionRule
from .settings import SuppressionSettings
from .store_protocol import SuppressionStore

logger = logging.getLogger(__name__)

_ItemT = TypeVar("_ItemT")


class ContextBuilder:
    """Loads the trailing history, custom rules and active maintenance windows for one alert."""

    def __init__(
        self,
        store: SuppressionStore,
        settings: SuppressionSettings,
        retry_policy: Optional[StoreRetryPolicy] = None,
    ):
        """
        Initialize context builder.

        Args:
            store: Rule/window/history store
            settings: Suppression thresholds (history lookback)
            retry_policy: Retry and per-attempt timeout for store reads
        """
        self.store = store
        self.settings = settings
        self.retry_policy = retry_policy or StoreRetryPolicy(
            max_attempts=settings.store_retry_attempts,
            attempt_timeout=settings.store_timeout_seconds,
        )

    async def build_context(self, *, alert: Alert, rule: AlertRule, now: datetime) -> SuppressionContext:
        """
        Build the working set for one evaluation.

        Any part that cannot be loaded is replaced by an empty set so the
        remaining checks still run.

        Args:
            alert: Candidate alert
            rule: Alert rule that produced the candidate
            now: Evaluation instant

        Returns:
            SuppressionContext with all evaluation data
        """
        recent_alerts, suppression_rules, windows = await asyncio.gather(
            self._load_recent_alerts(alert, now),
            self._load_suppression_rules(),
            self._load_maintenance_windows(now),
        )

        return SuppressionContext(
            alert=alert,
            rule=rule,
            now=now,
            recent_alerts=tuple(recent_alerts),
            suppression_rules=tuple(suppression_rules),
            maintenance_windows=tuple(windows),
        )

    async def load_configuration_tables(self, now: datetime) -> Tuple[List[SuppressionRule], List[MaintenanceWindow]]:
        """
        Load the enabled suppression rules and the windows that have not ended yet.

        Raises:
            ConfigLoadError: If either table cannot be read after retries
        """
        rules = await self._fetch("suppression rules", self.store.fetch_enabled_suppression_rules)
        windows = await self._fetch(
            "upcoming maintenance windows",
            lambda: self.store.fetch_upcoming_maintenance_windows(now),
        )
        return [rule for rule in rules if rule.enabled], [window for window in windows if window.enabled]

    async def _load_recent_alerts(self, alert: Alert, now: datetime) -> List[Alert]:
        since = now - self.settings.history_lookback
        history = await self._fetch_or_empty(
            "alert history",
            lambda: self.store.fetch_alerts_since(since, team_id=alert.team_id),
        )
        # The candidate may already be persisted; it must never count against itself.
        recent = [item for item in history if item.id != alert.id and since <= item.created_at <= now]
        recent.sort(key=lambda item: item.created_at, reverse=True)
        return recent

    async def _load_suppression_rules(self) -> List[SuppressionRule]:
        rules = await self._fetch_or_empty("suppression rules", self.store.fetch_enabled_suppression_rules)
        enabled = [rule for rule in rules if rule.enabled]
        return sorted(enabled, key=lambda rule: rule.priority, reverse=True)

    async def _load_maintenance_windows(self, now: datetime) -> List[MaintenanceWindow]:
        windows = await self._fetch_or_empty(
            "maintenance windows",
            lambda: self.store.fetch_active_maintenance_windows(now),
        )
        return active_windows(windows, now)

    async def _fetch_or_empty(self, label: str, fetch: Callable[[], Awaitable[List[_ItemT]]]) -> List[_ItemT]:
        try:
            return await self._fetch(label, fetch)
        except ConfigLoadError as exc:
            logger.warning("Proceeding without %s: %s", label, exc)
            return []

    async def _fetch(self, label: str, fetch: Callable[[], Awaitable[List[_ItemT]]]) -> List[_ItemT]:
        async def _attempt(_attempt_number: int) -> List[_ItemT]:
            return await fetch()

        try:
            return await execute_with_retry(
                _attempt,
                policy=self.retry_policy,
                logger=logger,
                context=f"Loading {label}",
            )
        except StoreRetryError as exc:
            raise ConfigLoadError(f"Failed to load {label}", source=label) from exc


__all__ = ["ContextBuilder"]
