"""Named thresholds that drive the suppression checks."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import timedelta

DEFAULT_DUPLICATE_WINDOW_MINUTES = 30
DEFAULT_NUMERIC_TOLERANCE_RATIO = 0.05
DEFAULT_CONTEXT_MATCH_RATIO = 0.8
DEFAULT_RATE_LIMIT_WINDOW_MINUTES = 60
DEFAULT_TEAM_HOURLY_LIMIT = 0
DEFAULT_METRIC_HOURLY_LIMIT = 0
DEFAULT_SEVERITY_HOURLY_LIMIT = 0
DEFAULT_GROUPING_WINDOW_MINUTES = 15
DEFAULT_GROUPING_THRESHOLD = 3
DEFAULT_GROUP_RETENTION_MINUTES = 120
DEFAULT_HISTORY_LOOKBACK_MINUTES = 120
DEFAULT_SEVERITY_THRESHOLD_WINDOW_MINUTES = 30
DEFAULT_SEVERITY_THRESHOLD_COUNT = 5
DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_CACHE_BUCKET_SECONDS = 60
DEFAULT_HOUSEKEEPING_INTERVAL_SECONDS = 600
DEFAULT_STORE_TIMEOUT_SECONDS = 5.0
DEFAULT_STORE_RETRY_ATTEMPTS = 3
DEFAULT_DECISION_HISTORY_SIZE = 1000


@dataclass(frozen=True)
class SuppressionSettings:
    """Tunable constants for every suppression check, cache and sweep."""

    duplicate_window_minutes: int = DEFAULT_DUPLICATE_WINDOW_MINUTES
    numeric_tolerance_ratio: float = DEFAULT_NUMERIC_TOLERANCE_RATIO
    context_match_ratio: float = DEFAULT_CONTEXT_MATCH_RATIO
    rate_limit_window_minutes: int = DEFAULT_RATE_LIMIT_WINDOW_MINUTES
    # Scoped caps over the rate-limit window; 0 disables the scope.
    team_hourly_limit: int = DEFAULT_TEAM_HOURLY_LIMIT
    metric_hourly_limit: int = DEFAULT_METRIC_HOURLY_LIMIT
    severity_hourly_limit: int = DEFAULT_SEVERITY_HOURLY_LIMIT
    grouping_window_minutes: int = DEFAULT_GROUPING_WINDOW_MINUTES
    grouping_threshold: int = DEFAULT_GROUPING_THRESHOLD
    group_retention_minutes: int = DEFAULT_GROUP_RETENTION_MINUTES
    history_lookback_minutes: int = DEFAULT_HISTORY_LOOKBACK_MINUTES
    severity_threshold_window_minutes: int = DEFAULT_SEVERITY_THRESHOLD_WINDOW_MINUTES
    severity_threshold_count: int = DEFAULT_SEVERITY_THRESHOLD_COUNT
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS
    cache_bucket_seconds: int = DEFAULT_CACHE_BUCKET_SECONDS
    housekeeping_interval_seconds: int = DEFAULT_HOUSEKEEPING_INTERVAL_SECONDS
    store_timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS
    store_retry_attempts: int = DEFAULT_STORE_RETRY_ATTEMPTS
    decision_history_size: int = DEFAULT_DECISION_HISTORY_SIZE

    @property
    def duplicate_window(self) -> timedelta:
        return timedelta(minutes=self.duplicate_window_minutes)

    @property
    def rate_limit_window(self) -> timedelta:
        return timedelta(minutes=self.rate_limit_window_minutes)

    @property
    def grouping_window(self) -> timedelta:
        return timedelta(minutes=self.grouping_window_minutes)

    @property
    def group_retention(self) -> timedelta:
        return timedelta(minutes=self.group_retention_minutes)

    @property
    def history_lookback(self) -> timedelta:
        return timedelta(minutes=self.history_lookback_minutes)

    @property
    def severity_threshold_window(self) -> timedelta:
        return timedelta(minutes=self.severity_threshold_window_minutes)


SETTING_FIELD_NAMES = tuple(field.name for field in fields(SuppressionSettings))

__all__ = ["SETTING_FIELD_NAMES", "SuppressionSettings"]
