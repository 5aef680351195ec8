"""Exception classes for the alert suppression engine.

All custom exceptions inherit from ApplicationError so callers can catch the
whole family in one place.

Exception classes support two patterns:
1. No-argument raise: raise ConfigLoadError()
2. Contextual attributes: err = EvaluationError(rule_id="r1"); raise err
"""

from typing import Any


class ApplicationError(Exception):
    """Base exception for all application errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = self.__class__.__doc__ or "Application error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class ConfigurationError(ApplicationError):
    """Configuration is invalid or missing."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Configuration is invalid or missing"
        super().__init__(message, **kwargs)


class StoreError(ApplicationError):
    """Rule, window or history store operation failed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Suppression store operation failed"
        super().__init__(message, **kwargs)


class ConfigLoadError(StoreError):
    """Suppression rules, maintenance windows or alert history could not be loaded."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Failed to load suppression working set"
        super().__init__(message, **kwargs)


class AuditWriteError(StoreError):
    """Suppression decision could not be written to the audit log."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Failed to write suppression audit record"
        super().__init__(message, **kwargs)


class EvaluationError(ApplicationError):
    """A single suppression check could not be evaluated."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Suppression check evaluation failed"
        super().__init__(message, **kwargs)


class CacheCorruptionError(ApplicationError):
    """A decision cache entry is malformed."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = "Decision cache entry is malformed"
        super().__init__(message, **kwargs)


__all__ = [
    "ApplicationError",
    "AuditWriteError",
    "CacheCorruptionError",
    "ConfigLoadError",
    "ConfigurationError",
    "EvaluationError",
    "StoreError",
]
