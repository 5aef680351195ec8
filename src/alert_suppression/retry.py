"""
Bounded retry for suppression store calls.

Context loads and audit writes both go through ``execute_with_retry``: each
attempt is capped by ``attempt_timeout`` and failed attempts back off
exponentially with jitter until ``max_attempts`` is reached.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional, Tuple, Type, TypeVar

from redis.exceptions import RedisError

from .exceptions import StoreError

_ResultT = TypeVar("_ResultT")

STORE_RETRY_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RedisError,
    StoreError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
    OSError,
)

_SECURE_RANDOM = random.SystemRandom()


@dataclass(frozen=True)
class StoreRetryPolicy:
    """Attempt count, backoff curve and per-attempt timeout for store calls."""

    max_attempts: int = 3
    initial_delay: float = 0.2
    max_delay: float = 2.0
    multiplier: float = 2.0
    jitter_ratio: float = 0.15
    attempt_timeout: Optional[float] = 5.0
    retry_exceptions: Tuple[Type[Exception], ...] = STORE_RETRY_EXCEPTIONS

    def backoff_delays(self) -> Iterator[float]:
        """Sleep durations between consecutive attempts."""
        delay = self.initial_delay
        for _ in range(self.attempts - 1):
            capped = min(delay, self.max_delay)
            jitter = capped * self.jitter_ratio
            if jitter > 0:
                capped += _SECURE_RANDOM.uniform(-jitter, jitter)
            yield max(0.0, capped)
            delay *= self.multiplier

    @property
    def attempts(self) -> int:
        return max(1, self.max_attempts)


class StoreRetryError(RuntimeError):
    """A store operation failed on every attempt."""


async def _run_attempt(operation: Callable[[int], Awaitable[_ResultT]], attempt: int, timeout: Optional[float]) -> _ResultT:
    if timeout is None:
        return await operation(attempt)
    return await asyncio.wait_for(operation(attempt), timeout=timeout)


async def execute_with_retry(
    operation: Callable[[int], Awaitable[_ResultT]],
    *,
    policy: StoreRetryPolicy,
    logger: logging.Logger,
    context: str,
) -> _ResultT:
    """
    Run ``operation`` until it succeeds or the policy is exhausted.

    Args:
        operation: Called once per attempt with the 1-based attempt number
        policy: Retry timing
        logger: Receives one warning per failed attempt that will be retried
        context: Operation label for log and error messages

    Raises:
        StoreRetryError: Every attempt failed; the last failure is chained
    """
    delays = policy.backoff_delays()
    attempt = 0
    while True:
        attempt += 1
        try:
            return await _run_attempt(operation, attempt, policy.attempt_timeout)
        except policy.retry_exceptions as exc:
            sleep_for = next(delays, None)
            if sleep_for is None:
                raise StoreRetryError(f"{context} failed after {attempt} attempt(s)") from exc
            logger.warning(
                "%s failed on attempt %s/%s; retrying in %.2fs (%s)",
                context,
                attempt,
                policy.attempts,
                sleep_for,
                exc,
            )
            await asyncio.sleep(sleep_for)


__all__ = [
    "STORE_RETRY_EXCEPTIONS",
    "StoreRetryError",
    "StoreRetryPolicy",
    "execute_with_retry",
]
