"""Background loop that periodically sweeps stale engine state."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..exceptions import ConfigLoadError, StoreError

logger = logging.getLogger(__name__)

SWEEP_ERRORS = (StoreError, ConfigLoadError, RuntimeError, ValueError, KeyError, AttributeError, TypeError)


class HousekeepingLoop:
    """Runs the sweep coroutine every ``interval_seconds`` until stopped."""

    def __init__(self, sweep: Callable[[], Awaitable[object]], interval_seconds: float):
        """
        Initialize housekeeping loop.

        Args:
            sweep: Coroutine function performing one sweep
            interval_seconds: Time between sweeps
        """
        self.sweep = sweep
        self.interval_seconds = max(interval_seconds, 0.1)
        self.housekeeping_task: Optional[asyncio.Task] = None
        self.shutdown_requested = False

    async def start(self) -> None:
        """Start background housekeeping."""
        if self.housekeeping_task is not None:
            logger.warning("Suppression housekeeping already started")
            return

        logger.info("Starting suppression housekeeping (interval: %ss)", self.interval_seconds)
        self.shutdown_requested = False
        self.housekeeping_task = asyncio.create_task(self._housekeeping_loop(), name="suppression-housekeeping")

    async def stop(self) -> None:
        """Stop background housekeeping."""
        if self.housekeeping_task is None:
            return

        logger.info("Stopping suppression housekeeping")
        self.shutdown_requested = True

        if not self.housekeeping_task.done():
            self.housekeeping_task.cancel()
            try:
                await self.housekeeping_task
            except asyncio.CancelledError:
                logger.debug("Suppression housekeeping task cancelled during shutdown")

        self.housekeeping_task = None

    async def _housekeeping_loop(self) -> None:
        while not self.shutdown_requested:
            await asyncio.sleep(self.interval_seconds)
            if self.shutdown_requested:
                break
            try:
                await self.sweep()
            except SWEEP_ERRORS:
                # Next sweep retries
                logger.exception("Suppression housekeeping sweep failed")

        logger.info("Suppression housekeeping loop ended")

    def is_active(self) -> bool:
        """Check if housekeeping is currently running."""
        return self.housekeeping_task is not None and not self.housekeeping_task.done()


__all__ = ["HousekeepingLoop"]
