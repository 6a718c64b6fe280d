"""Lock Sweeper for Time Slots.

APScheduler-based async job that returns lapsed checkout locks to the
pool and cancels the pending appointments that held them.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-not-found]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

ServicesScope = Callable[[], AbstractAsyncContextManager[Any]]


class LockSweeper:
    """Periodic sweep of expired slot locks.

    Each run opens its own session through `services_scope`, which must
    yield an object exposing `time_slot_manager` and
    `appointment_scheduler`.
    """

    def __init__(
        self,
        services_scope: ServicesScope,
        interval_seconds: int = 60,
        enabled: bool = True,
    ):
        """Initialize sweeper.

        Args:
            services_scope: Factory of a context yielding per-session services.
            interval_seconds: Seconds between sweeps.
            enabled: Whether the sweeper is enabled.
        """
        self.services_scope = services_scope
        self.interval_seconds = interval_seconds
        self.enabled = enabled

        self._scheduler: AsyncIOScheduler | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        """Start the sweeper."""
        if not self.enabled:
            logger.info("LockSweeper is disabled, skipping start")
            return

        if self._is_running:
            logger.warning("LockSweeper already running")
            return

        scheduler = AsyncIOScheduler()
        self._scheduler = scheduler

        scheduler.add_job(
            self.sweep,
            IntervalTrigger(seconds=self.interval_seconds),
            id="slot_lock_sweep",
            replace_existing=True,
            name="Expired Slot Lock Sweep",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._is_running = True
        logger.info(f"LockSweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the sweeper gracefully."""
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("LockSweeper stopped")

    async def sweep(self) -> tuple[int, int]:
        """Run one sweep.

        Abandoned checkouts are cancelled before the remaining lapsed locks
        are released, in one transaction, so a freed slot never has a
        pending appointment left on it.

        Returns:
            Number of released locks and of cancelled appointments
        """
        try:
            async with self.services_scope() as services, services.unit_of_work.transaction():
                cancelled = await services.appointment_scheduler.expire_abandoned_checkouts()
                released = await services.time_slot_manager.sweep_expired_locks()
        except Exception as e:
            logger.error(f"Error sweeping expired slot locks: {e}", exc_info=True)
            return 0, 0

        if released or cancelled:
            logger.info(f"Lock sweep released {released} slots and cancelled {cancelled} appointments")
        return released, cancelled
