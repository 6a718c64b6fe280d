"""
Application lifecycle management using the FastAPI lifespan pattern.

Startup registers the notification handlers and starts the expired-lock
sweeper; shutdown stops it and releases HTTP clients and the engine.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from careflow.config.settings import get_settings
from careflow.core.container import get_container
from careflow.core.domain import DomainEventPublisher
from careflow.database.async_db import dispose_engine
from careflow.domains.scheduling.infrastructure.notifications import register_notification_handlers
from careflow.domains.scheduling.infrastructure.scheduler import LockSweeper

logger = logging.getLogger(__name__)


class LifecycleManager:
    """Owns the lock sweeper and the event subscriptions of one running app."""

    def __init__(self) -> None:
        self._sweeper: LockSweeper | None = None
        self._initialized = False

    @property
    def sweeper(self) -> LockSweeper | None:
        return self._sweeper

    async def startup(self) -> None:
        """Subscribe notifications and start the sweeper. Safe to call twice."""
        if self._initialized:
            logger.warning("Lifecycle already initialized, skipping startup")
            return

        logger.info("Starting scheduling services")

        self._verify_configurations()

        container = get_container()
        register_notification_handlers(container.get_notification_service())

        self._sweeper = container.create_lock_sweeper()
        await self._sweeper.start()

        self._initialized = True
        logger.info("Application lifecycle startup completed")

    async def shutdown(self) -> None:
        """Stop the sweeper, drop subscriptions, close clients and the engine."""
        if not self._initialized:
            logger.warning("Lifecycle not initialized, skipping shutdown")
            return

        logger.info("Stopping scheduling services")

        if self._sweeper is not None:
            await self._sweeper.stop()
            self._sweeper = None

        DomainEventPublisher.clear_handlers()
        await get_container().close()
        await dispose_engine()

        self._initialized = False
        logger.info("Application lifecycle shutdown completed")

    def _verify_configurations(self) -> None:
        """Log configuration gaps that change runtime behaviour."""
        settings = get_settings()
        if not settings.PAYMENT_GATEWAY_URL:
            logger.warning("PAYMENT_GATEWAY_URL not configured - checkouts are opened without a URL")
        if not settings.PAYMENT_WEBHOOK_SECRET:
            logger.warning("PAYMENT_WEBHOOK_SECRET not configured - webhook signatures are not verified")
        if not settings.NOTIFICATION_WEBHOOK_URL:
            logger.info("NOTIFICATION_WEBHOOK_URL not configured - notifications are only logged")
        if not settings.SLOT_LOCK_SWEEP_ENABLED:
            logger.info("Slot lock sweep is disabled via SLOT_LOCK_SWEEP_ENABLED=False")


_lifecycle_manager: LifecycleManager | None = None


def get_lifecycle_manager() -> LifecycleManager:
    """Get or create the global lifecycle manager instance."""
    global _lifecycle_manager
    if _lifecycle_manager is None:
        _lifecycle_manager = LifecycleManager()
    return _lifecycle_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    lifecycle = get_lifecycle_manager()
    await lifecycle.startup()
    try:
        yield
    finally:
        await lifecycle.shutdown()
