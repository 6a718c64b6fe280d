"""
Shared pytest fixtures for all tests.

Integration tests run against a file-backed SQLite database created per
test. Each service call opens its own session through the container's
`session_scope`, like requests do in the application.
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["SLOT_LOCK_SWEEP_ENABLED"] = "false"

from careflow.config.settings import get_settings, reset_settings  # noqa: E402
from careflow.core.container import SchedulingContainer, set_container  # noqa: E402
from careflow.core.domain import DomainEventPublisher  # noqa: E402
from careflow.database.async_db import configure_engine, create_async_database_engine, dispose_engine  # noqa: E402
from careflow.database.setup import DatabaseSetup  # noqa: E402
from careflow.domains.scheduling.domain.value_objects import SchedulingPolicy  # noqa: E402
from careflow.domains.scheduling.infrastructure.notifications import register_notification_handlers  # noqa: E402
from tests.utils.factories import (  # noqa: E402
    FakeClock,
    RecordingNotificationService,
    RecordingPaymentGateway,
    create_specialty,
)

# ============================================================================
# DOMAIN FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at Monday 2030-03-04 08:00 UTC."""
    return FakeClock()


@pytest.fixture
def policy() -> SchedulingPolicy:
    """Default policy: 12h cutoff, 2 reschedules, 180 min slots, 15 min locks."""
    return SchedulingPolicy()


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database and install it as the application engine."""
    reset_settings()
    engine = create_async_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'careflow.db'}")
    await DatabaseSetup(engine).create_tables()
    configure_engine(engine)

    yield engine

    await dispose_engine()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def payment_gateway() -> RecordingPaymentGateway:
    return RecordingPaymentGateway()


@pytest.fixture
def notifications() -> RecordingNotificationService:
    return RecordingNotificationService()


@pytest_asyncio.fixture
async def container(engine, clock, payment_gateway, notifications) -> AsyncGenerator[SchedulingContainer, None]:
    """Container wired to the test database, fake clock and recording doubles."""
    container = SchedulingContainer(
        settings=get_settings(),
        clock=clock,
        payment_gateway=payment_gateway,
        notification_service=notifications,
    )
    set_container(container)
    register_notification_handlers(notifications)

    yield container

    DomainEventPublisher.clear_handlers()
    set_container(None)


@pytest.fixture
def scope(container):
    """Open scheduling services over a fresh session: `async with scope() as services:`."""
    return container.session_scope


@pytest_asyncio.fixture
async def specialty(scope):
    """Seeded active specialty charging 5000 booking and 25000 session fees."""
    specialty = create_specialty()
    async with scope() as services:
        await services.specialty_repository.add(specialty)
    return specialty
