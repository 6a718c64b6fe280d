"""
Dependency Injection Container.

Wires the scheduling repositories and services to one database session.
Gateway and notification clients are process-wide singletons; everything
else is created per session so a request never shares a unit of work.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import cached_property
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from careflow.config.settings import Settings, get_settings
from careflow.core.clock import Clock, utc_now
from careflow.database.async_db import get_async_db_context
from careflow.domains.scheduling.application.ports import INotificationService, IPaymentGateway
from careflow.domains.scheduling.application.services import (
    AppointmentScheduler,
    AvailabilityService,
    PaymentGate,
    ReportGate,
    ReschedulePolicyEngine,
    TimeSlotManager,
)
from careflow.domains.scheduling.domain.value_objects import SchedulingPolicy
from careflow.domains.scheduling.infrastructure.gateways import HttpPaymentGateway
from careflow.domains.scheduling.infrastructure.notifications import (
    LoggingNotificationService,
    WebhookNotificationService,
)
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy import SchedulingUnitOfWork
from careflow.domains.scheduling.infrastructure.repositories import (
    SQLAlchemyAppointmentRepository,
    SQLAlchemyCareSessionReportRepository,
    SQLAlchemyCaregiverAvailabilityRepository,
    SQLAlchemyPaymentTransactionRepository,
    SQLAlchemyRescheduleHistoryRepository,
    SQLAlchemySpecialtyRepository,
    SQLAlchemyTimeSlotRepository,
)
from careflow.domains.scheduling.infrastructure.scheduler import LockSweeper

logger = logging.getLogger(__name__)


class SchedulingServices:
    """Scheduling services bound to one session and one unit of work."""

    def __init__(
        self,
        session: AsyncSession,
        policy: SchedulingPolicy,
        payment_gateway: IPaymentGateway,
        clock: Clock = utc_now,
    ):
        self.session = session
        self.policy = policy
        self.clock = clock
        self.unit_of_work = SchedulingUnitOfWork(session)
        self._payment_gateway = payment_gateway

        # Repositories
        self.slot_repository = SQLAlchemyTimeSlotRepository(session)
        self.appointment_repository = SQLAlchemyAppointmentRepository(session)
        self.payment_repository = SQLAlchemyPaymentTransactionRepository(session)
        self.report_repository = SQLAlchemyCareSessionReportRepository(session)
        self.availability_repository = SQLAlchemyCaregiverAvailabilityRepository(session)
        self.specialty_repository = SQLAlchemySpecialtyRepository(session)
        self.history_repository = SQLAlchemyRescheduleHistoryRepository(session)

    @cached_property
    def time_slot_manager(self) -> TimeSlotManager:
        return TimeSlotManager(
            slot_repository=self.slot_repository,
            availability_repository=self.availability_repository,
            unit_of_work=self.unit_of_work,
            policy=self.policy,
            clock=self.clock,
        )

    @cached_property
    def appointment_scheduler(self) -> AppointmentScheduler:
        return AppointmentScheduler(
            slot_manager=self.time_slot_manager,
            appointment_repository=self.appointment_repository,
            specialty_repository=self.specialty_repository,
            report_repository=self.report_repository,
            unit_of_work=self.unit_of_work,
            policy=self.policy,
            clock=self.clock,
        )

    @cached_property
    def reschedule_engine(self) -> ReschedulePolicyEngine:
        return ReschedulePolicyEngine(
            slot_manager=self.time_slot_manager,
            appointment_repository=self.appointment_repository,
            history_repository=self.history_repository,
            unit_of_work=self.unit_of_work,
            policy=self.policy,
            clock=self.clock,
        )

    @cached_property
    def payment_gate(self) -> PaymentGate:
        return PaymentGate(
            appointment_repository=self.appointment_repository,
            payment_repository=self.payment_repository,
            scheduler=self.appointment_scheduler,
            payment_gateway=self._payment_gateway,
            unit_of_work=self.unit_of_work,
            clock=self.clock,
        )

    @cached_property
    def report_gate(self) -> ReportGate:
        return ReportGate(
            appointment_repository=self.appointment_repository,
            report_repository=self.report_repository,
            scheduler=self.appointment_scheduler,
            unit_of_work=self.unit_of_work,
            clock=self.clock,
        )

    @cached_property
    def availability_service(self) -> AvailabilityService:
        return AvailabilityService(
            availability_repository=self.availability_repository,
            unit_of_work=self.unit_of_work,
        )


class SchedulingContainer:
    """
    Scheduling dependency container.

    Single Responsibility: Create scheduling services and the shared
    clients they depend on.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Clock = utc_now,
        payment_gateway: IPaymentGateway | None = None,
        notification_service: INotificationService | None = None,
    ):
        """
        Initialize container.

        Args:
            settings: Settings to build from, defaults to the process settings
            clock: Source of the current time
            payment_gateway: Override of the configured gateway client
            notification_service: Override of the configured notifier
        """
        self.settings = settings or get_settings()
        self.clock = clock
        self.policy = SchedulingPolicy.from_settings(self.settings)
        self._payment_gateway = payment_gateway
        self._notification_service = notification_service

        logger.info(
            f"SchedulingContainer initialized (cutoff={self.policy.reschedule_cutoff_hours}h, "
            f"max_reschedules={self.policy.max_reschedules}, lock_ttl={self.policy.lock_ttl_minutes}m)"
        )

    # ==================== SINGLETONS ====================

    def get_payment_gateway(self) -> IPaymentGateway:
        if self._payment_gateway is None:
            self._payment_gateway = HttpPaymentGateway(
                base_url=self.settings.PAYMENT_GATEWAY_URL,
                api_key=self.settings.PAYMENT_GATEWAY_API_KEY,
                timeout=self.settings.PAYMENT_GATEWAY_TIMEOUT,
                callback_url=self.settings.PAYMENT_CALLBACK_URL,
                return_url=self.settings.PAYMENT_RETURN_URL,
            )
        return self._payment_gateway

    def get_notification_service(self) -> INotificationService:
        if self._notification_service is None:
            if self.settings.NOTIFICATION_WEBHOOK_URL:
                self._notification_service = WebhookNotificationService(
                    url=self.settings.NOTIFICATION_WEBHOOK_URL,
                    timeout=self.settings.NOTIFICATION_TIMEOUT,
                )
            else:
                self._notification_service = LoggingNotificationService()
        return self._notification_service

    # ==================== PER SESSION ====================

    def create_services(self, db: AsyncSession) -> SchedulingServices:
        """Create the scheduling services for one session."""
        return SchedulingServices(
            session=db,
            policy=self.policy,
            payment_gateway=self.get_payment_gateway(),
            clock=self.clock,
        )

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[SchedulingServices]:
        """Services over a fresh session, for work outside a request."""
        async with get_async_db_context() as session:
            yield self.create_services(session)

    def create_lock_sweeper(self) -> LockSweeper:
        return LockSweeper(
            services_scope=self.session_scope,
            interval_seconds=self.settings.SLOT_LOCK_SWEEP_INTERVAL_SECONDS,
            enabled=self.settings.SLOT_LOCK_SWEEP_ENABLED,
        )

    async def close(self) -> None:
        """Close HTTP clients held by the singletons."""
        for client in (self._payment_gateway, self._notification_service):
            close = getattr(client, "close", None)
            if close is not None:
                await close()


_container: SchedulingContainer | None = None


def get_container() -> SchedulingContainer:
    """Get the process-wide container, creating it on first use."""
    global _container
    if _container is None:
        _container = SchedulingContainer()
    return _container


def set_container(container: SchedulingContainer | None) -> None:
    """Install a container (tests) or drop the current one."""
    global _container
    _container = container
