"""
Scheduling API Dependencies

FastAPI dependencies for the scheduling domain: per-request services and
the acting user taken from the identity headers.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.container import SchedulingServices, get_container
from careflow.core.domain import AuthorizationException
from careflow.database.async_db import get_async_db
from careflow.domains.scheduling.application.services import (
    AppointmentScheduler,
    AvailabilityService,
    PaymentGate,
    ReportGate,
    ReschedulePolicyEngine,
    TimeSlotManager,
)
from careflow.domains.scheduling.domain.entities import Appointment
from careflow.domains.scheduling.domain.value_objects import ActorRole

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_async_db)]


@dataclass(frozen=True)
class ActorContext:
    """Identity of the caller, validated upstream and forwarded as headers."""

    actor_id: str
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    def require(self, allowed: bool, operation: str, resource: str | None = None) -> None:
        """Raise unless `allowed` or the caller is an admin."""
        if allowed or self.is_admin:
            return
        raise AuthorizationException(operation, resource, self.actor_id)

    def require_self(self, user_id: str, role: ActorRole, operation: str) -> None:
        """Only `user_id` acting as `role` (or an admin) may proceed."""
        self.require(self.role == role and self.actor_id == user_id, operation, user_id)

    def is_participant(self, appointment: Appointment) -> bool:
        if self.role == ActorRole.PATIENT:
            return appointment.patient_id == self.actor_id
        if self.role == ActorRole.CAREGIVER:
            return appointment.caregiver_id == self.actor_id
        return False

    def require_participant(self, appointment: Appointment, operation: str) -> None:
        self.require(self.is_participant(appointment), operation, f"appointment {appointment.id}")


def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> ActorContext:
    """Read the acting user from the X-Actor-Id and X-Actor-Role headers."""
    if not x_actor_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing actor identity")

    try:
        role = ActorRole(x_actor_role or ActorRole.PATIENT.value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid actor role") from e

    # The system role is reserved for background jobs.
    if role == ActorRole.SYSTEM:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid actor role")

    return ActorContext(actor_id=x_actor_id, role=role)


def get_scheduling_services(db: DbSession) -> SchedulingServices:
    """Get the scheduling services bound to the request session."""
    return get_container().create_services(db)


ServicesDep = Annotated[SchedulingServices, Depends(get_scheduling_services)]


def get_time_slot_manager(services: ServicesDep) -> TimeSlotManager:
    return services.time_slot_manager


def get_appointment_scheduler(services: ServicesDep) -> AppointmentScheduler:
    return services.appointment_scheduler


def get_reschedule_engine(services: ServicesDep) -> ReschedulePolicyEngine:
    return services.reschedule_engine


def get_payment_gate(services: ServicesDep) -> PaymentGate:
    return services.payment_gate


def get_report_gate(services: ServicesDep) -> ReportGate:
    return services.report_gate


def get_availability_service(services: ServicesDep) -> AvailabilityService:
    return services.availability_service


# Type aliases for route dependencies
Actor = Annotated[ActorContext, Depends(get_actor)]
TimeSlotManagerDep = Annotated[TimeSlotManager, Depends(get_time_slot_manager)]
AppointmentSchedulerDep = Annotated[AppointmentScheduler, Depends(get_appointment_scheduler)]
RescheduleEngineDep = Annotated[ReschedulePolicyEngine, Depends(get_reschedule_engine)]
PaymentGateDep = Annotated[PaymentGate, Depends(get_payment_gate)]
ReportGateDep = Annotated[ReportGate, Depends(get_report_gate)]
AvailabilityServiceDep = Annotated[AvailabilityService, Depends(get_availability_service)]


__all__ = [
    "Actor",
    "ActorContext",
    "AppointmentSchedulerDep",
    "AvailabilityServiceDep",
    "DbSession",
    "PaymentGateDep",
    "ReportGateDep",
    "RescheduleEngineDep",
    "TimeSlotManagerDep",
    "get_actor",
    "get_scheduling_services",
]
