"""
Reschedule Policy

Pure validation of a reschedule request against the scheduling policy.
The checks run in a fixed order and the first failure wins.
"""

from dataclasses import dataclass
from datetime import datetime

from careflow.core.domain import DomainException

from ..entities import Appointment, TimeSlot
from ..exceptions import (
    CutoffExceededException,
    InvalidTransitionException,
    MaxReschedulesExceededException,
    SlotUnavailableException,
    WrongCaregiverException,
)
from ..value_objects import AppointmentStatus, SchedulingPolicy


@dataclass
class RescheduleEligibility:
    """Advisory answer for clients. Never trusted by the server."""

    appointment_id: str
    can_reschedule: bool
    hours_until: float
    reschedule_count: int
    remaining_reschedules: int
    cutoff_hours: int
    blocking_reason: str | None = None


class ReschedulePolicy:
    def __init__(self, policy: SchedulingPolicy):
        self.policy = policy

    def validate_appointment(self, appointment: Appointment, now: datetime) -> None:
        """Status, cutoff and count checks, in that order."""
        if appointment.status != AppointmentStatus.SESSION_WAITING:
            raise InvalidTransitionException("appointment", "reschedule", appointment.status.value)

        hours_until = appointment.hours_until(now)
        if hours_until < self.policy.reschedule_cutoff_hours:
            raise CutoffExceededException(appointment.id or "", hours_until, self.policy.reschedule_cutoff_hours)

        if appointment.reschedule_count >= self.policy.max_reschedules:
            raise MaxReschedulesExceededException(
                appointment.id or "", appointment.reschedule_count, self.policy.max_reschedules
            )

    def validate_target(self, appointment: Appointment, new_slot: TimeSlot) -> None:
        if new_slot.caregiver_id != appointment.caregiver_id:
            raise WrongCaregiverException(appointment.id or "", appointment.caregiver_id, new_slot.caregiver_id)
        if new_slot.id == appointment.time_slot_id:
            raise SlotUnavailableException(
                new_slot.id or "",
                new_slot.status.value,
                message="Appointment is already scheduled in this time slot",
            )

    def eligibility(self, appointment: Appointment, now: datetime) -> RescheduleEligibility:
        blocking_reason = None
        try:
            self.validate_appointment(appointment, now)
        except DomainException as e:
            blocking_reason = e.code

        return RescheduleEligibility(
            appointment_id=appointment.id or "",
            can_reschedule=blocking_reason is None,
            hours_until=round(appointment.hours_until(now), 2),
            reschedule_count=appointment.reschedule_count,
            remaining_reschedules=max(self.policy.max_reschedules - appointment.reschedule_count, 0),
            cutoff_hours=self.policy.reschedule_cutoff_hours,
            blocking_reason=blocking_reason,
        )
