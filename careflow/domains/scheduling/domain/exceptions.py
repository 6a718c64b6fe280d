"""
Scheduling Domain Exceptions

Specific, machine-readable failures of the scheduling core. Each carries
a stable error code that the API layer maps to an HTTP status.
"""

from datetime import datetime
from typing import Any

from careflow.core.domain import (
    DomainException,
    DuplicateEntityException,
    InvalidOperationException,
    PaymentException,
)


class SlotUnavailableException(DomainException):
    """Raised when a slot cannot be locked because it is held or booked."""

    def __init__(self, slot_id: str, current_status: str | None = None, message: str | None = None):
        self.slot_id = slot_id
        self.current_status = current_status
        details: dict[str, Any] = {"time_slot_id": slot_id}
        if current_status:
            details["current_status"] = current_status
        super().__init__(message or f"Time slot {slot_id} is not available", "SLOT_UNAVAILABLE", details)


class LockExpiredException(DomainException):
    """Raised when booking a slot whose lock lapsed or belongs to another flow."""

    def __init__(self, slot_id: str, locked_until: datetime | None = None):
        self.slot_id = slot_id
        self.locked_until = locked_until
        super().__init__(
            f"Lock on time slot {slot_id} has expired",
            "LOCK_EXPIRED",
            {
                "time_slot_id": slot_id,
                "locked_until": locked_until.isoformat() if locked_until else None,
            },
        )


class CutoffExceededException(DomainException):
    """Raised when a reschedule is requested inside the cutoff window."""

    def __init__(self, appointment_id: str, hours_until: float, cutoff_hours: int):
        self.appointment_id = appointment_id
        self.hours_until = hours_until
        self.cutoff_hours = cutoff_hours
        super().__init__(
            f"Appointments can only be rescheduled at least {cutoff_hours} hours in advance",
            "RESCHEDULE_CUTOFF_EXCEEDED",
            {
                "appointment_id": appointment_id,
                "hours_until": round(hours_until, 2),
                "cutoff_hours": cutoff_hours,
            },
        )


class MaxReschedulesExceededException(DomainException):
    """Raised when an appointment has used all of its reschedules."""

    def __init__(self, appointment_id: str, reschedule_count: int, max_reschedules: int):
        self.appointment_id = appointment_id
        self.reschedule_count = reschedule_count
        self.max_reschedules = max_reschedules
        super().__init__(
            f"Appointment {appointment_id} has reached the maximum of {max_reschedules} reschedules",
            "MAX_RESCHEDULES_EXCEEDED",
            {
                "appointment_id": appointment_id,
                "reschedule_count": reschedule_count,
                "max_reschedules": max_reschedules,
            },
        )


class WrongCaregiverException(DomainException):
    """Raised when the target slot belongs to a different caregiver."""

    def __init__(self, appointment_id: str, expected_caregiver_id: str, slot_caregiver_id: str):
        self.appointment_id = appointment_id
        self.expected_caregiver_id = expected_caregiver_id
        self.slot_caregiver_id = slot_caregiver_id
        super().__init__(
            "The new time slot must belong to the same caregiver",
            "WRONG_CAREGIVER",
            {
                "appointment_id": appointment_id,
                "expected_caregiver_id": expected_caregiver_id,
                "slot_caregiver_id": slot_caregiver_id,
            },
        )


class InvalidTransitionException(InvalidOperationException):
    """Raised on any status change the transition table does not allow."""

    def __init__(self, entity_type: str, operation: str, current_state: str, message: str | None = None):
        self.entity_type = entity_type
        super().__init__(
            operation=operation,
            current_state=current_state,
            message=message or f"Cannot {operation} a {entity_type} in state '{current_state}'",
            code="INVALID_TRANSITION",
        )
        self.details["entity_type"] = entity_type


class ReportExistsException(DuplicateEntityException):
    """Raised when a second care session report is submitted."""

    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__("CareSessionReport", "appointment_id", appointment_id, code="REPORT_EXISTS")


class DuplicateCompletionException(DomainException):
    """Raised internally when a payment reference was already applied."""

    def __init__(self, external_reference: str):
        self.external_reference = external_reference
        super().__init__(
            f"Payment {external_reference} was already processed",
            "DUPLICATE_COMPLETION",
            {"external_reference": external_reference},
        )


class PaymentMismatchException(PaymentException):
    """Raised when a callback does not match the recorded transaction."""

    def __init__(self, external_reference: str, reason: str):
        super().__init__(
            "Payment could not be applied",
            payment_id=external_reference,
            reason=reason,
            code="PAYMENT_MISMATCH",
        )
