"""
Scheduling Status Value Objects

Closed status enums for slots, appointments and fee payments, together
with the transition tables that the entities enforce.
"""

from careflow.core.domain import StatusEnum


class SlotStatus(StatusEnum):
    """
    Time slot availability.

    Valid transitions:
    - AVAILABLE -> LOCKED
    - LOCKED -> BOOKED, AVAILABLE (release or lock expiry)
    - BOOKED -> AVAILABLE (cancellation or reschedule)
    """

    AVAILABLE = "available"
    LOCKED = "locked"
    BOOKED = "booked"

    def can_transition_to(self, new_status: "SlotStatus") -> bool:
        """Check if transition to new status is valid."""
        return new_status in SLOT_TRANSITIONS[self]


SLOT_TRANSITIONS: dict[SlotStatus, frozenset[SlotStatus]] = {
    SlotStatus.AVAILABLE: frozenset({SlotStatus.LOCKED}),
    SlotStatus.LOCKED: frozenset({SlotStatus.BOOKED, SlotStatus.AVAILABLE, SlotStatus.LOCKED}),
    SlotStatus.BOOKED: frozenset({SlotStatus.AVAILABLE}),
}


class AppointmentStatus(StatusEnum):
    """
    Appointment lifecycle states.

    Valid transitions:
    - PENDING -> SESSION_WAITING (booking fee completed), CANCELLED
    - SESSION_WAITING -> SESSION_WAITING (reschedule), SESSION_ATTENDED, CANCELLED
    - SESSION_ATTENDED -> (terminal)
    - CANCELLED -> (terminal)
    """

    PENDING = "pending"
    SESSION_WAITING = "session_waiting"
    SESSION_ATTENDED = "session_attended"
    CANCELLED = "cancelled"

    def can_transition_to(self, new_status: "AppointmentStatus") -> bool:
        """Check if transition to new status is valid."""
        return new_status in APPOINTMENT_TRANSITIONS[self]

    def is_final(self) -> bool:
        """Check if this is a terminal state."""
        return not APPOINTMENT_TRANSITIONS[self]

    def is_active(self) -> bool:
        """Check if the appointment still holds its slot."""
        return self in (AppointmentStatus.PENDING, AppointmentStatus.SESSION_WAITING)


APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.SESSION_WAITING, AppointmentStatus.CANCELLED}),
    AppointmentStatus.SESSION_WAITING: frozenset(
        {
            AppointmentStatus.SESSION_WAITING,
            AppointmentStatus.SESSION_ATTENDED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.SESSION_ATTENDED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


class FeeStatus(StatusEnum):
    """Per-appointment status of one fee track."""

    PENDING = "pending"
    COMPLETED = "completed"


class FeeType(StatusEnum):
    """The two independently paid fees of an appointment."""

    BOOKING_FEE = "booking_fee"
    SESSION_FEE = "session_fee"


class PaymentStatus(StatusEnum):
    """Payment transaction status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

    def is_final(self) -> bool:
        """Check if the transaction can no longer change."""
        return self != PaymentStatus.PENDING


class SessionType(StatusEnum):
    """How the care session is delivered."""

    IN_PERSON = "in_person"
    TELECONFERENCE = "teleconference"


class PatientCondition(StatusEnum):
    """Patient status recorded in a care session report."""

    STABLE = "stable"
    IMPROVING = "improving"
    DETERIORATING = "deteriorating"
    CRITICAL = "critical"
    CURED = "cured"
    DECEASED = "deceased"


class ActorRole(StatusEnum):
    """Roles of the pre-validated actor performing an operation."""

    PATIENT = "patient"
    CAREGIVER = "caregiver"
    ADMIN = "admin"
    SYSTEM = "system"
