"""
Scheduling Domain Value Objects
"""

from .scheduling import (
    DAY_NAMES,
    AvailabilityWindow,
    FeeSchedule,
    ReportAttachment,
    SchedulingPolicy,
    VitalSigns,
    day_of_week_for,
    hours_between,
)
from .statuses import (
    APPOINTMENT_TRANSITIONS,
    SLOT_TRANSITIONS,
    ActorRole,
    AppointmentStatus,
    FeeStatus,
    FeeType,
    PatientCondition,
    PaymentStatus,
    SessionType,
    SlotStatus,
)

__all__ = [
    "ActorRole",
    "AppointmentStatus",
    "APPOINTMENT_TRANSITIONS",
    "AvailabilityWindow",
    "DAY_NAMES",
    "day_of_week_for",
    "FeeSchedule",
    "FeeStatus",
    "FeeType",
    "hours_between",
    "PatientCondition",
    "PaymentStatus",
    "ReportAttachment",
    "SchedulingPolicy",
    "SessionType",
    "SLOT_TRANSITIONS",
    "SlotStatus",
    "VitalSigns",
]
