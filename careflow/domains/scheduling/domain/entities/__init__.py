"""
Scheduling Domain Entities
"""

from .appointment import Appointment
from .care_session_report import CareSessionReport
from .caregiver_availability import CaregiverAvailability
from .payment_transaction import PaymentTransaction
from .reschedule_record import RescheduleRecord
from .specialty import Specialty
from .time_slot import TimeSlot

__all__ = [
    "Appointment",
    "CareSessionReport",
    "CaregiverAvailability",
    "PaymentTransaction",
    "RescheduleRecord",
    "Specialty",
    "TimeSlot",
]
