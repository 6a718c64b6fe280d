"""
Scheduling Application Services
"""

from .appointment_scheduler import PAYMENT_TIMEOUT_REASON, AppointmentScheduler
from .availability_service import AvailabilityService, WeeklyWindow
from .payment_gate import PaymentGate
from .report_gate import ReportGate
from .reschedule_policy_engine import ReschedulePolicyEngine
from .time_slot_manager import TimeSlotManager

__all__ = [
    "AppointmentScheduler",
    "AvailabilityService",
    "PAYMENT_TIMEOUT_REASON",
    "PaymentGate",
    "ReportGate",
    "ReschedulePolicyEngine",
    "TimeSlotManager",
    "WeeklyWindow",
]
