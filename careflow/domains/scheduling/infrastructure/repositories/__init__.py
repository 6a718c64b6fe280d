"""
Scheduling Repositories

SQLAlchemy implementations of the scheduling repository ports.
"""

from .appointment_repository import SQLAlchemyAppointmentRepository
from .availability_repository import SQLAlchemyCaregiverAvailabilityRepository
from .payment_repository import SQLAlchemyPaymentTransactionRepository
from .report_repository import SQLAlchemyCareSessionReportRepository
from .reschedule_history_repository import SQLAlchemyRescheduleHistoryRepository
from .specialty_repository import SQLAlchemySpecialtyRepository
from .time_slot_repository import SQLAlchemyTimeSlotRepository

__all__ = [
    "SQLAlchemyAppointmentRepository",
    "SQLAlchemyCareSessionReportRepository",
    "SQLAlchemyCaregiverAvailabilityRepository",
    "SQLAlchemyPaymentTransactionRepository",
    "SQLAlchemyRescheduleHistoryRepository",
    "SQLAlchemySpecialtyRepository",
    "SQLAlchemyTimeSlotRepository",
]
