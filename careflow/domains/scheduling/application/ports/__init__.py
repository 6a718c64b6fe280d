"""
Scheduling Application Ports

Interfaces for repositories and external services.
"""

from .appointment_repository import IAppointmentRepository
from .availability_repository import ICaregiverAvailabilityRepository
from .external_services import CheckoutRequest, CheckoutSession, INotificationService, IPaymentGateway
from .payment_repository import IPaymentTransactionRepository
from .report_repository import ICareSessionReportRepository
from .reschedule_history_repository import IRescheduleHistoryRepository
from .specialty_repository import ISpecialtyRepository
from .time_slot_repository import ITimeSlotRepository
from .unit_of_work import IUnitOfWork

__all__ = [
    "CheckoutRequest",
    "CheckoutSession",
    "IAppointmentRepository",
    "ICareSessionReportRepository",
    "ICaregiverAvailabilityRepository",
    "INotificationService",
    "IPaymentGateway",
    "IPaymentTransactionRepository",
    "IRescheduleHistoryRepository",
    "ISpecialtyRepository",
    "ITimeSlotRepository",
    "IUnitOfWork",
]
