"""
Scheduling SQLAlchemy persistence
"""

from .models import (
    AppointmentModel,
    AppointmentRescheduleModel,
    CaregiverAvailabilityModel,
    CareSessionReportModel,
    PaymentTransactionModel,
    SpecialtyModel,
    TimeSlotModel,
)
from .unit_of_work import SchedulingUnitOfWork

__all__ = [
    "AppointmentModel",
    "AppointmentRescheduleModel",
    "CareSessionReportModel",
    "CaregiverAvailabilityModel",
    "PaymentTransactionModel",
    "SchedulingUnitOfWork",
    "SpecialtyModel",
    "TimeSlotModel",
]
