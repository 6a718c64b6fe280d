"""
Scheduling Domain Services
"""

from .reschedule_policy import RescheduleEligibility, ReschedulePolicy
from .slot_generation_service import SlotGenerationService

__all__ = [
    "RescheduleEligibility",
    "ReschedulePolicy",
    "SlotGenerationService",
]
