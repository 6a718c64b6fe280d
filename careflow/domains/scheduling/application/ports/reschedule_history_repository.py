"""
Reschedule History Repository Port
"""

from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import RescheduleRecord


@runtime_checkable
class IRescheduleHistoryRepository(Protocol):
    async def add(self, record: RescheduleRecord) -> RescheduleRecord:
        ...

    async def find_by_appointment(self, appointment_id: str) -> list[RescheduleRecord]:
        """History of one appointment, oldest first."""
        ...
