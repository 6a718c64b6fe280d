"""
Caregiver Availability Repository Port
"""

from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import CaregiverAvailability


@runtime_checkable
class ICaregiverAvailabilityRepository(Protocol):
    async def find_by_id(self, availability_id: str) -> CaregiverAvailability | None:
        ...

    async def find_by_caregiver(self, caregiver_id: str, active_only: bool = False) -> list[CaregiverAvailability]:
        """Weekly windows ordered by day of week and start time."""
        ...

    async def add(self, availability: CaregiverAvailability) -> CaregiverAvailability:
        ...

    async def save(self, availability: CaregiverAvailability) -> CaregiverAvailability:
        ...

    async def delete(self, availability_id: str) -> bool:
        ...

    async def delete_by_caregiver(self, caregiver_id: str) -> int:
        ...
