"""
Specialty Repository Port
"""

from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import Specialty


@runtime_checkable
class ISpecialtyRepository(Protocol):
    """Specialties are managed elsewhere; the scheduling core reads fees from them."""

    async def find_by_id(self, specialty_id: str) -> Specialty | None:
        ...

    async def add(self, specialty: Specialty) -> Specialty:
        ...
