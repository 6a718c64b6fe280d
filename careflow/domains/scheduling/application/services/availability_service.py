"""
Availability Service

Weekly availability windows of caregivers, the input of range slot
generation.
"""

import logging
from dataclasses import dataclass
from datetime import time

from careflow.core.domain import EntityNotFoundException, ValidationException
from careflow.domains.scheduling.application.ports import ICaregiverAvailabilityRepository, IUnitOfWork
from careflow.domains.scheduling.domain.entities import CaregiverAvailability

logger = logging.getLogger(__name__)


@dataclass
class WeeklyWindow:
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True


class AvailabilityService:
    def __init__(self, availability_repository: ICaregiverAvailabilityRepository, unit_of_work: IUnitOfWork):
        self._availability = availability_repository
        self._uow = unit_of_work

    async def add_window(self, caregiver_id: str, window: WeeklyWindow) -> CaregiverAvailability:
        async with self._uow.transaction():
            existing = await self._availability.find_by_caregiver(caregiver_id)
            availability = CaregiverAvailability.create(
                caregiver_id=caregiver_id,
                day_of_week=window.day_of_week,
                start_time=window.start_time,
                end_time=window.end_time,
                is_active=window.is_active,
            )
            self._ensure_no_overlap(availability, existing)
            await self._availability.add(availability)

        logger.info(
            f"Added {availability.day_name} {window.start_time}-{window.end_time} availability "
            f"for caregiver {caregiver_id}"
        )
        return availability

    async def update_window(self, availability_id: str, window: WeeklyWindow) -> CaregiverAvailability:
        async with self._uow.transaction():
            availability = await self._get(availability_id)
            availability.day_of_week = window.day_of_week
            availability.start_time = window.start_time
            availability.end_time = window.end_time
            availability.is_active = window.is_active
            availability.validate()

            existing = await self._availability.find_by_caregiver(availability.caregiver_id)
            self._ensure_no_overlap(availability, existing)
            availability.touch()
            await self._availability.save(availability)

        return availability

    async def remove_window(self, availability_id: str) -> None:
        async with self._uow.transaction():
            await self._get(availability_id)
            await self._availability.delete(availability_id)

        logger.info(f"Removed availability {availability_id}")

    async def replace_all(self, caregiver_id: str, windows: list[WeeklyWindow]) -> list[CaregiverAvailability]:
        """Replace the caregiver's whole weekly schedule."""
        async with self._uow.transaction():
            await self._availability.delete_by_caregiver(caregiver_id)
            created: list[CaregiverAvailability] = []
            for window in windows:
                availability = CaregiverAvailability.create(
                    caregiver_id=caregiver_id,
                    day_of_week=window.day_of_week,
                    start_time=window.start_time,
                    end_time=window.end_time,
                    is_active=window.is_active,
                )
                self._ensure_no_overlap(availability, created)
                created.append(availability)
                await self._availability.add(availability)

        logger.info(f"Replaced weekly availability of caregiver {caregiver_id} with {len(created)} windows")
        return created

    async def get_window(self, availability_id: str) -> CaregiverAvailability:
        return await self._get(availability_id)

    async def list_windows(self, caregiver_id: str, active_only: bool = False) -> list[CaregiverAvailability]:
        return await self._availability.find_by_caregiver(caregiver_id, active_only=active_only)

    def _ensure_no_overlap(self, candidate: CaregiverAvailability, existing: list[CaregiverAvailability]) -> None:
        if not candidate.is_active:
            return
        for other in existing:
            if other.id != candidate.id and other.is_active and candidate.overlaps(other):
                raise ValidationException(
                    f"Availability overlaps an existing {other.day_name} window "
                    f"{other.start_time.strftime('%H:%M')}-{other.end_time.strftime('%H:%M')}",
                    field="start_time",
                )

    async def _get(self, availability_id: str) -> CaregiverAvailability:
        availability = await self._availability.find_by_id(availability_id)
        if availability is None:
            raise EntityNotFoundException("CaregiverAvailability", availability_id)
        return availability
