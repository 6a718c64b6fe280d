"""
Time Slot Repository Port

Interface for time slot data access following Clean Architecture.
"""

from datetime import date, datetime
from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import TimeSlot
from careflow.domains.scheduling.domain.value_objects import SlotStatus


@runtime_checkable
class ITimeSlotRepository(Protocol):
    """
    Time slot repository interface.

    `save` is a compare-and-set on the slot version: it must fail with
    `ConcurrencyException` when another transaction changed the slot
    after it was read. All slot transitions rely on this.
    """

    async def find_by_id(self, slot_id: str) -> TimeSlot | None:
        """
        Find time slot by ID.

        Args:
            slot_id: Unique slot identifier

        Returns:
            TimeSlot if found, None otherwise
        """
        ...

    async def find_by_ids(self, slot_ids: list[str]) -> list[TimeSlot]:
        """Find several slots at once, missing IDs are ignored."""
        ...

    async def find_many(
        self,
        caregiver_id: str | None = None,
        on_date: date | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        statuses: list[SlotStatus] | None = None,
        limit: int = 500,
    ) -> list[TimeSlot]:
        """
        Find slots by caregiver and date range.

        Args:
            caregiver_id: Restrict to one caregiver
            on_date: Exact date filter
            from_date: Inclusive lower date bound
            to_date: Inclusive upper date bound
            statuses: Stored statuses to include
            limit: Maximum results

        Returns:
            Slots ordered by date and start time
        """
        ...

    async def add_all(self, slots: list[TimeSlot]) -> None:
        """Insert new slots."""
        ...

    async def save(self, slot: TimeSlot) -> TimeSlot:
        """
        Persist slot changes if the stored version still matches.

        Raises:
            ConcurrencyException: When the slot was modified concurrently
        """
        ...

    async def release_expired_locks(self, now: datetime) -> int:
        """
        Rewrite locks that lapsed before `now` to available.

        Returns:
            Number of slots released
        """
        ...
