"""
Slot Generation Service

Domain service that turns availability windows into concrete time slots.
"""

from datetime import date, timedelta

from careflow.core.domain import Money

from ..entities import CaregiverAvailability, TimeSlot
from ..value_objects import AvailabilityWindow


class SlotGenerationService:
    """
    Partition availability into fixed-duration slots.

    Generation is idempotent: candidates that start where a slot already
    exists, or that overlap one, are skipped.

    Example:
        ```python
        service = SlotGenerationService(default_duration_minutes=180)
        window = AvailabilityWindow(date(2025, 3, 10), time(9), time(18))
        new_slots = service.build_slots("cg-1", window, price, existing=[])
        # 09-12, 12-15, 15-18
        ```
    """

    def __init__(self, default_duration_minutes: int = 180):
        self.default_duration_minutes = default_duration_minutes

    def build_slots(
        self,
        caregiver_id: str,
        window: AvailabilityWindow,
        price: Money,
        existing: list[TimeSlot],
        duration_minutes: int | None = None,
    ) -> list[TimeSlot]:
        duration = duration_minutes or self.default_duration_minutes
        same_day = [slot for slot in existing if slot.slot_date == window.date]

        new_slots: list[TimeSlot] = []
        for start_time, end_time in window.partition(duration):
            if any(slot.overlaps(start_time, end_time) for slot in same_day):
                continue
            slot = TimeSlot.create(
                caregiver_id=caregiver_id,
                slot_date=window.date,
                start_time=start_time,
                end_time=end_time,
                price=price,
                duration_minutes=duration,
            )
            new_slots.append(slot)
            same_day.append(slot)

        return new_slots

    def windows_for_range(
        self,
        availability: list[CaregiverAvailability],
        start_date: date,
        end_date: date,
    ) -> list[AvailabilityWindow]:
        """Expand weekly availability over an inclusive date range."""
        windows: list[AvailabilityWindow] = []
        current_date = start_date

        while current_date <= end_date:
            for entry in availability:
                if entry.applies_to(current_date):
                    windows.append(entry.window_for(current_date))
            current_date += timedelta(days=1)

        return windows
