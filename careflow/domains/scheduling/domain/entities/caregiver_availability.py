"""
CaregiverAvailability Entity

Weekly recurring window in which a caregiver accepts sessions.
"""

from dataclasses import dataclass
from datetime import date, time

from careflow.core.domain import Entity, ValidationException, generate_uuid_str

from ..value_objects import DAY_NAMES, AvailabilityWindow, day_of_week_for


@dataclass
class CaregiverAvailability(Entity[str]):
    caregiver_id: str = ""
    day_of_week: int = 0  # 0=Sunday ... 6=Saturday
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    is_active: bool = True

    @classmethod
    def create(
        cls,
        caregiver_id: str,
        day_of_week: int,
        start_time: time,
        end_time: time,
        is_active: bool = True,
    ) -> "CaregiverAvailability":
        availability = cls(
            id=generate_uuid_str(),
            caregiver_id=caregiver_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_active=is_active,
        )
        availability.validate()
        return availability

    def validate(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValidationException("Day of week must be between 0 (Sunday) and 6 (Saturday)", field="day_of_week")
        if self.start_time >= self.end_time:
            raise ValidationException("Start time must be before end time", field="start_time")

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def overlaps(self, other: "CaregiverAvailability") -> bool:
        return (
            self.day_of_week == other.day_of_week
            and self.start_time < other.end_time
            and other.start_time < self.end_time
        )

    def applies_to(self, day: date) -> bool:
        return self.is_active and day_of_week_for(day) == self.day_of_week

    def window_for(self, day: date) -> AvailabilityWindow:
        return AvailabilityWindow(date=day, start_time=self.start_time, end_time=self.end_time)
