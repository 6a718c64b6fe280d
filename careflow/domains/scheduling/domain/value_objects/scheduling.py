"""
Scheduling Value Objects

Immutable building blocks for slot generation, fees, scheduling policy
and care session reports.
"""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

import pytz

from careflow.core.domain import DEFAULT_CURRENCY, Money, ValueObject

DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


def day_of_week_for(day: date) -> int:
    """Day of week with 0=Sunday ... 6=Saturday."""
    return (day.weekday() + 1) % 7


@dataclass(frozen=True)
class AvailabilityWindow(ValueObject):
    """
    A caregiver's availability on one calendar date.

    Partitioned into fixed-duration, non-overlapping slots. The trailing
    remainder shorter than the duration is dropped.
    """

    date: date
    start_time: time
    end_time: time

    def _validate(self) -> None:
        if self.start_time >= self.end_time:
            raise ValueError("Window start time must be before end time")

    def partition(self, duration_minutes: int) -> list[tuple[time, time]]:
        """Split the window into back-to-back slots of `duration_minutes`."""
        if duration_minutes <= 0:
            raise ValueError("Slot duration must be positive")

        slots: list[tuple[time, time]] = []
        step = timedelta(minutes=duration_minutes)
        window_end = datetime.combine(self.date, self.end_time)
        cursor = datetime.combine(self.date, self.start_time)

        while cursor + step <= window_end:
            slots.append((cursor.time(), (cursor + step).time()))
            cursor += step

        return slots

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"


@dataclass(frozen=True)
class FeeSchedule(ValueObject):
    """Booking fee plus session fee of one appointment."""

    booking_fee: Money
    session_fee: Money

    def _validate(self) -> None:
        if self.booking_fee.currency != self.session_fee.currency:
            raise ValueError("Booking and session fees must use the same currency")

    @property
    def total(self) -> Money:
        return self.booking_fee.add(self.session_fee)


@dataclass(frozen=True)
class SchedulingPolicy(ValueObject):
    """
    Policy constants injected into the scheduling services.

    Built once from settings; business logic never reads configuration
    directly.
    """

    reschedule_cutoff_hours: int = 12
    max_reschedules: int = 2
    slot_duration_minutes: int = 180
    lock_ttl_minutes: int = 15
    timezone: str = "UTC"
    currency: str = DEFAULT_CURRENCY

    def _validate(self) -> None:
        if self.reschedule_cutoff_hours < 0:
            raise ValueError("Reschedule cutoff cannot be negative")
        if self.max_reschedules < 0:
            raise ValueError("Max reschedules cannot be negative")
        if self.slot_duration_minutes <= 0 or self.lock_ttl_minutes <= 0:
            raise ValueError("Slot duration and lock TTL must be positive")
        if self.timezone not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {self.timezone}")

    @classmethod
    def from_settings(cls, settings: Any) -> "SchedulingPolicy":
        return cls(
            reschedule_cutoff_hours=settings.RESCHEDULE_CUTOFF_HOURS,
            max_reschedules=settings.MAX_RESCHEDULES_PER_APPOINTMENT,
            slot_duration_minutes=settings.SLOT_DURATION_MINUTES,
            lock_ttl_minutes=settings.SLOT_LOCK_TTL_MINUTES,
            timezone=settings.SCHEDULING_TIMEZONE,
            currency=settings.DEFAULT_CURRENCY,
        )

    @property
    def lock_ttl(self) -> timedelta:
        return timedelta(minutes=self.lock_ttl_minutes)

    def slot_start_at(self, slot_date: date, start_time: time) -> datetime:
        """Absolute UTC instant of a slot expressed in the scheduling timezone."""
        tz = pytz.timezone(self.timezone)
        return tz.localize(datetime.combine(slot_date, start_time)).astimezone(UTC)

    def today(self, now: datetime) -> date:
        """Calendar date of `now` in the scheduling timezone."""
        return now.astimezone(pytz.timezone(self.timezone)).date()


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


@dataclass(frozen=True)
class VitalSigns(ValueObject):
    """
    Vital signs measured during a care session.
    """

    heart_rate: int | None = None  # BPM
    blood_pressure_systolic: int | None = None  # mmHg
    blood_pressure_diastolic: int | None = None  # mmHg
    temperature: float | None = None  # Celsius
    respiratory_rate: int | None = None  # Breaths per minute
    oxygen_saturation: float | None = None  # Percentage
    weight: float | None = None  # kg
    height: float | None = None  # cm

    def _validate(self) -> None:
        """Validate vital signs ranges."""
        if self.heart_rate is not None and not (20 <= self.heart_rate <= 250):
            raise ValueError(f"Heart rate {self.heart_rate} out of valid range (20-250)")
        if self.respiratory_rate is not None and not (4 <= self.respiratory_rate <= 70):
            raise ValueError(f"Respiratory rate {self.respiratory_rate} out of valid range (4-70)")
        if self.oxygen_saturation is not None and not (0 <= self.oxygen_saturation <= 100):
            raise ValueError(f"Oxygen saturation {self.oxygen_saturation} out of range (0-100)")
        if self.temperature is not None and not (30 <= self.temperature <= 45):
            raise ValueError(f"Temperature {self.temperature} out of range (30-45 C)")
        if (self.blood_pressure_systolic is None) != (self.blood_pressure_diastolic is None):
            raise ValueError("Blood pressure needs both systolic and diastolic values")

    @property
    def blood_pressure(self) -> str | None:
        """Get blood pressure as formatted string."""
        if self.blood_pressure_systolic and self.blood_pressure_diastolic:
            return f"{self.blood_pressure_systolic}/{self.blood_pressure_diastolic}"
        return None

    @property
    def bmi(self) -> float | None:
        """Calculate BMI if weight and height are available."""
        if self.weight and self.height:
            height_m = self.height / 100
            return round(self.weight / (height_m * height_m), 1)
        return None

    def is_critical(self) -> bool:
        """Check if any vital signs are in critical range."""
        critical = False
        if self.heart_rate is not None:
            critical = critical or self.heart_rate < 50 or self.heart_rate > 150
        if self.oxygen_saturation is not None:
            critical = critical or self.oxygen_saturation < 90
        if self.blood_pressure_systolic is not None:
            critical = critical or self.blood_pressure_systolic < 90 or self.blood_pressure_systolic > 180
        return critical

    def to_dict(self) -> dict[str, Any]:
        return {
            "heart_rate": self.heart_rate,
            "blood_pressure_systolic": self.blood_pressure_systolic,
            "blood_pressure_diastolic": self.blood_pressure_diastolic,
            "temperature": self.temperature,
            "respiratory_rate": self.respiratory_rate,
            "oxygen_saturation": self.oxygen_saturation,
            "weight": self.weight,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "VitalSigns":
        data = data or {}
        return cls(**{key: data.get(key) for key in cls.__dataclass_fields__})


@dataclass(frozen=True)
class ReportAttachment(ValueObject):
    """Metadata of a file kept by the external storage service."""

    file_name: str
    storage_ref: str
    content_type: str | None = None
    size_bytes: int | None = None

    def _validate(self) -> None:
        if not self.file_name or not self.storage_ref:
            raise ValueError("Attachment needs a file name and a storage reference")
        if self.size_bytes is not None and self.size_bytes < 0:
            raise ValueError("Attachment size cannot be negative")

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "storage_ref": self.storage_ref,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
        }
