"""
TimeSlot Entity

A bookable window of one caregiver's time.
"""

from dataclasses import dataclass
from datetime import date, datetime, time

from careflow.core.domain import AggregateRoot, Money, ValidationException, generate_uuid_str

from ..exceptions import InvalidTransitionException, LockExpiredException, SlotUnavailableException
from ..value_objects import SchedulingPolicy, SlotStatus


@dataclass
class TimeSlot(AggregateRoot[str]):
    """
    Time slot of a caregiver.

    Status changes happen only through `lock`, `book` and `release`.
    A lock whose `locked_until` has passed is reported as available and
    can be taken over by another checkout.

    Example:
        ```python
        slot = TimeSlot.create(
            caregiver_id="cg-1",
            slot_date=date(2025, 3, 10),
            start_time=time(12, 0),
            end_time=time(15, 0),
            price=Money(Decimal("25000")),
        )
        slot.lock(holder_ref=appointment_id, locked_until=now + ttl, now=now)
        slot.book(appointment_id, now=now)
        ```
    """

    caregiver_id: str = ""
    slot_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    duration_minutes: int = 180
    price: Money | None = None

    status: SlotStatus = SlotStatus.AVAILABLE
    locked_until: datetime | None = None
    lock_holder: str | None = None
    appointment_id: str | None = None

    @classmethod
    def create(
        cls,
        caregiver_id: str,
        slot_date: date,
        start_time: time,
        end_time: time,
        price: Money,
        duration_minutes: int | None = None,
    ) -> "TimeSlot":
        if start_time >= end_time:
            raise ValidationException("Slot start time must be before end time", field="start_time")
        if duration_minutes is None:
            duration_minutes = (end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute)
        return cls(
            id=generate_uuid_str(),
            caregiver_id=caregiver_id,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
            duration_minutes=duration_minutes,
            price=price,
        )

    # Queries

    def is_lock_expired(self, now: datetime) -> bool:
        return self.status == SlotStatus.LOCKED and self.locked_until is not None and self.locked_until <= now

    def effective_status(self, now: datetime) -> SlotStatus:
        """Status as seen by readers, expired locks count as available."""
        if self.is_lock_expired(now):
            return SlotStatus.AVAILABLE
        return self.status

    def is_available(self, now: datetime) -> bool:
        return self.effective_status(now) == SlotStatus.AVAILABLE

    def is_held_by(self, holder_ref: str) -> bool:
        if self.status == SlotStatus.LOCKED:
            return self.lock_holder == holder_ref
        if self.status == SlotStatus.BOOKED:
            return self.appointment_id == holder_ref
        return False

    def starts_at(self, policy: SchedulingPolicy) -> datetime:
        assert self.slot_date is not None and self.start_time is not None
        return policy.slot_start_at(self.slot_date, self.start_time)

    def overlaps(self, start_time: time, end_time: time) -> bool:
        assert self.start_time is not None and self.end_time is not None
        return not (self.end_time <= start_time or self.start_time >= end_time)

    # Transitions

    def lock(self, holder_ref: str, locked_until: datetime, now: datetime) -> None:
        """Take a time-limited hold on the slot for one checkout."""
        if not self.is_available(now):
            raise SlotUnavailableException(self.id or "", self.status.value)

        self.status = SlotStatus.LOCKED
        self.lock_holder = holder_ref
        self.locked_until = locked_until
        self.appointment_id = None
        self.touch(now)

    def book(self, appointment_id: str, now: datetime) -> None:
        """Convert a live lock held by `appointment_id` into a booking."""
        if self.status == SlotStatus.BOOKED:
            raise SlotUnavailableException(self.id or "", self.status.value)
        if (
            self.status != SlotStatus.LOCKED
            or self.lock_holder != appointment_id
            or self.locked_until is None
            or self.locked_until <= now
        ):
            raise LockExpiredException(self.id or "", self.locked_until)

        self.status = SlotStatus.BOOKED
        self.appointment_id = appointment_id
        self.locked_until = None
        self.touch(now)

    def release(self, now: datetime) -> None:
        """Return the slot to the pool."""
        if not self.status.can_transition_to(SlotStatus.AVAILABLE):
            raise InvalidTransitionException("time slot", "release", self.status.value)

        self.status = SlotStatus.AVAILABLE
        self.lock_holder = None
        self.locked_until = None
        self.appointment_id = None
        self.touch(now)

    def update_price(self, price: Money, now: datetime) -> None:
        if not self.is_available(now):
            raise InvalidTransitionException(
                "time slot",
                "reprice",
                self.status.value,
                message="Only available time slots can be repriced",
            )
        self.price = price
        self.touch(now)

