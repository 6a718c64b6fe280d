"""
Time Slot Manager

Owns every slot state change: generation, checkout locks, bookings,
releases and repricing.
"""

import logging
from datetime import date, timedelta

from careflow.core.clock import Clock, utc_now
from careflow.core.domain import (
    ConcurrencyException,
    EntityNotFoundException,
    Money,
    ValidationException,
)
from careflow.domains.scheduling.application.ports import (
    ICaregiverAvailabilityRepository,
    ITimeSlotRepository,
    IUnitOfWork,
)
from careflow.domains.scheduling.domain.entities import TimeSlot
from careflow.domains.scheduling.domain.exceptions import (
    InvalidTransitionException,
    LockExpiredException,
    SlotUnavailableException,
)
from careflow.domains.scheduling.domain.services import SlotGenerationService
from careflow.domains.scheduling.domain.value_objects import AvailabilityWindow, SchedulingPolicy, SlotStatus

logger = logging.getLogger(__name__)

MAX_GENERATION_RANGE_DAYS = 92


class TimeSlotManager:
    """
    Slot lifecycle service.

    `lock_slot` is a compare-and-set on the slot version: of two
    concurrent calls on one available slot exactly one succeeds and the
    other fails with `SlotUnavailableException` without retrying.
    Expired locks are presented as available on every read and are
    rewritten by `sweep_expired_locks`.

    Example:
        ```python
        manager = TimeSlotManager(slot_repo, availability_repo, uow, policy)
        await manager.generate_slots("cg-1", AvailabilityWindow(day, time(9), time(18)))
        slot = await manager.lock_slot(slot_id, holder_ref=appointment_id)
        await manager.book_slot(slot_id, appointment_id)
        ```
    """

    def __init__(
        self,
        slot_repository: ITimeSlotRepository,
        availability_repository: ICaregiverAvailabilityRepository,
        unit_of_work: IUnitOfWork,
        policy: SchedulingPolicy,
        clock: Clock = utc_now,
    ):
        self._slots = slot_repository
        self._availability = availability_repository
        self._uow = unit_of_work
        self._policy = policy
        self._clock = clock
        self._generation = SlotGenerationService(default_duration_minutes=policy.slot_duration_minutes)

    # Generation

    async def generate_slots(
        self,
        caregiver_id: str,
        window: AvailabilityWindow,
        duration_minutes: int | None = None,
        price: Money | None = None,
    ) -> list[TimeSlot]:
        """
        Partition one availability window into available slots.

        Re-running for an unchanged window creates nothing.

        Args:
            caregiver_id: Caregiver owning the slots
            window: Date and time range to partition
            duration_minutes: Slot length (policy default when omitted)
            price: Caregiver rate stored on each slot

        Returns:
            The newly created slots
        """
        async with self._uow.transaction():
            created = await self._generate_in_window(caregiver_id, window, duration_minutes, price)

        logger.info(f"Generated {len(created)} slots for caregiver {caregiver_id} on {window}")
        return created

    async def generate_slots_for_range(
        self,
        caregiver_id: str,
        start_date: date,
        end_date: date,
        duration_minutes: int | None = None,
        price: Money | None = None,
    ) -> list[TimeSlot]:
        """Generate slots from the caregiver's active weekly availability over an inclusive date range."""
        if end_date < start_date:
            raise ValidationException("End date must not be before start date", field="end_date")
        if (end_date - start_date) > timedelta(days=MAX_GENERATION_RANGE_DAYS):
            raise ValidationException(
                f"Slots can be generated for at most {MAX_GENERATION_RANGE_DAYS} days at once", field="end_date"
            )

        async with self._uow.transaction():
            availability = await self._availability.find_by_caregiver(caregiver_id, active_only=True)
            windows = self._generation.windows_for_range(availability, start_date, end_date)

            created: list[TimeSlot] = []
            for window in windows:
                created.extend(await self._generate_in_window(caregiver_id, window, duration_minutes, price))

        logger.info(
            f"Generated {len(created)} slots for caregiver {caregiver_id} "
            f"from {start_date} to {end_date} ({len(windows)} windows)"
        )
        return created

    async def _generate_in_window(
        self,
        caregiver_id: str,
        window: AvailabilityWindow,
        duration_minutes: int | None,
        price: Money | None,
    ) -> list[TimeSlot]:
        existing = await self._slots.find_many(caregiver_id=caregiver_id, on_date=window.date)
        try:
            new_slots = self._generation.build_slots(
                caregiver_id=caregiver_id,
                window=window,
                price=price or Money.zero(self._policy.currency),
                existing=existing,
                duration_minutes=duration_minutes,
            )
        except ValueError as e:
            raise ValidationException(str(e), field="duration_minutes") from e

        if new_slots:
            await self._slots.add_all(new_slots)
        return new_slots

    # Locking and booking

    async def lock_slot(self, slot_id: str, holder_ref: str, ttl: timedelta | None = None) -> TimeSlot:
        """
        Take a checkout lock on an available slot (or one whose lock lapsed).

        Raises:
            SlotUnavailableException: Slot is locked by a live checkout or booked
        """
        async with self._uow.transaction():
            slot = await self._get(slot_id)
            now = self._clock()
            slot.lock(holder_ref, now + (ttl or self._policy.lock_ttl), now)
            try:
                await self._slots.save(slot)
            except ConcurrencyException as e:
                logger.info(f"Lost lock race on slot {slot_id} (holder {holder_ref})")
                raise SlotUnavailableException(slot_id) from e

        logger.info(f"Slot {slot_id} locked by {holder_ref} until {slot.locked_until.isoformat()}")
        return slot

    async def book_slot(self, slot_id: str, appointment_id: str) -> TimeSlot:
        """
        Convert a live lock held by `appointment_id` into a booking.

        Raises:
            LockExpiredException: Lock lapsed, was reclaimed or belongs to another checkout
        """
        async with self._uow.transaction():
            slot = await self._get(slot_id)
            slot.book(appointment_id, self._clock())
            try:
                await self._slots.save(slot)
            except ConcurrencyException as e:
                raise LockExpiredException(slot_id, slot.locked_until) from e

        logger.info(f"Slot {slot_id} booked for appointment {appointment_id}")
        return slot

    async def release_slot(self, slot_id: str, holder_ref: str | None = None) -> bool:
        """
        Return a locked or booked slot to the pool.

        When `holder_ref` is given the slot is only released if that
        holder still owns it, so a lock taken over by another checkout
        is left alone.

        Returns:
            True when the slot was released
        """
        async with self._uow.transaction():
            slot = await self._get(slot_id)
            if slot.status == SlotStatus.AVAILABLE:
                return False
            if holder_ref is not None and not slot.is_held_by(holder_ref):
                logger.info(f"Slot {slot_id} is no longer held by {holder_ref}, leaving it untouched")
                return False

            slot.release(self._clock())
            await self._slots.save(slot)

        logger.info(f"Slot {slot_id} released")
        return True

    async def unlock_slot(self, slot_id: str, holder_ref: str) -> TimeSlot:
        """Abandon a checkout: locked -> available for the holder of the lock."""
        async with self._uow.transaction():
            slot = await self._get(slot_id)
            if slot.status != SlotStatus.LOCKED or slot.lock_holder != holder_ref:
                raise InvalidTransitionException(
                    "time slot",
                    "unlock",
                    slot.status.value,
                    message="Only the holder of a checkout lock can unlock the slot",
                )
            slot.release(self._clock())
            await self._slots.save(slot)

        logger.info(f"Slot {slot_id} unlocked by {holder_ref}")
        return slot

    async def sweep_expired_locks(self) -> int:
        """Rewrite lapsed locks to available."""
        async with self._uow.transaction():
            released = await self._slots.release_expired_locks(self._clock())

        if released:
            logger.info(f"Released {released} expired slot locks")
        return released

    # Reads

    async def lapsed_lock_holder(self, slot_id: str) -> str | None:
        """Holder of a checkout lock on the slot that has run out, if any."""
        slot = await self._get(slot_id)
        return slot.lock_holder if slot.is_lock_expired(self._clock()) else None

    async def get_slot(self, slot_id: str) -> TimeSlot:
        slot = await self._get(slot_id)
        return self._present(slot)

    async def list_slots(
        self,
        caregiver_id: str | None = None,
        on_date: date | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        status: SlotStatus | None = None,
    ) -> list[TimeSlot]:
        """List slots, filtering on the status readers see (expired locks count as available)."""
        stored_statuses = None
        if status == SlotStatus.AVAILABLE:
            stored_statuses = [SlotStatus.AVAILABLE, SlotStatus.LOCKED]
        elif status is not None:
            stored_statuses = [status]

        slots = await self._slots.find_many(
            caregiver_id=caregiver_id,
            on_date=on_date,
            from_date=from_date,
            to_date=to_date,
            statuses=stored_statuses,
        )
        presented = [self._present(slot) for slot in slots]
        if status is not None:
            presented = [slot for slot in presented if slot.status == status]
        return presented

    # Pricing

    async def update_price(self, slot_id: str, price: Money) -> TimeSlot:
        slots = await self.bulk_update_price([slot_id], price)
        return slots[0]

    async def bulk_update_price(self, slot_ids: list[str], price: Money) -> list[TimeSlot]:
        """Reprice available slots. All-or-nothing: one unavailable slot fails the batch."""
        if not slot_ids:
            raise ValidationException("At least one time slot is required", field="slot_ids")

        async with self._uow.transaction():
            slots = await self._slots.find_by_ids(slot_ids)
            found = {slot.id for slot in slots}
            missing = [slot_id for slot_id in slot_ids if slot_id not in found]
            if missing:
                raise EntityNotFoundException("TimeSlot", missing[0])

            now = self._clock()
            for slot in slots:
                slot.update_price(price, now)
                await self._slots.save(slot)

        logger.info(f"Repriced {len(slots)} slots to {price}")
        return [self._present(slot) for slot in slots]

    async def _get(self, slot_id: str) -> TimeSlot:
        slot = await self._slots.find_by_id(slot_id)
        if slot is None:
            raise EntityNotFoundException("TimeSlot", slot_id)
        return slot

    def _present(self, slot: TimeSlot) -> TimeSlot:
        now = self._clock()
        if slot.is_lock_expired(now):
            slot.release(now)
        return slot
