"""
Time Slot Repository Implementation

SQLAlchemy implementation of ITimeSlotRepository.
"""

import logging
from datetime import date, datetime

from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.domain import DuplicateEntityException, Money
from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import ITimeSlotRepository
from careflow.domains.scheduling.domain.entities import TimeSlot
from careflow.domains.scheduling.domain.value_objects import SlotStatus
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import TimeSlotModel
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.versioning import versioned_update

logger = logging.getLogger(__name__)


class SQLAlchemyTimeSlotRepository(ITimeSlotRepository):
    """
    SQLAlchemy implementation of time slot repository.

    Reads always refresh rows from the database so the version used by
    the next `save` is the committed one.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, slot_id: str) -> TimeSlot | None:
        result = await self.session.execute(
            select(TimeSlotModel)
            .where(TimeSlotModel.id == slot_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_ids(self, slot_ids: list[str]) -> list[TimeSlot]:
        if not slot_ids:
            return []
        result = await self.session.execute(
            select(TimeSlotModel)
            .where(TimeSlotModel.id.in_(slot_ids))
            .order_by(TimeSlotModel.slot_date, TimeSlotModel.start_time)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_many(
        self,
        caregiver_id: str | None = None,
        on_date: date | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
        statuses: list[SlotStatus] | None = None,
        limit: int = 500,
    ) -> list[TimeSlot]:
        query = select(TimeSlotModel)

        if caregiver_id:
            query = query.where(TimeSlotModel.caregiver_id == caregiver_id)
        if on_date:
            query = query.where(TimeSlotModel.slot_date == on_date)
        if from_date:
            query = query.where(TimeSlotModel.slot_date >= from_date)
        if to_date:
            query = query.where(TimeSlotModel.slot_date <= to_date)
        if statuses:
            query = query.where(TimeSlotModel.status.in_(statuses))

        query = (
            query.order_by(TimeSlotModel.slot_date, TimeSlotModel.start_time, TimeSlotModel.caregiver_id)
            .limit(limit)
            .execution_options(populate_existing=True)
        )

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add_all(self, slots: list[TimeSlot]) -> None:
        self.session.add_all([self._to_model(slot) for slot in slots])
        try:
            await self.session.flush()
        except IntegrityError as e:
            first = slots[0]
            raise DuplicateEntityException("TimeSlot", "start_time", f"{first.caregiver_id} {first.slot_date}") from e

    async def save(self, slot: TimeSlot) -> TimeSlot:
        assert slot.price is not None
        await versioned_update(
            self.session,
            TimeSlotModel,
            slot,
            {
                "status": slot.status,
                "locked_until": slot.locked_until,
                "lock_holder": slot.lock_holder,
                "appointment_id": slot.appointment_id,
                "price": slot.price.amount,
                "currency": slot.price.currency,
                "updated_at": slot.updated_at,
            },
            entity_type="TimeSlot",
        )
        return slot

    async def release_expired_locks(self, now: datetime) -> int:
        result = await self.session.execute(
            update(TimeSlotModel)
            .where(
                and_(
                    TimeSlotModel.status == SlotStatus.LOCKED,
                    TimeSlotModel.locked_until <= now,
                )
            )
            .values(
                status=SlotStatus.AVAILABLE,
                locked_until=None,
                lock_holder=None,
                appointment_id=None,
                version=TimeSlotModel.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # Mapping methods

    def _to_entity(self, model: TimeSlotModel) -> TimeSlot:
        """Convert model to entity."""
        slot = TimeSlot(
            id=model.id,  # type: ignore[arg-type]
            caregiver_id=model.caregiver_id,  # type: ignore[arg-type]
            slot_date=model.slot_date,  # type: ignore[arg-type]
            start_time=model.start_time,  # type: ignore[arg-type]
            end_time=model.end_time,  # type: ignore[arg-type]
            duration_minutes=model.duration_minutes,  # type: ignore[arg-type]
            price=Money(model.price, model.currency),  # type: ignore[arg-type]
            status=model.status,  # type: ignore[arg-type]
            locked_until=as_utc(model.locked_until),  # type: ignore[arg-type]
            lock_holder=model.lock_holder,  # type: ignore[arg-type]
            appointment_id=model.appointment_id,  # type: ignore[arg-type]
            version=model.version,  # type: ignore[arg-type]
        )
        slot.created_at = as_utc(model.created_at)  # type: ignore[assignment]
        slot.updated_at = as_utc(model.updated_at)  # type: ignore[assignment]
        return slot

    def _to_model(self, slot: TimeSlot) -> TimeSlotModel:
        """Convert entity to model."""
        assert slot.price is not None
        return TimeSlotModel(
            id=slot.id,
            caregiver_id=slot.caregiver_id,
            slot_date=slot.slot_date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration_minutes=slot.duration_minutes,
            price=slot.price.amount,
            currency=slot.price.currency,
            status=slot.status,
            locked_until=slot.locked_until,
            lock_holder=slot.lock_holder,
            appointment_id=slot.appointment_id,
            version=slot.version,
            created_at=slot.created_at,
            updated_at=slot.updated_at,
        )
