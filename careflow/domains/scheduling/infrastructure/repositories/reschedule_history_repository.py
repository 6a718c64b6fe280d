"""
Reschedule History Repository Implementation
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import IRescheduleHistoryRepository
from careflow.domains.scheduling.domain.entities import RescheduleRecord
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import AppointmentRescheduleModel


class SQLAlchemyRescheduleHistoryRepository(IRescheduleHistoryRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, record: RescheduleRecord) -> RescheduleRecord:
        self.session.add(
            AppointmentRescheduleModel(
                id=record.id,
                appointment_id=record.appointment_id,
                from_time_slot_id=record.from_time_slot_id,
                to_time_slot_id=record.to_time_slot_id,
                previous_scheduled_date=record.previous_scheduled_date,
                new_scheduled_date=record.new_scheduled_date,
                reason=record.reason,
                requested_by=record.requested_by,
                created_at=record.created_at,
            )
        )
        await self.session.flush()
        return record

    async def find_by_appointment(self, appointment_id: str) -> list[RescheduleRecord]:
        result = await self.session.execute(
            select(AppointmentRescheduleModel)
            .where(AppointmentRescheduleModel.appointment_id == appointment_id)
            .order_by(AppointmentRescheduleModel.created_at, AppointmentRescheduleModel.id)
        )
        records = []
        for model in result.scalars().all():
            record = RescheduleRecord(
                id=model.id,  # type: ignore[arg-type]
                appointment_id=model.appointment_id,  # type: ignore[arg-type]
                from_time_slot_id=model.from_time_slot_id,  # type: ignore[arg-type]
                to_time_slot_id=model.to_time_slot_id,  # type: ignore[arg-type]
                previous_scheduled_date=as_utc(model.previous_scheduled_date),  # type: ignore[arg-type]
                new_scheduled_date=as_utc(model.new_scheduled_date),  # type: ignore[arg-type]
                reason=model.reason or "",  # type: ignore[arg-type]
                requested_by=model.requested_by,  # type: ignore[arg-type]
            )
            record.created_at = as_utc(model.created_at)  # type: ignore[assignment]
            record.updated_at = record.created_at
            records.append(record)
        return records
