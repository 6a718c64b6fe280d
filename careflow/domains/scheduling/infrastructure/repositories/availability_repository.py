"""
Caregiver Availability Repository Implementation
"""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import ICaregiverAvailabilityRepository
from careflow.domains.scheduling.domain.entities import CaregiverAvailability
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import CaregiverAvailabilityModel


class SQLAlchemyCaregiverAvailabilityRepository(ICaregiverAvailabilityRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, availability_id: str) -> CaregiverAvailability | None:
        result = await self.session.execute(
            select(CaregiverAvailabilityModel)
            .where(CaregiverAvailabilityModel.id == availability_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_by_caregiver(self, caregiver_id: str, active_only: bool = False) -> list[CaregiverAvailability]:
        query = select(CaregiverAvailabilityModel).where(CaregiverAvailabilityModel.caregiver_id == caregiver_id)
        if active_only:
            query = query.where(CaregiverAvailabilityModel.is_active.is_(True))

        query = query.order_by(
            CaregiverAvailabilityModel.day_of_week,
            CaregiverAvailabilityModel.start_time,
        ).execution_options(populate_existing=True)

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, availability: CaregiverAvailability) -> CaregiverAvailability:
        self.session.add(self._to_model(availability))
        await self.session.flush()
        return availability

    async def save(self, availability: CaregiverAvailability) -> CaregiverAvailability:
        await self.session.execute(
            update(CaregiverAvailabilityModel)
            .where(CaregiverAvailabilityModel.id == availability.id)
            .values(
                day_of_week=availability.day_of_week,
                start_time=availability.start_time,
                end_time=availability.end_time,
                is_active=availability.is_active,
                updated_at=availability.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        return availability

    async def delete(self, availability_id: str) -> bool:
        result = await self.session.execute(
            delete(CaregiverAvailabilityModel)
            .where(CaregiverAvailabilityModel.id == availability_id)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    async def delete_by_caregiver(self, caregiver_id: str) -> int:
        result = await self.session.execute(
            delete(CaregiverAvailabilityModel)
            .where(CaregiverAvailabilityModel.caregiver_id == caregiver_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def _to_entity(self, model: CaregiverAvailabilityModel) -> CaregiverAvailability:
        availability = CaregiverAvailability(
            id=model.id,  # type: ignore[arg-type]
            caregiver_id=model.caregiver_id,  # type: ignore[arg-type]
            day_of_week=model.day_of_week,  # type: ignore[arg-type]
            start_time=model.start_time,  # type: ignore[arg-type]
            end_time=model.end_time,  # type: ignore[arg-type]
            is_active=bool(model.is_active),
        )
        availability.created_at = as_utc(model.created_at)  # type: ignore[assignment]
        availability.updated_at = as_utc(model.updated_at)  # type: ignore[assignment]
        return availability

    def _to_model(self, availability: CaregiverAvailability) -> CaregiverAvailabilityModel:
        return CaregiverAvailabilityModel(
            id=availability.id,
            caregiver_id=availability.caregiver_id,
            day_of_week=availability.day_of_week,
            start_time=availability.start_time,
            end_time=availability.end_time,
            is_active=availability.is_active,
            created_at=availability.created_at,
            updated_at=availability.updated_at,
        )
