"""
Specialty Repository Implementation
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.domain import Money
from careflow.domains.scheduling.application.ports import ISpecialtyRepository
from careflow.domains.scheduling.domain.entities import Specialty
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import SpecialtyModel


class SQLAlchemySpecialtyRepository(ISpecialtyRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, specialty_id: str) -> Specialty | None:
        result = await self.session.execute(select(SpecialtyModel).where(SpecialtyModel.id == specialty_id))
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return Specialty(
            id=model.id,  # type: ignore[arg-type]
            name=model.name,  # type: ignore[arg-type]
            description=model.description,  # type: ignore[arg-type]
            booking_fee=Money(model.booking_fee, model.currency),  # type: ignore[arg-type]
            session_fee=Money(model.session_fee, model.currency) if model.session_fee is not None else None,  # type: ignore[arg-type]
            is_active=bool(model.is_active),
        )

    async def add(self, specialty: Specialty) -> Specialty:
        assert specialty.booking_fee is not None
        self.session.add(
            SpecialtyModel(
                id=specialty.id,
                name=specialty.name,
                description=specialty.description,
                booking_fee=specialty.booking_fee.amount,
                session_fee=specialty.session_fee.amount if specialty.session_fee else None,
                currency=specialty.booking_fee.currency,
                is_active=specialty.is_active,
            )
        )
        await self.session.flush()
        return specialty
