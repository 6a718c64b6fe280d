"""
Appointment Repository Implementation

SQLAlchemy implementation of IAppointmentRepository.
"""

import logging
from datetime import datetime

from sqlalchemy import and_, not_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.domain import DuplicateEntityException, Money
from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import IAppointmentRepository
from careflow.domains.scheduling.domain.entities import Appointment
from careflow.domains.scheduling.domain.value_objects import AppointmentStatus, SlotStatus
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import AppointmentModel, TimeSlotModel
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.versioning import versioned_update

logger = logging.getLogger(__name__)


class SQLAlchemyAppointmentRepository(IAppointmentRepository):
    """
    SQLAlchemy implementation of appointment repository.

    Handles all appointment data persistence operations. Transactions are
    owned by the unit of work; this class never commits.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, appointment_id: str, for_update: bool = False) -> Appointment | None:
        """Find appointment by ID."""
        query = (
            select(AppointmentModel)
            .where(AppointmentModel.id == appointment_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_many(
        self,
        patient_id: str | None = None,
        caregiver_id: str | None = None,
        status: AppointmentStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Appointment]:
        """Find appointments by participant and status."""
        query = select(AppointmentModel)

        if patient_id:
            query = query.where(AppointmentModel.patient_id == patient_id)
        if caregiver_id:
            query = query.where(AppointmentModel.caregiver_id == caregiver_id)
        if status:
            query = query.where(AppointmentModel.status == status)

        query = (
            query.order_by(AppointmentModel.scheduled_date, AppointmentModel.id)
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def find_active_by_slot(self, slot_id: str) -> Appointment | None:
        result = await self.session.execute(
            select(AppointmentModel)
            .where(
                and_(
                    AppointmentModel.time_slot_id == slot_id,
                    AppointmentModel.status != AppointmentStatus.CANCELLED,
                )
            )
            .execution_options(populate_existing=True)
        )
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def find_stale_pending(self, now: datetime, limit: int = 100) -> list[Appointment]:
        """Pending appointments whose slot is no longer locked for them."""
        live_hold = and_(
            TimeSlotModel.status == SlotStatus.LOCKED,
            TimeSlotModel.lock_holder == AppointmentModel.id,
            TimeSlotModel.locked_until > now,
        )
        result = await self.session.execute(
            select(AppointmentModel)
            .join(TimeSlotModel, TimeSlotModel.id == AppointmentModel.time_slot_id)
            .where(
                and_(
                    AppointmentModel.status == AppointmentStatus.PENDING,
                    not_(live_hold),
                )
            )
            .order_by(AppointmentModel.created_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, appointment: Appointment) -> Appointment:
        self.session.add(self._to_model(appointment))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateEntityException("Appointment", "id", appointment.id) from e
        return appointment

    async def save(self, appointment: Appointment) -> Appointment:
        assert appointment.booking_fee is not None and appointment.session_fee is not None
        await versioned_update(
            self.session,
            AppointmentModel,
            appointment,
            {
                "time_slot_id": appointment.time_slot_id,
                "scheduled_date": appointment.scheduled_date,
                "status": appointment.status,
                "booking_fee_status": appointment.booking_fee_status,
                "session_fee_status": appointment.session_fee_status,
                "booking_fee": appointment.booking_fee.amount,
                "session_fee": appointment.session_fee.amount,
                "reschedule_count": appointment.reschedule_count,
                "notes": appointment.notes,
                "confirmed_at": appointment.confirmed_at,
                "completed_at": appointment.completed_at,
                "cancelled_at": appointment.cancelled_at,
                "cancellation_reason": appointment.cancellation_reason,
                "cancelled_by": appointment.cancelled_by,
                "updated_at": appointment.updated_at,
            },
            entity_type="Appointment",
        )
        return appointment

    # Mapping methods

    def _to_entity(self, model: AppointmentModel) -> Appointment:
        """Convert model to entity."""
        # Column() attributes hold plain values on instances; Pyright sees Column types.
        appointment = Appointment(
            id=model.id,  # type: ignore[arg-type]
            patient_id=model.patient_id,  # type: ignore[arg-type]
            caregiver_id=model.caregiver_id,  # type: ignore[arg-type]
            specialty_id=model.specialty_id,  # type: ignore[arg-type]
            time_slot_id=model.time_slot_id,  # type: ignore[arg-type]
            scheduled_date=as_utc(model.scheduled_date),  # type: ignore[arg-type]
            session_type=model.session_type,  # type: ignore[arg-type]
            status=model.status,  # type: ignore[arg-type]
            booking_fee_status=model.booking_fee_status,  # type: ignore[arg-type]
            session_fee_status=model.session_fee_status,  # type: ignore[arg-type]
            booking_fee=Money(model.booking_fee, model.currency),  # type: ignore[arg-type]
            session_fee=Money(model.session_fee, model.currency),  # type: ignore[arg-type]
            reschedule_count=model.reschedule_count or 0,  # type: ignore[arg-type]
            notes=model.notes or "",  # type: ignore[arg-type]
            confirmed_at=as_utc(model.confirmed_at),  # type: ignore[arg-type]
            completed_at=as_utc(model.completed_at),  # type: ignore[arg-type]
            cancelled_at=as_utc(model.cancelled_at),  # type: ignore[arg-type]
            cancellation_reason=model.cancellation_reason,  # type: ignore[arg-type]
            cancelled_by=model.cancelled_by,  # type: ignore[arg-type]
            version=model.version,  # type: ignore[arg-type]
        )
        appointment.created_at = as_utc(model.created_at)  # type: ignore[assignment]
        appointment.updated_at = as_utc(model.updated_at)  # type: ignore[assignment]
        return appointment

    def _to_model(self, appointment: Appointment) -> AppointmentModel:
        """Convert entity to model."""
        assert appointment.booking_fee is not None and appointment.session_fee is not None
        return AppointmentModel(
            id=appointment.id,
            patient_id=appointment.patient_id,
            caregiver_id=appointment.caregiver_id,
            specialty_id=appointment.specialty_id,
            time_slot_id=appointment.time_slot_id,
            scheduled_date=appointment.scheduled_date,
            session_type=appointment.session_type,
            status=appointment.status,
            booking_fee_status=appointment.booking_fee_status,
            session_fee_status=appointment.session_fee_status,
            booking_fee=appointment.booking_fee.amount,
            session_fee=appointment.session_fee.amount,
            currency=appointment.booking_fee.currency,
            reschedule_count=appointment.reschedule_count,
            notes=appointment.notes,
            confirmed_at=appointment.confirmed_at,
            completed_at=appointment.completed_at,
            cancelled_at=appointment.cancelled_at,
            cancellation_reason=appointment.cancellation_reason,
            cancelled_by=appointment.cancelled_by,
            version=appointment.version,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )
