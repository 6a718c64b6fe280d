"""
Care Session Report Repository Implementation

SQLAlchemy implementation of ICareSessionReportRepository.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import ICareSessionReportRepository
from careflow.domains.scheduling.domain.entities import CareSessionReport
from careflow.domains.scheduling.domain.exceptions import ReportExistsException
from careflow.domains.scheduling.domain.value_objects import ReportAttachment, VitalSigns
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import CareSessionReportModel


class SQLAlchemyCareSessionReportRepository(ICareSessionReportRepository):
    """Reports are insert-only; there is no update path."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_appointment(self, appointment_id: str) -> CareSessionReport | None:
        result = await self.session.execute(
            select(CareSessionReportModel).where(CareSessionReportModel.appointment_id == appointment_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_many(
        self,
        caregiver_id: str | None = None,
        patient_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CareSessionReport]:
        query = select(CareSessionReportModel)

        if caregiver_id:
            query = query.where(CareSessionReportModel.caregiver_id == caregiver_id)
        if patient_id:
            query = query.where(CareSessionReportModel.patient_id == patient_id)

        query = query.order_by(CareSessionReportModel.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, report: CareSessionReport) -> CareSessionReport:
        self.session.add(self._to_model(report))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ReportExistsException(report.appointment_id) from e
        return report

    # Mapping methods

    def _to_entity(self, model: CareSessionReportModel) -> CareSessionReport:
        report = CareSessionReport(
            id=model.id,  # type: ignore[arg-type]
            appointment_id=model.appointment_id,  # type: ignore[arg-type]
            caregiver_id=model.caregiver_id,  # type: ignore[arg-type]
            patient_id=model.patient_id,  # type: ignore[arg-type]
            observations=model.observations,  # type: ignore[arg-type]
            interventions=model.interventions,  # type: ignore[arg-type]
            session_summary=model.session_summary,  # type: ignore[arg-type]
            recommendations=model.recommendations,  # type: ignore[arg-type]
            patient_status=model.patient_status,  # type: ignore[arg-type]
            follow_up_required=bool(model.follow_up_required),
            vitals=VitalSigns.from_dict(model.vitals),  # type: ignore[arg-type]
            attachments=[ReportAttachment(**item) for item in (model.attachments or [])],  # type: ignore[union-attr]
        )
        report.created_at = as_utc(model.created_at)  # type: ignore[assignment]
        report.updated_at = as_utc(model.updated_at)  # type: ignore[assignment]
        return report

    def _to_model(self, report: CareSessionReport) -> CareSessionReportModel:
        return CareSessionReportModel(
            id=report.id,
            appointment_id=report.appointment_id,
            caregiver_id=report.caregiver_id,
            patient_id=report.patient_id,
            observations=report.observations,
            interventions=report.interventions,
            session_summary=report.session_summary,
            recommendations=report.recommendations,
            patient_status=report.patient_status,
            follow_up_required=report.follow_up_required,
            vitals=report.vitals.to_dict(),
            attachments=[attachment.to_dict() for attachment in report.attachments],
            created_at=report.created_at,
            updated_at=report.updated_at,
        )
