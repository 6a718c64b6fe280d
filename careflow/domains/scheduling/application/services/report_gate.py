"""
Report Gate

Accepts the single care session report of an appointment and closes
the session with it.
"""

import logging

from careflow.core.clock import Clock, utc_now
from careflow.core.domain import EntityNotFoundException
from careflow.domains.scheduling.application.dto import SubmitReportRequest
from careflow.domains.scheduling.application.ports import (
    IAppointmentRepository,
    ICareSessionReportRepository,
    IUnitOfWork,
)
from careflow.domains.scheduling.application.services.appointment_scheduler import AppointmentScheduler
from careflow.domains.scheduling.domain.entities import CareSessionReport
from careflow.domains.scheduling.domain.exceptions import InvalidTransitionException, ReportExistsException
from careflow.domains.scheduling.domain.value_objects import AppointmentStatus, FeeStatus

logger = logging.getLogger(__name__)


class ReportGate:
    """
    Report submission service.

    Persisting the report and marking the appointment attended are one
    unit: if closing the session fails, the report is not kept either.
    """

    def __init__(
        self,
        appointment_repository: IAppointmentRepository,
        report_repository: ICareSessionReportRepository,
        scheduler: AppointmentScheduler,
        unit_of_work: IUnitOfWork,
        clock: Clock = utc_now,
    ):
        self._appointments = appointment_repository
        self._reports = report_repository
        self._scheduler = scheduler
        self._uow = unit_of_work
        self._clock = clock

    async def submit_report(self, request: SubmitReportRequest) -> CareSessionReport:
        """
        Submit the care session report and complete the session.

        Raises:
            ReportExistsException: The appointment already has a report
            InvalidTransitionException: Appointment not session_waiting or a fee is outstanding
        """
        async with self._uow.transaction():
            appointment = await self._appointments.find_by_id(request.appointment_id, for_update=True)
            if appointment is None:
                raise EntityNotFoundException("Appointment", request.appointment_id)

            if await self._reports.find_by_appointment(request.appointment_id) is not None:
                raise ReportExistsException(request.appointment_id)
            if appointment.status != AppointmentStatus.SESSION_WAITING:
                raise InvalidTransitionException("appointment", "submit report", appointment.status.value)
            if appointment.payment_status != FeeStatus.COMPLETED:
                raise InvalidTransitionException(
                    "appointment",
                    "submit report",
                    appointment.status.value,
                    message="Booking and session fees must both be paid before a report can be submitted",
                )

            report = CareSessionReport.create(
                appointment_id=request.appointment_id,
                caregiver_id=appointment.caregiver_id,
                patient_id=appointment.patient_id,
                observations=request.observations,
                interventions=request.interventions,
                session_summary=request.session_summary,
                patient_status=request.patient_status,
                vitals=request.vitals,
                recommendations=request.recommendations,
                follow_up_required=request.follow_up_required,
                attachments=request.attachments,
                now=self._clock(),
            )
            await self._reports.add(report)
            await self._scheduler.complete_session(request.appointment_id, report)

        if report.needs_attention():
            logger.warning(
                f"Report {report.id} for appointment {request.appointment_id} needs attention "
                f"(status {report.patient_status.value}, follow-up {report.follow_up_required})"
            )
        logger.info(f"Report {report.id} submitted for appointment {request.appointment_id}")
        return report

    async def get_report(self, appointment_id: str) -> CareSessionReport:
        report = await self._reports.find_by_appointment(appointment_id)
        if report is None:
            raise EntityNotFoundException("CareSessionReport", appointment_id)
        return report

    async def list_reports(
        self,
        caregiver_id: str | None = None,
        patient_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CareSessionReport]:
        return await self._reports.find_many(
            caregiver_id=caregiver_id,
            patient_id=patient_id,
            limit=limit,
            offset=offset,
        )
