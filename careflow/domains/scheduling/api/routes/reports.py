"""
Care Session Report Routes

Submitting a report closes the session of a fully paid appointment.
"""

from fastapi import APIRouter, Query, status

from careflow.core.domain import AuthorizationException, ValidationException
from careflow.domains.scheduling.api.dependencies import Actor, AppointmentSchedulerDep, ReportGateDep
from careflow.domains.scheduling.api.schemas import ReportResponse, SubmitReportBody
from careflow.domains.scheduling.application.dto import SubmitReportRequest
from careflow.domains.scheduling.domain.value_objects import ActorRole, ReportAttachment, VitalSigns

router = APIRouter(prefix="/reports", tags=["Care Session Reports"])


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def submit_report(
    body: SubmitReportBody,
    scheduler: AppointmentSchedulerDep,
    report_gate: ReportGateDep,
    actor: Actor,
):
    """Submit the care session report. Only the appointment's caregiver may do so."""
    appointment = await scheduler.get_appointment(body.appointment_id)
    # Admins cannot write clinical reports.
    if not (actor.role == ActorRole.CAREGIVER and actor.actor_id == appointment.caregiver_id):
        raise AuthorizationException("submit care session report", f"appointment {appointment.id}", actor.actor_id)

    try:
        vitals = VitalSigns(**body.vitals.model_dump())
    except ValueError as e:
        raise ValidationException(str(e), field="vitals") from e

    report = await report_gate.submit_report(
        SubmitReportRequest(
            appointment_id=body.appointment_id,
            observations=body.observations,
            interventions=body.interventions,
            session_summary=body.session_summary,
            patient_status=body.patient_status,
            vitals=vitals,
            recommendations=body.recommendations,
            follow_up_required=body.follow_up_required,
            attachments=[ReportAttachment(**attachment.model_dump()) for attachment in body.attachments],
        )
    )
    return ReportResponse.from_entity(report)


@router.get("", response_model=list[ReportResponse])
async def list_reports(
    report_gate: ReportGateDep,
    actor: Actor,
    caregiver_id: str | None = None,
    patient_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    """List reports. Patients and caregivers only see their own."""
    if actor.role == ActorRole.PATIENT:
        patient_id = actor.actor_id
    elif actor.role == ActorRole.CAREGIVER:
        caregiver_id = actor.actor_id

    reports = await report_gate.list_reports(
        caregiver_id=caregiver_id, patient_id=patient_id, limit=limit, offset=offset
    )
    return [ReportResponse.from_entity(report) for report in reports]


@router.get("/{appointment_id}", response_model=ReportResponse)
async def get_report(
    appointment_id: str,
    scheduler: AppointmentSchedulerDep,
    report_gate: ReportGateDep,
    actor: Actor,
):
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "view care session report")
    return ReportResponse.from_entity(await report_gate.get_report(appointment_id))
