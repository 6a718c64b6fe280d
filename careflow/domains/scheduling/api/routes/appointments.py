"""
Appointment Routes

Booking, cancellation, rescheduling and fee checkout of appointments.
"""

from fastapi import APIRouter, Query, status

from careflow.domains.scheduling.api.dependencies import (
    Actor,
    AppointmentSchedulerDep,
    PaymentGateDep,
    RescheduleEngineDep,
)
from careflow.domains.scheduling.api.schemas import (
    AppointmentResponse,
    CancelAppointmentRequest,
    CheckoutRequestBody,
    CreateAppointmentBody,
    PaymentTransactionResponse,
    RescheduleEligibilityResponse,
    RescheduleRecordResponse,
    RescheduleRequest,
)
from careflow.domains.scheduling.application.dto import CreateAppointmentRequest
from careflow.domains.scheduling.domain.value_objects import ActorRole, AppointmentStatus

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(body: CreateAppointmentBody, scheduler: AppointmentSchedulerDep, actor: Actor):
    """
    Create a pending appointment and lock its slot for checkout.

    The slot stays locked until the booking fee is paid or the lock lapses.
    """
    actor.require_self(body.patient_id, ActorRole.PATIENT, "create appointment")

    appointment = await scheduler.create_appointment(
        CreateAppointmentRequest(
            patient_id=body.patient_id,
            time_slot_id=body.time_slot_id,
            specialty_id=body.specialty_id,
            session_type=body.session_type,
            notes=body.notes,
        )
    )
    return AppointmentResponse.from_entity(appointment)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    scheduler: AppointmentSchedulerDep,
    actor: Actor,
    patient_id: str | None = None,
    caregiver_id: str | None = None,
    appointment_status: AppointmentStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    """List appointments. Patients and caregivers only see their own."""
    if actor.role == ActorRole.PATIENT:
        patient_id = actor.actor_id
    elif actor.role == ActorRole.CAREGIVER:
        caregiver_id = actor.actor_id

    appointments = await scheduler.list_appointments(
        patient_id=patient_id,
        caregiver_id=caregiver_id,
        status=appointment_status,
        limit=limit,
        offset=offset,
    )
    return [AppointmentResponse.from_entity(appointment) for appointment in appointments]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: str, scheduler: AppointmentSchedulerDep, actor: Actor):
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "view appointment")
    return AppointmentResponse.from_entity(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    body: CancelAppointmentRequest,
    scheduler: AppointmentSchedulerDep,
    actor: Actor,
):
    """Cancel a pending or confirmed appointment. No refund is issued."""
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "cancel appointment")

    appointment = await scheduler.cancel_appointment(appointment_id, body.reason, actor.role)
    return AppointmentResponse.from_entity(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    body: RescheduleRequest,
    scheduler: AppointmentSchedulerDep,
    engine: RescheduleEngineDep,
    actor: Actor,
):
    """Move a confirmed appointment to another slot of the same caregiver."""
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "reschedule appointment")

    appointment = await engine.reschedule(
        appointment_id,
        body.new_time_slot_id,
        reason=body.reason,
        requested_by=actor.role,
    )
    return AppointmentResponse.from_entity(appointment)


@router.get("/{appointment_id}/reschedule-eligibility", response_model=RescheduleEligibilityResponse)
async def check_reschedule_eligibility(
    appointment_id: str,
    scheduler: AppointmentSchedulerDep,
    engine: RescheduleEngineDep,
    actor: Actor,
):
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "view appointment")

    eligibility = await engine.check_eligibility(appointment_id)
    return RescheduleEligibilityResponse.from_eligibility(eligibility)


@router.get("/{appointment_id}/reschedules", response_model=list[RescheduleRecordResponse])
async def get_reschedule_history(
    appointment_id: str,
    scheduler: AppointmentSchedulerDep,
    engine: RescheduleEngineDep,
    actor: Actor,
):
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "view appointment")

    records = await engine.get_history(appointment_id)
    return [RescheduleRecordResponse.from_entity(record) for record in records]


@router.post("/{appointment_id}/checkout", response_model=PaymentTransactionResponse)
async def initiate_checkout(
    appointment_id: str,
    body: CheckoutRequestBody,
    scheduler: AppointmentSchedulerDep,
    payment_gate: PaymentGateDep,
    actor: Actor,
):
    """Open a gateway checkout for the booking or session fee."""
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_self(appointment.patient_id, ActorRole.PATIENT, "pay appointment fee")

    transaction = await payment_gate.initiate_checkout(appointment_id, body.payment_type)
    return PaymentTransactionResponse.from_entity(transaction)


@router.get("/{appointment_id}/payments", response_model=list[PaymentTransactionResponse])
async def list_payments(
    appointment_id: str,
    scheduler: AppointmentSchedulerDep,
    payment_gate: PaymentGateDep,
    actor: Actor,
):
    appointment = await scheduler.get_appointment(appointment_id)
    actor.require_participant(appointment, "view payments")

    transactions = await payment_gate.list_transactions(appointment_id)
    return [PaymentTransactionResponse.from_entity(transaction) for transaction in transactions]
