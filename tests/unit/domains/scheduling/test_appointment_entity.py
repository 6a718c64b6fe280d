"""Unit tests for the Appointment aggregate and its fee tracks."""

from datetime import timedelta

import pytest

from careflow.core.domain import ValidationException
from careflow.domains.scheduling.domain.entities import Appointment, CareSessionReport, Specialty
from careflow.domains.scheduling.domain.exceptions import InvalidTransitionException
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeSchedule,
    FeeStatus,
    FeeType,
    PatientCondition,
    SessionType,
)
from tests.utils.factories import (
    CAREGIVER_ID,
    DEFAULT_NOW,
    PATIENT_ID,
    SPECIALTY_ID,
    create_appointment,
    create_specialty,
    mwk,
)

NOW = DEFAULT_NOW
SESSION_AT = NOW + timedelta(days=2)


def _report_for(appointment) -> CareSessionReport:
    return CareSessionReport.create(
        appointment_id=appointment.id,
        caregiver_id=appointment.caregiver_id,
        patient_id=appointment.patient_id,
        observations="Patient alert",
        interventions="Wound dressing changed",
        session_summary="Routine visit",
        patient_status=PatientCondition.STABLE,
    )


@pytest.mark.unit
class TestAppointmentCreation:
    def test_starts_pending_with_fee_tracks_pending(self) -> None:
        """Should start pending with both fees outstanding."""
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.PENDING)

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.booking_fee_status == FeeStatus.PENDING
        assert appointment.session_fee_status == FeeStatus.PENDING
        assert appointment.payment_status == FeeStatus.PENDING

    def test_total_cost_is_sum_of_fees(self) -> None:
        appointment = create_appointment(SESSION_AT)
        assert appointment.total_cost == mwk("30000")

    def test_records_created_event(self) -> None:
        """Should record AppointmentCreated on creation."""
        appointment = Appointment.create(
            patient_id=PATIENT_ID,
            caregiver_id=CAREGIVER_ID,
            specialty_id=SPECIALTY_ID,
            time_slot_id="slot-1",
            scheduled_date=SESSION_AT,
            session_type=SessionType.TELECONFERENCE,
            fees=FeeSchedule(mwk("5000"), mwk("25000")),
        )

        events = appointment.get_domain_events()
        assert [event.event_type for event in events] == ["AppointmentCreated"]
        assert events[0].total_cost == "30000.00"

    def test_payment_status_completed_only_with_both_fees(self) -> None:
        """Should derive payment status from both fee tracks."""
        appointment = create_appointment(SESSION_AT)
        assert appointment.payment_status == FeeStatus.PENDING

        appointment.mark_fee_completed(FeeType.SESSION_FEE, NOW)

        assert appointment.payment_status == FeeStatus.COMPLETED


@pytest.mark.unit
class TestAppointmentFees:
    def test_mark_fee_completed_is_idempotent(self) -> None:
        """Should report False when the fee was already completed."""
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.PENDING)

        assert appointment.mark_fee_completed(FeeType.BOOKING_FEE, NOW) is True
        assert appointment.mark_fee_completed(FeeType.BOOKING_FEE, NOW) is False

    def test_fee_on_cancelled_appointment_fails(self) -> None:
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.CANCELLED)

        with pytest.raises(InvalidTransitionException):
            appointment.mark_fee_completed(FeeType.SESSION_FEE, NOW)


@pytest.mark.unit
class TestAppointmentTransitions:
    def test_confirm_booking_requires_booking_fee(self) -> None:
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.PENDING)

        with pytest.raises(InvalidTransitionException):
            appointment.confirm_booking(NOW)

    def test_confirm_booking(self) -> None:
        """Should move pending to session_waiting once the booking fee is paid."""
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.PENDING)
        appointment.mark_fee_completed(FeeType.BOOKING_FEE, NOW)

        appointment.confirm_booking(NOW)

        assert appointment.status == AppointmentStatus.SESSION_WAITING
        assert appointment.confirmed_at == NOW
        assert appointment.get_domain_events()[-1].event_type == "BookingConfirmed"

    def test_confirm_twice_fails(self) -> None:
        appointment = create_appointment(SESSION_AT)

        with pytest.raises(InvalidTransitionException):
            appointment.confirm_booking(NOW)

    def test_cancel_records_reason_and_actor(self) -> None:
        appointment = create_appointment(SESSION_AT)

        appointment.cancel("patient travelling", "patient", NOW)

        assert appointment.status == AppointmentStatus.CANCELLED
        assert appointment.cancellation_reason == "patient travelling"
        assert appointment.cancelled_by == "patient"
        assert appointment.get_domain_events()[-1].event_type == "AppointmentCancelled"

    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.SESSION_ATTENDED])
    def test_terminal_states_cannot_be_cancelled(self, status: AppointmentStatus) -> None:
        appointment = create_appointment(SESSION_AT, status=status)

        with pytest.raises(InvalidTransitionException):
            appointment.cancel("late", "patient", NOW)

    def test_move_to_slot_increments_count(self) -> None:
        """Should move the appointment and count the reschedule."""
        appointment = create_appointment(SESSION_AT, time_slot_id="slot-1")
        new_date = SESSION_AT + timedelta(days=1)

        appointment.move_to_slot("slot-2", new_date, "clash", NOW)

        assert appointment.time_slot_id == "slot-2"
        assert appointment.scheduled_date == new_date
        assert appointment.reschedule_count == 1
        event = appointment.get_domain_events()[-1]
        assert event.event_type == "AppointmentRescheduled"
        assert event.previous_time_slot_id == "slot-1"

    def test_pending_appointment_cannot_move(self) -> None:
        appointment = create_appointment(SESSION_AT, status=AppointmentStatus.PENDING)

        with pytest.raises(InvalidTransitionException):
            appointment.move_to_slot("slot-2", SESSION_AT, "", NOW)

    def test_complete_session_requires_both_fees(self) -> None:
        appointment = create_appointment(SESSION_AT)

        with pytest.raises(InvalidTransitionException):
            appointment.complete_session(_report_for(appointment), NOW)

        assert appointment.status == AppointmentStatus.SESSION_WAITING

    def test_complete_session(self) -> None:
        """Should close the session once both fees are paid."""
        appointment = create_appointment(SESSION_AT)
        appointment.mark_fee_completed(FeeType.SESSION_FEE, NOW)
        report = _report_for(appointment)

        appointment.complete_session(report, NOW)

        assert appointment.status == AppointmentStatus.SESSION_ATTENDED
        assert appointment.completed_at == NOW
        assert appointment.get_domain_events()[-1].report_id == report.id

    def test_complete_with_foreign_report_fails(self) -> None:
        appointment = create_appointment(SESSION_AT)
        appointment.mark_fee_completed(FeeType.SESSION_FEE, NOW)
        other = create_appointment(SESSION_AT)

        with pytest.raises(ValidationException):
            appointment.complete_session(_report_for(other), NOW)


@pytest.mark.unit
class TestSpecialtyFees:
    def test_uses_specialty_session_fee(self) -> None:
        fees = create_specialty().fee_schedule(caregiver_rate=mwk("40000"))
        assert fees.session_fee == mwk("25000")

    def test_falls_back_to_caregiver_rate(self) -> None:
        """Should charge the caregiver's slot rate when the specialty sets no session fee."""
        specialty: Specialty = create_specialty(session_fee=None)

        fees = specialty.fee_schedule(caregiver_rate=mwk("40000"))

        assert fees.session_fee == mwk("40000")
        assert fees.total == mwk("45000")


@pytest.mark.unit
class TestCareSessionReport:
    def test_requires_clinical_text(self) -> None:
        with pytest.raises(ValidationException):
            CareSessionReport.create(
                appointment_id="appt-1",
                caregiver_id="cg",
                patient_id="pt",
                observations="  ",
                interventions="x",
                session_summary="y",
                patient_status=PatientCondition.STABLE,
            )

    def test_needs_attention_for_deteriorating_patient(self) -> None:
        report = CareSessionReport.create(
            appointment_id="appt-1",
            caregiver_id="cg",
            patient_id="pt",
            observations="Short of breath",
            interventions="Oxygen",
            session_summary="Escalated",
            patient_status=PatientCondition.DETERIORATING,
        )
        assert report.needs_attention() is True
