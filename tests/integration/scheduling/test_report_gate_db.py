"""Integration tests for ReportGate."""

import pytest

from careflow.core.domain import EntityNotFoundException
from careflow.domains.scheduling.application.dto import SubmitReportRequest
from careflow.domains.scheduling.domain.exceptions import InvalidTransitionException, ReportExistsException
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeType,
    PatientCondition,
    ReportAttachment,
    VitalSigns,
)
from tests.utils.factories import CAREGIVER_ID, PATIENT_ID


def _report_request(appointment_id: str, **overrides) -> SubmitReportRequest:
    values = {
        "appointment_id": appointment_id,
        "observations": "Patient alert and oriented",
        "interventions": "Dressing changed, medication reviewed",
        "session_summary": "Routine home visit",
        "patient_status": PatientCondition.IMPROVING,
        "vitals": VitalSigns(heart_rate=72, blood_pressure_systolic=120, blood_pressure_diastolic=80),
        "attachments": [ReportAttachment("wound.jpg", "storage://reports/wound.jpg", "image/jpeg", 2048)],
    }
    values.update(overrides)
    return SubmitReportRequest(**values)


async def _submit(scope, request: SubmitReportRequest):
    async with scope() as services:
        return await services.report_gate.submit_report(request)


@pytest.fixture
def fully_paid(confirmed, pay):
    async def _fully_paid(slot_id: str):
        appointment = await confirmed(slot_id)
        await pay(appointment.id, FeeType.SESSION_FEE)
        return appointment

    return _fully_paid


@pytest.mark.integration
class TestSubmitReport:
    @pytest.mark.asyncio
    async def test_report_completes_session(self, scope, day_slots, fully_paid, notifications) -> None:
        """Should persist the report and mark the appointment attended."""
        appointment = await fully_paid(day_slots[0].id)

        report = await _submit(scope, _report_request(appointment.id))

        async with scope() as services:
            stored_report = await services.report_gate.get_report(appointment.id)
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.SESSION_ATTENDED
        assert stored_report.id == report.id
        assert stored_report.caregiver_id == CAREGIVER_ID
        assert stored_report.patient_id == PATIENT_ID
        assert stored_report.vitals.blood_pressure == "120/80"
        assert stored_report.attachments[0].file_name == "wound.jpg"
        assert notifications.event_types[-1] == "SessionCompleted"

    @pytest.mark.asyncio
    async def test_second_report_is_rejected(self, scope, day_slots, fully_paid) -> None:
        appointment = await fully_paid(day_slots[0].id)
        await _submit(scope, _report_request(appointment.id))

        with pytest.raises(ReportExistsException):
            await _submit(scope, _report_request(appointment.id, session_summary="Another"))

    @pytest.mark.asyncio
    async def test_outstanding_session_fee_blocks_report(self, scope, day_slots, confirmed) -> None:
        """Should keep neither report nor status change while a fee is unpaid."""
        appointment = await confirmed(day_slots[0].id)

        with pytest.raises(InvalidTransitionException):
            await _submit(scope, _report_request(appointment.id))

        async with scope() as services:
            with pytest.raises(EntityNotFoundException):
                await services.report_gate.get_report(appointment.id)
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.SESSION_WAITING

    @pytest.mark.asyncio
    async def test_pending_appointment_cannot_be_reported(self, scope, day_slots, book) -> None:
        appointment = await book(day_slots[0].id)

        with pytest.raises(InvalidTransitionException):
            await _submit(scope, _report_request(appointment.id))

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, scope) -> None:
        with pytest.raises(EntityNotFoundException):
            await _submit(scope, _report_request("missing"))

    @pytest.mark.asyncio
    async def test_lists_reports_by_caregiver(self, scope, day_slots, fully_paid) -> None:
        first = await fully_paid(day_slots[0].id)
        second = await fully_paid(day_slots[1].id)
        await _submit(scope, _report_request(first.id))
        await _submit(scope, _report_request(second.id, patient_status=PatientCondition.STABLE))

        async with scope() as services:
            reports = await services.report_gate.list_reports(caregiver_id=CAREGIVER_ID)
            none = await services.report_gate.list_reports(caregiver_id="someone-else")

        assert {r.appointment_id for r in reports} == {first.id, second.id}
        assert none == []
