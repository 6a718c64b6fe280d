"""HTTP tests for the scheduling API."""

import hashlib
import hmac
import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from careflow.config.settings import reset_settings
from careflow.core.app_factory import create_app
from tests.utils.factories import CAREGIVER_ID, OTHER_CAREGIVER_ID, PATIENT_ID, SPECIALTY_ID

API = "/api/v1"


def as_patient(patient_id: str = PATIENT_ID) -> dict[str, str]:
    return {"X-Actor-Id": patient_id, "X-Actor-Role": "patient"}


def as_caregiver(caregiver_id: str = CAREGIVER_ID) -> dict[str, str]:
    return {"X-Actor-Id": caregiver_id, "X-Actor-Role": "caregiver"}


AS_ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}


@pytest_asyncio.fixture
async def client(container):
    """API client over the test container. Lifespan does not run, the container fixture is installed instead."""
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def slot_ids(client, specialty) -> list[str]:
    response = await client.post(
        f"{API}/timeslots/generate",
        json={
            "caregiver_id": CAREGIVER_ID,
            "date": "2030-03-05",
            "start_time": "09:00",
            "end_time": "18:00",
            "price": {"amount": "25000"},
        },
        headers=as_caregiver(),
    )
    assert response.status_code == 201
    return [slot["id"] for slot in response.json()]


async def _create_appointment(client, slot_id: str, patient_id: str = PATIENT_ID):
    return await client.post(
        f"{API}/appointments",
        json={"patient_id": patient_id, "time_slot_id": slot_id, "specialty_id": SPECIALTY_ID},
        headers=as_patient(patient_id),
    )


async def _checkout(client, appointment_id: str, payment_type: str = "booking_fee") -> dict:
    response = await client.post(
        f"{API}/appointments/{appointment_id}/checkout",
        json={"payment_type": payment_type},
        headers=as_patient(),
    )
    assert response.status_code == 200
    return response.json()


def _gateway_callback(reference: str, appointment_id: str, payment_type: str = "booking_fee", **extra) -> dict:
    payload = {
        "tx_ref": reference,
        "status": "success",
        "meta": {"appointment_id": appointment_id, "payment_type": payment_type},
    }
    payload.update(extra)
    return payload


async def _pay(client, appointment_id: str, payment_type: str = "booking_fee") -> dict:
    transaction = await _checkout(client, appointment_id, payment_type)
    response = await client.post(
        f"{API}/payments/webhook",
        json=_gateway_callback(transaction["external_reference"], appointment_id, payment_type),
    )
    assert response.status_code == 200
    return response.json()


@pytest.mark.integration
class TestHealthAndIdentity:
    @pytest.mark.asyncio
    async def test_health(self, client) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    @pytest.mark.asyncio
    async def test_missing_actor_is_unauthorized(self, client) -> None:
        response = await client.get(f"{API}/timeslots")

        assert response.status_code == 401
        assert response.json()["message"] == "Missing actor identity"

    @pytest.mark.asyncio
    async def test_system_role_is_refused(self, client) -> None:
        response = await client.get(f"{API}/timeslots", headers={"X-Actor-Id": "job", "X-Actor-Role": "system"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_correlation_id_header(self, client) -> None:
        response = await client.get(f"{API}/timeslots", headers=as_patient())

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"]


@pytest.mark.integration
class TestTimeSlotEndpoints:
    @pytest.mark.asyncio
    async def test_generate_and_list(self, client, slot_ids) -> None:
        """Should generate three slots priced in the default currency."""
        response = await client.get(
            f"{API}/timeslots",
            params={"caregiver_id": CAREGIVER_ID, "date": "2030-03-05", "status": "available"},
            headers=as_patient(),
        )

        assert response.status_code == 200
        slots = response.json()
        assert [slot["id"] for slot in slots] == slot_ids
        assert [slot["start_time"] for slot in slots] == ["09:00:00", "12:00:00", "15:00:00"]
        assert slots[0]["price"] == {"amount": "25000.00", "currency": "MWK"}

    @pytest.mark.asyncio
    async def test_other_caregiver_cannot_generate(self, client) -> None:
        response = await client.post(
            f"{API}/timeslots/generate",
            json={"caregiver_id": CAREGIVER_ID, "date": "2030-03-05", "start_time": "09:00", "end_time": "12:00"},
            headers=as_caregiver(OTHER_CAREGIVER_ID),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "AUTHORIZATION_ERROR"

    @pytest.mark.asyncio
    async def test_inverted_window_is_invalid(self, client) -> None:
        response = await client.post(
            f"{API}/timeslots/generate",
            json={"caregiver_id": CAREGIVER_ID, "date": "2030-03-05", "start_time": "18:00", "end_time": "09:00"},
            headers=as_caregiver(),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_slot(self, client) -> None:
        response = await client.get(f"{API}/timeslots/missing", headers=as_patient())

        assert response.status_code == 404
        assert response.json()["error"] == "ENTITY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_bulk_price_update(self, client, slot_ids) -> None:
        response = await client.put(
            f"{API}/timeslots/bulk/price",
            json={"slot_ids": slot_ids[:2], "price": {"amount": "30000", "currency": "MWK"}},
            headers=as_caregiver(),
        )

        assert response.status_code == 200
        assert [slot["price"]["amount"] for slot in response.json()] == ["30000.00", "30000.00"]

    @pytest.mark.asyncio
    async def test_patient_unlocks_abandoned_checkout(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()

        response = await client.post(
            f"{API}/timeslots/{slot_ids[0]}/unlock",
            json={"appointment_id": appointment["id"]},
            headers=as_patient(),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "available"


@pytest.mark.integration
class TestAppointmentEndpoints:
    @pytest.mark.asyncio
    async def test_booking_locks_slot(self, client, slot_ids) -> None:
        """Should create a pending appointment and refuse a second booking of the slot."""
        first = await _create_appointment(client, slot_ids[0])
        second = await _create_appointment(client, slot_ids[0], patient_id="patient-2")

        assert first.status_code == 201
        body = first.json()
        assert body["status"] == "pending"
        assert body["payment_status"] == "pending"
        assert body["booking_fee"] == {"amount": "5000.00", "currency": "MWK"}
        assert second.status_code == 409
        assert second.json()["error"] == "SLOT_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_patient_books_only_for_self(self, client, slot_ids) -> None:
        response = await client.post(
            f"{API}/appointments",
            json={"patient_id": "patient-2", "time_slot_id": slot_ids[0], "specialty_id": SPECIALTY_ID},
            headers=as_patient(),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_only_participants_see_appointment(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        url = f"{API}/appointments/{appointment['id']}"

        assert (await client.get(url, headers=as_patient())).status_code == 200
        assert (await client.get(url, headers=as_caregiver())).status_code == 200
        assert (await client.get(url, headers=AS_ADMIN)).status_code == 200
        assert (await client.get(url, headers=as_patient("patient-2"))).status_code == 403
        assert (await client.get(url, headers=as_caregiver(OTHER_CAREGIVER_ID))).status_code == 403

    @pytest.mark.asyncio
    async def test_list_is_limited_to_caller(self, client, slot_ids) -> None:
        await _create_appointment(client, slot_ids[0])
        await _create_appointment(client, slot_ids[1], patient_id="patient-2")

        response = await client.get(
            f"{API}/appointments", params={"patient_id": "patient-2"}, headers=as_patient()
        )

        assert response.status_code == 200
        assert [a["patient_id"] for a in response.json()] == [PATIENT_ID]

    @pytest.mark.asyncio
    async def test_cancel_frees_slot(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()

        response = await client.post(
            f"{API}/appointments/{appointment['id']}/cancel",
            json={"reason": "plans changed"},
            headers=as_patient(),
        )
        slot = (await client.get(f"{API}/timeslots/{slot_ids[0]}", headers=as_patient())).json()

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancelled_by"] == "patient"
        assert slot["status"] == "available"

    @pytest.mark.asyncio
    async def test_reschedule_flow(self, client, slot_ids) -> None:
        """Should reschedule a confirmed appointment and expose its history."""
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        await _pay(client, appointment["id"])

        eligibility = await client.get(
            f"{API}/appointments/{appointment['id']}/reschedule-eligibility", headers=as_patient()
        )
        response = await client.post(
            f"{API}/appointments/{appointment['id']}/reschedule",
            json={"new_time_slot_id": slot_ids[1], "reason": "work shift"},
            headers=as_patient(),
        )
        history = await client.get(f"{API}/appointments/{appointment['id']}/reschedules", headers=as_caregiver())

        assert eligibility.json()["can_reschedule"] is True
        assert response.status_code == 200
        assert response.json()["time_slot_id"] == slot_ids[1]
        assert response.json()["reschedule_count"] == 1
        assert [(r["from_time_slot_id"], r["to_time_slot_id"]) for r in history.json()] == [
            (slot_ids[0], slot_ids[1])
        ]

    @pytest.mark.asyncio
    async def test_reschedule_inside_cutoff(self, client, slot_ids, clock) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        await _pay(client, appointment["id"])
        clock.advance(hours=20)

        response = await client.post(
            f"{API}/appointments/{appointment['id']}/reschedule",
            json={"new_time_slot_id": slot_ids[1]},
            headers=as_patient(),
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "RESCHEDULE_CUTOFF_EXCEEDED"
        assert body["details"]["cutoff_hours"] == 12


@pytest.mark.integration
class TestPaymentEndpoints:
    @pytest.mark.asyncio
    async def test_webhook_applies_once(self, client, slot_ids) -> None:
        """Should confirm the booking on the first callback and report replays as duplicates."""
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        transaction = await _checkout(client, appointment["id"])
        callback = _gateway_callback(transaction["external_reference"], appointment["id"], amount="5000.00")

        first = await client.post(f"{API}/payments/webhook", json=callback)
        second = await client.post(f"{API}/payments/webhook", json=callback)

        assert first.json() == {
            "status": "applied",
            "external_reference": transaction["external_reference"],
            "appointment_status": "session_waiting",
        }
        assert second.status_code == 200
        assert second.json()["status"] == "duplicate"

        verification = await client.get(
            f"{API}/payments/verify/{transaction['external_reference']}", headers=as_patient()
        )
        assert verification.json()["status"] == "completed"
        assert verification.json()["appointment_status"] == "session_waiting"

    @pytest.mark.asyncio
    async def test_webhook_failure_outcome(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        transaction = await _checkout(client, appointment["id"])

        response = await client.post(
            f"{API}/payments/webhook",
            json=_gateway_callback(transaction["external_reference"], appointment["id"], status="failed"),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "failed"
        assert response.json()["appointment_status"] == "pending"

    @pytest.mark.asyncio
    async def test_mismatched_webhook_is_rejected_with_200(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        transaction = await _checkout(client, appointment["id"])

        response = await client.post(
            f"{API}/payments/webhook",
            json=_gateway_callback(transaction["external_reference"], appointment["id"], amount="1.00"),
        )
        current = await client.get(f"{API}/appointments/{appointment['id']}", headers=as_patient())

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"
        assert current.json()["status"] == "pending"

    @pytest.mark.asyncio
    async def test_malformed_webhook_is_rejected_with_200(self, client) -> None:
        response = await client.post(f"{API}/payments/webhook", json={"tx_ref": "x"})

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_webhook_without_fee_type_is_rejected(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()

        response = await client.post(
            f"{API}/payments/webhook",
            json={"tx_ref": "tx-no-fee", "status": "success", "meta": {"appointment_id": appointment["id"]}},
        )

        assert response.status_code == 200
        assert response.json()["status"] == "rejected"

    @pytest.mark.asyncio
    async def test_late_booking_fee_is_recorded_unapplied(self, client, slot_ids, clock) -> None:
        """Should acknowledge a booking fee paid after the slot was taken without touching either booking."""
        first = (await _create_appointment(client, slot_ids[0])).json()
        transaction = await _checkout(client, first["id"])
        clock.advance(minutes=20)
        second = await _create_appointment(client, slot_ids[0], patient_id="patient-late")

        response = await client.post(
            f"{API}/payments/webhook",
            json=_gateway_callback(transaction["external_reference"], first["id"]),
        )
        verification = await client.get(
            f"{API}/payments/verify/{transaction['external_reference']}", headers=as_patient()
        )
        slot = await client.get(f"{API}/timeslots/{slot_ids[0]}", headers=as_patient())

        assert second.status_code == 201
        assert response.status_code == 200
        assert response.json()["status"] == "unapplied"
        assert response.json()["appointment_status"] == "cancelled"
        assert verification.json()["status"] == "completed"
        assert slot.json()["status"] == "locked"

    @pytest.mark.asyncio
    async def test_webhook_signature(self, client, slot_ids, monkeypatch) -> None:
        """Should only accept callbacks signed with the shared secret once one is configured."""
        monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", "whsec-test")
        reset_settings()
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        transaction = await _checkout(client, appointment["id"])
        body = json.dumps(_gateway_callback(transaction["external_reference"], appointment["id"])).encode()
        signature = hmac.new(b"whsec-test", msg=body, digestmod=hashlib.sha256).hexdigest()
        headers = {"Content-Type": "application/json"}

        unsigned = await client.post(f"{API}/payments/webhook", content=body, headers=headers)
        forged = await client.post(
            f"{API}/payments/webhook", content=body, headers={**headers, "X-Signature": "sha256=deadbeef"}
        )
        signed = await client.post(
            f"{API}/payments/webhook", content=body, headers={**headers, "X-Signature": f"sha256={signature}"}
        )

        assert unsigned.json()["status"] == "rejected"
        assert forged.json()["status"] == "rejected"
        assert signed.json()["status"] == "applied"
        reset_settings()

    @pytest.mark.asyncio
    async def test_session_fee_checkout_requires_confirmation(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()

        response = await client.post(
            f"{API}/appointments/{appointment['id']}/checkout",
            json={"payment_type": "session_fee"},
            headers=as_patient(),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_TRANSITION"


@pytest.mark.integration
class TestReportEndpoints:
    REPORT = {
        "observations": "Stable, eating well",
        "interventions": "Blood pressure check",
        "session_summary": "Routine visit",
        "patient_status": "stable",
        "vitals": {"heart_rate": 70, "blood_pressure_systolic": 118, "blood_pressure_diastolic": 76},
    }

    @pytest_asyncio.fixture
    async def paid_appointment(self, client, slot_ids) -> dict:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        await _pay(client, appointment["id"], "booking_fee")
        await _pay(client, appointment["id"], "session_fee")
        return appointment

    @pytest.mark.asyncio
    async def test_caregiver_submits_report(self, client, paid_appointment) -> None:
        """Should store the report and close the session."""
        response = await client.post(
            f"{API}/reports", json={"appointment_id": paid_appointment["id"], **self.REPORT}, headers=as_caregiver()
        )
        current = await client.get(f"{API}/appointments/{paid_appointment['id']}", headers=as_patient())
        fetched = await client.get(f"{API}/reports/{paid_appointment['id']}", headers=as_patient())

        assert response.status_code == 201
        assert response.json()["vitals"]["heart_rate"] == 70
        assert current.json()["status"] == "session_attended"
        assert fetched.json()["id"] == response.json()["id"]

    @pytest.mark.asyncio
    async def test_second_report_conflicts(self, client, paid_appointment) -> None:
        body = {"appointment_id": paid_appointment["id"], **self.REPORT}
        await client.post(f"{API}/reports", json=body, headers=as_caregiver())

        response = await client.post(f"{API}/reports", json=body, headers=as_caregiver())

        assert response.status_code == 409
        assert response.json()["error"] == "REPORT_EXISTS"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [AS_ADMIN, {"X-Actor-Id": PATIENT_ID, "X-Actor-Role": "patient"}, as_caregiver(OTHER_CAREGIVER_ID)],
    )
    async def test_only_assigned_caregiver_reports(self, client, paid_appointment, headers) -> None:
        response = await client.post(
            f"{API}/reports", json={"appointment_id": paid_appointment["id"], **self.REPORT}, headers=headers
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unpaid_session_fee_blocks_report(self, client, slot_ids) -> None:
        appointment = (await _create_appointment(client, slot_ids[0])).json()
        await _pay(client, appointment["id"])

        response = await client.post(
            f"{API}/reports", json={"appointment_id": appointment["id"], **self.REPORT}, headers=as_caregiver()
        )

        assert response.status_code == 409
        assert response.json()["error"] == "INVALID_TRANSITION"


@pytest.mark.integration
class TestAvailabilityEndpoints:
    @pytest.mark.asyncio
    async def test_manage_weekly_windows(self, client) -> None:
        created = await client.post(
            f"{API}/availability",
            json={"caregiver_id": CAREGIVER_ID, "day_of_week": 2, "start_time": "09:00", "end_time": "18:00"},
            headers=as_caregiver(),
        )
        overlapping = await client.post(
            f"{API}/availability",
            json={"caregiver_id": CAREGIVER_ID, "day_of_week": 2, "start_time": "12:00", "end_time": "14:00"},
            headers=as_caregiver(),
        )
        listed = await client.get(f"{API}/availability", params={"caregiver_id": CAREGIVER_ID}, headers=as_patient())
        deleted = await client.delete(f"{API}/availability/{created.json()['id']}", headers=as_caregiver())

        assert created.status_code == 201
        assert overlapping.status_code == 422
        assert [w["day_of_week"] for w in listed.json()] == [2]
        assert deleted.status_code == 204
