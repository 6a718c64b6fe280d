"""
Fixtures for scheduling integration tests.

`day_slots` seeds caregiver slots for Tuesday 2030-03-05; `book` and
`pay` drive an appointment through checkout the way the API does.
"""

from datetime import date, time

import pytest
import pytest_asyncio

from careflow.domains.scheduling.application.dto import CreateAppointmentRequest, FeeCompletion
from careflow.domains.scheduling.domain.value_objects import AvailabilityWindow, FeeType
from tests.utils.factories import CAREGIVER_ID, OTHER_CAREGIVER_ID, PATIENT_ID, SPECIALTY_ID, mwk

SLOT_DATE = date(2030, 3, 5)


@pytest_asyncio.fixture
async def day_slots(scope):
    """Three 09:00-18:00 slots of the default caregiver and one slot of another caregiver."""
    async with scope() as services:
        own = await services.time_slot_manager.generate_slots(
            CAREGIVER_ID, AvailabilityWindow(SLOT_DATE, time(9, 0), time(18, 0)), price=mwk("25000")
        )
        foreign = await services.time_slot_manager.generate_slots(
            OTHER_CAREGIVER_ID, AvailabilityWindow(SLOT_DATE, time(9, 0), time(12, 0)), price=mwk("25000")
        )
    return own + foreign


@pytest.fixture
def book(scope, specialty):
    """Create a pending appointment on a slot."""

    async def _book(slot_id: str, patient_id: str = PATIENT_ID):
        async with scope() as services:
            return await services.appointment_scheduler.create_appointment(
                CreateAppointmentRequest(patient_id=patient_id, time_slot_id=slot_id, specialty_id=SPECIALTY_ID)
            )

    return _book


@pytest.fixture
def pay(scope):
    """Open a checkout for a fee and deliver a successful gateway callback for it."""

    async def _pay(appointment_id: str, fee_type: FeeType = FeeType.BOOKING_FEE):
        async with scope() as services:
            transaction = await services.payment_gate.initiate_checkout(appointment_id, fee_type)
        async with scope() as services:
            return await services.payment_gate.complete_fee(
                FeeCompletion(
                    external_reference=transaction.external_reference,
                    appointment_id=appointment_id,
                    payment_type=fee_type,
                    amount=transaction.amount.amount,
                )
            )

    return _pay


@pytest.fixture
def confirmed(book, pay):
    """Create an appointment and pay its booking fee."""

    async def _confirmed(slot_id: str):
        appointment = await book(slot_id)
        await pay(appointment.id, FeeType.BOOKING_FEE)
        return appointment

    return _confirmed
