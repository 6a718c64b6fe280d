"""
Factories and fakes for scheduling tests.

Provides a controllable clock, recording collaborators and helpers that
build entities with sensible defaults.
"""

from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from careflow.core.domain import DomainEvent, Money
from careflow.domains.scheduling.application.ports import CheckoutRequest, CheckoutSession
from careflow.domains.scheduling.domain.entities import Appointment, Specialty, TimeSlot
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeSchedule,
    FeeStatus,
    SessionType,
)

# Monday 4 March 2030, 08:00 UTC
DEFAULT_NOW = datetime(2030, 3, 4, 8, 0, tzinfo=UTC)

CAREGIVER_ID = "caregiver-1"
OTHER_CAREGIVER_ID = "caregiver-2"
PATIENT_ID = "patient-1"
SPECIALTY_ID = "specialty-nursing"


class FakeClock:
    """Clock callable whose time only moves when a test says so."""

    def __init__(self, now: datetime = DEFAULT_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


class RecordingPaymentGateway:
    """Payment gateway double that records checkouts."""

    def __init__(self, base_url: str = "https://pay.example.test/checkout"):
        self.base_url = base_url
        self.requests: list[CheckoutRequest] = []

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        self.requests.append(request)
        return CheckoutSession(
            external_reference=request.external_reference,
            checkout_url=f"{self.base_url}/{request.external_reference}",
        )


class RecordingNotificationService:
    """Notification double that keeps delivered events in order."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    async def notify(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def event_types(self) -> list[str]:
        return [event.event_type for event in self.events]


def mwk(amount: str | int) -> Money:
    return Money(Decimal(str(amount)), "MWK")


def create_specialty(
    specialty_id: str = SPECIALTY_ID,
    name: str = "Home nursing",
    booking_fee: str = "5000",
    session_fee: str | None = "25000",
    is_active: bool = True,
) -> Specialty:
    return Specialty(
        id=specialty_id,
        name=name,
        description=f"{name} visits",
        booking_fee=mwk(booking_fee),
        session_fee=mwk(session_fee) if session_fee is not None else None,
        is_active=is_active,
    )


def create_slot(
    caregiver_id: str = CAREGIVER_ID,
    slot_date: date = date(2030, 3, 5),
    start: time = time(9, 0),
    end: time = time(12, 0),
    price: str = "25000",
) -> TimeSlot:
    return TimeSlot.create(
        caregiver_id=caregiver_id,
        slot_date=slot_date,
        start_time=start,
        end_time=end,
        price=mwk(price),
    )


def create_appointment(
    scheduled_date: datetime,
    status: AppointmentStatus = AppointmentStatus.SESSION_WAITING,
    reschedule_count: int = 0,
    caregiver_id: str = CAREGIVER_ID,
    time_slot_id: str = "slot-1",
) -> Appointment:
    appointment = Appointment.create(
        patient_id=PATIENT_ID,
        caregiver_id=caregiver_id,
        specialty_id=SPECIALTY_ID,
        time_slot_id=time_slot_id,
        scheduled_date=scheduled_date,
        session_type=SessionType.IN_PERSON,
        fees=FeeSchedule(mwk("5000"), mwk("25000")),
    )
    appointment.status = status
    if status != AppointmentStatus.PENDING:
        appointment.booking_fee_status = FeeStatus.COMPLETED
    appointment.reschedule_count = reschedule_count
    appointment.clear_domain_events()
    return appointment
