"""
Scheduling Domain Events

Published after the originating transaction commits. Consumed by the
notification adapters.
"""

from dataclasses import dataclass
from datetime import datetime

from careflow.core.domain import DomainEvent


@dataclass(frozen=True, kw_only=True)
class AppointmentEvent(DomainEvent):
    appointment_id: str
    patient_id: str
    caregiver_id: str
    time_slot_id: str
    scheduled_date: datetime


@dataclass(frozen=True, kw_only=True)
class AppointmentCreated(AppointmentEvent):
    """A patient started checkout for a slot."""

    total_cost: str


@dataclass(frozen=True, kw_only=True)
class BookingConfirmed(AppointmentEvent):
    """Booking fee paid, slot booked."""


@dataclass(frozen=True, kw_only=True)
class AppointmentRescheduled(AppointmentEvent):
    """Appointment moved to a new slot of the same caregiver."""

    previous_time_slot_id: str
    previous_scheduled_date: datetime
    reschedule_count: int
    reason: str = ""


@dataclass(frozen=True, kw_only=True)
class AppointmentCancelled(AppointmentEvent):
    """Appointment cancelled and slot released."""

    reason: str = ""
    cancelled_by: str = ""


@dataclass(frozen=True, kw_only=True)
class SessionCompleted(AppointmentEvent):
    """Care session report submitted, appointment attended."""

    report_id: str


@dataclass(frozen=True, kw_only=True)
class FeePaymentCompleted(DomainEvent):
    """A fee transaction was applied to its appointment."""

    appointment_id: str
    payment_type: str
    external_reference: str
    amount: str
