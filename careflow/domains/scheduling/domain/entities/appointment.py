"""
Appointment Entity

Aggregate root of one booked care session and its two fee tracks.
"""

from dataclasses import dataclass
from datetime import datetime

from careflow.core.domain import AggregateRoot, Money, ValidationException, generate_uuid_str

from ..events import (
    AppointmentCancelled,
    AppointmentCreated,
    AppointmentRescheduled,
    BookingConfirmed,
    SessionCompleted,
)
from ..exceptions import InvalidTransitionException
from ..value_objects import (
    AppointmentStatus,
    FeeSchedule,
    FeeStatus,
    FeeType,
    SessionType,
    hours_between,
)
from .care_session_report import CareSessionReport


@dataclass
class Appointment(AggregateRoot[str]):
    """
    Appointment aggregate.

    Status only moves along the appointment transition table; any other
    change raises `InvalidTransitionException`. `total_cost` and
    `payment_status` are derived from the fee tracks and never stored.

    Example:
        ```python
        appointment = Appointment.create(
            patient_id="pt-1",
            caregiver_id="cg-1",
            specialty_id="sp-1",
            time_slot_id=slot.id,
            scheduled_date=slot.starts_at(policy),
            session_type=SessionType.IN_PERSON,
            fees=FeeSchedule(booking_fee, session_fee),
        )
        appointment.mark_fee_completed(FeeType.BOOKING_FEE, now)
        appointment.confirm_booking(now)
        ```
    """

    patient_id: str = ""
    caregiver_id: str = ""
    specialty_id: str = ""
    time_slot_id: str = ""
    scheduled_date: datetime | None = None
    session_type: SessionType = SessionType.IN_PERSON

    status: AppointmentStatus = AppointmentStatus.PENDING
    booking_fee_status: FeeStatus = FeeStatus.PENDING
    session_fee_status: FeeStatus = FeeStatus.PENDING
    booking_fee: Money | None = None
    session_fee: Money | None = None

    reschedule_count: int = 0
    notes: str = ""

    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None

    @classmethod
    def create(
        cls,
        patient_id: str,
        caregiver_id: str,
        specialty_id: str,
        time_slot_id: str,
        scheduled_date: datetime,
        session_type: SessionType,
        fees: FeeSchedule,
        notes: str = "",
        appointment_id: str | None = None,
        now: datetime | None = None,
    ) -> "Appointment":
        if not patient_id:
            raise ValidationException("Patient is required", field="patient_id")

        appointment = cls(
            id=appointment_id or generate_uuid_str(),
            patient_id=patient_id,
            caregiver_id=caregiver_id,
            specialty_id=specialty_id,
            time_slot_id=time_slot_id,
            scheduled_date=scheduled_date,
            session_type=session_type,
            booking_fee=fees.booking_fee,
            session_fee=fees.session_fee,
            notes=notes or "",
        )
        if now:
            appointment.created_at = now
            appointment.updated_at = now

        appointment._record_event(
            AppointmentCreated(
                **appointment._event_fields(),
                total_cost=str(appointment.total_cost.amount),
            )
        )
        return appointment

    # Derived values

    @property
    def total_cost(self) -> Money:
        assert self.booking_fee is not None and self.session_fee is not None
        return FeeSchedule(self.booking_fee, self.session_fee).total

    @property
    def payment_status(self) -> FeeStatus:
        """Completed only when both fee tracks are completed."""
        if self.booking_fee_status == FeeStatus.COMPLETED and self.session_fee_status == FeeStatus.COMPLETED:
            return FeeStatus.COMPLETED
        return FeeStatus.PENDING

    def fee_amount(self, fee_type: FeeType) -> Money:
        fee = self.booking_fee if fee_type == FeeType.BOOKING_FEE else self.session_fee
        assert fee is not None
        return fee

    def fee_status(self, fee_type: FeeType) -> FeeStatus:
        if fee_type == FeeType.BOOKING_FEE:
            return self.booking_fee_status
        return self.session_fee_status

    def hours_until(self, now: datetime) -> float:
        assert self.scheduled_date is not None
        return hours_between(now, self.scheduled_date)

    def _event_fields(self) -> dict:
        return {
            "appointment_id": self.id,
            "patient_id": self.patient_id,
            "caregiver_id": self.caregiver_id,
            "time_slot_id": self.time_slot_id,
            "scheduled_date": self.scheduled_date,
        }

    def _ensure_transition(self, new_status: AppointmentStatus, operation: str) -> None:
        if not self.status.can_transition_to(new_status):
            raise InvalidTransitionException("appointment", operation, self.status.value)

    # Fee tracks

    def mark_fee_completed(self, fee_type: FeeType, now: datetime) -> bool:
        """
        Record that a fee was paid.

        Returns:
            False when the fee track was already completed
        """
        if self.status.is_final():
            raise InvalidTransitionException("appointment", f"complete {fee_type.value}", self.status.value)
        if self.fee_status(fee_type) == FeeStatus.COMPLETED:
            return False

        if fee_type == FeeType.BOOKING_FEE:
            self.booking_fee_status = FeeStatus.COMPLETED
        else:
            self.session_fee_status = FeeStatus.COMPLETED
        self.touch(now)
        return True

    # Status transitions

    def confirm_booking(self, now: datetime) -> None:
        """pending -> session_waiting once the booking fee is paid."""
        self._ensure_transition(AppointmentStatus.SESSION_WAITING, "confirm booking")
        if self.status != AppointmentStatus.PENDING:
            raise InvalidTransitionException("appointment", "confirm booking", self.status.value)
        if self.booking_fee_status != FeeStatus.COMPLETED:
            raise InvalidTransitionException(
                "appointment",
                "confirm booking",
                self.status.value,
                message="Booking fee must be completed before the booking is confirmed",
            )

        self.status = AppointmentStatus.SESSION_WAITING
        self.confirmed_at = now
        self.touch(now)
        self._record_event(BookingConfirmed(**self._event_fields()))

    def cancel(self, reason: str, cancelled_by: str, now: datetime) -> None:
        self._ensure_transition(AppointmentStatus.CANCELLED, "cancel")

        self.status = AppointmentStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.touch(now)
        self._record_event(
            AppointmentCancelled(
                **self._event_fields(),
                reason=reason,
                cancelled_by=cancelled_by,
            )
        )

    def move_to_slot(self, time_slot_id: str, scheduled_date: datetime, reason: str, now: datetime) -> None:
        """session_waiting -> session_waiting on a new slot."""
        if self.status != AppointmentStatus.SESSION_WAITING:
            raise InvalidTransitionException("appointment", "reschedule", self.status.value)
        self._ensure_transition(AppointmentStatus.SESSION_WAITING, "reschedule")

        previous_slot_id = self.time_slot_id
        previous_date = self.scheduled_date
        self.time_slot_id = time_slot_id
        self.scheduled_date = scheduled_date
        self.reschedule_count += 1
        self.touch(now)
        self._record_event(
            AppointmentRescheduled(
                **self._event_fields(),
                previous_time_slot_id=previous_slot_id,
                previous_scheduled_date=previous_date,
                reschedule_count=self.reschedule_count,
                reason=reason,
            )
        )

    def complete_session(self, report: CareSessionReport, now: datetime) -> None:
        """session_waiting -> session_attended, only with a persisted report."""
        if report.appointment_id != self.id:
            raise ValidationException("Report belongs to a different appointment", field="appointment_id")
        self._ensure_transition(AppointmentStatus.SESSION_ATTENDED, "complete session")
        if self.payment_status != FeeStatus.COMPLETED:
            raise InvalidTransitionException(
                "appointment",
                "complete session",
                self.status.value,
                message="Both booking and session fees must be completed before the session is closed",
            )

        self.status = AppointmentStatus.SESSION_ATTENDED
        self.completed_at = now
        self.touch(now)
        self._record_event(SessionCompleted(**self._event_fields(), report_id=report.id or ""))
