"""
Scheduling API Schemas

Pydantic schemas for API request/response validation.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from careflow.core.domain import Money
from careflow.domains.scheduling.domain.entities import (
    Appointment,
    CareSessionReport,
    CaregiverAvailability,
    PaymentTransaction,
    RescheduleRecord,
    TimeSlot,
)
from careflow.domains.scheduling.domain.services import RescheduleEligibility
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeType,
    PatientCondition,
    SessionType,
    SlotStatus,
)


class MoneySchema(BaseModel):
    """Amount with ISO currency."""

    amount: Decimal = Field(ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)

    @classmethod
    def from_money(cls, money: Money | None) -> "MoneySchema | None":
        if money is None:
            return None
        return cls(amount=money.amount, currency=money.currency)

    def to_money(self, default_currency: str) -> Money:
        return Money(amount=self.amount, currency=self.currency or default_currency)


# ==================== TIME SLOTS ====================


class GenerateSlotsRequest(BaseModel):
    """Partition one availability window into slots."""

    caregiver_id: str
    date: date
    start_time: time
    end_time: time
    duration_minutes: int | None = Field(default=None, ge=15, le=24 * 60)
    price: MoneySchema | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "GenerateSlotsRequest":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class GenerateSlotsRangeRequest(BaseModel):
    """Generate slots from weekly availability over a date range."""

    caregiver_id: str
    start_date: date
    end_date: date
    duration_minutes: int | None = Field(default=None, ge=15, le=24 * 60)
    price: MoneySchema | None = None


class TimeSlotResponse(BaseModel):
    """Time slot response schema."""

    id: str
    caregiver_id: str
    slot_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    status: SlotStatus
    price: MoneySchema | None = None
    locked_until: datetime | None = None
    appointment_id: str | None = None

    @classmethod
    def from_entity(cls, slot: TimeSlot) -> "TimeSlotResponse":
        return cls(
            id=slot.id or "",
            caregiver_id=slot.caregiver_id,
            slot_date=slot.slot_date or date.min,
            start_time=slot.start_time or time(0, 0),
            end_time=slot.end_time or time(0, 0),
            duration_minutes=slot.duration_minutes,
            status=slot.status,
            price=MoneySchema.from_money(slot.price),
            locked_until=slot.locked_until if slot.status == SlotStatus.LOCKED else None,
            appointment_id=slot.appointment_id,
        )


class UnlockSlotRequest(BaseModel):
    appointment_id: str


class UpdatePriceRequest(BaseModel):
    price: MoneySchema


class BulkUpdatePriceRequest(BaseModel):
    slot_ids: list[str] = Field(min_length=1, max_length=500)
    price: MoneySchema


# ==================== AVAILABILITY ====================


class AvailabilityWindowRequest(BaseModel):
    """Weekly availability window, day_of_week 0=Sunday ... 6=Saturday."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    is_active: bool = True


class CreateAvailabilityRequest(AvailabilityWindowRequest):
    caregiver_id: str


class ReplaceAvailabilityRequest(BaseModel):
    windows: list[AvailabilityWindowRequest] = Field(default_factory=list, max_length=50)


class AvailabilityResponse(BaseModel):
    """Availability response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    caregiver_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool

    @classmethod
    def from_entity(cls, availability: CaregiverAvailability) -> "AvailabilityResponse":
        return cls.model_validate(availability)


# ==================== APPOINTMENTS ====================


class CreateAppointmentBody(BaseModel):
    """Appointment request schema."""

    patient_id: str
    time_slot_id: str
    specialty_id: str
    session_type: SessionType = SessionType.IN_PERSON
    notes: str = Field(default="", max_length=2000)


class CancelAppointmentRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class RescheduleRequest(BaseModel):
    new_time_slot_id: str
    reason: str = Field(default="", max_length=500)


class AppointmentResponse(BaseModel):
    """Appointment response schema."""

    id: str
    patient_id: str
    caregiver_id: str
    specialty_id: str
    time_slot_id: str
    scheduled_date: datetime | None = None
    session_type: SessionType
    status: AppointmentStatus
    booking_fee: MoneySchema | None = None
    session_fee: MoneySchema | None = None
    booking_fee_status: str
    session_fee_status: str
    payment_status: str
    reschedule_count: int
    notes: str
    confirmed_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id or "",
            patient_id=appointment.patient_id,
            caregiver_id=appointment.caregiver_id,
            specialty_id=appointment.specialty_id,
            time_slot_id=appointment.time_slot_id,
            scheduled_date=appointment.scheduled_date,
            session_type=appointment.session_type,
            status=appointment.status,
            booking_fee=MoneySchema.from_money(appointment.booking_fee),
            session_fee=MoneySchema.from_money(appointment.session_fee),
            booking_fee_status=appointment.booking_fee_status.value,
            session_fee_status=appointment.session_fee_status.value,
            payment_status=appointment.payment_status.value,
            reschedule_count=appointment.reschedule_count,
            notes=appointment.notes,
            confirmed_at=appointment.confirmed_at,
            completed_at=appointment.completed_at,
            cancelled_at=appointment.cancelled_at,
            cancellation_reason=appointment.cancellation_reason,
            cancelled_by=appointment.cancelled_by,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )


class RescheduleEligibilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    appointment_id: str
    can_reschedule: bool
    hours_until: float
    reschedule_count: int
    remaining_reschedules: int
    cutoff_hours: int
    blocking_reason: str | None = None

    @classmethod
    def from_eligibility(cls, eligibility: RescheduleEligibility) -> "RescheduleEligibilityResponse":
        return cls.model_validate(eligibility)


class RescheduleRecordResponse(BaseModel):
    id: str
    appointment_id: str
    from_time_slot_id: str
    to_time_slot_id: str
    previous_scheduled_date: datetime | None = None
    new_scheduled_date: datetime | None = None
    reason: str
    requested_by: str
    created_at: datetime

    @classmethod
    def from_entity(cls, record: RescheduleRecord) -> "RescheduleRecordResponse":
        return cls(
            id=record.id or "",
            appointment_id=record.appointment_id,
            from_time_slot_id=record.from_time_slot_id,
            to_time_slot_id=record.to_time_slot_id,
            previous_scheduled_date=record.previous_scheduled_date,
            new_scheduled_date=record.new_scheduled_date,
            reason=record.reason,
            requested_by=record.requested_by.value,
            created_at=record.created_at,
        )


# ==================== PAYMENTS ====================


class CheckoutRequestBody(BaseModel):
    payment_type: FeeType


class PaymentTransactionResponse(BaseModel):
    """Fee transaction response schema."""

    id: str
    appointment_id: str
    payment_type: FeeType
    amount: MoneySchema | None = None
    status: str
    external_reference: str
    checkout_url: str | None = None
    paid_at: datetime | None = None
    failure_reason: str | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, transaction: PaymentTransaction) -> "PaymentTransactionResponse":
        return cls(
            id=transaction.id or "",
            appointment_id=transaction.appointment_id,
            payment_type=transaction.payment_type,
            amount=MoneySchema.from_money(transaction.amount),
            status=transaction.status.value,
            external_reference=transaction.external_reference,
            checkout_url=transaction.checkout_url,
            paid_at=transaction.paid_at,
            failure_reason=transaction.failure_reason,
            created_at=transaction.created_at,
        )


class PaymentWebhookPayload(BaseModel):
    """
    Payment gateway callback.

    Accepts the flat form or the gateway form where the appointment and
    fee type travel in `meta`:

        {"tx_ref": "...", "status": "success", "amount": "5000.00",
         "meta": {"appointment_id": "...", "payment_type": "booking_fee"}}
    """

    external_reference: str = Field(validation_alias=AliasChoices("external_reference", "tx_ref"))
    status: str = "success"
    amount: Decimal | None = None
    appointment_id: str | None = None
    payment_type: FeeType | None = None
    failure_reason: str | None = None
    meta: dict[str, Any] | None = None

    @model_validator(mode="after")
    def resolve_meta(self) -> "PaymentWebhookPayload":
        meta = self.meta or {}
        if self.appointment_id is None and meta.get("appointment_id"):
            self.appointment_id = str(meta["appointment_id"])
        if self.payment_type is None and meta.get("payment_type"):
            self.payment_type = FeeType(meta["payment_type"])
        if not self.appointment_id or self.payment_type is None:
            raise ValueError("Webhook must carry appointment_id and payment_type")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status.lower() in ("success", "successful", "completed", "paid")


class WebhookAck(BaseModel):
    status: str
    external_reference: str | None = None
    appointment_status: str | None = None


class PaymentVerificationResponse(BaseModel):
    external_reference: str
    appointment_id: str
    payment_type: FeeType
    status: str
    paid_at: datetime | None = None
    appointment_status: AppointmentStatus


# ==================== REPORTS ====================


class VitalSignsSchema(BaseModel):
    heart_rate: int | None = Field(default=None, ge=20, le=250)
    blood_pressure_systolic: int | None = Field(default=None, ge=40, le=300)
    blood_pressure_diastolic: int | None = Field(default=None, ge=20, le=200)
    temperature: float | None = Field(default=None, ge=30, le=45)
    respiratory_rate: int | None = Field(default=None, ge=4, le=70)
    oxygen_saturation: float | None = Field(default=None, ge=0, le=100)
    weight: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)


class AttachmentSchema(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    storage_ref: str = Field(min_length=1, max_length=1024)
    content_type: str | None = None
    size_bytes: int | None = Field(default=None, ge=0)


class SubmitReportBody(BaseModel):
    """Care session report submitted by the caregiver."""

    appointment_id: str
    observations: str = Field(min_length=1)
    interventions: str = Field(min_length=1)
    session_summary: str = Field(min_length=1)
    patient_status: PatientCondition
    vitals: VitalSignsSchema = Field(default_factory=VitalSignsSchema)
    recommendations: str | None = None
    follow_up_required: bool = False
    attachments: list[AttachmentSchema] = Field(default_factory=list, max_length=20)


class ReportResponse(BaseModel):
    """Care session report response schema."""

    id: str
    appointment_id: str
    caregiver_id: str
    patient_id: str
    observations: str
    interventions: str
    session_summary: str
    recommendations: str | None = None
    patient_status: PatientCondition
    follow_up_required: bool
    vitals: dict[str, Any]
    attachments: list[AttachmentSchema]
    created_at: datetime

    @classmethod
    def from_entity(cls, report: CareSessionReport) -> "ReportResponse":
        return cls(
            id=report.id or "",
            appointment_id=report.appointment_id,
            caregiver_id=report.caregiver_id,
            patient_id=report.patient_id,
            observations=report.observations,
            interventions=report.interventions,
            session_summary=report.session_summary,
            recommendations=report.recommendations,
            patient_status=report.patient_status,
            follow_up_required=report.follow_up_required,
            vitals=report.vitals.to_dict(),
            attachments=[AttachmentSchema(**attachment.to_dict()) for attachment in report.attachments],
            created_at=report.created_at,
        )
