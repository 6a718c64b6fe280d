"""
Scheduling SQLAlchemy Models

Database models for scheduling domain persistence.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
)

from careflow.core.domain import DEFAULT_CURRENCY
from careflow.database.base import Base, TimestampMixin
from careflow.domains.scheduling.domain.value_objects import (
    ActorRole,
    AppointmentStatus,
    FeeStatus,
    FeeType,
    PatientCondition,
    PaymentStatus,
    SessionType,
    SlotStatus,
)


def _enum(enum_class, name: str) -> SQLEnum:
    """Store enum values (not member names) so the columns read like the API."""
    return SQLEnum(
        enum_class,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        native_enum=False,
        length=32,
    )


class SpecialtyModel(Base, TimestampMixin):
    """Care specialty and the fees it charges."""

    __tablename__ = "specialties"

    id = Column(String(36), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    booking_fee = Column(Numeric(12, 2), nullable=False)
    session_fee = Column(Numeric(12, 2), nullable=True)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    is_active = Column(Boolean, nullable=False, default=True)


class CaregiverAvailabilityModel(Base, TimestampMixin):
    """Weekly recurring availability window of a caregiver."""

    __tablename__ = "caregiver_availability"

    id = Column(String(36), primary_key=True)
    caregiver_id = Column(String(36), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class TimeSlotModel(Base, TimestampMixin):
    """Bookable time slot of a caregiver."""

    __tablename__ = "time_slots"
    __table_args__ = (
        UniqueConstraint("caregiver_id", "slot_date", "start_time", name="uq_time_slots_caregiver_start"),
        Index("ix_time_slots_status_locked_until", "status", "locked_until"),
    )

    id = Column(String(36), primary_key=True)
    caregiver_id = Column(String(36), nullable=False, index=True)
    slot_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=180)

    price = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)

    status = Column(_enum(SlotStatus, "slot_status"), nullable=False, default=SlotStatus.AVAILABLE)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    lock_holder = Column(String(36), nullable=True)
    appointment_id = Column(String(36), nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=0)


class AppointmentModel(Base, TimestampMixin):
    """Appointment between a patient and a caregiver."""

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_time_slot_status", "time_slot_id", "status"),
    )

    id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), nullable=False, index=True)
    caregiver_id = Column(String(36), nullable=False, index=True)
    specialty_id = Column(String(36), ForeignKey("specialties.id"), nullable=False)
    time_slot_id = Column(String(36), ForeignKey("time_slots.id"), nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=False)
    session_type = Column(_enum(SessionType, "session_type"), nullable=False, default=SessionType.IN_PERSON)

    status = Column(
        _enum(AppointmentStatus, "appointment_status"),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
    )
    booking_fee_status = Column(_enum(FeeStatus, "fee_status"), nullable=False, default=FeeStatus.PENDING)
    session_fee_status = Column(_enum(FeeStatus, "fee_status"), nullable=False, default=FeeStatus.PENDING)

    # Fees
    booking_fee = Column(Numeric(12, 2), nullable=False)
    session_fee = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)

    reschedule_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Lifecycle
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(String(255), nullable=True)
    cancelled_by = Column(String(36), nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=0)


class PaymentTransactionModel(Base, TimestampMixin):
    """One fee payment, keyed externally by its gateway reference."""

    __tablename__ = "payment_transactions"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False, index=True)
    payment_type = Column(_enum(FeeType, "fee_type"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    status = Column(_enum(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING)
    external_reference = Column(String(64), nullable=False, unique=True, index=True)
    checkout_url = Column(String(500), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(String(255), nullable=True)

    # Optimistic concurrency
    version = Column(Integer, nullable=False, default=0)


class CareSessionReportModel(Base, TimestampMixin):
    """Care session report, one per appointment."""

    __tablename__ = "care_session_reports"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False, unique=True)
    caregiver_id = Column(String(36), nullable=False, index=True)
    patient_id = Column(String(36), nullable=False, index=True)

    observations = Column(Text, nullable=False)
    interventions = Column(Text, nullable=False)
    session_summary = Column(Text, nullable=False)
    recommendations = Column(Text, nullable=True)
    patient_status = Column(_enum(PatientCondition, "patient_condition"), nullable=False)
    follow_up_required = Column(Boolean, nullable=False, default=False)

    vitals = Column(JSON, nullable=False, default=dict)
    attachments = Column(JSON, nullable=False, default=list)


class AppointmentRescheduleModel(Base):
    """Reschedule history row."""

    __tablename__ = "appointment_reschedules"

    id = Column(String(36), primary_key=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=False, index=True)
    from_time_slot_id = Column(String(36), ForeignKey("time_slots.id"), nullable=False)
    to_time_slot_id = Column(String(36), ForeignKey("time_slots.id"), nullable=False)
    previous_scheduled_date = Column(DateTime(timezone=True), nullable=False)
    new_scheduled_date = Column(DateTime(timezone=True), nullable=False)
    reason = Column(Text, nullable=True)
    requested_by = Column(_enum(ActorRole, "actor_role"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
