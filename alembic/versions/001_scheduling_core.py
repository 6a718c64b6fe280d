"""Create scheduling core tables.

Revision ID: 001_scheduling_core
Revises:
Create Date: 2026-10-19

This migration creates the tables for:
- specialties: Care specialties and their fees
- caregiver_availability: Weekly availability windows
- time_slots: Bookable slots with checkout locks
- appointments: Appointments and their fee tracks
- payment_transactions: Fee payments keyed by gateway reference
- care_session_reports: One report per appointment
- appointment_reschedules: Reschedule history
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_core"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _enum_column(name: str, nullable: bool = False) -> sa.Column:
    # Enums are stored as their string values
    return sa.Column(name, sa.String(32), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "specialties",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("booking_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("session_fee", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "caregiver_availability",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("caregiver_id", sa.String(36), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_caregiver_availability_caregiver_id", "caregiver_availability", ["caregiver_id"])

    op.create_table(
        "time_slots",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("caregiver_id", sa.String(36), nullable=False),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        _enum_column("status"),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lock_holder", sa.String(36), nullable=True),
        sa.Column("appointment_id", sa.String(36), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("caregiver_id", "slot_date", "start_time", name="uq_time_slots_caregiver_start"),
    )
    op.create_index("ix_time_slots_caregiver_id", "time_slots", ["caregiver_id"])
    op.create_index("ix_time_slots_slot_date", "time_slots", ["slot_date"])
    op.create_index("ix_time_slots_status_locked_until", "time_slots", ["status", "locked_until"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("patient_id", sa.String(36), nullable=False),
        sa.Column("caregiver_id", sa.String(36), nullable=False),
        sa.Column("specialty_id", sa.String(36), sa.ForeignKey("specialties.id"), nullable=False),
        sa.Column("time_slot_id", sa.String(36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        _enum_column("session_type"),
        _enum_column("status"),
        _enum_column("booking_fee_status"),
        _enum_column("session_fee_status"),
        sa.Column("booking_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("session_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("reschedule_count", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(255), nullable=True),
        sa.Column("cancelled_by", sa.String(36), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_caregiver_id", "appointments", ["caregiver_id"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index("ix_appointments_time_slot_status", "appointments", ["time_slot_id", "status"])

    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), sa.ForeignKey("appointments.id"), nullable=False),
        _enum_column("payment_type"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        _enum_column("status"),
        sa.Column("external_reference", sa.String(64), nullable=False),
        sa.Column("checkout_url", sa.String(500), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("failure_reason", sa.String(255), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_payment_transactions_appointment_id", "payment_transactions", ["appointment_id"])
    op.create_index(
        "ix_payment_transactions_external_reference", "payment_transactions", ["external_reference"], unique=True
    )

    op.create_table(
        "care_session_reports",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), sa.ForeignKey("appointments.id"), nullable=False, unique=True),
        sa.Column("caregiver_id", sa.String(36), nullable=False),
        sa.Column("patient_id", sa.String(36), nullable=False),
        sa.Column("observations", sa.Text(), nullable=False),
        sa.Column("interventions", sa.Text(), nullable=False),
        sa.Column("session_summary", sa.Text(), nullable=False),
        sa.Column("recommendations", sa.Text(), nullable=True),
        _enum_column("patient_status"),
        sa.Column("follow_up_required", sa.Boolean(), nullable=False),
        sa.Column("vitals", sa.JSON(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_care_session_reports_caregiver_id", "care_session_reports", ["caregiver_id"])
    op.create_index("ix_care_session_reports_patient_id", "care_session_reports", ["patient_id"])

    op.create_table(
        "appointment_reschedules",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("appointment_id", sa.String(36), sa.ForeignKey("appointments.id"), nullable=False),
        sa.Column("from_time_slot_id", sa.String(36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("to_time_slot_id", sa.String(36), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("previous_scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("new_scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        _enum_column("requested_by"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_appointment_reschedules_appointment_id", "appointment_reschedules", ["appointment_id"])


def downgrade() -> None:
    op.drop_table("appointment_reschedules")
    op.drop_table("care_session_reports")
    op.drop_table("payment_transactions")
    op.drop_table("appointments")
    op.drop_table("time_slots")
    op.drop_table("caregiver_availability")
    op.drop_table("specialties")
