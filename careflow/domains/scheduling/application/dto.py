"""
Scheduling Application DTOs

Request and result objects exchanged between the API layer and the
application services.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeType,
    PatientCondition,
    PaymentStatus,
    ReportAttachment,
    SessionType,
    VitalSigns,
)


@dataclass
class CreateAppointmentRequest:
    patient_id: str
    time_slot_id: str
    specialty_id: str
    session_type: SessionType = SessionType.IN_PERSON
    notes: str = ""


@dataclass
class SubmitReportRequest:
    appointment_id: str
    observations: str
    interventions: str
    session_summary: str
    patient_status: PatientCondition
    vitals: VitalSigns = field(default_factory=VitalSigns)
    recommendations: str | None = None
    follow_up_required: bool = False
    attachments: list[ReportAttachment] = field(default_factory=list)


@dataclass
class FeeCompletion:
    """Payment callback as received from the gateway."""

    external_reference: str
    appointment_id: str
    payment_type: FeeType
    succeeded: bool = True
    amount: Decimal | None = None
    failure_reason: str | None = None


class FeeOutcome:
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    FAILED = "failed"
    UNAPPLIED = "unapplied"


@dataclass
class FeeCompletionResult:
    external_reference: str
    appointment_id: str
    payment_type: FeeType
    outcome: str
    transaction_status: PaymentStatus
    appointment_status: AppointmentStatus | None = None

    @property
    def applied(self) -> bool:
        return self.outcome == FeeOutcome.APPLIED

    @property
    def duplicate(self) -> bool:
        return self.outcome == FeeOutcome.DUPLICATE
