"""
CareSessionReport Entity

Clinical record a caregiver writes after a session. Created once per
appointment and never modified.
"""

from dataclasses import dataclass, field
from datetime import datetime

from careflow.core.domain import Entity, ValidationException, generate_uuid_str

from ..value_objects import PatientCondition, ReportAttachment, VitalSigns


@dataclass
class CareSessionReport(Entity[str]):
    appointment_id: str = ""
    caregiver_id: str = ""
    patient_id: str = ""

    observations: str = ""
    interventions: str = ""
    session_summary: str = ""
    recommendations: str | None = None
    patient_status: PatientCondition = PatientCondition.STABLE
    follow_up_required: bool = False
    vitals: VitalSigns = field(default_factory=VitalSigns)
    attachments: list[ReportAttachment] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        appointment_id: str,
        caregiver_id: str,
        patient_id: str,
        observations: str,
        interventions: str,
        session_summary: str,
        patient_status: PatientCondition,
        vitals: VitalSigns | None = None,
        recommendations: str | None = None,
        follow_up_required: bool = False,
        attachments: list[ReportAttachment] | None = None,
        now: datetime | None = None,
    ) -> "CareSessionReport":
        for name, value in (
            ("observations", observations),
            ("interventions", interventions),
            ("session_summary", session_summary),
        ):
            if not value or not value.strip():
                raise ValidationException(f"{name.replace('_', ' ').capitalize()} is required", field=name)

        report = cls(
            id=generate_uuid_str(),
            appointment_id=appointment_id,
            caregiver_id=caregiver_id,
            patient_id=patient_id,
            observations=observations.strip(),
            interventions=interventions.strip(),
            session_summary=session_summary.strip(),
            recommendations=recommendations,
            patient_status=patient_status,
            follow_up_required=follow_up_required,
            vitals=vitals or VitalSigns(),
            attachments=list(attachments or []),
        )
        if now:
            report.created_at = now
            report.updated_at = now
        return report

    def needs_attention(self) -> bool:
        """Reports that should be surfaced to the care coordinator."""
        return (
            self.follow_up_required
            or self.patient_status in (PatientCondition.CRITICAL, PatientCondition.DETERIORATING)
            or self.vitals.is_critical()
        )
