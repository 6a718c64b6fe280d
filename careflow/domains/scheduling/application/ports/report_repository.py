"""
Care Session Report Repository Port
"""

from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import CareSessionReport


@runtime_checkable
class ICareSessionReportRepository(Protocol):
    async def find_by_appointment(self, appointment_id: str) -> CareSessionReport | None:
        ...

    async def find_many(
        self,
        caregiver_id: str | None = None,
        patient_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[CareSessionReport]:
        ...

    async def add(self, report: CareSessionReport) -> CareSessionReport:
        """
        Insert a report.

        Raises:
            ReportExistsException: When the appointment already has one
        """
        ...
