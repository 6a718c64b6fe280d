"""
Appointment Repository Port

Interface for appointment data access following Clean Architecture.
"""

from datetime import datetime
from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import Appointment
from careflow.domains.scheduling.domain.value_objects import AppointmentStatus


@runtime_checkable
class IAppointmentRepository(Protocol):
    """
    Appointment repository interface.

    Writes are checked against the aggregate version (optimistic locking).
    """

    async def find_by_id(self, appointment_id: str, for_update: bool = False) -> Appointment | None:
        """
        Find appointment by ID.

        Args:
            appointment_id: Unique appointment identifier
            for_update: Take a row lock where the backend supports it

        Returns:
            Appointment if found, None otherwise
        """
        ...

    async def find_many(
        self,
        patient_id: str | None = None,
        caregiver_id: str | None = None,
        status: AppointmentStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Appointment]:
        """
        Find appointments by participant and status.

        Returns:
            Appointments ordered by scheduled date
        """
        ...

    async def find_active_by_slot(self, slot_id: str) -> Appointment | None:
        """Find the non-cancelled appointment referencing a slot."""
        ...

    async def find_stale_pending(self, now: datetime, limit: int = 100) -> list[Appointment]:
        """
        Find pending appointments whose checkout hold on the slot has lapsed.

        Args:
            now: Reference instant
            limit: Maximum results

        Returns:
            Pending appointments no longer holding a live lock
        """
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment."""
        ...

    async def save(self, appointment: Appointment) -> Appointment:
        """
        Persist changes, incrementing the version.

        Raises:
            ConcurrencyException: When the stored version moved on
        """
        ...
