"""
RescheduleRecord Entity

History row written for every successful reschedule.
"""

from dataclasses import dataclass
from datetime import datetime

from careflow.core.domain import Entity, generate_uuid_str

from ..value_objects import ActorRole


@dataclass
class RescheduleRecord(Entity[str]):
    appointment_id: str = ""
    from_time_slot_id: str = ""
    to_time_slot_id: str = ""
    previous_scheduled_date: datetime | None = None
    new_scheduled_date: datetime | None = None
    reason: str = ""
    requested_by: ActorRole = ActorRole.PATIENT

    @classmethod
    def create(
        cls,
        appointment_id: str,
        from_time_slot_id: str,
        to_time_slot_id: str,
        previous_scheduled_date: datetime,
        new_scheduled_date: datetime,
        reason: str,
        requested_by: ActorRole,
        now: datetime,
    ) -> "RescheduleRecord":
        return cls(
            id=generate_uuid_str(),
            appointment_id=appointment_id,
            from_time_slot_id=from_time_slot_id,
            to_time_slot_id=to_time_slot_id,
            previous_scheduled_date=previous_scheduled_date,
            new_scheduled_date=new_scheduled_date,
            reason=reason,
            requested_by=requested_by,
            created_at=now,
            updated_at=now,
        )
