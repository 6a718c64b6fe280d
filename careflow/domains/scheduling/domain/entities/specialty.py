"""
Specialty Entity

Read model of a care specialty and the fees it charges.
"""

from dataclasses import dataclass

from careflow.core.domain import Entity, Money

from ..value_objects import FeeSchedule


@dataclass
class Specialty(Entity[str]):
    name: str = ""
    description: str | None = None
    booking_fee: Money | None = None
    session_fee: Money | None = None
    is_active: bool = True

    def fee_schedule(self, caregiver_rate: Money | None = None) -> FeeSchedule:
        """
        Fees for an appointment of this specialty.

        The session fee falls back to the caregiver's slot rate when the
        specialty does not set one.
        """
        assert self.booking_fee is not None
        session_fee = self.session_fee
        if (session_fee is None or session_fee.is_zero()) and caregiver_rate is not None:
            session_fee = caregiver_rate
        if session_fee is None:
            session_fee = Money.zero(self.booking_fee.currency)
        return FeeSchedule(booking_fee=self.booking_fee, session_fee=session_fee)
