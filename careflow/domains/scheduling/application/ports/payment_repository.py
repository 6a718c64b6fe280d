"""
Payment Transaction Repository Port
"""

from typing import Protocol, runtime_checkable

from careflow.domains.scheduling.domain.entities import PaymentTransaction
from careflow.domains.scheduling.domain.value_objects import FeeType


@runtime_checkable
class IPaymentTransactionRepository(Protocol):
    """
    Payment transaction repository interface.

    `external_reference` is unique; `save` is versioned so exactly one
    of several concurrent completions of the same reference succeeds.
    """

    async def find_by_reference(self, external_reference: str) -> PaymentTransaction | None:
        ...

    async def find_open(self, appointment_id: str, payment_type: FeeType) -> PaymentTransaction | None:
        """Find the pending transaction of one fee track, if any."""
        ...

    async def find_by_appointment(self, appointment_id: str) -> list[PaymentTransaction]:
        ...

    async def add(self, transaction: PaymentTransaction) -> PaymentTransaction:
        ...

    async def save(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """
        Persist changes if the stored version still matches.

        Raises:
            ConcurrencyException: When the transaction was modified concurrently
        """
        ...
