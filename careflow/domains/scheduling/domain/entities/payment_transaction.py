"""
PaymentTransaction Entity

One fee payment attempt, identified externally by its gateway reference.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime

from careflow.core.domain import AggregateRoot, Money, generate_uuid_str

from ..events import FeePaymentCompleted
from ..exceptions import DuplicateCompletionException, InvalidTransitionException
from ..value_objects import FeeType, PaymentStatus


@dataclass
class PaymentTransaction(AggregateRoot[str]):
    """
    Payment transaction for one fee of one appointment.

    `external_reference` is unique. Completing an already completed
    transaction raises `DuplicateCompletionException`, which callers
    treat as a replay.

    Example:
        ```python
        tx = PaymentTransaction.create(
            appointment_id=appointment.id,
            payment_type=FeeType.BOOKING_FEE,
            amount=appointment.booking_fee,
        )
        tx.complete(now)
        ```
    """

    appointment_id: str = ""
    payment_type: FeeType = FeeType.BOOKING_FEE
    amount: Money | None = None
    status: PaymentStatus = PaymentStatus.PENDING
    external_reference: str = ""
    checkout_url: str | None = None
    paid_at: datetime | None = None
    failure_reason: str | None = None

    @staticmethod
    def generate_reference() -> str:
        return f"CF-{uuid.uuid4().hex[:16].upper()}"

    @classmethod
    def create(
        cls,
        appointment_id: str,
        payment_type: FeeType,
        amount: Money,
        external_reference: str | None = None,
        now: datetime | None = None,
    ) -> "PaymentTransaction":
        tx = cls(
            id=generate_uuid_str(),
            appointment_id=appointment_id,
            payment_type=payment_type,
            amount=amount,
            external_reference=external_reference or cls.generate_reference(),
        )
        if now:
            tx.created_at = now
            tx.updated_at = now
        return tx

    def matches(self, appointment_id: str, payment_type: FeeType) -> bool:
        return self.appointment_id == appointment_id and self.payment_type == payment_type

    def complete(self, now: datetime) -> None:
        """Mark the payment as applied. A late success overrides an earlier failure."""
        if self.status == PaymentStatus.COMPLETED:
            raise DuplicateCompletionException(self.external_reference)
        if self.status == PaymentStatus.REFUNDED:
            raise InvalidTransitionException("payment", "complete", self.status.value)

        self.status = PaymentStatus.COMPLETED
        self.paid_at = now
        self.failure_reason = None
        self.touch(now)
        self._record_event(
            FeePaymentCompleted(
                appointment_id=self.appointment_id,
                payment_type=self.payment_type.value,
                external_reference=self.external_reference,
                amount=str(self.amount.amount) if self.amount else "0",
            )
        )

    def fail(self, reason: str, now: datetime) -> None:
        if self.status.is_final():
            raise InvalidTransitionException("payment", "fail", self.status.value)

        self.status = PaymentStatus.FAILED
        self.failure_reason = reason
        self.touch(now)

    def attach_checkout(self, checkout_url: str | None, now: datetime) -> None:
        self.checkout_url = checkout_url
        self.touch(now)
