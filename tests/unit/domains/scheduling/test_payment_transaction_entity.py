"""Unit tests for PaymentTransaction."""

import pytest

from careflow.domains.scheduling.domain.entities import PaymentTransaction
from careflow.domains.scheduling.domain.exceptions import (
    DuplicateCompletionException,
    InvalidTransitionException,
)
from careflow.domains.scheduling.domain.value_objects import FeeType, PaymentStatus
from tests.utils.factories import DEFAULT_NOW, mwk

NOW = DEFAULT_NOW


def _transaction(**overrides) -> PaymentTransaction:
    values = {
        "appointment_id": "appt-1",
        "payment_type": FeeType.BOOKING_FEE,
        "amount": mwk("5000"),
    }
    values.update(overrides)
    return PaymentTransaction.create(**values)


@pytest.mark.unit
class TestPaymentTransaction:
    def test_generates_unique_references(self) -> None:
        """Should issue a fresh CF- reference per transaction."""
        first, second = _transaction(), _transaction()

        assert first.external_reference.startswith("CF-")
        assert len(first.external_reference) == 19
        assert first.external_reference != second.external_reference

    def test_keeps_given_reference(self) -> None:
        assert _transaction(external_reference="tx-42").external_reference == "tx-42"

    def test_matches_appointment_and_fee(self) -> None:
        tx = _transaction()

        assert tx.matches("appt-1", FeeType.BOOKING_FEE)
        assert not tx.matches("appt-1", FeeType.SESSION_FEE)
        assert not tx.matches("appt-2", FeeType.BOOKING_FEE)

    def test_complete_records_event(self) -> None:
        tx = _transaction()

        tx.complete(NOW)

        assert tx.status == PaymentStatus.COMPLETED
        assert tx.paid_at == NOW
        event = tx.get_domain_events()[-1]
        assert event.event_type == "FeePaymentCompleted"
        assert event.amount == "5000.00"

    def test_second_completion_is_duplicate(self) -> None:
        """Should flag a replayed completion instead of applying it again."""
        tx = _transaction()
        tx.complete(NOW)

        with pytest.raises(DuplicateCompletionException):
            tx.complete(NOW)

        assert len(tx.get_domain_events()) == 1

    def test_late_success_overrides_failure(self) -> None:
        """Should accept a success callback after a failure."""
        tx = _transaction()
        tx.fail("insufficient funds", NOW)

        tx.complete(NOW)

        assert tx.status == PaymentStatus.COMPLETED
        assert tx.failure_reason is None

    def test_completed_transaction_cannot_fail(self) -> None:
        tx = _transaction()
        tx.complete(NOW)

        with pytest.raises(InvalidTransitionException):
            tx.fail("late failure", NOW)
