"""Integration tests for PaymentGate webhook handling."""

import asyncio
from decimal import Decimal

import pytest

from careflow.domains.scheduling.application.dto import FeeCompletion, FeeOutcome
from careflow.domains.scheduling.domain.exceptions import InvalidTransitionException, PaymentMismatchException
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeStatus,
    FeeType,
    PaymentStatus,
    SlotStatus,
)


async def _checkout(scope, appointment_id: str, fee_type: FeeType = FeeType.BOOKING_FEE):
    async with scope() as services:
        return await services.payment_gate.initiate_checkout(appointment_id, fee_type)


async def _deliver(scope, completion: FeeCompletion):
    async with scope() as services:
        return await services.payment_gate.complete_fee(completion)


@pytest.mark.integration
class TestCheckout:
    @pytest.mark.asyncio
    async def test_opens_gateway_checkout(self, scope, day_slots, book, payment_gateway) -> None:
        """Should record a pending transaction and store the gateway checkout URL."""
        appointment = await book(day_slots[0].id)

        transaction = await _checkout(scope, appointment.id)

        assert transaction.status == PaymentStatus.PENDING
        assert transaction.amount.amount == Decimal("5000.00")
        assert transaction.checkout_url.endswith(transaction.external_reference)
        assert payment_gateway.requests[0].appointment_id == appointment.id

    @pytest.mark.asyncio
    async def test_reuses_open_transaction(self, scope, day_slots, book, payment_gateway) -> None:
        appointment = await book(day_slots[0].id)

        first = await _checkout(scope, appointment.id)
        second = await _checkout(scope, appointment.id)

        assert first.external_reference == second.external_reference
        assert len(payment_gateway.requests) == 1

    @pytest.mark.asyncio
    async def test_paid_fee_cannot_be_checked_out_again(self, scope, day_slots, confirmed) -> None:
        appointment = await confirmed(day_slots[0].id)

        with pytest.raises(InvalidTransitionException):
            await _checkout(scope, appointment.id, FeeType.BOOKING_FEE)


@pytest.mark.integration
class TestWebhookIdempotency:
    @pytest.mark.asyncio
    async def test_duplicate_delivery_changes_nothing(self, scope, day_slots, book, notifications) -> None:
        """Should apply a callback once and report replays as duplicates."""
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        completion = FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)

        first = await _deliver(scope, completion)
        second = await _deliver(scope, completion)

        assert first.outcome == FeeOutcome.APPLIED
        assert second.outcome == FeeOutcome.DUPLICATE
        assert second.appointment_status == AppointmentStatus.SESSION_WAITING
        assert notifications.event_types.count("BookingConfirmed") == 1

        async with scope() as services:
            transactions = await services.payment_gate.list_transactions(appointment.id)
        assert [t.status for t in transactions] == [PaymentStatus.COMPLETED]

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_apply_once(self, scope, day_slots, book, notifications) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        completion = FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)

        results = await asyncio.gather(_deliver(scope, completion), _deliver(scope, completion))

        assert sorted(r.outcome for r in results) == [FeeOutcome.APPLIED, FeeOutcome.DUPLICATE]
        assert notifications.event_types.count("BookingConfirmed") == 1

    @pytest.mark.asyncio
    async def test_unknown_reference_is_recorded_on_first_sight(self, scope, day_slots, book) -> None:
        """Should accept a callback whose checkout was never recorded locally."""
        appointment = await book(day_slots[0].id)

        result = await _deliver(scope, FeeCompletion("gw-123", appointment.id, FeeType.BOOKING_FEE))

        assert result.applied
        async with scope() as services:
            stored = await services.payment_gate.get_transaction("gw-123")
        assert stored.status == PaymentStatus.COMPLETED
        assert stored.amount.amount == Decimal("5000.00")


@pytest.mark.integration
class TestWebhookMismatch:
    @pytest.mark.asyncio
    async def test_reference_for_other_fee(self, scope, day_slots, book) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)

        with pytest.raises(PaymentMismatchException):
            await _deliver(scope, FeeCompletion(transaction.external_reference, appointment.id, FeeType.SESSION_FEE))

    @pytest.mark.asyncio
    async def test_reference_for_other_appointment(self, scope, day_slots, book) -> None:
        first = await book(day_slots[0].id)
        second = await book(day_slots[1].id)
        transaction = await _checkout(scope, first.id)

        with pytest.raises(PaymentMismatchException):
            await _deliver(scope, FeeCompletion(transaction.external_reference, second.id, FeeType.BOOKING_FEE))

    @pytest.mark.asyncio
    async def test_amount_mismatch_leaves_state_untouched(self, scope, day_slots, book) -> None:
        """Should refuse a callback whose amount differs from the fee."""
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)

        with pytest.raises(PaymentMismatchException) as exc_info:
            await _deliver(
                scope,
                FeeCompletion(
                    transaction.external_reference, appointment.id, FeeType.BOOKING_FEE, amount=Decimal("10")
                ),
            )

        assert exc_info.value.code == "PAYMENT_MISMATCH"
        async with scope() as services:
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
            tx = await services.payment_gate.get_transaction(transaction.external_reference)
        assert stored.status == AppointmentStatus.PENDING
        assert tx.status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_appointment(self, scope) -> None:
        with pytest.raises(PaymentMismatchException):
            await _deliver(scope, FeeCompletion("gw-9", "missing", FeeType.BOOKING_FEE))


@pytest.mark.integration
class TestWebhookFailure:
    @pytest.mark.asyncio
    async def test_failed_payment_keeps_appointment_pending(self, scope, day_slots, book) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)

        result = await _deliver(
            scope,
            FeeCompletion(
                transaction.external_reference,
                appointment.id,
                FeeType.BOOKING_FEE,
                succeeded=False,
                failure_reason="insufficient funds",
            ),
        )

        assert result.outcome == FeeOutcome.FAILED
        assert result.appointment_status == AppointmentStatus.PENDING
        async with scope() as services:
            tx = await services.payment_gate.get_transaction(transaction.external_reference)
        assert tx.status == PaymentStatus.FAILED
        assert tx.failure_reason == "insufficient funds"

    @pytest.mark.asyncio
    async def test_success_after_failure_is_applied(self, scope, day_slots, book) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        reference = transaction.external_reference
        await _deliver(scope, FeeCompletion(reference, appointment.id, FeeType.BOOKING_FEE, succeeded=False))

        result = await _deliver(scope, FeeCompletion(reference, appointment.id, FeeType.BOOKING_FEE))

        assert result.applied
        assert result.appointment_status == AppointmentStatus.SESSION_WAITING

    @pytest.mark.asyncio
    async def test_failure_after_success_is_duplicate(self, scope, day_slots, book) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        reference = transaction.external_reference
        await _deliver(scope, FeeCompletion(reference, appointment.id, FeeType.BOOKING_FEE))

        result = await _deliver(scope, FeeCompletion(reference, appointment.id, FeeType.BOOKING_FEE, succeeded=False))

        assert result.duplicate
        async with scope() as services:
            tx = await services.payment_gate.get_transaction(reference)
        assert tx.status == PaymentStatus.COMPLETED


@pytest.mark.integration
class TestLatePayment:
    @pytest.mark.asyncio
    async def test_fee_for_taken_slot_is_recorded_unapplied(self, scope, day_slots, book, clock) -> None:
        """Should keep the money on record and leave the appointment alone when its slot went to another checkout."""
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        clock.advance(minutes=20)
        async with scope() as services:
            await services.time_slot_manager.lock_slot(day_slots[0].id, holder_ref="checkout-other")

        result = await _deliver(
            scope, FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)
        )

        assert result.outcome == FeeOutcome.UNAPPLIED
        assert not result.applied
        assert result.transaction_status == PaymentStatus.COMPLETED
        assert result.appointment_status == AppointmentStatus.PENDING
        async with scope() as services:
            tx = await services.payment_gate.get_transaction(transaction.external_reference)
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
            slot = await services.slot_repository.find_by_id(day_slots[0].id)
        assert tx.status == PaymentStatus.COMPLETED
        assert tx.paid_at is not None
        assert stored.status == AppointmentStatus.PENDING
        assert stored.booking_fee_status == FeeStatus.PENDING
        assert slot.lock_holder == "checkout-other"

    @pytest.mark.asyncio
    async def test_fee_for_booked_slot_is_recorded_unapplied(self, scope, day_slots, book, clock) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        clock.advance(minutes=20)
        async with scope() as services:
            await services.time_slot_manager.lock_slot(day_slots[0].id, holder_ref="walk-in")
            await services.time_slot_manager.book_slot(day_slots[0].id, "walk-in")

        result = await _deliver(
            scope, FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)
        )

        assert result.outcome == FeeOutcome.UNAPPLIED
        assert result.transaction_status == PaymentStatus.COMPLETED
        async with scope() as services:
            slot = await services.slot_repository.find_by_id(day_slots[0].id)
        assert slot.status == SlotStatus.BOOKED
        assert slot.appointment_id == "walk-in"

    @pytest.mark.asyncio
    async def test_fee_for_taken_over_appointment_is_recorded_unapplied(
        self, scope, day_slots, book, clock, notifications
    ) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        clock.advance(minutes=20)
        successor = await book(day_slots[0].id, patient_id="patient-2")

        result = await _deliver(
            scope, FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)
        )

        assert result.outcome == FeeOutcome.UNAPPLIED
        assert result.appointment_status == AppointmentStatus.CANCELLED
        async with scope() as services:
            tx = await services.payment_gate.get_transaction(transaction.external_reference)
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
            slot = await services.slot_repository.find_by_id(day_slots[0].id)
        assert tx.status == PaymentStatus.COMPLETED
        assert stored.booking_fee_status == FeeStatus.PENDING
        assert slot.lock_holder == successor.id
        assert "BookingConfirmed" not in notifications.event_types

    @pytest.mark.asyncio
    async def test_replayed_unapplied_fee_is_duplicate(self, scope, day_slots, book, clock) -> None:
        appointment = await book(day_slots[0].id)
        transaction = await _checkout(scope, appointment.id)
        clock.advance(minutes=20)
        await book(day_slots[0].id, patient_id="patient-2")
        completion = FeeCompletion(transaction.external_reference, appointment.id, FeeType.BOOKING_FEE)
        await _deliver(scope, completion)

        result = await _deliver(scope, completion)

        assert result.duplicate


@pytest.mark.integration
class TestSessionFee:
    @pytest.mark.asyncio
    async def test_both_fees_complete_payment(self, scope, day_slots, confirmed, pay) -> None:
        """Should report payment completed only after the session fee too."""
        appointment = await confirmed(day_slots[0].id)

        result = await pay(appointment.id, FeeType.SESSION_FEE)

        assert result.applied
        async with scope() as services:
            stored = await services.appointment_scheduler.get_appointment(appointment.id)
        assert stored.status == AppointmentStatus.SESSION_WAITING
        assert stored.payment_status == FeeStatus.COMPLETED
