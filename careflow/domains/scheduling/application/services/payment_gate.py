"""
Payment Gate

Tracks the two independent fee payments of an appointment and applies
gateway callbacks exactly once.
"""

import logging

from careflow.core.clock import Clock, utc_now
from careflow.core.domain import ConcurrencyException, DuplicateEntityException, EntityNotFoundException
from careflow.domains.scheduling.application.dto import FeeCompletion, FeeCompletionResult, FeeOutcome
from careflow.domains.scheduling.application.ports import (
    CheckoutRequest,
    IAppointmentRepository,
    IPaymentGateway,
    IPaymentTransactionRepository,
    IUnitOfWork,
)
from careflow.domains.scheduling.application.services.appointment_scheduler import AppointmentScheduler
from careflow.domains.scheduling.domain.entities import Appointment, PaymentTransaction
from careflow.domains.scheduling.domain.exceptions import (
    DuplicateCompletionException,
    InvalidTransitionException,
    LockExpiredException,
    PaymentMismatchException,
    SlotUnavailableException,
)
from careflow.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    FeeStatus,
    FeeType,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

FEE_REQUIRED_STATUS = {
    FeeType.BOOKING_FEE: AppointmentStatus.PENDING,
    FeeType.SESSION_FEE: AppointmentStatus.SESSION_WAITING,
}


class PaymentGate:
    """
    Fee payment service.

    `complete_fee` is the webhook entry point. It is idempotent on the
    external reference: a replayed or concurrent duplicate delivery
    returns the result of the first one and changes nothing.
    """

    def __init__(
        self,
        appointment_repository: IAppointmentRepository,
        payment_repository: IPaymentTransactionRepository,
        scheduler: AppointmentScheduler,
        payment_gateway: IPaymentGateway,
        unit_of_work: IUnitOfWork,
        clock: Clock = utc_now,
    ):
        self._appointments = appointment_repository
        self._payments = payment_repository
        self._scheduler = scheduler
        self._gateway = payment_gateway
        self._uow = unit_of_work
        self._clock = clock

    async def initiate_checkout(self, appointment_id: str, fee_type: FeeType) -> PaymentTransaction:
        """
        Record a pending fee transaction and open a gateway checkout for it.

        The gateway call happens after the transaction is committed, so no
        database transaction is held across the external request.

        Raises:
            InvalidTransitionException: Fee not payable in the current appointment status
            IntegrationException: Gateway unavailable
        """
        async with self._uow.transaction():
            appointment = await self._get_appointment(appointment_id)
            self._ensure_payable(appointment, fee_type)

            transaction = await self._payments.find_open(appointment_id, fee_type)
            if transaction is None:
                transaction = PaymentTransaction.create(
                    appointment_id=appointment_id,
                    payment_type=fee_type,
                    amount=appointment.fee_amount(fee_type),
                    now=self._clock(),
                )
                await self._payments.add(transaction)
                logger.info(
                    f"Created {fee_type.value} transaction {transaction.external_reference} "
                    f"for appointment {appointment_id}"
                )

        if transaction.checkout_url:
            return transaction

        assert transaction.amount is not None
        session = await self._gateway.create_checkout(
            CheckoutRequest(
                external_reference=transaction.external_reference,
                appointment_id=appointment_id,
                payment_type=fee_type,
                amount=transaction.amount,
                patient_id=appointment.patient_id,
                description=f"{fee_type.value.replace('_', ' ').title()} for appointment {appointment_id}",
            )
        )

        async with self._uow.transaction():
            stored = await self._payments.find_by_reference(transaction.external_reference)
            if stored is not None and stored.status == PaymentStatus.PENDING:
                stored.attach_checkout(session.checkout_url, self._clock())
                await self._payments.save(stored)
                transaction = stored

        return transaction

    def _ensure_payable(self, appointment: Appointment, fee_type: FeeType) -> None:
        if appointment.fee_status(fee_type) == FeeStatus.COMPLETED:
            raise InvalidTransitionException(
                "appointment",
                f"pay {fee_type.value}",
                appointment.status.value,
                message=f"The {fee_type.value.replace('_', ' ')} has already been paid",
            )
        if appointment.status != FEE_REQUIRED_STATUS[fee_type]:
            raise InvalidTransitionException("appointment", f"pay {fee_type.value}", appointment.status.value)

    async def complete_fee(self, completion: FeeCompletion) -> FeeCompletionResult:
        """
        Apply a gateway callback.

        A successful payment is always recorded. When the appointment can
        no longer take it (its slot was taken or it was cancelled) the
        appointment is left as it is and the outcome is `unapplied`.

        Returns:
            Outcome `applied` on first success, `duplicate` for replays,
            `failed` when the gateway reported a failed payment,
            `unapplied` for a recorded payment the appointment cannot take

        Raises:
            PaymentMismatchException: Reference recorded for another appointment, fee or amount
        """
        try:
            return await self._apply(completion)
        except (DuplicateCompletionException, DuplicateEntityException):
            logger.info(f"Duplicate payment callback for {completion.external_reference} ignored")
            return await self._prior_result(completion)

    async def _apply(self, completion: FeeCompletion) -> FeeCompletionResult:
        reference = completion.external_reference

        async with self._uow.transaction():
            appointment = await self._appointments.find_by_id(completion.appointment_id)
            if appointment is None:
                raise PaymentMismatchException(reference, "unknown appointment")

            now = self._clock()
            transaction = await self._payments.find_by_reference(reference)
            if transaction is None:
                transaction = PaymentTransaction.create(
                    appointment_id=completion.appointment_id,
                    payment_type=completion.payment_type,
                    amount=appointment.fee_amount(completion.payment_type),
                    external_reference=reference,
                    now=now,
                )
                await self._payments.add(transaction)
            elif not transaction.matches(completion.appointment_id, completion.payment_type):
                raise PaymentMismatchException(reference, "reference belongs to another appointment or fee")

            assert transaction.amount is not None
            if completion.amount is not None and completion.amount != transaction.amount.amount:
                raise PaymentMismatchException(reference, "amount differs from the recorded fee")

            if not completion.succeeded:
                return await self._record_failure(transaction, completion, appointment)

            transaction.complete(now)
            try:
                await self._payments.save(transaction)
            except ConcurrencyException as e:
                raise DuplicateCompletionException(reference) from e

            self._uow.collect(transaction)

            outcome = FeeOutcome.APPLIED
            try:
                async with self._uow.savepoint():
                    appointment = await self._scheduler.on_fee_completed(
                        completion.appointment_id, completion.payment_type
                    )
            except (LockExpiredException, SlotUnavailableException, InvalidTransitionException) as e:
                logger.error(
                    f"Payment {reference} recorded but not applied to appointment "
                    f"{completion.appointment_id} ({appointment.status.value}): {e.message}"
                )
                outcome = FeeOutcome.UNAPPLIED

        if outcome == FeeOutcome.APPLIED:
            logger.info(
                f"Payment {reference} applied as {completion.payment_type.value} to {completion.appointment_id}"
            )
        return FeeCompletionResult(
            external_reference=reference,
            appointment_id=completion.appointment_id,
            payment_type=completion.payment_type,
            outcome=outcome,
            transaction_status=transaction.status,
            appointment_status=appointment.status,
        )

    async def _record_failure(
        self,
        transaction: PaymentTransaction,
        completion: FeeCompletion,
        appointment: Appointment,
    ) -> FeeCompletionResult:
        if transaction.status == PaymentStatus.COMPLETED:
            raise DuplicateCompletionException(transaction.external_reference)
        if transaction.status == PaymentStatus.PENDING:
            transaction.fail(completion.failure_reason or "declined by gateway", self._clock())
            await self._payments.save(transaction)
            logger.warning(f"Payment {transaction.external_reference} failed: {transaction.failure_reason}")

        return FeeCompletionResult(
            external_reference=transaction.external_reference,
            appointment_id=completion.appointment_id,
            payment_type=completion.payment_type,
            outcome=FeeOutcome.FAILED,
            transaction_status=transaction.status,
            appointment_status=appointment.status,
        )

    async def _prior_result(self, completion: FeeCompletion) -> FeeCompletionResult:
        transaction = await self._payments.find_by_reference(completion.external_reference)
        appointment = await self._appointments.find_by_id(completion.appointment_id)
        return FeeCompletionResult(
            external_reference=completion.external_reference,
            appointment_id=completion.appointment_id,
            payment_type=completion.payment_type,
            outcome=FeeOutcome.DUPLICATE,
            transaction_status=transaction.status if transaction else PaymentStatus.COMPLETED,
            appointment_status=appointment.status if appointment else None,
        )

    # Reads

    async def get_transaction(self, external_reference: str) -> PaymentTransaction:
        transaction = await self._payments.find_by_reference(external_reference)
        if transaction is None:
            raise EntityNotFoundException("PaymentTransaction", external_reference)
        return transaction

    async def list_transactions(self, appointment_id: str) -> list[PaymentTransaction]:
        await self._get_appointment(appointment_id)
        return await self._payments.find_by_appointment(appointment_id)

    async def _get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self._appointments.find_by_id(appointment_id)
        if appointment is None:
            raise EntityNotFoundException("Appointment", appointment_id)
        return appointment
