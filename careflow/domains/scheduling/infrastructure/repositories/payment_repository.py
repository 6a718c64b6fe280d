"""
Payment Transaction Repository Implementation

SQLAlchemy implementation of IPaymentTransactionRepository.
"""

import logging

from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.domain import DuplicateEntityException, Money
from careflow.database.base import as_utc
from careflow.domains.scheduling.application.ports import IPaymentTransactionRepository
from careflow.domains.scheduling.domain.entities import PaymentTransaction
from careflow.domains.scheduling.domain.value_objects import FeeType, PaymentStatus
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.models import PaymentTransactionModel
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy.versioning import versioned_update

logger = logging.getLogger(__name__)


class SQLAlchemyPaymentTransactionRepository(IPaymentTransactionRepository):
    """SQLAlchemy implementation of payment transaction repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_reference(self, external_reference: str) -> PaymentTransaction | None:
        result = await self.session.execute(
            select(PaymentTransactionModel)
            .where(PaymentTransactionModel.external_reference == external_reference)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_open(self, appointment_id: str, payment_type: FeeType) -> PaymentTransaction | None:
        result = await self.session.execute(
            select(PaymentTransactionModel)
            .where(
                and_(
                    PaymentTransactionModel.appointment_id == appointment_id,
                    PaymentTransactionModel.payment_type == payment_type,
                    PaymentTransactionModel.status == PaymentStatus.PENDING,
                )
            )
            .order_by(PaymentTransactionModel.created_at.desc())
            .execution_options(populate_existing=True)
        )
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def find_by_appointment(self, appointment_id: str) -> list[PaymentTransaction]:
        result = await self.session.execute(
            select(PaymentTransactionModel)
            .where(PaymentTransactionModel.appointment_id == appointment_id)
            .order_by(PaymentTransactionModel.created_at, PaymentTransactionModel.id)
            .execution_options(populate_existing=True)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, transaction: PaymentTransaction) -> PaymentTransaction:
        self.session.add(self._to_model(transaction))
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateEntityException(
                "PaymentTransaction", "external_reference", transaction.external_reference
            ) from e
        return transaction

    async def save(self, transaction: PaymentTransaction) -> PaymentTransaction:
        await versioned_update(
            self.session,
            PaymentTransactionModel,
            transaction,
            {
                "status": transaction.status,
                "checkout_url": transaction.checkout_url,
                "paid_at": transaction.paid_at,
                "failure_reason": transaction.failure_reason,
                "updated_at": transaction.updated_at,
            },
            entity_type="PaymentTransaction",
        )
        return transaction

    # Mapping methods

    def _to_entity(self, model: PaymentTransactionModel) -> PaymentTransaction:
        transaction = PaymentTransaction(
            id=model.id,  # type: ignore[arg-type]
            appointment_id=model.appointment_id,  # type: ignore[arg-type]
            payment_type=model.payment_type,  # type: ignore[arg-type]
            amount=Money(model.amount, model.currency),  # type: ignore[arg-type]
            status=model.status,  # type: ignore[arg-type]
            external_reference=model.external_reference,  # type: ignore[arg-type]
            checkout_url=model.checkout_url,  # type: ignore[arg-type]
            paid_at=as_utc(model.paid_at),  # type: ignore[arg-type]
            failure_reason=model.failure_reason,  # type: ignore[arg-type]
            version=model.version,  # type: ignore[arg-type]
        )
        transaction.created_at = as_utc(model.created_at)  # type: ignore[assignment]
        transaction.updated_at = as_utc(model.updated_at)  # type: ignore[assignment]
        return transaction

    def _to_model(self, transaction: PaymentTransaction) -> PaymentTransactionModel:
        assert transaction.amount is not None
        return PaymentTransactionModel(
            id=transaction.id,
            appointment_id=transaction.appointment_id,
            payment_type=transaction.payment_type,
            amount=transaction.amount.amount,
            currency=transaction.amount.currency,
            status=transaction.status,
            external_reference=transaction.external_reference,
            checkout_url=transaction.checkout_url,
            paid_at=transaction.paid_at,
            failure_reason=transaction.failure_reason,
            version=transaction.version,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
        )
