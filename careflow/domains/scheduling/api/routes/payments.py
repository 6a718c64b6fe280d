"""
Payment Routes

Gateway callback and transaction verification.

Webhook Flow:
1. Gateway sends POST when a fee checkout completes or fails
2. Verify the HMAC-SHA256 signature of the raw body (when a secret is set)
3. Apply the completion through PaymentGate, which is idempotent per reference
4. Acknowledge with 200 and the outcome so the gateway stops retrying

Endpoint: POST /api/v1/payments/webhook
"""

import hashlib
import hmac
import logging

from fastapi import APIRouter, Header, Request
from pydantic import ValidationError

from careflow.config.settings import get_settings
from careflow.core.domain import DomainException
from careflow.domains.scheduling.api.dependencies import Actor, AppointmentSchedulerDep, PaymentGateDep
from careflow.domains.scheduling.api.schemas import (
    PaymentVerificationResponse,
    PaymentWebhookPayload,
    WebhookAck,
)
from careflow.domains.scheduling.application.dto import FeeCompletion

router = APIRouter(prefix="/payments", tags=["Payments"])
logger = logging.getLogger(__name__)

REJECTED = "rejected"


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check a hex HMAC-SHA256 of `body`, optionally prefixed with 'sha256='."""
    if not signature:
        return False
    if signature.startswith("sha256="):
        signature = signature[7:]
    expected = hmac.new(secret.encode(), msg=body, digestmod=hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    payment_gate: PaymentGateDep,
    x_signature: str | None = Header(default=None),
):
    """
    Handle payment gateway callbacks.

    Note: Always returns 200 to acknowledge receipt. The gateway retries
    on non-2xx, and replays of an applied payment are answered with
    `duplicate`.
    """
    settings = get_settings()
    raw_body = await request.body()

    if settings.PAYMENT_WEBHOOK_SECRET and not verify_signature(
        settings.PAYMENT_WEBHOOK_SECRET, raw_body, x_signature
    ):
        logger.warning("[PAYMENT-WEBHOOK] Signature verification failed")
        return WebhookAck(status=REJECTED)

    try:
        payload = PaymentWebhookPayload.model_validate_json(raw_body)
    except ValidationError as e:
        logger.error(f"[PAYMENT-WEBHOOK] Payload validation failed: {e.error_count()} errors")
        return WebhookAck(status=REJECTED)

    if payload.appointment_id is None or payload.payment_type is None:
        logger.error(f"[PAYMENT-WEBHOOK] {payload.external_reference} carries no appointment or fee")
        return WebhookAck(status=REJECTED, external_reference=payload.external_reference)

    completion = FeeCompletion(
        external_reference=payload.external_reference,
        appointment_id=payload.appointment_id,
        payment_type=payload.payment_type,
        succeeded=payload.succeeded,
        amount=payload.amount,
        failure_reason=payload.failure_reason,
    )

    try:
        result = await payment_gate.complete_fee(completion)
    except DomainException as e:
        logger.error(f"[PAYMENT-WEBHOOK] {payload.external_reference} rejected: {e.code} {e.message}")
        return WebhookAck(status=REJECTED, external_reference=payload.external_reference)

    logger.info(
        f"[PAYMENT-WEBHOOK] {payload.external_reference} {result.outcome} "
        f"({result.payment_type.value} of appointment {result.appointment_id})"
    )
    return WebhookAck(
        status=result.outcome,
        external_reference=result.external_reference,
        appointment_status=result.appointment_status.value if result.appointment_status else None,
    )


@router.get("/verify/{external_reference}", response_model=PaymentVerificationResponse)
async def verify_payment(
    external_reference: str,
    payment_gate: PaymentGateDep,
    scheduler: AppointmentSchedulerDep,
    actor: Actor,
):
    """Report the recorded status of one fee transaction."""
    transaction = await payment_gate.get_transaction(external_reference)
    appointment = await scheduler.get_appointment(transaction.appointment_id)
    actor.require_participant(appointment, "verify payment")

    return PaymentVerificationResponse(
        external_reference=transaction.external_reference,
        appointment_id=transaction.appointment_id,
        payment_type=transaction.payment_type,
        status=transaction.status.value,
        paid_at=transaction.paid_at,
        appointment_status=appointment.status,
    )
