"""HTTP Payment Gateway.

Async client opening hosted checkouts on the payment provider.
"""

import logging
from typing import Any

import httpx

from careflow.core.domain import IntegrationException
from careflow.domains.scheduling.application.ports import CheckoutRequest, CheckoutSession, IPaymentGateway

logger = logging.getLogger(__name__)


class HttpPaymentGateway(IPaymentGateway):
    """Hosted checkout client.

    When no gateway URL is configured the client runs in offline mode and
    returns a checkout session without a URL, so local runs and tests can
    complete fees through the webhook directly.
    """

    def __init__(
        self,
        base_url: str | None,
        api_key: str | None = None,
        timeout: float = 10.0,
        callback_url: str | None = None,
        return_url: str | None = None,
    ):
        """Initialize gateway client.

        Args:
            base_url: Checkout endpoint of the provider.
            api_key: Bearer token for the provider API.
            timeout: Request timeout in seconds.
            callback_url: Webhook URL the provider calls on completion.
            return_url: URL the patient is sent back to after checkout.
        """
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.callback_url = callback_url
        self.return_url = return_url
        self._client: httpx.AsyncClient | None = None

    @property
    def offline(self) -> bool:
        return not self.base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {"Content-Type": "application/json", "Accept": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), headers=headers)
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, request: CheckoutRequest) -> dict[str, Any]:
        return {
            "amount": str(request.amount.amount),
            "currency": request.amount.currency,
            "tx_ref": request.external_reference,
            "callback_url": self.callback_url,
            "return_url": self.return_url,
            "customization": {"title": "Care session", "description": request.description},
            "meta": {
                "appointment_id": request.appointment_id,
                "payment_type": request.payment_type.value,
                "patient_id": request.patient_id,
            },
        }

    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        if self.offline:
            logger.info(f"Payment gateway not configured, checkout {request.external_reference} has no URL")
            return CheckoutSession(external_reference=request.external_reference, checkout_url=None)

        client = await self._get_client()
        try:
            response = await client.post(self.base_url or "", json=self._build_payload(request))
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Gateway rejected checkout {request.external_reference}: {e.response.status_code}")
            raise IntegrationException("payment_gateway", "Checkout request rejected", e) from e
        except httpx.RequestError as e:
            logger.error(f"Gateway request error for checkout {request.external_reference}: {e}")
            raise IntegrationException("payment_gateway", "Payment gateway unavailable", e) from e
        except ValueError as e:
            raise IntegrationException("payment_gateway", "Invalid gateway response", e) from e

        data = body.get("data") if isinstance(body, dict) else None
        checkout_url = data.get("checkout_url") if isinstance(data, dict) else None
        if not checkout_url:
            raise IntegrationException("payment_gateway", "Gateway response has no checkout URL")

        logger.info(f"Opened checkout {request.external_reference} for appointment {request.appointment_id}")
        return CheckoutSession(external_reference=request.external_reference, checkout_url=checkout_url)
