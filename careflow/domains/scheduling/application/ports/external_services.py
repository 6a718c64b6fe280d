"""
External Service Ports

Collaborators outside the scheduling core: the payment gateway that hosts
checkout and the service that delivers notifications.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from careflow.core.domain import DomainEvent, Money
from careflow.domains.scheduling.domain.value_objects import FeeType


@dataclass(frozen=True)
class CheckoutRequest:
    external_reference: str
    appointment_id: str
    payment_type: FeeType
    amount: Money
    patient_id: str
    description: str


@dataclass(frozen=True)
class CheckoutSession:
    external_reference: str
    checkout_url: str | None


@runtime_checkable
class IPaymentGateway(Protocol):
    async def create_checkout(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Open a hosted checkout for one fee.

        Raises:
            IntegrationException: When the gateway cannot be reached or refuses the request
        """
        ...


@runtime_checkable
class INotificationService(Protocol):
    async def notify(self, event: DomainEvent) -> None:
        """Deliver a notification for a committed domain event."""
        ...
