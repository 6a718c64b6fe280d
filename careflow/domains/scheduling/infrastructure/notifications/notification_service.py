"""
Appointment Notification Services.

Deliver booking confirmed, rescheduled, cancelled and session completed
notifications once the change that produced them has been committed.

Usage:
    from careflow.domains.scheduling.infrastructure.notifications import (
        WebhookNotificationService,
        register_notification_handlers,
    )

    service = WebhookNotificationService(url=settings.NOTIFICATION_WEBHOOK_URL)
    register_notification_handlers(service)
"""

import logging
from typing import Any

import httpx

from careflow.core.domain import DomainEvent, DomainEventPublisher
from careflow.domains.scheduling.application.ports import INotificationService
from careflow.domains.scheduling.domain.events import (
    AppointmentCancelled,
    AppointmentRescheduled,
    BookingConfirmed,
    SessionCompleted,
)

logger = logging.getLogger(__name__)

NOTIFIED_EVENTS: tuple[type[DomainEvent], ...] = (
    BookingConfirmed,
    AppointmentRescheduled,
    AppointmentCancelled,
    SessionCompleted,
)


class LoggingNotificationService(INotificationService):
    """Writes notifications to the log. Used when no webhook is configured."""

    async def notify(self, event: DomainEvent) -> None:
        payload = event.to_dict()
        logger.info(
            f"Notification {event.event_type} for appointment {payload.get('appointment_id')} "
            f"(patient {payload.get('patient_id')}, caregiver {payload.get('caregiver_id')})"
        )


class WebhookNotificationService(INotificationService):
    """
    Posts notifications as JSON to the notification service.

    Delivery is fire-and-forget: failures are logged and never reach the
    caller, whose state change is already committed.
    """

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        """
        Initialize notification service.

        Args:
            url: Notification service endpoint
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _build_payload(self, event: DomainEvent) -> dict[str, Any]:
        return {"type": event.event_type, "data": event.to_dict()}

    async def notify(self, event: DomainEvent) -> None:
        client = await self._get_client()
        try:
            response = await client.post(self.url, json=self._build_payload(event))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Notification {event.event_type} ({event.event_id}) not delivered: {e}")
            return

        logger.debug(f"Notification {event.event_type} ({event.event_id}) delivered")


def register_notification_handlers(service: INotificationService) -> None:
    """Subscribe `service` to every event that triggers a notification."""
    for event_type in NOTIFIED_EVENTS:
        DomainEventPublisher.subscribe(event_type, service.notify)
    logger.info(f"Registered {type(service).__name__} for {len(NOTIFIED_EVENTS)} event types")
