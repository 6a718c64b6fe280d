"""
Domain events and their in-process publisher.

Aggregates record events while they change; the unit of work hands them to
`DomainEventPublisher` once the change is committed. Subscribers (the
notification adapters) never run inside a database transaction.
"""

import logging
from abc import ABC
from collections import defaultdict
from dataclasses import dataclass, field, fields
from datetime import UTC, date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar, Coroutine
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True, kw_only=True)
class DomainEvent(ABC):
    """
    Immutable record of a committed business fact.

    Subclasses only add payload fields:

        @dataclass(frozen=True, kw_only=True)
        class BookingConfirmed(DomainEvent):
            appointment_id: str
            time_slot_id: str
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: int = field(default=1)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready payload: metadata first, then the event's own fields."""
        payload: dict[str, Any] = {"event_type": self.event_type}
        for f in fields(self):
            payload[f.name] = _serialize(getattr(self, f.name))
        return payload


EventHandler = Callable[[DomainEvent], Coroutine[Any, Any, None]]


class DomainEventPublisher:
    """
    Process-wide registry of async event handlers.

    Handlers are looked up by event class name. A failing handler is logged
    and skipped; it never stops the remaining handlers.
    """

    _handlers: ClassVar[defaultdict[str, list[EventHandler]]] = defaultdict(list)

    @classmethod
    def subscribe(cls, event_type: type[DomainEvent], handler: EventHandler) -> None:
        cls._handlers[event_type.__name__].append(handler)

    @classmethod
    async def publish(cls, event: DomainEvent) -> None:
        for handler in list(cls._handlers.get(event.event_type, ())):
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler {getattr(handler, '__qualname__', handler)} failed on {event.event_type}: {e}")

    @classmethod
    async def publish_all(cls, events: list[DomainEvent]) -> None:
        """Publish in recording order."""
        for event in events:
            await cls.publish(event)

    @classmethod
    def clear_handlers(cls) -> None:
        """Drop every subscription (application shutdown, tests)."""
        cls._handlers.clear()
