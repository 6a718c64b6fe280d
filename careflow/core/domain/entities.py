"""
Identity-bearing domain objects.

Every scheduling record (slot, appointment, fee transaction, report,
availability window) is an `Entity` keyed by a string UUID. Records that
guard invariants across state changes and raise events are `AggregateRoot`s
and carry a `version` used for optimistic concurrency on write.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Generic, TypeVar
from uuid import uuid4

if TYPE_CHECKING:
    from careflow.core.domain.events import DomainEvent

TId = TypeVar("TId")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_uuid_str() -> str:
    """New entity id."""
    return str(uuid4())


@dataclass
class Entity(ABC, Generic[TId]):
    """
    Domain object compared by identity.

    Two entities are the same record when they are of the same class and
    share an id; an entity without an id is only equal to itself.
    """

    id: TId | None = field(default=None)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self) or self.id is None:
            return self is other
        return self.id == other.id  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id)) if self.id is not None else id(self)

    def touch(self, now: datetime | None = None) -> None:
        """Stamp `updated_at`; services pass their clock's `now`."""
        self.updated_at = now or _utcnow()


@dataclass
class AggregateRoot(Entity[TId], Generic[TId]):
    """
    Consistency boundary for a group of state changes.

    Mutating methods record `DomainEvent`s instead of publishing them. The
    unit of work collects the buffer and publishes after its commit, so a
    rolled back change never notifies anyone.
    """

    _domain_events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)
    version: int = field(default=0)

    def _record_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def get_domain_events(self) -> list[DomainEvent]:
        return list(self._domain_events)

    def clear_domain_events(self) -> None:
        self._domain_events.clear()

    def increment_version(self) -> None:
        """Follow a successful versioned write."""
        self.version += 1
