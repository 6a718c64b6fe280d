"""
SQLAlchemy Unit of Work

Transaction scope shared by the scheduling services of one request.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from careflow.core.domain import AggregateRoot, DomainEvent, DomainEventPublisher
from careflow.domains.scheduling.application.ports import IUnitOfWork

logger = logging.getLogger(__name__)


class SchedulingUnitOfWork(IUnitOfWork):
    """
    Unit of work over one `AsyncSession`.

    Only the outermost `transaction()` commits or rolls back; inner
    blocks join it. Events collected during the transaction are handed
    to `DomainEventPublisher` after the commit succeeded and are dropped
    on rollback.

    Example:
        ```python
        uow = SchedulingUnitOfWork(session)
        async with uow.transaction():
            await slot_repository.save(slot)
            uow.collect(appointment)
        ```
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self._depth = 0
        self._pending_events: list[DomainEvent] = []

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SchedulingUnitOfWork"]:
        if self._depth > 0:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            await self.session.commit()
        except Exception:
            self._pending_events.clear()
            await self.session.rollback()
            raise
        finally:
            self._depth = 0

        events, self._pending_events = self._pending_events, []
        if events:
            await DomainEventPublisher.publish_all(events)

    def savepoint(self) -> AsyncSessionTransaction:
        return self.session.begin_nested()

    def collect(self, aggregate: Any) -> None:
        if isinstance(aggregate, AggregateRoot):
            self._pending_events.extend(aggregate.get_domain_events())
            aggregate.clear_domain_events()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0
