"""
Unit of Work Port
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IUnitOfWork(Protocol):
    """
    Transaction boundary shared by the scheduling services.

    Nested `transaction()` blocks join the outermost one. The outermost
    block commits on success and rolls back on any exception; domain
    events collected from aggregates are published only after commit.
    """

    def transaction(self) -> AbstractAsyncContextManager[Any]:
        ...

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        """Nested transaction that rolls back on its own without ending the outer one."""
        ...

    def collect(self, aggregate: Any) -> None:
        """Queue the aggregate's recorded events for publication after commit."""
        ...
