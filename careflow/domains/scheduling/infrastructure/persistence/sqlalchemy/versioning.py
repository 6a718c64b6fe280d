"""
Optimistic concurrency helpers shared by the scheduling repositories.
"""

from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from careflow.core.domain import AggregateRoot, ConcurrencyException


async def versioned_update(
    session: AsyncSession,
    model: Any,
    aggregate: AggregateRoot[str],
    values: dict[str, Any],
    entity_type: str,
) -> None:
    """
    Write `values` only if the row still carries the aggregate's version.

    The UPDATE is the serialization point: of two writers that read the
    same version, exactly one matches a row. On success the aggregate's
    version is advanced to the stored one.

    Raises:
        ConcurrencyException: No row matched id and version
    """
    result = await session.execute(
        update(model)
        .where(model.id == aggregate.id, model.version == aggregate.version)
        .values(**values, version=aggregate.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConcurrencyException(entity_type, aggregate.id, aggregate.version)
    aggregate.increment_version()
