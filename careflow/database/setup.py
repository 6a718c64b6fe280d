"""
Database Setup - table creation and reset for the scheduling schema.

Production schemas are managed with Alembic; this module creates tables
directly for local runs and tests.
"""

import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncEngine

from careflow.database.async_db import create_async_database_engine
from careflow.database.base import Base

# Register the scheduling models on Base.metadata
from careflow.domains.scheduling.infrastructure.persistence.sqlalchemy import models  # noqa: F401

logger = logging.getLogger(__name__)


class DatabaseSetup:
    """Create or drop the scheduling tables on one engine."""

    def __init__(self, engine: AsyncEngine | None = None):
        self.engine = engine or create_async_database_engine()

    async def create_tables(self) -> None:
        try:
            async with self.engine.begin() as conn:
                logger.info("Creating tables...")
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Tables created")
        except Exception as e:
            logger.error(f"Error creating tables: {e}")
            raise

    async def drop_tables(self) -> None:
        try:
            async with self.engine.begin() as conn:
                logger.info("Dropping tables...")
                await conn.run_sync(Base.metadata.drop_all)
                logger.info("Tables dropped")
        except Exception as e:
            logger.error(f"Error dropping tables: {e}")
            raise


async def initialize_database() -> None:
    setup = DatabaseSetup()
    try:
        await setup.create_tables()
    finally:
        await setup.engine.dispose()


async def reset_database() -> None:
    setup = DatabaseSetup()
    try:
        await setup.drop_tables()
        await setup.create_tables()
    finally:
        await setup.engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    command = sys.argv[1] if len(sys.argv) > 1 else ""
    if command == "init":
        asyncio.run(initialize_database())
    elif command == "reset":
        asyncio.run(reset_database())
    else:
        print("Usage: python -m careflow.database.setup [init|reset]")
