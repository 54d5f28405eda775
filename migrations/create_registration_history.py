"""
Migration to create the registration_history table

Deployments created before the audit log existed keep working without it
(history is buffered in memory); run this once to persist history.

    python -m migrations.create_registration_history
"""

import asyncio
import logging

from sqlalchemy import select, func

from app.core.database import Base, engine, async_session, close_db
from app.core.logging import setup_logging
from app.models.history import RegistrationHistory

logger = logging.getLogger(__name__)


async def create_registration_history_table():
    """Create the registration_history table and its indexes if missing"""
    logger.info("Creating registration_history table...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=[RegistrationHistory.__table__])
    logger.info("registration_history table ready")


async def verify_table_exists() -> int:
    """Query the table once; returns the current row count"""
    async with async_session() as session:
        result = await session.execute(select(func.count(RegistrationHistory.id)))
        count = result.scalar() or 0
    logger.info(f"registration_history verified, {count} entries")
    return count


async def main():
    setup_logging()
    try:
        await create_registration_history_table()
        await verify_table_exists()
    except Exception as e:
        logger.error(f"registration_history migration failed: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
