#!/usr/bin/env python3
"""Initialize database tables."""

import asyncio

from loguru import logger

from affiliate_engine.config.settings import settings
from affiliate_engine.database import create_engine
from affiliate_engine.models import Base
from affiliate_engine.utils.logging import setup_logging


async def init_database() -> None:
    """Create all database tables."""
    setup_logging(settings)

    logger.info("Connecting to database...")
    engine = create_engine(settings)

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(
            Base.metadata.create_all,
            checkfirst=True
        )

    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
