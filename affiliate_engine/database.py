"""
Database engine and session factory.

Units of work run on sessions produced by ``create_session_maker``.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from affiliate_engine.config.settings import Settings, settings


def create_engine(config: Settings | None = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    config = config or settings
    return create_async_engine(
        config.async_database_url,
        echo=config.database_echo,
        pool_pre_ping=True,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker bound to engine (a new engine if omitted)."""
    if engine is None:
        engine = create_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
