"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from gclub.core.logging_config import get_logger
from gclub.server.core.config import settings

from .seed import seed_defaults
from .utils import create_all, create_engine, create_sessionmaker

logger = get_logger(__name__)

# Create global engine and session factory
engine = create_engine(settings.database.url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    With ``DATABASE_AUTO_CREATE`` on (the development default) missing tables
    are created and reference data is seeded. Deployments that run Alembic
    migrations turn it off and this becomes a no-op.
    """
    if not settings.database.auto_create:
        logger.info("DATABASE_AUTO_CREATE is off; schema is managed by Alembic")
        return
    await create_all(engine)
    async with async_session_maker() as session:
        await seed_defaults(session)
    logger.info("Database tables ensured and defaults seeded")
