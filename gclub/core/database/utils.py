"""
Engine and session factory helpers.

The server runs against PostgreSQL through asyncpg in production and against
aiosqlite for local development and the test suite; both go through
``create_engine`` so callers never pick a driver themselves.
"""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

_POSTGRES_URL = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")


def create_engine(db_url: str) -> AsyncEngine:
    """Build the async engine for ``DATABASE_URL``.

    Hosted Postgres providers hand out ``postgres://`` or sync-driver URLs;
    any of those is rewritten to ``postgresql+asyncpg://``. SQLite
    connections are shared across the event loop's threads, so the
    same-thread check is switched off for them.

    Args:
        db_url: Database connection URL

    Returns:
        Configured AsyncEngine instance
    """
    url = _POSTGRES_URL.sub("postgresql+asyncpg://", db_url, count=1)
    if url.startswith("sqlite"):
        return create_async_engine(url, connect_args={"check_same_thread": False})
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after ``commit()``.

    Services commit and then build response models from the same entities,
    which needs ``expire_on_commit=False``.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create every G-Club table that does not exist yet.

    Used by ``init_db`` when ``DATABASE_AUTO_CREATE`` is on and by the tests;
    deployed databases are migrated with Alembic.
    """
    from . import entities  # noqa: F401  (registers every table)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
