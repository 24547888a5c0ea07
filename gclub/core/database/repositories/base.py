"""
Shared repository plumbing.

Repositories only ``flush``; the calling service owns the transaction and
commits once, so a roster change, its waiting-list promotion and the
notifications it triggers land together or not at all.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from ..base import utc_now

EntityType = TypeVar("EntityType", bound=SQLModel)


class BaseRepository(ABC, Generic[EntityType]):
    """CRUD helpers shared by every G-Club table repository."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        self.session = session
        self.model = model

    async def create(self, entity: EntityType) -> EntityType:
        """Add ``entity`` and flush so its id and defaults are populated.

        Args:
            entity: New SQLModel instance

        Returns:
            The same instance, refreshed from the database
        """
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity: EntityType) -> EntityType:
        """Flush pending changes, stamping ``updated_at`` on tables that have it."""
        if hasattr(entity, "updated_at"):
            entity.updated_at = utc_now()
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def delete(self, entity_id: str | int) -> bool:
        """Hard-delete a row.

        Returns:
            False when no row has that id
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.flush()
        return True

    async def increment_views(self, entity_id: str | int) -> Optional[int]:
        """Add one to ``view_count`` in SQL so concurrent readers never lose a view.

        Args:
            entity_id: Primary key of a post, game post or notice

        Returns:
            The new count, or None when no row matched
        """
        pk = self.model.id
        await self.session.execute(
            sa_update(self.model).where(pk == entity_id).values(view_count=self.model.view_count + 1)
        )
        result = await self.session.execute(select(self.model.view_count).where(pk == entity_id))
        return result.scalar_one_or_none()

    async def _paginate(self, stmt, page: int, limit: int) -> Tuple[List[Any], int]:
        """Fetch one 1-based page of ``stmt`` together with the unpaged total."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()
        paged = QueryBuilder.apply_pagination(stmt, limit, (page - 1) * limit)
        result = await self.session.execute(paged)
        return list(result.scalars().all()), total


class QueryBuilder:
    """Statement helpers for queries the repositories build by hand."""

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt


def enum_values(values: Sequence[Any]) -> List[Any]:
    """Unwrap str enums so they bind as the plain strings stored in the tables."""
    return [v.value if hasattr(v, "value") else v for v in values]
