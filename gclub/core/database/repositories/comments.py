"""Comment repository shared by board posts, game posts and notices."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.comments import Comment
from .base import BaseRepository


class CommentRepository(BaseRepository[Comment]):
    """Repository for comments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Comment)

    async def list_for(
        self,
        *,
        post_id: Optional[int] = None,
        game_post_id: Optional[int] = None,
        notice_id: Optional[str] = None,
    ) -> List[Comment]:
        """Comments of one parent, oldest first."""
        stmt = select(Comment)
        if post_id is not None:
            stmt = stmt.where(Comment.post_id == post_id)
        elif game_post_id is not None:
            stmt = stmt.where(Comment.game_post_id == game_post_id)
        elif notice_id is not None:
            stmt = stmt.where(Comment.notice_id == notice_id)
        else:
            raise ValueError("A comment parent is required")
        result = await self.session.execute(stmt.order_by(col(Comment.created_at), col(Comment.id)))
        return list(result.scalars().all())

    async def delete_for_post(self, post_id: int) -> int:
        result = await self.session.execute(delete(Comment).where(col(Comment.post_id) == post_id))
        return result.rowcount or 0
