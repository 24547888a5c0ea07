"""Channel, board and board post repositories."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import delete as sa_delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.boards import Board, Channel, Post
from ..entities.comments import Comment
from .base import BaseRepository


class ChannelRepository(BaseRepository[Channel]):
    """Repository for channels and their boards."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Channel)

    async def get_by_slug(self, slug: str) -> Optional[Channel]:
        result = await self.session.execute(select(Channel).where(Channel.slug == slug))
        return result.scalars().one_or_none()

    async def list_active(self) -> List[Channel]:
        stmt = select(Channel).where(Channel.is_active == True).order_by(col(Channel.order), col(Channel.id))  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> List[Channel]:
        result = await self.session.execute(select(Channel).order_by(col(Channel.order), col(Channel.id)))
        return list(result.scalars().all())

    async def get_board(self, channel_id: int) -> Optional[Board]:
        result = await self.session.execute(select(Board).where(Board.channel_id == channel_id))
        return result.scalars().one_or_none()

    async def list_boards(self) -> List[Tuple[Board, Channel]]:
        """Every board with its channel, newest first."""
        stmt = (
            select(Board, Channel)
            .join(Channel, Board.channel_id == Channel.id)
            .order_by(col(Board.created_at).desc(), col(Board.id).desc())
        )
        result = await self.session.execute(stmt)
        return [(board, channel) for board, channel in result.all()]

    async def delete_board(self, board_id: int) -> int:
        """Delete a board with its posts and their comments.

        Returns:
            Number of posts removed
        """
        post_ids = select(Post.id).where(Post.board_id == board_id)
        await self.session.execute(sa_delete(Comment).where(col(Comment.post_id).in_(post_ids)))
        result = await self.session.execute(sa_delete(Post).where(Post.board_id == board_id))
        await self.session.execute(sa_delete(Board).where(Board.id == board_id))
        await self.session.flush()
        return result.rowcount or 0


class PostRepository(BaseRepository[Post]):
    """Repository for board posts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Post)

    async def list_published(self, board_id: int, page: int, limit: int) -> Tuple[List[Post], int]:
        stmt = (
            select(Post)
            .where(Post.board_id == board_id, Post.published == True)  # noqa: E712
            .order_by(col(Post.created_at).desc(), col(Post.id).desc())
        )
        return await self._paginate(stmt, page, limit)
