"""Notice repository."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.notices import Notice
from .base import BaseRepository


class NoticeRepository(BaseRepository[Notice]):
    """Repository for notices."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notice)

    async def get_visible(self, notice_id: str) -> Optional[Notice]:
        """Get a notice unless it is missing or soft-deleted."""
        notice = await self.get_by_id(notice_id)
        if notice is None or notice.is_deleted:
            return None
        return notice

    async def list_notices(
        self, *, include_unpublished: bool = False, page: int = 1, limit: int = 10
    ) -> Tuple[List[Notice], int]:
        """Page through notices, pinned and high-priority first.

        Args:
            include_unpublished: Also return drafts
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (notices, total count)
        """
        stmt = select(Notice).where(Notice.is_deleted == False)  # noqa: E712
        if not include_unpublished:
            stmt = stmt.where(Notice.is_published == True)  # noqa: E712
        stmt = stmt.order_by(
            col(Notice.is_pinned).desc(),
            col(Notice.priority).desc(),
            col(Notice.published_at).desc(),
            col(Notice.created_at).desc(),
        )
        return await self._paginate(stmt, page, limit)
