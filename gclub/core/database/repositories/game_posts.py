"""
Game-mate repositories.

Data access for game posts, their rosters and their waiting lists. Posts are
loaded ``FOR UPDATE`` before capacity-changing writes so concurrent joins on
PostgreSQL serialize on the post row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from gclub.core.models.domain import (
    ACTIVE_WAITING_STATUSES,
    GamePostStatus,
    ParticipantStatus,
    ParticipantType,
    WaitingStatus,
)

from ..entities.game_posts import GameParticipant, GamePost, WaitingParticipant
from .base import BaseRepository, enum_values


class GamePostRepository(BaseRepository[GamePost]):
    """Repository for game posts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, GamePost)

    async def get_live(self, post_id: int, for_update: bool = False) -> Optional[GamePost]:
        """Get a post unless it is missing or soft-deleted.

        Args:
            post_id: Game post id
            for_update: Lock the row for the rest of the transaction

        Returns:
            GamePost or None
        """
        stmt = select(GamePost).where(GamePost.id == post_id, GamePost.status != GamePostStatus.DELETED.value)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def list_posts(
        self,
        *,
        game_id: Optional[int] = None,
        statuses: Optional[Sequence[GamePostStatus]] = None,
        search: Optional[str] = None,
        sort: str = "latest",
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[GamePost], int]:
        """Page through posts.

        Args:
            game_id: Restrict to one game
            statuses: Allowed statuses; all but DELETED when omitted
            search: Case-insensitive substring of the title
            sort: ``latest`` (newest first) or ``start_time`` (soonest first)
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (posts, total count)
        """
        stmt = select(GamePost)
        if statuses:
            stmt = stmt.where(col(GamePost.status).in_(enum_values(statuses)))
        else:
            stmt = stmt.where(GamePost.status != GamePostStatus.DELETED.value)
        if game_id is not None:
            stmt = stmt.where(GamePost.game_id == game_id)
        if search and search.strip():
            stmt = stmt.where(func.lower(GamePost.title).like(f"%{search.strip().lower()}%"))
        if sort == "start_time":
            stmt = stmt.order_by(col(GamePost.start_time).asc(), col(GamePost.id).asc())
        else:
            stmt = stmt.order_by(col(GamePost.created_at).desc(), col(GamePost.id).desc())
        return await self._paginate(stmt, page, limit)

    async def list_by_status(
        self,
        statuses: Sequence[GamePostStatus],
        *,
        start_before: Optional[datetime] = None,
        start_after: Optional[datetime] = None,
    ) -> List[GamePost]:
        """Posts in the given statuses whose start time lies in the window."""
        stmt = select(GamePost).where(col(GamePost.status).in_(enum_values(statuses)))
        if start_before is not None:
            stmt = stmt.where(GamePost.start_time <= start_before)
        if start_after is not None:
            stmt = stmt.where(GamePost.start_time > start_after)
        result = await self.session.execute(stmt.order_by(col(GamePost.start_time)))
        return list(result.scalars().all())

    async def history_for_user(self, user_id: str, page: int, limit: int) -> Tuple[List[GamePost], int]:
        """Posts the user took part in (active or left early), latest start first."""
        stmt = (
            select(GamePost)
            .join(GameParticipant, col(GameParticipant.game_post_id) == col(GamePost.id))
            .where(
                GameParticipant.user_id == user_id,
                col(GameParticipant.status).in_(enum_values([ParticipantStatus.ACTIVE, ParticipantStatus.LEFT_EARLY])),
                GamePost.status != GamePostStatus.DELETED.value,
            )
            .order_by(col(GamePost.start_time).desc())
        )
        return await self._paginate(stmt, page, limit)

    async def detach_game(self, game_id: int, game_name: str) -> int:
        """Point remaining (deleted) posts of a game at its name instead of its id."""
        stmt = (
            sa_update(GamePost)
            .where(col(GamePost.game_id) == game_id)
            .values(game_id=None, custom_game_name=game_name)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def count_live_for_game(self, game_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(GamePost)
            .where(GamePost.game_id == game_id, GamePost.status != GamePostStatus.DELETED.value)
        )
        return (await self.session.execute(stmt)).scalar_one()


class GameParticipantRepository(BaseRepository[GameParticipant]):
    """Repository for game post rosters."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, GameParticipant)

    async def get_for_user(self, post_id: int, user_id: str) -> Optional[GameParticipant]:
        stmt = select(GameParticipant).where(GameParticipant.game_post_id == post_id, GameParticipant.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def get_leader(self, post_id: int) -> Optional[GameParticipant]:
        stmt = select(GameParticipant).where(
            GameParticipant.game_post_id == post_id, GameParticipant.is_leader == True  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_post(
        self, post_id: int, statuses: Optional[Sequence[ParticipantStatus]] = None
    ) -> List[GameParticipant]:
        """Roster of a post, leader first, then by join time."""
        stmt = select(GameParticipant).where(GameParticipant.game_post_id == post_id)
        if statuses:
            stmt = stmt.where(col(GameParticipant.status).in_(enum_values(statuses)))
        stmt = stmt.order_by(
            col(GameParticipant.is_leader).desc(), col(GameParticipant.joined_at), col(GameParticipant.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def active_count(self, post_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(GameParticipant)
            .where(GameParticipant.game_post_id == post_id, GameParticipant.status == ParticipantStatus.ACTIVE.value)
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def active_counts(self, post_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(post_ids)
        if not ids:
            return {}
        stmt = (
            select(GameParticipant.game_post_id, func.count())
            .where(
                col(GameParticipant.game_post_id).in_(ids),
                GameParticipant.status == ParticipantStatus.ACTIVE.value,
            )
            .group_by(col(GameParticipant.game_post_id))
        )
        result = await self.session.execute(stmt)
        return {post_id: count for post_id, count in result.all()}

    async def active_member_user_ids(self, post_id: int, exclude: Iterable[str] = ()) -> List[str]:
        """User ids of active members (guests have none)."""
        excluded = set(exclude)
        stmt = select(GameParticipant.user_id).where(
            GameParticipant.game_post_id == post_id,
            GameParticipant.status == ParticipantStatus.ACTIVE.value,
            col(GameParticipant.user_id).is_not(None),
        )
        result = await self.session.execute(stmt)
        return [uid for uid in result.scalars().all() if uid not in excluded]

    async def earliest_active_member(self, post_id: int, exclude_user_id: str) -> Optional[GameParticipant]:
        """Next leader candidate: the longest-standing active member other than ``exclude_user_id``."""
        stmt = (
            select(GameParticipant)
            .where(
                GameParticipant.game_post_id == post_id,
                GameParticipant.status == ParticipantStatus.ACTIVE.value,
                GameParticipant.participant_type == ParticipantType.MEMBER.value,
                GameParticipant.user_id != exclude_user_id,
                col(GameParticipant.user_id).is_not(None),
            )
            .order_by(col(GameParticipant.joined_at), col(GameParticipant.id))
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()


class WaitingParticipantRepository(BaseRepository[WaitingParticipant]):
    """Repository for game post waiting lists."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WaitingParticipant)

    async def get_for_user(self, post_id: int, user_id: str) -> Optional[WaitingParticipant]:
        stmt = select(WaitingParticipant).where(
            WaitingParticipant.game_post_id == post_id, WaitingParticipant.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def get_active_for_user(self, post_id: int, user_id: str) -> Optional[WaitingParticipant]:
        entry = await self.get_for_user(post_id, user_id)
        if entry is not None and entry.status in enum_values(ACTIVE_WAITING_STATUSES):
            return entry
        return None

    async def list_for_post(
        self, post_id: int, statuses: Sequence[WaitingStatus] = ACTIVE_WAITING_STATUSES
    ) -> List[WaitingParticipant]:
        """Waiting entries of a post in queue order."""
        stmt = (
            select(WaitingParticipant)
            .where(
                WaitingParticipant.game_post_id == post_id,
                col(WaitingParticipant.status).in_(enum_values(statuses)),
            )
            .order_by(col(WaitingParticipant.requested_at), col(WaitingParticipant.id))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first_waiting(self, post_id: int) -> Optional[WaitingParticipant]:
        """Head of the queue: the earliest WAITING entry."""
        entries = await self.list_for_post(post_id, [WaitingStatus.WAITING])
        return entries[0] if entries else None

    async def waiting_counts(self, post_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(post_ids)
        if not ids:
            return {}
        stmt = (
            select(WaitingParticipant.game_post_id, func.count())
            .where(
                col(WaitingParticipant.game_post_id).in_(ids),
                col(WaitingParticipant.status).in_(enum_values(ACTIVE_WAITING_STATUSES)),
            )
            .group_by(col(WaitingParticipant.game_post_id))
        )
        result = await self.session.execute(stmt)
        return {post_id: count for post_id, count in result.all()}

    async def due_time_waiting(self, now: datetime) -> List[WaitingParticipant]:
        """TIME_WAITING entries whose available time has arrived."""
        stmt = (
            select(WaitingParticipant)
            .where(
                WaitingParticipant.status == WaitingStatus.TIME_WAITING.value,
                col(WaitingParticipant.available_time).is_not(None),
                col(WaitingParticipant.available_time) <= now,
            )
            .order_by(col(WaitingParticipant.requested_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
