"""
Game catalogue repository.

Provides lookups by id list or free-text search (name and aliases) and the
favorite-game list of each user.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..entities.games import Game, UserFavoriteGame
from .base import BaseRepository


class GameRepository(BaseRepository[Game]):
    """Repository for games and favorites."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Game)

    async def list_games(self, ids: Optional[List[int]] = None, search: Optional[str] = None) -> List[Game]:
        """List games in display order, ties broken by name.

        Aliases live in a JSON text column, so the search match runs in Python
        after the id filter; the catalogue is small.

        Args:
            ids: Restrict to these game ids
            search: Case-insensitive substring of the name or any alias

        Returns:
            Matching games in display order
        """
        stmt = select(Game).order_by(col(Game.order), col(Game.name))
        if ids:
            stmt = stmt.where(col(Game.id).in_(ids))
        result = await self.session.execute(stmt)
        games = list(result.scalars().all())
        if search and search.strip():
            needle = search.strip().lower()
            games = [
                game
                for game in games
                if needle in game.name.lower() or any(needle in alias.lower() for alias in game.get_aliases())
            ]
        return games

    async def find_conflicts(self, names: Iterable[str], exclude_id: Optional[int] = None) -> List[Game]:
        """Games whose name or alias equals any of ``names`` (case-insensitive)."""
        candidates = [name for name in names if name and name.strip()]
        result = await self.session.execute(select(Game))
        return [
            game
            for game in result.scalars().all()
            if game.id != exclude_id and any(game.matches_name(candidate) for candidate in candidates)
        ]

    async def existing_ids(self, ids: Iterable[int]) -> List[int]:
        wanted = list(set(ids))
        if not wanted:
            return []
        result = await self.session.execute(select(Game.id).where(col(Game.id).in_(wanted)))
        return list(result.scalars().all())

    async def favorite_game_ids(self, user_id: str) -> List[int]:
        stmt = (
            select(UserFavoriteGame.game_id)
            .where(UserFavoriteGame.user_id == user_id)
            .order_by(col(UserFavoriteGame.created_at), col(UserFavoriteGame.id))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_favorites(self, user_id: str, game_ids: List[int]) -> List[int]:
        """Replace a user's favorite games, keeping the given order."""
        await self.session.execute(delete(UserFavoriteGame).where(col(UserFavoriteGame.user_id) == user_id))
        unique_ids = list(dict.fromkeys(game_ids))
        for game_id in unique_ids:
            self.session.add(UserFavoriteGame(user_id=user_id, game_id=game_id))
        await self.session.flush()
        return unique_ids

    async def users_favoriting(self, game_id: int, user_ids: Iterable[str]) -> List[str]:
        """Subset of ``user_ids`` that marked ``game_id`` as favorite."""
        ids = list(set(user_ids))
        if not ids:
            return []
        stmt = select(UserFavoriteGame.user_id).where(
            UserFavoriteGame.game_id == game_id, col(UserFavoriteGame.user_id).in_(ids)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def remove_favorites_for_game(self, game_id: int) -> int:
        result = await self.session.execute(delete(UserFavoriteGame).where(col(UserFavoriteGame.game_id) == game_id))
        return result.rowcount or 0
