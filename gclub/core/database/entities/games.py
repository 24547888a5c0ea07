"""
Game catalogue entity models.

Games are referenced by game-mate posts and by users' favorite lists, which
drive the "favorites" mode of new-post notifications.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base, dump_json, load_json, utc_now


class Game(Base, table=True):
    """Playable game that posts can recruit for.

    Aliases are stored as a JSON array string.

    Table: games
    """

    __tablename__ = "games"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    icon_url: Optional[str] = Field(default=None, max_length=512)
    aliases: str = Field(default="[]", description="JSON array of alternative names")
    order: int = Field(default=0, description="Display position, ascending")

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_aliases(self) -> List[str]:
        return load_json(self.aliases, [])

    def set_aliases(self, aliases: List[str]) -> None:
        self.aliases = dump_json(aliases)

    def matches_name(self, candidate: str) -> bool:
        """Case-insensitive comparison against the name and every alias."""
        needle = candidate.strip().lower()
        return needle == self.name.lower() or any(needle == alias.lower() for alias in self.get_aliases())

    def __repr__(self) -> str:
        return f"Game(id={self.id}, name={self.name})"


class UserFavoriteGame(Base, table=True):
    """A game a user marked as favorite.

    Table: user_favorite_games
    """

    __tablename__ = "user_favorite_games"
    __table_args__ = (
        UniqueConstraint("user_id", "game_id", name="uq_user_favorite_games"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    game_id: int = Field(foreign_key="games.id", index=True)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
