"""
Channel, board and board post entity models.

Each channel owns exactly one board; posts live on boards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class Channel(Base, table=True):
    """Top-level community section addressed by slug.

    Table: channels
    """

    __tablename__ = "channels"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=100, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = Field(default=True)
    order: int = Field(default=0)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Channel(id={self.id}, slug={self.slug})"


class Board(Base, table=True):
    """Post board of a channel.

    Table: boards
    """

    __tablename__ = "boards"
    __table_args__ = (
        UniqueConstraint("channel_id", name="uq_boards_channel_id"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    channel_id: int = Field(foreign_key="channels.id", index=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = Field(default=True)
    order: int = Field(default=0)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)


class Post(Base, table=True):
    """Board post.

    Table: posts
    """

    __tablename__ = "posts"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    content: str
    published: bool = Field(default=True, index=True)
    board_id: int = Field(foreign_key="boards.id", index=True)
    author_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    view_count: int = Field(default=0)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Post(id={self.id}, title={self.title})"
