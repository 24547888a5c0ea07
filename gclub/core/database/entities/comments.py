"""
Comment entity model.

One table serves board posts, game posts and notices; exactly one of the
three parent columns is set.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, utc_now


class Comment(Base, table=True):
    """Comment on a board post, game post or notice.

    Table: comments
    """

    __tablename__ = "comments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    content: str = Field(max_length=500)
    author_id: str = Field(foreign_key="users.id", index=True, max_length=64)

    post_id: Optional[int] = Field(default=None, foreign_key="posts.id", index=True)
    game_post_id: Optional[int] = Field(default=None, foreign_key="game_posts.id", index=True)
    notice_id: Optional[str] = Field(default=None, foreign_key="notices.id", index=True, max_length=36)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Comment(id={self.id}, author={self.author_id})"
