"""
Game-mate entity models.

A ``GamePost`` recruits players for a session with a participant cap.
``GameParticipant`` rows hold the roster (members and named guests, exactly
one leader) and ``WaitingParticipant`` rows hold the queue behind a full post.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from gclub.core.models.domain import GamePostStatus, ParticipantStatus, ParticipantType, WaitingStatus

from ..base import Base, utc_now


class GamePost(Base, table=True):
    """Recruitment post for a multiplayer session.

    Table: game_posts
    """

    __tablename__ = "game_posts"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    content: str = Field(description="Free-form recruitment text")
    game_id: Optional[int] = Field(default=None, foreign_key="games.id", index=True)
    custom_game_name: Optional[str] = Field(default=None, max_length=100)
    max_participants: int = Field(description="Participant cap including the leader")
    start_time: datetime = Field(sa_type=DateTime, index=True)
    status: str = Field(default=GamePostStatus.OPEN.value, max_length=20, index=True)
    author_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    view_count: int = Field(default=0)

    # Set once the meeting-start reminder went out
    meeting_start_notified_at: Optional[datetime] = Field(sa_type=DateTime, default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"GamePost(id={self.id}, title={self.title}, status={self.status})"


class GameParticipant(Base, table=True):
    """Roster entry of a game post.

    Guests have no ``user_id``; they are added by the leader by name.

    Table: game_participants
    """

    __tablename__ = "game_participants"
    __table_args__ = (
        UniqueConstraint("game_post_id", "user_id", name="uq_game_participants_post_user"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    game_post_id: int = Field(foreign_key="game_posts.id", index=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True, max_length=64)
    participant_type: str = Field(default=ParticipantType.MEMBER.value, max_length=10)
    guest_name: Optional[str] = Field(default=None, max_length=50)
    is_leader: bool = Field(default=False)
    status: str = Field(default=ParticipantStatus.ACTIVE.value, max_length=20)
    joined_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    left_at: Optional[datetime] = Field(sa_type=DateTime, default=None)

    def __repr__(self) -> str:
        who = self.user_id or self.guest_name
        return f"GameParticipant(id={self.id}, post={self.game_post_id}, who={who}, status={self.status})"


class WaitingParticipant(Base, table=True):
    """Waiting-list entry of a game post.

    Table: waiting_participants
    """

    __tablename__ = "waiting_participants"
    __table_args__ = (
        UniqueConstraint("game_post_id", "user_id", name="uq_waiting_participants_post_user"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    game_post_id: int = Field(foreign_key="game_posts.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    status: str = Field(default=WaitingStatus.WAITING.value, max_length=20, index=True)
    available_time: Optional[datetime] = Field(sa_type=DateTime, default=None, description="Earliest time the user can join")
    requested_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
    invited_at: Optional[datetime] = Field(sa_type=DateTime, default=None)

    def __repr__(self) -> str:
        return f"WaitingParticipant(id={self.id}, post={self.game_post_id}, user={self.user_id}, status={self.status})"
