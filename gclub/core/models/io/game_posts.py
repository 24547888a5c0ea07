"""
Game-mate I/O models for API requests and responses.

Requests carry only types; range and state rules are enforced by the
game-mate service so they can depend on configuration and current state.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class GamePostCreate(BaseModel):
    """Schema for opening a recruitment post."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    content: str
    game_id: Optional[int] = Field(default=None, description="Catalogue game; or use custom_game_name")
    custom_game_name: Optional[str] = None
    max_participants: int = Field(description="Cap including the leader")
    start_time: datetime
    guests: List[str] = Field(default_factory=list, description="Names of guests joining without an account")


class GamePostUpdate(BaseModel):
    """Schema for editing a post; omitted fields are unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    content: Optional[str] = None
    game_id: Optional[int] = None
    custom_game_name: Optional[str] = None
    max_participants: Optional[int] = None
    start_time: Optional[datetime] = None


class ParticipantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    name: Optional[str] = Field(default=None, description="Profile name or guest name")
    participant_type: str
    is_leader: bool
    status: str
    joined_at: datetime
    left_at: Optional[datetime] = None


class WaitingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: Optional[str] = None
    status: str
    available_time: Optional[datetime] = None
    requested_at: datetime
    invited_at: Optional[datetime] = None


class GamePostSummary(BaseModel):
    """List item."""

    id: int
    title: str
    game_id: Optional[int] = None
    game_name: Optional[str] = None
    max_participants: int
    participant_count: int
    waiting_count: int
    start_time: datetime
    status: str
    author_id: str
    author_name: Optional[str] = None
    view_count: int
    created_at: datetime


class GamePostListResponse(BaseModel):
    items: List[GamePostSummary]
    pagination: Pagination


class GamePostDetail(GamePostSummary):
    """Full post with roster and waiting list."""

    content: str
    custom_game_name: Optional[str] = None
    leader_id: Optional[str] = None
    updated_at: datetime
    participants: List[ParticipantRead]
    waiting_list: List[WaitingRead]
    my_participation: Optional[ParticipantRead] = None
    my_waiting: Optional[WaitingRead] = None


class WaitingJoinRequest(BaseModel):
    available_time: Optional[datetime] = Field(default=None, description="Join only from this time on")


class LeaveEarlyRequest(BaseModel):
    participant_id: Optional[int] = Field(default=None, description="Leader only: remove this participant")


class TransferLeaderRequest(BaseModel):
    participant_id: int


class GuestCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str


class WaitingDecision(BaseModel):
    action: Optional[str] = None


class GamePostStatusRead(BaseModel):
    id: int
    status: str
    participant_count: int
    max_participants: int
