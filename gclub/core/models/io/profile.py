"""
Profile I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class ProfileRead(BaseModel):
    """Schema for reading the caller's profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    birth_date: Optional[date] = None
    image: Optional[str] = None
    role_id: Optional[int] = None
    role_name: str = Field(description="Role name, NONE when unassigned")
    favorite_game_ids: List[int] = Field(default_factory=list)
    terms_agreed: bool
    privacy_agreed: bool
    created_at: datetime
    updated_at: datetime


class ProfileUpsert(BaseModel):
    """Schema for creating or updating the caller's profile."""

    name: str = Field(description="Display name, 1 to 50 characters")
    birth_date: date
    image: Optional[str] = Field(default=None, description="Profile image URL")


class PublicProfileRead(BaseModel):
    """Another member's profile without account or agreement details."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    birth_date: Optional[date] = None
    image: Optional[str] = None
    role_name: str
    created_at: datetime
    updated_at: datetime


class UserSearchResult(BaseModel):
    """A search hit, or the guest entry offered when nobody matches."""

    user_id: Optional[str] = None
    name: str
    image: Optional[str] = None
    is_guest: bool = False


class TermsAgreement(BaseModel):
    terms_agreed: bool
    privacy_agreed: bool


class TermsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    terms_agreed: bool
    terms_agreed_at: Optional[datetime] = None
    privacy_agreed: bool
    privacy_agreed_at: Optional[datetime] = None


class FavoriteGamesUpdate(BaseModel):
    game_ids: List[int] = Field(default_factory=list)


class FavoriteGamesRead(BaseModel):
    game_ids: List[int]


class GameMateHistoryItem(BaseModel):
    """One game the user took part in."""

    game_post_id: int
    title: str
    game_id: Optional[int] = None
    game_name: Optional[str] = None
    start_time: datetime
    status: str
    participant_status: str
    is_leader: bool
    participant_count: int
    max_participants: int


class GameMateHistoryResponse(BaseModel):
    items: List[GameMateHistoryItem]
    pagination: Pagination
