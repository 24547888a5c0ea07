"""Channel, board and board post I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class ChannelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    order: int
    is_active: bool = True


class ChannelCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    slug: str
    description: Optional[str] = None
    board_name: Optional[str] = None
    order: int = 0


class ChannelStatusUpdate(BaseModel):
    """Switch a channel, or its board, on or off."""

    type: Literal["channel", "board"]
    is_active: bool


class ChannelStatusRead(BaseModel):
    id: int
    name: str
    slug: str
    is_active: bool
    board_active: Optional[bool] = Field(default=None, description="None when the channel has no board")


class ChannelOrderItem(BaseModel):
    id: int
    order: int


class ChannelOrderUpdate(BaseModel):
    channels: List[ChannelOrderItem]


class BoardCreate(BaseModel):
    """Admin: add the board of a channel that has none."""

    model_config = ConfigDict(str_strip_whitespace=True)

    channel_slug: str
    name: str
    description: Optional[str] = None


class AdminBoardRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    channel_id: int
    channel_slug: str
    created_at: datetime


class BoardInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    channel_id: int
    channel_name: str
    channel_slug: str


class PostRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    published: bool
    board_id: int
    author_id: str
    author_name: Optional[str] = None
    view_count: int
    created_at: datetime
    updated_at: datetime


class PostCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    content: str
    published: bool = True


class PostUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    content: Optional[str] = None
    published: Optional[bool] = None


class BoardPostListResponse(BaseModel):
    board_info: BoardInfo
    items: List[PostRead]
    pagination: Pagination
