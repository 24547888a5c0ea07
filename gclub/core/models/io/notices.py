"""
Notice I/O models.

The notice body is a rich-text editor document (nested ``type``/``content``
nodes); it is kept as an opaque dict here and validated by the notice service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Pagination


class NoticeCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    content: Dict[str, Any]
    summary: Optional[str] = None
    is_published: bool = False
    is_pinned: bool = False
    allow_comments: bool = True
    priority: int = 0


class NoticeUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = None
    content: Optional[Dict[str, Any]] = None
    summary: Optional[str] = None
    is_published: Optional[bool] = None
    is_pinned: Optional[bool] = None
    allow_comments: Optional[bool] = None
    priority: Optional[int] = None


class NoticeRead(BaseModel):
    id: str
    title: str
    content: Dict[str, Any]
    summary: Optional[str] = None
    author_id: str
    author_name: Optional[str] = None
    last_modified_by_id: Optional[str] = None
    is_published: bool
    is_pinned: bool
    allow_comments: bool
    priority: int
    published_at: Optional[datetime] = None
    view_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, notice, author_name: Optional[str] = None) -> "NoticeRead":
        data = notice.model_dump(exclude={"content", "is_deleted", "deleted_at"})
        return cls(**data, content=notice.get_content(), author_name=author_name)


class NoticeListResponse(BaseModel):
    items: List[NoticeRead] = Field(default_factory=list)
    pagination: Pagination


class NoticeIdCheckRequest(BaseModel):
    notice_id: str


class NoticeIdCheck(BaseModel):
    is_valid: bool
    exists: bool
