"""
Notice entity model.

Notices are admin-authored announcements. The body is a rich-text document
stored as JSON text; deletion is soft.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from ..base import Base, dump_json, load_json, utc_now


class Notice(Base, table=True):
    """Announcement with publish, pin and priority state.

    Table: notices
    """

    __tablename__ = "notices"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)
    title: str = Field(max_length=200)
    content: str = Field(default="{}", description="Rich-text document as JSON")
    summary: Optional[str] = Field(default=None, max_length=500)

    author_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    last_modified_by_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=64)

    is_published: bool = Field(default=False, index=True)
    is_pinned: bool = Field(default=False)
    allow_comments: bool = Field(default=True)
    priority: int = Field(default=0)
    published_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    view_count: int = Field(default=0)

    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = Field(sa_type=DateTime, default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_content(self) -> Dict[str, Any]:
        return load_json(self.content, {})

    def set_content(self, document: Dict[str, Any]) -> None:
        self.content = dump_json(document)

    def __repr__(self) -> str:
        return f"Notice(id={self.id}, title={self.title}, published={self.is_published})"
