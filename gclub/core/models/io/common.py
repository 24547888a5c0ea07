"""Shared I/O models: pagination metadata."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page metadata returned next to list results."""

    page: int = Field(description="Current 1-based page")
    limit: int = Field(description="Page size")
    total_count: int = Field(description="Total matching items")
    total_pages: int = Field(description="Number of pages")
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class MessageResponse(BaseModel):
    message: str
