"""Maintenance job result models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PromotedEntry(BaseModel):
    waiting_id: int
    game_post_id: int
    user_id: str
    joined: bool = Field(description="True when the entry also took a free slot")


class TimeWaitingResult(BaseModel):
    promoted_count: int
    promoted: List[PromotedEntry] = Field(default_factory=list)


class StatusUpdateResult(BaseModel):
    started: int = 0
    completed: int = 0
    expired: int = 0


class ReminderResult(BaseModel):
    before_meeting_posts: int = 0
    meeting_start_posts: int = 0


class CleanupResult(BaseModel):
    receipts_deleted: int = 0
    notifications_deleted: int = 0


class ScheduledDeliveryResult(BaseModel):
    delivered: int = 0


class JobRunResult(BaseModel):
    ran_at: datetime
    time_waiting: Optional[TimeWaitingResult] = None
    statuses: Optional[StatusUpdateResult] = None
    reminders: Optional[ReminderResult] = None
    scheduled: Optional[ScheduledDeliveryResult] = None
    cleanup: Optional[CleanupResult] = None
