"""
Notification I/O models.

Settings are exposed as a nested document and flattened onto the
``notification_settings`` row by the settings service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from gclub.core.models.domain import GroupType, NewGamePostMode, NotificationPriority, NotificationType

from .common import Pagination

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class NotificationItem(BaseModel):
    """A receipt joined with its notification."""

    id: int = Field(description="Receipt id, used by the read endpoints")
    notification_id: int
    type: str
    event: Optional[str] = None
    title: str
    body: str
    icon: Optional[str] = None
    action_url: Optional[str] = None
    priority: str
    game_post_id: Optional[int] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: List[NotificationItem]
    pagination: Pagination
    unread_count: int


class NotificationSendRequest(BaseModel):
    """Admin send: either ``recipient_id`` or ``group_type``."""

    type: NotificationType
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=1000)
    recipient_id: Optional[str] = None
    group_type: Optional[GroupType] = None
    role_id: Optional[int] = None
    game_post_id: Optional[int] = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    action_url: Optional[str] = None
    icon: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    scheduled_at: Optional[datetime] = None


class NotificationSendResult(BaseModel):
    notification_id: int
    status: str
    recipient_count: int


class ReadResult(BaseModel):
    id: int
    is_read: bool
    already_read: bool = False
    read_at: Optional[datetime] = None


class ReadAllResult(BaseModel):
    count: int


# =====================================================================
# Settings
# =====================================================================


class DoNotDisturb(BaseModel):
    enabled: bool = False
    start_time: str = Field(default="22:00", pattern=HHMM_PATTERN)
    end_time: str = Field(default="08:00", pattern=HHMM_PATTERN)
    days: List[str] = Field(default_factory=lambda: ["0", "1", "2", "3", "4", "5", "6"])

    @field_validator("days")
    @classmethod
    def _days(cls, value: List[str]) -> List[str]:
        invalid = [day for day in value if day not in {"0", "1", "2", "3", "4", "5", "6"}]
        if invalid:
            raise ValueError(f"days must be '0' (Sunday) to '6', got {invalid}")
        return sorted(set(value))


class NewGamePostSettings(BaseModel):
    enabled: bool = True
    mode: NewGamePostMode = NewGamePostMode.FAVORITES
    custom_game_ids: List[int] = Field(default_factory=list)


class BeforeMeetingSettings(BaseModel):
    enabled: bool = True
    minutes: int = Field(default=10, ge=1, le=1440)
    only_full: bool = True


class MeetingStartSettings(BaseModel):
    enabled: bool = True
    only_full: bool = True


class GameEventSettings(BaseModel):
    member_join: bool = False
    member_leave: bool = False
    time_change: bool = True
    full_meeting: bool = True
    game_cancelled: bool = True
    before_meeting: BeforeMeetingSettings = Field(default_factory=BeforeMeetingSettings)
    meeting_start: MeetingStartSettings = Field(default_factory=MeetingStartSettings)


class ToggleSettings(BaseModel):
    enabled: bool = True


class NotificationSettingsRead(BaseModel):
    do_not_disturb: DoNotDisturb
    new_game_post: NewGamePostSettings
    participating_game: GameEventSettings
    my_game_post: GameEventSettings
    waiting_list: ToggleSettings
    notice: ToggleSettings
    updated_at: Optional[datetime] = None


class NotificationSettingsUpdate(BaseModel):
    """Partial update: only the sections sent are replaced."""

    do_not_disturb: Optional[DoNotDisturb] = None
    new_game_post: Optional[NewGamePostSettings] = None
    participating_game: Optional[GameEventSettings] = None
    my_game_post: Optional[GameEventSettings] = None
    waiting_list: Optional[ToggleSettings] = None
    notice: Optional[ToggleSettings] = None
