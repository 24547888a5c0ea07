"""
Notification entity models.

A ``Notification`` is written once per send; every recipient gets a
``NotificationReceipt`` that tracks read state. ``NotificationSetting`` holds
each user's do-not-disturb window and per-category toggles.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from gclub.core.models.domain import NewGamePostMode, NotificationPriority, NotificationStatus

from ..base import Base, dump_json, load_json, utc_now

ALL_DAYS = ["0", "1", "2", "3", "4", "5", "6"]


class Notification(Base, table=True):
    """A single notification send, direct or to a group.

    Table: notifications
    """

    __tablename__ = "notifications"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(max_length=40, index=True)
    event: Optional[str] = Field(default=None, max_length=40)
    title: str = Field(max_length=200)
    body: str = Field(max_length=1000)
    icon: Optional[str] = Field(default=None, max_length=512)
    action_url: Optional[str] = Field(default=None, max_length=512)
    priority: str = Field(default=NotificationPriority.NORMAL.value, max_length=10)

    sender_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=64)
    recipient_id: Optional[str] = Field(default=None, foreign_key="users.id", max_length=64)
    is_group_send: bool = Field(default=False)
    group_type: Optional[str] = Field(default=None, max_length=40)
    group_filter: str = Field(default="{}", description="JSON object narrowing the group")

    game_post_id: Optional[int] = Field(default=None, foreign_key="game_posts.id", index=True)
    data: str = Field(default="{}", description="JSON payload for the client")

    scheduled_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    status: str = Field(default=NotificationStatus.PENDING.value, max_length=10, index=True)
    sent_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)

    def get_data(self) -> Dict[str, Any]:
        return load_json(self.data, {})

    def get_group_filter(self) -> Dict[str, Any]:
        return load_json(self.group_filter, {})

    def __repr__(self) -> str:
        return f"Notification(id={self.id}, type={self.type}, status={self.status})"


class NotificationReceipt(Base, table=True):
    """Per-user delivery of a notification.

    Table: notification_receipts
    """

    __tablename__ = "notification_receipts"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_receipts"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    notification_id: int = Field(foreign_key="notifications.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    is_clicked: bool = Field(default=False)
    clicked_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, index=True)


class NotificationSetting(Base, table=True):
    """Notification preferences of a user.

    Table: notification_settings
    """

    __tablename__ = "notification_settings"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_notification_settings_user_id"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)

    # Do not disturb
    dnd_enabled: bool = Field(default=False)
    dnd_start_time: str = Field(default="22:00", max_length=5)
    dnd_end_time: str = Field(default="08:00", max_length=5)
    dnd_days: str = Field(default=dump_json(ALL_DAYS), description="JSON array of weekday strings, 0 is Sunday")

    # New game posts
    new_game_post_enabled: bool = Field(default=True)
    new_game_post_mode: str = Field(default=NewGamePostMode.FAVORITES.value, max_length=10)
    custom_game_ids: str = Field(default="[]", description="JSON array of game ids for custom mode")

    # Posts the user participates in
    participating_member_join: bool = Field(default=False)
    participating_member_leave: bool = Field(default=False)
    participating_time_change: bool = Field(default=True)
    participating_full_meeting: bool = Field(default=True)
    participating_game_cancelled: bool = Field(default=True)
    participating_before_meeting_enabled: bool = Field(default=True)
    participating_before_meeting_minutes: int = Field(default=10)
    participating_before_meeting_only_full: bool = Field(default=True)
    participating_meeting_start_enabled: bool = Field(default=True)
    participating_meeting_start_only_full: bool = Field(default=True)

    # Posts the user leads
    my_post_member_join: bool = Field(default=False)
    my_post_member_leave: bool = Field(default=False)
    my_post_time_change: bool = Field(default=True)
    my_post_full_meeting: bool = Field(default=True)
    my_post_game_cancelled: bool = Field(default=True)
    my_post_before_meeting_enabled: bool = Field(default=True)
    my_post_before_meeting_minutes: int = Field(default=10)
    my_post_before_meeting_only_full: bool = Field(default=True)
    my_post_meeting_start_enabled: bool = Field(default=True)
    my_post_meeting_start_only_full: bool = Field(default=True)

    waiting_list_enabled: bool = Field(default=True)
    notice_enabled: bool = Field(default=True)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_dnd_days(self) -> List[str]:
        return load_json(self.dnd_days, list(ALL_DAYS))

    def set_dnd_days(self, days: List[str]) -> None:
        self.dnd_days = dump_json(days)

    def get_custom_game_ids(self) -> List[int]:
        return load_json(self.custom_game_ids, [])

    def set_custom_game_ids(self, game_ids: List[int]) -> None:
        self.custom_game_ids = dump_json(game_ids)
