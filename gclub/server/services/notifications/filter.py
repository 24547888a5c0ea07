"""
Recipient filtering by notification settings.

A user receives a notification unless their do-not-disturb window is active
or the category toggle for the notification type and event is off. Users who
never saved settings receive everything.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

from gclub.core.database.entities.notifications import NotificationSetting
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import NewGamePostMode, NotificationEvent, NotificationType

logger = get_logger(__name__)

# Event -> settings column suffix for the two game-update categories
EVENT_TOGGLES: Dict[NotificationEvent, str] = {
    NotificationEvent.MEMBER_JOIN: "member_join",
    NotificationEvent.MEMBER_LEAVE: "member_leave",
    NotificationEvent.TIME_CHANGE: "time_change",
    NotificationEvent.GAME_FULL: "full_meeting",
    NotificationEvent.GAME_CANCELLED: "game_cancelled",
    NotificationEvent.BEFORE_MEETING: "before_meeting_enabled",
    NotificationEvent.MEETING_START: "meeting_start_enabled",
}

CATEGORY_PREFIXES: Dict[NotificationType, str] = {
    NotificationType.MY_GAME_POST_UPDATE: "my_post_",
    NotificationType.PARTICIPATING_GAME_UPDATE: "participating_",
}


@dataclass
class FilterContext:
    """Facts about the triggering game post that some toggles depend on."""

    game_id: Optional[int] = None
    is_full: bool = False
    minutes_until_start: Optional[float] = None


def is_in_do_not_disturb(setting: NotificationSetting, local_now: datetime) -> bool:
    """Whether ``local_now`` falls inside the user's do-not-disturb window.

    Days are ``"0"`` (Sunday) to ``"6"``. Both window ends are inclusive and a
    window whose start is after its end wraps past midnight.
    """
    if not setting.dnd_enabled:
        return False
    start, end = setting.dnd_start_time, setting.dnd_end_time
    if not start or not end:
        return False
    today = str((local_now.weekday() + 1) % 7)
    if today not in setting.get_dnd_days():
        return False
    current = local_now.strftime("%H:%M")
    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def game_event_allowed(
    setting: NotificationSetting,
    notification_type: NotificationType,
    event: Optional[NotificationEvent],
    context: FilterContext,
) -> bool:
    """Check the per-event toggle of MY_GAME_POST_UPDATE / PARTICIPATING_GAME_UPDATE."""
    prefix = CATEGORY_PREFIXES[notification_type]
    suffix = EVENT_TOGGLES.get(event) if event else None
    if suffix is None:
        return True
    if not getattr(setting, prefix + suffix):
        return False
    if event is NotificationEvent.BEFORE_MEETING:
        if getattr(setting, prefix + "before_meeting_only_full") and not context.is_full:
            return False
        lead = getattr(setting, prefix + "before_meeting_minutes")
        if context.minutes_until_start is not None and context.minutes_until_start > lead:
            return False
    if event is NotificationEvent.MEETING_START:
        if getattr(setting, prefix + "meeting_start_only_full") and not context.is_full:
            return False
    return True


class NotificationFilter:
    """Applies users' notification settings to a candidate recipient list."""

    def __init__(self, repos: SqlRepoBundle, tz: tzinfo = timezone.utc) -> None:
        self.repos = repos
        self.tz = tz

    def _local(self, now: datetime) -> datetime:
        return now.replace(tzinfo=timezone.utc).astimezone(self.tz)

    async def should_notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        event: Optional[NotificationEvent],
        context: FilterContext,
        now: datetime,
    ) -> bool:
        """Single-user form of ``filter_users``."""
        return user_id in await self.filter_users([user_id], notification_type, event, context, now)

    async def filter_users(
        self,
        user_ids: Iterable[str],
        notification_type: NotificationType,
        event: Optional[NotificationEvent],
        context: FilterContext,
        now: datetime,
    ) -> List[str]:
        """Keep the users whose settings accept this notification.

        Args:
            user_ids: Candidate recipients
            notification_type: Notification category
            event: Game event, if any
            context: Facts about the triggering post
            now: Current naive UTC time

        Returns:
            Accepted user ids in input order
        """
        candidates = list(dict.fromkeys(user_ids))
        if not candidates:
            return []
        settings_by_user = await self.repos.notification_settings.get_many(candidates)
        local_now = self._local(now)

        accepted: List[str] = []
        favorites_check: List[str] = []
        for user_id in candidates:
            setting = settings_by_user.get(user_id)
            if setting is None:
                accepted.append(user_id)
                continue
            if is_in_do_not_disturb(setting, local_now):
                continue
            decision = self._category_allows(setting, notification_type, event, context)
            if decision is None:
                favorites_check.append(user_id)
            elif decision:
                accepted.append(user_id)

        if favorites_check and context.game_id is not None:
            favoriting = set(await self.repos.games.users_favoriting(context.game_id, favorites_check))
            accepted.extend(uid for uid in favorites_check if uid in favoriting)

        order = {uid: index for index, uid in enumerate(candidates)}
        accepted.sort(key=order.__getitem__)
        logger.debug(
            f"Notification filter {notification_type.value}/{event.value if event else '-'}: "
            f"{len(accepted)} of {len(candidates)} recipients accepted"
        )
        return accepted

    @staticmethod
    def _category_allows(
        setting: NotificationSetting,
        notification_type: NotificationType,
        event: Optional[NotificationEvent],
        context: FilterContext,
    ) -> Optional[bool]:
        """Category decision; ``None`` means "depends on the user's favorite games"."""
        if notification_type is NotificationType.NEW_GAME_POST:
            if not setting.new_game_post_enabled:
                return False
            mode = setting.new_game_post_mode
            if mode == NewGamePostMode.ALL.value:
                return True
            if context.game_id is None:
                # Custom game names never match a favorites or custom list
                return False
            if mode == NewGamePostMode.CUSTOM.value:
                return context.game_id in setting.get_custom_game_ids()
            return None
        if notification_type in CATEGORY_PREFIXES:
            return game_event_allowed(setting, notification_type, event, context)
        if notification_type is NotificationType.WAITING_LIST_UPDATE:
            return setting.waiting_list_enabled
        if notification_type is NotificationType.NOTICE:
            return setting.notice_enabled
        return True
