"""Read and update a user's notification settings as a nested document."""

from __future__ import annotations

from gclub.core.database.entities.notifications import NotificationSetting
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError
from gclub.core.logging_config import get_logger
from gclub.core.models.io.notifications import (
    BeforeMeetingSettings,
    DoNotDisturb,
    GameEventSettings,
    MeetingStartSettings,
    NewGamePostSettings,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    ToggleSettings,
)

logger = get_logger(__name__)

GAME_EVENT_PREFIXES = {"participating_game": "participating_", "my_game_post": "my_post_"}


def _game_events(setting: NotificationSetting, prefix: str) -> GameEventSettings:
    def value(name: str):
        return getattr(setting, prefix + name)

    return GameEventSettings(
        member_join=value("member_join"),
        member_leave=value("member_leave"),
        time_change=value("time_change"),
        full_meeting=value("full_meeting"),
        game_cancelled=value("game_cancelled"),
        before_meeting=BeforeMeetingSettings(
            enabled=value("before_meeting_enabled"),
            minutes=value("before_meeting_minutes"),
            only_full=value("before_meeting_only_full"),
        ),
        meeting_start=MeetingStartSettings(
            enabled=value("meeting_start_enabled"),
            only_full=value("meeting_start_only_full"),
        ),
    )


def to_read(setting: NotificationSetting) -> NotificationSettingsRead:
    return NotificationSettingsRead(
        do_not_disturb=DoNotDisturb(
            enabled=setting.dnd_enabled,
            start_time=setting.dnd_start_time,
            end_time=setting.dnd_end_time,
            days=setting.get_dnd_days(),
        ),
        new_game_post=NewGamePostSettings(
            enabled=setting.new_game_post_enabled,
            mode=setting.new_game_post_mode,
            custom_game_ids=setting.get_custom_game_ids(),
        ),
        participating_game=_game_events(setting, "participating_"),
        my_game_post=_game_events(setting, "my_post_"),
        waiting_list=ToggleSettings(enabled=setting.waiting_list_enabled),
        notice=ToggleSettings(enabled=setting.notice_enabled),
        updated_at=setting.updated_at,
    )


def apply_update(setting: NotificationSetting, update: NotificationSettingsUpdate) -> None:
    """Flatten the sections present in ``update`` onto the settings row."""
    if update.do_not_disturb is not None:
        dnd = update.do_not_disturb
        setting.dnd_enabled = dnd.enabled
        setting.dnd_start_time = dnd.start_time
        setting.dnd_end_time = dnd.end_time
        setting.set_dnd_days(dnd.days)

    if update.new_game_post is not None:
        setting.new_game_post_enabled = update.new_game_post.enabled
        setting.new_game_post_mode = update.new_game_post.mode.value
        setting.set_custom_game_ids(list(dict.fromkeys(update.new_game_post.custom_game_ids)))

    for section, prefix in GAME_EVENT_PREFIXES.items():
        events = getattr(update, section)
        if events is None:
            continue
        for name in ("member_join", "member_leave", "time_change", "full_meeting", "game_cancelled"):
            setattr(setting, prefix + name, getattr(events, name))
        setattr(setting, prefix + "before_meeting_enabled", events.before_meeting.enabled)
        setattr(setting, prefix + "before_meeting_minutes", events.before_meeting.minutes)
        setattr(setting, prefix + "before_meeting_only_full", events.before_meeting.only_full)
        setattr(setting, prefix + "meeting_start_enabled", events.meeting_start.enabled)
        setattr(setting, prefix + "meeting_start_only_full", events.meeting_start.only_full)

    if update.waiting_list is not None:
        setting.waiting_list_enabled = update.waiting_list.enabled
    if update.notice is not None:
        setting.notice_enabled = update.notice.enabled


async def get_settings(repos: SqlRepoBundle, user_id: str) -> NotificationSettingsRead:
    """Current settings, creating the defaults on first access."""
    setting = await repos.notification_settings.get_or_create(user_id)
    await repos.session.commit()
    return to_read(setting)


async def update_settings(
    repos: SqlRepoBundle, user_id: str, update: NotificationSettingsUpdate
) -> NotificationSettingsRead:
    if update.new_game_post is not None and update.new_game_post.custom_game_ids:
        wanted = set(update.new_game_post.custom_game_ids)
        unknown = sorted(wanted - set(await repos.games.existing_ids(wanted)))
        if unknown:
            raise BadRequestError(f"Unknown game ids: {unknown}")

    setting = await repos.notification_settings.get_or_create(user_id)
    apply_update(setting, update)
    setting = await repos.notification_settings.update(setting)
    await repos.session.commit()
    logger.info(f"Notification settings updated for user {user_id}")
    return to_read(setting)
