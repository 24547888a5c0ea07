"""
Unit tests for recipient filtering by notification settings.
"""

from datetime import datetime

import pytest
from zoneinfo import ZoneInfo

from gclub.core.database.entities.notifications import NotificationSetting
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.models.domain import NotificationEvent, NotificationType
from gclub.server.services.notifications import FilterContext, NotificationFilter, is_in_do_not_disturb
from gclub.server.services.notifications.filter import game_event_allowed

# 2026-03-02 is a Monday ("1")
MONDAY = datetime(2026, 3, 2)


def _setting(**fields) -> NotificationSetting:
    return NotificationSetting(user_id="mina", **fields)


def _dnd(start: str, end: str, days=None) -> NotificationSetting:
    setting = _setting(dnd_enabled=True, dnd_start_time=start, dnd_end_time=end)
    if days is not None:
        setting.set_dnd_days(days)
    return setting


class TestDoNotDisturb:
    @pytest.mark.parametrize(
        "clock, expected",
        [
            ("23:30", True),
            ("22:00", True),
            ("03:00", True),
            ("08:00", True),
            ("08:01", False),
            ("12:00", False),
        ],
    )
    def test_overnight_window(self, clock, expected):
        hour, minute = map(int, clock.split(":"))
        local_now = MONDAY.replace(hour=hour, minute=minute)

        assert is_in_do_not_disturb(_dnd("22:00", "08:00"), local_now) is expected

    def test_same_day_window(self):
        setting = _dnd("13:00", "14:00")

        assert is_in_do_not_disturb(setting, MONDAY.replace(hour=13, minute=30))
        assert not is_in_do_not_disturb(setting, MONDAY.replace(hour=23))

    def test_only_listed_days(self):
        weekend = _dnd("00:00", "23:59", days=["0", "6"])

        assert not is_in_do_not_disturb(weekend, MONDAY.replace(hour=12))
        assert is_in_do_not_disturb(weekend, datetime(2026, 3, 1, 12))

    def test_disabled(self):
        setting = _setting(dnd_enabled=False, dnd_start_time="00:00", dnd_end_time="23:59")

        assert not is_in_do_not_disturb(setting, MONDAY.replace(hour=12))


class TestGameEventAllowed:
    def test_event_toggle(self):
        setting = _setting(participating_member_join=False, my_post_member_join=True)

        assert not game_event_allowed(
            setting, NotificationType.PARTICIPATING_GAME_UPDATE, NotificationEvent.MEMBER_JOIN, FilterContext()
        )
        assert game_event_allowed(setting, NotificationType.MY_GAME_POST_UPDATE, NotificationEvent.MEMBER_JOIN, FilterContext())

    def test_before_meeting_respects_fullness_and_lead_time(self):
        setting = _setting(my_post_before_meeting_minutes=30)
        event = NotificationEvent.BEFORE_MEETING
        kind = NotificationType.MY_GAME_POST_UPDATE

        assert game_event_allowed(setting, kind, event, FilterContext(is_full=True, minutes_until_start=20))
        assert not game_event_allowed(setting, kind, event, FilterContext(is_full=False, minutes_until_start=20))
        assert not game_event_allowed(setting, kind, event, FilterContext(is_full=True, minutes_until_start=45))

        setting.my_post_before_meeting_only_full = False
        assert game_event_allowed(setting, kind, event, FilterContext(is_full=False, minutes_until_start=20))

    def test_meeting_start_only_full(self):
        setting = _setting()
        kind = NotificationType.PARTICIPATING_GAME_UPDATE

        assert not game_event_allowed(setting, kind, NotificationEvent.MEETING_START, FilterContext(is_full=False))
        assert game_event_allowed(setting, kind, NotificationEvent.MEETING_START, FilterContext(is_full=True))

    def test_unmapped_event_passes(self):
        assert game_event_allowed(_setting(), NotificationType.MY_GAME_POST_UPDATE, None, FilterContext())


@pytest.mark.asyncio
class TestNotificationFilter:
    async def _save(self, repos: SqlRepoBundle, user_id: str, **fields) -> None:
        setting = await repos.notification_settings.get_or_create(user_id)
        for key, value in fields.items():
            setattr(setting, key, value)
        await repos.notification_settings.update(setting)
        await repos.session.commit()

    async def test_users_without_settings_receive_everything(self, repos, make_member):
        await make_member("mina")
        notification_filter = NotificationFilter(repos)

        accepted = await notification_filter.filter_users(
            ["mina"], NotificationType.NEW_GAME_POST, None, FilterContext(game_id=1), MONDAY
        )

        assert accepted == ["mina"]

    async def test_new_game_post_modes(self, repos, make_member):
        for user_id in ("fan", "stranger", "everything", "custom", "muted"):
            await make_member(user_id)
        await repos.games.replace_favorites("fan", [1])
        await self._save(repos, "fan")
        await self._save(repos, "stranger")
        await self._save(repos, "everything", new_game_post_mode="all")
        await self._save(repos, "custom", new_game_post_mode="custom", custom_game_ids="[3, 1]")
        await self._save(repos, "muted", new_game_post_enabled=False, new_game_post_mode="all")
        candidates = ["muted", "custom", "everything", "stranger", "fan"]
        notification_filter = NotificationFilter(repos)

        league = await notification_filter.filter_users(
            candidates, NotificationType.NEW_GAME_POST, None, FilterContext(game_id=1), MONDAY
        )
        custom_name = await notification_filter.filter_users(
            candidates, NotificationType.NEW_GAME_POST, None, FilterContext(game_id=None), MONDAY
        )

        assert league == ["custom", "everything", "fan"]
        assert custom_name == ["everything"]

    async def test_do_not_disturb_uses_configured_zone(self, repos, make_member):
        await make_member("mina")
        await self._save(repos, "mina", dnd_enabled=True, dnd_start_time="22:00", dnd_end_time="08:00")
        seoul = NotificationFilter(repos, ZoneInfo("Asia/Seoul"))
        utc = NotificationFilter(repos)
        # 14:00 UTC on Monday is 23:00 in Seoul
        now = MONDAY.replace(hour=14)

        assert await seoul.filter_users(["mina"], NotificationType.SYSTEM, None, FilterContext(), now) == []
        assert await utc.filter_users(["mina"], NotificationType.SYSTEM, None, FilterContext(), now) == ["mina"]

    async def test_category_switches(self, repos, make_member):
        await make_member("mina")
        await self._save(repos, "mina", waiting_list_enabled=False, notice_enabled=False)
        notification_filter = NotificationFilter(repos)

        for notification_type in (NotificationType.WAITING_LIST_UPDATE, NotificationType.NOTICE):
            assert not await notification_filter.should_notify(
                "mina", notification_type, None, FilterContext(), MONDAY
            )
        assert await notification_filter.should_notify("mina", NotificationType.SYSTEM, None, FilterContext(), MONDAY)
