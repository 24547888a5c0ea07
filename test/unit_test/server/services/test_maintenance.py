"""
Unit tests for MaintenanceService.

Each job runs against a seeded in-memory database with an explicit ``now``
so status transitions and reminder windows are deterministic.
"""

from datetime import datetime, timedelta
from typing import Iterable
from unittest.mock import AsyncMock, patch

import pytest

from gclub.core.database.entities.game_posts import GameParticipant, GamePost, WaitingParticipant
from gclub.core.database.entities.notifications import Notification, NotificationReceipt
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.models.domain import (
    GamePostStatus,
    NotificationEvent,
    NotificationType,
    ParticipantStatus,
    RoleName,
    WaitingStatus,
)
from gclub.core.models.io.jobs import ReminderResult
from gclub.server.services.maintenance import MaintenanceService
from gclub.server.services.notifications import NotificationService

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 2, 20, 0)


@pytest.fixture
def service(repos: SqlRepoBundle) -> MaintenanceService:
    return MaintenanceService(repos, NotificationService(repos))


async def _game_post(
    repos: SqlRepoBundle,
    start: datetime,
    status: GamePostStatus = GamePostStatus.OPEN,
    max_participants: int = 3,
    leader: str = "leader",
    members: Iterable[str] = (),
) -> GamePost:
    post = await repos.game_posts.create(
        GamePost(
            title="Evening raid",
            content="Bring potions",
            game_id=5,
            max_participants=max_participants,
            start_time=start,
            status=status.value,
            author_id=leader,
            created_at=NOW - timedelta(days=1),
        )
    )
    await repos.participants.create(
        GameParticipant(game_post_id=post.id, user_id=leader, is_leader=True, joined_at=NOW - timedelta(days=1))
    )
    for index, user_id in enumerate(members):
        await repos.participants.create(
            GameParticipant(game_post_id=post.id, user_id=user_id, joined_at=NOW - timedelta(hours=20 - index))
        )
    await repos.session.commit()
    return post


async def _wait(
    repos: SqlRepoBundle, post: GamePost, user_id: str, status: WaitingStatus, **fields
) -> WaitingParticipant:
    entry = await repos.waiting.create(
        WaitingParticipant(game_post_id=post.id, user_id=user_id, status=status.value, **fields)
    )
    await repos.session.commit()
    return entry


async def _types_for(repos: SqlRepoBundle, user_id: str):
    pairs, _ = await repos.notifications.list_for_user(user_id, page=1, limit=50)
    return [(notification.type, notification.event) for _, notification in pairs]


class TestUpdatePostStatuses:
    async def test_transitions(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        for user_id in ("leader", "member", "late"):
            await make_member(user_id)
        starting = await _game_post(repos, NOW - timedelta(minutes=1), GamePostStatus.FULL, 2, members=["member"])
        running = await _game_post(repos, NOW - timedelta(hours=7), GamePostStatus.IN_PROGRESS)
        stale_open = await _game_post(repos, NOW - timedelta(hours=7))
        fresh_open = await _game_post(repos, NOW - timedelta(hours=1))
        waiter = await _wait(repos, stale_open, "late", WaitingStatus.TIME_WAITING, available_time=NOW)

        result = await service.update_post_statuses(NOW)

        assert (result.started, result.completed, result.expired) == (1, 1, 1)
        assert (await repos.game_posts.get_by_id(starting.id)).status == GamePostStatus.IN_PROGRESS.value
        assert (await repos.game_posts.get_by_id(running.id)).status == GamePostStatus.COMPLETED.value
        assert (await repos.game_posts.get_by_id(stale_open.id)).status == GamePostStatus.EXPIRED.value
        assert (await repos.game_posts.get_by_id(fresh_open.id)).status == GamePostStatus.OPEN.value
        assert (await repos.waiting.get_by_id(waiter.id)).status == WaitingStatus.CANCELED.value

    async def test_nothing_to_do(self, service: MaintenanceService):
        result = await service.update_post_statuses(NOW)

        assert (result.started, result.completed, result.expired) == (0, 0, 0)


class TestPromoteTimeWaiting:
    async def test_due_entry_takes_free_slot(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("leader")
        await make_member("late")
        post = await _game_post(repos, NOW + timedelta(hours=2), max_participants=2)
        entry = await _wait(repos, post, "late", WaitingStatus.TIME_WAITING, available_time=NOW - timedelta(minutes=1))

        result = await service.promote_time_waiting(NOW)

        assert result.promoted_count == 1
        assert result.promoted[0].joined is True
        assert await repos.waiting.get_by_id(entry.id) is None
        participant = await repos.participants.get_for_user(post.id, "late")
        assert participant.status == ParticipantStatus.ACTIVE.value
        assert (await repos.game_posts.get_by_id(post.id)).status == GamePostStatus.FULL.value
        assert ("WAITING_LIST_UPDATE", "PROMOTED") in await _types_for(repos, "late")

    async def test_full_post_keeps_entry_queued(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        for user_id in ("leader", "member", "late"):
            await make_member(user_id)
        post = await _game_post(repos, NOW + timedelta(hours=2), GamePostStatus.FULL, 2, members=["member"])
        entry = await _wait(repos, post, "late", WaitingStatus.TIME_WAITING, available_time=NOW)

        result = await service.promote_time_waiting(NOW)

        assert result.promoted_count == 0
        assert (await repos.waiting.get_by_id(entry.id)).status == WaitingStatus.WAITING.value

    async def test_running_game_invites(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("leader")
        await make_member("late")
        post = await _game_post(repos, NOW - timedelta(minutes=30), GamePostStatus.IN_PROGRESS, 3)
        entry = await _wait(repos, post, "late", WaitingStatus.TIME_WAITING, available_time=NOW)

        result = await service.promote_time_waiting(NOW)

        assert result.promoted[0].joined is False
        refreshed = await repos.waiting.get_by_id(entry.id)
        assert refreshed.status == WaitingStatus.INVITED.value
        assert refreshed.invited_at == NOW

    async def test_not_yet_due(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("leader")
        await make_member("late")
        post = await _game_post(repos, NOW + timedelta(hours=2))
        entry = await _wait(repos, post, "late", WaitingStatus.TIME_WAITING, available_time=NOW + timedelta(hours=1))

        result = await service.promote_time_waiting(NOW)

        assert result.promoted_count == 0
        assert (await repos.waiting.get_by_id(entry.id)).status == WaitingStatus.TIME_WAITING.value

    async def test_failed_notification_keeps_the_promotion(
        self, service: MaintenanceService, repos: SqlRepoBundle, make_member
    ):
        await make_member("leader")
        await make_member("late")
        post = await _game_post(repos, NOW + timedelta(hours=2), max_participants=2)
        post_id = post.id
        await _wait(repos, post, "late", WaitingStatus.TIME_WAITING, available_time=NOW - timedelta(minutes=1))

        with patch.object(NotificationService, "send_game_event", AsyncMock(side_effect=RuntimeError("boom"))):
            result = await service.promote_time_waiting(NOW)

        assert result.promoted_count == 1
        participant = await repos.participants.get_for_user(post_id, "late")
        assert participant.status == ParticipantStatus.ACTIVE.value


class TestMeetingReminders:
    async def test_before_meeting_sent_once(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("leader")
        await make_member("member")
        await _game_post(repos, NOW + timedelta(minutes=5), GamePostStatus.FULL, 2, members=["member"])

        first = await service.send_meeting_reminders(NOW)
        second = await service.send_meeting_reminders(NOW + timedelta(minutes=1))

        assert first.before_meeting_posts == 1
        assert second.before_meeting_posts == 0
        assert ("MY_GAME_POST_UPDATE", "BEFORE_MEETING") in await _types_for(repos, "leader")
        assert ("PARTICIPATING_GAME_UPDATE", "BEFORE_MEETING") in await _types_for(repos, "member")

    async def test_lead_time_comes_from_settings(
        self, service: MaintenanceService, repos: SqlRepoBundle, make_member
    ):
        await make_member("leader")
        await make_member("member")
        setting = await repos.notification_settings.get_or_create("member")
        setting.participating_before_meeting_minutes = 60
        await repos.session.commit()
        await _game_post(repos, NOW + timedelta(minutes=45), GamePostStatus.FULL, 2, members=["member"])

        result = await service.send_meeting_reminders(NOW)

        assert result.before_meeting_posts == 1
        assert await _types_for(repos, "leader") == []
        assert ("PARTICIPATING_GAME_UPDATE", "BEFORE_MEETING") in await _types_for(repos, "member")

    async def test_meeting_start_sent_once(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("leader")
        await make_member("member")
        post = await _game_post(repos, NOW - timedelta(minutes=1), GamePostStatus.IN_PROGRESS, 2, members=["member"])

        first = await service.send_meeting_reminders(NOW)
        second = await service.send_meeting_reminders(NOW + timedelta(minutes=1))

        assert first.meeting_start_posts == 1
        assert second.meeting_start_posts == 0
        assert (await repos.game_posts.get_by_id(post.id)).meeting_start_notified_at == NOW
        assert ("PARTICIPATING_GAME_UPDATE", "MEETING_START") in await _types_for(repos, "member")

    async def test_only_full_setting_skips_partial_games(
        self, service: MaintenanceService, repos: SqlRepoBundle, make_member
    ):
        await make_member("leader")
        await make_member("member")
        await repos.notification_settings.get_or_create("member")
        await repos.session.commit()
        await _game_post(repos, NOW + timedelta(minutes=5), GamePostStatus.OPEN, 4, members=["member"])

        await service.send_meeting_reminders(NOW)

        assert NotificationEvent.BEFORE_MEETING.value not in {event for _, event in await _types_for(repos, "member")}

    async def test_failed_send_moves_on_to_the_next_post(
        self, service: MaintenanceService, repos: SqlRepoBundle, make_member
    ):
        await make_member("leader")
        await make_member("member")
        first = await _game_post(repos, NOW + timedelta(minutes=5), GamePostStatus.FULL, 2, members=["member"])
        second = await _game_post(repos, NOW + timedelta(minutes=8), GamePostStatus.FULL, 2, members=["member"])
        started = await _game_post(repos, NOW - timedelta(minutes=1), GamePostStatus.IN_PROGRESS, 2, members=["member"])
        post_ids = [first.id, second.id]
        started_id = started.id
        sent_for = []

        async def fail(post, *args, **kwargs):
            sent_for.append(post.id)
            raise RuntimeError("boom")

        broken = AsyncMock(side_effect=fail)

        with patch.object(NotificationService, "send_game_event", broken):
            result = await service.send_meeting_reminders(NOW)

        assert isinstance(result, ReminderResult)
        assert (result.before_meeting_posts, result.meeting_start_posts) == (0, 0)
        assert set(sent_for) == {*post_ids, started_id}
        assert (await repos.game_posts.get_by_id(started_id)).meeting_start_notified_at is None


class TestNotificationJobs:
    async def test_scheduled_delivery(self, service: MaintenanceService, repos: SqlRepoBundle, make_member):
        await make_member("admin", role=RoleName.ADMIN)
        await make_member("member")
        notification, _ = await service.notifications.create_and_send(
            notification_type=NotificationType.SYSTEM,
            title="Patch notes",
            body="Read them",
            sender_id="admin",
            recipient_id="member",
            scheduled_at=NOW + timedelta(minutes=10),
            now=NOW,
        )
        await repos.session.commit()

        early = await service.deliver_scheduled_notifications(NOW)
        due = await service.deliver_scheduled_notifications(NOW + timedelta(minutes=10))

        assert early.delivered == 0
        assert due.delivered == 1
        assert (await repos.notifications.get_by_id(notification.id)).status == "SENT"
        assert await repos.notifications.unread_count("member") == 1

    async def test_cleanup_removes_old_notifications(
        self, service: MaintenanceService, repos: SqlRepoBundle, make_member
    ):
        await make_member("member")
        old = await repos.notifications.create(
            Notification(type="SYSTEM", title="Old", body="Old", status="SENT", created_at=NOW - timedelta(days=31))
        )
        recent = await repos.notifications.create(
            Notification(type="SYSTEM", title="New", body="New", status="SENT", created_at=NOW - timedelta(days=1))
        )
        repos.session.add(NotificationReceipt(notification_id=old.id, user_id="member"))
        repos.session.add(NotificationReceipt(notification_id=recent.id, user_id="member"))
        await repos.session.commit()

        result = await service.cleanup_notifications(NOW)

        assert (result.notifications_deleted, result.receipts_deleted) == (1, 1)
        assert await repos.notifications.unread_count("member") == 1

    async def test_run_all(self, service: MaintenanceService):
        result = await service.run_all(NOW)

        assert result.ran_at == NOW
        assert result.time_waiting.promoted_count == 0
        assert result.cleanup.notifications_deleted == 0
