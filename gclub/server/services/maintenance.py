"""
Maintenance Service.

Time-driven housekeeping that no request triggers: releasing TIME_WAITING
entries, moving posts through IN_PROGRESS/COMPLETED/EXPIRED, meeting
reminders, scheduled notification delivery and notification retention.

Each job commits its own work so a failure in one post or job does not undo
what already ran.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set

from gclub.core.database.base import utc_now
from gclub.core.database.entities.game_posts import GamePost
from gclub.core.database.entities.notifications import NotificationSetting
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import (
    GamePostStatus,
    NotificationEvent,
    NotificationPriority,
    NotificationType,
    WaitingStatus,
)
from gclub.core.models.io.jobs import (
    CleanupResult,
    JobRunResult,
    PromotedEntry,
    ReminderResult,
    ScheduledDeliveryResult,
    StatusUpdateResult,
    TimeWaitingResult,
)
from gclub.core.monitoring import log_domain_event
from gclub.server.core.config import GameMateConfig, NotificationConfig, settings
from gclub.server.services.game_mate import GameMateService
from gclub.server.services.notifications import FilterContext, NotificationService

logger = get_logger(__name__)

# Longest lead a user can pick for a BEFORE_MEETING reminder
MAX_REMINDER_MINUTES = 1440


def _lead_minutes(setting: Optional[NotificationSetting], is_leader: bool) -> int:
    setting = setting or NotificationSetting(user_id="")
    if is_leader:
        return setting.my_post_before_meeting_minutes
    return setting.participating_before_meeting_minutes


class MaintenanceService:
    """Runs the periodic jobs."""

    def __init__(
        self,
        repos: SqlRepoBundle,
        notifications: NotificationService,
        game_mate_config: Optional[GameMateConfig] = None,
        notification_config: Optional[NotificationConfig] = None,
    ) -> None:
        self.repos = repos
        self.notifications = notifications
        self.game_mate = GameMateService(repos, notifications, game_mate_config)
        self.config = game_mate_config or settings.game_mate
        self.notification_config = notification_config or settings.notifications

    async def _context(self, post: GamePost, now: datetime) -> FilterContext:
        active = await self.repos.participants.active_count(post.id)
        return FilterContext(
            game_id=post.game_id,
            is_full=active >= post.max_participants,
            minutes_until_start=(post.start_time - now).total_seconds() / 60,
        )

    # =====================================================================
    # Waiting list
    # =====================================================================

    async def promote_time_waiting(self, now: Optional[datetime] = None) -> TimeWaitingResult:
        """Release TIME_WAITING entries whose time has come.

        Released entries join the WAITING queue. An OPEN post with free slots
        then promotes its queue in order; a running post with a free slot
        invites the released users instead.
        """
        now = now or utc_now()
        due = await self.repos.waiting.due_time_waiting(now)
        if not due:
            return TimeWaitingResult(promoted_count=0)

        # Waiting ids per post; a failed notification expires every loaded row
        released_by_post: Dict[int, List[int]] = {}
        for entry in due:
            entry.status = WaitingStatus.WAITING.value
            await self.repos.waiting.update(entry)
            released_by_post.setdefault(entry.game_post_id, []).append(entry.id)
        released_count = len(due)
        await self.repos.session.commit()
        logger.info(f"Released {released_count} TIME_WAITING entries on {len(released_by_post)} game posts")

        promoted: List[PromotedEntry] = []
        for post_id, waiting_ids in released_by_post.items():
            post = await self.repos.game_posts.get_live(post_id, for_update=True)
            if post is None:
                continue
            if post.status == GamePostStatus.OPEN.value:
                change = await self.game_mate.promote_waiters(post, now)
                await self.repos.session.commit()
                promoted += [
                    PromotedEntry(waiting_id=p.waiting_id, game_post_id=post_id, user_id=p.user_id, joined=True)
                    for p in change.promoted
                ]
                await self.game_mate.notify_change(post, change)
            elif post.status == GamePostStatus.IN_PROGRESS.value:
                active = await self.repos.participants.active_count(post_id)
                if active >= post.max_participants:
                    continue
                invited: List[PromotedEntry] = []
                for waiting_id in waiting_ids:
                    entry = await self.repos.waiting.get_by_id(waiting_id)
                    if entry is None or entry.status != WaitingStatus.WAITING.value:
                        continue
                    entry.status = WaitingStatus.INVITED.value
                    entry.invited_at = now
                    await self.repos.waiting.update(entry)
                    invited.append(
                        PromotedEntry(waiting_id=waiting_id, game_post_id=post_id, user_id=entry.user_id, joined=False)
                    )
                await self.repos.session.commit()
                promoted += invited
                await self.game_mate.notify_invited(post, [entry.user_id for entry in invited])

        log_domain_event("jobs.time_waiting", released=released_count, promoted=len(promoted))
        return TimeWaitingResult(promoted_count=len(promoted), promoted=promoted)

    # =====================================================================
    # Post statuses
    # =====================================================================

    async def update_post_statuses(self, now: Optional[datetime] = None) -> StatusUpdateResult:
        """FULL posts start, stale running posts complete and stale open posts expire."""
        now = now or utc_now()
        stale_before = now - timedelta(hours=self.config.stale_hours)
        result = StatusUpdateResult()

        for post in await self.repos.game_posts.list_by_status([GamePostStatus.FULL], start_before=now):
            post.status = GamePostStatus.IN_PROGRESS.value
            await self.repos.game_posts.update(post)
            result.started += 1

        for post in await self.repos.game_posts.list_by_status(
            [GamePostStatus.IN_PROGRESS], start_before=stale_before
        ):
            post.status = GamePostStatus.COMPLETED.value
            await self.repos.game_posts.update(post)
            await self._cancel_waiters(post)
            result.completed += 1

        for post in await self.repos.game_posts.list_by_status([GamePostStatus.OPEN], start_before=stale_before):
            post.status = GamePostStatus.EXPIRED.value
            await self.repos.game_posts.update(post)
            await self._cancel_waiters(post)
            result.expired += 1

        await self.repos.session.commit()
        if result.started or result.completed or result.expired:
            logger.info(
                f"Game post statuses updated: {result.started} started, "
                f"{result.completed} completed, {result.expired} expired"
            )
        return result

    async def _cancel_waiters(self, post: GamePost) -> None:
        entries = await self.repos.waiting.list_for_post(
            post.id, [WaitingStatus.WAITING, WaitingStatus.INVITED, WaitingStatus.TIME_WAITING]
        )
        for entry in entries:
            entry.status = WaitingStatus.CANCELED.value
            await self.repos.waiting.update(entry)

    # =====================================================================
    # Reminders
    # =====================================================================

    async def _send_to_roster(
        self,
        post: GamePost,
        event: NotificationEvent,
        leader_ids: List[str],
        member_ids: List[str],
        context: FilterContext,
        now: datetime,
    ) -> int:
        game_name = await self.game_mate.game_name_for(post)
        minutes = max(0, round(context.minutes_until_start or 0))
        sent = 0
        for notification_type, recipients in (
            (NotificationType.MY_GAME_POST_UPDATE, leader_ids),
            (NotificationType.PARTICIPATING_GAME_UPDATE, member_ids),
        ):
            if recipients:
                sent += await self.notifications.send_game_event(
                    post,
                    notification_type,
                    event,
                    recipients,
                    game_name=game_name,
                    minutes=minutes,
                    priority=NotificationPriority.HIGH,
                    context=context,
                    now=now,
                )
        return sent

    async def _before_meeting(self, post: GamePost, now: datetime) -> bool:
        context = await self._context(post, now)
        leader = await self.repos.participants.get_leader(post.id)
        leader_id = leader.user_id if leader else None
        members = await self.repos.participants.active_member_user_ids(post.id)
        already: Set[str] = await self.repos.notifications.recipients_of_event(
            post.id, NotificationEvent.BEFORE_MEETING.value
        )
        pending = [uid for uid in members if uid not in already]
        if not pending:
            return False

        # Users without saved settings are held to the default lead time
        settings_by_user: Dict[str, NotificationSetting] = await self.repos.notification_settings.get_many(pending)
        due = [
            uid
            for uid in pending
            if context.minutes_until_start <= _lead_minutes(settings_by_user.get(uid), uid == leader_id)
        ]
        if not due:
            return False
        sent = await self._send_to_roster(
            post,
            NotificationEvent.BEFORE_MEETING,
            [uid for uid in due if uid == leader_id],
            [uid for uid in due if uid != leader_id],
            context,
            now,
        )
        return sent > 0

    async def _meeting_start(self, post: GamePost, now: datetime) -> None:
        context = await self._context(post, now)
        leader = await self.repos.participants.get_leader(post.id)
        leader_id = leader.user_id if leader else None
        members = await self.repos.participants.active_member_user_ids(post.id)
        await self._send_to_roster(
            post,
            NotificationEvent.MEETING_START,
            [leader_id] if leader_id else [],
            [uid for uid in members if uid != leader_id],
            context,
            now,
        )
        post.meeting_start_notified_at = now
        await self.repos.game_posts.update(post)

    async def send_meeting_reminders(self, now: Optional[datetime] = None) -> ReminderResult:
        """BEFORE_MEETING once per recipient, MEETING_START once per post."""
        now = now or utc_now()
        result = ReminderResult()

        # Rows are reloaded per post: a failed send rolls back and expires the session
        upcoming = await self.repos.game_posts.list_by_status(
            [GamePostStatus.OPEN, GamePostStatus.FULL],
            start_before=now + timedelta(minutes=MAX_REMINDER_MINUTES),
            start_after=now,
        )
        for post_id in [post.id for post in upcoming]:
            try:
                post = await self.repos.game_posts.get_by_id(post_id)
                if await self._before_meeting(post, now):
                    result.before_meeting_posts += 1
                await self.repos.session.commit()
            except Exception as exc:
                await self.repos.session.rollback()
                logger.error(f"BEFORE_MEETING reminder for game post {post_id} failed: {exc}")

        started = await self.repos.game_posts.list_by_status(
            [GamePostStatus.OPEN, GamePostStatus.FULL, GamePostStatus.IN_PROGRESS],
            start_before=now,
            start_after=now - timedelta(hours=self.config.stale_hours),
        )
        for post_id in [post.id for post in started if post.meeting_start_notified_at is None]:
            try:
                post = await self.repos.game_posts.get_by_id(post_id)
                await self._meeting_start(post, now)
                await self.repos.session.commit()
                result.meeting_start_posts += 1
            except Exception as exc:
                await self.repos.session.rollback()
                logger.error(f"MEETING_START notification for game post {post_id} failed: {exc}")

        if result.before_meeting_posts or result.meeting_start_posts:
            logger.info(
                f"Meeting reminders sent: {result.before_meeting_posts} before meeting, "
                f"{result.meeting_start_posts} meeting start"
            )
        return result

    # =====================================================================
    # Notifications
    # =====================================================================

    async def deliver_scheduled_notifications(self, now: Optional[datetime] = None) -> ScheduledDeliveryResult:
        delivered = await self.notifications.deliver_scheduled(now or utc_now())
        await self.repos.session.commit()
        if delivered:
            logger.info(f"Delivered {delivered} scheduled notifications")
        return ScheduledDeliveryResult(delivered=delivered)

    async def cleanup_notifications(
        self, now: Optional[datetime] = None, retention_days: Optional[int] = None
    ) -> CleanupResult:
        """Delete notifications (and their receipts) older than the retention window."""
        now = now or utc_now()
        days = retention_days if retention_days is not None else self.notification_config.retention_days
        receipts, notifications = await self.repos.notifications.delete_older_than(now - timedelta(days=days))
        await self.repos.session.commit()
        logger.info(f"Notification cleanup removed {notifications} notifications and {receipts} receipts")
        return CleanupResult(receipts_deleted=receipts, notifications_deleted=notifications)

    async def run_all(self, now: Optional[datetime] = None) -> JobRunResult:
        now = now or utc_now()
        return JobRunResult(
            ran_at=now,
            time_waiting=await self.promote_time_waiting(now),
            statuses=await self.update_post_statuses(now),
            reminders=await self.send_meeting_reminders(now),
            scheduled=await self.deliver_scheduled_notifications(now),
            cleanup=await self.cleanup_notifications(now),
        )
