"""
Notification dispatch.

``NotificationService`` persists a notification, resolves who should get it
(a direct recipient, an explicit user list or a group), applies each user's
settings through ``NotificationFilter`` and writes one receipt per accepted
user. Sending only flushes and the caller commits; the inbox operations commit
themselves.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gclub.core.database.base import dump_json, to_naive_utc, utc_now
from gclub.core.database.entities.game_posts import GamePost
from gclub.core.database.entities.notifications import Notification
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import (
    GamePostStatus,
    GroupType,
    NotificationEvent,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    WaitingStatus,
)
from gclub.core.models.io.common import Pagination
from gclub.core.models.io.notifications import (
    NotificationItem,
    NotificationListResponse,
    NotificationSendRequest,
    NotificationSendResult,
    ReadAllResult,
    ReadResult,
)
from gclub.core.monitoring import log_domain_event
from gclub.server.core.config import settings

from .content import render
from .filter import FilterContext, NotificationFilter

logger = get_logger(__name__)


def resolve_timezone(name: Optional[str] = None):
    """ZoneInfo for ``name`` (default: the configured zone), UTC when unknown."""
    zone = name or settings.notifications.timezone
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown notification timezone '{zone}', falling back to UTC")
        return ZoneInfo("UTC")


def context_for_post(post: Optional[GamePost], now: Optional[datetime] = None) -> FilterContext:
    """Filter facts derived from a game post."""
    if post is None:
        return FilterContext()
    now = now or utc_now()
    return FilterContext(
        game_id=post.game_id,
        is_full=post.status == GamePostStatus.FULL.value,
        minutes_until_start=(post.start_time - now).total_seconds() / 60,
    )


class NotificationService:
    """Creates notifications and manages the caller's inbox."""

    def __init__(self, repos: SqlRepoBundle, notification_filter: Optional[NotificationFilter] = None) -> None:
        self.repos = repos
        self.filter = notification_filter or NotificationFilter(repos, resolve_timezone())

    # =====================================================================
    # Sending
    # =====================================================================

    async def create_and_send(
        self,
        *,
        notification_type: NotificationType,
        title: str,
        body: str,
        event: Optional[NotificationEvent] = None,
        sender_id: Optional[str] = None,
        recipient_id: Optional[str] = None,
        recipient_ids: Optional[Iterable[str]] = None,
        group_type: Optional[GroupType] = None,
        role_id: Optional[int] = None,
        game_post_id: Optional[int] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        action_url: Optional[str] = None,
        icon: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        scheduled_at: Optional[datetime] = None,
        context: Optional[FilterContext] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Notification, int]:
        """Persist a notification and deliver it unless it is scheduled for later.

        Exactly one targeting mode is used: ``recipient_id`` (direct),
        ``recipient_ids`` (explicit list) or ``group_type``.

        Args:
            notification_type: Notification category
            title: Notification title
            body: Notification body
            event: Game event, if any
            sender_id: User who triggered the notification; never a recipient
            recipient_id: Direct recipient
            recipient_ids: Explicit recipient list
            group_type: Recipient group
            role_id: Role for ROLE_BASED groups
            game_post_id: Related game post
            priority: Display priority
            action_url: Link opened by the client
            icon: Icon URL
            data: Extra client payload
            scheduled_at: Deliver at this time instead of now
            context: Filter facts; derived from ``game_post_id`` when omitted
            now: Current naive UTC time

        Returns:
            Tuple of (notification, receipt count)

        Raises:
            BadRequestError: When no valid targeting mode is given
        """
        now = now or utc_now()
        group_filter: Dict[str, Any] = {}
        if recipient_id is None:
            if recipient_ids is not None:
                group_filter["user_ids"] = list(dict.fromkeys(recipient_ids))
            elif group_type is None:
                raise BadRequestError("Either recipient_id or group_type is required")
            elif group_type is GroupType.ROLE_BASED:
                if role_id is None:
                    raise BadRequestError("role_id is required for ROLE_BASED notifications")
                group_filter["role_id"] = role_id
            elif group_type in (GroupType.GAME_PARTICIPANTS, GroupType.WAITING_PARTICIPANTS) and game_post_id is None:
                raise BadRequestError(f"game_post_id is required for {group_type.value} notifications")

        scheduled = to_naive_utc(scheduled_at) if scheduled_at else None
        notification = Notification(
            type=notification_type.value,
            event=event.value if event else None,
            title=title,
            body=body,
            icon=icon,
            action_url=action_url,
            priority=priority.value,
            sender_id=sender_id,
            recipient_id=recipient_id,
            is_group_send=recipient_id is None,
            group_type=group_type.value if group_type else None,
            group_filter=dump_json(group_filter),
            game_post_id=game_post_id,
            data=dump_json(data or {}),
            scheduled_at=scheduled,
            status=NotificationStatus.PENDING.value if scheduled and scheduled > now else NotificationStatus.SENDING.value,
            created_at=now,
        )
        notification = await self.repos.notifications.create(notification)
        if notification.status == NotificationStatus.PENDING.value:
            logger.info(f"Notification {notification.id} scheduled for {scheduled.isoformat()}")
            return notification, 0

        count = await self.deliver(notification, context=context, now=now)
        return notification, count

    async def deliver(
        self, notification: Notification, context: Optional[FilterContext] = None, now: Optional[datetime] = None
    ) -> int:
        """Resolve, filter and write receipts for a stored notification, then mark it SENT."""
        now = now or utc_now()
        notification.status = NotificationStatus.SENDING.value
        targets = await self.resolve_targets(notification)
        if notification.sender_id:
            targets = [uid for uid in targets if uid != notification.sender_id]

        if context is None and notification.game_post_id is not None:
            post = await self.repos.game_posts.get_by_id(notification.game_post_id)
            context = context_for_post(post, now)
        event = NotificationEvent(notification.event) if notification.event else None
        accepted = await self.filter.filter_users(
            targets, NotificationType(notification.type), event, context or FilterContext(), now
        )
        if accepted:
            await self.repos.notifications.add_receipts(notification.id, accepted)

        notification.status = NotificationStatus.SENT.value
        notification.sent_at = now
        await self.repos.notifications.update(notification)
        log_domain_event(
            "notification.sent",
            notification_id=notification.id,
            type=notification.type,
            notification_event=notification.event,
            targets=len(targets),
            receipts=len(accepted),
        )
        logger.debug(f"Notification {notification.id} delivered to {len(accepted)} of {len(targets)} targets")
        return len(accepted)

    async def resolve_targets(self, notification: Notification) -> List[str]:
        """User ids a stored notification is addressed to, before filtering."""
        if notification.recipient_id:
            return [notification.recipient_id]
        group_filter = notification.get_group_filter()
        if "user_ids" in group_filter:
            return [str(uid) for uid in group_filter["user_ids"]]
        return await self.resolve_group(
            GroupType(notification.group_type), group_filter.get("role_id"), notification.game_post_id
        )

    async def resolve_group(
        self, group_type: GroupType, role_id: Optional[int] = None, game_post_id: Optional[int] = None
    ) -> List[str]:
        """Members of a recipient group."""
        if group_type is GroupType.ALL_USERS:
            return await self.repos.profiles.list_user_ids()
        if group_type is GroupType.ROLE_BASED:
            return await self.repos.profiles.list_user_ids(role_id=role_id)
        if group_type is GroupType.GAME_PARTICIPANTS:
            return await self.repos.participants.active_member_user_ids(game_post_id)
        entries = await self.repos.waiting.list_for_post(game_post_id, [WaitingStatus.WAITING])
        return [entry.user_id for entry in entries]

    async def send_game_event(
        self,
        post: GamePost,
        notification_type: NotificationType,
        event: Optional[NotificationEvent],
        recipient_ids: Iterable[str],
        *,
        sender_id: Optional[str] = None,
        actor_name: Optional[str] = None,
        game_name: Optional[str] = None,
        minutes: Optional[int] = None,
        priority: NotificationPriority = NotificationPriority.NORMAL,
        context: Optional[FilterContext] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Render the template for a game-post event and send it to ``recipient_ids``.

        Returns:
            Receipt count
        """
        recipients = [uid for uid in dict.fromkeys(recipient_ids) if uid]
        if not recipients:
            return 0
        now = now or utc_now()
        title, body = render(
            notification_type,
            event,
            title=post.title,
            game_name=game_name or post.custom_game_name,
            actor_name=actor_name,
            max_participants=post.max_participants,
            start_time=post.start_time.strftime("%Y-%m-%d %H:%M UTC"),
            minutes=minutes,
        )
        _, count = await self.create_and_send(
            notification_type=notification_type,
            event=event,
            title=title,
            body=body,
            sender_id=sender_id,
            recipient_ids=recipients,
            game_post_id=post.id,
            priority=priority,
            action_url=f"/game-mate/{post.id}",
            data={"game_post_id": post.id, "status": post.status},
            context=context or context_for_post(post, now),
            now=now,
        )
        return count

    async def send_from_request(self, request: NotificationSendRequest, sender_id: str) -> NotificationSendResult:
        """Admin send."""
        if request.recipient_id is None and request.group_type is None:
            raise BadRequestError("Either recipient_id or group_type is required")
        if request.recipient_id is not None and await self.repos.users.get_by_id(request.recipient_id) is None:
            raise NotFoundError("Recipient not found")
        if request.game_post_id is not None and await self.repos.game_posts.get_by_id(request.game_post_id) is None:
            raise NotFoundError("Game post not found")

        notification, count = await self.create_and_send(
            notification_type=request.type,
            title=request.title,
            body=request.body,
            sender_id=sender_id,
            recipient_id=request.recipient_id,
            group_type=request.group_type,
            role_id=request.role_id,
            game_post_id=request.game_post_id,
            priority=request.priority,
            action_url=request.action_url,
            icon=request.icon,
            data=request.data,
            scheduled_at=request.scheduled_at,
        )
        await self.repos.session.commit()
        return NotificationSendResult(notification_id=notification.id, status=notification.status, recipient_count=count)

    async def deliver_scheduled(self, now: Optional[datetime] = None) -> int:
        """Deliver every PENDING notification whose time has come.

        Returns:
            Number of notifications delivered
        """
        now = now or utc_now()
        delivered = 0
        for notification in await self.repos.notifications.due_scheduled(now):
            try:
                await self.deliver(notification, now=now)
                delivered += 1
            except (ValueError, KeyError) as exc:
                # Malformed type or group on the stored row
                notification.status = NotificationStatus.FAILED.value
                await self.repos.notifications.update(notification)
                logger.error(f"Scheduled notification {notification.id} failed: {exc}")
        return delivered

    # =====================================================================
    # Inbox
    # =====================================================================

    async def list_for_user(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
        notification_type: Optional[NotificationType] = None,
    ) -> NotificationListResponse:
        pairs, total = await self.repos.notifications.list_for_user(
            user_id, page=page, limit=limit, unread_only=unread_only, notification_type=notification_type
        )
        items = [
            NotificationItem(
                id=receipt.id,
                notification_id=notification.id,
                type=notification.type,
                event=notification.event,
                title=notification.title,
                body=notification.body,
                icon=notification.icon,
                action_url=notification.action_url,
                priority=notification.priority,
                game_post_id=notification.game_post_id,
                data=notification.get_data(),
                is_read=receipt.is_read,
                read_at=receipt.read_at,
                created_at=receipt.created_at,
            )
            for receipt, notification in pairs
        ]
        return NotificationListResponse(
            items=items,
            pagination=Pagination.build(page, limit, total),
            unread_count=await self.repos.notifications.unread_count(user_id),
        )

    async def mark_read(self, user_id: str, receipt_id: int) -> ReadResult:
        receipt = await self.repos.notifications.get_receipt_for_user(receipt_id, user_id)
        if receipt is None:
            raise NotFoundError("Notification not found")
        if receipt.is_read:
            return ReadResult(id=receipt.id, is_read=True, already_read=True, read_at=receipt.read_at)
        receipt.is_read = True
        receipt.read_at = utc_now()
        await self.repos.session.commit()
        return ReadResult(id=receipt.id, is_read=True, read_at=receipt.read_at)

    async def mark_all_read(self, user_id: str) -> ReadAllResult:
        count = await self.repos.notifications.mark_all_read(user_id, utc_now())
        await self.repos.session.commit()
        return ReadAllResult(count=count)

    async def delete_receipt(self, user_id: str, receipt_id: int) -> None:
        receipt = await self.repos.notifications.get_receipt_for_user(receipt_id, user_id)
        if receipt is None:
            raise NotFoundError("Notification not found")
        await self.repos.session.delete(receipt)
        await self.repos.session.commit()
