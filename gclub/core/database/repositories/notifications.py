"""
Notification repositories.

Notifications are read through their per-user receipts; settings are looked
up in bulk when filtering broadcast recipients.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from gclub.core.models.domain import NotificationStatus

from ..entities.notifications import Notification, NotificationReceipt, NotificationSetting
from .base import BaseRepository, QueryBuilder, enum_values


class NotificationRepository(BaseRepository[Notification]):
    """Repository for notifications and their receipts."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def add_receipts(self, notification_id: int, user_ids: Iterable[str]) -> List[NotificationReceipt]:
        receipts = [NotificationReceipt(notification_id=notification_id, user_id=uid) for uid in dict.fromkeys(user_ids)]
        self.session.add_all(receipts)
        await self.session.flush()
        return receipts

    async def list_for_user(
        self,
        user_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
        notification_type: Optional[str] = None,
    ) -> Tuple[List[Tuple[NotificationReceipt, Notification]], int]:
        """Page through a user's receipts joined with their notifications, newest first.

        Args:
            user_id: Recipient
            page: 1-based page number
            limit: Page size
            unread_only: Only unread receipts
            notification_type: Restrict to one notification type

        Returns:
            Tuple of ((receipt, notification) pairs, total count)
        """
        stmt = (
            select(NotificationReceipt, Notification)
            .join(Notification, col(Notification.id) == col(NotificationReceipt.notification_id))
            .where(NotificationReceipt.user_id == user_id)
        )
        if unread_only:
            stmt = stmt.where(NotificationReceipt.is_read == False)  # noqa: E712
        if notification_type:
            stmt = stmt.where(Notification.type == enum_values([notification_type])[0])

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(col(NotificationReceipt.created_at).desc(), col(NotificationReceipt.id).desc())
        stmt = QueryBuilder.apply_pagination(stmt, limit, (page - 1) * limit)
        result = await self.session.execute(stmt)
        return [(receipt, notification) for receipt, notification in result.all()], total

    async def unread_count(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(NotificationReceipt)
            .where(NotificationReceipt.user_id == user_id, NotificationReceipt.is_read == False)  # noqa: E712
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def get_receipt_for_user(self, receipt_id: int, user_id: str) -> Optional[NotificationReceipt]:
        stmt = select(NotificationReceipt).where(
            NotificationReceipt.id == receipt_id, NotificationReceipt.user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def mark_all_read(self, user_id: str, now: datetime) -> int:
        stmt = (
            update(NotificationReceipt)
            .where(col(NotificationReceipt.user_id) == user_id, col(NotificationReceipt.is_read) == False)  # noqa: E712
            .values(is_read=True, read_at=now)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def receipts_for(self, notification_id: int) -> List[NotificationReceipt]:
        stmt = select(NotificationReceipt).where(NotificationReceipt.notification_id == notification_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def recipients_of_event(self, game_post_id: int, event: str) -> Set[str]:
        """Users who already hold a receipt for ``event`` on a game post."""
        stmt = (
            select(NotificationReceipt.user_id)
            .join(Notification, col(Notification.id) == col(NotificationReceipt.notification_id))
            .where(Notification.game_post_id == game_post_id, Notification.event == event)
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def due_scheduled(self, now: datetime) -> List[Notification]:
        """Pending notifications whose scheduled time has passed, oldest first."""
        stmt = (
            select(Notification)
            .where(
                Notification.status == NotificationStatus.PENDING.value,
                col(Notification.scheduled_at).is_not(None),
                col(Notification.scheduled_at) <= now,
            )
            .order_by(col(Notification.scheduled_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_older_than(self, cutoff: datetime) -> Tuple[int, int]:
        """Delete notifications created before ``cutoff`` together with their receipts.

        Returns:
            Tuple of (receipts deleted, notifications deleted)
        """
        old_ids = select(Notification.id).where(col(Notification.created_at) < cutoff)
        receipts = await self.session.execute(
            delete(NotificationReceipt).where(col(NotificationReceipt.notification_id).in_(old_ids))
        )
        notifications = await self.session.execute(delete(Notification).where(col(Notification.created_at) < cutoff))
        return receipts.rowcount or 0, notifications.rowcount or 0


class NotificationSettingRepository(BaseRepository[NotificationSetting]):
    """Repository for per-user notification settings."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, NotificationSetting)

    async def get_by_user_id(self, user_id: str) -> Optional[NotificationSetting]:
        result = await self.session.execute(select(NotificationSetting).where(NotificationSetting.user_id == user_id))
        return result.scalars().one_or_none()

    async def get_or_create(self, user_id: str) -> NotificationSetting:
        setting = await self.get_by_user_id(user_id)
        if setting is None:
            setting = await self.create(NotificationSetting(user_id=user_id))
        return setting

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, NotificationSetting]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        stmt = select(NotificationSetting).where(col(NotificationSetting.user_id).in_(ids))
        result = await self.session.execute(stmt)
        return {setting.user_id: setting for setting in result.scalars().all()}
