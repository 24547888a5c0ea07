"""
Notice Service.

Admin announcements with publish/pin state. The body is a rich-text editor
document; it must hold at least one paragraph with visible text and stay
below ``MAX_CONTENT_LENGTH`` once serialized. Publishing a notice broadcasts
a NOTICE notification to every member who keeps notices enabled.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from gclub.core.database.base import utc_now
from gclub.core.database.entities.notices import Notice
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import GroupType, NotificationPriority, NotificationType
from gclub.core.models.io.common import Pagination
from gclub.core.models.io.notices import NoticeCreate, NoticeIdCheck, NoticeListResponse, NoticeRead, NoticeUpdate
from gclub.core.monitoring import log_domain_event
from gclub.server.services.auth import CurrentUser
from gclub.server.services.notifications import NotificationService

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 50000
UUID_V4_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


def has_paragraph_text(document: Dict[str, Any]) -> bool:
    """True when a top-level paragraph node carries non-blank text."""
    nodes = document.get("content") if isinstance(document, dict) else None
    if not isinstance(nodes, list):
        return False
    for node in nodes:
        if not isinstance(node, dict) or node.get("type") != "paragraph":
            continue
        children = node.get("content") or []
        if any(isinstance(child, dict) and str(child.get("text") or "").strip() for child in children):
            return True
    return False


def validate_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title:
        raise BadRequestError("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise BadRequestError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return title


def validate_content(document: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not document or not has_paragraph_text(document):
        raise BadRequestError("Content is required")
    if len(json.dumps(document, ensure_ascii=False, separators=(",", ":"))) > MAX_CONTENT_LENGTH:
        raise BadRequestError("Content is too long")
    return document


class NoticeService:
    """Notice CRUD with role-based visibility."""

    def __init__(self, repos: SqlRepoBundle, notifications: Optional[NotificationService] = None) -> None:
        self.repos = repos
        self.notifications = notifications or NotificationService(repos)

    async def _read(self, notice: Notice) -> NoticeRead:
        profile = await self.repos.profiles.get_by_user_id(notice.author_id)
        return NoticeRead.from_entity(notice, profile.name if profile else None)

    async def _visible(self, notice_id: str, user: CurrentUser) -> Notice:
        if not user.is_member:
            raise ForbiddenError("Notices are visible to members only")
        notice = await self.repos.notices.get_visible(notice_id)
        if notice is None or (not notice.is_published and not user.is_admin):
            raise NotFoundError("Notice not found")
        return notice

    async def list_notices(
        self, user: Optional[CurrentUser], page: int = 1, limit: int = 10, include_unpublished: bool = False
    ) -> NoticeListResponse:
        """Members see published notices; admins may include drafts. Everyone else gets an empty page."""
        if include_unpublished and (user is None or not user.is_admin):
            raise ForbiddenError("Admin role required to list unpublished notices")
        if user is None or not user.is_member:
            return NoticeListResponse(items=[], pagination=Pagination.build(1, limit, 0))
        notices, total = await self.repos.notices.list_notices(
            include_unpublished=include_unpublished, page=page, limit=limit
        )
        profiles = await self.repos.profiles.get_many_by_user_ids([n.author_id for n in notices])
        items = [
            NoticeRead.from_entity(n, profiles[n.author_id].name if n.author_id in profiles else None)
            for n in notices
        ]
        return NoticeListResponse(items=items, pagination=Pagination.build(page, limit, total))

    async def get_notice(self, notice_id: str, user: CurrentUser) -> NoticeRead:
        return await self._read(await self._visible(notice_id, user))

    async def record_view(self, notice_id: str, user: CurrentUser) -> int:
        await self._visible(notice_id, user)
        count = await self.repos.notices.increment_views(notice_id)
        await self.repos.session.commit()
        return count or 0

    async def check_id(self, notice_id: Optional[str]) -> NoticeIdCheck:
        """Whether a client-generated id is a UUID v4 and still free."""
        if not notice_id or not UUID_V4_PATTERN.match(notice_id):
            raise BadRequestError("Notice id must be a UUID v4")
        exists = await self.repos.notices.get_by_id(notice_id.lower()) is not None
        return NoticeIdCheck(is_valid=True, exists=exists)

    async def create_notice(self, user: CurrentUser, data: NoticeCreate, temp_id: Optional[str] = None) -> NoticeRead:
        """Create a notice, optionally under a client-generated id.

        Raises:
            BadRequestError: On invalid title, content or id format
            ConflictError: When the client-generated id is taken
        """
        title = validate_title(data.title)
        document = validate_content(data.content)
        notice_id = None
        if temp_id:
            if (await self.check_id(temp_id)).exists:
                raise ConflictError("Notice id already exists")
            notice_id = temp_id.lower()

        now = utc_now()
        notice = Notice(
            title=title,
            summary=(data.summary or "").strip() or None,
            author_id=user.user_id,
            is_published=data.is_published,
            is_pinned=data.is_pinned,
            allow_comments=data.allow_comments,
            priority=data.priority,
            published_at=now if data.is_published else None,
            created_at=now,
            updated_at=now,
        )
        if notice_id:
            notice.id = notice_id
        notice.set_content(document)
        notice = await self.repos.notices.create(notice)
        await self.repos.session.commit()
        log_domain_event("notice.created", notice_id=notice.id, published=notice.is_published)
        logger.info(f"Notice {notice.id} created by {user.user_id}")

        read = await self._read(notice)
        if notice.is_published:
            await self._announce(notice, user)
        return read

    async def update_notice(self, notice_id: str, user: CurrentUser, data: NoticeUpdate) -> NoticeRead:
        notice = await self.repos.notices.get_visible(notice_id)
        if notice is None:
            raise NotFoundError("Notice not found")
        fields = data.model_fields_set
        if "title" in fields:
            notice.title = validate_title(data.title)
        if "content" in fields:
            notice.set_content(validate_content(data.content))
        if "summary" in fields:
            notice.summary = (data.summary or "").strip() or None
        for name in ("is_pinned", "allow_comments", "priority"):
            value = getattr(data, name)
            if name in fields and value is not None:
                setattr(notice, name, value)

        first_publish = False
        if "is_published" in fields and data.is_published is not None:
            first_publish = data.is_published and notice.published_at is None
            notice.is_published = data.is_published
            if first_publish:
                notice.published_at = utc_now()
        notice.last_modified_by_id = user.user_id
        notice = await self.repos.notices.update(notice)
        await self.repos.session.commit()
        logger.info(f"Notice {notice.id} updated by {user.user_id}")

        read = await self._read(notice)
        if first_publish:
            await self._announce(notice, user)
        return read

    async def delete_notice(self, notice_id: str, user: CurrentUser) -> None:
        notice = await self.repos.notices.get_visible(notice_id)
        if notice is None:
            raise NotFoundError("Notice not found")
        notice.is_deleted = True
        notice.deleted_at = utc_now()
        notice.last_modified_by_id = user.user_id
        await self.repos.notices.update(notice)
        await self.repos.session.commit()
        log_domain_event("notice.deleted", notice_id=notice_id)

    async def _announce(self, notice: Notice, user: CurrentUser) -> None:
        # A failed send rolls the session back and expires ``notice``
        notice_id = notice.id
        try:
            await self.notifications.create_and_send(
                notification_type=NotificationType.NOTICE,
                title="New notice",
                body=notice.title,
                sender_id=user.user_id,
                group_type=GroupType.ALL_USERS,
                priority=NotificationPriority.HIGH,
                action_url=f"/notices/{notice_id}",
                data={"notice_id": notice_id, "notice_title": notice.title},
            )
            await self.repos.session.commit()
        except Exception as exc:
            await self.repos.session.rollback()
            logger.warning(f"Notice notification for {notice_id} failed: {exc}")
