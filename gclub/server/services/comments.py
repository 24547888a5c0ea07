"""Comments on board posts, game posts and notices."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from gclub.core.database.base import utc_now
from gclub.core.database.entities.comments import Comment
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.io.comments import CommentRead
from gclub.server.services.auth import CurrentUser

logger = get_logger(__name__)

MAX_COMMENT_LENGTH = 500


class CommentParent(str, Enum):
    POST = "post"
    GAME_POST = "game_post"
    NOTICE = "notice"


PARENT_COLUMNS = {
    CommentParent.POST: "post_id",
    CommentParent.GAME_POST: "game_post_id",
    CommentParent.NOTICE: "notice_id",
}


def clean_content(content: Optional[str]) -> str:
    content = (content or "").strip()
    if not content:
        raise BadRequestError("Comment content is required")
    if len(content) > MAX_COMMENT_LENGTH:
        raise BadRequestError(f"Comment content must be at most {MAX_COMMENT_LENGTH} characters")
    return content


class CommentService:
    """List, add, edit and delete comments under one parent."""

    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _check_parent(
        self, parent: CommentParent, parent_id: Any, viewer: Optional[CurrentUser], writing: bool = False
    ) -> None:
        if parent is CommentParent.GAME_POST:
            if await self.repos.game_posts.get_live(parent_id) is None:
                raise NotFoundError("Game post not found")
        elif parent is CommentParent.POST:
            post = await self.repos.posts.get_by_id(parent_id)
            if post is None or not post.published:
                raise NotFoundError("Post not found")
        else:
            if viewer is None or not viewer.is_member:
                raise ForbiddenError("Notices are visible to members only")
            notice = await self.repos.notices.get_visible(parent_id)
            if notice is None or not notice.is_published:
                raise NotFoundError("Notice not found")
            if writing and not notice.allow_comments:
                raise ForbiddenError("Comments are disabled on this notice")

    async def _to_reads(self, comments: List[Comment]) -> List[CommentRead]:
        profiles = await self.repos.profiles.get_many_by_user_ids([c.author_id for c in comments])
        reads = []
        for comment in comments:
            read = CommentRead.model_validate(comment)
            profile = profiles.get(comment.author_id)
            read.author_name = profile.name if profile else None
            reads.append(read)
        return reads

    async def _get_comment(self, parent: CommentParent, parent_id: Any, comment_id: int) -> Comment:
        comment = await self.repos.comments.get_by_id(comment_id)
        if comment is None or getattr(comment, PARENT_COLUMNS[parent]) != parent_id:
            raise NotFoundError("Comment not found")
        return comment

    async def list_comments(
        self, parent: CommentParent, parent_id: Any, viewer: Optional[CurrentUser] = None
    ) -> List[CommentRead]:
        await self._check_parent(parent, parent_id, viewer)
        kwargs: Dict[str, Any] = {PARENT_COLUMNS[parent]: parent_id}
        return await self._to_reads(await self.repos.comments.list_for(**kwargs))

    async def create_comment(
        self, parent: CommentParent, parent_id: Any, user: CurrentUser, content: str
    ) -> CommentRead:
        text = clean_content(content)
        await self._check_parent(parent, parent_id, user, writing=True)
        comment = Comment(content=text, author_id=user.user_id, **{PARENT_COLUMNS[parent]: parent_id})
        comment = await self.repos.comments.create(comment)
        await self.repos.session.commit()
        logger.info(f"Comment {comment.id} added to {parent.value} {parent_id} by {user.user_id}")
        return (await self._to_reads([comment]))[0]

    async def update_comment(
        self, parent: CommentParent, parent_id: Any, comment_id: int, user: CurrentUser, content: str
    ) -> CommentRead:
        text = clean_content(content)
        await self._check_parent(parent, parent_id, user, writing=True)
        comment = await self._get_comment(parent, parent_id, comment_id)
        if comment.author_id != user.user_id:
            raise ForbiddenError("Only the author can edit this comment")
        comment.content = text
        comment.updated_at = utc_now()
        comment = await self.repos.comments.update(comment)
        await self.repos.session.commit()
        return (await self._to_reads([comment]))[0]

    async def delete_comment(self, parent: CommentParent, parent_id: Any, comment_id: int, user: CurrentUser) -> None:
        await self._check_parent(parent, parent_id, user)
        comment = await self._get_comment(parent, parent_id, comment_id)
        if comment.author_id != user.user_id and not user.is_admin:
            raise ForbiddenError("Only the author or an admin can delete this comment")
        await self.repos.comments.delete(comment.id)
        await self.repos.session.commit()
        logger.info(f"Comment {comment_id} deleted by {user.user_id}")
