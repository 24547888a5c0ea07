"""Channels, their boards and board posts."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from gclub.core.database.base import utc_now
from gclub.core.database.entities.boards import Board, Channel, Post
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import PermissionType
from gclub.core.models.io.boards import (
    AdminBoardRead,
    BoardCreate,
    BoardInfo,
    BoardPostListResponse,
    ChannelCreate,
    ChannelOrderUpdate,
    ChannelRead,
    ChannelStatusRead,
    ChannelStatusUpdate,
    PostCreate,
    PostRead,
    PostUpdate,
)
from gclub.core.models.io.common import Pagination
from gclub.server.services.auth import CurrentUser

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 200
SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def _validate_post_fields(title: Optional[str], content: Optional[str]) -> Tuple[str, str]:
    """Trimmed ``(title, content)``; blank values are rejected."""
    title = (title or "").strip()
    content = (content or "").strip()
    if not 1 <= len(title) <= MAX_TITLE_LENGTH:
        raise BadRequestError(f"Title must be 1 to {MAX_TITLE_LENGTH} characters")
    if not content:
        raise BadRequestError("Content is required")
    return title, content


class BoardService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _board_for(self, slug: str) -> BoardInfo:
        channel = await self.repos.channels.get_by_slug(slug)
        if channel is None or not channel.is_active:
            raise NotFoundError("Channel not found")
        board = await self.repos.channels.get_board(channel.id)
        if board is None or not board.is_active:
            raise NotFoundError("Board not found")
        return BoardInfo(
            id=board.id,
            name=board.name,
            description=board.description,
            channel_id=channel.id,
            channel_name=channel.name,
            channel_slug=channel.slug,
        )

    async def _to_read(self, post: Post) -> PostRead:
        read = PostRead.model_validate(post)
        profile = await self.repos.profiles.get_by_user_id(post.author_id)
        read.author_name = profile.name if profile else None
        return read

    async def _get_post(self, post_id: int, user: CurrentUser | None = None) -> Post:
        post = await self.repos.posts.get_by_id(post_id)
        if post is None or (not post.published and (user is None or user.user_id != post.author_id)):
            raise NotFoundError("Post not found")
        return post

    async def list_channels(self) -> List[ChannelRead]:
        return [ChannelRead.model_validate(channel) for channel in await self.repos.channels.list_active()]

    async def create_channel(self, data: ChannelCreate) -> ChannelRead:
        """Create a channel together with its board."""
        if not data.name or not data.slug:
            raise BadRequestError("Channel name and slug are required")
        slug = data.slug.lower()
        if not SLUG_PATTERN.match(slug):
            raise BadRequestError("Slug may only contain lowercase letters, digits and hyphens")
        if await self.repos.channels.get_by_slug(slug) is not None:
            raise ConflictError(f"Channel slug '{slug}' already exists")
        channel = await self.repos.channels.create(
            Channel(name=data.name, slug=slug, description=data.description, order=data.order)
        )
        self.repos.session.add(Board(channel_id=channel.id, name=data.board_name or data.name))
        await self.repos.session.commit()
        logger.info(f"Channel '{slug}' created")
        return ChannelRead.model_validate(channel)

    async def _channel(self, slug: str) -> Channel:
        channel = await self.repos.channels.get_by_slug(slug.lower())
        if channel is None:
            raise NotFoundError(f"Channel '{slug}' not found")
        return channel

    async def _status_read(self, channel: Channel) -> ChannelStatusRead:
        board = await self.repos.channels.get_board(channel.id)
        return ChannelStatusRead(
            id=channel.id,
            name=channel.name,
            slug=channel.slug,
            is_active=channel.is_active,
            board_active=board.is_active if board else None,
        )

    async def update_channel_status(self, slug: str, data: ChannelStatusUpdate) -> ChannelStatusRead:
        """Hide or show a channel, or only close its board to reading and posting."""
        channel = await self._channel(slug)
        if data.type == "channel":
            channel.is_active = data.is_active
            await self.repos.channels.update(channel)
        else:
            board = await self.repos.channels.get_board(channel.id)
            if board is None:
                raise NotFoundError("Board not found")
            board.is_active = data.is_active
            await self.repos.session.flush()
        await self.repos.session.commit()
        logger.info(f"Channel '{channel.slug}' {data.type} active={data.is_active}")
        return await self._status_read(channel)

    async def reorder_channels(self, data: ChannelOrderUpdate) -> List[ChannelRead]:
        """Apply every ``{id, order}`` pair in one transaction."""
        channels = {channel.id: channel for channel in await self.repos.channels.list_all()}
        unknown = sorted({item.id for item in data.channels} - set(channels))
        if unknown:
            raise NotFoundError(f"Unknown channel ids: {unknown}")
        for item in data.channels:
            channels[item.id].order = item.order
            await self.repos.channels.update(channels[item.id])
        await self.repos.session.commit()
        return [ChannelRead.model_validate(channel) for channel in await self.repos.channels.list_all()]

    async def list_boards(self) -> List[AdminBoardRead]:
        return [
            AdminBoardRead(
                id=board.id,
                name=board.name,
                description=board.description,
                is_active=board.is_active,
                channel_id=channel.id,
                channel_slug=channel.slug,
                created_at=board.created_at,
            )
            for board, channel in await self.repos.channels.list_boards()
        ]

    async def create_board(self, data: BoardCreate) -> AdminBoardRead:
        if not data.name:
            raise BadRequestError("Board name is required")
        channel = await self._channel(data.channel_slug)
        if await self.repos.channels.get_board(channel.id) is not None:
            raise ConflictError(f"Channel '{channel.slug}' already has a board")
        board = Board(channel_id=channel.id, name=data.name, description=data.description or None)
        self.repos.session.add(board)
        await self.repos.session.flush()
        await self.repos.session.commit()
        logger.info(f"Board {board.id} created on '{channel.slug}'")
        return AdminBoardRead(
            id=board.id,
            name=board.name,
            description=board.description,
            is_active=board.is_active,
            channel_id=channel.id,
            channel_slug=channel.slug,
            created_at=board.created_at,
        )

    async def delete_board(self, board_id: int) -> None:
        """Remove a board together with its posts and their comments."""
        board = await self.repos.session.get(Board, board_id)
        if board is None:
            raise NotFoundError("Board not found")
        removed = await self.repos.channels.delete_board(board_id)
        await self.repos.session.commit()
        logger.info(f"Board {board_id} deleted with {removed} posts")

    async def list_posts(self, slug: str, page: int = 1, limit: int = 10) -> BoardPostListResponse:
        board = await self._board_for(slug)
        posts, total = await self.repos.posts.list_published(board.id, page, limit)
        profiles = await self.repos.profiles.get_many_by_user_ids([post.author_id for post in posts])
        items = []
        for post in posts:
            read = PostRead.model_validate(post)
            read.author_name = profiles[post.author_id].name if post.author_id in profiles else None
            items.append(read)
        return BoardPostListResponse(board_info=board, items=items, pagination=Pagination.build(page, limit, total))

    async def create_post(self, slug: str, user: CurrentUser, data: PostCreate) -> PostRead:
        board = await self._board_for(slug)
        title, content = _validate_post_fields(data.title, data.content)
        post = await self.repos.posts.create(
            Post(
                title=title,
                content=content,
                published=data.published,
                board_id=board.id,
                author_id=user.user_id,
            )
        )
        await self.repos.session.commit()
        logger.info(f"Post {post.id} created on '{slug}' by {user.user_id}")
        return await self._to_read(post)

    async def view_post(self, post_id: int, user: CurrentUser | None = None) -> PostRead:
        """Return a post and count the view."""
        post = await self._get_post(post_id, user)
        await self.repos.posts.increment_views(post.id)
        await self.repos.session.commit()
        await self.repos.session.refresh(post)
        return await self._to_read(post)

    async def update_post(self, post_id: int, user: CurrentUser, data: PostUpdate) -> PostRead:
        post = await self._get_post(post_id, user)
        if post.author_id != user.user_id and not user.has_permission(PermissionType.POST_MANAGE_ALL):
            raise ForbiddenError("Only the author can edit this post")
        fields = data.model_fields_set
        title = data.title if "title" in fields and data.title is not None else post.title
        content = data.content if "content" in fields and data.content is not None else post.content
        title, content = _validate_post_fields(title, content)
        post.title, post.content = title, content
        if "published" in fields and data.published is not None:
            post.published = data.published
        post.updated_at = utc_now()
        post = await self.repos.posts.update(post)
        await self.repos.session.commit()
        return await self._to_read(post)

    async def delete_post(self, post_id: int, user: CurrentUser) -> None:
        post = await self._get_post(post_id, user)
        is_moderator = user.has_permission(PermissionType.POST_DELETE) and user.has_permission(
            PermissionType.POST_MANAGE_ALL
        )
        if post.author_id != user.user_id and not is_moderator:
            raise ForbiddenError("Only the author or a moderator can delete this post")
        await self.repos.comments.delete_for_post(post.id)
        await self.repos.posts.delete(post.id)
        await self.repos.session.commit()
        logger.info(f"Post {post_id} deleted by {user.user_id}")
