"""
Repository bundle for dependency injection.

Services receive one ``SqlRepoBundle`` bound to the request session, so every
repository they touch shares the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .boards import ChannelRepository, PostRepository
from .comments import CommentRepository
from .game_posts import GameParticipantRepository, GamePostRepository, WaitingParticipantRepository
from .games import GameRepository
from .notices import NoticeRepository
from .notifications import NotificationRepository, NotificationSettingRepository
from .users import PermissionRepository, RoleRepository, UserProfileRepository, UserRepository


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience bundle of all SQL repositories for dependency injection."""

    session: AsyncSession
    users: UserRepository
    profiles: UserProfileRepository
    roles: RoleRepository
    permissions: PermissionRepository
    games: GameRepository
    game_posts: GamePostRepository
    participants: GameParticipantRepository
    waiting: WaitingParticipantRepository
    comments: CommentRepository
    notices: NoticeRepository
    notifications: NotificationRepository
    notification_settings: NotificationSettingRepository
    channels: ChannelRepository
    posts: PostRepository


def build_sql_repos_from_session(*, session: AsyncSession) -> SqlRepoBundle:
    """Build a SqlRepoBundle from an existing session.

    Args:
        session: Existing async session

    Returns:
        Bundle containing all repository instances
    """
    return SqlRepoBundle(
        session=session,
        users=UserRepository(session),
        profiles=UserProfileRepository(session),
        roles=RoleRepository(session),
        permissions=PermissionRepository(session),
        games=GameRepository(session),
        game_posts=GamePostRepository(session),
        participants=GameParticipantRepository(session),
        waiting=WaitingParticipantRepository(session),
        comments=CommentRepository(session),
        notices=NoticeRepository(session),
        notifications=NotificationRepository(session),
        notification_settings=NotificationSettingRepository(session),
        channels=ChannelRepository(session),
        posts=PostRepository(session),
    )
