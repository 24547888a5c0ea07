"""
Database entity models.

This package contains all database entity models organized by business domain.
Importing it registers every table with ``SQLModel.metadata``.

Modules:
- users: Users, profiles, roles and permissions
- games: Game catalogue and favorite games
- game_posts: Game-mate posts, participants and waiting list
- comments: Comments on board posts, game posts and notices
- notices: Admin announcements
- notifications: Notifications, receipts and notification settings
- boards: Channels, boards and board posts
"""

from . import boards, comments, game_posts, games, notices, notifications, users
from .boards import Board, Channel, Post
from .comments import Comment
from .game_posts import GameParticipant, GamePost, WaitingParticipant
from .games import Game, UserFavoriteGame
from .notices import Notice
from .notifications import Notification, NotificationReceipt, NotificationSetting
from .users import Permission, Role, RolePermission, User, UserProfile

__all__ = [
    "Board",
    "Channel",
    "Comment",
    "Game",
    "GameParticipant",
    "GamePost",
    "Notice",
    "Notification",
    "NotificationReceipt",
    "NotificationSetting",
    "Permission",
    "Post",
    "Role",
    "RolePermission",
    "User",
    "UserFavoriteGame",
    "UserProfile",
    "WaitingParticipant",
    "boards",
    "comments",
    "game_posts",
    "games",
    "notices",
    "notifications",
    "users",
]
