"""Domain enums shared by entities, services and API schemas."""

from __future__ import annotations

from enum import Enum


class RoleName(str, Enum):
    """Coarse permission tier attached to every profile."""

    NONE = "NONE"  # Signed up, not yet approved as a member.
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


ADMIN_ROLES = (RoleName.ADMIN, RoleName.SUPER_ADMIN)


class PermissionType(str, Enum):
    """Fine-grained permissions granted to roles."""

    POST_CREATE = "POST_CREATE"
    POST_READ = "POST_READ"
    POST_UPDATE = "POST_UPDATE"
    POST_DELETE = "POST_DELETE"
    POST_MANAGE_ALL = "POST_MANAGE_ALL"
    USER_VIEW = "USER_VIEW"
    USER_MANAGE = "USER_MANAGE"
    USER_ROLE_MANAGE = "USER_ROLE_MANAGE"
    GAME_CREATE = "GAME_CREATE"
    GAME_UPDATE = "GAME_UPDATE"
    GAME_DELETE = "GAME_DELETE"
    GAME_MANAGE = "GAME_MANAGE"
    ADMIN_PANEL_ACCESS = "ADMIN_PANEL_ACCESS"
    SYSTEM_SETTINGS = "SYSTEM_SETTINGS"


class GamePostStatus(str, Enum):
    """Lifecycle of a game-mate recruitment post."""

    OPEN = "OPEN"
    FULL = "FULL"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"
    DELETED = "DELETED"


RECRUITING_STATUSES = (GamePostStatus.OPEN, GamePostStatus.FULL)
CLOSED_STATUSES = (GamePostStatus.COMPLETED, GamePostStatus.EXPIRED, GamePostStatus.DELETED)


class ParticipantType(str, Enum):
    MEMBER = "MEMBER"
    GUEST = "GUEST"


class ParticipantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    LEFT_EARLY = "LEFT_EARLY"


class WaitingStatus(str, Enum):
    """State of a waiting-list entry."""

    WAITING = "WAITING"  # Queued, promoted automatically when a slot frees up.
    INVITED = "INVITED"  # Game already running; the user must accept.
    TIME_WAITING = "TIME_WAITING"  # Queued from a later time only.
    CANCELED = "CANCELED"


ACTIVE_WAITING_STATUSES = (WaitingStatus.WAITING, WaitingStatus.INVITED, WaitingStatus.TIME_WAITING)


class NotificationType(str, Enum):
    NEW_GAME_POST = "NEW_GAME_POST"
    MY_GAME_POST_UPDATE = "MY_GAME_POST_UPDATE"
    PARTICIPATING_GAME_UPDATE = "PARTICIPATING_GAME_UPDATE"
    WAITING_LIST_UPDATE = "WAITING_LIST_UPDATE"
    NOTICE = "NOTICE"
    SYSTEM = "SYSTEM"


class NotificationEvent(str, Enum):
    MEMBER_JOIN = "MEMBER_JOIN"
    MEMBER_LEAVE = "MEMBER_LEAVE"
    GAME_FULL = "GAME_FULL"
    PROMOTED = "PROMOTED"
    INVITED = "INVITED"
    TIME_CHANGE = "TIME_CHANGE"
    BEFORE_MEETING = "BEFORE_MEETING"
    MEETING_START = "MEETING_START"
    GAME_CANCELLED = "GAME_CANCELLED"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class GroupType(str, Enum):
    """Recipient groups for broadcast notifications."""

    ALL_USERS = "ALL_USERS"
    ROLE_BASED = "ROLE_BASED"
    GAME_PARTICIPANTS = "GAME_PARTICIPANTS"
    WAITING_PARTICIPANTS = "WAITING_PARTICIPANTS"


class NewGamePostMode(str, Enum):
    ALL = "all"
    FAVORITES = "favorites"
    CUSTOM = "custom"
