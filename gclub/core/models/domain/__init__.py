"""Domain-level value types."""

from .enums import (
    ACTIVE_WAITING_STATUSES,
    ADMIN_ROLES,
    CLOSED_STATUSES,
    RECRUITING_STATUSES,
    GamePostStatus,
    GroupType,
    NewGamePostMode,
    NotificationEvent,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    ParticipantStatus,
    ParticipantType,
    PermissionType,
    RoleName,
    WaitingStatus,
)

__all__ = [
    "ACTIVE_WAITING_STATUSES",
    "ADMIN_ROLES",
    "CLOSED_STATUSES",
    "RECRUITING_STATUSES",
    "GamePostStatus",
    "GroupType",
    "NewGamePostMode",
    "NotificationEvent",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationType",
    "ParticipantStatus",
    "ParticipantType",
    "PermissionType",
    "RoleName",
    "WaitingStatus",
]
