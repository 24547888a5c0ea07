"""
Notifications API Endpoints.

The caller's inbox (one receipt per delivered notification), their
notification settings, and the admin send endpoint.

The fixed ``/settings`` and ``/read-all`` paths are declared before the
``/{receipt_id}`` routes so they are never captured as receipt ids.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from gclub.core.models.domain import NotificationType, PermissionType
from gclub.core.models.io.common import MessageResponse
from gclub.core.models.io.notifications import (
    NotificationListResponse,
    NotificationSendRequest,
    NotificationSendResult,
    NotificationSettingsRead,
    NotificationSettingsUpdate,
    ReadAllResult,
    ReadResult,
)
from gclub.server.services.auth import CurrentUser
from gclub.server.services.deps import CurrentUserDep, NotificationServiceDep, ReposDep, require_permission
from gclub.server.services.notifications import get_settings, update_settings

router = APIRouter()


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List My Notifications",
    description="The caller's notifications, newest first, with the total unread count.",
    response_description="Paginated notifications.",
    responses={401: {"description": "Missing or invalid bearer token"}},
)
async def list_notifications(
    user: CurrentUserDep,
    service: NotificationServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    unread_only: bool = Query(False),
    notification_type: Optional[NotificationType] = Query(None, alias="type"),
) -> NotificationListResponse:
    """
    List the caller's notifications.

    - **unread_only**: Only unread receipts.
    - **type**: Restrict to one notification type.
    """
    return await service.list_for_user(
        user.user_id, page=page, limit=limit, unread_only=unread_only, notification_type=notification_type
    )


@router.post(
    "",
    response_model=NotificationSendResult,
    status_code=status.HTTP_201_CREATED,
    summary="Send Notification",
    description="Send to one user or a group. A future `scheduled_at` stores the notification as PENDING for the scheduled delivery job.",
    response_description="The notification id, its status and how many users received it.",
    responses={
        400: {"description": "Neither recipient_id nor group_type given"},
        403: {"description": "ADMIN_PANEL_ACCESS or SYSTEM_SETTINGS required"},
        404: {"description": "Recipient or game post not found"},
    },
)
async def send_notification(
    data: NotificationSendRequest,
    service: NotificationServiceDep,
    user: CurrentUser = Depends(
        require_permission(PermissionType.ADMIN_PANEL_ACCESS, PermissionType.SYSTEM_SETTINGS)
    ),
) -> NotificationSendResult:
    """
    Send a notification.

    - **type**, **title**, **body**: Required.
    - **recipient_id**: A single user, or
    - **group_type**: ALL_USERS, ROLE_BASED (with role_id), GAME_PARTICIPANTS or WAITING_PARTICIPANTS (with game_post_id).
    """
    return await service.send_from_request(data, user.user_id)


@router.get(
    "/settings",
    response_model=NotificationSettingsRead,
    summary="Get Notification Settings",
    description="The caller's settings; defaults are stored on first access.",
    response_description="Nested settings document.",
)
async def read_settings(user: CurrentUserDep, repos: ReposDep) -> NotificationSettingsRead:
    return await get_settings(repos, user.user_id)


@router.put(
    "/settings",
    response_model=NotificationSettingsRead,
    summary="Update Notification Settings",
    description="Update the sections sent; omitted sections stay unchanged.",
    response_description="The saved settings.",
    responses={400: {"description": "Unknown custom game ids"}},
)
async def save_settings(
    data: NotificationSettingsUpdate, user: CurrentUserDep, repos: ReposDep
) -> NotificationSettingsRead:
    return await update_settings(repos, user.user_id, data)


@router.patch(
    "/read-all",
    response_model=ReadAllResult,
    summary="Mark All Read",
    response_description="Number of receipts marked read.",
)
async def mark_all_read(user: CurrentUserDep, service: NotificationServiceDep) -> ReadAllResult:
    return await service.mark_all_read(user.user_id)


@router.patch(
    "/{receipt_id}/read",
    response_model=ReadResult,
    summary="Mark Read",
    description="Mark one of the caller's notifications read. Repeating it reports `already_read`.",
    responses={404: {"description": "Not one of the caller's notifications"}},
)
async def mark_read(receipt_id: int, user: CurrentUserDep, service: NotificationServiceDep) -> ReadResult:
    return await service.mark_read(user.user_id, receipt_id)


@router.delete(
    "/{receipt_id}",
    response_model=MessageResponse,
    summary="Delete Notification",
    description="Remove the notification from the caller's inbox.",
    responses={404: {"description": "Not one of the caller's notifications"}},
)
async def delete_notification(
    receipt_id: int, user: CurrentUserDep, service: NotificationServiceDep
) -> MessageResponse:
    await service.delete_receipt(user.user_id, receipt_id)
    return MessageResponse(message="Notification deleted")
