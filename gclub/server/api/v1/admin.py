"""
Admin API Endpoints.

Member management for the admin panel: listing members, assigning roles,
editing which permissions a role grants and managing channel boards.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from gclub.core.models.domain import PermissionType
from gclub.core.models.io.boards import AdminBoardRead, BoardCreate
from gclub.core.models.io.common import MessageResponse
from gclub.core.models.io.admin import (
    AdminUserListResponse,
    AdminUserRead,
    PermissionRead,
    RoleChangeRequest,
    RolePermissionsUpdate,
    RoleRead,
)
from gclub.server.services.auth import CurrentUser
from gclub.server.services.deps import AdminServiceDep, BoardServiceDep, require_permission

router = APIRouter()


@router.get(
    "/users",
    response_model=AdminUserListResponse,
    summary="List Members",
    description="Members with their role, optionally filtered by name.",
    response_description="Paginated members.",
    responses={403: {"description": "USER_VIEW permission required"}},
    dependencies=[Depends(require_permission(PermissionType.USER_VIEW))],
)
async def list_users(
    service: AdminServiceDep,
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> AdminUserListResponse:
    return await service.list_users(search, page, limit)


@router.patch(
    "/users/{user_id}/role",
    response_model=AdminUserRead,
    summary="Change Member Role",
    description="Assign a role. Only a SUPER_ADMIN may grant SUPER_ADMIN, change a SUPER_ADMIN or change their own role.",
    response_description="The member with the new role.",
    responses={
        400: {"description": "Missing or unknown role_id"},
        403: {"description": "Permission missing or SUPER_ADMIN protection"},
        404: {"description": "Member profile not found"},
    },
)
async def change_role(
    user_id: str,
    data: RoleChangeRequest,
    service: AdminServiceDep,
    actor: CurrentUser = Depends(require_permission(PermissionType.USER_ROLE_MANAGE)),
) -> AdminUserRead:
    """
    Change a member's role.

    - **role_id**: Id of an existing role.
    """
    return await service.change_role(actor, user_id, data.role_id)


@router.get(
    "/roles",
    response_model=List[RoleRead],
    summary="List Roles",
    description="Every role with the names of the permissions it grants.",
    response_description="A list of roles.",
    dependencies=[Depends(require_permission(PermissionType.USER_VIEW, PermissionType.USER_ROLE_MANAGE))],
)
async def list_roles(service: AdminServiceDep) -> List[RoleRead]:
    return await service.list_roles()


@router.get(
    "/permissions",
    response_model=List[PermissionRead],
    summary="List Permissions",
    response_description="Every known permission.",
    dependencies=[Depends(require_permission(PermissionType.SYSTEM_SETTINGS))],
)
async def list_permissions(service: AdminServiceDep) -> List[PermissionRead]:
    return await service.list_permissions()


@router.put(
    "/roles/{role_id}/permissions",
    response_model=RoleRead,
    summary="Set Role Permissions",
    description="Replace the permissions a role grants. SUPER_ADMIN always keeps every permission.",
    response_description="The role with its new permissions.",
    responses={
        400: {"description": "SUPER_ADMIN cannot be changed"},
        403: {"description": "SYSTEM_SETTINGS permission required"},
        404: {"description": "Role not found"},
    },
    dependencies=[Depends(require_permission(PermissionType.SYSTEM_SETTINGS))],
)
async def set_role_permissions(role_id: int, data: RolePermissionsUpdate, service: AdminServiceDep) -> RoleRead:
    return await service.set_role_permissions(role_id, data.permissions)


@router.get(
    "/boards",
    response_model=List[AdminBoardRead],
    summary="List Boards",
    description="Every board, active or not, with its channel, newest first.",
    response_description="A list of boards.",
    responses={403: {"description": "ADMIN_PANEL_ACCESS permission required"}},
    dependencies=[Depends(require_permission(PermissionType.ADMIN_PANEL_ACCESS))],
)
async def list_boards(service: BoardServiceDep) -> List[AdminBoardRead]:
    return await service.list_boards()


@router.post(
    "/boards",
    response_model=AdminBoardRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Board",
    description="Give a channel without a board a new one.",
    response_description="The created board.",
    responses={
        400: {"description": "Missing board name"},
        403: {"description": "ADMIN_PANEL_ACCESS permission required"},
        404: {"description": "Channel not found"},
        409: {"description": "The channel already has a board"},
    },
    dependencies=[Depends(require_permission(PermissionType.ADMIN_PANEL_ACCESS))],
)
async def create_board(data: BoardCreate, service: BoardServiceDep) -> AdminBoardRead:
    """
    Create a board.

    - **channel_slug**: Channel that receives the board.
    - **name**: Board name.
    - **description**: Optional description.
    """
    return await service.create_board(data)


@router.delete(
    "/boards/{board_id}",
    response_model=MessageResponse,
    summary="Delete Board",
    description="Delete a board together with all of its posts and their comments.",
    response_description="Confirmation message.",
    responses={
        403: {"description": "ADMIN_PANEL_ACCESS permission required"},
        404: {"description": "Board not found"},
    },
    dependencies=[Depends(require_permission(PermissionType.ADMIN_PANEL_ACCESS))],
)
async def delete_board(board_id: int, service: BoardServiceDep) -> MessageResponse:
    await service.delete_board(board_id)
    return MessageResponse(message="Board deleted")
