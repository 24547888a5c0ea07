"""
Request Dependencies.

Provides the repository bundle, the authenticated caller and the domain
services for API endpoints as ``Annotated`` dependency aliases.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from gclub.core.database import get_session
from gclub.core.database.repositories import SqlRepoBundle, build_sql_repos_from_session
from gclub.core.errors import ForbiddenError, UnauthorizedError
from gclub.core.models.domain import PermissionType
from gclub.server.services.admin import AdminService
from gclub.server.services.auth import UNAUTHORIZED_HEADERS, CurrentUser, decode_token, resolve_current_user
from gclub.server.services.boards import BoardService
from gclub.server.services.comments import CommentService
from gclub.server.services.game_mate import GameMateService
from gclub.server.services.games import GameService
from gclub.server.services.maintenance import MaintenanceService
from gclub.server.services.notices import NoticeService
from gclub.server.services.notifications import NotificationService
from gclub.server.services.profile import ProfileService

bearer_scheme = HTTPBearer(auto_error=False)


def get_repos(session: AsyncSession = Depends(get_session)) -> SqlRepoBundle:
    return build_sql_repos_from_session(session=session)


ReposDep = Annotated[SqlRepoBundle, Depends(get_repos)]
BearerDep = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


async def get_optional_user(repos: ReposDep, credentials: BearerDep) -> Optional[CurrentUser]:
    """Caller resolved from the bearer token, ``None`` when no token is sent."""
    if credentials is None or not credentials.credentials:
        return None
    return await resolve_current_user(repos, decode_token(credentials.credentials))


async def get_current_user(user: Annotated[Optional[CurrentUser], Depends(get_optional_user)]) -> CurrentUser:
    if user is None:
        raise UnauthorizedError("Authentication required", headers=UNAUTHORIZED_HEADERS)
    return user


OptionalUserDep = Annotated[Optional[CurrentUser], Depends(get_optional_user)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


async def require_profile(user: CurrentUserDep) -> CurrentUser:
    if user.profile is None:
        raise ForbiddenError("Profile registration required")
    return user


async def require_admin(user: CurrentUserDep) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenError("Admin role required")
    return user


def require_permission(*permissions: PermissionType) -> Callable:
    """Dependency factory: the caller's role must hold any of ``permissions``."""

    async def dependency(user: CurrentUserDep) -> CurrentUser:
        if not user.has_permission(*permissions):
            names = ", ".join(permission.value for permission in permissions)
            raise ForbiddenError(f"Missing permission: {names}")
        return user

    return dependency


ProfileUserDep = Annotated[CurrentUser, Depends(require_profile)]
AdminUserDep = Annotated[CurrentUser, Depends(require_admin)]


def get_notification_service(repos: ReposDep) -> NotificationService:
    return NotificationService(repos)


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


def get_game_mate_service(repos: ReposDep, notifications: NotificationServiceDep) -> GameMateService:
    return GameMateService(repos, notifications)


def get_comment_service(repos: ReposDep) -> CommentService:
    return CommentService(repos)


def get_notice_service(repos: ReposDep, notifications: NotificationServiceDep) -> NoticeService:
    return NoticeService(repos, notifications)


def get_board_service(repos: ReposDep) -> BoardService:
    return BoardService(repos)


def get_profile_service(repos: ReposDep) -> ProfileService:
    return ProfileService(repos)


def get_game_service(repos: ReposDep) -> GameService:
    return GameService(repos)


def get_admin_service(repos: ReposDep) -> AdminService:
    return AdminService(repos)


def get_maintenance_service(repos: ReposDep, notifications: NotificationServiceDep) -> MaintenanceService:
    return MaintenanceService(repos, notifications)


GameMateServiceDep = Annotated[GameMateService, Depends(get_game_mate_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
NoticeServiceDep = Annotated[NoticeService, Depends(get_notice_service)]
BoardServiceDep = Annotated[BoardService, Depends(get_board_service)]
ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
GameServiceDep = Annotated[GameService, Depends(get_game_service)]
AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]
MaintenanceServiceDep = Annotated[MaintenanceService, Depends(get_maintenance_service)]
