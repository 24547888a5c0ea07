"""
Admin Service.

Member listing, role assignment and role permission grants. SUPER_ADMIN is
protected: only a SUPER_ADMIN may grant it or change the role of someone who
holds it, and nobody below SUPER_ADMIN may change their own role.
"""

from __future__ import annotations

from typing import List, Optional

from gclub.core.database.entities.users import Role
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ForbiddenError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import PermissionType, RoleName
from gclub.core.models.io.admin import AdminUserListResponse, AdminUserRead, PermissionRead, RoleRead
from gclub.core.models.io.common import Pagination
from gclub.core.monitoring import log_domain_event
from gclub.server.services.auth import CurrentUser

logger = get_logger(__name__)


class AdminService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _role_read(self, role: Role) -> RoleRead:
        return RoleRead(
            id=role.id,
            name=role.name,
            description=role.description,
            is_default=role.is_default,
            permissions=await self.repos.roles.permission_names(role.id),
        )

    async def list_users(self, search: Optional[str] = None, page: int = 1, limit: int = 20) -> AdminUserListResponse:
        profiles, total = await self.repos.profiles.search(search, page, limit)
        roles = {role.id: role.name for role in await self.repos.roles.list_all()}
        items = []
        for profile in profiles:
            user = await self.repos.users.get_by_id(profile.user_id)
            items.append(
                AdminUserRead(
                    user_id=profile.user_id,
                    email=user.email if user else None,
                    name=profile.name,
                    role_id=profile.role_id,
                    role_name=roles.get(profile.role_id, RoleName.NONE.value),
                    created_at=profile.created_at,
                )
            )
        return AdminUserListResponse(items=items, pagination=Pagination.build(page, limit, total))

    async def change_role(self, actor: CurrentUser, user_id: str, role_id: Optional[int]) -> AdminUserRead:
        """Assign ``role_id`` to the profile of ``user_id``.

        Raises:
            BadRequestError: When ``role_id`` is missing or unknown
            NotFoundError: When the target has no profile
            ForbiddenError: On SUPER_ADMIN protection or self-changes
        """
        if role_id is None:
            raise BadRequestError("role_id is required")
        role = await self.repos.roles.get_by_id(role_id)
        if role is None:
            raise BadRequestError(f"Role {role_id} does not exist")
        profile = await self.repos.profiles.get_by_user_id(user_id)
        if profile is None:
            raise NotFoundError("User profile not found")

        actor_is_super = actor.role_name == RoleName.SUPER_ADMIN.value
        current = await self.repos.roles.get_by_id(profile.role_id) if profile.role_id is not None else None
        if not actor_is_super:
            if user_id == actor.user_id:
                raise ForbiddenError("You cannot change your own role")
            if role.name == RoleName.SUPER_ADMIN.value:
                raise ForbiddenError("Only a SUPER_ADMIN can grant SUPER_ADMIN")
            if current is not None and current.name == RoleName.SUPER_ADMIN.value:
                raise ForbiddenError("Only a SUPER_ADMIN can change a SUPER_ADMIN's role")

        profile.role_id = role.id
        profile = await self.repos.profiles.update(profile)
        await self.repos.session.commit()
        log_domain_event("admin.role_changed", user_id=user_id, role=role.name, by=actor.user_id)
        logger.info(f"Role of {user_id} changed to {role.name} by {actor.user_id}")

        user = await self.repos.users.get_by_id(user_id)
        return AdminUserRead(
            user_id=user_id,
            email=user.email if user else None,
            name=profile.name,
            role_id=role.id,
            role_name=role.name,
            created_at=profile.created_at,
        )

    async def list_roles(self) -> List[RoleRead]:
        return [await self._role_read(role) for role in await self.repos.roles.list_all()]

    async def list_permissions(self) -> List[PermissionRead]:
        return [
            PermissionRead(id=p.id, name=p.name, description=p.description)
            for p in await self.repos.permissions.list_all()
        ]

    async def set_role_permissions(self, role_id: int, permissions: List[PermissionType]) -> RoleRead:
        """Replace the permission grants of a role. SUPER_ADMIN always keeps every permission."""
        role = await self.repos.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        if role.name == RoleName.SUPER_ADMIN.value:
            raise BadRequestError("SUPER_ADMIN permissions cannot be changed")
        wanted = await self.repos.permissions.get_by_names(permissions)
        await self.repos.permissions.revoke_all(role.id)
        await self.repos.permissions.grant(role, wanted)
        await self.repos.session.commit()
        logger.info(f"Permissions of role {role.name} set to {[p.name for p in wanted]}")
        return await self._role_read(role)
