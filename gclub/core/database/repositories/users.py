"""
User, profile and role repositories.

Data access for identities, community profiles and the role/permission
tables that gate route access.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from ..base import utc_now
from ..entities.users import Permission, Role, RolePermission, User, UserProfile
from .base import BaseRepository, enum_values


class UserRepository(BaseRepository[User]):
    """Repository for authenticated identities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_or_create(self, user_id: str, email: Optional[str] = None) -> User:
        """Return the user for a token subject, creating it on first sight.

        Args:
            user_id: Token subject
            email: Email claim, stored when present

        Returns:
            The persisted User
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return await self.create(User(id=user_id, email=email))
        user.last_seen_at = utc_now()
        if email and user.email != email:
            user.email = email
        self.session.add(user)
        await self.session.flush()
        return user


class UserProfileRepository(BaseRepository[UserProfile]):
    """Repository for community profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserProfile)

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfile]:
        stmt = select(UserProfile).where(UserProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def get_many_by_user_ids(self, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        """Map user ids to profiles; users without a profile are left out."""
        ids = [uid for uid in set(user_ids) if uid]
        if not ids:
            return {}
        stmt = select(UserProfile).where(col(UserProfile.user_id).in_(ids))
        result = await self.session.execute(stmt)
        return {profile.user_id: profile for profile in result.scalars().all()}

    async def list_user_ids(self, role_id: Optional[int] = None) -> List[str]:
        """User ids of every profile, optionally restricted to one role."""
        stmt = select(UserProfile.user_id)
        if role_id is not None:
            stmt = stmt.where(UserProfile.role_id == role_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def search(self, search: Optional[str], page: int, limit: int) -> Tuple[List[UserProfile], int]:
        """Page through profiles, optionally matching name or user id.

        Args:
            search: Case-insensitive substring of the name or user id
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (profiles, total count)
        """
        stmt = select(UserProfile).order_by(col(UserProfile.created_at).desc())
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(func.lower(UserProfile.name).like(pattern), func.lower(UserProfile.user_id).like(pattern))
            )
        return await self._paginate(stmt, page, limit)

    async def search_by_name(self, query: str, limit: int = 10) -> List[UserProfile]:
        """Profiles whose name contains ``query`` (case-insensitive), by name."""
        pattern = f"%{query.strip().lower()}%"
        stmt = (
            select(UserProfile)
            .where(func.lower(UserProfile.name).like(pattern))
            .order_by(col(UserProfile.name))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class RoleRepository(BaseRepository[Role]):
    """Repository for roles and their permission grants."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Role)

    async def get_by_name(self, name: str) -> Optional[Role]:
        stmt = select(Role).where(Role.name == enum_values([name])[0])
        result = await self.session.execute(stmt)
        return result.scalars().one_or_none()

    async def get_default(self) -> Optional[Role]:
        stmt = select(Role).where(Role.is_default == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_all(self) -> List[Role]:
        result = await self.session.execute(select(Role).order_by(col(Role.id)))
        return list(result.scalars().all())

    async def permission_names(self, role_id: int) -> List[str]:
        stmt = (
            select(Permission.name)
            .join(RolePermission, col(RolePermission.permission_id) == col(Permission.id))
            .where(RolePermission.role_id == role_id)
            .order_by(col(Permission.name))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def has_any_permission(self, role_id: int, names: Iterable[str]) -> bool:
        """Whether the role holds at least one of the named permissions."""
        wanted = enum_values(list(names))
        if not wanted:
            return False
        stmt = (
            select(func.count())
            .select_from(RolePermission)
            .join(Permission, col(RolePermission.permission_id) == col(Permission.id))
            .where(RolePermission.role_id == role_id, col(Permission.name).in_(wanted))
        )
        return (await self.session.execute(stmt)).scalar_one() > 0


class PermissionRepository(BaseRepository[Permission]):
    """Repository for permission rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Permission)

    async def get_by_names(self, names: Iterable[str]) -> List[Permission]:
        stmt = select(Permission).where(col(Permission.name).in_(enum_values(list(names))))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def grant(self, role: Role, permissions: Iterable[Permission]) -> None:
        """Grant permissions to a role, skipping existing grants."""
        existing = set(await RoleRepository(self.session).permission_names(role.id))
        for permission in permissions:
            if permission.name not in existing:
                self.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
        await self.session.flush()

    async def revoke_all(self, role_id: int) -> None:
        await self.session.execute(delete(RolePermission).where(col(RolePermission.role_id) == role_id))
        await self.session.flush()

    async def list_all(self) -> List[Permission]:
        result = await self.session.execute(select(Permission).order_by(col(Permission.id)))
        return list(result.scalars().all())
