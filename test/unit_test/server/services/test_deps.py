"""Unit tests for authentication and request dependencies.

Tests verify token verification, caller resolution and the permission
guards exposed as ``Annotated`` dependency aliases.
"""

import time
from typing import get_args

import pytest
from jose import jwt

from gclub.core.database.entities.users import Role, User, UserProfile
from gclub.core.errors import ForbiddenError, UnauthorizedError
from gclub.core.models.domain import PermissionType, RoleName
from gclub.server.core.config import AuthConfig
from gclub.server.services.auth import CurrentUser, decode_token, is_admin
from gclub.server.services.deps import (
    MaintenanceServiceDep,
    get_current_user,
    get_maintenance_service,
    require_admin,
    require_permission,
    require_profile,
)
from gclub.server.services.maintenance import MaintenanceService
from gclub.server.services.notifications import NotificationService

CONFIG = AuthConfig(jwt_secret="unit-secret", jwt_algorithm="HS256")


def _token(claims, secret: str = "unit-secret") -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def _caller(role: RoleName = RoleName.USER, permissions=(), with_profile: bool = True) -> CurrentUser:
    user = User(id="mina", email="mina@example.com")
    profile = UserProfile(user_id="mina", name="Mina") if with_profile else None
    return CurrentUser(user=user, profile=profile, role=Role(id=2, name=role.value), permissions=list(permissions))


class TestDecodeToken:
    def test_valid_token(self):
        claims = decode_token(_token({"sub": "mina", "email": "mina@example.com"}), CONFIG)

        assert claims["sub"] == "mina"

    @pytest.mark.parametrize(
        "token",
        [
            _token({"sub": "mina"}, secret="someone-else"),
            _token({"sub": "mina", "exp": int(time.time()) - 60}),
            _token({"email": "nobody@example.com"}),
            "not-a-jwt",
        ],
    )
    def test_rejected_tokens(self, token):
        with pytest.raises(UnauthorizedError) as exc_info:
            decode_token(token, CONFIG)

        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    def test_audience_is_checked_when_configured(self):
        config = AuthConfig(jwt_secret="unit-secret", jwt_audience="gclub")

        assert decode_token(_token({"sub": "mina", "aud": "gclub"}), config)["sub"] == "mina"
        with pytest.raises(UnauthorizedError):
            decode_token(_token({"sub": "mina", "aud": "other-app"}), config)


class TestResolveCurrentUser:
    @pytest.mark.asyncio
    async def test_first_sign_in_creates_user_without_role(self, current_user, repos):
        caller = await current_user("newcomer")

        assert caller.profile is None
        assert caller.role_name == RoleName.NONE.value
        assert caller.is_member is False
        assert await repos.users.get_by_id("newcomer") is not None

    @pytest.mark.asyncio
    async def test_admin_permissions_are_loaded(self, current_user, make_member):
        await make_member("boss", role=RoleName.ADMIN)

        caller = await current_user("boss")

        assert caller.is_admin is True
        assert caller.has_permission(PermissionType.GAME_CREATE)
        assert not caller.has_permission(PermissionType.SYSTEM_SETTINGS)


class TestGuards:
    def test_is_admin(self):
        assert is_admin("ADMIN") and is_admin("SUPER_ADMIN")
        assert not is_admin("USER") and not is_admin(None)

    @pytest.mark.asyncio
    async def test_current_user_required(self):
        with pytest.raises(UnauthorizedError):
            await get_current_user(None)

    @pytest.mark.asyncio
    async def test_profile_required(self):
        with pytest.raises(ForbiddenError):
            await require_profile(_caller(with_profile=False))

    @pytest.mark.asyncio
    async def test_admin_required(self):
        admin = _caller(RoleName.ADMIN)

        assert await require_admin(admin) is admin
        with pytest.raises(ForbiddenError):
            await require_admin(_caller(RoleName.USER))

    @pytest.mark.asyncio
    async def test_permission_guard_accepts_any_listed_permission(self):
        guard = require_permission(PermissionType.GAME_CREATE, PermissionType.GAME_MANAGE)
        manager = _caller(permissions=["GAME_MANAGE"])

        assert await guard(manager) is manager
        with pytest.raises(ForbiddenError) as exc_info:
            await guard(_caller(permissions=["POST_READ"]))
        assert "GAME_CREATE" in exc_info.value.detail


class TestServiceDependencyAliases:
    def test_alias_wraps_factory(self):
        service_type, depends_obj = get_args(MaintenanceServiceDep)

        assert service_type is MaintenanceService
        assert depends_obj.dependency is get_maintenance_service

    @pytest.mark.asyncio
    async def test_factory_builds_service(self, repos):
        notifications = NotificationService(repos)

        service = get_maintenance_service(repos, notifications)

        assert isinstance(service, MaintenanceService)
        assert service.repos is repos
        assert service.game_mate.notifications is notifications
