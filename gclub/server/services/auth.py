"""
Bearer token authentication.

Tokens are issued by the external identity provider. The server only verifies
the signature and reads the ``sub`` (user id) and ``email`` claims, then
resolves the caller's profile and role from the database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt

from gclub.core.database.entities.users import Role, User, UserProfile
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import UnauthorizedError
from gclub.core.logging_config import get_logger
from gclub.core.models.domain import ADMIN_ROLES, RoleName
from gclub.server.core.config import AuthConfig, settings

logger = get_logger(__name__)

UNAUTHORIZED_HEADERS = {"WWW-Authenticate": "Bearer"}


def is_admin(role_name: Optional[str]) -> bool:
    return role_name in {role.value for role in ADMIN_ROLES}


@dataclass
class CurrentUser:
    """The authenticated caller."""

    user: User
    profile: Optional[UserProfile] = None
    role: Optional[Role] = None
    permissions: List[str] = field(default_factory=list)

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role_name(self) -> str:
        return self.role.name if self.role else RoleName.NONE.value

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role_name)

    @property
    def is_member(self) -> bool:
        """Approved member: any role above NONE."""
        return self.role is not None and self.role.name != RoleName.NONE.value

    @property
    def display_name(self) -> str:
        if self.profile:
            return self.profile.name
        if self.user.email:
            return self.user.email.split("@", 1)[0]
        return "Unknown"

    def has_permission(self, *names: str) -> bool:
        wanted = {getattr(name, "value", name) for name in names}
        return bool(wanted & set(self.permissions))


def decode_token(token: str, config: Optional[AuthConfig] = None) -> Dict[str, Any]:
    """Verify a bearer token and return its claims.

    Args:
        token: Encoded JWT
        config: Verification settings, the configured ones by default

    Returns:
        Claims dict with at least ``sub``

    Raises:
        UnauthorizedError: When the token is invalid, expired or has no subject
    """
    config = config or settings.auth
    options = {"verify_aud": config.jwt_audience is not None}
    try:
        claims = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[config.jwt_algorithm],
            audience=config.jwt_audience,
            options=options,
        )
    except JWTError as exc:
        logger.debug(f"Rejected bearer token: {exc}")
        raise UnauthorizedError("Invalid or expired token", headers=UNAUTHORIZED_HEADERS) from exc
    if not claims.get("sub"):
        raise UnauthorizedError("Token has no subject", headers=UNAUTHORIZED_HEADERS)
    return claims


async def resolve_current_user(repos: SqlRepoBundle, claims: Dict[str, Any]) -> CurrentUser:
    """Load (or create) the user row for verified claims together with profile, role and permissions."""
    user = await repos.users.get_or_create(str(claims["sub"]), claims.get("email"))
    await repos.session.commit()

    profile = await repos.profiles.get_by_user_id(user.id)
    role = None
    permissions: List[str] = []
    if profile is not None and profile.role_id is not None:
        role = await repos.roles.get_by_id(profile.role_id)
        permissions = await repos.roles.permission_names(profile.role_id)
    return CurrentUser(user=user, profile=profile, role=role, permissions=permissions)
