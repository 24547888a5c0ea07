"""
User, profile and role entity models.

``User`` mirrors the identity issued by the external auth provider (its id is
the token subject). ``UserProfile`` carries the community data and the role
that gates route access.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class Role(Base, table=True):
    """Permission tier (NONE, USER, ADMIN, SUPER_ADMIN).

    Table: roles
    """

    __tablename__ = "roles"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=32, unique=True, index=True, description="Role name")
    description: Optional[str] = Field(default=None, max_length=255)
    is_default: bool = Field(default=False, description="Role given to new profiles")

    def __repr__(self) -> str:
        return f"Role(id={self.id}, name={self.name})"


class Permission(Base, table=True):
    """Named permission that can be granted to roles.

    Table: permissions
    """

    __tablename__ = "permissions"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=64, unique=True, index=True)
    description: Optional[str] = Field(default=None, max_length=255)


class RolePermission(Base, table=True):
    """Role to permission grant.

    Table: role_permissions
    """

    __tablename__ = "role_permissions"
    __table_args__ = ({"extend_existing": True},)

    role_id: int = Field(foreign_key="roles.id", primary_key=True)
    permission_id: int = Field(foreign_key="permissions.id", primary_key=True)


class User(Base, table=True):
    """Authenticated identity.

    Table: users
    """

    __tablename__ = "users"
    __table_args__ = ({"extend_existing": True},)

    id: str = Field(primary_key=True, max_length=64, description="Token subject")
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    last_seen_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"


class UserProfile(Base, table=True):
    """Community profile of a user.

    Table: user_profiles
    """

    __tablename__ = "user_profiles"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_profiles_user_id"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True, max_length=64)
    name: str = Field(max_length=50)
    birth_date: Optional[date] = Field(default=None)
    image: Optional[str] = Field(default=None, max_length=512)
    role_id: Optional[int] = Field(default=None, foreign_key="roles.id", index=True)

    terms_agreed: bool = Field(default=False)
    terms_agreed_at: Optional[datetime] = Field(sa_type=DateTime, default=None)
    privacy_agreed: bool = Field(default=False)
    privacy_agreed_at: Optional[datetime] = Field(sa_type=DateTime, default=None)

    created_at: datetime = Field(sa_type=DateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=DateTime, default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"UserProfile(id={self.id}, user_id={self.user_id}, name={self.name})"
