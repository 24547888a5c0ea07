"""Admin I/O models: member list and role management."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from gclub.core.models.domain import PermissionType

from .common import Pagination


class RoleRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_default: bool
    permissions: List[str] = Field(default_factory=list)


class AdminUserRead(BaseModel):
    user_id: str
    email: Optional[str] = None
    name: str
    role_id: Optional[int] = None
    role_name: str
    created_at: datetime


class AdminUserListResponse(BaseModel):
    items: List[AdminUserRead]
    pagination: Pagination


class RoleChangeRequest(BaseModel):
    role_id: Optional[int] = Field(default=None, description="Role to assign")


class PermissionRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class RolePermissionsUpdate(BaseModel):
    permissions: List[PermissionType] = Field(default_factory=list)
