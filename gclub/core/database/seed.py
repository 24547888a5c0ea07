"""
Default reference data.

Roles, permissions and a starter game catalogue. The same constants feed the
initial Alembic migration and ``seed_defaults`` (used by ``init_db`` in
development and by the tests), so both paths produce identical rows.
"""

from __future__ import annotations

from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from gclub.core.logging_config import get_logger
from gclub.core.models.domain import PermissionType, RoleName

from .entities.games import Game
from .entities.users import Permission, Role
from .repositories.games import GameRepository
from .repositories.users import PermissionRepository, RoleRepository

logger = get_logger(__name__)

DEFAULT_ROLES: List[Dict] = [
    {"id": 1, "name": RoleName.NONE.value, "description": "Not yet a member", "is_default": True},
    {"id": 2, "name": RoleName.USER.value, "description": "Member", "is_default": False},
    {"id": 3, "name": RoleName.ADMIN.value, "description": "Administrator", "is_default": False},
    {"id": 4, "name": RoleName.SUPER_ADMIN.value, "description": "Super administrator", "is_default": False},
]

PERMISSION_DESCRIPTIONS: Dict[PermissionType, str] = {
    PermissionType.POST_CREATE: "Create board posts",
    PermissionType.POST_READ: "Read board posts",
    PermissionType.POST_UPDATE: "Edit own board posts",
    PermissionType.POST_DELETE: "Delete own board posts",
    PermissionType.POST_MANAGE_ALL: "Edit or delete any board post",
    PermissionType.USER_VIEW: "View the member list",
    PermissionType.USER_MANAGE: "Manage members",
    PermissionType.USER_ROLE_MANAGE: "Change member roles",
    PermissionType.GAME_CREATE: "Add games",
    PermissionType.GAME_UPDATE: "Edit games",
    PermissionType.GAME_DELETE: "Remove games",
    PermissionType.GAME_MANAGE: "Manage the game catalogue",
    PermissionType.ADMIN_PANEL_ACCESS: "Open the admin panel",
    PermissionType.SYSTEM_SETTINGS: "Change system settings",
}

ROLE_PERMISSIONS: Dict[RoleName, List[PermissionType]] = {
    RoleName.NONE: [],
    RoleName.USER: [
        PermissionType.POST_CREATE,
        PermissionType.POST_READ,
        PermissionType.POST_UPDATE,
        PermissionType.POST_DELETE,
    ],
    RoleName.ADMIN: [p for p in PermissionType if p is not PermissionType.SYSTEM_SETTINGS],
    RoleName.SUPER_ADMIN: list(PermissionType),
}

DEFAULT_GAMES: List[Dict] = [
    {"name": "League of Legends", "description": "MOBA", "aliases": ["LoL", "League"]},
    {"name": "PUBG: Battlegrounds", "description": "Battle royale", "aliases": ["PUBG", "Battlegrounds"]},
    {"name": "Valorant", "description": "Tactical shooter", "aliases": ["Valo"]},
    {"name": "Overwatch 2", "description": "Team-based shooter", "aliases": ["Overwatch", "OW2"]},
    {"name": "Lost Ark", "description": "MMORPG", "aliases": ["LoA"]},
]


async def seed_defaults(session: AsyncSession, include_games: bool = True) -> None:
    """Insert missing roles, permissions, grants and default games, then commit.

    Args:
        session: Async session to write with
        include_games: Also seed the starter game catalogue
    """
    roles = RoleRepository(session)
    permissions = PermissionRepository(session)

    role_by_name: Dict[str, Role] = {}
    for role_data in DEFAULT_ROLES:
        role = await roles.get_by_name(role_data["name"])
        if role is None:
            role = await roles.create(
                Role(name=role_data["name"], description=role_data["description"], is_default=role_data["is_default"])
            )
            logger.info(f"Seeded role {role.name}")
        role_by_name[role.name] = role

    existing = {p.name for p in await permissions.get_by_names(PermissionType)}
    for permission_type, description in PERMISSION_DESCRIPTIONS.items():
        if permission_type.value not in existing:
            await permissions.create(Permission(name=permission_type.value, description=description))

    for role_name, granted in ROLE_PERMISSIONS.items():
        if granted:
            await permissions.grant(role_by_name[role_name.value], await permissions.get_by_names(granted))

    if include_games:
        games = GameRepository(session)
        for game_data in DEFAULT_GAMES:
            if not await games.find_conflicts([game_data["name"]]):
                game = Game(name=game_data["name"], description=game_data["description"])
                game.set_aliases(game_data["aliases"])
                await games.create(game)

    await session.commit()
