"""
Games API Endpoints.

The game catalogue game posts and favorites refer to. Reading is public;
writes need the matching GAME_* permission.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from gclub.core.models.domain import PermissionType
from gclub.core.models.io.common import MessageResponse
from gclub.core.models.io.games import GameCreate, GameRead, GameReorder, GameUpdate
from gclub.server.services.deps import GameServiceDep, require_admin, require_permission

router = APIRouter()


@router.get(
    "",
    response_model=List[GameRead],
    summary="List Games",
    description="List games ordered by name. `ids` restricts to comma-separated ids; `search` matches the name or any alias.",
    response_description="A list of games.",
    responses={400: {"description": "Malformed ids"}},
)
async def list_games(
    service: GameServiceDep,
    ids: Optional[str] = Query(None, description="Comma-separated game ids"),
    search: Optional[str] = Query(None, description="Case-insensitive name or alias match"),
) -> List[GameRead]:
    return await service.list_games(ids=ids, search=search)


@router.get(
    "/{game_id}",
    response_model=GameRead,
    summary="Get Game",
    response_description="The game.",
    responses={404: {"description": "Game not found"}},
)
async def get_game(game_id: int, service: GameServiceDep) -> GameRead:
    return await service.get_game(game_id)


@router.post(
    "",
    response_model=GameRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Game",
    description="Add a game to the catalogue. Its name and aliases must not collide with another game's name or aliases.",
    response_description="The created game.",
    responses={
        201: {"description": "Game created"},
        400: {"description": "Missing name or a name/alias collision"},
        403: {"description": "GAME_CREATE permission required"},
    },
    dependencies=[Depends(require_permission(PermissionType.GAME_CREATE, PermissionType.GAME_MANAGE))],
)
async def create_game(data: GameCreate, service: GameServiceDep) -> GameRead:
    """
    Create a game.

    - **name**: Required, trimmed.
    - **description**: Optional description.
    - **icon_url**: Optional icon URL.
    - **aliases**: A list or a comma-separated string; blanks are dropped.
    """
    return await service.create_game(data)


@router.patch(
    "/{game_id}",
    response_model=GameRead,
    summary="Update Game",
    description="Update the fields sent; omitted fields stay unchanged.",
    response_description="The updated game.",
    responses={
        400: {"description": "Blank name or a name/alias collision"},
        403: {"description": "GAME_UPDATE permission required"},
        404: {"description": "Game not found"},
    },
    dependencies=[Depends(require_permission(PermissionType.GAME_UPDATE, PermissionType.GAME_MANAGE))],
)
async def update_game(game_id: int, data: GameUpdate, service: GameServiceDep) -> GameRead:
    return await service.update_game(game_id, data)


@router.delete(
    "/{game_id}",
    response_model=MessageResponse,
    summary="Delete Game",
    description="Delete a game. Refused while live game posts still use it.",
    response_description="Confirmation message.",
    responses={
        403: {"description": "GAME_DELETE permission required"},
        404: {"description": "Game not found"},
        409: {"description": "Game is used by live game posts"},
    },
    dependencies=[Depends(require_permission(PermissionType.GAME_DELETE, PermissionType.GAME_MANAGE))],
)
async def delete_game(game_id: int, service: GameServiceDep) -> MessageResponse:
    await service.delete_game(game_id)
    return MessageResponse(message="Game deleted")


@router.post(
    "/reorder",
    response_model=List[GameRead],
    summary="Reorder Games",
    description="Admin only. Move a game one step up or down the display order.",
    response_description="Every game in its new order.",
    responses={
        400: {"description": "The game cannot move further in that direction"},
        403: {"description": "Admin role required"},
        404: {"description": "Game not found"},
    },
    dependencies=[Depends(require_admin)],
)
async def reorder_game(data: GameReorder, service: GameServiceDep) -> List[GameRead]:
    """
    Move a game.

    - **game_id**: Game to move.
    - **direction**: `up` or `down`.
    """
    return await service.reorder_game(data)
