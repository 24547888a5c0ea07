"""Game catalogue management."""

from __future__ import annotations

from typing import List, Optional

from gclub.core.database.base import utc_now
from gclub.core.database.entities.games import Game
from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.errors import BadRequestError, ConflictError, NotFoundError
from gclub.core.logging_config import get_logger
from gclub.core.models.io.games import GameCreate, GameRead, GameReorder, GameUpdate

logger = get_logger(__name__)


def parse_ids(raw: Optional[str]) -> Optional[List[int]]:
    """Parse ``"1,2,3"``; blank input means no filter."""
    if not raw or not raw.strip():
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise BadRequestError("ids must be comma-separated integers") from exc


class GameService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def _ensure_unique(self, name: str, aliases: List[str], exclude_id: Optional[int] = None) -> None:
        conflicts = await self.repos.games.find_conflicts([name, *aliases], exclude_id=exclude_id)
        if conflicts:
            names = ", ".join(game.name for game in conflicts)
            raise BadRequestError(f"Name or alias already used by: {names}")

    async def _get(self, game_id: int) -> Game:
        game = await self.repos.games.get_by_id(game_id)
        if game is None:
            raise NotFoundError("Game not found")
        return game

    async def list_games(self, ids: Optional[str] = None, search: Optional[str] = None) -> List[GameRead]:
        games = await self.repos.games.list_games(ids=parse_ids(ids), search=search)
        return [GameRead.from_entity(game) for game in games]

    async def get_game(self, game_id: int) -> GameRead:
        return GameRead.from_entity(await self._get(game_id))

    async def create_game(self, data: GameCreate) -> GameRead:
        name = (data.name or "").strip()
        if not name:
            raise BadRequestError("Game name is required")
        await self._ensure_unique(name, data.aliases)
        game = Game(name=name, description=data.description or None, icon_url=data.icon_url or None)
        game.set_aliases(data.aliases)
        game = await self.repos.games.create(game)
        await self.repos.session.commit()
        logger.info(f"Game {game.id} '{game.name}' created")
        return GameRead.from_entity(game)

    async def update_game(self, game_id: int, data: GameUpdate) -> GameRead:
        game = await self._get(game_id)
        fields = data.model_fields_set
        name = game.name
        if "name" in fields:
            name = (data.name or "").strip()
            if not name:
                raise BadRequestError("Game name is required")
        aliases = data.aliases if "aliases" in fields and data.aliases is not None else game.get_aliases()
        await self._ensure_unique(name, aliases, exclude_id=game.id)

        game.name = name
        game.set_aliases(aliases)
        if "description" in fields:
            game.description = data.description or None
        if "icon_url" in fields:
            game.icon_url = data.icon_url or None
        game.updated_at = utc_now()
        game = await self.repos.games.update(game)
        await self.repos.session.commit()
        return GameRead.from_entity(game)

    async def delete_game(self, game_id: int) -> None:
        game = await self._get(game_id)
        in_use = await self.repos.game_posts.count_live_for_game(game.id)
        if in_use:
            raise ConflictError(f"Game is used by {in_use} game posts")
        await self.repos.games.remove_favorites_for_game(game.id)
        await self.repos.game_posts.detach_game(game.id, game.name)
        await self.repos.games.delete(game.id)
        await self.repos.session.commit()
        logger.info(f"Game {game_id} deleted")

    async def reorder_game(self, data: GameReorder) -> List[GameRead]:
        """Swap a game with its neighbour and renumber the whole catalogue.

        Positions are rewritten as ``0..n-1`` so games that still share the
        default order move as well.

        Raises:
            NotFoundError: Unknown game
            BadRequestError: The game is already first (up) or last (down)
        """
        games = await self.repos.games.list_games()
        index = next((i for i, game in enumerate(games) if game.id == data.game_id), None)
        if index is None:
            raise NotFoundError("Game not found")
        target = index - 1 if data.direction == "up" else index + 1
        if not 0 <= target < len(games):
            raise BadRequestError(f"Game cannot move further {data.direction}")

        games[index], games[target] = games[target], games[index]
        for position, game in enumerate(games):
            if game.order != position:
                game.order = position
                await self.repos.games.update(game)
        await self.repos.session.commit()
        logger.info(f"Game {data.game_id} moved {data.direction}")
        return [GameRead.from_entity(game) for game in games]
