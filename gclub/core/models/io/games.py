"""
Game catalogue I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _split_aliases(value: Union[None, str, List[str]]) -> Optional[List[str]]:
    """Accept a list or a comma-separated string; trim, drop empties and case-insensitive repeats."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    seen = set()
    aliases = []
    for item in items:
        alias = (item or "").strip()
        if alias and alias.lower() not in seen:
            seen.add(alias.lower())
            aliases.append(alias)
    return aliases


class GameRead(BaseModel):
    """Schema for reading a game."""

    id: int
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)
    order: int = 0
    created_at: datetime

    @classmethod
    def from_entity(cls, game) -> "GameRead":
        return cls(
            id=game.id,
            name=game.name,
            description=game.description,
            icon_url=game.icon_url,
            aliases=game.get_aliases(),
            order=game.order,
            created_at=game.created_at,
        )


class GameCreate(BaseModel):
    """Schema for adding a game."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    aliases: List[str] = Field(default_factory=list, description="List or comma-separated string")

    @field_validator("aliases", mode="before")
    @classmethod
    def _aliases(cls, value):
        return _split_aliases(value) or []


class GameUpdate(BaseModel):
    """Schema for editing a game; omitted fields are unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    aliases: Optional[List[str]] = None

    @field_validator("aliases", mode="before")
    @classmethod
    def _aliases(cls, value):
        return _split_aliases(value)


class GameReorder(BaseModel):
    """Move one game a step up or down the display order."""

    game_id: int
    direction: Literal["up", "down"]
