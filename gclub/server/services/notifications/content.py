"""
Notification text templates.

Templates are keyed by (notification type, event). Placeholders are filled
from the values passed to ``render``; unknown placeholders are left as-is.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from gclub.core.models.domain import NotificationEvent as E
from gclub.core.models.domain import NotificationType as T

Template = Tuple[str, str]

DEFAULT_TEMPLATE: Template = ("G-Club", "'{title}' has an update.")

TEMPLATES: Dict[T, Dict[Optional[E], Template]] = {
    T.NEW_GAME_POST: {
        None: ("New game-mate post", "{game_name}: '{title}' is looking for players."),
    },
    T.MY_GAME_POST_UPDATE: {
        E.MEMBER_JOIN: ("New member", "{actor_name} joined '{title}'."),
        E.MEMBER_LEAVE: ("Member left", "{actor_name} left '{title}'."),
        E.GAME_FULL: ("Your game is full", "'{title}' has all {max_participants} players."),
        E.TIME_CHANGE: ("Start time changed", "'{title}' now starts at {start_time}."),
        E.BEFORE_MEETING: ("Starting soon", "'{title}' starts in {minutes} minutes."),
        E.MEETING_START: ("Game time", "'{title}' is starting now."),
        E.GAME_CANCELLED: ("Game cancelled", "'{title}' was cancelled."),
        None: ("Your game-mate post", "'{title}' has an update."),
    },
    T.PARTICIPATING_GAME_UPDATE: {
        E.MEMBER_JOIN: ("New member", "{actor_name} joined '{title}'."),
        E.MEMBER_LEAVE: ("Member left", "{actor_name} left '{title}'."),
        E.GAME_FULL: ("Game is full", "'{title}' has all {max_participants} players."),
        E.TIME_CHANGE: ("Start time changed", "'{title}' now starts at {start_time}."),
        E.BEFORE_MEETING: ("Starting soon", "'{title}' starts in {minutes} minutes."),
        E.MEETING_START: ("Game time", "'{title}' is starting now."),
        E.GAME_CANCELLED: ("Game cancelled", "'{title}' was cancelled."),
        None: ("Game update", "'{title}' has an update."),
    },
    T.WAITING_LIST_UPDATE: {
        E.PROMOTED: ("You're in", "A slot opened in '{title}' and you joined the game."),
        E.INVITED: ("Slot available", "A player left '{title}'. Accept the invitation to join."),
        E.GAME_CANCELLED: ("Game cancelled", "'{title}' was cancelled."),
        None: ("Waiting list update", "Your place on the waiting list for '{title}' changed."),
    },
}


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render(notification_type: T, event: Optional[E] = None, **values: Any) -> Template:
    """Build ``(title, body)`` for a notification.

    Falls back to the type's generic template, then to ``DEFAULT_TEMPLATE``.

    Args:
        notification_type: Notification category
        event: Game event, if any
        **values: Placeholder values such as ``title`` or ``actor_name``

    Returns:
        Tuple of (title, body)
    """
    by_event = TEMPLATES.get(notification_type, {})
    title, body = by_event.get(event) or by_event.get(None) or DEFAULT_TEMPLATE
    mapping = _KeepMissing({key: value for key, value in values.items() if value is not None})
    return title.format_map(mapping), body.format_map(mapping)
