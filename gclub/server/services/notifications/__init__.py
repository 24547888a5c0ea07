"""Notification content, recipient filtering and dispatch."""

from .content import render
from .dispatcher import NotificationService, context_for_post, resolve_timezone
from .filter import FilterContext, NotificationFilter, is_in_do_not_disturb
from .preferences import get_settings, update_settings

__all__ = [
    "FilterContext",
    "NotificationFilter",
    "NotificationService",
    "context_for_post",
    "get_settings",
    "is_in_do_not_disturb",
    "render",
    "resolve_timezone",
    "update_settings",
]
