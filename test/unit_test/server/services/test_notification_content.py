"""
Unit tests for notification text templates.
"""

from gclub.core.models.domain import NotificationEvent, NotificationType
from gclub.server.services.notifications import render
from gclub.server.services.notifications.content import DEFAULT_TEMPLATE


class TestRender:
    def test_event_template(self):
        title, body = render(
            NotificationType.MY_GAME_POST_UPDATE, NotificationEvent.MEMBER_JOIN, title="Duo", actor_name="Mina"
        )

        assert title == "New member"
        assert body == "Mina joined 'Duo'."

    def test_missing_values_keep_placeholder(self):
        _, body = render(NotificationType.PARTICIPATING_GAME_UPDATE, NotificationEvent.MEMBER_LEAVE, title="Duo")

        assert body == "{actor_name} left 'Duo'."

    def test_none_values_are_treated_as_missing(self):
        _, body = render(NotificationType.NEW_GAME_POST, title="Raid night", game_name=None)

        assert body == "{game_name}: 'Raid night' is looking for players."

    def test_unknown_event_falls_back_to_type_template(self):
        title, _ = render(NotificationType.WAITING_LIST_UPDATE, NotificationEvent.BEFORE_MEETING, title="Duo")

        assert title == "Waiting list update"

    def test_type_without_templates_uses_default(self):
        title, body = render(NotificationType.SYSTEM, title="Patch")

        assert title == DEFAULT_TEMPLATE[0]
        assert body == "'Patch' has an update."
