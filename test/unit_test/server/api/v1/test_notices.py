"""
Unit tests for Notice API endpoints.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from gclub.core.models.domain import RoleName
from gclub.server.services.notifications import NotificationService

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/notices"


def _doc(text: str = "Season 3 tournament sign-ups are open.") -> dict:
    return {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}]}


def _notice(**overrides) -> dict:
    payload = {"title": "Tournament", "content": _doc(), "is_published": True}
    payload.update(overrides)
    return payload


class TestCreateNotice:
    async def test_admin_publishes_and_members_are_notified(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")

        response = await client.post(BASE, json=_notice(title="  Tournament  "), headers=admin)

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Tournament"
        assert data["published_at"] is not None
        assert data["author_name"] == "Admin"
        inbox = (await client.get("/api/v1/notifications", headers=member)).json()
        assert [item["type"] for item in inbox["items"]] == ["NOTICE"]

    async def test_draft_sends_nothing(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")

        response = await client.post(BASE, json=_notice(is_published=False), headers=admin)

        assert response.json()["published_at"] is None
        inbox = (await client.get("/api/v1/notifications", headers=member)).json()
        assert inbox["items"] == []

    async def test_publish_survives_failed_announcement(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        broken = AsyncMock(side_effect=RuntimeError("smtp down"))

        with patch.object(NotificationService, "create_and_send", broken):
            response = await client.post(BASE, json=_notice(), headers=admin)

        assert response.status_code == 201
        notice_id = response.json()["id"]
        broken.assert_awaited_once()
        stored = await client.get(f"{BASE}/{notice_id}", headers=admin)
        assert stored.status_code == 200
        assert stored.json()["published_at"] is not None

    async def test_members_cannot_create(self, client: AsyncClient, make_member):
        member = await make_member("member")

        response = await client.post(BASE, json=_notice(), headers=member)

        assert response.status_code == 403

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": "   "},
            {"title": "x" * 201},
            {"content": {"type": "doc", "content": []}},
            {"content": {"type": "doc", "content": [{"type": "heading", "content": [{"type": "text", "text": "Hi"}]}]}},
            {"content": _doc("   ")},
        ],
    )
    async def test_invalid_title_or_content(self, client: AsyncClient, make_member, overrides):
        admin = await make_member("admin", role=RoleName.ADMIN)

        response = await client.post(BASE, json=_notice(**overrides), headers=admin)

        assert response.status_code == 400

    async def test_client_generated_id(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        notice_id = str(uuid.uuid4())

        first = await client.post(BASE, json=_notice(), headers={**admin, "X-Temp-Notice-Id": notice_id})
        again = await client.post(BASE, json=_notice(), headers={**admin, "X-Temp-Notice-Id": notice_id})

        assert first.status_code == 201
        assert first.json()["id"] == notice_id
        assert again.status_code == 409

    async def test_validate_id(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)

        fresh = await client.post(f"{BASE}/validate-id", json={"notice_id": str(uuid.uuid4())}, headers=admin)
        malformed = await client.post(f"{BASE}/validate-id", json={"notice_id": "not-a-uuid"}, headers=admin)

        assert fresh.json() == {"is_valid": True, "exists": False}
        assert malformed.status_code == 400


class TestNoticeVisibility:
    async def test_non_members_get_an_empty_page(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        pending = await make_member("pending", role=RoleName.NONE)
        await client.post(BASE, json=_notice(), headers=admin)

        anonymous = await client.get(BASE)
        unapproved = await client.get(BASE, headers=pending)

        assert anonymous.json()["items"] == []
        assert unapproved.json()["items"] == []

    async def test_members_see_published_only(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")
        await client.post(BASE, json=_notice(title="Live"), headers=admin)
        draft = (await client.post(BASE, json=_notice(title="Draft", is_published=False), headers=admin)).json()

        listing = (await client.get(BASE, headers=member)).json()

        assert [item["title"] for item in listing["items"]] == ["Live"]
        assert (await client.get(f"{BASE}/{draft['id']}", headers=member)).status_code == 404
        assert (await client.get(f"{BASE}/{draft['id']}", headers=admin)).status_code == 200

    async def test_only_admins_include_unpublished(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")
        await client.post(BASE, json=_notice(is_published=False), headers=admin)

        assert (await client.get(BASE, params={"include_unpublished": True}, headers=member)).status_code == 403
        listing = (await client.get(BASE, params={"include_unpublished": True}, headers=admin)).json()
        assert len(listing["items"]) == 1

    async def test_pinned_notices_come_first(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        await client.post(BASE, json=_notice(title="Regular"), headers=admin)
        await client.post(BASE, json=_notice(title="Pinned", is_pinned=True), headers=admin)

        listing = (await client.get(BASE, headers=admin)).json()

        assert [item["title"] for item in listing["items"]] == ["Pinned", "Regular"]

    async def test_get_requires_member(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        pending = await make_member("pending", role=RoleName.NONE)
        notice = (await client.post(BASE, json=_notice(), headers=admin)).json()

        response = await client.get(f"{BASE}/{notice['id']}", headers=pending)

        assert response.status_code == 403


class TestUpdateAndDelete:
    async def test_publishing_a_draft_notifies_once(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")
        draft = (await client.post(BASE, json=_notice(is_published=False), headers=admin)).json()

        published = await client.patch(f"{BASE}/{draft['id']}", json={"is_published": True}, headers=admin)
        await client.patch(f"{BASE}/{draft['id']}", json={"title": "Renamed"}, headers=admin)

        assert published.status_code == 200
        assert published.json()["last_modified_by_id"] == "admin"
        inbox = (await client.get("/api/v1/notifications", headers=member)).json()
        assert len(inbox["items"]) == 1

    async def test_delete_hides_notice(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        notice = (await client.post(BASE, json=_notice(), headers=admin)).json()

        response = await client.delete(f"{BASE}/{notice['id']}", headers=admin)

        assert response.status_code == 200
        assert (await client.get(f"{BASE}/{notice['id']}", headers=admin)).status_code == 404


class TestNoticeComments:
    async def test_members_comment(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")
        notice = (await client.post(BASE, json=_notice(), headers=admin)).json()

        created = await client.post(f"{BASE}/{notice['id']}/comments", json={"content": "See you there"}, headers=member)
        listing = await client.get(f"{BASE}/{notice['id']}/comments", headers=member)

        assert created.status_code == 201
        assert [c["content"] for c in listing.json()] == ["See you there"]

    async def test_comments_can_be_disabled(self, client: AsyncClient, make_member):
        admin = await make_member("admin", role=RoleName.ADMIN)
        member = await make_member("member")
        notice = (await client.post(BASE, json=_notice(allow_comments=False), headers=admin)).json()

        response = await client.post(f"{BASE}/{notice['id']}/comments", json={"content": "Hi"}, headers=member)

        assert response.status_code == 403
