"""
Unit tests for Game Post API endpoints.

Tests cover:
- Creating posts and field validation
- Direct participation, capacity and the full-post conflict
- Waiting list queueing and automatic promotion
- Leaving a running game early and accepting invitations
- Leader-only operations and deletion
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from gclub.core.database.repositories import SqlRepoBundle
from gclub.core.models.domain import GamePostStatus
from gclub.server.services.notifications import NotificationService

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/game-posts"


def _future(hours: int = 2) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def _payload(**overrides):
    payload = {
        "title": "Ranked duo tonight",
        "content": "Gold and above, voice chat required.",
        "game_id": 1,
        "max_participants": 2,
        "start_time": _future(),
    }
    payload.update(overrides)
    return payload


async def _create(client: AsyncClient, headers, **overrides) -> dict:
    response = await client.post(BASE, json=_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _set_status(repos: SqlRepoBundle, post_id: int, status: GamePostStatus) -> None:
    post = await repos.game_posts.get_by_id(post_id)
    post.status = status.value
    await repos.game_posts.update(post)
    await repos.session.commit()


class TestCreateGamePost:
    async def test_create_post_makes_author_leader(self, client: AsyncClient, make_member):
        leader = await make_member("leader")

        data = await _create(client, leader, max_participants=4)

        assert data["status"] == "OPEN"
        assert data["participant_count"] == 1
        assert data["leader_id"] == "leader"
        assert data["game_name"] == "League of Legends"
        assert data["participants"][0]["is_leader"] is True
        assert data["my_participation"]["user_id"] == "leader"

    async def test_guests_can_fill_the_post(self, client: AsyncClient, make_member):
        leader = await make_member("leader")

        data = await _create(client, leader, max_participants=3, guests=["Alpha", "Bravo"])

        assert data["status"] == "FULL"
        assert {p["name"] for p in data["participants"]} >= {"Alpha", "Bravo"}

    async def test_too_many_guests_rejected(self, client: AsyncClient, make_member):
        leader = await make_member("leader")

        response = await client.post(BASE, json=_payload(guests=["Alpha", "Bravo"]), headers=leader)

        assert response.status_code == 400

    async def test_custom_game_name(self, client: AsyncClient, make_member):
        leader = await make_member("leader")

        data = await _create(client, leader, game_id=None, custom_game_name="Indie Raid")

        assert data["game_id"] is None
        assert data["game_name"] == "Indie Raid"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"title": ""},
            {"title": "x" * 101},
            {"content": "   "},
            {"game_id": None},
            {"game_id": 999},
            {"max_participants": 1},
            {"max_participants": 101},
        ],
    )
    async def test_invalid_fields_rejected(self, client: AsyncClient, make_member, overrides):
        leader = await make_member("leader")

        response = await client.post(BASE, json=_payload(**overrides), headers=leader)

        assert response.status_code == 400

    async def test_start_time_must_be_in_the_future(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        past = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()

        response = await client.post(BASE, json=_payload(start_time=past), headers=leader)

        assert response.status_code == 400
        assert "future" in response.json()["detail"]

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post(BASE, json=_payload())

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_requires_profile(self, client: AsyncClient, make_member):
        headers = await make_member("visitor", with_profile=False)

        response = await client.post(BASE, json=_payload(), headers=headers)

        assert response.status_code == 403

    async def test_new_post_is_announced_to_other_members(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")

        await _create(client, leader)

        inbox = (await client.get("/api/v1/notifications", headers=member)).json()
        assert [item["type"] for item in inbox["items"]] == ["NEW_GAME_POST"]
        own = (await client.get("/api/v1/notifications", headers=leader)).json()
        assert own["items"] == []


class TestListAndView:
    async def test_list_filters_and_counts(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        await _create(client, leader, title="LoL night")
        await _create(client, leader, title="Valorant scrim", game_id=3)

        response = await client.get(BASE, params={"game_id": "3"})

        assert response.status_code == 200
        data = response.json()
        assert [item["title"] for item in data["items"]] == ["Valorant scrim"]
        assert data["pagination"]["total_count"] == 1

        everything = (await client.get(BASE, params={"game_id": "all", "status": "recruiting"})).json()
        assert everything["pagination"]["total_count"] == 2

    async def test_view_counter(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        post = await _create(client, leader)

        response = await client.post(f"{BASE}/{post['id']}/view")

        assert response.status_code == 200
        assert response.json() == {"view_count": 1}

    async def test_unknown_post(self, client: AsyncClient):
        response = await client.get(f"{BASE}/4242")

        assert response.status_code == 404


class TestParticipation:
    async def test_participate_fills_post(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader)

        response = await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "FULL"
        assert data["participant_count"] == 2

    async def test_leader_hears_about_new_member(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)

        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        inbox = (await client.get("/api/v1/notifications", headers=leader)).json()
        assert inbox["pagination"]["total_count"] >= 1
        assert "MY_GAME_POST_UPDATE" in [item["type"] for item in inbox["items"]]

    async def test_failed_notification_keeps_the_join(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)
        broken = AsyncMock(side_effect=RuntimeError("mail relay down"))

        with patch.object(NotificationService, "send_game_event", broken), patch.object(
            NotificationService, "create_and_send", broken
        ):
            response = await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        assert response.status_code == 200
        assert response.json()["participant_count"] == 2
        broken.assert_awaited()
        detail = (await client.get(f"{BASE}/{post['id']}", headers=member)).json()
        assert detail["my_participation"]["user_id"] == "member"

    async def test_full_post_requires_waiting_list(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        late = await make_member("late")
        post = await _create(client, leader)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        response = await client.post(f"{BASE}/{post['id']}/participate", headers=late)

        assert response.status_code == 409
        assert response.headers["X-Requires-Waiting"] == "true"

    async def test_leader_and_duplicates_rejected(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=5)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        assert (await client.post(f"{BASE}/{post['id']}/participate", headers=leader)).status_code == 400
        assert (await client.post(f"{BASE}/{post['id']}/participate", headers=member)).status_code == 400

    async def test_cancel_promotes_head_of_queue(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        first = await make_member("first")
        second = await make_member("second")
        post = await _create(client, leader)
        post_id = post["id"]
        await client.post(f"{BASE}/{post_id}/participate", headers=member)
        assert (await client.post(f"{BASE}/{post_id}/waiting", headers=first)).json()["status"] == "WAITING"
        assert (await client.post(f"{BASE}/{post_id}/waiting", headers=second)).status_code == 201

        response = await client.delete(f"{BASE}/{post_id}/participate", headers=member)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "FULL"
        assert {p["user_id"] for p in data["participants"]} == {"leader", "first"}
        assert [w["user_id"] for w in data["waiting_list"]] == ["second"]

        inbox = (await client.get("/api/v1/notifications", headers=first)).json()
        assert "WAITING_LIST_UPDATE" in {item["type"] for item in inbox["items"]}

    async def test_leader_cancel_transfers_leadership(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=4)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        await client.delete(f"{BASE}/{post['id']}/participate", headers=leader)

        detail = (await client.get(f"{BASE}/{post['id']}")).json()
        assert detail["leader_id"] == "member"
        assert detail["status"] == "OPEN"

    async def test_lone_leader_cannot_cancel(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        post = await _create(client, leader)

        response = await client.delete(f"{BASE}/{post['id']}/participate", headers=leader)

        assert response.status_code == 400


class TestWaitingList:
    async def test_open_post_with_free_slot_rejects_waiting(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=4)

        response = await client.post(f"{BASE}/{post['id']}/waiting", headers=member)

        assert response.status_code == 400

    async def test_future_available_time_queues_time_waiting(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=4)

        response = await client.post(
            f"{BASE}/{post['id']}/waiting", json={"available_time": _future(1)}, headers=member
        )

        assert response.status_code == 201
        assert response.json()["status"] == "TIME_WAITING"

    async def test_cancel_own_entry(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        late = await make_member("late")
        post = await _create(client, leader)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)
        entry = (await client.post(f"{BASE}/{post['id']}/waiting", headers=late)).json()

        response = await client.delete(f"{BASE}/{post['id']}/waiting/{entry['id']}", headers=late)

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELED"
        assert (await client.delete(f"{BASE}/{post['id']}/waiting", headers=late)).status_code == 404

    async def test_someone_elses_entry_is_forbidden(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        late = await make_member("late")
        post = await _create(client, leader)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)
        entry = (await client.post(f"{BASE}/{post['id']}/waiting", headers=late)).json()

        response = await client.delete(f"{BASE}/{post['id']}/waiting/{entry['id']}", headers=member)

        assert response.status_code == 403

    async def test_manual_decision_is_gone(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        post = await _create(client, leader)

        response = await client.patch(
            f"{BASE}/{post['id']}/waiting/1", json={"action": "accept"}, headers=leader
        )

        assert response.status_code == 410


class TestLeaveEarly:
    async def test_leave_early_invites_waiters_who_can_accept(
        self, client: AsyncClient, make_member, repos: SqlRepoBundle
    ):
        leader = await make_member("leader")
        member = await make_member("member")
        late = await make_member("late")
        post = await _create(client, leader)
        post_id = post["id"]
        await client.post(f"{BASE}/{post_id}/participate", headers=member)
        entry = (await client.post(f"{BASE}/{post_id}/waiting", headers=late)).json()
        await _set_status(repos, post_id, GamePostStatus.IN_PROGRESS)

        response = await client.post(f"{BASE}/{post_id}/leave-early", headers=member)

        assert response.status_code == 200
        data = response.json()
        assert data["participant_count"] == 1
        assert data["waiting_list"][0]["status"] == "INVITED"

        accepted = await client.post(f"{BASE}/{post_id}/waiting/{entry['id']}/accept", headers=late)
        assert accepted.status_code == 200
        assert accepted.json()["participant_count"] == 2
        assert accepted.json()["waiting_list"] == []

    async def test_leave_early_requires_running_game(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        response = await client.post(f"{BASE}/{post['id']}/leave-early", headers=member)

        assert response.status_code == 400

    async def test_cancel_not_allowed_once_running(self, client: AsyncClient, make_member, repos: SqlRepoBundle):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)
        await _set_status(repos, post["id"], GamePostStatus.IN_PROGRESS)

        response = await client.delete(f"{BASE}/{post['id']}/participate", headers=member)

        assert response.status_code == 400

    async def test_running_game_with_free_slot_invites_directly(
        self, client: AsyncClient, make_member, repos: SqlRepoBundle
    ):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)
        await _set_status(repos, post["id"], GamePostStatus.IN_PROGRESS)

        response = await client.post(f"{BASE}/{post['id']}/waiting", headers=member)

        assert response.status_code == 201
        assert response.json()["status"] == "INVITED"


class TestLeaderOperations:
    async def test_guests_and_removal(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)

        added = await client.post(f"{BASE}/{post['id']}/guests", json={"name": "Charlie"}, headers=leader)
        assert added.status_code == 201
        guest = next(p for p in added.json()["participants"] if p["participant_type"] == "GUEST")

        forbidden = await client.post(f"{BASE}/{post['id']}/guests", json={"name": "Delta"}, headers=member)
        assert forbidden.status_code == 403

        removed = await client.delete(f"{BASE}/{post['id']}/participants/{guest['id']}", headers=leader)
        assert removed.status_code == 200
        assert removed.json()["participant_count"] == 1

    async def test_transfer_leader(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)
        joined = (await client.post(f"{BASE}/{post['id']}/participate", headers=member)).json()
        target = next(p for p in joined["participants"] if p["user_id"] == "member")

        response = await client.post(
            f"{BASE}/{post['id']}/transfer-leader", json={"participant_id": target["id"]}, headers=leader
        )

        assert response.status_code == 200
        assert response.json()["leader_id"] == "member"

    async def test_close_and_toggle(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        post = await _create(client, leader)

        toggled = await client.post(f"{BASE}/{post['id']}/toggle-status", headers=leader)
        assert toggled.json()["status"] == "COMPLETED"
        reopened = await client.post(f"{BASE}/{post['id']}/toggle-status", headers=leader)
        assert reopened.json()["status"] == "OPEN"

        closed = await client.post(f"{BASE}/{post['id']}/close", headers=leader)
        assert closed.status_code == 200
        assert closed.json()["status"] == "EXPIRED"

    async def test_delete_notifies_members(self, client: AsyncClient, make_member):
        leader = await make_member("leader")
        member = await make_member("member")
        post = await _create(client, leader, max_participants=3)
        await client.post(f"{BASE}/{post['id']}/participate", headers=member)

        assert (await client.delete(f"{BASE}/{post['id']}", headers=member)).status_code == 403
        response = await client.delete(f"{BASE}/{post['id']}", headers=leader)

        assert response.status_code == 200
        assert (await client.get(f"{BASE}/{post['id']}")).status_code == 404
        inbox = (await client.get("/api/v1/notifications", headers=member)).json()
        assert "GAME_CANCELLED" in {item["event"] for item in inbox["items"]}

    async def test_admin_can_delete_any_post(self, client: AsyncClient, make_member):
        from gclub.core.models.domain import RoleName

        leader = await make_member("leader")
        admin = await make_member("admin", role=RoleName.ADMIN)
        post = await _create(client, leader)

        response = await client.delete(f"{BASE}/{post['id']}", headers=admin)

        assert response.status_code == 200
