"""
Unit tests for Profile API endpoints.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/profile"


class TestProfile:
    async def test_first_read_creates_unapproved_profile(self, client: AsyncClient, make_member):
        headers = await make_member("newbie", with_profile=False)

        response = await client.get(BASE, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "newbie"
        assert data["role_name"] == "NONE"
        assert data["terms_agreed"] is False

    async def test_register_profile(self, client: AsyncClient, make_member):
        headers = await make_member("newbie", with_profile=False)

        response = await client.put(BASE, json={"name": "  Newbie  ", "birth_date": "2001-02-03"}, headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Newbie"
        assert response.json()["birth_date"] == "2001-02-03"

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "", "birth_date": "2001-02-03"},
            {"name": "x" * 51, "birth_date": "2001-02-03"},
            {"name": "Time traveller", "birth_date": (date.today() + timedelta(days=1)).isoformat()},
        ],
    )
    async def test_invalid_profile(self, client: AsyncClient, make_member, payload):
        headers = await make_member("newbie", with_profile=False)

        response = await client.put(BASE, json=payload, headers=headers)

        assert response.status_code == 400

    async def test_requires_token(self, client: AsyncClient):
        assert (await client.get(BASE)).status_code == 401

    async def test_rejects_forged_token(self, client: AsyncClient):
        response = await client.get(BASE, headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401


class TestTerms:
    async def test_both_agreements_required(self, client: AsyncClient, make_member):
        headers = await make_member("newbie", with_profile=False)
        await client.get(BASE, headers=headers)

        partial = await client.post(f"{BASE}/terms", json={"terms_agreed": True, "privacy_agreed": False}, headers=headers)
        full = await client.post(f"{BASE}/terms", json={"terms_agreed": True, "privacy_agreed": True}, headers=headers)

        assert partial.status_code == 400
        assert full.status_code == 200
        assert full.json()["terms_agreed_at"] is not None

    async def test_terms_need_profile(self, client: AsyncClient, make_member):
        headers = await make_member("newbie", with_profile=False)

        response = await client.get(f"{BASE}/terms", headers=headers)

        assert response.status_code == 404


class TestFavoriteGames:
    async def test_replace_keeps_order(self, client: AsyncClient, make_member):
        headers = await make_member("member")

        response = await client.put(f"{BASE}/favorite-games", json={"game_ids": [3, 1, 3]}, headers=headers)

        assert response.json() == {"game_ids": [3, 1]}
        assert (await client.get(BASE, headers=headers)).json()["favorite_game_ids"] == [3, 1]

    async def test_unknown_games_rejected(self, client: AsyncClient, make_member):
        headers = await make_member("member")

        response = await client.put(f"{BASE}/favorite-games", json={"game_ids": [1, 404]}, headers=headers)

        assert response.status_code == 400


class TestGameMateHistory:
    async def test_joined_games_are_listed(self, client: AsyncClient, make_member):
        from datetime import datetime, timezone

        leader = await make_member("leader")
        member = await make_member("member")
        start = (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat()
        post = (
            await client.post(
                "/api/v1/game-posts",
                json={"title": "Raid", "content": "Bring potions", "game_id": 5, "max_participants": 4, "start_time": start},
                headers=leader,
            )
        ).json()
        await client.post(f"/api/v1/game-posts/{post['id']}/participate", headers=member)

        response = await client.get(f"{BASE}/game-mate-history", headers=member)

        assert response.status_code == 200
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["game_name"] == "Lost Ark"
        assert items[0]["is_leader"] is False
        assert items[0]["participant_count"] == 2


class TestMemberProfile:
    async def test_public_fields_only(self, client: AsyncClient, make_member):
        viewer = await make_member("viewer")
        await make_member("mina", name="Mina")

        response = await client.get(f"{BASE}/mina", headers=viewer)

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Mina"
        assert data["role_name"] == "USER"
        assert "terms_agreed" not in data
        assert "favorite_game_ids" not in data

    async def test_unknown_member(self, client: AsyncClient, make_member):
        viewer = await make_member("viewer")

        response = await client.get(f"{BASE}/ghost", headers=viewer)

        assert response.status_code == 404

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get(f"{BASE}/mina")

        assert response.status_code == 401
