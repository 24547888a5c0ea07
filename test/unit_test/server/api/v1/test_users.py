"""
Unit tests for member search.
"""

import pytest
from httpx import AsyncClient

from gclub.core.models.domain import RoleName

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/users/search"


class TestSearchUsers:
    async def test_name_match_is_case_insensitive(self, client: AsyncClient, make_member):
        headers = await make_member("seeker")
        await make_member("mina", name="Mina Kim")
        await make_member("minho", name="minho Lee")
        await make_member("joon", name="Joon")

        response = await client.get(BASE, params={"q": "MIN"}, headers=headers)

        assert response.status_code == 200
        assert [hit["name"] for hit in response.json()] == ["Mina Kim", "minho Lee"]
        assert all(hit["is_guest"] is False for hit in response.json())

    async def test_at_most_ten_results(self, client: AsyncClient, make_member):
        headers = await make_member("seeker")
        for index in range(12):
            await make_member(f"player{index}", name=f"Player {index:02d}")

        response = await client.get(BASE, params={"q": "player"}, headers=headers)

        assert len(response.json()) == 10

    @pytest.mark.parametrize("params", [{}, {"q": "m"}, {"q": " m "}])
    async def test_short_query_returns_nothing(self, client: AsyncClient, make_member, params):
        headers = await make_member("seeker")

        response = await client.get(BASE, params=params, headers=headers)

        assert response.json() == []

    async def test_no_match_offers_guest(self, client: AsyncClient, make_member):
        headers = await make_member("seeker")

        response = await client.get(BASE, params={"q": "Stranger"}, headers=headers)

        assert response.json() == [{"user_id": None, "name": "Stranger", "image": None, "is_guest": True}]

    async def test_unapproved_members_are_refused(self, client: AsyncClient, make_member):
        headers = await make_member("pending", role=RoleName.NONE)

        response = await client.get(BASE, params={"q": "mina"}, headers=headers)

        assert response.status_code == 403

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get(BASE, params={"q": "mina"})

        assert response.status_code == 401
