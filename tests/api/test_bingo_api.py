"""HTTP tests for the bingo endpoints."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from ecobingo.bingo.errors import TransientStoreError
from ecobingo.bingo.types import Category, Profile

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/bingo"


class TestItems:
    async def test_list_active(self, client: AsyncClient, items):
        resp = await client.get(f"{BASE}/items")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == len(items)
        assert {"id", "text", "category", "points", "is_active"} <= set(data[0])

    async def test_empty_catalog_is_seeded(self, client: AsyncClient, catalog_store):
        catalog_store.items.clear()
        resp = await client.get(f"{BASE}/items")
        assert resp.status_code == 200
        assert len(resp.json()) == 16


class TestGame:
    async def test_requires_token(self, client: AsyncClient):
        resp = await client.get(f"{BASE}/game")
        assert resp.status_code == 401
        assert resp.json()["code"] == "UNAUTHENTICATED"

    async def test_requires_verified_email(self, client: AsyncClient, auth):
        resp = await client.get(f"{BASE}/game", headers=auth(email_verified=False))
        assert resp.status_code == 403
        assert resp.json() == {"detail": "Email verification required", "code": "EMAIL_NOT_VERIFIED"}

    async def test_creates_game_with_resolved_board(self, client: AsyncClient, auth, game_store):
        resp = await client.get(f"{BASE}/game", headers=auth())
        assert resp.status_code == 200
        data = resp.json()
        assert data["user_id"] == "user-1"
        assert [e["position"] for e in data["board"]] == list(range(16))
        assert all(e["item"]["id"] == e["item_id"] for e in data["board"])
        assert data["total_points"] == 0
        assert "user-1" in game_store.games

    async def test_insufficient_catalog(self, client: AsyncClient, auth, catalog_store):
        await catalog_store.deactivate_all()
        resp = await client.get(f"{BASE}/game", headers=auth())
        assert resp.status_code == 409
        assert resp.json()["code"] == "INSUFFICIENT_CATALOG"

    async def test_store_outage(self, client: AsyncClient, auth, game_store):
        game_store.get = AsyncMock(side_effect=TransientStoreError)
        resp = await client.get(f"{BASE}/game", headers=auth())
        assert resp.status_code == 503
        assert resp.json()["code"] == "TRANSIENT_STORE_ERROR"


class TestToggle:
    async def test_toggle_on_and_off(self, client: AsyncClient, auth, place_game):
        place_game("user-1")
        on = await client.post(f"{BASE}/items/item-04/toggle", headers=auth())
        assert on.status_code == 200
        data = on.json()
        assert data["total_points"] == 10
        assert data["completed_items"][0]["item_id"] == "item-04"
        assert data["completed_items"][0]["position"] == 4
        assert data["completed_items"][0]["item"]["text"] == "Sustainable action 4"

        off = await client.post(f"{BASE}/items/item-04/toggle", headers=auth())
        assert off.json()["completed_items"] == []
        assert off.json()["total_points"] == 0

    async def test_row_bingo(self, client: AsyncClient, auth, place_game):
        place_game("user-1")
        for n in range(4):
            resp = await client.post(f"{BASE}/items/item-{n:02d}/toggle", headers=auth())
        data = resp.json()
        assert data["total_points"] == 240
        assert data["is_completed"] is True
        assert data["bingos_achieved"][0]["type"] == "ROW"
        assert data["bingos_achieved"][0]["positions"] == [0, 1, 2, 3]

    async def test_unknown_item(self, client: AsyncClient, auth):
        resp = await client.post(f"{BASE}/items/nope/toggle", headers=auth())
        assert resp.status_code == 404
        assert resp.json()["code"] == "ITEM_NOT_FOUND"

    async def test_item_not_on_board(self, client: AsyncClient, auth, place_game):
        place_game("user-1")
        resp = await client.post(f"{BASE}/items/item-19/toggle", headers=auth())
        assert resp.status_code == 400
        assert resp.json()["code"] == "ITEM_NOT_ON_BOARD"


class TestEasyItems:
    async def test_none_available(self, client: AsyncClient, auth, place_game):
        place_game("user-1")
        resp = await client.post(f"{BASE}/easy-items/complete", headers=auth())
        assert resp.status_code == 404
        assert resp.json()["code"] == "NO_EASY_ITEM_AVAILABLE"

    async def test_list_and_complete(self, client: AsyncClient, auth, place_game, catalog_store):
        for item_id, points in (("item-06", 5), ("item-02", 15)):
            catalog_store.items[item_id] = replace(
                catalog_store.items[item_id], category=Category.DIGITAL, points=points,
            )
        place_game("user-1")

        listed = await client.get(f"{BASE}/easy-items", headers=auth())
        assert [i["id"] for i in listed.json()] == ["item-06", "item-02"]

        resp = await client.post(f"{BASE}/easy-items/complete", headers=auth())
        assert resp.status_code == 200
        data = resp.json()
        assert data["completed_item"]["id"] == "item-06"
        assert data["message"] == "Completed easy action: Sustainable action 6"
        assert data["game"]["total_points"] == 10

    async def test_completed_game(self, client: AsyncClient, auth, place_game, catalog_store):
        catalog_store.items["item-09"] = replace(catalog_store.items["item-09"], category=Category.ENERGY)
        place_game("user-1")
        for n in range(4):
            await client.post(f"{BASE}/items/item-{n:02d}/toggle", headers=auth())
        resp = await client.post(f"{BASE}/easy-items/complete", headers=auth())
        assert resp.status_code == 409
        assert resp.json()["code"] == "GAME_ALREADY_COMPLETE"


class TestReset:
    async def test_missing_game(self, client: AsyncClient, auth):
        resp = await client.post(f"{BASE}/game/reset", headers=auth())
        assert resp.status_code == 404
        assert resp.json()["code"] == "GAME_NOT_FOUND"

    async def test_reset(self, client: AsyncClient, auth, place_game):
        placed = place_game("user-1")
        await client.post(f"{BASE}/items/item-00/toggle", headers=auth())
        resp = await client.post(f"{BASE}/game/reset", headers=auth())
        assert resp.status_code == 200
        data = resp.json()
        assert data["completed_items"] == []
        assert data["total_points"] == 0
        assert [e["item_id"] for e in data["board"]] == [e.item_id for e in placed.board]


class TestLeaderboardAndStats:
    async def test_leaderboard(self, client: AsyncClient, auth, place_game, directory):
        directory.profiles = {
            "user-1": Profile(user_id="user-1", first_name="Ana", last_name="Lima", city="Lisbon"),
        }
        place_game("user-1")
        place_game("user-2")
        await client.post(f"{BASE}/items/item-00/toggle", headers=auth("user-2"))
        await client.post(f"{BASE}/items/item-01/toggle", headers=auth("user-2"))
        await client.post(f"{BASE}/items/item-00/toggle", headers=auth("user-1"))

        resp = await client.get(f"{BASE}/leaderboard")
        assert resp.status_code == 200
        entries = resp.json()["entries"]
        assert [(e["rank"], e["user_id"]) for e in entries] == [(1, "user-2"), (2, "user-1")]
        assert entries[0]["full_name"] == "Unknown User"
        assert entries[1]["full_name"] == "Ana Lima"
        assert entries[1]["location"] == "Lisbon"
        assert entries[0]["completed_items_count"] == 2

    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range(self, client: AsyncClient, limit: int):
        resp = await client.get(f"{BASE}/leaderboard", params={"limit": limit})
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_stats(self, client: AsyncClient, auth, place_game):
        place_game("user-1")
        place_game("user-2")
        for n in range(4):
            await client.post(f"{BASE}/items/item-{n:02d}/toggle", headers=auth())
        resp = await client.get(f"{BASE}/stats")
        assert resp.json() == {
            "total_games": 2,
            "completed_games": 1,
            "total_bingos": 1,
            "average_completion_rate": 12.5,
        }


class TestAdmin:
    async def test_non_admin_forbidden(self, client: AsyncClient, auth):
        resp = await client.post(f"{BASE}/admin/items", json={"text": "Bike"}, headers=auth())
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    async def test_create_item_without_verification(self, client: AsyncClient, auth, catalog_store):
        resp = await client.post(
            f"{BASE}/admin/items",
            json={"text": "  Bike to work ", "category": "TRANSPORT", "points": 20},
            headers=auth("admin-1", role="ADMIN", email_verified=False),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["text"] == "Bike to work"
        assert data["created_by"] == "admin-1"
        assert data["id"] in catalog_store.items

    @pytest.mark.parametrize(
        "body",
        [{"text": "   "}, {"text": "x" * 201}, {"text": "Ok", "points": -5}, {"text": "Ok", "category": "SPACE"}],
    )
    async def test_create_item_validation(self, client: AsyncClient, auth, catalog_store, body):
        before = dict(catalog_store.items)
        resp = await client.post(f"{BASE}/admin/items", json=body, headers=auth("a", role="ADMIN"))
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"
        assert catalog_store.items == before

    async def test_update_item(self, client: AsyncClient, auth):
        resp = await client.patch(
            f"{BASE}/admin/items/item-03", json={"points": 40}, headers=auth("a", role="ADMIN"),
        )
        assert resp.status_code == 200
        assert resp.json()["points"] == 40

    async def test_update_unknown_item(self, client: AsyncClient, auth):
        resp = await client.patch(f"{BASE}/admin/items/nope", json={"points": 1}, headers=auth("a", role="ADMIN"))
        assert resp.status_code == 404
        assert resp.json()["code"] == "ITEM_NOT_FOUND"

    async def test_refresh_catalog(self, client: AsyncClient, auth, items):
        resp = await client.post(f"{BASE}/admin/items/refresh", headers=auth("a", role="ADMIN"))
        assert resp.status_code == 200
        data = resp.json()
        assert data["retired"] == len(items)
        assert len(data["items"]) == 16

    async def test_refresh_boards(self, client: AsyncClient, auth, place_game, directory, game_store):
        directory.profiles = {"user-9": Profile(user_id="user-9")}
        place_game("user-1")
        await client.post(f"{BASE}/items/item-00/toggle", headers=auth())

        resp = await client.post(f"{BASE}/admin/boards/refresh", headers=auth("a", role="ADMIN"))
        assert resp.status_code == 200
        assert resp.json() == {"boards_refreshed": 2}
        assert game_store.games["user-1"].completed_items == ()
        assert "user-9" in game_store.games
