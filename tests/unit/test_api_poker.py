"""Tests for the planning poker endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    import httpx

BASE = "/api/poker-session"


@pytest.fixture
async def created(client: httpx.AsyncClient) -> dict[str, str]:
    resp = await client.post(f"{BASE}/create")
    assert resp.status_code == 200
    return resp.json()


async def _story(client: httpx.AsyncClient, created: dict[str, str], text: str = "Login") -> dict:  # type: ignore[type-arg]
    resp = await client.post(
        f"{BASE}/{created['sessionId']}/story",
        json={"description": text, "adminToken": created["adminToken"]},
    )
    assert resp.status_code == 200
    return resp.json()


class TestCreateSession:
    async def test_create(self, created: dict[str, str]):
        assert len(created["sessionId"]) == 8
        assert len(created["adminToken"]) == 32
        assert created["message"] == "Session created successfully"

    async def test_ids_differ(self, client: httpx.AsyncClient):
        a = (await client.post(f"{BASE}/create")).json()
        b = (await client.post(f"{BASE}/create")).json()
        assert a["sessionId"] != b["sessionId"]
        assert a["adminToken"] != b["adminToken"]

    async def test_get_on_create_is_not_a_session(self, client: httpx.AsyncClient):
        resp = await client.get(f"{BASE}/create")
        assert resp.status_code == 404


class TestSessionInfo:
    async def test_info(self, client: httpx.AsyncClient, created: dict[str, str]):
        sid = created["sessionId"]
        resp = await client.get(f"{BASE}/{sid}", params={"adminToken": created["adminToken"]})
        assert resp.status_code == 200
        assert resp.json() == {
            "sessionId": sid,
            "hasActiveStory": False,
            "activeStory": None,
            "isAdmin": True,
        }

    async def test_info_not_admin_without_token(
        self, client: httpx.AsyncClient, created: dict[str, str]
    ):
        resp = await client.get(f"{BASE}/{created['sessionId']}")
        assert resp.json()["isAdmin"] is False

    async def test_unknown(self, client: httpx.AsyncClient):
        resp = await client.get(f"{BASE}/NOPE1234")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Session not found"}

    async def test_check_token(self, client: httpx.AsyncClient, created: dict[str, str]):
        sid = created["sessionId"]
        good = await client.post(f"{BASE}/{sid}", json={"adminToken": created["adminToken"]})
        bad = await client.post(f"{BASE}/{sid}", params={"adminToken": "wrong"})
        assert good.json() == {"isValid": True}
        assert bad.json() == {"isValid": False}

    async def test_check_token_missing(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(f"{BASE}/{created['sessionId']}", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Session ID and admin token are required"


class TestStory:
    async def test_no_story(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.get(f"{BASE}/{created['sessionId']}/story")
        assert resp.json() == {"id": None, "description": "", "lastUpdated": 0}

    async def test_create_story(self, client: httpx.AsyncClient, created: dict[str, str]):
        data = await _story(client, created, "  Checkout flow  ")
        assert data["description"] == "Checkout flow"
        assert data["message"] == "Story created successfully"

        resp = await client.get(f"{BASE}/{created['sessionId']}/story")
        assert resp.json()["id"] == data["id"]

    async def test_story_requires_token(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/story", json={"description": "x"}
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Admin token is required"

    async def test_story_wrong_token(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/story",
            json={"description": "x", "adminToken": "wrong"},
        )
        assert resp.status_code == 403
        assert resp.json()["error"] == "Invalid admin token"

    async def test_blank_description(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/story",
            json={"description": "   ", "adminToken": created["adminToken"]},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Story description is required"


class TestVotes:
    async def test_vote_without_story(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/votes",
            json={"voterName": "Alice", "voteValue": "5"},
        )
        assert resp.status_code == 400
        assert "No active story" in resp.json()["error"]

    async def test_missing_fields(self, client: httpx.AsyncClient, created: dict[str, str]):
        await _story(client, created)
        url = f"{BASE}/{created['sessionId']}/votes"
        no_name = await client.post(url, json={"voteValue": "5"})
        no_value = await client.post(url, json={"voterName": "Alice"})
        assert no_name.json()["error"] == "Voter name is required"
        assert no_value.json()["error"] == "Vote value is required"

    async def test_numeric_vote_value(self, client: httpx.AsyncClient, created: dict[str, str]):
        await _story(client, created)
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/votes",
            json={"voterName": "Alice", "voteValue": 8},
        )
        assert resp.json() == {
            "message": "Vote submitted successfully",
            "voterName": "Alice",
            "voteValue": "8",
        }

    async def test_votes_unknown_session_empty(self, client: httpx.AsyncClient):
        resp = await client.get(f"{BASE}/NOPE1234/votes")
        assert resp.status_code == 200
        assert resp.json()["votes"] == {}


class TestRound:
    async def test_full_round(self, client: httpx.AsyncClient, created: dict[str, str]):
        sid, token = created["sessionId"], created["adminToken"]
        await _story(client, created)

        for name, value in (("Alice", "5"), ("Bob", "8"), ("Alice", "3")):
            resp = await client.post(
                f"{BASE}/{sid}/votes", json={"voterName": name, "voteValue": value}
            )
            assert resp.status_code == 200

        votes = (await client.get(f"{BASE}/{sid}/votes")).json()
        assert votes["votes"] == {"Alice": "3", "Bob": "8"}
        assert votes["voteCount"] == 2
        assert votes["isRevealed"] is False
        assert votes["lastUpdated"] > 0

        reveal = await client.post(f"{BASE}/{sid}/reveal", json={"adminToken": token})
        assert reveal.json() == {"message": "Votes revealed successfully", "isRevealed": True}
        again = await client.post(f"{BASE}/{sid}/reveal", json={"adminToken": token})
        assert again.json()["message"] == "Votes are already revealed"

        late = await client.post(
            f"{BASE}/{sid}/votes", json={"voterName": "Carol", "voteValue": "13"}
        )
        assert late.status_code == 400
        assert late.json()["error"] == "Votes have already been revealed. Cannot vote now."

        reset = await client.post(f"{BASE}/{sid}/reset", json={"adminToken": token})
        assert reset.json()["message"] == "Votes reset successfully"
        assert reset.json()["isRevealed"] is False

        votes = (await client.get(f"{BASE}/{sid}/votes")).json()
        assert votes["votes"] == {}
        assert votes["isRevealed"] is False

    async def test_reveal_requires_admin(self, client: httpx.AsyncClient, created: dict[str, str]):
        await _story(client, created)
        resp = await client.post(f"{BASE}/{created['sessionId']}/reveal", json={})
        assert resp.status_code == 403

    async def test_reveal_without_story(self, client: httpx.AsyncClient, created: dict[str, str]):
        resp = await client.post(
            f"{BASE}/{created['sessionId']}/reveal",
            json={"adminToken": created["adminToken"]},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "No active story found"


class TestNewStory:
    async def test_with_description(self, client: httpx.AsyncClient, created: dict[str, str]):
        sid, token = created["sessionId"], created["adminToken"]
        await _story(client, created, "Old")
        resp = await client.post(
            f"{BASE}/{sid}/new-story", json={"adminToken": token, "description": "Next"}
        )
        data = resp.json()
        assert data["message"] == "New story created and votes reset"
        assert data["description"] == "Next"
        story = (await client.get(f"{BASE}/{sid}/story")).json()
        assert story["id"] == data["storyId"]

    async def test_without_description(self, client: httpx.AsyncClient, created: dict[str, str]):
        sid, token = created["sessionId"], created["adminToken"]
        await _story(client, created)
        resp = await client.post(f"{BASE}/{sid}/new-story", json={"adminToken": token})
        assert resp.json() == {"message": "Votes reset for new story"}


class TestGlobalSession:
    async def test_global_needs_no_token(self, client: httpx.AsyncClient):
        resp = await client.post(f"{BASE}/global/story", json={"description": "Shared"})
        assert resp.status_code == 200

        info = (await client.get(f"{BASE}/global")).json()
        assert info["isAdmin"] is True
        assert info["activeStory"]["description"] == "Shared"

        reveal = await client.post(f"{BASE}/global/reveal", json={})
        assert reveal.status_code == 200
