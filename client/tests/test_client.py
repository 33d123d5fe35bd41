"""Tests for sprintboard-client library."""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from sprintboard_client import SprintboardClient
from sprintboard_client.client import SprintboardAPIError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sprintboard.api.app import create_app, provision_global_board
from sprintboard.config.schema import SprintboardConfig
from sprintboard.storage.models import Base

# -- Helpers -------------------------------------------------------------------


async def _make_app() -> FastAPI:
    """Create the full app on an in-memory DB for testing."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_fks(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    app = create_app(SprintboardConfig())
    app.state.db_factory = factory
    app.state.engine = engine
    await provision_global_board(factory)
    return app


def _client_for(app: FastAPI) -> SprintboardClient:
    client = SprintboardClient.__new__(SprintboardClient)
    client._base_url = "http://test"
    client._async_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    )
    return client


def _make_mock_transport(
    responses: dict[str, Any],
) -> httpx.MockTransport:
    """Create an httpx.MockTransport that returns canned JSON responses.

    *responses* maps ``"METHOD /path"`` (e.g. ``"GET /api/health"``) to a dict
    with ``status_code`` and ``json`` keys.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        key = f"{request.method} {request.url.raw_path.decode().split('?')[0]}"
        if key in responses:
            entry = responses[key]
            return httpx.Response(
                status_code=entry.get("status_code", 200),
                json=entry["json"],
            )
        return httpx.Response(status_code=404, json={"error": "Not Found"})

    return httpx.MockTransport(handler)


def _sync_client(responses: dict[str, Any]) -> SprintboardClient:
    client = SprintboardClient.__new__(SprintboardClient)
    client._base_url = "http://test"
    client._sync_client = httpx.Client(
        transport=_make_mock_transport(responses), base_url="http://test"
    )
    return client


@pytest.fixture
async def client() -> Any:
    app = await _make_app()
    c = _client_for(app)
    yield c
    await c.aclose()
    await app.state.engine.dispose()


# -- TestHealth ----------------------------------------------------------------


class TestHealth:
    async def test_health_returns_true(self, client: SprintboardClient) -> None:
        assert await client.health() is True

    async def test_health_returns_false_on_error(self) -> None:
        transport = httpx.MockTransport(
            lambda _: (_ for _ in ()).throw(httpx.ConnectError("refused"))
        )
        client = SprintboardClient.__new__(SprintboardClient)
        client._base_url = "http://test"
        client._async_client = httpx.AsyncClient(
            transport=transport, base_url="http://test"
        )

        assert await client.health() is False

    def test_health_sync(self) -> None:
        client = _sync_client({"GET /api/health": {"json": {"status": "ok"}}})
        assert client.health_sync() is True


# -- TestPoker -----------------------------------------------------------------


class TestPoker:
    async def test_round_trip(self, client: SprintboardClient) -> None:
        created = await client.create_poker_session()
        sid, token = created.session_id, created.admin_token
        assert created.message == "Session created successfully"

        story = await client.set_story(sid, "Search page", token)
        assert story.description == "Search page"
        assert story.id is not None

        await client.vote(sid, "Alice", "5")
        await client.vote(sid, "Bob", "13")
        votes = await client.votes(sid)
        assert votes.votes == {"Alice": "5", "Bob": "13"}
        assert votes.vote_count == 2
        assert votes.is_revealed is False

        revealed = await client.reveal(sid, token)
        assert revealed["isRevealed"] is True
        assert (await client.votes(sid)).is_revealed is True

        await client.reset(sid, token)
        assert (await client.votes(sid)).votes == {}

    async def test_session_info(self, client: SprintboardClient) -> None:
        created = await client.create_poker_session()
        info = await client.poker_session(created.session_id, created.admin_token)
        assert info.session_id == created.session_id
        assert info.is_admin is True
        assert info.has_active_story is False
        assert await client.verify_poker_admin(created.session_id, "nope") is False

    async def test_empty_story(self, client: SprintboardClient) -> None:
        created = await client.create_poker_session()
        story = await client.story(created.session_id)
        assert story.id is None
        assert story.description == ""
        assert story.last_updated == 0

    async def test_new_story(self, client: SprintboardClient) -> None:
        created = await client.create_poker_session()
        sid, token = created.session_id, created.admin_token
        await client.set_story(sid, "One", token)
        result = await client.new_story(sid, token, "Two")
        assert result["description"] == "Two"
        assert (await client.story(sid)).description == "Two"

    async def test_error_carries_message(self, client: SprintboardClient) -> None:
        created = await client.create_poker_session()
        with pytest.raises(SprintboardAPIError) as exc_info:
            await client.set_story(created.session_id, "x", "wrong-token")
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Invalid admin token"

    async def test_unknown_session(self, client: SprintboardClient) -> None:
        with pytest.raises(SprintboardAPIError) as exc_info:
            await client.poker_session("NOPE1234")
        assert exc_info.value.status_code == 404


# -- TestRetro -----------------------------------------------------------------


class TestRetro:
    async def test_board(self, client: SprintboardClient) -> None:
        created = await client.create_retro_session()
        sid, token = created.session_id, created.admin_token
        assert await client.meeting(sid) is None

        meeting = await client.create_meeting(sid, token, columns=["Good", "Bad"])
        assert meeting.column_count == 2
        good = meeting.columns[0]["id"]

        item = await client.add_item(sid, good, "Demo went well", "Alice")
        await client.edit_item(sid, item["id"], "Demo went great")
        column = await client.add_column(sid, "Ideas", token)
        await client.rename_column(sid, column["id"], "Next", token)

        current = await client.meeting(sid)
        assert current is not None
        assert current.item_count == 1
        assert [c["title"] for c in current.columns] == ["Good", "Bad", "Next"]
        assert current.columns[0]["items"][0]["content"] == "Demo went great"

        await client.delete_item(sid, item["id"])
        await client.delete_column(sid, column["id"], token)
        current = await client.meeting(sid)
        assert current is not None
        assert current.item_count == 0
        assert current.column_count == 2

    async def test_rename_meeting(self, client: SprintboardClient) -> None:
        created = await client.create_retro_session()
        sid, token = created.session_id, created.admin_token
        await client.create_meeting(sid, token)
        renamed = await client.rename_meeting(sid, "Sprint 3", token)
        assert renamed.title == "Sprint 3"

        info = await client.retro_session(sid, token)
        assert info.is_admin is True
        assert info.active_meeting is not None
        assert info.active_meeting.title == "Sprint 3"
        assert await client.verify_retro_admin(sid, token) is True

    async def test_global_meeting(self, client: SprintboardClient) -> None:
        meeting = await client.meeting("global")
        assert meeting is not None
        assert meeting.is_active is True


# -- TestSync ------------------------------------------------------------------


class TestSync:
    def test_votes_sync(self) -> None:
        client = _sync_client(
            {
                "GET /api/poker-session/global/votes": {
                    "json": {
                        "votes": {"Alice": "3"},
                        "isRevealed": True,
                        "lastUpdated": 1700000000000,
                        "voteCount": 1,
                    }
                }
            }
        )
        votes = client.votes_sync("global")
        assert votes.votes == {"Alice": "3"}
        assert votes.is_revealed is True
        assert votes.last_updated == 1700000000000

    def test_create_sync(self) -> None:
        client = _sync_client(
            {
                "POST /api/poker-session/create": {
                    "json": {
                        "sessionId": "ABCD1234",
                        "adminToken": "t" * 32,
                        "message": "Session created successfully",
                    }
                }
            }
        )
        created = client.create_poker_session_sync()
        assert created.session_id == "ABCD1234"

    def test_vote_sync_error(self) -> None:
        client = _sync_client(
            {
                "POST /api/poker-session/global/votes": {
                    "status_code": 400,
                    "json": {"error": "Voter name is required"},
                }
            }
        )
        with pytest.raises(SprintboardAPIError, match="Voter name is required"):
            client.vote_sync("global", "", "5")

    def test_meeting_sync_null(self) -> None:
        client = SprintboardClient.__new__(SprintboardClient)
        client._sync_client = httpx.Client(
            transport=httpx.MockTransport(
                lambda _: httpx.Response(200, content=b"null")
            ),
            base_url="http://test",
        )
        assert client.meeting_sync("ABCD1234") is None

    def test_story_sync(self) -> None:
        client = _sync_client(
            {
                "GET /api/poker-session/global/story": {
                    "json": {"id": 4, "description": "Login", "lastUpdated": 10}
                }
            }
        )
        story = client.story_sync("global")
        assert story.id == 4
        assert story.description == "Login"
