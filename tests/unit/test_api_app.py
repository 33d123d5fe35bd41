"""Tests for the application factory and global board provisioning."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sprintboard.api.app import create_app, provision_global_board
from sprintboard.config.schema import SprintboardConfig
from sprintboard.storage.repository import BoardRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class TestCreateApp:
    def test_routes_registered(self):
        app = create_app(SprintboardConfig())
        paths = {getattr(r, "path", "") for r in app.routes}
        assert "/api/poker-session/create" in paths
        assert "/api/poker-session/{session_id}/votes" in paths
        assert "/api/retro-session/{session_id}/items" in paths
        assert "/api/health" in paths

    def test_config_on_state(self):
        config = SprintboardConfig()
        app = create_app(config)
        assert app.state.config is config


class TestProvisionGlobalBoard:
    async def test_creates_open_sessions(self, db_factory: async_sessionmaker[AsyncSession]):
        await provision_global_board(db_factory)
        async with db_factory() as session:
            repo = BoardRepository(session)
            poker = await repo.get_poker_session("global")
            retro = await repo.get_retro_session("global")
        assert poker is not None and poker.is_open
        assert retro is not None and retro.is_open

    async def test_idempotent(self, db_factory: async_sessionmaker[AsyncSession]):
        await provision_global_board(db_factory)
        await provision_global_board(db_factory)
        async with db_factory() as session:
            assert await BoardRepository(session).poker_session_exists("global")


class TestCors:
    async def test_preflight(self, client):  # type: ignore[no-untyped-def]
        resp = await client.options(
            "/api/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code == 200
