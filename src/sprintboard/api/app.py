"""FastAPI application factory for the sprintboard API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from sprintboard.boards.tokens import GLOBAL_SESSION_ID

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from sprintboard.config.schema import SprintboardConfig

logger = logging.getLogger(__name__)


async def provision_global_board(
    factory: async_sessionmaker[AsyncSession],
) -> None:
    """Create the open ``global`` poker and retro sessions if missing."""
    from sprintboard.boards.poker import PokerBoard
    from sprintboard.boards.retro import RetroBoard
    from sprintboard.storage.repository import BoardRepository

    async with factory() as session:
        repo = BoardRepository(session)
        if not await repo.poker_session_exists(GLOBAL_SESSION_ID):
            await PokerBoard(session).create_session(
                session_id=GLOBAL_SESSION_ID, is_open=True
            )
        if not await repo.retro_session_exists(GLOBAL_SESSION_ID):
            await RetroBoard(session).create_session(
                session_id=GLOBAL_SESSION_ID, is_open=True
            )
        await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan handler: set up the DB on startup, dispose on shutdown."""
    from sprintboard.cli.app import _create_db

    config: SprintboardConfig = app.state.config
    factory, engine = await _create_db(config)

    app.state.db_factory = factory
    app.state.engine = engine

    if config.global_board.enabled:
        await provision_global_board(factory)

    yield

    await engine.dispose()


def create_app(config: SprintboardConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    from sprintboard import __version__
    from sprintboard.config.loader import load_config

    if config is None:
        config = load_config()

    app = FastAPI(
        title="sprintboard",
        description="Planning poker and retrospective boards",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config

    from fastapi.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from sprintboard.api.errors import install_error_handlers

    install_error_handlers(app)

    from sprintboard.api.health import router as health_router
    from sprintboard.api.routes import poker_router, retro_router

    app.include_router(poker_router)
    app.include_router(retro_router)
    app.include_router(health_router)

    return app
