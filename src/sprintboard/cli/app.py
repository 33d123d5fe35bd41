"""Main CLI application.

Click commands for sprintboard: serve, create-session, session, watch,
cards.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from sprintboard import __version__
from sprintboard.config.loader import load_config
from sprintboard.core.errors import ConfigError, SprintboardError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from sprintboard.config.schema import SprintboardConfig


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> SprintboardConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


async def _create_db(
    config: SprintboardConfig,
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create async engine and sessionmaker from config."""
    from sqlalchemy import event
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from sprintboard.storage.models import Base

    url = config.database.url
    if "~" in url:
        url = url.replace("~", str(Path.home()))

    # Ensure parent directory exists for sqlite
    if url.startswith("sqlite"):
        db_path = url.split("///")[-1] if "///" in url else ""
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine_kwargs: dict[str, object] = {}
    if url.startswith("sqlite"):
        if ":memory:" in url:
            # In-memory SQLite needs StaticPool so all queries share
            # the same connection (and thus the same in-memory DB).
            from sqlalchemy.pool import StaticPool

            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            from sqlalchemy.pool import NullPool

            engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs["pool_size"] = config.database.pool_size
        engine_kwargs["max_overflow"] = config.database.max_overflow
        engine_kwargs["pool_timeout"] = config.database.pool_timeout
        engine_kwargs["pool_recycle"] = config.database.pool_recycle
        engine_kwargs["pool_pre_ping"] = True

    engine = create_async_engine(url, **engine_kwargs)

    # Enable foreign keys for SQLite (item cascade relies on it)
    if url.startswith("sqlite"):

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_fks(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    # create_all for in-memory SQLite, the bootstrap for file SQLite.
    # PostgreSQL is managed by alembic migrations.
    is_memory = url.startswith("sqlite") and ":memory:" in url
    if is_memory:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    elif url.startswith("sqlite"):
        from sprintboard.storage.migrations import ensure_schema

        await ensure_schema(engine)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    return factory, engine


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="sprintboard")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """sprintboard - Planning poker and retrospective boards.

    Serve the API, issue sessions, and follow a board from the terminal.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── create-session ───────────────────────────────────────────────


@cli.command("create-session")
@click.argument("kind", type=click.Choice(["poker", "retro"]))
@click.pass_context
def create_session(ctx: click.Context, kind: str) -> None:
    """Create a poker or retro session directly in the database.

    The admin token is printed once; keep it, it cannot be recovered.
    """
    config = _load_config(ctx.obj["config_path"])
    try:
        session_id, admin_token = asyncio.run(_create_session_async(config, kind))
    except SprintboardError as e:
        _error(str(e))
        return
    click.echo(f"Session ID:  {session_id}")
    click.echo(f"Admin token: {admin_token}")


async def _create_session_async(config: SprintboardConfig, kind: str) -> tuple[str, str]:
    """Async implementation for the create-session command."""
    from sprintboard.boards.poker import PokerBoard
    from sprintboard.boards.retro import RetroBoard

    factory, engine = await _create_db(config)
    try:
        async with factory() as session:
            if kind == "poker":
                issued = await PokerBoard(session).create_session()
            else:
                issued = await RetroBoard(session).create_session()
            await session.commit()
    finally:
        await engine.dispose()
    return issued.session_id, issued.admin_token


# ── session ──────────────────────────────────────────────────────


@cli.command()
@click.argument("session_id")
@click.option(
    "--kind",
    type=click.Choice(["poker", "retro"]),
    default="poker",
    show_default=True,
    help="Board type of the session.",
)
@click.pass_context
def session(ctx: click.Context, session_id: str, kind: str) -> None:
    """Show a session's active story and votes, or its meeting board."""
    config = _load_config(ctx.obj["config_path"])
    try:
        asyncio.run(_session_async(config, session_id, kind))
    except SprintboardError as e:
        _error(str(e))


async def _session_async(config: SprintboardConfig, session_id: str, kind: str) -> None:
    """Async implementation for the session command."""
    from sprintboard.boards.poker import PokerBoard
    from sprintboard.boards.retro import RetroBoard
    from sprintboard.cli.display import BoardDisplay

    display = BoardDisplay()
    factory, engine = await _create_db(config)
    try:
        async with factory() as db:
            if kind == "poker":
                board = PokerBoard(db)
                info = await board.get_session_info(session_id)
                snapshot = await board.votes_snapshot(session_id)
                story = info.active_story
                display.show_poker(
                    info.session_id,
                    story.description if story is not None else None,
                    snapshot.votes,
                    snapshot.is_revealed,
                )
            else:
                retro = RetroBoard(db)
                retro_info = await retro.get_session_info(session_id)
                display.show_meeting(retro_info.session_id, retro_info.active_meeting)
    finally:
        await engine.dispose()


# ── watch ────────────────────────────────────────────────────────


@cli.command()
@click.argument("session_id")
@click.option(
    "--url",
    default=None,
    help="Server base URL (default: the configured API host and port).",
)
@click.option("--name", default=None, help="Voter name shown in the header.")
@click.pass_context
def watch(ctx: click.Context, session_id: str, url: str | None, name: str | None) -> None:
    """Follow a poker board live. Stop with Ctrl-C."""
    config = _load_config(ctx.obj["config_path"])
    base_url = url or f"http://{config.api.host}:{config.api.port}"
    try:
        asyncio.run(_watch_async(config, base_url, session_id, name))
    except KeyboardInterrupt:
        click.echo("Stopped.")


async def _watch_async(
    config: SprintboardConfig,
    base_url: str,
    session_id: str,
    name: str | None,
) -> None:
    """Async implementation for the watch command."""
    from sprintboard.cli.display import BoardDisplay
    from sprintboard_client import PokerPoller, SprintboardClient
    from sprintboard_client.poller import poll_interval

    display = BoardDisplay()
    interval = poll_interval(
        session_id,
        board_interval=config.polling.board_interval,
        session_interval=config.polling.session_interval,
    )

    def _render(poller: PokerPoller) -> None:
        story = poller.story.description if poller.story is not None else None
        votes = poller.votes.votes if poller.votes is not None else {}
        revealed = poller.votes.is_revealed if poller.votes is not None else False
        display.show_poker(session_id, story, votes, revealed, viewer=name)

    async with SprintboardClient(base_url) as client:
        poller = PokerPoller(client, session_id, interval=interval, on_change=_render)
        await poller.mount()
        poller.start()
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await poller.stop()


# ── cards ────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def cards(ctx: click.Context) -> None:
    """Print the configured card deck."""
    config = _load_config(ctx.obj["config_path"])
    click.echo("  ".join(config.poker.cards))


# ── serve ────────────────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Host to bind to (overrides config).")
@click.option(
    "--port", type=int, default=None, help="Port to bind to (overrides config)."
)
@click.option(
    "--reload", is_flag=True, default=False, help="Enable auto-reload for development."
)
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, reload: bool) -> None:
    """Start the REST API server."""
    import uvicorn

    from sprintboard.api.app import create_app
    from sprintboard.logging_setup import configure_logging

    config = _load_config(ctx.obj["config_path"])
    configure_logging(config.logging)

    effective_host = host or config.api.host
    effective_port = port or config.api.port
    click.echo(f"API: http://{effective_host}:{effective_port}/api")

    app = create_app(config)
    uvicorn.run(
        app,
        host=effective_host,
        port=effective_port,
        reload=reload,
        log_config=None,
    )
