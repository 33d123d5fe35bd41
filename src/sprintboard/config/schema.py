"""Pydantic models for sprintboard configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field

DEFAULT_CARDS = ["0", "1", "2", "3", "5", "8", "13", "21", "34", "55", "89", "?", "☕"]

DEFAULT_RETRO_COLUMNS = [
    "What went Well",
    "What didn't went well",
    "What can be improved?",
]

DEFAULT_MEETING_TITLE = "🔄 Retro Meeting"


class DatabaseConfig(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///~/.local/share/sprintboard/sprintboard.db"
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600


class APIConfig(BaseModel):
    """REST API server settings."""

    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    structured: bool = False


class PokerConfig(BaseModel):
    """Planning poker settings."""

    cards: list[str] = Field(default_factory=lambda: list(DEFAULT_CARDS))


class RetroConfig(BaseModel):
    """Retrospective board settings."""

    default_columns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RETRO_COLUMNS)
    )
    default_title: str = DEFAULT_MEETING_TITLE


class PollingConfig(BaseModel):
    """Client polling intervals, in seconds."""

    board_interval: float = Field(default=2.0, gt=0)
    session_interval: float = Field(default=5.0, gt=0)


class GlobalBoardConfig(BaseModel):
    """The open single-board sessions served under the ``global`` id."""

    enabled: bool = True


class SprintboardConfig(BaseModel):
    """Top-level configuration for sprintboard."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    poker: PokerConfig = Field(default_factory=PokerConfig)
    retro: RetroConfig = Field(default_factory=RetroConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    global_board: GlobalBoardConfig = Field(default_factory=GlobalBoardConfig)
