"""Configuration loading and validation."""

from sprintboard.config.loader import load_config
from sprintboard.config.schema import (
    APIConfig,
    DatabaseConfig,
    GlobalBoardConfig,
    LoggingConfig,
    PokerConfig,
    PollingConfig,
    RetroConfig,
    SprintboardConfig,
)

__all__ = [
    "APIConfig",
    "DatabaseConfig",
    "GlobalBoardConfig",
    "LoggingConfig",
    "PokerConfig",
    "PollingConfig",
    "RetroConfig",
    "SprintboardConfig",
    "load_config",
]
