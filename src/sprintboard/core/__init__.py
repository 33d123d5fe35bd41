"""Core types, errors, and shared utilities."""

from sprintboard.core.errors import (
    AdminTokenError,
    AdminTokenRequiredError,
    ColumnNotFoundError,
    ConfigError,
    InvalidAdminTokenError,
    ItemNotFoundError,
    MissingFieldError,
    NoActiveMeetingError,
    NoActiveStoryError,
    NotFoundError,
    RequestError,
    SessionNotFoundError,
    SprintboardError,
    StorageError,
    VotingClosedError,
)

__all__ = [
    "AdminTokenError",
    "AdminTokenRequiredError",
    "ColumnNotFoundError",
    "ConfigError",
    "InvalidAdminTokenError",
    "ItemNotFoundError",
    "MissingFieldError",
    "NoActiveMeetingError",
    "NoActiveStoryError",
    "NotFoundError",
    "RequestError",
    "SessionNotFoundError",
    "SprintboardError",
    "StorageError",
    "VotingClosedError",
]
