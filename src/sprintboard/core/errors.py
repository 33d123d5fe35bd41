"""Exception hierarchy for sprintboard.

Every module imports from here. The hierarchy is:

    SprintboardError
    ├── RequestError                      (400)
    │   ├── MissingFieldError(field)
    │   ├── NoActiveStoryError
    │   └── VotingClosedError
    ├── AdminTokenError                   (403)
    │   ├── AdminTokenRequiredError
    │   └── InvalidAdminTokenError
    ├── NotFoundError                     (404)
    │   ├── SessionNotFoundError(session_id)
    │   ├── NoActiveMeetingError
    │   ├── ColumnNotFoundError(column_id)
    │   └── ItemNotFoundError(item_id)
    ├── ConfigError
    └── StorageError

``status_code`` is read by the API error handler; errors without one
surface as 500.
"""

from __future__ import annotations


class SprintboardError(Exception):
    """Base exception for all sprintboard errors."""

    status_code: int = 500


# ─── Request Errors ───────────────────────────────────────────


class RequestError(SprintboardError):
    """The request cannot be served as sent."""

    status_code = 400


class MissingFieldError(RequestError):
    """A required field is missing or blank."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")


class NoActiveStoryError(RequestError):
    """The poker session has no active story to vote on."""

    def __init__(self, message: str = "No active story found") -> None:
        super().__init__(message)


class VotingClosedError(RequestError):
    """Votes were already revealed for the active story."""

    def __init__(self) -> None:
        super().__init__("Votes have already been revealed. Cannot vote now.")


# ─── Authorization Errors ─────────────────────────────────────


class AdminTokenError(SprintboardError):
    """Base for admin-token failures."""

    status_code = 403


class AdminTokenRequiredError(AdminTokenError):
    """No admin token was supplied for an admin-gated action."""

    def __init__(self) -> None:
        super().__init__("Admin token is required")


class InvalidAdminTokenError(AdminTokenError):
    """The supplied admin token does not match the session."""

    def __init__(self) -> None:
        super().__init__("Invalid admin token")


# ─── Not Found Errors ─────────────────────────────────────────


class NotFoundError(SprintboardError):
    """Base for missing rows."""

    status_code = 404


class SessionNotFoundError(NotFoundError):
    """No session with this public id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__("Session not found")


class NoActiveMeetingError(NotFoundError):
    """The retro session has no active meeting."""

    def __init__(self) -> None:
        super().__init__("No active retro meeting found")


class ColumnNotFoundError(NotFoundError):
    """Column does not exist in the session's active meeting."""

    def __init__(self, column_id: int) -> None:
        self.column_id = column_id
        super().__init__(f"Column not found: {column_id}")


class ItemNotFoundError(NotFoundError):
    """Item does not exist in the session's active meeting."""

    def __init__(self, item_id: int) -> None:
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(SprintboardError):
    """Invalid configuration."""


# ─── Storage Errors ───────────────────────────────────────────


class StorageError(SprintboardError):
    """Database layer error."""
