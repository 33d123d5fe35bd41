"""Retrospective board state transitions.

A retro session holds at most one active meeting.  The facilitator owns
the meeting and its columns (admin token required); items are open to
every participant.  Column and item ids are only honoured inside the
session's active meeting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sprintboard.boards.tokens import (
    IssuedSession,
    generate_admin_token,
    generate_unique_session_id,
    tokens_match,
)
from sprintboard.config.schema import DEFAULT_MEETING_TITLE, DEFAULT_RETRO_COLUMNS
from sprintboard.core.errors import (
    AdminTokenRequiredError,
    ColumnNotFoundError,
    InvalidAdminTokenError,
    ItemNotFoundError,
    NoActiveMeetingError,
    SessionNotFoundError,
)
from sprintboard.storage.repository import BoardRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sprintboard.storage.models import RetroColumn, RetroItem, RetroMeeting, RetroSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetroSessionInfo:
    """Public view of a retro session."""

    session_id: str
    active_meeting: RetroMeeting | None
    is_admin: bool

    @property
    def has_active_meeting(self) -> bool:
        return self.active_meeting is not None


class RetroBoard:
    """Meeting, column and item state manager for retro sessions."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        default_columns: list[str] | None = None,
        default_title: str = DEFAULT_MEETING_TITLE,
    ) -> None:
        self._repo = BoardRepository(session)
        self._default_columns = list(default_columns or DEFAULT_RETRO_COLUMNS)
        self._default_title = default_title

    # ── Sessions and admin ───────────────────────────────────────

    async def create_session(
        self, *, session_id: str | None = None, is_open: bool = False
    ) -> IssuedSession:
        """Issue a new session id and admin token."""
        if session_id is None:
            session_id = await generate_unique_session_id(self._repo.retro_session_exists)
        admin_token = generate_admin_token()
        await self._repo.create_retro_session(session_id, admin_token, is_open=is_open)
        logger.info("Created retro session %s", session_id)
        return IssuedSession(session_id=session_id, admin_token=admin_token)

    async def get_session_info(
        self, session_id: str, admin_token: str | None = None
    ) -> RetroSessionInfo:
        """Session summary with the active meeting tree."""
        row = await self._repo.get_retro_session(session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        meeting = await self._repo.get_active_meeting(row.id)
        return RetroSessionInfo(
            session_id=row.session_id,
            active_meeting=meeting,
            is_admin=_is_admin(row, admin_token),
        )

    async def verify_admin(self, session_id: str, admin_token: str | None) -> bool:
        row = await self._repo.get_retro_session(session_id)
        if row is None:
            return False
        return _is_admin(row, admin_token)

    async def require_admin(self, session_id: str, admin_token: str | None) -> None:
        """Raise unless the caller may run admin actions on the session."""
        row = await self._repo.get_retro_session(session_id)
        if row is not None and row.is_open:
            return
        if not admin_token:
            raise AdminTokenRequiredError()
        if row is None or not tokens_match(row.admin_token, admin_token):
            raise InvalidAdminTokenError()

    # ── Meetings ─────────────────────────────────────────────────

    async def get_active_meeting(
        self, session_id: str, *, provision: bool = False
    ) -> RetroMeeting | None:
        """Newest active meeting with ordered columns and items.

        With ``provision``, an open session that has no meeting gets a
        default one.
        """
        row = await self._repo.get_retro_session(session_id)
        if row is None:
            return None
        meeting = await self._repo.get_active_meeting(row.id)
        if meeting is None and provision and row.is_open:
            meeting = await self.create_meeting(session_id)
        return meeting

    async def create_meeting(
        self,
        session_id: str,
        columns: list[str] | None = None,
        title: str | None = None,
    ) -> RetroMeeting:
        """Replace the active meeting.

        Empty *columns* fall back to the default columns and a blank
        *title* to the default title.  The session row is locked before
        prior meetings are deactivated.
        """
        row = await self._repo.get_retro_session(session_id, for_update=True)
        if row is None:
            raise SessionNotFoundError(session_id)
        column_titles = [c for c in (columns or []) if c and c.strip()] or self._default_columns
        meeting_title = title.strip() if title and title.strip() else self._default_title

        await self._repo.deactivate_meetings(row.id)
        meeting = await self._repo.create_meeting(row.id, meeting_title, column_titles)
        logger.info(
            "Session %s: new meeting %d with %d columns",
            session_id,
            meeting.id,
            len(column_titles),
        )
        return meeting

    async def update_meeting_title(self, session_id: str, title: str) -> RetroMeeting:
        meeting = await self._require_meeting(session_id)
        await self._repo.update_meeting_title(meeting, title)
        return await self._reload(meeting.id)

    # ── Columns ──────────────────────────────────────────────────

    async def add_column(self, session_id: str, title: str) -> RetroColumn:
        """Append a column to the active meeting."""
        meeting = await self._require_meeting(session_id)
        return await self._repo.add_column(meeting.id, title)

    async def update_column(self, session_id: str, column_id: int, title: str) -> RetroColumn:
        column = await self._scoped_column(session_id, column_id)
        return await self._repo.update_column(column, title)

    async def delete_column(self, session_id: str, column_id: int) -> None:
        """Delete a column together with its items."""
        column = await self._scoped_column(session_id, column_id)
        await self._repo.delete_column(column)

    # ── Items ────────────────────────────────────────────────────

    async def add_item(
        self, session_id: str, column_id: int, content: str, author_name: str
    ) -> RetroItem:
        column = await self._scoped_column(session_id, column_id)
        return await self._repo.add_item(column.meeting_id, column.id, content, author_name)

    async def update_item(self, session_id: str, item_id: int, content: str) -> RetroItem:
        item = await self._scoped_item(session_id, item_id)
        return await self._repo.update_item(item, content)

    async def delete_item(self, session_id: str, item_id: int) -> None:
        item = await self._scoped_item(session_id, item_id)
        await self._repo.delete_item(item)

    # ── Helpers ──────────────────────────────────────────────────

    async def _active_meeting_id(self, session_id: str) -> int | None:
        row = await self._repo.get_retro_session(session_id)
        if row is None:
            return None
        meeting = await self._repo.get_active_meeting(row.id)
        return meeting.id if meeting is not None else None

    async def _require_meeting(self, session_id: str) -> RetroMeeting:
        row = await self._repo.get_retro_session(session_id)
        meeting = await self._repo.get_active_meeting(row.id) if row is not None else None
        if meeting is None:
            raise NoActiveMeetingError()
        return meeting

    async def _reload(self, meeting_id: int) -> RetroMeeting:
        meeting = await self._repo.get_meeting(meeting_id)
        assert meeting is not None
        return meeting

    async def _scoped_column(self, session_id: str, column_id: int) -> RetroColumn:
        meeting_id = await self._active_meeting_id(session_id)
        column = await self._repo.get_column(column_id)
        if column is None or meeting_id is None or column.meeting_id != meeting_id:
            raise ColumnNotFoundError(column_id)
        return column

    async def _scoped_item(self, session_id: str, item_id: int) -> RetroItem:
        meeting_id = await self._active_meeting_id(session_id)
        item = await self._repo.get_item(item_id)
        if item is None or meeting_id is None or item.meeting_id != meeting_id:
            raise ItemNotFoundError(item_id)
        return item


def _is_admin(row: RetroSession, admin_token: str | None) -> bool:
    if row.is_open:
        return True
    return tokens_match(row.admin_token, admin_token)
