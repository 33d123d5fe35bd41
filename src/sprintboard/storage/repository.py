"""Board repository -- CRUD for poker and retro rows.

All mutating methods add objects to the session and flush, but do NOT
commit.  The caller controls transaction boundaries via
``session.commit()``, so multi-step changes such as
deactivate-then-create land atomically.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import selectinload

from sprintboard.core.errors import StorageError
from sprintboard.storage.models import (
    PokerSession,
    RetroColumn,
    RetroItem,
    RetroMeeting,
    RetroSession,
    RevealState,
    Story,
    Vote,
    _utcnow,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


class BoardRepository:
    """Async repository for board state."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── Poker session ────────────────────────────────────────────

    async def create_poker_session(
        self, session_id: str, admin_token: str, *, is_open: bool = False
    ) -> PokerSession:
        """Insert a poker session row."""
        row = PokerSession(session_id=session_id, admin_token=admin_token, is_open=is_open)
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_poker_session(
        self, session_id: str, *, for_update: bool = False
    ) -> PokerSession | None:
        """Look up a poker session by public id.

        ``for_update`` takes a row lock so concurrent writers that scope
        to this session serialize (no-op on SQLite).
        """
        stmt = select(PokerSession).where(PokerSession.session_id == session_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def poker_session_exists(self, session_id: str) -> bool:
        stmt = select(PokerSession.id).where(PokerSession.session_id == session_id)
        result = await self._session.execute(stmt)
        return result.first() is not None

    # ── Story ────────────────────────────────────────────────────

    async def get_active_story(self, poker_session_pk: int) -> Story | None:
        """Newest active story for a session, or None."""
        stmt = (
            select(Story)
            .where(Story.poker_session_id == poker_session_pk, Story.is_active.is_(True))
            .order_by(Story.created_at.desc(), Story.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def deactivate_stories(self, poker_session_pk: int) -> int:
        """Mark every active story of a session inactive. Returns row count."""
        stmt = (
            update(Story)
            .where(Story.poker_session_id == poker_session_pk, Story.is_active.is_(True))
            .values(is_active=False, updated_at=_utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def create_story(self, poker_session_pk: int, description: str) -> Story:
        """Insert an active story. Callers deactivate the previous one first."""
        story = Story(
            poker_session_id=poker_session_pk,
            description=description.strip(),
            is_active=True,
        )
        self._session.add(story)
        await self._session.flush()
        return story

    async def list_stories(self, poker_session_pk: int) -> list[Story]:
        """All stories of a session, oldest first."""
        stmt = (
            select(Story)
            .where(Story.poker_session_id == poker_session_pk)
            .order_by(Story.created_at, Story.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # ── Vote ─────────────────────────────────────────────────────

    async def get_votes(self, story_id: int) -> list[Vote]:
        """All votes for a story, ordered chronologically."""
        stmt = (
            select(Vote)
            .where(Vote.story_id == story_id)
            .order_by(Vote.created_at, Vote.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert_vote(self, story_id: int, voter_name: str, vote_value: str) -> Vote:
        """Create or overwrite the vote keyed on ``(story_id, voter_name)``.

        A single ``INSERT .. ON CONFLICT DO UPDATE`` so two concurrent votes
        from one voter both succeed and the later write wins.
        """
        dialect = self._session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise StorageError(f"Vote upsert is not supported on {dialect}")
        now = _utcnow()
        stmt = insert(Vote).values(
            story_id=story_id,
            voter_name=voter_name.strip(),
            vote_value=vote_value,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Vote.story_id, Vote.voter_name],
            set_={"vote_value": stmt.excluded.vote_value, "updated_at": now},
        )
        result = await self._session.scalars(
            stmt.returning(Vote), execution_options={"populate_existing": True}
        )
        return result.one()

    async def delete_votes(self, story_id: int) -> int:
        """Bulk-delete the votes of a story. Returns row count."""
        result = await self._session.execute(delete(Vote).where(Vote.story_id == story_id))
        return result.rowcount or 0

    # ── Reveal state ─────────────────────────────────────────────

    async def find_reveal_state(self, story_id: int) -> RevealState | None:
        """Reveal gate for a story without creating it."""
        stmt = select(RevealState).where(RevealState.story_id == story_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_reveal_state(self, story_id: int) -> RevealState:
        """Load the reveal gate for a story, creating it unrevealed if absent."""
        state = await self.find_reveal_state(story_id)
        if state is None:
            state = RevealState(story_id=story_id, is_revealed=False)
            self._session.add(state)
            await self._session.flush()
        return state

    async def set_revealed(self, story_id: int, revealed: bool) -> RevealState:
        """Set the reveal flag and bump ``updated_at`` even if unchanged."""
        state = await self.get_reveal_state(story_id)
        state.is_revealed = revealed
        state.updated_at = _utcnow()
        await self._session.flush()
        return state

    # ── Retro session ────────────────────────────────────────────

    async def create_retro_session(
        self, session_id: str, admin_token: str, *, is_open: bool = False
    ) -> RetroSession:
        """Insert a retro session row."""
        row = RetroSession(session_id=session_id, admin_token=admin_token, is_open=is_open)
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_retro_session(
        self, session_id: str, *, for_update: bool = False
    ) -> RetroSession | None:
        """Look up a retro session by public id (optionally row-locked)."""
        stmt = select(RetroSession).where(RetroSession.session_id == session_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def retro_session_exists(self, session_id: str) -> bool:
        stmt = select(RetroSession.id).where(RetroSession.session_id == session_id)
        result = await self._session.execute(stmt)
        return result.first() is not None

    # ── Meeting ──────────────────────────────────────────────────

    def _meeting_tree(self):  # type: ignore[no-untyped-def]
        return (
            select(RetroMeeting)
            .options(selectinload(RetroMeeting.columns).selectinload(RetroColumn.items))
            .execution_options(populate_existing=True)
        )

    async def get_meeting(self, meeting_id: int) -> RetroMeeting | None:
        """Load a meeting with its ordered columns and items."""
        stmt = self._meeting_tree().where(RetroMeeting.id == meeting_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_meeting(self, retro_session_pk: int) -> RetroMeeting | None:
        """Newest active meeting of a session with its board, or None."""
        stmt = (
            self._meeting_tree()
            .where(
                RetroMeeting.retro_session_id == retro_session_pk,
                RetroMeeting.is_active.is_(True),
            )
            .order_by(RetroMeeting.created_at.desc(), RetroMeeting.id.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def deactivate_meetings(self, retro_session_pk: int) -> int:
        """Mark every active meeting of a session inactive. Returns row count."""
        stmt = (
            update(RetroMeeting)
            .where(
                RetroMeeting.retro_session_id == retro_session_pk,
                RetroMeeting.is_active.is_(True),
            )
            .values(is_active=False, updated_at=_utcnow())
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def create_meeting(
        self, retro_session_pk: int, title: str, column_titles: list[str]
    ) -> RetroMeeting:
        """Insert an active meeting with columns ordered 0..n-1."""
        meeting = RetroMeeting(
            retro_session_id=retro_session_pk,
            title=title.strip(),
            is_active=True,
            columns=[
                RetroColumn(title=t.strip(), order=i) for i, t in enumerate(column_titles)
            ],
        )
        self._session.add(meeting)
        await self._session.flush()
        loaded = await self.get_meeting(meeting.id)
        assert loaded is not None
        return loaded

    async def update_meeting_title(self, meeting: RetroMeeting, title: str) -> RetroMeeting:
        meeting.title = title.strip()
        meeting.updated_at = _utcnow()
        await self._session.flush()
        return meeting

    async def touch_meeting(self, meeting_id: int) -> None:
        """Bump a meeting's ``updated_at`` after a change to its board."""
        stmt = (
            update(RetroMeeting)
            .where(RetroMeeting.id == meeting_id)
            .values(updated_at=_utcnow())
        )
        await self._session.execute(stmt)

    # ── Column ───────────────────────────────────────────────────

    async def get_column(self, column_id: int) -> RetroColumn | None:
        return await self._session.get(RetroColumn, column_id)

    async def add_column(self, meeting_id: int, title: str) -> RetroColumn:
        """Append a column at ``max(order) + 1`` (0 for an empty meeting)."""
        stmt = select(func.max(RetroColumn.order)).where(
            RetroColumn.meeting_id == meeting_id
        )
        current = (await self._session.execute(stmt)).scalar()
        column = RetroColumn(
            meeting_id=meeting_id,
            title=title.strip(),
            order=0 if current is None else current + 1,
        )
        self._session.add(column)
        await self._session.flush()
        await self.touch_meeting(meeting_id)
        return column

    async def update_column(self, column: RetroColumn, title: str) -> RetroColumn:
        column.title = title.strip()
        await self._session.flush()
        await self.touch_meeting(column.meeting_id)
        return column

    async def delete_column(self, column: RetroColumn) -> None:
        """Delete a column; its items go with it via ``ON DELETE CASCADE``."""
        meeting_id = column.meeting_id
        await self._session.delete(column)
        await self._session.flush()
        await self.touch_meeting(meeting_id)

    # ── Item ─────────────────────────────────────────────────────

    async def get_item(self, item_id: int) -> RetroItem | None:
        return await self._session.get(RetroItem, item_id)

    async def add_item(
        self, meeting_id: int, column_id: int, content: str, author_name: str
    ) -> RetroItem:
        """Post an item to a column."""
        item = RetroItem(
            meeting_id=meeting_id,
            column_id=column_id,
            content=content.strip(),
            author_name=author_name.strip(),
        )
        self._session.add(item)
        await self._session.flush()
        await self.touch_meeting(meeting_id)
        return item

    async def update_item(self, item: RetroItem, content: str) -> RetroItem:
        item.content = content.strip()
        await self._session.flush()
        await self.touch_meeting(item.meeting_id)
        return item

    async def delete_item(self, item: RetroItem) -> None:
        meeting_id = item.meeting_id
        await self._session.delete(item)
        await self._session.flush()
        await self.touch_meeting(meeting_id)
