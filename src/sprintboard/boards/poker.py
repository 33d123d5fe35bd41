"""Planning poker state transitions.

A poker session holds at most one active story.  Participants vote on
it until the facilitator reveals; after a reveal no vote is accepted
until the votes are reset.  Every method works inside the caller's
``AsyncSession`` and flushes without committing, so a route commits
once per request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sprintboard.boards.tokens import (
    IssuedSession,
    generate_admin_token,
    generate_unique_session_id,
    tokens_match,
)
from sprintboard.core.errors import (
    AdminTokenRequiredError,
    InvalidAdminTokenError,
    NoActiveStoryError,
    SessionNotFoundError,
    VotingClosedError,
)
from sprintboard.storage.models import to_epoch_ms
from sprintboard.storage.repository import BoardRepository

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sprintboard.storage.models import PokerSession, Story

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PokerSessionInfo:
    """Public view of a poker session."""

    session_id: str
    active_story: Story | None
    is_admin: bool

    @property
    def has_active_story(self) -> bool:
        return self.active_story is not None


@dataclass(frozen=True)
class VotesSnapshot:
    """Votes of the active story plus change indicators."""

    votes: dict[str, str] = field(default_factory=dict)
    is_revealed: bool = False
    last_updated: int = 0

    @property
    def vote_count(self) -> int:
        return len(self.votes)


@dataclass(frozen=True)
class RevealResult:
    is_revealed: bool
    already_revealed: bool


@dataclass(frozen=True)
class NewStoryResult:
    """Outcome of a new-story action; ``story`` is None for a plain reset."""

    story: Story | None
    last_updated: int


class PokerBoard:
    """Vote and story state manager for planning poker sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self._repo = BoardRepository(session)

    # ── Sessions and admin ───────────────────────────────────────

    async def create_session(
        self, *, session_id: str | None = None, is_open: bool = False
    ) -> IssuedSession:
        """Issue a new session id and admin token."""
        if session_id is None:
            session_id = await generate_unique_session_id(self._repo.poker_session_exists)
        admin_token = generate_admin_token()
        await self._repo.create_poker_session(session_id, admin_token, is_open=is_open)
        logger.info("Created poker session %s", session_id)
        return IssuedSession(session_id=session_id, admin_token=admin_token)

    async def get_session_info(
        self, session_id: str, admin_token: str | None = None
    ) -> PokerSessionInfo:
        """Session summary; raises :class:`SessionNotFoundError`."""
        row = await self._repo.get_poker_session(session_id)
        if row is None:
            raise SessionNotFoundError(session_id)
        story = await self._repo.get_active_story(row.id)
        return PokerSessionInfo(
            session_id=row.session_id,
            active_story=story,
            is_admin=_is_admin(row, admin_token),
        )

    async def verify_admin(self, session_id: str, admin_token: str | None) -> bool:
        """True when *admin_token* opens this session (always for open ones)."""
        row = await self._repo.get_poker_session(session_id)
        if row is None:
            return False
        return _is_admin(row, admin_token)

    async def require_admin(self, session_id: str, admin_token: str | None) -> None:
        """Raise unless the caller may run admin actions on the session."""
        row = await self._repo.get_poker_session(session_id)
        if row is not None and row.is_open:
            return
        if not admin_token:
            raise AdminTokenRequiredError()
        if row is None or not tokens_match(row.admin_token, admin_token):
            raise InvalidAdminTokenError()

    # ── Stories ──────────────────────────────────────────────────

    async def get_active_story(self, session_id: str) -> Story | None:
        """Newest active story of the session, or None."""
        row = await self._repo.get_poker_session(session_id)
        if row is None:
            return None
        return await self._repo.get_active_story(row.id)

    async def create_story(self, session_id: str, description: str) -> Story:
        """Replace the active story.

        The owning session row is locked first, so concurrent creators
        serialize and the session ends up with exactly one active story.
        """
        row = await self._repo.get_poker_session(session_id, for_update=True)
        if row is None:
            raise SessionNotFoundError(session_id)
        await self._repo.deactivate_stories(row.id)
        story = await self._repo.create_story(row.id, description)
        logger.info("Session %s: new story %d", session_id, story.id)
        return story

    # ── Votes ────────────────────────────────────────────────────

    async def submit_vote(self, session_id: str, voter_name: str, vote_value: str) -> None:
        """Record or overwrite *voter_name*'s card on the active story."""
        story = await self.get_active_story(session_id)
        if story is None:
            raise NoActiveStoryError(
                "No active story. Please wait for admin to create a story."
            )
        state = await self._repo.find_reveal_state(story.id)
        if state is not None and state.is_revealed:
            raise VotingClosedError()
        await self._repo.upsert_vote(story.id, voter_name, vote_value)

    async def reveal_votes(self, session_id: str) -> RevealResult:
        """Reveal the active story's votes. Revealing twice is a no-op."""
        story = await self.get_active_story(session_id)
        if story is None:
            raise NoActiveStoryError()
        state = await self._repo.get_reveal_state(story.id)
        if state.is_revealed:
            return RevealResult(is_revealed=True, already_revealed=True)
        await self._repo.set_revealed(story.id, True)
        return RevealResult(is_revealed=True, already_revealed=False)

    async def reset_votes(self, session_id: str) -> int:
        """Clear the active story's votes and unreveal. Returns ``lastUpdated``."""
        story = await self.get_active_story(session_id)
        if story is None:
            raise NoActiveStoryError()
        return await self._reset_story(story.id)

    async def new_story(
        self, session_id: str, description: str | None = None
    ) -> NewStoryResult:
        """Start a fresh round.

        With a description, a new story replaces the active one; without,
        the active story's votes are reset (nothing happens if there is
        no active story).
        """
        if description and description.strip():
            story = await self.create_story(session_id, description)
            last_updated = await self._reset_story(story.id)
            return NewStoryResult(story=story, last_updated=last_updated)

        current = await self.get_active_story(session_id)
        if current is None:
            return NewStoryResult(story=None, last_updated=0)
        return NewStoryResult(story=None, last_updated=await self._reset_story(current.id))

    async def votes_snapshot(self, session_id: str) -> VotesSnapshot:
        """Votes of the active story; an empty snapshot when there is none."""
        story = await self.get_active_story(session_id)
        if story is None:
            return VotesSnapshot()

        votes = await self._repo.get_votes(story.id)
        state = await self._repo.find_reveal_state(story.id)
        newest_vote = max((to_epoch_ms(v.updated_at) for v in votes), default=0)
        reveal_updated = to_epoch_ms(state.updated_at) if state is not None else 0
        return VotesSnapshot(
            votes={v.voter_name: v.vote_value for v in votes},
            is_revealed=state.is_revealed if state is not None else False,
            last_updated=max(newest_vote, reveal_updated),
        )

    async def _reset_story(self, story_id: int) -> int:
        await self._repo.delete_votes(story_id)
        state = await self._repo.set_revealed(story_id, False)
        return to_epoch_ms(state.updated_at)


def _is_admin(row: PokerSession, admin_token: str | None) -> bool:
    if row.is_open:
        return True
    return tokens_match(row.admin_token, admin_token)
