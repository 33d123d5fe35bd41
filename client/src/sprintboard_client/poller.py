"""Polling reconciliation for poker and retro boards.

A poller keeps a local view of one board eventually consistent with the
server.  Reconciliation state lives in an immutable dataclass and only
changes through the pure transition functions below, so the rules can
be tested without a clock or a network:

- a fetch result is applied only when its change indicator moved;
- the story is not polled while the user edits it, nor on the tick
  right after a local write;
- once votes are revealed they are only re-checked after a local
  reveal, reset or new story;
- a card selected but not yet submitted survives no-op polls and is
  dropped when an applied update shows a reveal or a reset.

Timers never wait for fetches.  Each resource key allows one
outstanding fetch; a tick that finds it busy skips that fetch, while
the refresh after a local write waits for it and then fetches again.
Every local write bumps a generation counter, and a response to a
fetch issued before the write is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import httpx

from sprintboard_client.client import SprintboardAPIError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sprintboard_client.client import (
        MeetingSnapshot,
        PokerSessionInfo,
        RetroSessionInfo,
        SprintboardClient,
        StorySnapshot,
        VotesSnapshot,
    )

logger = logging.getLogger(__name__)

GLOBAL_SESSION_ID = "global"
BOARD_INTERVAL = 2.0
SESSION_INTERVAL = 5.0

# Failures a poll tick logs and drops; the next tick retries.
POLL_ERRORS = (SprintboardAPIError, httpx.HTTPError)


def poll_interval(
    session_id: str,
    board_interval: float = BOARD_INTERVAL,
    session_interval: float = SESSION_INTERVAL,
) -> float:
    """Tick period: faster for the shared global board."""
    return board_interval if session_id == GLOBAL_SESSION_ID else session_interval


# ── Poker state ──────────────────────────────────────────────────


@dataclass(frozen=True)
class PokerPollState:
    last_vote_updated: int = 0
    last_vote_count: int = 0
    last_story_updated: int = 0
    last_story_id: int | None = None
    is_revealed: bool = False
    votes_check_needed: bool = False
    story_input_focused: bool = False
    skip_next_story_poll: bool = False
    pending_vote: str | None = None
    generation: int = 0


@dataclass(frozen=True)
class TickPlan:
    fetch_votes: bool
    fetch_story: bool


def _stale(state: PokerPollState, generation: int | None) -> bool:
    return generation is not None and generation < state.generation


def plan_tick(state: PokerPollState) -> tuple[TickPlan, PokerPollState]:
    """Decide what one tick fetches; consumes the one-shot story skip."""
    fetch_votes = not state.is_revealed or state.votes_check_needed
    fetch_story = not state.story_input_focused and not state.skip_next_story_poll
    if state.skip_next_story_poll and not state.story_input_focused:
        state = replace(state, skip_next_story_poll=False)
    return TickPlan(fetch_votes=fetch_votes, fetch_story=fetch_story), state


def apply_votes(
    state: PokerPollState,
    snapshot: VotesSnapshot,
    *,
    force: bool = False,
    generation: int | None = None,
) -> tuple[PokerPollState, bool]:
    """Fold a votes fetch into *state*. Returns ``(state, applied)``.

    *generation* is the state generation the fetch was issued at; a
    fetch older than the current generation is discarded untouched.
    """
    if _stale(state, generation):
        return state, False
    changed = (
        snapshot.last_updated != state.last_vote_updated
        or snapshot.vote_count != state.last_vote_count
    )
    if not (changed or force):
        return replace(state, votes_check_needed=False), False

    pending = state.pending_vote
    if snapshot.is_revealed or snapshot.vote_count == 0:
        pending = None
    return (
        replace(
            state,
            last_vote_updated=snapshot.last_updated,
            last_vote_count=snapshot.vote_count,
            is_revealed=snapshot.is_revealed,
            votes_check_needed=False,
            pending_vote=pending,
        ),
        True,
    )


def apply_story(
    state: PokerPollState,
    snapshot: StorySnapshot,
    *,
    force: bool = False,
    generation: int | None = None,
) -> tuple[PokerPollState, bool]:
    """Fold a story fetch into *state*. Returns ``(state, applied)``."""
    if _stale(state, generation):
        return state, False
    changed = (
        snapshot.last_updated != state.last_story_updated
        or snapshot.id != state.last_story_id
    )
    if not (changed or force):
        return state, False
    return (
        replace(
            state,
            last_story_updated=snapshot.last_updated,
            last_story_id=snapshot.id,
        ),
        True,
    )


def select_card(state: PokerPollState, value: str | None) -> PokerPollState:
    return replace(state, pending_vote=value)


def focus_story(state: PokerPollState, focused: bool) -> PokerPollState:
    return replace(state, story_input_focused=focused)


POKER_ACTIONS = frozenset({"vote", "story", "reveal", "reset", "new_story"})
_VOTE_RESETTING_ACTIONS = frozenset({"reveal", "reset", "new_story"})


def after_action(state: PokerPollState, action: str) -> PokerPollState:
    """State after a local mutating action succeeded."""
    if action not in POKER_ACTIONS:
        raise ValueError(f"Unknown poker action: {action}")
    state = replace(state, skip_next_story_poll=True, generation=state.generation + 1)
    if action in _VOTE_RESETTING_ACTIONS:
        state = replace(state, votes_check_needed=True)
    if action == "vote":
        state = replace(state, pending_vote=None)
    return state


# ── Retro state ──────────────────────────────────────────────────


@dataclass(frozen=True)
class RetroPollState:
    last_meeting_updated: int = 0
    last_meeting_id: int | None = None
    last_column_count: int = 0
    last_item_count: int = 0
    editing: bool = False
    skip_next_poll: bool = False


def plan_retro_tick(state: RetroPollState) -> tuple[bool, RetroPollState]:
    """Whether this tick fetches the meeting; consumes the one-shot skip."""
    if state.editing:
        return False, state
    if state.skip_next_poll:
        return False, replace(state, skip_next_poll=False)
    return True, state


def apply_meeting(
    state: RetroPollState, snapshot: MeetingSnapshot | None, *, force: bool = False
) -> tuple[RetroPollState, bool]:
    """Fold a meeting fetch into *state*. Returns ``(state, applied)``."""
    if snapshot is None:
        key: tuple[int | None, int, int, int] = (None, 0, 0, 0)
    else:
        key = (
            snapshot.id,
            snapshot.last_updated,
            snapshot.column_count,
            snapshot.item_count,
        )
    current = (
        state.last_meeting_id,
        state.last_meeting_updated,
        state.last_column_count,
        state.last_item_count,
    )
    if key == current and not force:
        return state, False
    meeting_id, updated, columns, items = key
    return (
        replace(
            state,
            last_meeting_id=meeting_id,
            last_meeting_updated=updated,
            last_column_count=columns,
            last_item_count=items,
        ),
        True,
    )


def set_editing(state: RetroPollState, editing: bool) -> RetroPollState:
    return replace(state, editing=editing)


def after_retro_action(state: RetroPollState) -> RetroPollState:
    return replace(state, skip_next_poll=True)


# ── Runtime ──────────────────────────────────────────────────────


class _Poller(ABC):
    """Timer, in-flight guard and task bookkeeping shared by both boards."""

    def __init__(
        self,
        client: SprintboardClient,
        session_id: str,
        *,
        interval: float | None = None,
        on_change: Callable[[Any], None] | None = None,
    ) -> None:
        self._client = client
        self.session_id = session_id
        self.interval = interval if interval is not None else poll_interval(session_id)
        self._on_change = on_change
        self._in_flight: dict[str, asyncio.Event] = {}
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[None]] = set()

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    async def _guarded(
        self, key: str, fetch: Callable[[], Awaitable[None]], *, wait: bool = False
    ) -> bool:
        """Run *fetch* once *key* is free.

        A busy *key* skips the fetch (returns False) unless *wait* is set,
        in which case the outstanding fetch finishes first.
        """
        while key in self._in_flight:
            if not wait:
                logger.debug("Skipping %s fetch for %s: in flight", key, self.session_id)
                return False
            await self._in_flight[key].wait()
        done = asyncio.Event()
        self._in_flight[key] = done
        try:
            await fetch()
        except POLL_ERRORS as e:
            logger.warning("Polling %s for %s failed: %s", key, self.session_id, e)
        finally:
            del self._in_flight[key]
            done.set()
        return True

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    @abstractmethod
    async def tick(self) -> None: ...

    def start(self) -> None:
        """Begin ticking on the running event loop."""
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            task = asyncio.create_task(self.tick())
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)

    async def stop(self) -> None:
        """Cancel the timer and any tick still running."""
        tasks = list(self._ticks)
        if self._timer is not None:
            tasks.append(self._timer)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None


class PokerPoller(_Poller):
    """Keeps story, votes and session info of one poker board current."""

    def __init__(
        self,
        client: SprintboardClient,
        session_id: str,
        *,
        interval: float | None = None,
        on_change: Callable[[Any], None] | None = None,
    ) -> None:
        super().__init__(client, session_id, interval=interval, on_change=on_change)
        self.state = PokerPollState()
        self.session: PokerSessionInfo | None = None
        self.story: StorySnapshot | None = None
        self.votes: VotesSnapshot | None = None

    # -- fetches ---------------------------------------------------------------

    async def _fetch_session(self) -> None:
        self.session = await self._client.poker_session(self.session_id)
        self._notify()

    async def _fetch_votes(self, *, force: bool = False) -> None:
        issued = self.state.generation
        snapshot = await self._client.votes(self.session_id)
        self.state, applied = apply_votes(self.state, snapshot, force=force, generation=issued)
        if applied:
            self.votes = snapshot
            self._notify()

    async def _fetch_story(self, *, force: bool = False) -> None:
        issued = self.state.generation
        snapshot = await self._client.story(self.session_id)
        self.state, applied = apply_story(self.state, snapshot, force=force, generation=issued)
        if applied:
            self.story = snapshot
            self._notify()

    async def mount(self) -> None:
        """First load: fetch everything and apply unconditionally."""
        await asyncio.gather(
            self._guarded("session", self._fetch_session),
            self._guarded("story", lambda: self._fetch_story(force=True)),
            self._guarded("votes", lambda: self._fetch_votes(force=True)),
        )

    async def tick(self) -> None:
        plan, self.state = plan_tick(self.state)
        fetches = []
        if plan.fetch_votes:
            fetches.append(self._guarded("votes", self._fetch_votes))
        if plan.fetch_story:
            fetches.append(self._guarded("story", self._fetch_story))
        await asyncio.gather(*fetches)

    async def refresh(self) -> None:
        """Out-of-band fetch of story and votes after a local write."""
        await asyncio.gather(
            self._guarded("votes", self._fetch_votes, wait=True),
            self._guarded("story", self._fetch_story, wait=True),
        )

    # -- local input -----------------------------------------------------------

    def select_card(self, value: str | None) -> None:
        self.state = select_card(self.state, value)

    def focus_story(self, focused: bool) -> None:
        self.state = focus_story(self.state, focused)

    # -- actions (errors propagate, state untouched on failure) ----------------

    async def _after(self, action: str) -> None:
        self.state = after_action(self.state, action)
        await self.refresh()

    async def submit_vote(self, voter_name: str) -> None:
        """Submit the selected card."""
        if self.state.pending_vote is None:
            raise ValueError("No card selected")
        await self._client.vote(self.session_id, voter_name, self.state.pending_vote)
        await self._after("vote")

    async def update_story(self, description: str, admin_token: str | None) -> None:
        await self._client.set_story(self.session_id, description, admin_token)
        await self._after("story")

    async def reveal(self, admin_token: str | None) -> None:
        await self._client.reveal(self.session_id, admin_token)
        await self._after("reveal")

    async def reset(self, admin_token: str | None) -> None:
        await self._client.reset(self.session_id, admin_token)
        await self._after("reset")

    async def new_story(
        self, admin_token: str | None, description: str | None = None
    ) -> None:
        await self._client.new_story(self.session_id, admin_token, description)
        await self._after("new_story")


class RetroPoller(_Poller):
    """Keeps the active meeting of one retro board current."""

    def __init__(
        self,
        client: SprintboardClient,
        session_id: str,
        *,
        interval: float | None = None,
        on_change: Callable[[Any], None] | None = None,
    ) -> None:
        super().__init__(client, session_id, interval=interval, on_change=on_change)
        self.state = RetroPollState()
        self.session: RetroSessionInfo | None = None
        self.meeting: MeetingSnapshot | None = None

    async def _fetch_session(self) -> None:
        self.session = await self._client.retro_session(self.session_id)
        self._notify()

    async def _fetch_meeting(self, *, force: bool = False) -> None:
        snapshot = await self._client.meeting(self.session_id)
        self.state, applied = apply_meeting(self.state, snapshot, force=force)
        if applied:
            self.meeting = snapshot
            self._notify()

    async def mount(self) -> None:
        await asyncio.gather(
            self._guarded("session", self._fetch_session),
            self._guarded("meeting", lambda: self._fetch_meeting(force=True)),
        )

    async def tick(self) -> None:
        fetch, self.state = plan_retro_tick(self.state)
        if fetch:
            await self._guarded("meeting", self._fetch_meeting)

    async def refresh(self) -> None:
        await self._guarded("meeting", self._fetch_meeting, wait=True)

    def set_editing(self, editing: bool) -> None:
        self.state = set_editing(self.state, editing)

    async def _after(self) -> None:
        self.state = after_retro_action(self.state)
        await self.refresh()

    async def add_item(self, column_id: int, content: str, author_name: str) -> None:
        await self._client.add_item(self.session_id, column_id, content, author_name)
        await self._after()

    async def edit_item(self, item_id: int, content: str) -> None:
        await self._client.edit_item(self.session_id, item_id, content)
        await self._after()

    async def delete_item(self, item_id: int) -> None:
        await self._client.delete_item(self.session_id, item_id)
        await self._after()

    async def add_column(self, title: str, admin_token: str | None) -> None:
        await self._client.add_column(self.session_id, title, admin_token)
        await self._after()

    async def rename_column(
        self, column_id: int, title: str, admin_token: str | None
    ) -> None:
        await self._client.rename_column(self.session_id, column_id, title, admin_token)
        await self._after()

    async def delete_column(self, column_id: int, admin_token: str | None) -> None:
        await self._client.delete_column(self.session_id, column_id, admin_token)
        await self._after()

    async def create_meeting(
        self,
        admin_token: str | None,
        *,
        columns: list[str] | None = None,
        title: str | None = None,
    ) -> None:
        await self._client.create_meeting(
            self.session_id, admin_token, columns=columns, title=title
        )
        await self._after()
