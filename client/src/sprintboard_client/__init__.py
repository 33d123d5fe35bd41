"""sprintboard-client -- Python client library for the sprintboard REST API."""

from sprintboard_client.client import (
    CreatedSession,
    MeetingSnapshot,
    SprintboardAPIError,
    SprintboardClient,
    StorySnapshot,
    VotesSnapshot,
)
from sprintboard_client.poller import (
    PokerPoller,
    PokerPollState,
    RetroPoller,
    RetroPollState,
)
from sprintboard_client.summary import VoteSummary, summarize_votes

__all__ = [
    "CreatedSession",
    "MeetingSnapshot",
    "PokerPollState",
    "PokerPoller",
    "RetroPollState",
    "RetroPoller",
    "SprintboardAPIError",
    "SprintboardClient",
    "StorySnapshot",
    "VoteSummary",
    "VotesSnapshot",
    "summarize_votes",
]
