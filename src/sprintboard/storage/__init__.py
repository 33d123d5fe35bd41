"""Board persistence."""

from sprintboard.storage.models import (
    Base,
    PokerSession,
    RetroColumn,
    RetroItem,
    RetroMeeting,
    RetroSession,
    RevealState,
    Story,
    Vote,
    to_epoch_ms,
)
from sprintboard.storage.repository import BoardRepository

__all__ = [
    "Base",
    "BoardRepository",
    "PokerSession",
    "RetroColumn",
    "RetroItem",
    "RetroMeeting",
    "RetroSession",
    "RevealState",
    "Story",
    "Vote",
    "to_epoch_ms",
]
