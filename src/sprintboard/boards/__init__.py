"""Board state managers: planning poker and retrospectives."""

from sprintboard.boards.poker import (
    NewStoryResult,
    PokerBoard,
    PokerSessionInfo,
    RevealResult,
    VotesSnapshot,
)
from sprintboard.boards.retro import RetroBoard, RetroSessionInfo
from sprintboard.boards.tokens import (
    GLOBAL_SESSION_ID,
    IssuedSession,
    generate_admin_token,
    generate_session_id,
    generate_unique_session_id,
)

__all__ = [
    "GLOBAL_SESSION_ID",
    "IssuedSession",
    "NewStoryResult",
    "PokerBoard",
    "PokerSessionInfo",
    "RetroBoard",
    "RetroSessionInfo",
    "RevealResult",
    "VotesSnapshot",
    "generate_admin_token",
    "generate_session_id",
    "generate_unique_session_id",
]
