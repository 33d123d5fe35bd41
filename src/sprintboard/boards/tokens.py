"""Session id and admin token issuance.

Session ids are short, shareable and uppercase; admin tokens are long
and mixed-case.  Both come from :mod:`secrets`.  The well-known open
board uses the lowercase id ``"global"``, which the generator can never
produce.
"""

from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

SESSION_ID_ALPHABET = string.ascii_uppercase + string.digits
ADMIN_TOKEN_ALPHABET = string.ascii_letters + string.digits
SESSION_ID_LENGTH = 8
ADMIN_TOKEN_LENGTH = 32

GLOBAL_SESSION_ID = "global"


@dataclass(frozen=True)
class IssuedSession:
    """Credentials handed out once, at session creation."""

    session_id: str
    admin_token: str


def _random_string(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_session_id() -> str:
    """Return an 8-character id drawn from ``A-Z0-9``."""
    return _random_string(SESSION_ID_ALPHABET, SESSION_ID_LENGTH)


def generate_admin_token() -> str:
    """Return a 32-character token drawn from ``A-Za-z0-9``."""
    return _random_string(ADMIN_TOKEN_ALPHABET, ADMIN_TOKEN_LENGTH)


async def generate_unique_session_id(
    exists: Callable[[str], Awaitable[bool]],
) -> str:
    """Draw session ids until *exists* reports one as free."""
    while True:
        candidate = generate_session_id()
        if not await exists(candidate):
            return candidate


def tokens_match(expected: str, supplied: str | None) -> bool:
    """Constant-time admin token comparison; ``None`` never matches."""
    if not supplied:
        return False
    return secrets.compare_digest(expected.encode(), supplied.encode())
