"""Planning poker endpoints: sessions, story, votes, reveal, reset."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from sprintboard.api.schemas import (
    AdminTokenBody,
    CamelModel,
    CreateSessionResponse,
    TokenCheckResponse,
)
from sprintboard.boards.poker import PokerBoard
from sprintboard.core.errors import MissingFieldError, RequestError
from sprintboard.storage.models import to_epoch_ms

router = APIRouter(prefix="/api/poker-session", tags=["poker"])


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


# -- POST /api/poker-session/create --------------------------------------------


@router.post("/create", response_model=CreateSessionResponse)
async def create_session(request: Request) -> CreateSessionResponse:
    """Issue a session id and admin token. The token is shown only here."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        issued = await PokerBoard(session).create_session()
        await session.commit()
    return CreateSessionResponse(
        session_id=issued.session_id, admin_token=issued.admin_token
    )


# -- GET|POST /api/poker-session/{session_id} ----------------------------------


class StoryRef(CamelModel):
    id: int
    description: str


class PokerSessionResponse(CamelModel):
    session_id: str
    has_active_story: bool
    active_story: StoryRef | None
    is_admin: bool


@router.get("/{session_id}", response_model=PokerSessionResponse)
async def get_session(
    session_id: str,
    request: Request,
    admin_token: str | None = Query(default=None, alias="adminToken"),
) -> PokerSessionResponse:
    """Session info; 404 for an unknown session."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        info = await PokerBoard(session).get_session_info(session_id, admin_token)
    story = info.active_story
    return PokerSessionResponse(
        session_id=info.session_id,
        has_active_story=info.has_active_story,
        active_story=StoryRef(id=story.id, description=story.description)
        if story is not None
        else None,
        is_admin=info.is_admin,
    )


@router.post("/{session_id}", response_model=TokenCheckResponse)
async def check_admin_token(
    session_id: str,
    request: Request,
    body: AdminTokenBody | None = None,
    admin_token: str | None = Query(default=None, alias="adminToken"),
) -> TokenCheckResponse:
    """Check an admin token without running an action."""
    token = admin_token or (body.admin_token if body is not None else None)
    if not token:
        raise RequestError("Session ID and admin token are required")
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        is_valid = await PokerBoard(session).verify_admin(session_id, token)
    return TokenCheckResponse(is_valid=is_valid)


# -- GET|POST /api/poker-session/{session_id}/story ----------------------------


class StoryResponse(CamelModel):
    id: int | None
    description: str
    last_updated: int


class StoryCreateRequest(CamelModel):
    description: str | None = None
    admin_token: str | None = None


class StoryCreatedResponse(StoryResponse):
    message: str = "Story created successfully"


@router.get("/{session_id}/story", response_model=StoryResponse)
async def get_story(session_id: str, request: Request) -> StoryResponse:
    """Active story, or an empty story when there is none."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        story = await PokerBoard(session).get_active_story(session_id)
    if story is None:
        return StoryResponse(id=None, description="", last_updated=0)
    return StoryResponse(
        id=story.id,
        description=story.description,
        last_updated=to_epoch_ms(story.updated_at),
    )


@router.post("/{session_id}/story", response_model=StoryCreatedResponse)
async def create_story(
    session_id: str, body: StoryCreateRequest, request: Request
) -> StoryCreatedResponse:
    """Replace the active story (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = PokerBoard(session)
        await board.require_admin(session_id, body.admin_token)
        if _blank(body.description):
            raise MissingFieldError("description", "Story description is required")
        assert body.description is not None
        story = await board.create_story(session_id, body.description)
        await session.commit()
        return StoryCreatedResponse(
            id=story.id,
            description=story.description,
            last_updated=to_epoch_ms(story.updated_at),
        )


# -- GET|POST /api/poker-session/{session_id}/votes ----------------------------


class VotesResponse(CamelModel):
    votes: dict[str, str]
    is_revealed: bool
    last_updated: int
    vote_count: int


class VoteRequest(CamelModel):
    voter_name: str | None = None
    vote_value: str | int | float | None = None


class VoteAcceptedResponse(CamelModel):
    message: str = "Vote submitted successfully"
    voter_name: str
    vote_value: str


def _vote_text(value: str | int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@router.get("/{session_id}/votes", response_model=VotesResponse)
async def get_votes(session_id: str, request: Request) -> VotesResponse:
    """Votes of the active story with change indicators."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        snapshot = await PokerBoard(session).votes_snapshot(session_id)
    return VotesResponse(
        votes=snapshot.votes,
        is_revealed=snapshot.is_revealed,
        last_updated=snapshot.last_updated,
        vote_count=snapshot.vote_count,
    )


@router.post("/{session_id}/votes", response_model=VoteAcceptedResponse)
async def submit_vote(
    session_id: str, body: VoteRequest, request: Request
) -> VoteAcceptedResponse:
    """Cast or replace a vote on the active story."""
    if _blank(body.voter_name):
        raise MissingFieldError("voterName", "Voter name is required")
    if body.vote_value is None:
        raise MissingFieldError("voteValue", "Vote value is required")
    assert body.voter_name is not None
    voter_name = body.voter_name.strip()
    vote_value = _vote_text(body.vote_value)

    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        await PokerBoard(session).submit_vote(session_id, voter_name, vote_value)
        await session.commit()
    return VoteAcceptedResponse(voter_name=voter_name, vote_value=vote_value)


# -- POST /api/poker-session/{session_id}/reveal -------------------------------


class RevealResponse(CamelModel):
    message: str
    is_revealed: bool


@router.post("/{session_id}/reveal", response_model=RevealResponse)
async def reveal_votes(
    session_id: str, body: AdminTokenBody, request: Request
) -> RevealResponse:
    """Reveal votes (admin). Revealing twice succeeds."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = PokerBoard(session)
        await board.require_admin(session_id, body.admin_token)
        result = await board.reveal_votes(session_id)
        await session.commit()
    message = (
        "Votes are already revealed"
        if result.already_revealed
        else "Votes revealed successfully"
    )
    return RevealResponse(message=message, is_revealed=result.is_revealed)


# -- POST /api/poker-session/{session_id}/reset --------------------------------


class ResetResponse(CamelModel):
    message: str = "Votes reset successfully"
    last_updated: int
    is_revealed: bool = False


@router.post("/{session_id}/reset", response_model=ResetResponse)
async def reset_votes(
    session_id: str, body: AdminTokenBody, request: Request
) -> ResetResponse:
    """Delete the active story's votes and unreveal (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = PokerBoard(session)
        await board.require_admin(session_id, body.admin_token)
        last_updated = await board.reset_votes(session_id)
        await session.commit()
    return ResetResponse(last_updated=last_updated)


# -- POST /api/poker-session/{session_id}/new-story ----------------------------


class NewStoryRequest(CamelModel):
    description: str | None = None
    admin_token: str | None = None


class NewStoryResponse(CamelModel):
    message: str
    story_id: int | None = None
    description: str | None = None


@router.post(
    "/{session_id}/new-story",
    response_model=NewStoryResponse,
    response_model_exclude_none=True,
)
async def new_story(
    session_id: str, body: NewStoryRequest, request: Request
) -> NewStoryResponse:
    """Start a new round: new story plus reset, or just a reset (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = PokerBoard(session)
        await board.require_admin(session_id, body.admin_token)
        result = await board.new_story(session_id, body.description)
        await session.commit()
        if result.story is None:
            return NewStoryResponse(message="Votes reset for new story")
        return NewStoryResponse(
            message="New story created and votes reset",
            story_id=result.story.id,
            description=result.story.description,
        )
