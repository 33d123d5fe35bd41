"""Retrospective endpoints: sessions, meeting, columns, items."""

from __future__ import annotations

from fastapi import APIRouter, Query, Request

from sprintboard.api.schemas import (
    AdminTokenBody,
    CamelModel,
    CreateSessionResponse,
    MessageResponse,
    RetroColumnResponse,
    RetroItemResponse,
    RetroMeetingResponse,
    TokenCheckResponse,
    column_response,
    item_response,
    meeting_response,
)
from sprintboard.boards.retro import RetroBoard
from sprintboard.core.errors import MissingFieldError, RequestError

router = APIRouter(prefix="/api/retro-session", tags=["retro"])


def _board(request: Request, session) -> RetroBoard:  # type: ignore[no-untyped-def]
    retro = request.app.state.config.retro
    return RetroBoard(
        session,
        default_columns=retro.default_columns,
        default_title=retro.default_title,
    )


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def _resolve_id(body_value: int | None, query_value: str | None, field: str) -> int:
    """Pick an id from the body, else the query string; 400 if neither parses."""
    if body_value:
        return body_value
    try:
        parsed = int(query_value) if query_value else 0
    except ValueError:
        parsed = 0
    if not parsed:
        raise RequestError(f"Valid {field} is required")
    return parsed


# -- POST /api/retro-session/create --------------------------------------------


@router.post("/create", response_model=CreateSessionResponse)
async def create_session(request: Request) -> CreateSessionResponse:
    """Issue a session id and admin token. The token is shown only here."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        issued = await _board(request, session).create_session()
        await session.commit()
    return CreateSessionResponse(
        session_id=issued.session_id, admin_token=issued.admin_token
    )


# -- GET|POST /api/retro-session/{session_id} ----------------------------------


class RetroSessionResponse(CamelModel):
    session_id: str
    has_active_meeting: bool
    active_meeting: RetroMeetingResponse | None
    is_admin: bool


@router.get("/{session_id}", response_model=RetroSessionResponse)
async def get_session(
    session_id: str,
    request: Request,
    admin_token: str | None = Query(default=None, alias="adminToken"),
) -> RetroSessionResponse:
    """Session info with the active meeting tree; 404 for an unknown session."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        info = await _board(request, session).get_session_info(session_id, admin_token)
        meeting = info.active_meeting
        return RetroSessionResponse(
            session_id=info.session_id,
            has_active_meeting=info.has_active_meeting,
            active_meeting=meeting_response(meeting) if meeting is not None else None,
            is_admin=info.is_admin,
        )


@router.post("/{session_id}", response_model=TokenCheckResponse)
async def check_admin_token(
    session_id: str,
    request: Request,
    body: AdminTokenBody | None = None,
    admin_token: str | None = Query(default=None, alias="adminToken"),
) -> TokenCheckResponse:
    token = admin_token or (body.admin_token if body is not None else None)
    if not token:
        raise RequestError("Session ID and admin token are required")
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        is_valid = await _board(request, session).verify_admin(session_id, token)
    return TokenCheckResponse(is_valid=is_valid)


# -- GET|POST|PUT /api/retro-session/{session_id}/meeting ----------------------


class MeetingCreateRequest(CamelModel):
    columns: list[str] | None = None
    title: str | None = None
    admin_token: str | None = None


class MeetingTitleRequest(CamelModel):
    title: str | None = None
    admin_token: str | None = None


@router.get("/{session_id}/meeting", response_model=RetroMeetingResponse | None)
async def get_meeting(session_id: str, request: Request) -> RetroMeetingResponse | None:
    """Active meeting, or ``null``. Open sessions get a default meeting."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        meeting = await _board(request, session).get_active_meeting(
            session_id, provision=True
        )
        if meeting is None:
            return None
        await session.commit()
        return meeting_response(meeting)


@router.post("/{session_id}/meeting", response_model=RetroMeetingResponse)
async def create_meeting(
    session_id: str, body: MeetingCreateRequest, request: Request
) -> RetroMeetingResponse:
    """Replace the active meeting (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = _board(request, session)
        await board.require_admin(session_id, body.admin_token)
        meeting = await board.create_meeting(session_id, body.columns, body.title)
        await session.commit()
        return meeting_response(meeting)


@router.put("/{session_id}/meeting", response_model=RetroMeetingResponse)
async def update_meeting_title(
    session_id: str, body: MeetingTitleRequest, request: Request
) -> RetroMeetingResponse:
    """Rename the active meeting (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = _board(request, session)
        await board.require_admin(session_id, body.admin_token)
        if _blank(body.title):
            raise MissingFieldError("title", "Meeting title is required")
        assert body.title is not None
        meeting = await board.update_meeting_title(session_id, body.title)
        await session.commit()
        return meeting_response(meeting)


# -- POST|PUT|DELETE /api/retro-session/{session_id}/columns -------------------


class ColumnRequest(CamelModel):
    column_id: int | None = None
    title: str | None = None
    admin_token: str | None = None


@router.post("/{session_id}/columns", response_model=RetroColumnResponse)
async def add_column(
    session_id: str, body: ColumnRequest, request: Request
) -> RetroColumnResponse:
    """Append a column to the active meeting (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = _board(request, session)
        await board.require_admin(session_id, body.admin_token)
        if _blank(body.title):
            raise MissingFieldError("title", "Column title is required")
        assert body.title is not None
        column = await board.add_column(session_id, body.title)
        await session.commit()
        return column_response(column)


@router.put("/{session_id}/columns", response_model=RetroColumnResponse)
async def update_column(
    session_id: str, body: ColumnRequest, request: Request
) -> RetroColumnResponse:
    """Rename a column (admin)."""
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = _board(request, session)
        await board.require_admin(session_id, body.admin_token)
        if not body.column_id:
            raise MissingFieldError("columnId", "Column ID is required")
        if _blank(body.title):
            raise MissingFieldError("title", "Column title is required")
        assert body.title is not None
        column = await board.update_column(session_id, body.column_id, body.title)
        await session.commit()
        return column_response(column)


@router.delete("/{session_id}/columns", response_model=MessageResponse)
async def delete_column(
    session_id: str,
    request: Request,
    body: ColumnRequest | None = None,
    column_id: str | None = Query(default=None, alias="columnId"),
    admin_token: str | None = Query(default=None, alias="adminToken"),
) -> MessageResponse:
    """Delete a column and its items (admin). The id may come from the query."""
    body = body or ColumnRequest()
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        board = _board(request, session)
        await board.require_admin(session_id, body.admin_token or admin_token)
        target = _resolve_id(body.column_id, column_id, "column ID")
        await board.delete_column(session_id, target)
        await session.commit()
    return MessageResponse(message="Column deleted successfully")


# -- POST|PUT|DELETE /api/retro-session/{session_id}/items ---------------------


class ItemRequest(CamelModel):
    item_id: int | None = None
    column_id: int | None = None
    content: str | None = None
    author_name: str | None = None


@router.post("/{session_id}/items", response_model=RetroItemResponse)
async def add_item(
    session_id: str, body: ItemRequest, request: Request
) -> RetroItemResponse:
    """Post an item to a column of the active meeting."""
    if not body.column_id:
        raise MissingFieldError("columnId", "Column ID is required")
    if _blank(body.content):
        raise MissingFieldError("content", "Item content is required")
    if _blank(body.author_name):
        raise MissingFieldError("authorName", "Author name is required")
    assert body.content is not None and body.author_name is not None

    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        item = await _board(request, session).add_item(
            session_id, body.column_id, body.content, body.author_name
        )
        await session.commit()
        return item_response(item)


@router.put("/{session_id}/items", response_model=RetroItemResponse)
async def update_item(
    session_id: str, body: ItemRequest, request: Request
) -> RetroItemResponse:
    """Edit an item's content."""
    if not body.item_id:
        raise MissingFieldError("itemId", "Item ID is required")
    if _blank(body.content):
        raise MissingFieldError("content", "Item content is required")
    assert body.content is not None

    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        item = await _board(request, session).update_item(
            session_id, body.item_id, body.content
        )
        await session.commit()
        return item_response(item)


@router.delete("/{session_id}/items", response_model=MessageResponse)
async def delete_item(
    session_id: str,
    request: Request,
    body: ItemRequest | None = None,
    item_id: str | None = Query(default=None, alias="itemId"),
) -> MessageResponse:
    """Delete an item. The id may come from the body or the query string."""
    target = _resolve_id(body.item_id if body is not None else None, item_id, "item ID")
    db_factory = request.app.state.db_factory
    async with db_factory() as session:
        await _board(request, session).delete_item(session_id, target)
        await session.commit()
    return MessageResponse(message="Item deleted successfully")
