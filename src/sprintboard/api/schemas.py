"""Shared wire models: camelCase JSON and ORM-to-response builders."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sprintboard.storage.models import to_epoch_ms

if TYPE_CHECKING:
    from sprintboard.storage.models import RetroColumn, RetroItem, RetroMeeting


class CamelModel(BaseModel):
    """Base for request and response bodies; fields travel as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(CamelModel):
    message: str


class CreateSessionResponse(CamelModel):
    session_id: str
    admin_token: str
    message: str = "Session created successfully"


class TokenCheckResponse(CamelModel):
    is_valid: bool


class AdminTokenBody(CamelModel):
    admin_token: str | None = None


# -- Retro board tree ----------------------------------------------------------


class RetroItemResponse(CamelModel):
    id: int
    column_id: int
    meeting_id: int
    content: str
    author_name: str
    created_at: int
    last_updated: int


class RetroColumnResponse(CamelModel):
    id: int
    meeting_id: int
    title: str
    order: int


class RetroBoardColumn(RetroColumnResponse):
    items: list[RetroItemResponse]


class RetroMeetingResponse(CamelModel):
    id: int
    title: str
    is_active: bool
    created_at: int
    last_updated: int
    column_count: int
    item_count: int
    columns: list[RetroBoardColumn]


def item_response(item: RetroItem) -> RetroItemResponse:
    return RetroItemResponse(
        id=item.id,
        column_id=item.column_id,
        meeting_id=item.meeting_id,
        content=item.content,
        author_name=item.author_name,
        created_at=to_epoch_ms(item.created_at),
        last_updated=to_epoch_ms(item.updated_at),
    )


def column_response(column: RetroColumn) -> RetroColumnResponse:
    return RetroColumnResponse(
        id=column.id,
        meeting_id=column.meeting_id,
        title=column.title,
        order=column.order,
    )


def meeting_response(meeting: RetroMeeting) -> RetroMeetingResponse:
    """Serialize a meeting whose columns and items are already loaded."""
    columns = [
        RetroBoardColumn(
            id=col.id,
            meeting_id=col.meeting_id,
            title=col.title,
            order=col.order,
            items=[item_response(i) for i in col.items],
        )
        for col in meeting.columns
    ]
    return RetroMeetingResponse(
        id=meeting.id,
        title=meeting.title,
        is_active=meeting.is_active,
        created_at=to_epoch_ms(meeting.created_at),
        last_updated=to_epoch_ms(meeting.updated_at),
        column_count=len(columns),
        item_count=sum(len(c.items) for c in columns),
        columns=columns,
    )
