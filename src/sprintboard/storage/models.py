"""SQLAlchemy models for board persistence.

Poker: PokerSession -> Story -> Vote, with one RevealState per Story.
Retro: RetroSession -> RetroMeeting -> RetroColumn -> RetroItem.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    """Current UTC time for timestamps."""
    return datetime.now(UTC)


def to_epoch_ms(value: datetime | None) -> int:
    """Epoch milliseconds for a stored timestamp (naive values are UTC)."""
    if value is None:
        return 0
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


class Base(DeclarativeBase):
    """Declarative base for all sprintboard models."""


# ── Planning poker ───────────────────────────────────────────────


class PokerSession(Base):
    """A shareable poker board, addressed by its public ``session_id``."""

    __tablename__ = "poker_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    admin_token: Mapped[str] = mapped_column(String(64))
    is_open: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    stories: Mapped[list[Story]] = relationship(
        back_populates="poker_session",
        cascade="all, delete-orphan",
    )


class Story(Base):
    """A story up for estimation. At most one is active per session."""

    __tablename__ = "stories"
    __table_args__ = (
        Index("ix_stories_session_active", "poker_session_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    poker_session_id: Mapped[int] = mapped_column(
        ForeignKey("poker_sessions.id", ondelete="CASCADE"), index=True
    )
    description: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    poker_session: Mapped[PokerSession] = relationship(back_populates="stories")
    votes: Mapped[list[Vote]] = relationship(
        back_populates="story",
        cascade="all, delete-orphan",
    )
    reveal_state: Mapped[RevealState | None] = relationship(
        back_populates="story",
        cascade="all, delete-orphan",
        uselist=False,
    )


class Vote(Base):
    """One participant's card for a story."""

    __tablename__ = "votes"
    __table_args__ = (
        Index("ix_votes_story_voter", "story_id", "voter_name", unique=True),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    story_id: Mapped[int] = mapped_column(
        ForeignKey("stories.id", ondelete="CASCADE"), index=True
    )
    voter_name: Mapped[str] = mapped_column(String(100))
    vote_value: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    story: Mapped[Story] = relationship(back_populates="votes")


class RevealState(Base):
    """Reveal gate for a story; created lazily, unrevealed."""

    __tablename__ = "reveal_states"

    id: Mapped[int] = mapped_column(primary_key=True)
    story_id: Mapped[int] = mapped_column(
        ForeignKey("stories.id", ondelete="CASCADE"), unique=True
    )
    is_revealed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    story: Mapped[Story] = relationship(back_populates="reveal_state")


# ── Retrospective ────────────────────────────────────────────────


class RetroSession(Base):
    """A shareable retro board, addressed by its public ``session_id``."""

    __tablename__ = "retro_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(String(16), unique=True, index=True)
    admin_token: Mapped[str] = mapped_column(String(64))
    is_open: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    meetings: Mapped[list[RetroMeeting]] = relationship(
        back_populates="retro_session",
        cascade="all, delete-orphan",
    )


class RetroMeeting(Base):
    """One retrospective. At most one is active per session."""

    __tablename__ = "retro_meetings"
    __table_args__ = (
        Index("ix_retro_meetings_session_active", "retro_session_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    retro_session_id: Mapped[int] = mapped_column(
        ForeignKey("retro_sessions.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    # Touched on every column/item change; pollers compare against it.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    retro_session: Mapped[RetroSession] = relationship(back_populates="meetings")
    columns: Mapped[list[RetroColumn]] = relationship(
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="RetroColumn.order",
    )


class RetroColumn(Base):
    """An ordered column on a meeting board."""

    __tablename__ = "retro_columns"

    id: Mapped[int] = mapped_column(primary_key=True)
    meeting_id: Mapped[int] = mapped_column(
        ForeignKey("retro_meetings.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(200))
    order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    meeting: Mapped[RetroMeeting] = relationship(back_populates="columns")
    items: Mapped[list[RetroItem]] = relationship(
        back_populates="column",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [RetroItem.created_at, RetroItem.id],
    )


class RetroItem(Base):
    """A card posted to a column."""

    __tablename__ = "retro_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    column_id: Mapped[int] = mapped_column(
        ForeignKey("retro_columns.id", ondelete="CASCADE"), index=True
    )
    meeting_id: Mapped[int] = mapped_column(
        ForeignKey("retro_meetings.id", ondelete="CASCADE"), index=True
    )
    content: Mapped[str] = mapped_column(Text)
    author_name: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow
    )

    column: Mapped[RetroColumn] = relationship(back_populates="items")
