"""Baseline schema: poker and retro boards.

Revision ID: 001
Revises:
Create Date: 2026-09-28
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: str | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "poker_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(16), nullable=False),
        sa.Column("admin_token", sa.String(64), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_poker_sessions_session_id", "poker_sessions", ["session_id"], unique=True
    )

    op.create_table(
        "stories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "poker_session_id",
            sa.Integer(),
            sa.ForeignKey("poker_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_stories_poker_session_id", "stories", ["poker_session_id"])
    op.create_index(
        "ix_stories_session_active", "stories", ["poker_session_id", "is_active"]
    )

    op.create_table(
        "votes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "story_id",
            sa.Integer(),
            sa.ForeignKey("stories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("voter_name", sa.String(100), nullable=False),
        sa.Column("vote_value", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_votes_story_id", "votes", ["story_id"])
    op.create_index(
        "ix_votes_story_voter", "votes", ["story_id", "voter_name"], unique=True
    )

    op.create_table(
        "reveal_states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "story_id",
            sa.Integer(),
            sa.ForeignKey("stories.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("is_revealed", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "retro_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.String(16), nullable=False),
        sa.Column("admin_token", sa.String(64), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_retro_sessions_session_id", "retro_sessions", ["session_id"], unique=True
    )

    op.create_table(
        "retro_meetings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "retro_session_id",
            sa.Integer(),
            sa.ForeignKey("retro_sessions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_retro_meetings_retro_session_id", "retro_meetings", ["retro_session_id"]
    )
    op.create_index(
        "ix_retro_meetings_session_active",
        "retro_meetings",
        ["retro_session_id", "is_active"],
    )

    op.create_table(
        "retro_columns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "meeting_id",
            sa.Integer(),
            sa.ForeignKey("retro_meetings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_retro_columns_meeting_id", "retro_columns", ["meeting_id"])

    op.create_table(
        "retro_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "column_id",
            sa.Integer(),
            sa.ForeignKey("retro_columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "meeting_id",
            sa.Integer(),
            sa.ForeignKey("retro_meetings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_name", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_retro_items_column_id", "retro_items", ["column_id"])
    op.create_index("ix_retro_items_meeting_id", "retro_items", ["meeting_id"])


def downgrade() -> None:
    op.drop_table("retro_items")
    op.drop_table("retro_columns")
    op.drop_table("retro_meetings")
    op.drop_table("retro_sessions")
    op.drop_table("reveal_states")
    op.drop_table("votes")
    op.drop_table("stories")
    op.drop_table("poker_sessions")
