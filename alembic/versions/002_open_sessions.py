"""Open sessions: ``is_open`` on poker and retro sessions.

Revision ID: 002
Revises: 001
Create Date: 2026-10-06
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: tuple[str, ...] | None = None
depends_on: str | None = None


def upgrade() -> None:
    for table in ("poker_sessions", "retro_sessions"):
        with op.batch_alter_table(table) as batch_op:
            batch_op.add_column(
                sa.Column(
                    "is_open",
                    sa.Boolean(),
                    nullable=False,
                    server_default=sa.false(),
                )
            )


def downgrade() -> None:
    for table in ("poker_sessions", "retro_sessions"):
        with op.batch_alter_table(table) as batch_op:
            batch_op.drop_column("is_open")
