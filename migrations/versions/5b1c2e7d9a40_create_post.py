"""create post table

Revision ID: 5b1c2e7d9a40
Revises:
Create Date: 2026-10-19 10:12:44.318201

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1c2e7d9a40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the post table."""
    op.create_table(
        "post",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("nickname", sa.Text(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("contact", sa.Text(), nullable=False),
        sa.Column("intro", sa.Text(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", name="post_status", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("reports_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("reports_count >= 0", name="ck_post_reports_count_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_status", "post", ["status"])
    op.create_index("ix_post_created_at", "post", ["created_at"])


def downgrade() -> None:
    """Drop the post table."""
    op.drop_index("ix_post_created_at", table_name="post")
    op.drop_index("ix_post_status", table_name="post")
    op.drop_table("post")
