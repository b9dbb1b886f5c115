# src/intro_board/models/post.py
"""SQLAlchemy model for board posts."""

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from intro_board.db.session import Base


class PostStatus(str, Enum):
    """Stored moderation status.

    Deleted is not a status: a deleted post's row is removed. Being hidden by
    reports is not a status either; it is computed at read time.
    """

    PENDING = "pending"
    APPROVED = "approved"


def new_post_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


class Post(Base):
    """A single anonymous self-introduction."""

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("reports_count >= 0", name="ck_post_reports_count_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_post_id)
    nickname: Mapped[str] = mapped_column(Text, nullable=False, default="")
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    # Free-form handle or address; only shown on the public feed after a reveal.
    contact: Mapped[str] = mapped_column(Text, nullable=False, default="")
    intro: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[PostStatus] = mapped_column(
        SAEnum(
            PostStatus,
            name="post_status",
            native_enum=False,
            length=16,
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=PostStatus.PENDING,
        index=True,
    )
    reports_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
