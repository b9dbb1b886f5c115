"""Database session configuration."""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from intro_board.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import intro_board.models  # noqa: E402,F401


def build_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shared with worker threads."""
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(url, pool_pre_ping=True, echo=echo, connect_args=connect_args)


engine = build_engine(settings.database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
