"""SQLAlchemy models for the Intro Board application."""

from .post import Post, PostStatus

__all__ = ["Post", "PostStatus"]
