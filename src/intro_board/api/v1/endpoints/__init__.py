"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .moderation import router as moderation_router
from .posts import router as posts_router

__all__ = [
    "auth_router",
    "posts_router",
    "moderation_router",
]
