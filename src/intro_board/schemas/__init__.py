"""Pydantic schemas for the Intro Board API."""

from .auth import LoginRequest, LoginResponse, SessionResponse
from .post import (
    ContactResponse,
    PostRecord,
    PostSubmission,
    PublicPost,
    ReportResponse,
    SubmissionResponse,
)

__all__ = [
    "LoginRequest", "LoginResponse", "SessionResponse",
    "ContactResponse", "PostRecord", "PostSubmission", "PublicPost",
    "ReportResponse", "SubmissionResponse",
]
