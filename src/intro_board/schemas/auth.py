"""Moderator authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    email: str
    is_admin: bool


class SessionResponse(BaseModel):
    email: str
    is_admin: bool
    expires_at: datetime
