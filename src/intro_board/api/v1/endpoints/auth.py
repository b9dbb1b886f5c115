# src/intro_board/api/v1/endpoints/auth.py
"""Moderator authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from intro_board.api.v1.dependencies import (
    BearerTokenDep,
    CurrentSessionDep,
    EngineDep,
    IdentityProviderDep,
)
from intro_board.schemas.auth import LoginRequest, LoginResponse, SessionResponse

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    provider: IdentityProviderDep,
    engine: EngineDep,
) -> LoginResponse:
    """Exchange moderator credentials for a bearer token.

    Signing in does not by itself grant access; privileged calls check the
    admin allow-list every time.
    """
    session = await provider.authenticate(payload.email, payload.password)
    return LoginResponse(
        access_token=session.token,
        expires_at=session.expires_at,
        email=session.identity.email,
        is_admin=engine.gate.is_authorized(session.identity),
    )


@router.get("/session", response_model=SessionResponse)
async def current_session(session: CurrentSessionDep, engine: EngineDep) -> SessionResponse:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    return SessionResponse(
        email=session.identity.email,
        is_admin=engine.gate.is_authorized(session.identity),
        expires_at=session.expires_at,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(token: BearerTokenDep, provider: IdentityProviderDep) -> Response:
    if token:
        await provider.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
