"""Moderator identity: credential exchange and session state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from jose import JWTError

from intro_board.core.errors import AuthenticationFailed
from intro_board.core.security import (
    create_access_token,
    decode_access_token,
    verify_password,
)
from intro_board.services.access import normalize_email

logger = logging.getLogger(__name__)

Cancel = Callable[[], None]
SessionListener = Callable[["AuthSession | None"], None]


@dataclass(frozen=True)
class Identity:
    """The authenticated principal; only the email claim matters."""

    email: str


@dataclass(frozen=True)
class AuthSession:
    token: str
    identity: Identity
    expires_at: datetime
    session_id: str


class IdentityProvider(Protocol):
    """Contract the board needs from an identity service."""

    async def authenticate(self, email: str, password: str) -> AuthSession: ...

    async def current_session(self, token: str | None) -> AuthSession | None: ...

    def on_session_change(self, callback: SessionListener) -> Cancel: ...

    async def sign_out(self, token: str) -> None: ...


class LocalIdentityProvider:
    """Email/password identity backed by configured credentials and JWTs.

    Credentials map an email to a `hash_password` hash. Sessions are signed
    JWTs; signing out revokes the token's `jti` for the life of the process.
    """

    def __init__(
        self,
        credentials: Mapping[str, str],
        *,
        secret_key: str,
        algorithm: str = "HS256",
        expires_minutes: int = 60 * 12,
    ) -> None:
        self._credentials = {normalize_email(email): hashed for email, hashed in credentials.items()}
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_minutes = expires_minutes
        self._revoked: set[str] = set()
        self._listeners: list[SessionListener] = []

    async def authenticate(self, email: str, password: str) -> AuthSession:
        """Exchange credentials for a session.

        Raises:
            AuthenticationFailed: If the email is unknown or the password is wrong.
        """
        normalized = normalize_email(email)
        hashed = self._credentials.get(normalized)
        if hashed is None or not await asyncio.to_thread(verify_password, password, hashed):
            logger.info("Rejected login attempt for %s", normalized or "<empty>")
            raise AuthenticationFailed()

        token, jti, expires_at = create_access_token(
            normalized,
            secret_key=self._secret_key,
            algorithm=self._algorithm,
            expires_minutes=self._expires_minutes,
            extra_claims={"email": normalized},
        )
        session = AuthSession(
            token=token,
            identity=Identity(email=normalized),
            expires_at=expires_at,
            session_id=jti,
        )
        logger.info("Moderator %s signed in", normalized)
        self._notify(session)
        return session

    async def current_session(self, token: str | None) -> AuthSession | None:
        """Resolve a bearer token to its session, or None if it is not valid."""
        if not token:
            return None
        try:
            payload = decode_access_token(
                token,
                secret_key=self._secret_key,
                algorithm=self._algorithm,
            )
        except JWTError:
            return None

        jti = payload.get("jti")
        email = payload.get("email") or payload.get("sub")
        exp = payload.get("exp")
        if not jti or not email or exp is None or jti in self._revoked:
            return None
        return AuthSession(
            token=token,
            identity=Identity(email=normalize_email(email)),
            expires_at=datetime.fromtimestamp(int(exp), UTC),
            session_id=jti,
        )

    def on_session_change(self, callback: SessionListener) -> Cancel:
        """Register `callback` for sign-in/sign-out events; returns a disposer."""
        self._listeners.append(callback)

        def cancel() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return cancel

    async def sign_out(self, token: str) -> None:
        session = await self.current_session(token)
        if session is None:
            return
        self._revoked.add(session.session_id)
        logger.info("Moderator %s signed out", session.identity.email)
        self._notify(None)

    def _notify(self, session: AuthSession | None) -> None:
        for listener in list(self._listeners):
            listener(session)
