"""Shared API dependencies: service singletons and the caller's identity."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from intro_board.core.settings import settings
from intro_board.db.session import SessionLocal
from intro_board.repositories.post_store import SqlPostStore, StoreRules
from intro_board.services.access import AccessGate
from intro_board.services.identity import AuthSession, Identity, LocalIdentityProvider
from intro_board.services.moderation import ModerationEngine
from intro_board.services.throttle import SubmissionThrottle

# Bearer tokens are optional: anonymous callers reach public endpoints too.
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_access_gate() -> AccessGate:
    return AccessGate(settings.admin_emails)


@lru_cache
def get_post_store() -> SqlPostStore:
    """Return the process-wide store; live subscriptions are tracked on it."""
    rules = StoreRules(gate=get_access_gate(), min_age=settings.min_age)
    return SqlPostStore(SessionLocal, rules)


@lru_cache
def get_engine() -> ModerationEngine:
    return ModerationEngine(
        get_post_store(),
        get_access_gate(),
        settings.admission_policy,
        auto_hide_threshold=settings.auto_hide_threshold,
        mutation_timeout=settings.mutation_timeout_seconds,
    )


@lru_cache
def get_identity_provider() -> LocalIdentityProvider:
    return LocalIdentityProvider(
        settings.admin_credentials,
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.access_token_expire_minutes,
    )


@lru_cache
def get_throttle() -> SubmissionThrottle:
    return SubmissionThrottle(settings.submit_cooldown_seconds, redis_url=settings.redis_url)


EngineDep = Annotated[ModerationEngine, Depends(get_engine)]
IdentityProviderDep = Annotated[LocalIdentityProvider, Depends(get_identity_provider)]
ThrottleDep = Annotated[SubmissionThrottle, Depends(get_throttle)]


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    return credentials.credentials if credentials is not None else None


async def get_current_session(
    token: Annotated[str | None, Depends(get_bearer_token)],
    provider: IdentityProviderDep,
) -> AuthSession | None:
    """Resolve the bearer token to a moderator session, if any."""
    return await provider.current_session(token)


async def get_current_identity(
    session: Annotated[AuthSession | None, Depends(get_current_session)],
) -> Identity | None:
    return session.identity if session is not None else None


def get_client_key(request: Request) -> str:
    """Identify an anonymous client for throttling purposes."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


BearerTokenDep = Annotated[str | None, Depends(get_bearer_token)]
CurrentSessionDep = Annotated[AuthSession | None, Depends(get_current_session)]
CurrentIdentityDep = Annotated[Identity | None, Depends(get_current_identity)]
ClientKeyDep = Annotated[str, Depends(get_client_key)]
