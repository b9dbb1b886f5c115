# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from intro_board.api.v1 import dependencies
from intro_board.core.security import hash_password
from intro_board.db.session import Base
from intro_board.main import app as fastapi_app
from intro_board.repositories.post_store import SqlPostStore, StoreRules
from intro_board.services.access import AccessGate
from intro_board.services.identity import Identity, LocalIdentityProvider
from intro_board.services.moderation import ModerationEngine
from intro_board.services.throttle import SubmissionThrottle
from intro_board.services.validation import AdmissionPolicy, SubmissionCandidate

TEST_DB_URL = "sqlite://"
TEST_SECRET = "test-secret-key"

ADMIN_EMAIL = "mod@example.com"
ADMIN_PASSWORD = "correct horse battery staple"
OUTSIDER_EMAIL = "visitor@example.com"
OUTSIDER_PASSWORD = "not-a-moderator"

MIN_AGE = 16
MAX_INTRO_LEN = 200
AUTO_HIDE_THRESHOLD = 3
BANNED_WORDS = ("spam", "霸凌")


class StepClock:
    """Deterministic creation timestamps, one second apart."""

    def __init__(self, start: datetime | None = None) -> None:
        self._start = start or datetime(2026, 1, 1, tzinfo=UTC)
        self._ticks = count()

    def __call__(self) -> datetime:
        return self._start + timedelta(seconds=next(self._ticks))


@pytest.fixture()
def db_engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def policy() -> AdmissionPolicy:
    return AdmissionPolicy(
        min_age=MIN_AGE,
        max_intro_len=MAX_INTRO_LEN,
        banned_words=BANNED_WORDS,
        require_nickname=True,
    )


@pytest.fixture()
def gate() -> AccessGate:
    return AccessGate([ADMIN_EMAIL])


@pytest.fixture()
def admin() -> Identity:
    return Identity(email=ADMIN_EMAIL)


@pytest.fixture()
def outsider() -> Identity:
    return Identity(email=OUTSIDER_EMAIL)


@pytest.fixture()
def store(session_factory: sessionmaker[Session], gate: AccessGate) -> SqlPostStore:
    return SqlPostStore(
        session_factory,
        StoreRules(gate=gate, min_age=MIN_AGE),
        clock=StepClock(),
    )


@pytest.fixture()
def board(store: SqlPostStore, gate: AccessGate, policy: AdmissionPolicy) -> ModerationEngine:
    """Moderation engine wired to the in-memory store."""
    return ModerationEngine(
        store,
        gate,
        policy,
        auto_hide_threshold=AUTO_HIDE_THRESHOLD,
        mutation_timeout=5.0,
    )


@pytest.fixture()
def identity_provider() -> LocalIdentityProvider:
    return LocalIdentityProvider(
        {
            ADMIN_EMAIL: hash_password(ADMIN_PASSWORD),
            OUTSIDER_EMAIL: hash_password(OUTSIDER_PASSWORD),
        },
        secret_key=TEST_SECRET,
        expires_minutes=30,
    )


@pytest.fixture()
def throttle() -> SubmissionThrottle:
    return SubmissionThrottle(cooldown_seconds=0)


@pytest.fixture()
def make_candidate() -> Callable[..., SubmissionCandidate]:
    """Build a valid submission, overriding any field."""

    def _make(**overrides: Any) -> SubmissionCandidate:
        fields: dict[str, Any] = {
            "nickname": "Vic",
            "age": 20,
            "contact": "",
            "intro": "Hello",
            "agree": True,
        }
        fields.update(overrides)
        return SubmissionCandidate(**fields)

    return _make


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def override_services(
    app: FastAPI,
    board: ModerationEngine,
    gate: AccessGate,
    identity_provider: LocalIdentityProvider,
    throttle: SubmissionThrottle,
) -> Iterator[None]:
    overrides: dict[Callable[..., Any], Callable[[], Any]] = {
        dependencies.get_engine: lambda: board,
        dependencies.get_access_gate: lambda: gate,
        dependencies.get_identity_provider: lambda: identity_provider,
        dependencies.get_throttle: lambda: throttle,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI, override_services: None) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture()
def admin_headers(client: TestClient) -> dict[str, str]:
    """Authorization headers for the allow-listed moderator."""
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture()
def outsider_headers(client: TestClient) -> dict[str, str]:
    """Authorization headers for a signed-in account that is not a moderator."""
    return login(client, OUTSIDER_EMAIL, OUTSIDER_PASSWORD)


VALID_SUBMISSION: dict[str, Any] = {
    "nickname": "Vic",
    "age": 20,
    "intro": "Hello",
    "contact": "",
    "agree": True,
}
