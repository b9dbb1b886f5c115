# tests/v1/test_posts_api.py
"""Tests for the public post endpoints."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from fastapi import status

from intro_board.api.v1 import dependencies
from intro_board.services.throttle import SubmissionThrottle
from tests.conftest import VALID_SUBMISSION


def _submit(client, **overrides) -> str:
    response = client.post("/api/v1/posts", json={**VALID_SUBMISSION, **overrides})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["id"]


def _approve(client, headers, post_id: str) -> None:
    response = client.post(f"/api/v1/moderation/{post_id}/approve", headers=headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT


def test_submit_post_is_pending(client, admin_headers) -> None:
    response = client.post("/api/v1/posts", json=VALID_SUBMISSION)

    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["status"] == "pending"

    assert client.get("/api/v1/posts").json() == []
    queue = client.get("/api/v1/moderation/queue", headers=admin_headers).json()
    assert [post["id"] for post in queue] == [body["id"]]


def test_submit_ignores_client_status(client, admin_headers) -> None:
    """A client cannot self-approve or preload reports."""
    post_id = _submit(client, status="approved", reports_count=7, id="mine")

    assert post_id != "mine"
    assert client.get("/api/v1/posts").json() == []
    queue = client.get("/api/v1/moderation/queue", headers=admin_headers).json()
    assert queue[0]["status"] == "pending"
    assert queue[0]["reports_count"] == 0


def test_submit_accepts_numeric_string_age(client, admin_headers) -> None:
    _submit(client, age="18")

    queue = client.get("/api/v1/moderation/queue", headers=admin_headers).json()
    assert queue[0]["age"] == 18


def test_submit_rejections_name_the_problem(client) -> None:
    cases = [
        ({"age": 15}, "age_too_low", "age"),
        ({"age": "abc"}, "age_too_low", "age"),
        ({"nickname": "   "}, "missing_field", "nickname"),
        ({"intro": "   "}, "intro_invalid", "intro"),
        ({"intro": "x" * 201}, "intro_invalid", "intro"),
        ({"intro": "no 霸凌 please"}, "banned_content", "intro"),
        ({"agree": False}, "consent_required", "agree"),
    ]
    for overrides, kind, field in cases:
        response = client.post("/api/v1/posts", json={**VALID_SUBMISSION, **overrides})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY, overrides
        body = response.json()
        assert body["error"] == "SubmissionRejected"
        assert body["kind"] == kind
        assert body["field"] == field
        assert body["detail"]


def test_feed_hides_contact_until_revealed(client, admin_headers) -> None:
    post_id = _submit(client, contact="@vic")
    _approve(client, admin_headers, post_id)

    feed = client.get("/api/v1/posts").json()
    assert len(feed) == 1
    assert feed[0]["has_contact"] is True
    assert "contact" not in feed[0]

    response = client.post(f"/api/v1/posts/{post_id}/contact")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"id": post_id, "contact": "@vic"}


def test_contact_of_pending_post_is_not_revealed(client) -> None:
    post_id = _submit(client, contact="@vic")

    response = client.post(f"/api/v1/posts/{post_id}/contact")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_feed_is_newest_first(client, admin_headers) -> None:
    first = _submit(client, nickname="Ann")
    second = _submit(client, nickname="Bo")
    _approve(client, admin_headers, first)
    _approve(client, admin_headers, second)

    feed = client.get("/api/v1/posts").json()
    assert [post["id"] for post in feed] == [second, first]


def test_reports_hide_post_from_feed(client, admin_headers) -> None:
    post_id = _submit(client)
    _approve(client, admin_headers, post_id)

    for _ in range(3):
        response = client.post(f"/api/v1/posts/{post_id}/report")
        assert response.status_code == status.HTTP_202_ACCEPTED
        assert response.json() == {"id": post_id, "status": "reported"}

    assert client.get("/api/v1/posts").json() == []
    assert client.get("/api/v1/moderation/queue", headers=admin_headers).json() == []


def test_report_missing_post(client) -> None:
    response = client.post("/api/v1/posts/nope/report")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "NotFound"


def test_submission_cooldown(client, app) -> None:
    throttle = SubmissionThrottle(600)
    app.dependency_overrides[dependencies.get_throttle] = lambda: throttle

    _submit(client)
    response = client.post("/api/v1/posts", json=VALID_SUBMISSION)

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.json()["error"] == "SubmissionThrottled"
    assert 0 < int(response.headers["retry-after"]) <= 600

    other = client.post(
        "/api/v1/posts",
        json=VALID_SUBMISSION,
        headers={"X-Forwarded-For": "203.0.113.9"},
    )
    assert other.status_code == status.HTTP_201_CREATED


def test_rejected_submission_does_not_start_cooldown(client, app) -> None:
    throttle = SubmissionThrottle(600)
    app.dependency_overrides[dependencies.get_throttle] = lambda: throttle

    rejected = client.post("/api/v1/posts", json={**VALID_SUBMISSION, "age": 12})
    assert rejected.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    _submit(client)


def test_feed_stream_sends_snapshots(client, admin_headers) -> None:
    shown = _submit(client, nickname="Ann")
    _approve(client, admin_headers, shown)
    waiting = _submit(client, nickname="Bo")

    with client.websocket_connect("/api/v1/posts/stream") as websocket:
        initial = websocket.receive_json()
        assert initial["type"] == "snapshot"
        assert [post["id"] for post in initial["posts"]] == [shown]
        assert "contact" not in initial["posts"][0]

        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}

        _approve(client, admin_headers, waiting)
        update = websocket.receive_json()
        assert [post["id"] for post in update["posts"]] == [waiting, shown]


def test_null_fields_get_typed_rejections(client) -> None:
    """Missing values go through the admission rules in their usual order."""
    cases = [
        ({"age": 15, "intro": None}, "age_too_low"),
        ({"age": None}, "age_too_low"),
        ({"nickname": None, "contact": None}, "missing_field"),
        ({"intro": None}, "intro_invalid"),
        ({"agree": None}, "consent_required"),
    ]
    for overrides, kind in cases:
        response = client.post("/api/v1/posts", json={**VALID_SUBMISSION, **overrides})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY, overrides
        assert response.json()["kind"] == kind


def test_null_contact_is_accepted(client, admin_headers) -> None:
    _submit(client, contact=None)

    queue = client.get("/api/v1/moderation/queue", headers=admin_headers).json()
    assert queue[0]["contact"] == ""


@pytest.mark.asyncio
async def test_parallel_submissions_share_one_cooldown(app, override_services) -> None:
    throttle = SubmissionThrottle(600)
    app.dependency_overrides[dependencies.get_throttle] = lambda: throttle

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        responses = await asyncio.gather(
            *(client.post("/api/v1/posts", json=VALID_SUBMISSION) for _ in range(5))
        )

    codes = sorted(response.status_code for response in responses)
    assert codes == [201, 429, 429, 429, 429]
