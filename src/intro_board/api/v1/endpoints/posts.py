# src/intro_board/api/v1/endpoints/posts.py
"""Public post endpoints: submit, feed, report, reveal contact."""

from fastapi import APIRouter, WebSocket, status

from intro_board.api.v1.dependencies import ClientKeyDep, EngineDep, ThrottleDep
from intro_board.api.v1.streaming import stream_snapshots
from intro_board.models.post import PostStatus
from intro_board.schemas.post import (
    ContactResponse,
    PostSubmission,
    PublicPost,
    ReportResponse,
    SubmissionResponse,
)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SubmissionResponse)
async def submit_post(
    payload: PostSubmission,
    engine: EngineDep,
    throttle: ThrottleDep,
    client_key: ClientKeyDep,
) -> SubmissionResponse:
    """Submit a self-introduction for review.

    The post is stored as pending with no reports, whatever the payload says.
    A rejected or failed submission does not use up the client's cooldown.
    """
    await throttle.claim(client_key)
    try:
        post_id = await engine.submit(payload.to_candidate())
    except Exception:
        await throttle.release(client_key)
        raise
    return SubmissionResponse(id=post_id, status=PostStatus.PENDING)


@router.get("", response_model=list[PublicPost])
async def list_feed(engine: EngineDep) -> list[PublicPost]:
    """Return the public feed, newest first, without contact details."""
    return [PublicPost.from_record(post) for post in await engine.list_approved()]


@router.post(
    "/{post_id}/report",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ReportResponse,
)
async def report_post(post_id: str, engine: EngineDep) -> ReportResponse:
    """Report a post. Enough reports hide it from the feed until a moderator acts."""
    await engine.report(post_id)
    return ReportResponse(id=post_id)


@router.post("/{post_id}/contact", response_model=ContactResponse)
async def reveal_contact(post_id: str, engine: EngineDep) -> ContactResponse:
    """Reveal the contact of a post on the public feed."""
    return ContactResponse(id=post_id, contact=await engine.reveal_contact(post_id))


@router.websocket("/stream")
async def feed_stream(websocket: WebSocket, engine: EngineDep) -> None:
    """Push the public feed to the client on every change."""
    await websocket.accept()
    stream = await engine.watch_approved()
    await stream_snapshots(
        websocket,
        stream,
        lambda posts: [PublicPost.from_record(post).model_dump(mode="json") for post in posts],
    )
