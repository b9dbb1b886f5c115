"""Moderator endpoints: pending queue and status transitions."""

from __future__ import annotations

from fastapi import APIRouter, Response, WebSocket, status

from intro_board.api.v1.dependencies import (
    CurrentIdentityDep,
    EngineDep,
    IdentityProviderDep,
)
from intro_board.api.v1.streaming import stream_snapshots
from intro_board.core.errors import Unauthorized
from intro_board.repositories.post_store import PostOrder
from intro_board.schemas.post import PostRecord

router = APIRouter(prefix="/moderation", tags=["moderation"])

# Websocket close code for a rejected moderator stream.
WS_CLOSE_UNAUTHORIZED = 4403


@router.get("/queue", response_model=list[PostRecord])
async def get_moderation_queue(
    engine: EngineDep,
    identity: CurrentIdentityDep,
    order: PostOrder = PostOrder.NEWEST_FIRST,
) -> list[PostRecord]:
    """Get posts waiting for review, newest first unless `order=oldest_first`."""
    engine.gate.require(identity)
    return await engine.list_pending(order)


@router.websocket("/queue/stream")
async def moderation_queue_stream(
    websocket: WebSocket,
    engine: EngineDep,
    provider: IdentityProviderDep,
    token: str | None = None,
) -> None:
    """Push the pending queue on every change; requires `?token=`."""
    session = await provider.current_session(token)
    if not engine.gate.is_authorized(session.identity if session else None):
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason=Unauthorized.message)
        return

    await websocket.accept()
    stream = await engine.watch_pending()
    await stream_snapshots(
        websocket,
        stream,
        lambda posts: [post.model_dump(mode="json") for post in posts],
    )


@router.post("/{post_id}/approve", status_code=status.HTTP_204_NO_CONTENT)
async def approve_post(post_id: str, engine: EngineDep, identity: CurrentIdentityDep) -> Response:
    await engine.approve(identity, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/unapprove", status_code=status.HTTP_204_NO_CONTENT)
async def unapprove_post(post_id: str, engine: EngineDep, identity: CurrentIdentityDep) -> Response:
    """Take an approved post off the feed and back into the queue."""
    await engine.unapprove(identity, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, engine: EngineDep, identity: CurrentIdentityDep) -> Response:
    """Permanently delete a post, pending or approved."""
    await engine.delete(identity, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
