"""Websocket plumbing for live post snapshots."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from intro_board.services.streams import PostStream, Snapshot

logger = logging.getLogger(__name__)


async def _pump(websocket: WebSocket, stream: PostStream, render: Callable[[Snapshot], Any]) -> None:
    async for snapshot in stream:
        await websocket.send_json({"type": "snapshot", "posts": render(snapshot)})


async def stream_snapshots(
    websocket: WebSocket,
    stream: PostStream,
    render: Callable[[Snapshot], Any],
) -> None:
    """Forward snapshots from `stream` until the client disconnects.

    The client may send "ping" to get a pong back. The stream is cancelled
    when the socket closes.
    """
    pump = asyncio.create_task(_pump(websocket, stream, render))
    try:
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        logger.debug("Snapshot stream client disconnected")
    finally:
        stream.cancel()
        pump.cancel()
        try:
            await pump
        except asyncio.CancelledError:
            pass
        except (WebSocketDisconnect, RuntimeError) as exc:
            logger.debug("Snapshot stream closed while sending: %s", exc)
