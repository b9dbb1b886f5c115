"""Cancellable async streams of post snapshots."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import TracebackType

from intro_board.schemas.post import PostRecord

Snapshot = list[PostRecord]

_CLOSED = object()


class PostStream:
    """Async iterator over full snapshots of a live query.

    Each item is the complete, already-filtered list for that moment, not a
    diff. Only the newest undelivered snapshot is kept: a slow reader skips
    intermediate states and always catches up to the latest one.

    Iteration runs until `cancel()` is called. Use it from any task:

        async with await engine.watch_approved() as stream:
            async for posts in stream:
                ...
    """

    def __init__(self, transform: Callable[[Snapshot], Snapshot] | None = None) -> None:
        self._transform = transform
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        self._dispose: Callable[[], None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, snapshot: Snapshot) -> None:
        """Store callback: queue a snapshot for the consumer."""
        if self._closed:
            return
        if self._transform is not None:
            snapshot = self._transform(snapshot)
        self._put_latest(snapshot)

    def attach(self, dispose: Callable[[], None]) -> None:
        if self._closed:
            dispose()
            return
        self._dispose = dispose

    def cancel(self) -> None:
        """Stop delivery and release the underlying subscription."""
        if self._closed:
            return
        self._closed = True
        if self._dispose is not None:
            self._dispose()
            self._dispose = None
        self._put_latest(_CLOSED)

    def _put_latest(self, item: object) -> None:
        while True:
            try:
                self._queue.put_nowait(item)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()

    def __aiter__(self) -> PostStream:
        return self

    async def __anext__(self) -> Snapshot:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def next_snapshot(self, timeout: float | None = None) -> Snapshot:
        """Wait for the next snapshot, optionally bounded by `timeout` seconds."""
        return await asyncio.wait_for(self.__anext__(), timeout)

    async def __aenter__(self) -> PostStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cancel()
