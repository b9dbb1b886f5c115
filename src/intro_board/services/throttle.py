"""Per-client cooldown between submissions."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from threading import Lock
from typing import Any

import redis.asyncio as redis

from intro_board.core.errors import SubmissionThrottled

logger = logging.getLogger(__name__)

_KEY_PREFIX = "intro-board:submit"


class SubmissionThrottle:
    """Allow one successful submission per client per cooldown window.

    A submission claims the window before it is processed, so parallel
    requests from one client cannot all slip through. If the submission then
    fails, the claim is released.

    Uses Redis when a URL is configured so the window holds across workers,
    and an in-process table otherwise. A Redis outage degrades to the
    in-process table rather than blocking submissions.
    """

    def __init__(
        self,
        cooldown_seconds: int,
        *,
        redis_url: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._redis: Any = redis.from_url(redis_url) if redis_url else None
        self._claimed_at: dict[str, float] = {}
        self._lock = Lock()

    async def claim(self, client_key: str) -> None:
        """Start the cooldown window for `client_key`.

        Raises:
            SubmissionThrottled: If the client already holds a window.
        """
        if self.cooldown_seconds <= 0:
            return
        if self._redis is not None:
            key = f"{_KEY_PREFIX}:{client_key}"
            try:
                if await self._redis.set(key, "1", nx=True, ex=self.cooldown_seconds):
                    return
                ttl = await self._redis.ttl(key)
                raise SubmissionThrottled(retry_after=max(int(ttl), 1))
            except redis.RedisError as exc:
                logger.warning("Redis unavailable for throttle, using local table: %s", exc)
                self._redis = None
        self._claim_local(client_key)

    async def release(self, client_key: str) -> None:
        """Give back a claim whose submission did not go through."""
        if self.cooldown_seconds <= 0:
            return
        if self._redis is not None:
            try:
                await self._redis.delete(f"{_KEY_PREFIX}:{client_key}")
                return
            except redis.RedisError as exc:
                logger.warning("Redis unavailable for throttle, using local table: %s", exc)
                self._redis = None
        with self._lock:
            self._claimed_at.pop(client_key, None)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()

    def _claim_local(self, client_key: str) -> None:
        with self._lock:
            now = self._clock()
            self._prune(now)
            claimed_at = self._claimed_at.get(client_key)
            if claimed_at is not None:
                remaining = self.cooldown_seconds - (now - claimed_at)
                raise SubmissionThrottled(retry_after=math.ceil(remaining))
            self._claimed_at[client_key] = now

    def _prune(self, now: float) -> None:
        # Caller holds the lock.
        expired = [
            key
            for key, claimed_at in self._claimed_at.items()
            if now - claimed_at >= self.cooldown_seconds
        ]
        for key in expired:
            del self._claimed_at[key]
