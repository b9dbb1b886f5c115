"""Moderation engine: post lifecycle, standing queries and report policy."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from intro_board.core.errors import NotFound, SubmissionRejected, TransientStoreError
from intro_board.models.post import PostStatus
from intro_board.repositories.post_store import PostOrder, PostQuery, PostStore
from intro_board.schemas.post import PostRecord
from intro_board.services.access import AccessGate
from intro_board.services.identity import Identity
from intro_board.services.streams import PostStream, Snapshot
from intro_board.services.validation import (
    AdmissionPolicy,
    SubmissionCandidate,
    validate_submission,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

APPROVED_FEED = PostQuery(status=PostStatus.APPROVED, order=PostOrder.NEWEST_FIRST)
PENDING_QUEUE = PostQuery(status=PostStatus.PENDING, order=PostOrder.NEWEST_FIRST)


def is_publicly_visible(post: PostRecord, auto_hide_threshold: int) -> bool:
    """A post is on the public feed iff approved and under the report threshold."""
    return post.status is PostStatus.APPROVED and post.reports_count < auto_hide_threshold


class ModerationEngine:
    """Owns every state transition of a post.

    States are `pending` (initial) and `approved`; deletion removes the row.
    Reports never change the status. They only hide a post from the public
    feed once `auto_hide_threshold` is reached, so a moderator can still see
    and reverse it.
    """

    def __init__(
        self,
        store: PostStore,
        gate: AccessGate,
        policy: AdmissionPolicy,
        *,
        auto_hide_threshold: int = 3,
        mutation_timeout: float | None = 10.0,
    ) -> None:
        self.store = store
        self.gate = gate
        self.policy = policy
        self.auto_hide_threshold = auto_hide_threshold
        self.mutation_timeout = mutation_timeout

    async def submit(self, candidate: SubmissionCandidate) -> str:
        """Admit a submission into the moderation queue.

        Args:
            candidate: Raw submission fields.

        Returns:
            The id assigned by the store.

        Raises:
            SubmissionRejected: If the candidate fails admission; the store is not called.
            StoreUnavailable: If the store rejected or failed the create.
        """
        outcome = validate_submission(candidate, self.policy)
        if outcome.error is not None:
            raise SubmissionRejected(outcome.error)
        post = outcome.post
        if post is None:
            raise RuntimeError("Admission check returned neither a post nor an error")

        post_id = await self._bounded(
            self.store.create(
                {
                    "nickname": post.nickname,
                    "age": post.age,
                    "contact": post.contact,
                    "intro": post.intro,
                    "status": PostStatus.PENDING,
                    "reports_count": 0,
                }
            )
        )
        logger.info("Post %s submitted for review", post_id)
        return post_id

    async def watch_approved(self) -> PostStream:
        """Subscribe to the public feed, newest first, auto-hidden posts removed."""
        stream = PostStream(self._visible_only)
        stream.attach(await self.store.subscribe(APPROVED_FEED, stream.deliver))
        return stream

    async def watch_pending(self) -> PostStream:
        """Subscribe to the moderation queue, newest first.

        Callers must check the gate before exposing this stream.
        """
        stream = PostStream()
        stream.attach(await self.store.subscribe(PENDING_QUEUE, stream.deliver))
        return stream

    async def list_approved(self) -> list[PostRecord]:
        return self._visible_only(await self.store.query(APPROVED_FEED))

    async def list_pending(self, order: PostOrder = PostOrder.NEWEST_FIRST) -> list[PostRecord]:
        """Return the moderation queue; `OLDEST_FIRST` reviews in arrival order."""
        return await self.store.query(PostQuery(status=PostStatus.PENDING, order=order))

    async def approve(self, identity: Identity | None, post_id: str) -> None:
        await self._set_status(identity, post_id, PostStatus.APPROVED)

    async def unapprove(self, identity: Identity | None, post_id: str) -> None:
        """Pull an approved post back to pending; reversible."""
        await self._set_status(identity, post_id, PostStatus.PENDING)

    async def delete(self, identity: Identity | None, post_id: str) -> None:
        """Permanently remove a post.

        Raises:
            Unauthorized: If `identity` is not a moderator; nothing is touched.
            NotFound: If the post does not exist.
        """
        self.gate.require(identity)
        await self._bounded(self.store.delete(post_id, actor=identity))
        logger.info("Post %s deleted by %s", post_id, identity.email if identity else None)

    async def report(self, post_id: str) -> None:
        """Add one report to a post. Anyone may call this."""
        post = await self._bounded(self.store.increment(post_id, "reports_count", 1))
        if post.status is PostStatus.APPROVED and post.reports_count == self.auto_hide_threshold:
            logger.info(
                "Post %s reached %d reports and is hidden from the feed",
                post_id,
                post.reports_count,
            )

    async def reveal_contact(self, post_id: str) -> str:
        """Return the contact of a post currently on the public feed.

        Raises:
            NotFound: If the post is missing, pending or auto-hidden.
        """
        post = await self.store.get(post_id)
        if post is None or not is_publicly_visible(post, self.auto_hide_threshold):
            raise NotFound()
        return post.contact

    async def _set_status(
        self, identity: Identity | None, post_id: str, status: PostStatus
    ) -> None:
        self.gate.require(identity)
        await self._bounded(self.store.update(post_id, {"status": status}, actor=identity))
        logger.info(
            "Post %s set to %s by %s",
            post_id,
            status.value,
            identity.email if identity else None,
        )

    def _visible_only(self, snapshot: Snapshot) -> Snapshot:
        return [post for post in snapshot if is_publicly_visible(post, self.auto_hide_threshold)]

    async def _bounded(self, call: Awaitable[T]) -> T:
        if self.mutation_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self.mutation_timeout)
        except TimeoutError as err:
            logger.warning("Store call timed out after %.1fs", self.mutation_timeout)
            raise TransientStoreError() from err
