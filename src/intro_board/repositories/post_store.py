"""Durable post storage with access rules and live query subscriptions."""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from intro_board.core.errors import NotFound, PermissionDenied, StoreUnavailable
from intro_board.models.post import Post, PostStatus, new_post_id, utcnow
from intro_board.schemas.post import PostRecord
from intro_board.services.access import AccessGate
from intro_board.services.identity import Identity

__all__ = [
    "Cancel",
    "PostOrder",
    "PostQuery",
    "PostStore",
    "SnapshotCallback",
    "SqlPostStore",
    "StoreRules",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")
Cancel = Callable[[], None]
SnapshotCallback = Callable[[list[PostRecord]], None]

# Fields a create request may carry; id and created_at are assigned here.
CREATE_FIELDS = frozenset({"nickname", "age", "contact", "intro", "status", "reports_count"})
UPDATE_FIELDS = frozenset({"status"})
INCREMENT_FIELDS = frozenset({"reports_count"})


class PostOrder(str, Enum):
    NEWEST_FIRST = "newest_first"
    OLDEST_FIRST = "oldest_first"


@dataclass(frozen=True)
class PostQuery:
    """Filter and ordering for a one-shot read or a subscription.

    Ties on `created_at` are always broken by ascending id.
    """

    status: PostStatus | None = None
    order: PostOrder = PostOrder.NEWEST_FIRST


class PostStore(Protocol):
    """Capabilities the moderation engine needs from post storage."""

    async def create(self, record: Mapping[str, Any]) -> str: ...

    async def get(self, post_id: str) -> PostRecord | None: ...

    async def query(self, query: PostQuery) -> list[PostRecord]: ...

    async def subscribe(self, query: PostQuery, callback: SnapshotCallback) -> Cancel: ...

    async def update(
        self, post_id: str, fields: Mapping[str, Any], *, actor: Identity | None
    ) -> None: ...

    async def delete(self, post_id: str, *, actor: Identity | None) -> None: ...

    async def increment(self, post_id: str, field: str, delta: int = 1) -> PostRecord: ...


@dataclass(frozen=True)
class StoreRules:
    """Storage-side access rules.

    These hold regardless of what the calling code checked: new posts can't
    approve themselves, only moderators change status or delete, and anyone
    may bump the report counter by exactly one.
    """

    gate: AccessGate
    min_age: int

    def check_create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        unexpected = set(record) - CREATE_FIELDS
        if unexpected:
            raise PermissionDenied(f"Unexpected fields: {', '.join(sorted(unexpected))}")
        try:
            status = PostStatus(record.get("status", PostStatus.PENDING))
        except ValueError as err:
            raise PermissionDenied("Unknown status") from err
        if status is not PostStatus.PENDING:
            raise PermissionDenied("New posts must start pending")
        if record.get("reports_count", 0) != 0:
            raise PermissionDenied("New posts must start with no reports")
        age = record.get("age")
        if not isinstance(age, int) or isinstance(age, bool) or age < self.min_age:
            raise PermissionDenied("Age is below the minimum")
        values = dict(record)
        values["status"] = PostStatus.PENDING
        values["reports_count"] = 0
        return values

    def check_update(self, fields: Mapping[str, Any], actor: Identity | None) -> dict[str, Any]:
        if not fields or set(fields) - UPDATE_FIELDS:
            raise PermissionDenied("Only the status of a post can change")
        if not self.gate.is_authorized(actor):
            raise PermissionDenied("Only moderators can change a post's status")
        try:
            return {"status": PostStatus(fields["status"])}
        except ValueError as err:
            raise PermissionDenied("Unknown status") from err

    def check_delete(self, actor: Identity | None) -> None:
        if not self.gate.is_authorized(actor):
            raise PermissionDenied("Only moderators can delete posts")

    def check_increment(self, field: str, delta: int) -> None:
        if field not in INCREMENT_FIELDS or delta != 1:
            raise PermissionDenied("Reports can only be added one at a time")


@dataclass(eq=False)
class _Subscription:
    query: PostQuery
    callback: SnapshotCallback
    active: bool = True


class SqlPostStore:
    """SQLAlchemy-backed `PostStore`.

    Blocking database work runs in a worker thread, one call at a time. A
    mutation returns as soon as it is committed; each subscriber then gets a
    fresh full snapshot of its query from a background task, in the order
    the mutations were committed. `drain()` waits for those tasks.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        rules: StoreRules,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self.rules = rules
        self._clock = clock
        self._lock = threading.Lock()
        self._publish_lock = asyncio.Lock()
        self._subscribers: list[_Subscription] = []
        self._publish_tasks: set[asyncio.Task[None]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def create(self, record: Mapping[str, Any]) -> str:
        """Insert a new post after applying the create rules; returns its id."""
        values = self.rules.check_create(record)
        post_id = await self._call(self._create_sync, values)
        self._schedule_publish()
        return post_id

    async def get(self, post_id: str) -> PostRecord | None:
        return await self._call(self._get_sync, post_id)

    async def query(self, query: PostQuery) -> list[PostRecord]:
        return await self._call(self._query_sync, query)

    async def subscribe(self, query: PostQuery, callback: SnapshotCallback) -> Cancel:
        """Deliver the current snapshot of `query`, then one per change.

        Returns:
            A disposer; once called no further snapshots are delivered.
        """
        # In-flight fan-out finishes first, so no duplicate follows the first snapshot.
        await self.drain()
        subscription = _Subscription(query=query, callback=callback)
        self._subscribers.append(subscription)

        def cancel() -> None:
            subscription.active = False
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

        try:
            async with self._publish_lock:
                snapshot = await self._call(self._query_sync, query)
                if subscription.active:
                    callback(snapshot)
        except BaseException:
            cancel()
            raise
        return cancel

    async def update(
        self, post_id: str, fields: Mapping[str, Any], *, actor: Identity | None
    ) -> None:
        values = self.rules.check_update(fields, actor)
        await self._call(self._update_sync, post_id, values)
        self._schedule_publish()

    async def delete(self, post_id: str, *, actor: Identity | None) -> None:
        self.rules.check_delete(actor)
        await self._call(self._delete_sync, post_id)
        self._schedule_publish()

    async def increment(self, post_id: str, field: str, delta: int = 1) -> PostRecord:
        """Atomically add `delta` to a counter; returns the updated post."""
        self.rules.check_increment(field, delta)
        record = await self._call(self._increment_sync, post_id, field, delta)
        self._schedule_publish()
        return record

    async def drain(self) -> None:
        """Wait until every committed change has reached the subscribers."""
        while self._publish_tasks:
            await asyncio.gather(*list(self._publish_tasks))

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(self._run, fn, *args)

    def _run(self, fn: Callable[..., T], *args: Any) -> T:
        with self._lock:
            try:
                return fn(*args)
            except SQLAlchemyError as exc:
                logger.error("Post store call %s failed: %s", fn.__name__, exc, exc_info=True)
                raise StoreUnavailable() from exc

    def _schedule_publish(self) -> None:
        task = asyncio.create_task(self._publish())
        self._publish_tasks.add(task)
        task.add_done_callback(self._publish_tasks.discard)

    async def _publish(self) -> None:
        async with self._publish_lock:
            for subscription in list(self._subscribers):
                try:
                    snapshot = await self._call(self._query_sync, subscription.query)
                except StoreUnavailable:
                    # The mutation itself is committed; the next change refreshes this view.
                    logger.warning("Could not refresh subscription for %s", subscription.query)
                    continue
                if subscription.active:
                    subscription.callback(snapshot)

    def _create_sync(self, values: dict[str, Any]) -> str:
        with self._session_factory() as session:
            post = Post(id=new_post_id(), created_at=self._clock(), **values)
            session.add(post)
            session.commit()
            return post.id

    def _get_sync(self, post_id: str) -> PostRecord | None:
        with self._session_factory() as session:
            post = session.get(Post, post_id)
            return PostRecord.model_validate(post) if post is not None else None

    def _query_sync(self, query: PostQuery) -> list[PostRecord]:
        stmt = select(Post)
        if query.status is not None:
            stmt = stmt.where(Post.status == query.status)
        if query.order is PostOrder.NEWEST_FIRST:
            stmt = stmt.order_by(Post.created_at.desc(), Post.id.asc())
        else:
            stmt = stmt.order_by(Post.created_at.asc(), Post.id.asc())
        with self._session_factory() as session:
            return [PostRecord.model_validate(post) for post in session.scalars(stmt)]

    def _update_sync(self, post_id: str, values: dict[str, Any]) -> None:
        with self._session_factory() as session:
            result = session.execute(update(Post).where(Post.id == post_id).values(**values))
            if result.rowcount == 0:
                session.rollback()
                raise NotFound()
            session.commit()

    def _delete_sync(self, post_id: str) -> None:
        with self._session_factory() as session:
            result = session.execute(delete(Post).where(Post.id == post_id))
            if result.rowcount == 0:
                session.rollback()
                raise NotFound()
            session.commit()

    def _increment_sync(self, post_id: str, field: str, delta: int) -> PostRecord:
        column = getattr(Post, field)
        with self._session_factory() as session:
            # Single UPDATE so concurrent increments never overwrite each other.
            result = session.execute(
                update(Post).where(Post.id == post_id).values({column: column + delta})
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFound()
            session.commit()
            post = session.get(Post, post_id, populate_existing=True)
            if post is None:
                raise NotFound()
            return PostRecord.model_validate(post)
