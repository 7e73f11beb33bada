"""Post storage, the write side that drives reconciliation.

Every function here takes the caller's session and leaves committing to it,
so the text write, token lists, taggings, counters and mentions land in one
transaction. ``run_in_transaction`` provides that transaction (with retries)
for callers outside a request scope.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar
from uuid import UUID

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.config import Settings
from posttags.database import AsyncSessionFactory
from posttags.exceptions import PostNotFoundError, StorageUnavailableError
from posttags.models.post import Post
from posttags.posts.events import TextCommitted
from posttags.posts.reconciler import on_post_removed, on_text_committed

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def _is_transient(exc: DBAPIError) -> bool:
    if isinstance(exc, OperationalError) or exc.connection_invalidated:
        return True
    sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    return sqlstate in _TRANSIENT_SQLSTATES


async def run_in_transaction(
    session_factory: AsyncSessionFactory,
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    max_attempts: int = 3,
    backoff_s: float = 0.05,
) -> T:
    """Run ``work`` in a fresh session and transaction, retrying transient failures.

    The whole unit is replayed on retry; nothing from a failed attempt is
    committed. Raises StorageUnavailableError once attempts are exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        async with session_factory() as session:
            try:
                async with session.begin():
                    return await work(session)
            except DBAPIError as exc:
                if not _is_transient(exc):
                    raise
                if attempt == max_attempts:
                    logger.error("Giving up after %d attempt(s): %s", attempt, exc)
                    raise StorageUnavailableError(attempt) from exc
                logger.warning(
                    "Transient storage error (attempt %d/%d): %s", attempt, max_attempts, exc
                )
        await asyncio.sleep(backoff_s * attempt)
    raise ValueError("max_attempts must be at least 1")


async def get_post_by_id(db: AsyncSession, post_id: UUID) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    return post


async def create_post(
    db: AsyncSession,
    user_id: UUID,
    body: str,
    *,
    clamp_underflow: bool = False,
) -> Post:
    post = Post(user_id=user_id, body=body)
    db.add(post)
    await db.flush()
    await on_text_committed(
        db,
        TextCommitted(post_id=post.post_id, old_text=None, new_text=body),
        clamp_underflow=clamp_underflow,
    )
    return post


async def update_post_text(
    db: AsyncSession,
    post_id: UUID,
    body: str,
    *,
    clamp_underflow: bool = False,
) -> Post:
    post = await get_post_by_id(db, post_id)
    old_text = post.body
    post.body = body
    await db.flush()
    await on_text_committed(
        db,
        TextCommitted(post_id=post_id, old_text=old_text, new_text=body),
        clamp_underflow=clamp_underflow,
    )
    return post


async def delete_post(
    db: AsyncSession,
    post_id: UUID,
    *,
    clamp_underflow: bool = False,
) -> None:
    post = await get_post_by_id(db, post_id)
    await on_post_removed(db, post_id, clamp_underflow=clamp_underflow)
    await db.delete(post)
    await db.flush()


class PostStore:
    """Post writes as self-contained units of work.

    Each call opens its own transaction through ``run_in_transaction`` using
    the retry and counter-underflow policy from settings.
    """

    def __init__(self, session_factory: AsyncSessionFactory, settings: Settings) -> None:
        self._session_factory = session_factory
        self._settings = settings

    async def _run(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        return await run_in_transaction(
            self._session_factory,
            work,
            max_attempts=self._settings.reconcile_max_attempts,
            backoff_s=self._settings.reconcile_retry_backoff_s,
        )

    async def create(self, user_id: UUID, body: str) -> Post:
        clamp = self._settings.clamp_negative_counters
        return await self._run(lambda db: create_post(db, user_id, body, clamp_underflow=clamp))

    async def update_text(self, post_id: UUID, body: str) -> Post:
        clamp = self._settings.clamp_negative_counters
        return await self._run(
            lambda db: update_post_text(db, post_id, body, clamp_underflow=clamp)
        )

    async def delete(self, post_id: UUID) -> None:
        clamp = self._settings.clamp_negative_counters
        await self._run(lambda db: delete_post(db, post_id, clamp_underflow=clamp))
