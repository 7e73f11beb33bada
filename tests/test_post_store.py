import asyncio
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

import posttags.posts.reconciler as reconciler
from posttags.exceptions import OrphanedTaggingError, StorageUnavailableError
from posttags.models import Post, Tag, Tagging
from posttags.posts.service import PostStore, run_in_transaction

from tests.helpers import assert_counters_consistent, create_user, tag_counts


def _locked() -> OperationalError:
    return OperationalError("INSERT INTO tags ...", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_concurrent_posts_share_new_tag(session_factory, settings) -> None:
    alice = await create_user(session_factory, "alice")
    bob = await create_user(session_factory, "bob")
    store = PostStore(session_factory, settings)

    first, second = await asyncio.gather(
        store.create(alice.user_id, "first! #newtag"),
        store.create(bob.user_id, "me too #NewTag"),
    )

    assert first.tags == second.tags == ["newtag"]
    async with session_factory() as db:
        names = (await db.execute(select(Tag.name))).scalars().all()
        assert names == ["newtag"]
        assert await tag_counts(db) == {"newtag": (2, 2)}


@pytest.mark.asyncio
async def test_concurrent_edits_keep_counters_consistent(session_factory, settings) -> None:
    author = await create_user(session_factory, "bob")
    store = PostStore(session_factory, settings)
    posts = [await store.create(author.user_id, f"#common #p{i}") for i in range(4)]

    await asyncio.gather(
        *(store.update_text(p.post_id, f"#common #shared #q{i}") for i, p in enumerate(posts))
    )

    async with session_factory() as db:
        counts = await tag_counts(db)
    assert_counters_consistent(counts)
    assert counts["common"] == (4, 4)
    assert counts["shared"] == (4, 4)
    assert all(counts[f"p{i}"] == (0, 0) for i in range(4))


@pytest.mark.asyncio
async def test_store_delete(session_factory, settings) -> None:
    author = await create_user(session_factory, "bob")
    store = PostStore(session_factory, settings)
    post = await store.create(author.user_id, "#bye")

    await store.delete(post.post_id)

    async with session_factory() as db:
        assert await db.get(Post, post.post_id) is None
        assert await tag_counts(db) == {"bye": (0, 0)}


@pytest.mark.asyncio
async def test_failed_reconciliation_leaves_nothing_behind(
    session_factory, settings, monkeypatch
) -> None:
    author = await create_user(session_factory, "bob")
    store = PostStore(session_factory, settings)
    post = await store.create(author.user_id, "#foo")

    async def boom(*args, **kwargs):
        raise RuntimeError("mention lookup failed")

    monkeypatch.setattr(reconciler, "_reconcile_mentions", boom)
    with pytest.raises(RuntimeError):
        await store.update_text(post.post_id, "#bar @jane")

    async with session_factory() as db:
        stored = await db.get(Post, post.post_id)
        assert stored.body == "#foo"
        assert stored.tags == ["foo"]
        assert await tag_counts(db) == {"foo": (1, 1)}


@pytest.mark.asyncio
async def test_orphaned_tagging_rolls_back_edit(session_factory, settings) -> None:
    author = await create_user(session_factory, "bob")
    store = PostStore(session_factory, settings)
    post = await store.create(author.user_id, "#foo")
    async with session_factory() as db:
        if db.bind.dialect.name != "sqlite":
            pytest.skip("needs a database without foreign key enforcement")
        db.add(Tagging(tag_id=uuid.uuid4(), post_id=post.post_id))
        await db.commit()

    with pytest.raises(OrphanedTaggingError):
        await store.update_text(post.post_id, "#bar")

    async with session_factory() as db:
        stored = await db.get(Post, post.post_id)
        assert stored.body == "#foo"
        assert stored.tags == ["foo"]
        assert await tag_counts(db) == {"foo": (1, 1)}


@pytest.mark.asyncio
async def test_transient_errors_are_retried(session_factory) -> None:
    attempts = []

    async def work(db):
        attempts.append(1)
        if len(attempts) < 3:
            raise _locked()
        return (await db.execute(select(func.count()).select_from(Tag))).scalar_one()

    result = await run_in_transaction(session_factory, work, max_attempts=3, backoff_s=0)
    assert result == 0
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_storage_unavailable(session_factory) -> None:
    async def work(db):
        raise _locked()

    with pytest.raises(StorageUnavailableError) as exc_info:
        await run_in_transaction(session_factory, work, max_attempts=2, backoff_s=0)
    assert exc_info.value.retryable
    assert exc_info.value.attempts == 2
    assert isinstance(exc_info.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_non_transient_errors_are_not_retried(session_factory) -> None:
    attempts = []

    async def work(db):
        attempts.append(1)
        raise IntegrityError("INSERT INTO tags ...", {}, Exception("constraint failed"))

    with pytest.raises(IntegrityError):
        await run_in_transaction(session_factory, work, max_attempts=3, backoff_s=0)
    assert len(attempts) == 1
