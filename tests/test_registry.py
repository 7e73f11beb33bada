import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.models import Tag
from posttags.tags.registry import ensure_tag, get_tag_by_name, get_tags


@pytest.mark.asyncio
async def test_ensure_tag_creates_lowercase(db_session: AsyncSession) -> None:
    tag = await ensure_tag(db_session, "HelloWorld")
    assert tag.name == "helloworld"
    assert tag.usage_count == 0


@pytest.mark.asyncio
async def test_ensure_tag_is_idempotent(db_session: AsyncSession) -> None:
    first = await ensure_tag(db_session, "hello")
    second = await ensure_tag(db_session, "HELLO")
    assert first.tag_id == second.tag_id
    total = (await db_session.execute(select(func.count()).select_from(Tag))).scalar_one()
    assert total == 1


@pytest.mark.asyncio
async def test_ensure_tag_returns_row_created_by_other_writer(session_factory) -> None:
    async with session_factory() as other:
        winner = await ensure_tag(other, "newtag")
        await other.commit()

    async with session_factory() as session:
        tag = await ensure_tag(session, "NewTag")
        await session.commit()

    assert tag.tag_id == winner.tag_id


@pytest.mark.asyncio
async def test_ensure_tag_rejects_empty_name(db_session: AsyncSession) -> None:
    with pytest.raises(ValueError):
        await ensure_tag(db_session, "")


@pytest.mark.asyncio
async def test_lookups(db_session: AsyncSession) -> None:
    a = await ensure_tag(db_session, "a")
    b = await ensure_tag(db_session, "b")
    assert (await get_tag_by_name(db_session, "A")).tag_id == a.tag_id
    assert await get_tag_by_name(db_session, "missing") is None
    found = await get_tags(db_session, [a.tag_id, b.tag_id])
    assert set(found) == {a.tag_id, b.tag_id}
    assert await get_tags(db_session, []) == {}
