"""Tag read queries: lookup, listing by raw count, posts by tag."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.exceptions import PostNotFoundError, TagNotFoundError
from posttags.models.post import Post
from posttags.models.tag import Tag, Tagging
from posttags.tags.index import posts_for_tag
from posttags.tags.registry import get_tag_by_name


def normalize_lookup(tag: str) -> str:
    """'#Hello' and 'hello' both address the tag 'hello'; '##meta' addresses '#meta'."""
    tag = tag.strip()
    if tag.startswith("#"):
        tag = tag[1:]
    return tag.lower()


async def list_tags(
    db: AsyncSession,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Tag], int]:
    total = (await db.execute(select(func.count()).select_from(Tag))).scalar_one()
    stmt = (
        select(Tag)
        .order_by(Tag.usage_count.desc(), Tag.name.asc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    tags = list((await db.execute(stmt)).scalars().all())
    return tags, total


async def get_tag(db: AsyncSession, name: str) -> Tag:
    normalized = normalize_lookup(name)
    tag = await get_tag_by_name(db, normalized) if normalized else None
    if tag is None:
        raise TagNotFoundError(normalized)
    return tag


async def get_posts_by_tag(
    db: AsyncSession,
    name: str,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Post], int]:
    tag = await get_tag(db, name)
    return await posts_for_tag(db, tag.tag_id, limit=limit, offset=offset)


async def get_tags_for_post(db: AsyncSession, post_id: UUID) -> list[Tag]:
    post = await db.get(Post, post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    stmt = (
        select(Tag)
        .join(Tagging, Tagging.tag_id == Tag.tag_id)
        .where(Tagging.post_id == post_id)
        .execution_options(populate_existing=True)
    )
    tags = list((await db.execute(stmt)).scalars().all())
    # Display order follows the post's own token list
    position = {name: i for i, name in enumerate(post.tags)}
    return sorted(tags, key=lambda t: (position.get(t.name, len(position)), t.name))
