"""Post/tag associations (the ``taggings`` table).

Every actual row insert or delete is paired with exactly one counter
adjustment; duplicate inserts and deletes of missing rows touch nothing.
"""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.database import insert_for
from posttags.models.post import Post
from posttags.models.tag import Tagging
from posttags.tags.counters import on_tagging_created, on_tagging_removed


async def ensure_tagging(db: AsyncSession, tag_id: UUID, post_id: UUID) -> bool:
    """Associate a tag with a post. Returns False if the pair already existed."""
    stmt = (
        insert_for(db, Tagging)
        .values(tag_id=tag_id, post_id=post_id)
        .on_conflict_do_nothing(index_elements=[Tagging.tag_id, Tagging.post_id])
        .returning(Tagging.tag_id)
    )
    inserted = (await db.execute(stmt)).scalar_one_or_none()
    if inserted is None:
        return False
    await on_tagging_created(db, tag_id, post_id)
    return True


async def remove_tagging(
    db: AsyncSession,
    tag_id: UUID,
    post_id: UUID,
    *,
    clamp_underflow: bool = False,
) -> bool:
    """Drop a tag/post association. Returns False if there was nothing to drop."""
    stmt = (
        delete(Tagging)
        .where(Tagging.tag_id == tag_id, Tagging.post_id == post_id)
        .returning(Tagging.tag_id)
    )
    removed = (await db.execute(stmt)).scalar_one_or_none()
    if removed is None:
        return False
    await on_tagging_removed(db, tag_id, post_id, clamp_underflow=clamp_underflow)
    return True


async def taggings_for_post(db: AsyncSession, post_id: UUID) -> set[UUID]:
    result = await db.execute(select(Tagging.tag_id).where(Tagging.post_id == post_id))
    return set(result.scalars().all())


async def count_taggings(db: AsyncSession, tag_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(Tagging).where(Tagging.tag_id == tag_id)
    )
    return result.scalar_one()


async def posts_for_tag(
    db: AsyncSession,
    tag_id: UUID,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Post], int]:
    """Posts associated with a tag, newest first."""
    total = await count_taggings(db, tag_id)
    stmt = (
        select(Post)
        .join(Tagging, Tagging.post_id == Post.post_id)
        .where(Tagging.tag_id == tag_id)
        .order_by(Post.created_at.desc(), Post.post_id)
        .offset(offset)
        .limit(limit)
    )
    posts = list((await db.execute(stmt)).scalars().all())
    return posts, total
