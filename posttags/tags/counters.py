"""Tag usage counters.

``Tag.usage_count`` mirrors ``COUNT(taggings)`` for the tag. The index module
calls in here right after it inserts or deletes a tagging row, on the same
session, so the counter change commits or rolls back together with the row.
Updates are single SQL statements (``usage_count = usage_count + 1``) so
concurrent writers on different posts never lose increments.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.exceptions import CounterUnderflowError, OrphanedTaggingError
from posttags.models.base import utcnow
from posttags.models.tag import Tag, Tagging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CounterDrift:
    tag_id: UUID
    name: str
    recorded: int
    actual: int


async def on_tagging_created(db: AsyncSession, tag_id: UUID, post_id: UUID | None = None) -> None:
    result = await db.execute(
        update(Tag)
        .where(Tag.tag_id == tag_id)
        .values(usage_count=Tag.usage_count + 1, updated_at=utcnow())
    )
    if result.rowcount != 1:
        logger.error("Tagging created for missing tag %s (post %s)", tag_id, post_id)
        raise OrphanedTaggingError(tag_id, post_id)


async def on_tagging_removed(
    db: AsyncSession,
    tag_id: UUID,
    post_id: UUID | None = None,
    *,
    clamp_underflow: bool = False,
) -> None:
    result = await db.execute(
        update(Tag)
        .where(Tag.tag_id == tag_id, Tag.usage_count > 0)
        .values(usage_count=Tag.usage_count - 1, updated_at=utcnow())
    )
    if result.rowcount == 1:
        return

    current = await db.scalar(select(Tag.usage_count).where(Tag.tag_id == tag_id))
    if current is None:
        logger.error("Tagging removed for missing tag %s (post %s)", tag_id, post_id)
        raise OrphanedTaggingError(tag_id, post_id)

    logger.error(
        "Usage counter underflow on tag %s (post %s): counter already %d",
        tag_id,
        post_id,
        current,
    )
    if not clamp_underflow:
        raise CounterUnderflowError(tag_id)


async def audit_counters(db: AsyncSession, *, repair: bool = False) -> list[CounterDrift]:
    """Compare every tag's counter with its tagging count.

    Returns the tags whose counter has drifted. With ``repair=True`` the counters
    are overwritten with the actual count in the caller's transaction.
    """
    actual = func.count(Tagging.post_id)
    stmt = (
        select(Tag.tag_id, Tag.name, Tag.usage_count, actual)
        .outerjoin(Tagging, Tagging.tag_id == Tag.tag_id)
        .group_by(Tag.tag_id, Tag.name, Tag.usage_count)
        .having(Tag.usage_count != actual)
        .order_by(Tag.name)
    )
    rows = (await db.execute(stmt)).all()
    drifts = [
        CounterDrift(tag_id=row[0], name=row[1], recorded=row[2], actual=row[3]) for row in rows
    ]

    for drift in drifts:
        logger.warning(
            "Tag %r counter drift: recorded=%d actual=%d",
            drift.name,
            drift.recorded,
            drift.actual,
        )
        if repair:
            await db.execute(
                update(Tag)
                .where(Tag.tag_id == drift.tag_id)
                .values(usage_count=drift.actual, updated_at=utcnow())
            )
    if drifts and repair:
        await db.flush()
    return drifts
