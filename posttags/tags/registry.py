"""Tag registry: idempotent get-or-create of normalized tags.

Two posts may introduce the same new tag concurrently. The insert is issued
with ``ON CONFLICT (name) DO NOTHING`` and the row is re-read afterwards, so
whichever writer loses the race simply picks up the winner's row.
"""

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.database import insert_for
from posttags.models.tag import Tag

logger = logging.getLogger(__name__)


def normalize_tag_name(name: str) -> str:
    normalized = name.lower()
    if not normalized:
        raise ValueError("Tag name must not be empty")
    return normalized


async def get_tag_by_name(db: AsyncSession, name: str) -> Tag | None:
    result = await db.execute(
        select(Tag)
        .where(Tag.name == normalize_tag_name(name))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_tags(db: AsyncSession, tag_ids: Iterable[UUID]) -> dict[UUID, Tag]:
    ids = list(tag_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(Tag).where(Tag.tag_id.in_(ids)).execution_options(populate_existing=True)
    )
    return {tag.tag_id: tag for tag in result.scalars().all()}


async def ensure_tag(db: AsyncSession, name: str) -> Tag:
    """Return the tag called ``name`` (case-insensitive), creating it if needed."""
    normalized = normalize_tag_name(name)
    stmt = (
        insert_for(db, Tag)
        .values(name=normalized, usage_count=0)
        .on_conflict_do_nothing(index_elements=[Tag.name])
        .returning(Tag.tag_id)
    )
    created_id = (await db.execute(stmt)).scalar_one_or_none()
    if created_id is not None:
        logger.debug("Created tag %r (%s)", normalized, created_id)

    # DO NOTHING waits for a concurrent inserter to finish, so the row is visible here
    tag = await get_tag_by_name(db, normalized)
    if tag is None:
        raise RuntimeError(f"Tag {normalized!r} missing after insert")
    return tag
