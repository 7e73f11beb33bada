"""Post/user associations (the ``mentions`` table).

Same lifecycle as taggings but without a counter. Mention tokens are matched
against usernames case-insensitively; a token with no matching user stays in
``Post.mentions`` and produces no row.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.database import insert_for
from posttags.models.mention import Mention
from posttags.models.user import User


async def resolve_usernames(db: AsyncSession, tokens: Sequence[str]) -> dict[str, UUID]:
    """Map mention tokens to user ids; unknown usernames are left out.

    When several usernames differ only in case, an all-lowercase username
    wins, then the lowest ``user_id``.
    """
    if not tokens:
        return {}
    result = await db.execute(
        select(User.username, User.user_id)
        .where(func.lower(User.username).in_(list(tokens)))
        .order_by(User.user_id)
    )
    resolved: dict[str, UUID] = {}
    # sorted() is stable, so ties keep the user_id order
    for username, user_id in sorted(result.all(), key=lambda row: row[0] != row[0].lower()):
        resolved.setdefault(username.lower(), user_id)
    return resolved


async def ensure_mention(db: AsyncSession, user_id: UUID, post_id: UUID) -> bool:
    stmt = (
        insert_for(db, Mention)
        .values(user_id=user_id, post_id=post_id)
        .on_conflict_do_nothing(index_elements=[Mention.user_id, Mention.post_id])
        .returning(Mention.user_id)
    )
    return (await db.execute(stmt)).scalar_one_or_none() is not None


async def remove_mention(db: AsyncSession, user_id: UUID, post_id: UUID) -> bool:
    stmt = (
        delete(Mention)
        .where(Mention.user_id == user_id, Mention.post_id == post_id)
        .returning(Mention.user_id)
    )
    return (await db.execute(stmt)).scalar_one_or_none() is not None


async def mentions_for_post(db: AsyncSession, post_id: UUID) -> set[UUID]:
    result = await db.execute(select(Mention.user_id).where(Mention.post_id == post_id))
    return set(result.scalars().all())
