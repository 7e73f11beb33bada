from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.models import Tag, Tagging, User


async def create_user(session_factory, username: str) -> User:
    async with session_factory() as session:
        user = User(username=username)
        session.add(user)
        await session.commit()
        return user


async def tag_counts(db: AsyncSession) -> dict[str, tuple[int, int]]:
    """name -> (usage_count, actual number of taggings)."""
    stmt = (
        select(Tag.name, Tag.usage_count, func.count(Tagging.post_id))
        .outerjoin(Tagging, Tagging.tag_id == Tag.tag_id)
        .group_by(Tag.tag_id, Tag.name, Tag.usage_count)
    )
    rows = (await db.execute(stmt)).all()
    return {name: (usage, actual) for name, usage, actual in rows}


def assert_counters_consistent(counts: dict[str, tuple[int, int]]) -> None:
    for name, (usage, actual) in counts.items():
        assert usage == actual, f"tag {name!r}: usage_count={usage}, taggings={actual}"
        assert usage >= 0
