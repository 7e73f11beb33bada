"""Post text reconciliation.

Runs inside the transaction that writes a post's body. Parses mention and tag
tokens, stores them on the post, then brings ``taggings`` (and through them
the tag counters) and ``mentions`` in line with the new token lists. Running
it again on unchanged text changes nothing.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from posttags.exceptions import OrphanedTaggingError, PostNotFoundError
from posttags.mentions.service import (
    ensure_mention,
    mentions_for_post,
    remove_mention,
    resolve_usernames,
)
from posttags.models.post import Post
from posttags.posts.events import TextCommitted
from posttags.tags.index import ensure_tagging, remove_tagging, taggings_for_post
from posttags.tags.registry import ensure_tag, get_tags
from posttags.tokens.parser import parse_mentions, parse_tags

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    post_id: UUID
    tags: list[str]
    mentions: list[str]
    tags_added: list[str] = field(default_factory=list)
    tags_removed: list[str] = field(default_factory=list)
    mentions_added: list[UUID] = field(default_factory=list)
    mentions_removed: list[UUID] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.tags_added or self.tags_removed or self.mentions_added or self.mentions_removed
        )


async def _reconcile_tags(
    db: AsyncSession,
    post_id: UUID,
    tags: list[str],
    result: ReconcileResult,
    clamp_underflow: bool,
) -> None:
    prior_ids = await taggings_for_post(db, post_id)
    prior_tags = await get_tags(db, prior_ids)
    missing = prior_ids - prior_tags.keys()
    if missing:
        tag_id = min(missing)
        logger.error("Post %s has a tagging for missing tag %s", post_id, tag_id)
        raise OrphanedTaggingError(tag_id, post_id)

    for token in tags:
        tag = await ensure_tag(db, token)
        if tag.tag_id in prior_ids:
            continue
        if await ensure_tagging(db, tag.tag_id, post_id):
            result.tags_added.append(tag.name)

    wanted = set(tags)
    for tag in sorted(prior_tags.values(), key=lambda t: t.name):
        if tag.name in wanted:
            continue
        if await remove_tagging(db, tag.tag_id, post_id, clamp_underflow=clamp_underflow):
            result.tags_removed.append(tag.name)


async def _reconcile_mentions(
    db: AsyncSession,
    post_id: UUID,
    mentions: list[str],
    result: ReconcileResult,
) -> None:
    prior_ids = await mentions_for_post(db, post_id)
    resolved = await resolve_usernames(db, mentions)

    for token in mentions:
        user_id = resolved.get(token)
        if user_id is None or user_id in prior_ids:
            continue
        if await ensure_mention(db, user_id, post_id):
            result.mentions_added.append(user_id)

    for user_id in sorted(prior_ids - set(resolved.values())):
        if await remove_mention(db, user_id, post_id):
            result.mentions_removed.append(user_id)


async def reconcile_post_text(
    db: AsyncSession,
    post: Post,
    *,
    clamp_underflow: bool = False,
) -> ReconcileResult:
    """Re-derive a post's tokens from its body and reconcile associations."""
    mentions = parse_mentions(post.body)
    tags = parse_tags(post.body)

    if post.mentions != mentions:
        post.mentions = mentions
    if post.tags != tags:
        post.tags = tags
    await db.flush()

    result = ReconcileResult(post_id=post.post_id, tags=tags, mentions=mentions)
    await _reconcile_tags(db, post.post_id, tags, result, clamp_underflow)
    await _reconcile_mentions(db, post.post_id, mentions, result)

    if result.changed:
        logger.debug(
            "Reconciled post %s: +tags=%s -tags=%s +mentions=%d -mentions=%d",
            post.post_id,
            result.tags_added,
            result.tags_removed,
            len(result.mentions_added),
            len(result.mentions_removed),
        )
    return result


async def on_text_committed(
    db: AsyncSession,
    event: TextCommitted,
    *,
    clamp_underflow: bool = False,
) -> ReconcileResult:
    post = await db.get(Post, event.post_id)
    logger.debug(
        "%s for post %s at %s (create=%s)",
        event.event_type,
        event.post_id,
        event.occurred_at.isoformat(),
        event.is_create,
    )
    if post is None:
        raise PostNotFoundError(event.post_id)
    if post.body != event.new_text:
        post.body = event.new_text
    return await reconcile_post_text(db, post, clamp_underflow=clamp_underflow)


async def on_post_removed(
    db: AsyncSession,
    post_id: UUID,
    *,
    clamp_underflow: bool = False,
) -> ReconcileResult:
    """Drop every tagging and mention of a post before the post row goes away."""
    result = ReconcileResult(post_id=post_id, tags=[], mentions=[])

    prior_tags = await get_tags(db, await taggings_for_post(db, post_id))
    for tag in sorted(prior_tags.values(), key=lambda t: t.name):
        if await remove_tagging(db, tag.tag_id, post_id, clamp_underflow=clamp_underflow):
            result.tags_removed.append(tag.name)

    # Taggings whose tag row is gone: removing them raises OrphanedTaggingError
    for tag_id in await taggings_for_post(db, post_id):
        await remove_tagging(db, tag_id, post_id, clamp_underflow=clamp_underflow)

    for user_id in sorted(await mentions_for_post(db, post_id)):
        if await remove_mention(db, user_id, post_id):
            result.mentions_removed.append(user_id)
    return result
