"""Tag controller: maps read requests to service calls and domain errors to HTTP errors."""

from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.exceptions import PostNotFoundError, TagNotFoundError
from posttags.hashtags import service
from posttags.hashtags.schemas import (
    PostsByTagResponse,
    PostSummary,
    PostTagsResponse,
    TagListResponse,
    TagResponse,
)


async def list_tags(db: AsyncSession, limit: int, offset: int) -> TagListResponse:
    tags, total = await service.list_tags(db, limit=limit, offset=offset)
    return TagListResponse(
        items=[TagResponse.model_validate(t) for t in tags],
        total=total,
        limit=limit,
        offset=offset,
    )


async def get_tag(db: AsyncSession, name: str) -> TagResponse:
    try:
        tag = await service.get_tag(db, name)
    except TagNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return TagResponse.model_validate(tag)


async def get_posts_by_tag(
    db: AsyncSession, name: str, limit: int, offset: int
) -> PostsByTagResponse:
    try:
        posts, total = await service.get_posts_by_tag(db, name, limit=limit, offset=offset)
    except TagNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return PostsByTagResponse(
        items=[PostSummary.model_validate(p) for p in posts],
        total=total,
        limit=limit,
        offset=offset,
    )


async def get_post_tags(db: AsyncSession, post_id: UUID) -> PostTagsResponse:
    try:
        tags = await service.get_tags_for_post(db, post_id)
    except PostNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return PostTagsResponse(
        post_id=post_id,
        items=[TagResponse.model_validate(t) for t in tags],
    )
