"""Tag read endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from posttags.database import get_db
from posttags.hashtags import controller
from posttags.hashtags.schemas import (
    PostsByTagResponse,
    PostTagsResponse,
    TagListResponse,
    TagResponse,
)

router = APIRouter(tags=["Tags"])


@router.get(
    "/tags",
    response_model=TagListResponse,
    summary="List tags",
    description="All tags ordered by usage count (descending), then name.",
)
async def list_tags(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> TagListResponse:
    return await controller.list_tags(db, limit=limit, offset=offset)


@router.get(
    "/tags/{name}",
    response_model=TagResponse,
    summary="Get tag",
    description="Case-insensitive lookup; a leading '#' is ignored.",
)
async def get_tag(name: str, db: AsyncSession = Depends(get_db)) -> TagResponse:
    return await controller.get_tag(db, name)


@router.get(
    "/tags/{name}/posts",
    response_model=PostsByTagResponse,
    summary="Posts by tag",
    description="Posts currently tagged with the tag, newest first.",
)
async def posts_by_tag(
    name: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> PostsByTagResponse:
    return await controller.get_posts_by_tag(db, name, limit=limit, offset=offset)


@router.get(
    "/posts/{post_id}/tags",
    response_model=PostTagsResponse,
    summary="Tags of a post",
)
async def post_tags(post_id: UUID, db: AsyncSession = Depends(get_db)) -> PostTagsResponse:
    return await controller.get_post_tags(db, post_id)
