"""Tag endpoint schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TagResponse(BaseModel):
    """A tag with its usage counter."""

    model_config = ConfigDict(from_attributes=True)

    tag_id: UUID
    name: str = Field(description="Lowercase tag name (without '#' prefix).")
    usage_count: int = Field(description="Number of posts currently tagged with it.")
    created_at: datetime
    updated_at: datetime


class TagListResponse(BaseModel):
    items: list[TagResponse]
    total: int = Field(description="Total number of tags.")
    limit: int
    offset: int


class PostSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_id: UUID
    user_id: UUID
    body: str
    mentions: list[str] = Field(description="Mention tokens in first-occurrence order.")
    tags: list[str] = Field(description="Tag tokens in first-occurrence order.")
    created_at: datetime
    updated_at: datetime


class PostsByTagResponse(BaseModel):
    items: list[PostSummary]
    total: int = Field(description="Number of posts tagged with this tag.")
    limit: int
    offset: int


class PostTagsResponse(BaseModel):
    post_id: UUID
    items: list[TagResponse]
