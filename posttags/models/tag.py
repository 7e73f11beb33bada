import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, utcnow


class Tag(Base):
    __tablename__ = "tags"

    tag_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Always lowercase; see tags.registry.normalize_tag_name
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Denormalized COUNT(taggings) for this tag
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_tags_usage_count_non_negative"),
        Index("ix_tags_usage_count", "usage_count"),
    )


class Tagging(Base):
    __tablename__ = "taggings"

    tag_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("tags.tag_id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.post_id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )

    __table_args__ = (Index("ix_taggings_post_id", "post_id"),)
