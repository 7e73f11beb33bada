import uuid

from sqlalchemy import ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Mention(Base):
    __tablename__ = "mentions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.user_id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.post_id", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )

    __table_args__ = (Index("ix_mentions_post_id", "post_id"),)
