from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TextCommitted(BaseModel):
    """A post's body was written; emitted by the storage layer inside the write transaction.

    ``old_text`` is None when the post was just created.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_type: str = "post.text_committed"
    post_id: UUID
    old_text: str | None = None
    new_text: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_create(self) -> bool:
        return self.old_text is None
