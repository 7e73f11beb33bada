# Domain exceptions raised by the reconciliation layer.
# HTTP controllers catch these and convert them to HTTPException.


class ReconciliationError(Exception):
    """Base class for failures that abort a post-text reconciliation."""

    retryable = False


class InvariantViolationError(ReconciliationError):
    """Derived tag state is inconsistent. Indicates a reconciliation bug."""


class CounterUnderflowError(InvariantViolationError):
    def __init__(self, tag_id) -> None:
        self.tag_id = tag_id
        super().__init__(f"Usage counter of tag {tag_id} would drop below zero")


class OrphanedTaggingError(InvariantViolationError):
    def __init__(self, tag_id, post_id) -> None:
        self.tag_id = tag_id
        self.post_id = post_id
        super().__init__(f"Tagging ({tag_id}, {post_id}) has no backing tag or post")


class StorageUnavailableError(ReconciliationError):
    """Storage kept failing after all retry attempts; the post write was rejected."""

    retryable = True

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Storage unavailable after {attempts} attempt(s)")


class PostNotFoundError(Exception):
    def __init__(self, post_id) -> None:
        self.post_id = post_id
        super().__init__(f"Post {post_id} not found")


class TagNotFoundError(Exception):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tag '{name}' not found")
