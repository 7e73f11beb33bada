from posttags.models.base import Base
from posttags.models.mention import Mention
from posttags.models.post import Post
from posttags.models.tag import Tag, Tagging
from posttags.models.user import User

__all__ = [
    "Base",
    "User",
    "Post",
    "Tag",
    "Tagging",
    "Mention",
]
