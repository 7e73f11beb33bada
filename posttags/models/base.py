from datetime import datetime, timezone

from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# text[] on PostgreSQL; JSON list on SQLite (test database)
TokenList = ARRAY(String).with_variant(JSON(), "sqlite")
