import os
import ssl
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

# Import all models so Base.metadata is populated for create_all().
import posttags.models  # noqa: F401

AsyncSessionFactory = async_sessionmaker[AsyncSession]

_session_factory: AsyncSessionFactory | None = None


def _build_ssl_connect_args(database_url: str) -> dict[str, Any]:
    """Return asyncpg ``connect_args`` for SSL when DATABASE_SSL is set."""
    mode = os.environ.get("DATABASE_SSL", "").lower()
    if not mode or mode == "disable" or not database_url.startswith("postgresql"):
        return {}

    cert_path = os.environ.get("DATABASE_SSL_CERT", "")
    if cert_path and Path(cert_path).exists():
        ctx = ssl.create_default_context(cafile=cert_path)
        return {"connect_args": {"ssl": ctx}}

    # Fall back to simple 'require' (encrypted, no cert verification)
    return {"connect_args": {"ssl": "require"}}


def get_async_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    ssl_kwargs = _build_ssl_connect_args(database_url)
    merged = {**ssl_kwargs, **kwargs}
    return create_async_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=3600,
        **merged,
    )


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    **engine_kwargs: Any,
) -> AsyncSessionFactory:
    engine = get_async_engine(database_url, **engine_kwargs)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
    )


def init_db(database_url: str) -> None:
    global _session_factory
    _session_factory = get_async_session_factory(database_url, expire_on_commit=False)


def get_session_factory() -> AsyncSessionFactory:
    if _session_factory is None:
        raise RuntimeError("Database not initialized")
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def insert_for(db: AsyncSession, model: Any) -> Any:
    """Dialect ``INSERT`` for ``model`` supporting ``on_conflict_do_nothing``."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert

        return insert(model)
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert

        return insert(model)
    raise NotImplementedError(f"No conflict-tolerant INSERT for dialect {dialect!r}")
