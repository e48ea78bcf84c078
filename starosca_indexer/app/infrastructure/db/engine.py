from __future__ import annotations

from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from starosca_indexer.app.config import settings


def create_app_async_engine(*, database_url: str | None = None, echo: bool = False) -> AsyncEngine:
    """
    Factory for AsyncEngine used by the indexer loop, tasks and queries.

    Centralizing engine creation keeps connection handling consistent
    across tasks and makes it easier to tweak pool settings in one place.
    File-backed SQLite gets its parent directory created and WAL journaling,
    so readers are not blocked while the indexer writes.
    """
    url = make_url(database_url or settings.database_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(url, echo=echo)
        event.listen(engine.sync_engine, "connect", _set_sqlite_pragmas)
        return engine

    return create_async_engine(
        url,  # postgresql+asyncpg://...
        echo=echo,
        pool_pre_ping=True,
    )


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
    finally:
        cursor.close()
