"""
Async engine, session factory and the declarative base.

The connection string is never logged; SQL echo follows settings.sqlalchemy_echo.
"""

import logging
import time

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500
_STATEMENT_PREVIEW = 200


def _engine_options(url: str) -> dict:
    """Pool sizing only applies to server databases; SQLite manages its own pool."""
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10, "pool_recycle": 3600, "pool_pre_ping": True}


def watch_slow_queries(sync_engine: Engine, threshold_ms: float = SLOW_QUERY_THRESHOLD_MS) -> None:
    """Warn about statements slower than ``threshold_ms``."""

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _start(conn, cursor, statement, parameters, context, executemany):
        conn.info["query_started"] = time.monotonic()

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _finish(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.pop("query_started", None)
        if started is None:
            return
        elapsed = (time.monotonic() - started) * 1000
        if elapsed < threshold_ms:
            return
        preview = statement if len(statement) <= _STATEMENT_PREVIEW else statement[:_STATEMENT_PREVIEW] + "..."
        logger.warning(
            "Slow query (%.0fms, %d params): %s", elapsed, len(parameters) if parameters else 0, preview
        )


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.sqlalchemy_echo,
    **_engine_options(settings.DATABASE_URL),
)
watch_slow_queries(engine.sync_engine)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base shared by every model."""


async def get_db() -> AsyncSession:
    """Request-scoped session.

    Services commit their own unit of work. Any error rolls the session back
    so a failed booking leaves nothing behind.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create any missing tables."""
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
