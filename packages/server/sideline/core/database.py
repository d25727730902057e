"""
Database engine and session management.

Services only ``flush``; the session dependency owns the transaction, so a
request either commits every write it made (team creation, membership
upserts, request status) or none of them.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from sideline.core.config import get_settings
from sideline.core.errors import RetryableError

settings = get_settings()
log = structlog.get_logger()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """PostgreSQL (asyncpg) in production; SQLite (aiosqlite) locally and in tests."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.rstrip("/").endswith(("sqlite+aiosqlite:", ":memory:")):
            # one shared connection, or every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_async_engine(url, echo=echo, **kwargs)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables (development only; deployments run `alembic upgrade head`)."""
    import sideline.models  # noqa: F401  registers tables on the metadata

    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    log.info("database.tables_created")


async def check_database(bind: AsyncEngine = engine) -> bool:
    """Readiness probe: can we run a trivial query?"""
    try:
        async with bind.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log.warning("database.unavailable", error=str(exc))
        return False
    return True


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    A failed commit leaves nothing applied and is raised as RetryableError.
    """
    async with async_session_factory() as session:
        try:
            yield session
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                log.error("database.commit_failed", error=str(exc))
                raise RetryableError("The change could not be saved, please retry") from exc
        except Exception:
            await session.rollback()
            raise
