"""
database/connection.py
Async engine, session factory, and the FastAPI session dependency.
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from core.config import get_settings

engine = create_async_engine(get_settings().DATABASE_URL, echo=False)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create all tables registered with SQLModel metadata."""
    import database.models as _models  # noqa: F401  registers table metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields one session per request."""
    async with async_session() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a block as one all-or-nothing transaction.

    Commits when the block exits cleanly; any exception rolls back every
    staged change and propagates to the caller.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
