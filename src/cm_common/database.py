"""Async engine and session factory shared by every cm_* context.

Repositories execute raw text() SQL on the session they are handed; the
application services own commit and rollback. Only users is ORM-mapped.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for UserModel; marketplace tables are raw SQL."""


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

# expire_on_commit=False: services map rows into dataclasses and keep
# using them after commit (realtime publish, response building).
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed afterwards."""
    async with async_session_factory() as session:
        yield session
