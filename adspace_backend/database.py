"""Async database session and engine configuration."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from adspace_backend.config import settings

Base = declarative_base()


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to ``engine``; rows stay readable after commit."""
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )


# Catalog database (PostgreSQL by default, any async DATABASE_URL works)
engine = create_async_engine(settings.database_url, echo=False)
AsyncSessionLocal = build_session_factory(engine)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create missing tables. Used by local setups and the test suite."""
    # Registers the ad_spaces table on Base.metadata
    from adspace_backend.models import ad_space  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a single async DB session per request."""
    async with AsyncSessionLocal() as session:
        yield session
