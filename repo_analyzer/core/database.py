"""
Async database configuration and session management.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from repo_analyzer.config.settings import settings

# Create Base class for models
Base = declarative_base()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first use."""
    global _engine
    if _engine is None:
        url = settings.async_database_url
        if url.startswith("sqlite"):
            _engine = create_async_engine(url, pool_pre_ping=True)
        else:
            _engine = create_async_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=20)
    return _engine


def get_session_factory() -> async_sessionmaker:
    """Return the AsyncSession factory bound to the process-wide engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
    return _session_factory


async def init_models(engine: Optional[AsyncEngine] = None) -> None:
    """Create all tables registered on Base."""
    # Register models on the metadata
    import repo_analyzer.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get async database session for FastAPI dependency injection.

    Yields:
        AsyncSession: SQLAlchemy async database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()
