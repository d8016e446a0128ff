"""Database configuration for Marketplace Service"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from ..models.base import MarketplaceBase
from .settings import get_settings


class MarketplaceDatabaseManager:
    """Async engine and session factory for the marketplace database."""

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 40,
    ) -> None:
        self.database_url = database_url
        engine_kwargs: Dict[str, Any] = {"echo": echo, "future": True}

        if "sqlite" in database_url:
            # SQLite for development and tests; connections are not shared
            # across event loops
            engine_kwargs["poolclass"] = NullPool
            engine_kwargs["connect_args"] = {
                "timeout": 60,
                "check_same_thread": False,
            }
        else:
            engine_kwargs.update(
                {
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                    "pool_timeout": 45,
                    "pool_recycle": 3600,
                    "pool_pre_ping": True,
                    "connect_args": {
                        "command_timeout": 30,
                        "server_settings": {"jit": "off"},
                    },
                }
            )

        self.async_engine = create_async_engine(database_url, **engine_kwargs)
        self.async_session_maker = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            autocommit=False,
        )

    async def create_tables(self) -> None:
        """Create all tables and their indexes."""
        # Importing the models package registers every table on the metadata
        from .. import models  # noqa: F401

        async with self.async_engine.begin() as conn:
            await conn.run_sync(MarketplaceBase.metadata.create_all, checkfirst=True)

    async def drop_tables(self) -> None:
        from .. import models  # noqa: F401

        async with self.async_engine.begin() as conn:
            await conn.run_sync(MarketplaceBase.metadata.drop_all)

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get async database session."""
        async with self.async_session_maker() as session:
            yield session

    async def close(self) -> None:
        """Dispose of the engine and its connections."""
        await self.async_engine.dispose()


settings = get_settings()
database_manager = MarketplaceDatabaseManager(
    database_url=settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency for FastAPI"""
    async for session in database_manager.get_async_session():
        yield session
