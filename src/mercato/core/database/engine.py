"""Connection pool ownership.

The engine is built by the composition root (``create_app`` or a
maintenance command) and disposed when that owner shuts down. Nothing in
the package creates an engine at import time.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mercato.config import Settings


logger = structlog.get_logger()


class Database:
    """An async engine plus the session factory bound to it.

    Usage:
        database = Database.from_settings(settings)
        async with database.session_factory() as session:
            ...
        await database.dispose()
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "Database":
        """Create a database from an async SQLAlchemy URL."""
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_async_engine(url, **engine_kwargs))

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create a database configured from application settings."""
        return cls.from_url(
            settings.async_database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            echo=settings.database_echo,
        )

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("database_pool_disposed")
