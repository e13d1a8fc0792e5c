"""Shared-schema executor.

The unscoped path: transactions pinned to the shared schema only. Used by
the tenant directory, platform admin login and superadmin routes. Tenant
tables are not reachable from here.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mercato.config import Settings
from mercato.core.constants import (
    DEFAULT_SHARED_SCHEMA,
    DEFAULT_TENANT_TRANSACTION_TIMEOUT,
)
from mercato.core.tenancy.executor import transaction_deadline
from mercato.core.tenancy.identifiers import (
    build_search_path_statement,
    validate_schema_name,
)


logger = structlog.get_logger()


class SharedSchemaExecutor:
    """Opens transactions whose lookup scope is the shared schema alone."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        shared_schema: str = DEFAULT_SHARED_SCHEMA,
        timeout_seconds: float = DEFAULT_TENANT_TRANSACTION_TIMEOUT,
    ) -> None:
        self.session_factory = session_factory
        self.shared_schema = validate_schema_name(shared_schema)
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
    ) -> "SharedSchemaExecutor":
        return cls(
            session_factory,
            shared_schema=settings.shared_schema,
            timeout_seconds=settings.tenant_transaction_timeout,
        )

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[AsyncSession]:
        """Open a shared-schema transaction.

        Commits on normal exit, rolls back on error.
        """
        async with transaction_deadline(self.timeout_seconds):
            async with self.session_factory() as session, session.begin():
                await session.execute(build_search_path_statement(self.shared_schema))
                yield session
