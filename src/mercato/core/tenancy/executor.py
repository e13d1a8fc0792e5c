"""Scoped transaction executor.

Every tenant query runs inside a transaction whose first statement is

    SET LOCAL search_path TO "tenant_<id>", "public"

``SET LOCAL`` dies with the transaction, so a pooled connection handed to
the next request (possibly for another tenant) carries no trace of this
scope. Commit, rollback and scope release are one event.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import TypeVar

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mercato.config import Settings
from mercato.core.constants import (
    DEFAULT_SHARED_SCHEMA,
    DEFAULT_TENANT_SCHEMA_PREFIX,
    DEFAULT_TENANT_TRANSACTION_TIMEOUT,
)
from mercato.core.tenancy.errors import (
    MissingTenantContextError,
    NestedTenantScopeError,
    SchemaContextError,
    TenantTransactionTimeoutError,
)
from mercato.core.tenancy.identifiers import (
    build_search_path_statement,
    schema_name_for,
    validate_schema_name,
)
from mercato.core.tenancy.session import TenantSession


logger = structlog.get_logger()

T = TypeVar("T")

UnitOfWork = Callable[[TenantSession], Awaitable[T]]

# Schema of the scoped transaction running in the current task, if any
_active_schema: ContextVar[str | None] = ContextVar(
    "mercato_active_tenant_schema", default=None
)


@asynccontextmanager
async def transaction_deadline(seconds: float) -> AsyncIterator[None]:
    """Bound a transaction by wall-clock time.

    Expiry cancels the body, lets the enclosing transaction roll back,
    and surfaces as ``TenantTransactionTimeoutError``. A ``TimeoutError``
    raised by the body itself passes through untouched.
    """
    deadline = asyncio.timeout(seconds)
    try:
        async with deadline:
            yield
    except TimeoutError as exc:
        if not deadline.expired():
            raise
        logger.warning("tenant_scope_timeout", timeout_seconds=seconds)
        raise TenantTransactionTimeoutError(details={"retry_after": 1}) from exc


class ScopedTransactionExecutor:
    """Runs units of work inside tenant-scoped transactions.

    Attributes:
        session_factory: Factory for sessions on the shared connection pool
        schema_prefix: Prefix prepended to tenant IDs to name their schema
        shared_schema: Schema consulted after the tenant schema
        timeout_seconds: Default time budget for one scoped transaction
        isolation_level: Default transaction isolation level, if any
        include_shared_schema: Whether the shared schema follows the tenant
            schema in the lookup scope
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        schema_prefix: str = DEFAULT_TENANT_SCHEMA_PREFIX,
        shared_schema: str = DEFAULT_SHARED_SCHEMA,
        timeout_seconds: float = DEFAULT_TENANT_TRANSACTION_TIMEOUT,
        isolation_level: str | None = None,
        include_shared_schema: bool = True,
    ) -> None:
        self.session_factory = session_factory
        self.schema_prefix = schema_prefix
        self.shared_schema = validate_schema_name(shared_schema)
        self.timeout_seconds = timeout_seconds
        self.isolation_level = isolation_level
        self.include_shared_schema = include_shared_schema

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
    ) -> "ScopedTransactionExecutor":
        """Create an executor configured from application settings."""
        return cls(
            session_factory,
            schema_prefix=settings.tenant_schema_prefix,
            shared_schema=settings.shared_schema,
            timeout_seconds=settings.tenant_transaction_timeout,
            isolation_level=settings.tenant_isolation_level,
            include_shared_schema=settings.tenant_include_shared_schema,
        )

    def schema_for(self, tenant_id: str | None) -> tuple[str, str]:
        """Resolve the schema for a tenant, rejecting missing or unsafe IDs.

        Returns:
            The tenant ID and the name of its schema

        Raises:
            MissingTenantContextError: If tenant_id is None or empty
            MalformedTenantIdError: If tenant_id fails the allow-list
        """
        if tenant_id is None or tenant_id == "":
            logger.warning("tenant_context_missing")
            raise MissingTenantContextError()
        return tenant_id, schema_name_for(tenant_id, self.schema_prefix)

    @staticmethod
    def in_scope() -> bool:
        """Whether the current task is already inside a scoped transaction."""
        return _active_schema.get() is not None

    @asynccontextmanager
    async def scope(
        self,
        tenant_id: str | None,
        *,
        isolation_level: str | None = None,
        timeout_seconds: float | None = None,
    ) -> AsyncIterator[TenantSession]:
        """Open a transaction pinned to one tenant schema.

        Commits when the block exits normally and rolls back when it
        raises; the exception is re-raised unchanged.

        Args:
            tenant_id: The tenant's internal ID
            isolation_level: Override the executor's isolation level
            timeout_seconds: Override the executor's time budget

        Yields:
            A handle bound to the scoped transaction

        Raises:
            MissingTenantContextError: No tenant ID was given
            MalformedTenantIdError: The tenant ID failed validation
            NestedTenantScopeError: A scoped transaction is already active
            SchemaContextError: The tenant schema could not be pinned
            TenantTransactionTimeoutError: The time budget ran out
        """
        tenant_id, schema = self.schema_for(tenant_id)

        active = _active_schema.get()
        if active is not None:
            logger.error(
                "nested_tenant_scope",
                tenant_id=tenant_id,
                same_schema=active == schema,
            )
            raise NestedTenantScopeError()

        level = isolation_level or self.isolation_level
        budget = timeout_seconds or self.timeout_seconds
        log = logger.bind(tenant_id=tenant_id)

        token = _active_schema.set(schema)
        start_time = time.perf_counter()
        try:
            async with transaction_deadline(budget):
                async with self.session_factory() as session, session.begin():
                    await self._pin_scope(session, schema, level)
                    log.debug("tenant_scope_opened", isolation_level=level)
                    yield TenantSession(session, tenant_id, schema)
        finally:
            _active_schema.reset(token)

        duration_ms = (time.perf_counter() - start_time) * 1000
        log.debug("tenant_scope_committed", duration_ms=round(duration_ms, 2))

    async def run(
        self,
        tenant_id: str | None,
        unit_of_work: UnitOfWork[T],
        *,
        isolation_level: str | None = None,
        timeout_seconds: float | None = None,
    ) -> T:
        """Run ``unit_of_work`` in a tenant-scoped transaction.

        Usage:
            async def count_products(db: TenantSession) -> int:
                return await db.scalar(select(func.count()).select_from(Product))

            total = await executor.run(tenant_id, count_products)

        Returns:
            Whatever the unit of work returns, after the commit
        """
        async with self.scope(
            tenant_id,
            isolation_level=isolation_level,
            timeout_seconds=timeout_seconds,
        ) as db:
            return await unit_of_work(db)

    async def _pin_scope(
        self,
        session: AsyncSession,
        schema: str,
        isolation_level: str | None,
    ) -> None:
        """Set the transaction-local search path and check it took effect.

        PostgreSQL accepts unknown schemas in ``search_path`` silently, so
        ``current_schemas(false)`` (which lists only existing ones) is
        checked afterwards.
        """
        search_path = (
            (schema, self.shared_schema) if self.include_shared_schema else (schema,)
        )
        try:
            if isolation_level:
                await session.connection(
                    execution_options={"isolation_level": isolation_level}
                )
            await session.execute(build_search_path_statement(*search_path))
            live_schemas = await session.scalar(text("SELECT current_schemas(false)"))
        except SQLAlchemyError as exc:
            logger.error(
                "tenant_scope_failed",
                schema=schema,
                reason="statement_failed",
                error_type=type(exc).__name__,
            )
            raise SchemaContextError() from exc

        if schema not in (live_schemas or ()):
            logger.error("tenant_scope_failed", schema=schema, reason="schema_missing")
            raise SchemaContextError()
