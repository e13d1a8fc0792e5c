"""Tenant-scoped database handle.

This module provides the handle that business code receives inside a
scoped transaction. It forwards to the underlying ``AsyncSession`` but
owns neither the transaction boundary nor the lookup scope.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

import structlog
from sqlalchemy import Executable, Result, ScalarResult, TextClause
from sqlalchemy.ext.asyncio import AsyncSession

from mercato.core.tenancy.errors import ScopeOverrideError


logger = structlog.get_logger()

T = TypeVar("T")

_SCOPE_OVERRIDE_RE = re.compile(r"search_path|set_config\s*\(", re.IGNORECASE)


class TenantSession:
    """Wraps AsyncSession for the lifetime of one scoped transaction.

    Unqualified table names resolve against the tenant schema first and
    the shared schema second. There is no ``commit``/``rollback`` here:
    the executor that created the handle ends the transaction.

    Usage:
        async with executor.scope(tenant_id) as db:
            result = await db.execute(select(Product))
    """

    def __init__(self, session: AsyncSession, tenant_id: str, schema: str) -> None:
        self._session = session
        self._tenant_id = tenant_id
        self._schema = schema

    @property
    def tenant_id(self) -> str:
        """The tenant this handle is pinned to."""
        return self._tenant_id

    @property
    def schema(self) -> str:
        """The tenant schema at the head of the lookup scope."""
        return self._schema

    def _guard(self, statement: Executable) -> None:
        """Refuse textual statements that would change the lookup scope."""
        if isinstance(statement, TextClause) and _SCOPE_OVERRIDE_RE.search(
            statement.text
        ):
            logger.error(
                "tenant_scope_override_refused",
                tenant_id=self._tenant_id,
            )
            raise ScopeOverrideError()

    async def execute(
        self,
        statement: Executable,
        params: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
        **kwargs: Any,
    ) -> Result[Any]:
        """Execute a statement inside the scoped transaction."""
        self._guard(statement)
        return await self._session.execute(statement, params, **kwargs)

    async def scalar(
        self,
        statement: Executable,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Execute a statement and return the first column of the first row."""
        self._guard(statement)
        return await self._session.scalar(statement, params, **kwargs)

    async def scalars(
        self,
        statement: Executable,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> ScalarResult[Any]:
        """Execute a statement and return scalar results."""
        self._guard(statement)
        return await self._session.scalars(statement, params, **kwargs)

    async def get(self, entity: type[T], ident: Any) -> T | None:
        """Get an entity by primary key from the tenant schema."""
        return await self._session.get(entity, ident)

    def add(self, instance: Any) -> None:
        """Add an instance to the transaction."""
        self._session.add(instance)

    def add_all(self, instances: Iterable[Any]) -> None:
        """Add several instances to the transaction."""
        self._session.add_all(instances)

    async def delete(self, instance: Any) -> None:
        """Mark an instance for deletion."""
        await self._session.delete(instance)

    async def flush(self) -> None:
        """Flush pending changes to the database."""
        await self._session.flush()

    async def refresh(self, instance: Any) -> None:
        """Refresh an instance from the database."""
        await self._session.refresh(instance)
