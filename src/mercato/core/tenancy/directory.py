"""Tenant directory lookups.

Reads the shared ``tenants`` table. Inactive tenants are reported as
absent so that no caller can tell "deactivated" from "never existed".
"""

from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict
from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import SQLAlchemyError

from mercato.core.tenancy.errors import TenantDirectoryUnavailableError
from mercato.core.tenancy.models import Tenant
from mercato.core.tenancy.shared import SharedSchemaExecutor


logger = structlog.get_logger()


class TenantRecord(BaseModel):
    """Immutable snapshot of a directory row."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    slug: str
    name: str
    is_active: bool
    database_url: str | None = None


class TenantDirectory:
    """Lookups against the shared tenant directory.

    Usage:
        directory = TenantDirectory(shared_executor)
        tenant = await directory.find_by_slug("acme")
    """

    def __init__(self, shared: SharedSchemaExecutor) -> None:
        self.shared = shared

    async def find_by_slug(self, slug: str) -> TenantRecord | None:
        """Find an active tenant by its login slug."""
        return await self._find_one(Tenant.slug == slug, lookup="slug")

    async def find_by_id(self, tenant_id: str) -> TenantRecord | None:
        """Find an active tenant by its internal ID."""
        return await self._find_one(Tenant.id == tenant_id, lookup="id")

    async def list_tenants(self, include_inactive: bool = False) -> list[TenantRecord]:
        """List tenants ordered by slug.

        Args:
            include_inactive: Also return deactivated tenants

        Raises:
            TenantDirectoryUnavailableError: If the directory cannot be read
        """
        stmt = select(Tenant).order_by(Tenant.slug)
        if not include_inactive:
            stmt = stmt.where(Tenant.is_active.is_(True))
        rows = await self._fetch(stmt, lookup="list")
        return [TenantRecord.model_validate(row) for row in rows]

    async def _find_one(
        self,
        condition: ColumnElement[bool],
        lookup: str,
    ) -> TenantRecord | None:
        rows = await self._fetch(select(Tenant).where(condition), lookup=lookup)
        if not rows:
            return None
        tenant = rows[0]
        if not tenant.is_active:
            logger.info("tenant_inactive", lookup=lookup, tenant_id=tenant.id)
            return None
        return TenantRecord.model_validate(tenant)

    async def _fetch(self, stmt: Any, lookup: str) -> list[Tenant]:
        try:
            async with self.shared.scope() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.error(
                "tenant_directory_unavailable",
                lookup=lookup,
                error_type=type(exc).__name__,
            )
            raise TenantDirectoryUnavailableError() from exc
