"""Deprecated entry points from the database-per-tenant era.

Tenants used to have their own database, reached through a per-tenant
client cached by connection string. All tenants now share one database
and one pool, so these functions hand back the shared engine with **no**
tenant scope applied. Callers must qualify every object with its schema.

Every call emits a ``DeprecationWarning`` and a structlog warning.
"""

import warnings

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from mercato.core.database import Database
from mercato.core.tenancy import SessionContext


logger = structlog.get_logger()


def _deprecated(name: str, replacement: str) -> None:
    warnings.warn(
        f"{name}() is deprecated and returns an unscoped connection; "
        f"use {replacement} instead",
        DeprecationWarning,
        stacklevel=3,
    )
    logger.warning("legacy_tenancy_shim_called", shim=name, security=True)


def get_tenant_engine(database: Database, database_url: str | None = None) -> AsyncEngine:
    """Return the shared engine, ignoring the legacy per-tenant URL.

    Args:
        database: The process's shared database
        database_url: The tenant's old connection string; ignored

    Returns:
        The shared, unscoped engine
    """
    _deprecated("get_tenant_engine", "ScopedTransactionExecutor.scope()")
    if database_url:
        logger.info("legacy_database_url_ignored")
    return database.engine


def get_database_for_session(database: Database, ctx: SessionContext) -> AsyncEngine:
    """Return the shared engine for any session, unscoped.

    The session is not resolved: no directory lookup and no schema pinning
    happen here.
    """
    _deprecated("get_database_for_session", "TenantResolver.resolve()")
    return database.engine


def clear_tenant_cache() -> None:
    """No-op. There is no per-tenant client cache any more."""
    _deprecated("clear_tenant_cache", "nothing")
