"""Shared API dependencies.

The request-scoped wiring of the tenancy core:

    bearer token -> SessionContext -> TenantResolver -> scoped transaction

``get_tenant_db`` opens exactly one scoped transaction per request.
FastAPI caches dependency results per request, so the permission check
and the route handler receive the same handle and see the same snapshot.
It is function-scoped: the transaction is over before the response goes
out.
"""

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from mercato.core.auth.backend import decode_token
from mercato.core.errors import ForbiddenError, UnauthorizedError
from mercato.core.tenancy import (
    SHARED_SCHEMA_ONLY,
    ScopedTransactionExecutor,
    SessionContext,
    SharedSchemaExecutor,
    SharedScope,
    TenantDirectory,
    TenantResolver,
    TenantSession,
)


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Application state
# ============================================================


def get_executor(request: Request) -> ScopedTransactionExecutor:
    return request.app.state.executor


def get_shared_executor(request: Request) -> SharedSchemaExecutor:
    return request.app.state.shared_executor


def get_directory(request: Request) -> TenantDirectory:
    return request.app.state.directory


def get_resolver(request: Request) -> TenantResolver:
    return request.app.state.resolver


Executor = Annotated[ScopedTransactionExecutor, Depends(get_executor)]
SharedExecutor = Annotated[SharedSchemaExecutor, Depends(get_shared_executor)]
Directory = Annotated[TenantDirectory, Depends(get_directory)]
Resolver = Annotated[TenantResolver, Depends(get_resolver)]


# ============================================================
# Session and tenant resolution
# ============================================================


async def get_session_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> SessionContext:
    """Decode the bearer token into the session's claims.

    Raises:
        UnauthorizedError: If the token is missing, invalid or expired
    """
    if not credentials:
        raise UnauthorizedError(
            "Missing authentication token",
            error_code="missing_token",
        )

    token_data = decode_token(credentials.credentials)
    if not token_data:
        raise UnauthorizedError(
            "Invalid or expired token",
            error_code="invalid_token",
        )

    if token_data.type != "access":
        raise UnauthorizedError(
            "Invalid token type",
            error_code="invalid_token_type",
        )

    return token_data.to_session_context()


CurrentSession = Annotated[SessionContext, Depends(get_session_context)]


async def get_resolved_scope(
    ctx: CurrentSession,
    resolver: Resolver,
) -> str | SharedScope:
    """Resolve the session to a tenant ID or the shared-schema marker."""
    return await resolver.resolve(ctx)


ResolvedScope = Annotated[str | SharedScope, Depends(get_resolved_scope)]


async def get_tenant_db(
    scope: ResolvedScope,
    executor: Executor,
) -> AsyncIterator[TenantSession]:
    """Yield the request's tenant-scoped handle.

    The transaction commits after the handler returns and rolls back if
    it raises. Both happen before the response is sent, so a failed
    commit or an expired deadline reaches the client as an error.

    Raises:
        ForbiddenError: If the session is a platform superadmin session
    """
    if scope is SHARED_SCHEMA_ONLY:
        raise ForbiddenError(
            "This endpoint is only available to tenant users",
            error_code="tenant_session_required",
        )

    async with executor.scope(scope) as db:
        yield db


# Function scope: the transaction ends before the response is sent
TenantDB = Annotated[TenantSession, Depends(get_tenant_db, scope="function")]


async def get_superadmin(
    ctx: CurrentSession,
    scope: ResolvedScope,
) -> SessionContext:
    """Require a platform superadmin session.

    Raises:
        ForbiddenError: If the session belongs to a tenant user
    """
    if scope is not SHARED_SCHEMA_ONLY:
        raise ForbiddenError(
            "Superadmin privileges required",
            error_code="not_superadmin",
        )
    return ctx


Superadmin = Annotated[SessionContext, Depends(get_superadmin)]


async def get_shared_db(
    _admin: Superadmin,
    shared: SharedExecutor,
) -> AsyncIterator[AsyncSession]:
    """Yield a shared-schema session for superadmin routes."""
    async with shared.scope() as session:
        yield session


SharedDB = Annotated[AsyncSession, Depends(get_shared_db, scope="function")]
