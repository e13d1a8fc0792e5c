"""Session-to-tenant resolution.

Turns an authenticated session into either a tenant ID that the scoped
executor can use, or the shared-schema marker for platform superadmins.
"""

import enum
from dataclasses import dataclass

import structlog

from mercato.core.tenancy.directory import TenantDirectory
from mercato.core.tenancy.errors import (
    InvalidTenantSessionError,
    MissingTenantContextError,
)
from mercato.core.tenancy.identifiers import validate_tenant_id


logger = structlog.get_logger()


class SharedScope(enum.Enum):
    """Marker for sessions that only ever use the shared schema."""

    SHARED_SCHEMA_ONLY = "shared_schema_only"


SHARED_SCHEMA_ONLY = SharedScope.SHARED_SCHEMA_ONLY


@dataclass(frozen=True)
class SessionContext:
    """Claims carried by an authenticated session.

    Attributes:
        user_id: The authenticated user (tenant user or platform admin)
        tenant_id: The tenant the user belongs to; None for superadmins
        is_superadmin: Whether this is a platform-level session
    """

    user_id: str
    tenant_id: str | None = None
    is_superadmin: bool = False


class TenantResolver:
    """Maps session contexts to tenant IDs via the directory."""

    def __init__(self, directory: TenantDirectory) -> None:
        self.directory = directory

    async def resolve(self, ctx: SessionContext) -> str | SharedScope:
        """Resolve the tenant a session may act on.

        Args:
            ctx: The decoded session

        Returns:
            The tenant ID, or ``SHARED_SCHEMA_ONLY`` for superadmins

        Raises:
            MissingTenantContextError: Non-superadmin session without a tenant
            MalformedTenantIdError: The session's tenant ID is unsafe
            InvalidTenantSessionError: The tenant is absent or inactive
            TenantDirectoryUnavailableError: The directory cannot be read
        """
        if ctx.is_superadmin:
            return SHARED_SCHEMA_ONLY

        if not ctx.tenant_id:
            logger.warning("tenant_context_missing", user_id=ctx.user_id)
            raise MissingTenantContextError()

        tenant_id = validate_tenant_id(ctx.tenant_id)
        structlog.contextvars.bind_contextvars(tenant_id=tenant_id)

        tenant = await self.directory.find_by_id(tenant_id)
        if tenant is None:
            logger.warning(
                "tenant_session_rejected",
                user_id=ctx.user_id,
                tenant_id=tenant_id,
            )
            raise InvalidTenantSessionError()

        return tenant.id
