"""Permission dependencies for route protection.

Usage:
    @router.post("", dependencies=[Depends(require_permission("products:write"))])
    async def create_product(data: ProductCreate, db: TenantDB):
        ...

The check runs on the request's scoped handle, in the same transaction as
the handler. The caller's rate limit is enforced first.
"""

from collections.abc import Awaitable, Callable
from uuid import UUID

import structlog

from mercato.api.dependencies import CurrentSession, TenantDB
from mercato.core.errors import ForbiddenError, UnauthorizedError
from mercato.core.permissions.checker import PermissionChecker, parse_permission
from mercato.core.rate_limit.dependencies import RateLimited
from mercato.core.tenancy import SessionContext


logger = structlog.get_logger()


def require_permission(*names: str) -> Callable[..., Awaitable[SessionContext]]:
    """Build a dependency that requires every listed permission.

    Args:
        names: Permissions as "resource:action" strings

    Returns:
        A FastAPI dependency returning the session context

    Raises:
        ValueError: At import time, if a name is malformed
    """
    required = [parse_permission(name) for name in names]

    # The rate limit is counted before the scoped transaction opens
    async def dependency(
        _quota: RateLimited,
        ctx: CurrentSession,
        db: TenantDB,
    ) -> SessionContext:
        try:
            user_id = UUID(ctx.user_id)
        except ValueError as exc:
            raise UnauthorizedError(
                "Invalid or expired token",
                error_code="invalid_token",
            ) from exc

        checker = PermissionChecker(db)
        if not await checker.has_all_permissions(user_id, required):
            logger.warning(
                "permission_denied",
                user_id=ctx.user_id,
                tenant_id=db.tenant_id,
                required_permissions=list(names),
            )
            raise ForbiddenError(
                f"Missing required permissions: {', '.join(names)}",
                error_code="permission_denied",
                details={"required_permissions": list(names)},
            )
        return ctx

    return dependency
