"""Per-request rate limiting for authenticated routes.

Requests are counted per tenant, user, client IP and endpoint, after the
session has been resolved. GET and HEAD draw on the read limit, every
other method on the write limit.
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request

from mercato.api.dependencies import CurrentSession, ResolvedScope
from mercato.config import Settings
from mercato.core.constants import READ_METHODS
from mercato.core.errors import RateLimitError
from mercato.core.rate_limit.backend import RateLimiter
from mercato.core.tenancy import SHARED_SCHEMA_ONLY, SessionContext, SharedScope


logger = structlog.get_logger()


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def client_ip(request: Request) -> str:
    """First address in ``X-Forwarded-For``, else the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit_identifier(
    scope: str | SharedScope,
    ctx: SessionContext,
    ip: str,
) -> str:
    tenant = "shared" if scope is SHARED_SCHEMA_ONLY else scope
    return f"tenant:{tenant}:user:{ctx.user_id}:ip:{ip}"


async def enforce_rate_limit(
    request: Request,
    ctx: CurrentSession,
    scope: ResolvedScope,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Count the request and refuse it once the caller is over the limit.

    Raises:
        RateLimitError: With ``Retry-After`` and ``X-RateLimit-*`` details
    """
    settings: Settings = request.app.state.settings
    if not settings.rate_limit_enabled:
        return

    limit = (
        settings.rate_limit_read_requests
        if request.method in READ_METHODS
        else settings.rate_limit_write_requests
    )
    result = await limiter.is_allowed(
        identifier=rate_limit_identifier(scope, ctx, client_ip(request)),
        limit=limit,
        window=settings.rate_limit_window,
        endpoint=request.url.path,
    )

    if not result.allowed:
        logger.warning(
            "rate_limit_exceeded",
            user_id=ctx.user_id,
            method=request.method,
            path=request.url.path,
            limit=result.limit,
            retry_after=result.retry_after,
        )
        raise RateLimitError(
            details={
                "retry_after": result.retry_after,
                "rate_limit": result.limit,
                "rate_limit_reset": result.reset_time,
            }
        )


RateLimited = Annotated[None, Depends(enforce_rate_limit)]
