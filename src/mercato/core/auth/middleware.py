"""Log-context middleware.

``RequestIdMiddleware`` gives every request a trace ID. ``SessionLogContextMiddleware``
adds the token's user to the structlog context so every event a request
emits can be attributed. The tenant is bound later, by the resolver, once
its ID has passed validation. Neither one authorizes anything: the
request dependencies decode the token again and resolve the tenant through
the directory.
"""

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from mercato.core.auth.backend import decode_token


if TYPE_CHECKING:
    from starlette.types import ASGIApp


REQUEST_ID_HEADER = "X-Request-ID"

# Paths that never carry a session token
SESSIONLESS_PATH_PREFIXES = (
    "/health",
    "/info",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/api/v1/auth/login",
    "/api/v1/auth/admin/login",
)

_CONTEXT_KEYS = ("request_id", "tenant_id", "user_id", "is_superadmin")


def _bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class SessionLogContextMiddleware(BaseHTTPMiddleware):
    """Binds ``user_id`` and ``is_superadmin`` for logging.

    The token's tenant ID is left out: it is untrusted until validated.

    An invalid or missing token binds nothing; the dependencies reject it.
    """

    def __init__(
        self,
        app: "ASGIApp",
        skip_prefixes: tuple[str, ...] = SESSIONLESS_PATH_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.skip_prefixes = skip_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        token = None
        if not request.url.path.startswith(self.skip_prefixes):
            token = _bearer_token(request)

        token_data = decode_token(token) if token else None
        if token_data is not None:
            structlog.contextvars.bind_contextvars(
                user_id=token_data.user_id,
                is_superadmin=token_data.is_superadmin,
            )

        return await call_next(request)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID and clears the log context afterwards.

    The ID comes from the ``X-Request-ID`` header when the client sends one.
    It is stored as ``request.state.trace_id`` (used in problem bodies),
    bound to the structlog context and echoed in the response header.
    Must be the outermost of the log-context middlewares.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.trace_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars(*_CONTEXT_KEYS)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
