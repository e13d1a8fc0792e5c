"""Access logging for HTTP requests."""

import time
from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()

QUIET_PATH_PREFIXES = ("/health/", "/docs", "/redoc", "/openapi.json")


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one ``request_completed`` event per request, or ``request_failed``.

    Probes and docs are not logged. The request ID, tenant and user are
    already in the structlog context (see ``mercato.core.auth.middleware``),
    so they are not repeated here.
    """

    def __init__(
        self,
        app: "ASGIApp",
        quiet_prefixes: tuple[str, ...] = QUIET_PATH_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.quiet_prefixes = quiet_prefixes

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path.startswith(self.quiet_prefixes):
            return await call_next(request)

        log = logger.bind(method=request.method, path=request.url.path)
        log.debug(
            "request_started",
            client_ip=request.client.host if request.client else None,
        )
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception(
                "request_failed",
                duration_ms=_elapsed_ms(start),
                error_type=type(exc).__name__,
            )
            raise

        status_code = response.status_code
        emit = log.error if status_code >= 500 else log.warning if status_code >= 400 else log.info
        emit("request_completed", status_code=status_code, duration_ms=_elapsed_ms(start))
        return response
