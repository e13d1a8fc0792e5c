"""RFC 7807 Problem Details rendering.

Every error response has the same shape::

    {"type": ".../errors/<error_code>", "title": ..., "status": ...,
     "detail": ..., "instance": <path>, "trace_id": <request id>, ...}

Tenant-facing messages come from the exception itself; nothing from the
database (schema names, SQL, driver messages) is ever copied into a body.
"""

from typing import TYPE_CHECKING, Any, cast

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mercato.config import settings
from mercato.core.errors.exceptions import AppException


if TYPE_CHECKING:
    from starlette.types import ExceptionHandler


logger = structlog.get_logger()

# Detail keys rendered as headers instead of body members
_HEADER_DETAILS = {
    "retry_after": "Retry-After",
    "rate_limit": "X-RateLimit-Limit",
    "rate_limit_reset": "X-RateLimit-Reset",
}


class FieldError(BaseModel):
    """One invalid request field."""

    field: str
    message: str
    type: str | None = None


class ProblemDetail(BaseModel):
    """Problem Details body. Extra members are allowed."""

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None
    errors: list[FieldError] | None = None
    trace_id: str | None = None

    model_config = {"extra": "allow"}


def _problem(
    request: Request,
    *,
    status_code: int,
    error_code: str,
    detail: str,
    title: str | None = None,
    errors: list[FieldError] | None = None,
    headers: dict[str, str] | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ProblemDetail(
        type=f"{settings.api_docs_base_url}/errors/{error_code}",
        title=title or error_code.replace("_", " ").title(),
        status=status_code,
        detail=detail,
        instance=request.url.path,
        errors=errors,
        trace_id=getattr(request.state, "trace_id", None),
    ).model_dump(exclude_none=True)

    for key, value in (extra or {}).items():
        body.setdefault(key, value)

    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an ``AppException`` subclass.

    401 and 403 responses are logged as security events so rejected
    tenant sessions can be audited.
    """
    event = {
        "error_code": exc.error_code,
        "status_code": exc.status_code,
        "path": request.url.path,
    }
    if exc.status_code >= 500:
        logger.error("app_exception", **event)
    elif exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        logger.warning("app_exception", security=True, **event)
    else:
        logger.info("app_exception", **event)

    headers = {
        header: str(exc.details[key])
        for key, header in _HEADER_DETAILS.items()
        if exc.details.get(key) is not None
    }
    return _problem(
        request,
        status_code=exc.status_code,
        error_code=exc.error_code,
        detail=exc.message,
        headers=headers or None,
        extra={k: v for k, v in exc.details.items() if k not in _HEADER_DETAILS},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures with one entry per field."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in error.get("loc", ()) if part != "body")
            or "unknown",
            message=error.get("msg", "Invalid value"),
            type=error.get("type"),
        )
        for error in exc.errors()
    ]

    logger.info("validation_error", path=request.url.path, error_count=len(errors))

    return _problem(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="validation_error",
        title="Validation Error",
        detail="Request validation failed",
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything else as a bare 500; the traceback goes to the log only."""
    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        error_type=type(exc).__name__,
    )

    return _problem(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="internal_error",
        title="Internal Server Error",
        detail="An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the Problem Details handlers on ``app``."""
    handlers: list[tuple[type[Exception], Any]] = [
        (AppException, app_exception_handler),
        (RequestValidationError, validation_exception_handler),
        (Exception, unhandled_exception_handler),
    ]
    for exc_class, handler in handlers:
        app.add_exception_handler(exc_class, cast("ExceptionHandler", handler))
