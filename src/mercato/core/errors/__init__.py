"""Client-facing errors and their RFC 7807 rendering."""

from mercato.core.errors.exceptions import (
    AppException,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    UnauthorizedError,
)
from mercato.core.errors.handlers import register_exception_handlers


__all__ = [
    "AppException",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "RateLimitError",
    "UnauthorizedError",
    "register_exception_handlers",
]
