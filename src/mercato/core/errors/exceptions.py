"""Domain exceptions.

Every error that reaches a client derives from ``AppException`` and is
rendered as an RFC 7807 Problem Details body by
``mercato.core.errors.handlers``. The tenancy layer's error kinds live in
``mercato.core.tenancy.errors`` and share this base.
"""

from typing import Any


class AppException(Exception):
    """Base for errors with a client-facing rendering.

    ``message`` is shown to the client as-is, so it must never contain
    schema names, SQL or raw tenant identifiers.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code, also the problem type slug
        status_code: HTTP status code for the response
        details: Extra members merged into the problem body
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """A requested record does not exist (or is not visible to the caller).

    Example:
        raise NotFoundError("Tenant not found", resource="tenant", resource_id=tenant_id)
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """A uniqueness rule would be broken (duplicate SKU, slug, email)."""

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class UnauthorizedError(AppException):
    """No usable credentials: missing or bad token, failed login."""

    message = "Authentication required"
    error_code = "unauthorized"
    status_code = 401


class ForbiddenError(AppException):
    """The session is valid but may not do this.

    Example:
        raise ForbiddenError(
            "Missing required permissions: products:write",
            error_code="permission_denied",
            details={"required_permissions": ["products:write"]},
        )
    """

    message = "Access forbidden"
    error_code = "forbidden"
    status_code = 403


class RateLimitError(AppException):
    """Too many requests from one tenant user.

    Example:
        raise RateLimitError(details={"retry_after": 42, "rate_limit": 60})
    """

    message = "Too many requests. Please try again later."
    error_code = "rate_limit_exceeded"
    status_code = 429
