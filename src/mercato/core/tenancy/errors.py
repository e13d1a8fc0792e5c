"""Error kinds raised by the tenancy layer.

Every class here derives from ``TenancyError`` so callers can catch the
family. Messages are the only text that reaches end users: they never
contain schema names or tenant identifiers, and ``details`` stays empty
unless a value is safe to show.
"""

from mercato.core.errors.exceptions import AppException


RELOGIN_MESSAGE = "Session is invalid. Please log in again."
TRY_AGAIN_MESSAGE = "Please try again later."


class TenancyError(AppException):
    """Base class for tenant scoping failures."""

    error_code = "tenancy_error"


class MissingTenantContextError(TenancyError):
    """No tenant ID was available for a path that requires one."""

    message = RELOGIN_MESSAGE
    error_code = "missing_tenant_context"
    status_code = 401


class InvalidTenantSessionError(TenancyError):
    """The session names a tenant that is absent or inactive.

    Absent and inactive are deliberately indistinguishable to the caller.
    """

    message = RELOGIN_MESSAGE
    error_code = "invalid_session"
    status_code = 401


class MalformedTenantIdError(TenancyError):
    """A tenant ID failed the schema identifier allow-list."""

    message = RELOGIN_MESSAGE
    error_code = "malformed_tenant_id"
    status_code = 400


class SchemaContextError(TenancyError):
    """The tenant schema could not be pinned for the transaction."""

    message = f"Account is temporarily unavailable. {TRY_AGAIN_MESSAGE}"
    error_code = "schema_context_unavailable"
    status_code = 403


class TenantTransactionTimeoutError(TenancyError):
    """A scoped transaction exceeded its time budget and was rolled back.

    Safe to retry with a fresh scope.
    """

    message = TRY_AGAIN_MESSAGE
    error_code = "transaction_timeout"
    status_code = 503


class TenantDirectoryUnavailableError(TenancyError):
    """The tenant directory could not be queried."""

    message = TRY_AGAIN_MESSAGE
    error_code = "tenant_directory_unavailable"
    status_code = 503


class NestedTenantScopeError(TenancyError):
    """A scoped transaction was opened while another one is active."""

    error_code = "nested_tenant_scope"


class ScopeOverrideError(TenancyError):
    """Business code tried to change ``search_path`` on a scoped handle."""

    error_code = "scope_override"
