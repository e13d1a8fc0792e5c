"""Schema-per-tenant isolation.

Every request that touches tenant data runs inside a scoped transaction
whose lookup scope is pinned to that tenant's schema.
"""

from mercato.core.tenancy.directory import TenantDirectory, TenantRecord
from mercato.core.tenancy.errors import (
    InvalidTenantSessionError,
    MalformedTenantIdError,
    MissingTenantContextError,
    NestedTenantScopeError,
    SchemaContextError,
    ScopeOverrideError,
    TenancyError,
    TenantDirectoryUnavailableError,
    TenantTransactionTimeoutError,
)
from mercato.core.tenancy.executor import ScopedTransactionExecutor
from mercato.core.tenancy.identifiers import (
    schema_name_for,
    validate_schema_name,
    validate_tenant_id,
)
from mercato.core.tenancy.resolver import (
    SHARED_SCHEMA_ONLY,
    SessionContext,
    SharedScope,
    TenantResolver,
)
from mercato.core.tenancy.session import TenantSession
from mercato.core.tenancy.shared import SharedSchemaExecutor


__all__ = [
    "SHARED_SCHEMA_ONLY",
    "InvalidTenantSessionError",
    "MalformedTenantIdError",
    "MissingTenantContextError",
    "NestedTenantScopeError",
    "SchemaContextError",
    "ScopeOverrideError",
    "ScopedTransactionExecutor",
    "SessionContext",
    "SharedSchemaExecutor",
    "SharedScope",
    "TenancyError",
    "TenantDirectory",
    "TenantDirectoryUnavailableError",
    "TenantRecord",
    "TenantResolver",
    "TenantSession",
    "TenantTransactionTimeoutError",
    "schema_name_for",
    "validate_schema_name",
    "validate_tenant_id",
]
