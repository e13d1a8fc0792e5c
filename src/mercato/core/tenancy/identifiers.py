"""Tenant ID validation and schema name composition.

Schema names cannot be bound as query parameters, so they end up
interpolated into the ``SET LOCAL search_path`` statement. This module is
the only place allowed to build that statement, and every name it
interpolates goes through the allow-list first.
"""

import re

import structlog
from sqlalchemy import TextClause, text

from mercato.core.constants import (
    DEFAULT_TENANT_SCHEMA_PREFIX,
    MAX_IDENTIFIER_LENGTH,
    TENANT_ID_PATTERN,
)
from mercato.core.tenancy.errors import MalformedTenantIdError


logger = structlog.get_logger()

_IDENTIFIER_RE = re.compile(TENANT_ID_PATTERN)


def _reject(reason: str, value: object) -> MalformedTenantIdError:
    # Never log the raw value: it may be an injection attempt
    logger.warning(
        "tenant_id_rejected",
        security=True,
        reason=reason,
        value_type=type(value).__name__,
        value_length=len(value) if isinstance(value, str) else None,
    )
    return MalformedTenantIdError()


def validate_tenant_id(tenant_id: object) -> str:
    """Check a raw tenant ID against the identifier allow-list.

    Args:
        tenant_id: The ID as received from a session or caller

    Returns:
        The ID, unchanged

    Raises:
        MalformedTenantIdError: If the ID is not a non-empty string of
            letters, digits, hyphens and underscores
    """
    if not isinstance(tenant_id, str):
        raise _reject("not_a_string", tenant_id)
    if not tenant_id:
        raise _reject("empty", tenant_id)
    # fullmatch so a trailing newline cannot slip past "$"
    if _IDENTIFIER_RE.fullmatch(tenant_id) is None:
        raise _reject("pattern_mismatch", tenant_id)
    return tenant_id


def validate_schema_name(name: object) -> str:
    """Check a complete schema name (e.g. the configured shared schema)."""
    value = validate_tenant_id(name)
    if len(value) > MAX_IDENTIFIER_LENGTH:
        raise _reject("too_long", value)
    return value


def schema_name_for(
    tenant_id: object,
    prefix: str = DEFAULT_TENANT_SCHEMA_PREFIX,
) -> str:
    """Derive the schema name that holds a tenant's tables.

    The ID is lower-cased so the name matches the unquoted form PostgreSQL
    would fold it to.

    Examples:
        >>> schema_name_for("abc123")
        'tenant_abc123'
        >>> schema_name_for("Store-7")
        'tenant_store-7'
    """
    value = validate_tenant_id(tenant_id)
    return validate_schema_name(f"{prefix}{value.lower()}")


def build_search_path_statement(*schemas: str) -> TextClause:
    """Build the transaction-local ``search_path`` statement.

    Args:
        schemas: Schema names in lookup order, tenant schema first

    Returns:
        ``SET LOCAL search_path TO "a", "b"`` as a SQLAlchemy text clause
    """
    if not schemas:
        raise ValueError("At least one schema is required")
    quoted = ", ".join(f'"{validate_schema_name(schema)}"' for schema in schemas)
    return text(f"SET LOCAL search_path TO {quoted}")
