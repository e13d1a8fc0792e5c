"""Tenant directory table."""

from sqlalchemy import Boolean, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from mercato.core.constants import MAX_NAME_LENGTH, MAX_SLUG_LENGTH, MAX_TENANT_ID_LENGTH
from mercato.core.database.base import SharedBase, TimestampMixin


class Tenant(SharedBase, TimestampMixin):
    """A customer business registered on the platform.

    Lives in the shared schema. The tenant's own tables live in the
    schema derived from ``id``.

    Attributes:
        id: Internal identifier; the schema name is derived from it
        slug: URL-safe identifier entered at login
        name: Display name of the business
        is_active: Inactive tenants behave exactly like absent ones
        database_url: Per-tenant connection string from the
            database-per-tenant era. Only the maintenance shims read it.
    """

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(
        String(MAX_TENANT_ID_LENGTH),
        primary_key=True,
    )
    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        unique=True,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    database_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug={self.slug}, is_active={self.is_active})>"


# Schema names are derived from the lower-cased ID, so IDs differing only
# in case would share a schema
Index("uq_tenants_id_lower", func.lower(Tenant.id), unique=True)
