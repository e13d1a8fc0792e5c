"""SQLAlchemy declarative bases and common mixins.

There are two model registries:

- ``SharedBase`` tables live in the shared schema and are always
  schema-qualified (tenant directory, platform admins).
- ``TenantBase`` tables carry no schema. They resolve through the
  transaction's ``search_path``, so the same model reads and writes
  whichever tenant schema the scoped transaction pinned.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from mercato.core.constants import DEFAULT_SHARED_SCHEMA


class SharedBase(DeclarativeBase):
    """Base class for models stored in the shared schema."""

    metadata = MetaData(schema=DEFAULT_SHARED_SCHEMA)


class TenantBase(DeclarativeBase):
    """Base class for models stored in each tenant schema."""

    metadata = MetaData()


class UUIDMixin:
    """Mixin that adds a UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
