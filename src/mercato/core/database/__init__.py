"""Database layer - engine ownership, declarative bases, and mixins."""

from mercato.core.database.base import SharedBase, TenantBase, TimestampMixin, UUIDMixin
from mercato.core.database.engine import Database


__all__ = [
    "Database",
    "SharedBase",
    "TenantBase",
    "TimestampMixin",
    "UUIDMixin",
]
