"""User database models."""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mercato.core.constants import MAX_NAME_LENGTH, MAX_USERNAME_LENGTH
from mercato.core.database.base import TenantBase, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from mercato.core.permissions.models import Role


class User(TenantBase, UUIDMixin, TimestampMixin):
    """A staff member of one tenant.

    Lives in the tenant schema, so usernames only need to be unique
    within a tenant.

    Attributes:
        username: Login name, unique within the tenant
        password_hash: Bcrypt-hashed password
        full_name: User's full name
        is_active: Whether the user can log in
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(MAX_USERNAME_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary="user_roles",
        back_populates="users",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
