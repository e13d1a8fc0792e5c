"""Platform administrator model."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mercato.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from mercato.core.database.base import SharedBase, TimestampMixin, UUIDMixin


class PlatformAdmin(SharedBase, UUIDMixin, TimestampMixin):
    """A superadmin account stored in the shared schema.

    Platform admins belong to no tenant. Their sessions resolve to the
    shared schema only.
    """

    __tablename__ = "platform_admins"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
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

    def __repr__(self) -> str:
        return f"<PlatformAdmin(id={self.id}, email={self.email})>"
