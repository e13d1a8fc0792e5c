"""Product database models."""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from mercato.core.constants import MAX_NAME_LENGTH, MAX_SKU_LENGTH
from mercato.core.database.base import TenantBase, TimestampMixin, UUIDMixin


class Product(TenantBase, UUIDMixin, TimestampMixin):
    """An item a tenant sells.

    Attributes:
        sku: Stock keeping unit, unique within the tenant
        name: Display name
        price: Unit price
        is_active: Whether the product is still offered
    """

    __tablename__ = "products"

    sku: Mapped[str] = mapped_column(
        String(MAX_SKU_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku={self.sku})>"
