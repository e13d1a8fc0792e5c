"""Product repository for database operations."""

from sqlalchemy import Select, func, select

from mercato.core.tenancy.session import TenantSession
from mercato.modules.products.models import Product


class ProductRepository:
    """Repository for Product database operations.

    All queries go through the scoped handle and hit the current tenant's
    ``products`` table.
    """

    def __init__(self, db: TenantSession) -> None:
        self.db = db

    async def create(self, product: Product) -> Product:
        """Create a new product.

        Args:
            product: Product instance to create

        Returns:
            The created product with ID and timestamps populated
        """
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        return product

    async def get_by_sku(self, sku: str) -> Product | None:
        result = await self.db.execute(select(Product).where(Product.sku == sku))
        return result.scalar_one_or_none()

    async def list_page(
        self,
        limit: int,
        offset: int = 0,
        include_inactive: bool = False,
    ) -> tuple[list[Product], int]:
        """List products with pagination.

        Args:
            limit: Maximum number of items to return
            offset: Number of items to skip
            include_inactive: Also return discontinued products

        Returns:
            Tuple of (products list, total count)
        """
        count_stmt: Select[tuple[int]] = select(func.count()).select_from(Product)
        stmt = select(Product).order_by(Product.sku).offset(offset).limit(limit)
        if not include_inactive:
            count_stmt = count_stmt.where(Product.is_active.is_(True))
            stmt = stmt.where(Product.is_active.is_(True))

        total = (await self.db.execute(count_stmt)).scalar_one()
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total
