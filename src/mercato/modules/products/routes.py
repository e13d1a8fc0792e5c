"""Product API routes.

Every route runs inside the caller's tenant-scoped transaction.
"""

from fastapi import APIRouter, Depends, Query, status

from mercato.api.dependencies import TenantDB
from mercato.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from mercato.core.errors import ConflictError
from mercato.core.permissions.dependencies import require_permission
from mercato.modules.products.models import Product
from mercato.modules.products.repos import ProductRepository
from mercato.modules.products.schemas import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
)


router = APIRouter(prefix="/products", tags=["products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="List the current tenant's products.",
    dependencies=[Depends(require_permission("products:read"))],
)
async def list_products(
    db: TenantDB,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    include_inactive: bool = False,
) -> ProductListResponse:
    """List products."""
    products, total = await ProductRepository(db).list_page(
        limit=limit,
        offset=offset,
        include_inactive=include_inactive,
    )
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="Add a product to the current tenant's catalog.",
    dependencies=[Depends(require_permission("products:write"))],
)
async def create_product(data: ProductCreate, db: TenantDB) -> ProductResponse:
    """Create a product."""
    repo = ProductRepository(db)
    if await repo.get_by_sku(data.sku):
        raise ConflictError(
            "A product with this SKU already exists",
            error_code="sku_exists",
            details={"sku": data.sku},
        )

    product = await repo.create(
        Product(sku=data.sku, name=data.name, price=data.price)
    )
    return ProductResponse.model_validate(product)
