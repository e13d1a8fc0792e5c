"""Pydantic schemas for product operations."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from mercato.core.constants import MAX_NAME_LENGTH, MAX_SKU_LENGTH


class ProductCreate(BaseModel):
    """Schema for creating a product."""

    sku: str = Field(..., min_length=1, max_length=MAX_SKU_LENGTH)
    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class ProductResponse(BaseModel):
    """Schema for product response data."""

    id: UUID
    sku: str
    name: str
    price: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for listing products."""

    items: list[ProductResponse]
    total: int
    limit: int
    offset: int
