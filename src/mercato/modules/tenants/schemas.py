"""Pydantic schemas for tenant administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TenantResponse(BaseModel):
    """Directory entry as shown to platform admins.

    The legacy ``database_url`` is never exposed.
    """

    id: str
    slug: str
    name: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TenantDetailResponse(TenantResponse):
    created_at: datetime
    updated_at: datetime


class TenantListResponse(BaseModel):
    items: list[TenantResponse]
    total: int
