"""Platform admin repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mercato.modules.admins.models import PlatformAdmin


class PlatformAdminRepository:
    """Repository for PlatformAdmin rows.

    Works on a shared-schema session, never on a tenant-scoped handle.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_email(self, email: str) -> PlatformAdmin | None:
        stmt = select(PlatformAdmin).where(PlatformAdmin.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, admin: PlatformAdmin) -> PlatformAdmin:
        admin.email = admin.email.lower()
        self.session.add(admin)
        await self.session.flush()
        await self.session.refresh(admin)
        return admin
