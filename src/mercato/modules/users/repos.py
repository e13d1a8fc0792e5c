"""User repository for database operations."""

from uuid import UUID

from sqlalchemy import select

from mercato.core.permissions.models import Role, UserRole
from mercato.core.tenancy.session import TenantSession
from mercato.modules.users.models import User


class UserRepository:
    """Repository for User database operations.

    Takes the scoped handle, so every query reads the current tenant's
    ``users`` table and no tenant filter is needed.
    """

    def __init__(self, db: TenantSession) -> None:
        self.db = db

    async def create(self, user: User) -> User:
        """Create a new user.

        Args:
            user: User instance to create

        Returns:
            The created user with ID populated
        """
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def get_by_id(self, user_id: UUID) -> User | None:
        return await self.db.get(User, user_id)

    async def get_by_username(self, username: str) -> User | None:
        """Get a user by login name.

        Args:
            username: The user's login name

        Returns:
            User if found, None otherwise
        """
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def assign_role(self, user: User, role: Role) -> None:
        """Give a user a role."""
        self.db.add(UserRole(user_id=user.id, role_id=role.id))
        await self.db.flush()
