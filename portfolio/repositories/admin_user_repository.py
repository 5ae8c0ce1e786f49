"""Repository for admin account operations."""

from portfolio.models import AdminUser
from portfolio.repositories.base import BaseRepository


class AdminUserRepository(BaseRepository[AdminUser]):
    model = AdminUser

    async def find_by_username(self, username: str) -> AdminUser | None:
        """Find an admin by exact username."""
        return await self.get_by(username=username)
