"""
Administrator account management utilities.
"""

from portfolio.models import AdminUser
from portfolio.repositories import AdminUserRepository
from portfolio.utils.db_manager import db_manager
from portfolio.utils.logger import logger
from portfolio.utils.passwords import hash_password


async def create_default_admin(
    repo: AdminUserRepository, username: str, password: str
) -> AdminUser | None:
    """
    Create the bootstrap admin if no admin account exists.

    Args:
        repo: Admin user repository
        username: Bootstrap username
        password: Bootstrap password (stored hashed)

    Returns:
        The created admin, or None when one already existed
    """
    if await repo.count() > 0:
        return None

    logger.warning("No admin users found in system!")
    admin = await repo.create(AdminUser(username=username, hashed_password=hash_password(password)))
    logger.warning(
        f"Created admin '{username}' from settings. Change its password after the first login."
    )
    return admin


async def ensure_admin_exists(username: str, password: str) -> None:
    """
    Ensure at least one admin user exists in the system.
    """
    async with db_manager.session() as session:
        await create_default_admin(AdminUserRepository(session), username, password)


async def reset_admin_password(username: str, new_password: str) -> bool:
    """
    Reset the password for an admin user.

    Args:
        username: The admin username
        new_password: The new password to set

    Returns:
        True if password was reset, False otherwise
    """
    async with db_manager.session() as session:
        repo = AdminUserRepository(session)
        user = await repo.find_by_username(username)

        if not user:
            logger.error(f"Admin '{username}' not found")
            return False

        await repo.update(
            user, {"hashed_password": hash_password(new_password), "legacy_password": None}
        )
        logger.info(f"Password reset for admin '{username}'")
        return True
