"""Repository layer for data access operations."""

from portfolio.repositories.admin_user_repository import AdminUserRepository
from portfolio.repositories.base import BaseRepository
from portfolio.repositories.profile_settings_repository import ProfileSettingsRepository

__all__ = ["AdminUserRepository", "BaseRepository", "ProfileSettingsRepository"]
