"""Repository for the singleton profile settings record."""

from typing import Any

from portfolio.models import PROFILE_SETTINGS_ID, ProfileSettings
from portfolio.repositories.base import BaseRepository


class ProfileSettingsRepository(BaseRepository[ProfileSettings]):
    """Find-one / upsert access to the ``profile_settings`` row.

    There is at most one row; it always lives under ``PROFILE_SETTINGS_ID``.
    """

    model = ProfileSettings

    async def find_one(self) -> ProfileSettings | None:
        """Return the settings record, or None if it was never written."""
        return await self.get_optional(PROFILE_SETTINGS_ID)

    async def upsert(self, **values: Any) -> ProfileSettings:
        """Set ``values`` on the settings record, creating it if needed."""
        record = await self.find_one()
        if record is None:
            record = ProfileSettings(id=PROFILE_SETTINGS_ID, **values)
            return await self.create(record)
        return await self.update(record, values)
