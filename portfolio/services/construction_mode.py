"""
Construction-mode store.

While an admin is editing, the public portfolio is replaced by an
"under construction" page. The flag lives on the singleton profile
settings row together with an expiry that admin heartbeats push forward.
Expiry is lazy: a read that finds a stale active flag corrects it in place.
"""

from datetime import datetime, timedelta
from typing import Literal

from portfolio.models import ConstructionState, ProfileSettings
from portfolio.repositories import ProfileSettingsRepository
from portfolio.services.token_service import Clock
from portfolio.utils.common import ensure_utc, utc_now
from portfolio.utils.logger import logger

type UnboundedPolicy = Literal["active", "inactive"]

DEFAULT_WINDOW = timedelta(minutes=5)


class ConstructionModeStore:
    """Read and update the construction-mode flag and its expiry."""

    def __init__(
        self,
        repo: ProfileSettingsRepository,
        *,
        window: timedelta = DEFAULT_WINDOW,
        unbounded_policy: UnboundedPolicy = "inactive",
        clock: Clock = utc_now,
    ) -> None:
        """
        Args:
            repo: Profile settings repository
            window: How far each heartbeat pushes the expiry from now
            unbounded_policy: Effective state when the flag is set without an expiry
            clock: Source of the current time
        """
        self.repo = repo
        self.window = window
        self.unbounded_policy = unbounded_policy
        self._clock = clock

    async def get_effective_state(self) -> ConstructionState:
        """Return the current state, clearing an expired flag on the way.

        An active flag whose ``active_until`` has passed is written back as
        inactive before returning.
        """
        record = await self.repo.find_one()
        if record is None or not record.construction_active:
            return self._state_of(record)

        active_until = ensure_utc(record.construction_active_until)
        if active_until is None:
            logger.warning(
                "Construction mode is active without an expiry; "
                f"treating it as {self.unbounded_policy}"
            )
            if self.unbounded_policy == "active":
                return ConstructionState(is_active=True, active_until=None)
            await self.deactivate()
            return ConstructionState(is_active=False, active_until=None)

        if active_until <= self._clock():
            logger.info(f"Construction mode expired at {active_until.isoformat()}, clearing flag")
            await self.deactivate()
            return ConstructionState(is_active=False, active_until=None)

        return ConstructionState(is_active=True, active_until=active_until)

    async def heartbeat(self) -> ConstructionState:
        """Move the expiry to ``now + window``.

        The active flag itself is left untouched; repeated calls replace the
        expiry rather than accumulate.
        """
        active_until = self._clock() + self.window
        record = await self.repo.upsert(construction_active_until=active_until)
        logger.debug(f"Construction heartbeat, active until {active_until.isoformat()}")
        return self._state_of(record)

    async def activate(self) -> ConstructionState:
        """Turn construction mode on for one window."""
        active_until = self._clock() + self.window
        record = await self.repo.upsert(
            construction_active=True, construction_active_until=active_until
        )
        logger.info(f"Construction mode activated until {active_until.isoformat()}")
        return self._state_of(record)

    async def deactivate(self) -> None:
        """Turn construction mode off and clear the expiry."""
        await self.repo.upsert(construction_active=False, construction_active_until=None)
        logger.info("Construction mode deactivated")

    async def is_under_construction(self) -> bool:
        """Whether the public page should be hidden right now."""
        state = await self.get_effective_state()
        if not state.is_active:
            return False
        if state.active_until is None:
            return True
        return self._clock() < state.active_until

    def seconds_remaining(self, state: ConstructionState) -> int | None:
        """Whole seconds until ``state`` lapses, if it has an expiry."""
        if state.active_until is None:
            return None
        remaining = (state.active_until - self._clock()).total_seconds()
        return max(0, int(remaining))

    @staticmethod
    def _state_of(record: ProfileSettings | None) -> ConstructionState:
        if record is None:
            return ConstructionState(is_active=False, active_until=None)
        active_until: datetime | None = ensure_utc(record.construction_active_until)
        return ConstructionState(is_active=record.construction_active, active_until=active_until)
