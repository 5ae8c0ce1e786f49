"""
Idle-timeout coordinator for an admin session.

Two independent timers run from the last detected activity: a warning
timer that shows a "stay logged in?" prompt, and a force-logout timer that
ends the session. The warning never cancels the force-logout timer, so the
session always ends a fixed time after the last activity unless the admin
becomes active again.

::

    ACTIVE --warning timer--> WARNING_SHOWN
      ^                          |
      +--activity / stay / dismiss
    any --log_out / force-logout timer--> LOGGED_OUT (terminal)
"""

import asyncio
import enum
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Protocol

from portfolio.utils.logger import logger

type Hook = Callable[[], Awaitable[None]]

DEFAULT_WARNING_DELAY = timedelta(minutes=2)
DEFAULT_FORCE_LOGOUT_DELAY = timedelta(minutes=3)


class IdleState(str, enum.Enum):
    """States of the idle-timeout state machine."""

    ACTIVE = "active"
    WARNING_SHOWN = "warning_shown"
    LOGGED_OUT = "logged_out"


class TimerHandle(Protocol):
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Creates cancellable one-shot timers running async callbacks."""

    def call_later(self, delay: float, callback: Hook) -> TimerHandle: ...


def _log_task_failure(task: asyncio.Task[None]) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.opt(exception=task.exception()).error("Idle timer callback failed")


class _AsyncioTimer:
    """Timer backed by ``loop.call_later`` that runs its callback as a task."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Hook) -> None:
        self._loop = loop
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._handle = loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._task = self._loop.create_task(self._callback())
        self._task.add_done_callback(_log_task_failure)

    def cancel(self) -> None:
        # A callback already running is left to finish
        self._handle.cancel()


class AsyncioScheduler:
    """Scheduler using the running asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Hook) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioTimer(loop, delay, callback)


class IdleTimeoutCoordinator:
    """Tracks admin inactivity and enforces automatic logout.

    One instance belongs to one mounted admin session. Hooks:

    - ``heartbeat``: extends construction mode on the server
    - ``terminate``: ends the session (cookie + construction mode)
    - ``on_warning``: shows the "stay logged in?" prompt
    - ``on_logged_out``: navigates to the login page
    """

    def __init__(
        self,
        *,
        heartbeat: Hook,
        terminate: Hook,
        scheduler: Scheduler | None = None,
        warning_delay: timedelta = DEFAULT_WARNING_DELAY,
        force_logout_delay: timedelta = DEFAULT_FORCE_LOGOUT_DELAY,
        on_warning: Hook | None = None,
        on_logged_out: Hook | None = None,
    ) -> None:
        if force_logout_delay <= warning_delay:
            raise ValueError("force_logout_delay must be greater than warning_delay")

        self._heartbeat = heartbeat
        self._terminate = terminate
        self._scheduler = scheduler or AsyncioScheduler()
        self.warning_delay = warning_delay
        self.force_logout_delay = force_logout_delay
        self._on_warning = on_warning
        self._on_logged_out = on_logged_out

        self.state = IdleState.ACTIVE
        self._terminating = False
        self._warning_timer: TimerHandle | None = None
        self._logout_timer: TimerHandle | None = None

    @property
    def is_logged_out(self) -> bool:
        return self.state is IdleState.LOGGED_OUT

    def start(self) -> None:
        """Arm both timers; called when the admin area is mounted."""
        if self.is_logged_out:
            return
        self.state = IdleState.ACTIVE
        self._arm_timers()

    def stop(self) -> None:
        """Cancel pending timers without ending the session (page unload)."""
        self._cancel_timers()

    async def record_activity(self) -> None:
        """Handle pointer, key, click, scroll or touch activity.

        Restarts both timers and sends a heartbeat. Ignored once the
        session is being terminated.
        """
        if self._terminating or self.is_logged_out:
            return

        # Timers restart before the heartbeat so a slow request cannot delay logout
        self._cancel_timers()
        self.state = IdleState.ACTIVE
        self._arm_timers()
        await self._send_heartbeat()

    async def stay_logged_in(self) -> None:
        """The admin confirmed the warning prompt."""
        await self.record_activity()

    async def dismiss_prompt(self) -> None:
        """The prompt was closed without a button (escape, click outside).

        Treated exactly like "stay logged in".
        """
        await self.record_activity()

    async def log_out(self) -> None:
        """The admin chose to log out from the warning prompt."""
        await self._end_session("user request")

    async def _on_warning_timer(self) -> None:
        if self._terminating or self.state is not IdleState.ACTIVE:
            return
        self.state = IdleState.WARNING_SHOWN
        logger.debug("Idle warning shown")
        await self._run_ui_hook(self._on_warning, "warning prompt")

    async def _on_force_logout_timer(self) -> None:
        await self._end_session("inactivity")

    async def _end_session(self, reason: str) -> None:
        if self._terminating or self.is_logged_out:
            return

        self._terminating = True
        self._cancel_timers()
        self.state = IdleState.LOGGED_OUT
        logger.info(f"Ending admin session ({reason})")

        try:
            await self._terminate()
        except Exception as e:
            logger.error(f"Session termination failed: {e}")

        await self._run_ui_hook(self._on_logged_out, "logged-out")

    async def _send_heartbeat(self) -> None:
        try:
            await self._heartbeat()
        except Exception as e:
            logger.warning(f"Heartbeat failed: {e}")

    async def _run_ui_hook(self, hook: Hook | None, name: str) -> None:
        if hook is None:
            return
        try:
            await hook()
        except Exception as e:
            logger.error(f"Idle {name} hook failed: {e}")

    def _arm_timers(self) -> None:
        self._cancel_timers()
        self._warning_timer = self._scheduler.call_later(
            self.warning_delay.total_seconds(), self._on_warning_timer
        )
        self._logout_timer = self._scheduler.call_later(
            self.force_logout_delay.total_seconds(), self._on_force_logout_timer
        )

    def _cancel_timers(self) -> None:
        for timer in (self._warning_timer, self._logout_timer):
            if timer is not None:
                timer.cancel()
        self._warning_timer = None
        self._logout_timer = None
