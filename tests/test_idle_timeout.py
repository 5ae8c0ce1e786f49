"""Tests for the idle-timeout coordinator, driven by a manual scheduler."""

import asyncio
from datetime import timedelta

import pytest

from portfolio.services.idle_timeout import AsyncioScheduler, IdleState, IdleTimeoutCoordinator
from portfolio.utils.logger import logger


class Hooks:
    """Counts hook invocations; any hook can be made to fail."""

    def __init__(self) -> None:
        self.heartbeats = 0
        self.terminations = 0
        self.warnings = 0
        self.logged_out = 0
        self.fail_heartbeat = False
        self.fail_terminate = False
        self.fail_warning = False
        self.fail_logged_out = False

    async def heartbeat(self) -> None:
        self.heartbeats += 1
        if self.fail_heartbeat:
            raise ConnectionError("network down")

    async def terminate(self) -> None:
        self.terminations += 1
        if self.fail_terminate:
            raise ConnectionError("network down")

    async def on_warning(self) -> None:
        self.warnings += 1
        if self.fail_warning:
            raise RuntimeError("prompt failed")

    async def on_logged_out(self) -> None:
        self.logged_out += 1
        if self.fail_logged_out:
            raise RuntimeError("navigation failed")


@pytest.fixture
def hooks() -> Hooks:
    return Hooks()


@pytest.fixture
def coordinator(hooks, scheduler) -> IdleTimeoutCoordinator:
    coordinator = IdleTimeoutCoordinator(
        heartbeat=hooks.heartbeat,
        terminate=hooks.terminate,
        scheduler=scheduler,
        on_warning=hooks.on_warning,
        on_logged_out=hooks.on_logged_out,
    )
    coordinator.start()
    return coordinator


class TestConstruction:
    @pytest.mark.parametrize("force_logout_seconds", [60, 120])
    def test_force_logout_must_follow_warning(self, hooks, force_logout_seconds):
        with pytest.raises(ValueError):
            IdleTimeoutCoordinator(
                heartbeat=hooks.heartbeat,
                terminate=hooks.terminate,
                warning_delay=timedelta(seconds=120),
                force_logout_delay=timedelta(seconds=force_logout_seconds),
            )

    def test_start_arms_both_timers(self, coordinator, scheduler):
        assert coordinator.state is IdleState.ACTIVE
        assert sorted(t.when for t in scheduler.pending) == [120, 180]


class TestWithoutActivity:
    @pytest.mark.asyncio
    async def test_warning_after_two_minutes(self, coordinator, scheduler, hooks):
        await scheduler.advance(119)
        assert coordinator.state is IdleState.ACTIVE
        assert hooks.warnings == 0

        await scheduler.advance(1)
        assert coordinator.state is IdleState.WARNING_SHOWN
        assert hooks.warnings == 1

    @pytest.mark.asyncio
    async def test_forced_logout_after_three_minutes(self, coordinator, scheduler, hooks):
        await scheduler.advance(179)
        assert hooks.terminations == 0

        await scheduler.advance(1)
        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.terminations == 1
        assert hooks.logged_out == 1
        assert scheduler.pending == []

    @pytest.mark.asyncio
    async def test_warning_does_not_postpone_logout(self, coordinator, scheduler, hooks):
        await scheduler.advance(120)
        assert coordinator.state is IdleState.WARNING_SHOWN

        await scheduler.advance(60)
        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.terminations == 1


class TestActivity:
    @pytest.mark.asyncio
    async def test_activity_restarts_timers(self, coordinator, scheduler, hooks):
        await scheduler.advance(90)
        await coordinator.record_activity()

        # Warning now due at 3:30 instead of 2:00
        await scheduler.advance(119)
        assert coordinator.state is IdleState.ACTIVE
        await scheduler.advance(1)
        assert coordinator.state is IdleState.WARNING_SHOWN
        assert scheduler.now == 210

        await scheduler.advance(59)
        assert hooks.terminations == 0
        await scheduler.advance(1)
        assert hooks.terminations == 1

    @pytest.mark.asyncio
    async def test_activity_sends_heartbeat(self, coordinator, hooks):
        await coordinator.record_activity()
        await coordinator.record_activity()
        assert hooks.heartbeats == 2

    @pytest.mark.asyncio
    async def test_heartbeat_failure_is_not_raised(self, coordinator, scheduler, hooks):
        hooks.fail_heartbeat = True
        await coordinator.record_activity()

        assert coordinator.state is IdleState.ACTIVE
        assert len(scheduler.pending) == 2

    @pytest.mark.asyncio
    async def test_no_duplicate_timers(self, coordinator, scheduler):
        for _ in range(5):
            await coordinator.record_activity()
        assert len(scheduler.pending) == 2


class TestPrompt:
    @pytest.mark.asyncio
    async def test_stay_logged_in(self, coordinator, scheduler, hooks):
        await scheduler.advance(150)
        assert coordinator.state is IdleState.WARNING_SHOWN

        await coordinator.stay_logged_in()
        assert coordinator.state is IdleState.ACTIVE
        assert hooks.heartbeats == 1

        # The old 3:00 deadline no longer applies
        await scheduler.advance(30)
        assert hooks.terminations == 0
        await scheduler.advance(150)
        assert hooks.terminations == 1
        assert scheduler.now == 330

    @pytest.mark.asyncio
    async def test_dismiss_acts_like_stay(self, coordinator, scheduler, hooks):
        await scheduler.advance(120)
        await coordinator.dismiss_prompt()

        assert coordinator.state is IdleState.ACTIVE
        assert hooks.heartbeats == 1
        await scheduler.advance(179)
        assert hooks.terminations == 0

    @pytest.mark.asyncio
    async def test_log_out_from_prompt(self, coordinator, scheduler, hooks):
        await scheduler.advance(130)
        await coordinator.log_out()

        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.terminations == 1
        assert hooks.logged_out == 1

        # Pending force-logout must not terminate a second time
        await scheduler.advance(600)
        assert hooks.terminations == 1


class TestTermination:
    @pytest.mark.asyncio
    async def test_terminates_exactly_once(self, coordinator, scheduler, hooks):
        await coordinator.log_out()
        await coordinator.log_out()
        await scheduler.advance(600)

        assert hooks.terminations == 1
        assert hooks.logged_out == 1

    @pytest.mark.asyncio
    async def test_activity_ignored_after_logout(self, coordinator, scheduler, hooks):
        await scheduler.advance(180)
        await coordinator.record_activity()
        await coordinator.stay_logged_in()

        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.heartbeats == 0
        assert scheduler.pending == []

    @pytest.mark.asyncio
    async def test_failed_termination_still_logs_out(self, coordinator, scheduler, hooks):
        hooks.fail_terminate = True
        await scheduler.advance(180)

        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.logged_out == 1

    @pytest.mark.asyncio
    async def test_failing_warning_prompt_does_not_stop_logout(self, coordinator, scheduler, hooks):
        hooks.fail_warning = True

        await scheduler.advance(120)
        assert coordinator.state is IdleState.WARNING_SHOWN

        await scheduler.advance(60)
        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.terminations == 1

    @pytest.mark.asyncio
    async def test_failing_logged_out_hook_is_not_raised(self, coordinator, hooks):
        hooks.fail_logged_out = True

        await coordinator.log_out()

        assert coordinator.state is IdleState.LOGGED_OUT
        assert hooks.logged_out == 1

    @pytest.mark.asyncio
    async def test_stop_cancels_without_terminating(self, coordinator, scheduler, hooks):
        coordinator.stop()
        await scheduler.advance(600)

        assert hooks.warnings == 0
        assert hooks.terminations == 0
        assert coordinator.state is IdleState.ACTIVE


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_real_timers(self, hooks):
        coordinator = IdleTimeoutCoordinator(
            heartbeat=hooks.heartbeat,
            terminate=hooks.terminate,
            scheduler=AsyncioScheduler(),
            warning_delay=timedelta(milliseconds=10),
            force_logout_delay=timedelta(milliseconds=30),
            on_warning=hooks.on_warning,
            on_logged_out=hooks.on_logged_out,
        )
        coordinator.start()

        await asyncio.sleep(0.2)

        assert hooks.warnings == 1
        assert hooks.terminations == 1
        assert coordinator.state is IdleState.LOGGED_OUT

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self):
        fired = []

        async def callback() -> None:
            fired.append(True)

        handle = AsyncioScheduler().call_later(0.01, callback)
        handle.cancel()
        await asyncio.sleep(0.05)

        assert fired == []

    @pytest.mark.asyncio
    async def test_failing_warning_hook_is_logged(self, hooks):
        hooks.fail_warning = True
        messages: list[str] = []
        sink_id = logger.add(lambda message: messages.append(str(message)), level="ERROR")
        coordinator = IdleTimeoutCoordinator(
            heartbeat=hooks.heartbeat,
            terminate=hooks.terminate,
            scheduler=AsyncioScheduler(),
            warning_delay=timedelta(milliseconds=10),
            force_logout_delay=timedelta(milliseconds=30),
            on_warning=hooks.on_warning,
        )
        try:
            coordinator.start()
            await asyncio.sleep(0.2)
        finally:
            logger.remove(sink_id)

        assert any("prompt failed" in m for m in messages)
        assert coordinator.state is IdleState.LOGGED_OUT

    @pytest.mark.asyncio
    async def test_callback_exception_is_observed(self):
        messages: list[str] = []
        sink_id = logger.add(lambda message: messages.append(str(message)), level="ERROR")

        async def callback() -> None:
            raise RuntimeError("timer exploded")

        try:
            AsyncioScheduler().call_later(0.01, callback)
            await asyncio.sleep(0.05)
        finally:
            logger.remove(sink_id)

        assert any("Idle timer callback failed" in m for m in messages)
