"""
Unit tests for CronSchedule and CycleScheduler.

Run with: pytest tests/unit/test_scheduler.py -v
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from depwatch.core.config import ConfigError
from depwatch.core.orchestrator import CycleResult, CycleStatus
from depwatch.core.scheduler import CronSchedule, CycleScheduler


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestCronSchedule:
    """Test suite for CronSchedule class"""

    def test_expression(self):
        assert CronSchedule(6).expression == "52 */6 * * *"
        assert CronSchedule(1, minute=0).expression == "0 */1 * * *"

    def test_hourly_same_hour(self):
        assert CronSchedule(1).next_after(utc(2025, 1, 1, 10, 15)) == utc(2025, 1, 1, 10, 52)

    def test_hourly_past_minute(self):
        assert CronSchedule(1).next_after(utc(2025, 1, 1, 10, 53)) == utc(2025, 1, 1, 11, 52)

    def test_exactly_on_tick_moves_forward(self):
        assert CronSchedule(1).next_after(utc(2025, 1, 1, 10, 52)) == utc(2025, 1, 1, 11, 52)

    def test_step_hours(self):
        schedule = CronSchedule(6)

        assert schedule.next_after(utc(2025, 1, 1, 7, 0)) == utc(2025, 1, 1, 12, 52)
        assert schedule.next_after(utc(2025, 1, 1, 12, 10)) == utc(2025, 1, 1, 12, 52)

    def test_rolls_over_midnight(self):
        """*/5 fires at 20:52 then 00:52, like cron"""
        schedule = CronSchedule(5)

        assert schedule.next_after(utc(2025, 1, 1, 20, 53)) == utc(2025, 1, 2, 0, 52)

    def test_naive_datetime_is_utc(self):
        assert CronSchedule(1).next_after(datetime(2025, 1, 1, 10, 0)) == utc(2025, 1, 1, 10, 52)

    def test_other_timezone_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        moment = datetime(2025, 1, 1, 12, 0, tzinfo=plus_two)  # 10:00 UTC

        assert CronSchedule(1).next_after(moment) == utc(2025, 1, 1, 10, 52)

    def test_daily_interval_fires_at_hour_zero(self):
        """*/24 only matches hour 0, like cron"""
        schedule = CronSchedule(24)

        assert schedule.expression == "52 */24 * * *"
        assert schedule.next_after(utc(2025, 1, 1, 0, 10)) == utc(2025, 1, 1, 0, 52)
        assert schedule.next_after(utc(2025, 1, 1, 0, 52)) == utc(2025, 1, 2, 0, 52)
        assert schedule.next_after(utc(2025, 1, 1, 13, 0)) == utc(2025, 1, 2, 0, 52)

    def test_step_beyond_a_day_fires_at_hour_zero(self):
        assert CronSchedule(48).next_after(utc(2025, 3, 31, 23, 59)) == utc(2025, 4, 1, 0, 52)

    @pytest.mark.parametrize("interval", [0, -1])
    def test_unschedulable_interval(self, interval):
        with pytest.raises(ConfigError):
            CronSchedule(interval)

    def test_invalid_minute(self):
        with pytest.raises(ConfigError):
            CronSchedule(1, minute=60)


class ImmediateSchedule:
    """Fires a few milliseconds after whatever time it is asked about"""

    expression = "immediate"

    def next_after(self, moment):
        return moment + timedelta(milliseconds=5)


def make_orchestrator(results):
    """Orchestrator stub returning the given results, then DONE forever"""
    remaining = list(results)
    calls = []

    async def run_cycle():
        calls.append(1)
        if remaining:
            item = remaining.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        return CycleResult(cycle_id="c", target="axios", status=CycleStatus.DONE)

    orchestrator = MagicMock()
    orchestrator.target = "axios"
    orchestrator.run_cycle = run_cycle
    orchestrator.get_status.return_value = {"target": "axios", "state": "done"}
    return orchestrator, calls


async def _wait_until(predicate, interval=0.005):
    while not predicate():
        await asyncio.sleep(interval)


def failed_result():
    return CycleResult(cycle_id="c", target="axios", status=CycleStatus.FAILED, error=RuntimeError("x"))


class TestCycleScheduler:
    """Test suite for CycleScheduler class"""

    @pytest.mark.asyncio
    async def test_runs_cycles_until_stopped(self):
        orchestrator, calls = make_orchestrator([])
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule())

        task = asyncio.create_task(scheduler.run())
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 2), timeout=2.0)
        scheduler.stop()
        failure = await asyncio.wait_for(task, timeout=2.0)

        assert failure is None
        assert scheduler.cycles_run >= 2

    @pytest.mark.asyncio
    async def test_failed_cycle_continues_by_default(self):
        orchestrator, calls = make_orchestrator([failed_result()])
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule())

        task = asyncio.create_task(scheduler.run())
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 2), timeout=2.0)
        scheduler.stop()
        failure = await asyncio.wait_for(task, timeout=2.0)

        assert failure is None
        assert scheduler.cycles_failed == 1

    @pytest.mark.asyncio
    async def test_exit_on_failure_returns_failed_result(self):
        result = failed_result()
        orchestrator, calls = make_orchestrator([result])
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule(), exit_on_failure=True)

        failure = await asyncio.wait_for(scheduler.run(), timeout=2.0)

        assert failure is result
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_crashed_cycle_counts_as_failure(self):
        orchestrator, calls = make_orchestrator([RuntimeError("bug")])
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule(), exit_on_failure=True)

        failure = await asyncio.wait_for(scheduler.run(), timeout=2.0)

        assert failure.status is CycleStatus.FAILED
        assert isinstance(failure.error, RuntimeError)

    @pytest.mark.asyncio
    async def test_stop_before_first_tick_runs_nothing(self):
        orchestrator, calls = make_orchestrator([])
        scheduler = CycleScheduler(orchestrator, CronSchedule(1))

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.01)
        scheduler.stop()
        failure = await asyncio.wait_for(task, timeout=2.0)

        assert failure is None
        assert calls == []
        assert scheduler.is_stopping

    @pytest.mark.asyncio
    async def test_stop_lets_running_cycle_finish(self):
        started = asyncio.Event()
        release = asyncio.Event()
        finished = []

        async def slow_cycle():
            started.set()
            await release.wait()
            finished.append(1)
            return CycleResult(cycle_id="c", target="axios", status=CycleStatus.DONE)

        orchestrator = MagicMock()
        orchestrator.target = "axios"
        orchestrator.run_cycle = slow_cycle
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule())

        task = asyncio.create_task(scheduler.run())
        await asyncio.wait_for(started.wait(), timeout=2.0)
        scheduler.stop()
        release.set()
        await asyncio.wait_for(task, timeout=2.0)

        assert finished == [1]
        assert scheduler.cycles_run == 1

    @pytest.mark.asyncio
    async def test_stop_logs_orchestrator_status(self):
        orchestrator, calls = make_orchestrator([])
        scheduler = CycleScheduler(orchestrator, ImmediateSchedule())

        with capture_logs() as logs:
            task = asyncio.create_task(scheduler.run())
            await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=2.0)
            scheduler.stop()
            await asyncio.wait_for(task, timeout=2.0)

        stopped = [entry for entry in logs if entry["event"] == "scheduler_stopped"]
        assert len(stopped) == 1
        assert stopped[0]["status"] == {"target": "axios", "state": "done"}
        assert stopped[0]["cycles_run"] >= 1

    @pytest.mark.asyncio
    async def test_waits_until_next_tick(self):
        now = utc(2025, 1, 1, 10, 0)
        orchestrator, calls = make_orchestrator([])
        scheduler = CycleScheduler(orchestrator, CronSchedule(1), clock=lambda: now)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.05)

        # Next tick is 52 minutes away
        assert calls == []
        scheduler.stop()
        await asyncio.wait_for(task, timeout=2.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
