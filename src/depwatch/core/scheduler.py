"""
Scheduler - Runs triage cycles on a cron-style cadence until stopped.

The cadence matches the cron expression ``"<minute> */<interval> * * *"`` in
UTC: a cycle fires at ``minute`` past every hour divisible by the interval.
Cycles never overlap; the next tick is computed only after the previous
cycle has returned.
"""

import asyncio
import signal
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from .config import ConfigError
from .orchestrator import CycleResult, CycleStatus, TriageOrchestrator


logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CronSchedule:
    """
    Cron ``M */N * * *`` schedule, evaluated in UTC.

    Example:
        >>> schedule = CronSchedule(interval_hours=6)
        >>> schedule.next_after(datetime(2025, 1, 1, 7, 0, tzinfo=timezone.utc))
        datetime.datetime(2025, 1, 1, 12, 52, tzinfo=datetime.timezone.utc)
    """

    def __init__(self, interval_hours: int, minute: int = 52):
        """
        Args:
            interval_hours: Hour step, at least 1; 24 or more fires at hour 0 only
            minute: Minute within the hour, 0..59

        Raises:
            ConfigError: If either value is out of range
        """
        if interval_hours < 1:
            raise ConfigError(f"interval must be at least 1 hour to schedule, got {interval_hours}")
        if not 0 <= minute <= 59:
            raise ConfigError(f"minute must be between 0 and 59, got {minute}")

        self.interval_hours = interval_hours
        self.minute = minute

    @property
    def expression(self) -> str:
        return f"{self.minute} */{self.interval_hours} * * *"

    def next_after(self, moment: datetime) -> datetime:
        """Next firing time strictly after ``moment``"""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        moment = moment.astimezone(timezone.utc)

        candidate = moment.replace(minute=self.minute, second=0, microsecond=0)
        if candidate <= moment:
            candidate += timedelta(hours=1)

        # Hours 0, N, 2N, ... restart at midnight, so this always lands within a day
        while candidate.hour % self.interval_hours != 0:
            candidate += timedelta(hours=1)

        return candidate

    def __repr__(self) -> str:
        return f"CronSchedule({self.expression!r})"


class CycleScheduler:
    """
    Invokes the orchestrator at each scheduled tick.

    A failed cycle is logged; by default the scheduler waits for the next
    tick, with ``exit_on_failure`` it stops and reports the failure instead.

    Example:
        >>> scheduler = CycleScheduler(orchestrator, CronSchedule(6))
        >>> scheduler.install_signal_handlers()
        >>> failure = await scheduler.run()
    """

    def __init__(
        self,
        orchestrator: TriageOrchestrator,
        schedule: CronSchedule,
        exit_on_failure: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.orchestrator = orchestrator
        self.schedule = schedule
        self.exit_on_failure = exit_on_failure
        self.clock = clock

        self.cycles_run = 0
        self.cycles_failed = 0
        self.last_result: Optional[CycleResult] = None

        self._stop = asyncio.Event()

    @property
    def is_stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self):
        """Stop accepting ticks; a cycle in progress runs to completion"""
        if not self._stop.is_set():
            logger.info("scheduler_stopping")
        self._stop.set()

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """Stop on SIGINT / SIGTERM"""
        loop = loop or asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except NotImplementedError:
                # Windows event loops
                signal.signal(sig, lambda *_: loop.call_soon_threadsafe(self.stop))

    async def _run_once(self) -> CycleResult:
        try:
            result = await self.orchestrator.run_cycle()
        except Exception as e:
            logger.error("cycle_crashed", target=self.orchestrator.target, error=str(e), exc_info=True)
            result = CycleResult(
                cycle_id="crashed",
                target=self.orchestrator.target,
                status=CycleStatus.FAILED,
                error=e,
                finished_at=utc_now(),
            )

        self.cycles_run += 1
        if not result.ok:
            self.cycles_failed += 1
        self.last_result = result
        return result

    async def run(self) -> Optional[CycleResult]:
        """
        Run cycles until stopped.

        Returns:
            The failed CycleResult that stopped the scheduler when
            ``exit_on_failure`` is set, otherwise None
        """
        logger.info(
            "scheduler_started",
            target=self.orchestrator.target,
            schedule=self.schedule.expression,
            exit_on_failure=self.exit_on_failure,
        )

        while not self._stop.is_set():
            now = self.clock()
            next_tick = self.schedule.next_after(now)
            delay = max(0.0, (next_tick - now).total_seconds())
            logger.info("next_cycle_scheduled", at=next_tick.isoformat(), in_seconds=round(delay, 1))

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass

            result = await self._run_once()
            if not result.ok and self.exit_on_failure:
                logger.critical("scheduler_aborted", target=result.target, error=str(result.error))
                return result

        logger.info(
            "scheduler_stopped",
            cycles_run=self.cycles_run,
            cycles_failed=self.cycles_failed,
            status=self.orchestrator.get_status(),
        )
        return None
