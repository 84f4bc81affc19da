"""
Triage Orchestrator - Runs one dependents triage cycle.

Cycle states:
    IDLE -> COMPUTING_CUTOFF -> FETCHING -> DISPATCHING -> DONE | FAILED

The cycle is fail-fast. A fetch error ends it before any dispatch, and the
first failed dispatch ends it with the remaining packages unattempted.
Failures come back as a CycleResult so the caller (scheduler or CLI) decides
what they mean for the process.

Design Pattern: Pipeline + Observer
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import structlog

from .cutoff import compute_cutoff, now_ms
from ..registry import DependentsFetcher, FetchError, iter_for_scan
from ..scanners import BaseScanner


class CycleState(Enum):
    """Position of the orchestrator within a cycle"""
    IDLE = "idle"
    COMPUTING_CUTOFF = "computing_cutoff"
    FETCHING = "fetching"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"


class CycleStatus(Enum):
    """Terminal status of a cycle"""
    DONE = "done"
    FAILED = "failed"


@dataclass
class CycleResult:
    """Outcome of one triage cycle"""
    cycle_id: str
    target: str
    status: CycleStatus
    cutoff: Optional[int] = None
    fetched: int = 0
    dispatched: List[str] = field(default_factory=list)
    error: Optional[Exception] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status is CycleStatus.DONE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "cycle_id": self.cycle_id,
            "target": self.target,
            "status": self.status.value,
            "cutoff": self.cutoff,
            "fetched": self.fetched,
            "dispatched": list(self.dispatched),
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class TriageOrchestrator:
    """
    Composes cutoff, fetch, selection and dispatch into one cycle.

    The orchestrator holds only read-only collaborators; each call to
    run_cycle() starts fresh.

    Example:
        >>> orchestrator = TriageOrchestrator(fetcher, dispatcher, "axios", 6)
        >>> result = await orchestrator.run_cycle()
        >>> result.ok
        True
    """

    def __init__(
        self,
        fetcher: DependentsFetcher,
        scanner: BaseScanner,
        target: str,
        lookback_hours: int,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize the orchestrator.

        Args:
            fetcher: Dependents fetcher
            scanner: Scanner that receives selected packages
            target: npm package whose dependents are watched
            lookback_hours: Lookback window for the cutoff
            clock: Returns current time in ms (injectable for tests)
        """
        self.fetcher = fetcher
        self.scanner = scanner
        self.target = target
        self.lookback_hours = lookback_hours
        self.clock = clock

        self.state = CycleState.IDLE

        self.logger = structlog.get_logger(__name__)

        # Observer pattern - callbacks
        self.observers: List[Callable[[str, Dict[str, Any]], None]] = []

    def subscribe(self, observer: Callable[[str, Dict[str, Any]], None]):
        """
        Subscribe to cycle events (Observer pattern).

        Events: cycle_started, package_dispatched, cycle_finished

        Args:
            observer: Callback receiving (event, data)
        """
        self.observers.append(observer)
        self.logger.debug("observer_subscribed", observer=getattr(observer, "__name__", repr(observer)))

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        """Notify all observers of an event"""
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error(
                    "observer_error",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e),
                )

    def _transition(self, state: CycleState, cycle_id: str):
        self.state = state
        self.logger.debug("cycle_state", cycle_id=cycle_id, state=state.value)

    def _finish(self, result: CycleResult, status: CycleStatus, error: Optional[Exception] = None) -> CycleResult:
        result.status = status
        result.error = error
        result.finished_at = datetime.now(timezone.utc)

        self._transition(CycleState.DONE if status is CycleStatus.DONE else CycleState.FAILED, result.cycle_id)

        if error is None:
            self.logger.info(
                "cycle_complete",
                cycle_id=result.cycle_id,
                target=result.target,
                fetched=result.fetched,
                dispatched=len(result.dispatched),
            )
        else:
            self.logger.error(
                "cycle_failed",
                cycle_id=result.cycle_id,
                target=result.target,
                dispatched=len(result.dispatched),
                error=str(error),
                error_type=type(error).__name__,
            )

        self._notify_observers("cycle_finished", result.to_dict())
        return result

    async def run_cycle(self) -> CycleResult:
        """
        Run one triage cycle.

        Returns:
            CycleResult with DONE or FAILED status; fetch and scan errors are
            carried in result.error rather than raised
        """
        now = self.clock()
        result = CycleResult(
            cycle_id=f"cycle_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}",
            target=self.target,
            status=CycleStatus.FAILED,
        )

        self._transition(CycleState.COMPUTING_CUTOFF, result.cycle_id)
        result.cutoff = compute_cutoff(now, self.lookback_hours)

        self.logger.info(
            "cycle_started",
            cycle_id=result.cycle_id,
            target=self.target,
            now=now,
            cutoff=result.cutoff,
            cutoff_time=datetime.fromtimestamp(result.cutoff / 1000, tz=timezone.utc).isoformat(),
        )
        self._notify_observers("cycle_started", {"cycle_id": result.cycle_id, "target": self.target, "cutoff": result.cutoff})

        self._transition(CycleState.FETCHING, result.cycle_id)
        try:
            response = await self.fetcher.fetch(self.target)
        except FetchError as e:
            return self._finish(result, CycleStatus.FAILED, e)

        result.fetched = len(response.packages)

        self._transition(CycleState.DISPATCHING, result.cycle_id)
        for package in iter_for_scan(response.packages, result.cutoff):
            outcome = await self.scanner.dispatch(package.name)
            if not outcome.success:
                return self._finish(result, CycleStatus.FAILED, outcome.error)

            result.dispatched.append(package.name)
            self._notify_observers("package_dispatched", {"cycle_id": result.cycle_id, "package": package.name})

        return self._finish(result, CycleStatus.DONE)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current orchestrator status.

        Returns:
            Status dictionary
        """
        return {
            "target": self.target,
            "lookback_hours": self.lookback_hours,
            "state": self.state.value,
            "scanner": self.scanner.get_statistics(),
        }
