"""
Core module - Cycle orchestration, scheduling and process plumbing.

This package contains the components that drive the triage pipeline.
"""

from .config import ConfigError, WatchConfig, load_config, resolve_config_path
from .cutoff import MS_PER_HOUR, compute_cutoff, now_ms
from .http import DEFAULT_TIMEOUT, create_session
from .logging import setup_logging
from .orchestrator import CycleResult, CycleState, CycleStatus, TriageOrchestrator
from .scheduler import CronSchedule, CycleScheduler


__all__ = [
    # Configuration
    "ConfigError",
    "WatchConfig",
    "load_config",
    "resolve_config_path",
    # Cutoff
    "MS_PER_HOUR",
    "compute_cutoff",
    "now_ms",
    # Plumbing
    "DEFAULT_TIMEOUT",
    "create_session",
    "setup_logging",
    # Orchestration
    "TriageOrchestrator",
    "CycleResult",
    "CycleState",
    "CycleStatus",
    # Scheduling
    "CronSchedule",
    "CycleScheduler",
]
