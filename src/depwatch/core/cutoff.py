"""
Cutoff Calculator - Lower time bound for the dependents eligible in a cycle.

Timestamps are Unix time in milliseconds, matching the `date.ts` field the
npm website returns for each dependent.
"""

import time

MS_PER_HOUR = 3_600_000


def now_ms() -> int:
    """Current Unix time in milliseconds"""
    return time.time_ns() // 1_000_000


def compute_cutoff(now: int, lookback_hours: int) -> int:
    """
    Compute the earliest publish timestamp eligible for scanning.

    Args:
        now: Current time (ms since epoch)
        lookback_hours: Lookback window in hours (validated at config time)

    Returns:
        Cutoff timestamp in milliseconds
    """
    return now - lookback_hours * MS_PER_HOUR
