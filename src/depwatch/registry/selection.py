"""
Triage Filter/Walker - Picks the dependents that need scanning.

Single forward pass over the listing (newest first):
1. A package published before the cutoff ends the walk; everything after it
   is assumed older.
2. Scoped packages (``@scope/name``) are skipped by policy.
3. Everything else is selected, in listing order.
"""

from typing import Iterable, Iterator, List

import structlog

from .models import PackageRecord


logger = structlog.get_logger(__name__)


def iter_for_scan(packages: Iterable[PackageRecord], cutoff: int) -> Iterator[PackageRecord]:
    """
    Lazily yield the packages that need scanning.

    Lets the orchestrator interleave selection with dispatch.

    Args:
        packages: Dependents in descending publish-timestamp order
        cutoff: Earliest eligible publish timestamp (ms)
    """
    previous_ts = None

    for package in packages:
        # Ordering is an upstream guarantee; report violations, don't correct them
        if previous_ts is not None and package.ts > previous_ts:
            logger.warning(
                "out_of_order_timestamp",
                package=package.name,
                ts=package.ts,
                previous_ts=previous_ts,
            )
        previous_ts = package.ts

        if package.ts < cutoff:
            logger.debug("cutoff_reached", package=package.name, ts=package.ts, cutoff=cutoff)
            return

        if package.is_scoped:
            logger.debug("scoped_package_skipped", package=package.name)
            continue

        yield package


def select_for_scan(packages: Iterable[PackageRecord], cutoff: int) -> List[PackageRecord]:
    """Materialized form of iter_for_scan"""
    return list(iter_for_scan(packages, cutoff))
