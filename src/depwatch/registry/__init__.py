"""
Registry module - npm dependents discovery and triage selection.

This package contains:
- DependentsFetcher: Dependents listing from the npm website
- PackageRecord / DependentsResponse: Listing data model
- select_for_scan / iter_for_scan: Cutoff and scope selection
"""

from .models import PackageRecord, Publisher, PublishDate, DependentsResponse
from .dependents_fetcher import (
    DependentsFetcher,
    FetchError,
    FetchTransportError,
    FetchStatusError,
    FetchDecodeError,
    FetchMismatchError,
    FetchEmptyError,
    NPM_DEPENDED_URL,
)
from .selection import iter_for_scan, select_for_scan


__all__ = [
    # Fetcher
    "DependentsFetcher",
    "NPM_DEPENDED_URL",
    # Data structures
    "PackageRecord",
    "Publisher",
    "PublishDate",
    "DependentsResponse",
    # Exceptions
    "FetchError",
    "FetchTransportError",
    "FetchStatusError",
    "FetchDecodeError",
    "FetchMismatchError",
    "FetchEmptyError",
    # Selection
    "iter_for_scan",
    "select_for_scan",
]
