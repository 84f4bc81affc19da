"""
Base Scanner - Common interface for services that analyse npm packages.

A scanner receives one package name at a time and reports a ScanOutcome.
Failures are returned as outcomes carrying a ScanError, not raised, so the
orchestrator can decide what a failure means for the rest of the cycle.

Design Pattern: Strategy Pattern
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import structlog


class ScanError(Exception):
    """Base exception for scanner dispatch failures"""

    def __init__(self, package: str, message: str):
        self.package = package
        super().__init__(message)


class ScanTransportError(ScanError):
    """Raised when the scanner request cannot complete"""
    pass


class ScanStatusError(ScanError):
    """Raised when the scanner responds with a non-200 status"""

    def __init__(self, package: str, status: int, url: str):
        self.status = status
        self.url = url
        super().__init__(package, f"unexpected status code {status} from {url}")


class ScanAuthRedirectError(ScanError):
    """Raised when the scanner redirects to its login page (bad or expired API key)"""

    def __init__(self, package: str, url: str):
        self.url = url
        super().__init__(package, f"api key is incorrect, scanner redirected to {url}")


@dataclass(frozen=True)
class ScanOutcome:
    """Result of one dispatch attempt"""
    package: str
    success: bool
    error: Optional[ScanError] = None

    @classmethod
    def ok(cls, package: str) -> "ScanOutcome":
        return cls(package=package, success=True)

    @classmethod
    def failed(cls, package: str, error: ScanError) -> "ScanOutcome":
        return cls(package=package, success=False, error=error)


class BaseScanner(ABC):
    """
    Abstract base class for package scanners.

    Subclasses implement dispatch(); statistics and logging are shared.

    Example:
        >>> class LocalScanner(BaseScanner):
        ...     async def dispatch(self, package_name):
        ...         return ScanOutcome.ok(package_name)
    """

    def __init__(self, scanner_name: str):
        """
        Initialize the base scanner.

        Args:
            scanner_name: Name of the scanner, used in logs
        """
        self.scanner_name = scanner_name

        # Statistics
        self.dispatched_count = 0
        self.failed_count = 0

        self.logger = structlog.get_logger(__name__, scanner=self.scanner_name)

    @abstractmethod
    async def dispatch(self, package_name: str) -> ScanOutcome:
        """
        Submit one package for analysis.

        Args:
            package_name: npm package name

        Returns:
            ScanOutcome, successful or carrying a ScanError
        """
        pass

    def _record(self, outcome: ScanOutcome) -> ScanOutcome:
        """Update statistics for an outcome and return it"""
        if outcome.success:
            self.dispatched_count += 1
        else:
            self.failed_count += 1
        return outcome

    def get_statistics(self) -> Dict[str, int]:
        """
        Get scanner statistics.

        Returns:
            Dictionary with dispatched and failed counts
        """
        return {
            "dispatched": self.dispatched_count,
            "failed": self.failed_count,
        }

    def __repr__(self) -> str:
        return (
            f"{self.scanner_name}("
            f"dispatched={self.dispatched_count}, "
            f"failed={self.failed_count})"
        )
