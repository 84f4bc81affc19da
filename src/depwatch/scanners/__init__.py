"""
Package scanners module.

Each scanner inherits from BaseScanner and implements dispatch().

Available scanners:
- ScannerDispatcher: Remote package analysis API
"""

from .base_scanner import (
    BaseScanner,
    ScanOutcome,
    ScanError,
    ScanTransportError,
    ScanStatusError,
    ScanAuthRedirectError,
)

from .dispatcher import ScannerDispatcher, SCANNER_URL


__all__ = [
    # Base classes
    "BaseScanner",
    "ScanOutcome",
    # Exceptions
    "ScanError",
    "ScanTransportError",
    "ScanStatusError",
    "ScanAuthRedirectError",
    # Scanners
    "ScannerDispatcher",
    "SCANNER_URL",
]
