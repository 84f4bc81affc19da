"""
Scanner Dispatcher - Submits dependents to the package analysis service.

The service answers 200 once it has accepted a package. An invalid or expired
API key does not produce a 401; the service redirects to its login page
instead, which the session follows, so the final URL path is what identifies
an authentication problem.
"""

import asyncio
from urllib.parse import quote

import aiohttp

from .base_scanner import (
    BaseScanner,
    ScanOutcome,
    ScanTransportError,
    ScanStatusError,
    ScanAuthRedirectError,
)


SCANNER_URL = "https://dprk-research.kmsec.uk/api/scanner/analyse/package/"
LOGIN_PATH = "/login"


class ScannerDispatcher(BaseScanner):
    """
    Dispatcher for the remote package analysis API.

    Example:
        >>> dispatcher = ScannerDispatcher(session, api_key="...")
        >>> outcome = await dispatcher.dispatch("left-pad")
        >>> outcome.success
        True
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: str,
        base_url: str = SCANNER_URL,
    ):
        """
        Initialize the dispatcher.

        Args:
            session: Shared HTTP session
            api_key: Scanner API credential, sent as the authorization header
            base_url: Analysis URL prefix, the package name is appended
        """
        super().__init__(scanner_name="ScannerDispatcher")

        self.session = session
        self.base_url = base_url
        self._headers = {
            "accept": "application/json",
            "authorization": api_key,
        }

    def url_for(self, package_name: str) -> str:
        # Keeps "@" literal for scoped names
        return self.base_url + quote(package_name, safe="@")

    async def dispatch(self, package_name: str) -> ScanOutcome:
        """
        Submit one package to the scanner. No retries.

        Args:
            package_name: npm package name

        Returns:
            ScanOutcome carrying ScanTransportError, ScanAuthRedirectError or
            ScanStatusError on failure
        """
        url = self.url_for(package_name)

        try:
            async with self.session.get(url, headers=self._headers) as response:
                final_url = str(response.url)
                if response.url.path == LOGIN_PATH:
                    error = ScanAuthRedirectError(package_name, final_url)
                elif response.status != 200:
                    error = ScanStatusError(package_name, response.status, final_url)
                else:
                    error = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error = ScanTransportError(package_name, f"sending to scanner: {package_name}: {e!r}")

        if error is not None:
            self.logger.error(
                "dispatch_failed",
                package=package_name,
                error=str(error),
                error_type=type(error).__name__,
            )
            return self._record(ScanOutcome.failed(package_name, error))

        self.logger.info("sent_to_scanner", package=package_name)
        return self._record(ScanOutcome.ok(package_name))
