"""
Dependents Fetcher - Retrieves the packages that depend on a watched target.

Uses the npm website's dependents listing. The listing is assumed to be in
descending publish-timestamp order; nothing here reorders it, and the triage
walker relies on that order for early termination.
"""

import asyncio
import json
from typing import Optional

import aiohttp
import structlog
from pydantic import ValidationError

from .models import DependentsResponse


NPM_DEPENDED_URL = "https://www.npmjs.com/browse/depended/"
DEFAULT_USER_AGENT = "depwatch (dependencies)"


class FetchError(Exception):
    """Base exception for dependents fetch failures"""

    def __init__(self, target: str, message: str):
        self.target = target
        super().__init__(message)


class FetchTransportError(FetchError):
    """Raised when the request cannot complete (network error or timeout)"""
    pass


class FetchStatusError(FetchError):
    """Raised when the listing responds with a non-200 status"""

    def __init__(self, target: str, status: int, url: str):
        self.status = status
        self.url = url
        super().__init__(target, f"unexpected status code {status} from {url}")


class FetchDecodeError(FetchError):
    """Raised when the body is not the expected JSON structure"""
    pass


class FetchMismatchError(FetchError):
    """Raised when the response answers for a different package"""

    def __init__(self, target: str, actual: str):
        self.actual = actual
        super().__init__(target, f"wanted dependency for {target}, got {actual}")


class FetchEmptyError(FetchError):
    """Raised when the listing has no packages"""

    def __init__(self, target: str):
        super().__init__(target, f"returned 0 dependencies for {target}")


class DependentsFetcher:
    """
    Fetches the dependents listing for a target package.

    Example:
        >>> fetcher = DependentsFetcher(session)
        >>> response = await fetcher.fetch("axios")
        >>> print(len(response.packages))
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = NPM_DEPENDED_URL,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            session: Shared HTTP session
            base_url: Listing URL prefix, the target name is appended
            user_agent: Client identifier sent upstream
        """
        self.session = session
        self.base_url = base_url
        self.headers = {
            "accept": "application/json",
            "x-spiferack": "1",
            "user-agent": user_agent or DEFAULT_USER_AGENT,
        }

        self.logger = structlog.get_logger(__name__)

    def url_for(self, target: str) -> str:
        return self.base_url + target

    async def fetch(self, target: str) -> DependentsResponse:
        """
        Fetch the dependents of ``target``.

        Args:
            target: npm package name being watched

        Returns:
            DependentsResponse with packages exactly as received

        Raises:
            FetchError: One of the FetchError subclasses on any failure
        """
        url = self.url_for(target)
        self.logger.info("fetching_dependents", target=target, url=url)

        try:
            async with self.session.get(url, headers=self.headers) as response:
                if response.status != 200:
                    raise FetchStatusError(target, response.status, str(response.url))
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchTransportError(
                target, f"doing request for {url}: {e!r}"
            ) from e

        try:
            data = DependentsResponse.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            raise FetchDecodeError(target, f"decoding response from {url}: {e}") from e

        if data.dependency != target:
            raise FetchMismatchError(target, data.dependency)

        if not data.packages:
            raise FetchEmptyError(target)

        self.logger.info(
            "dependents_fetched",
            target=target,
            count=len(data.packages),
            newest_ts=data.packages[0].ts,
        )
        return data
