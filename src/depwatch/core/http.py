"""
HTTP session - The single aiohttp session shared by fetcher and dispatcher.

The session is built once at startup and passed to the components that need
it; it is never reconfigured afterwards.
"""

import aiohttp

# Applied to every request; a timeout surfaces as a transport failure
DEFAULT_TIMEOUT = 5.0


def create_session(timeout: float = DEFAULT_TIMEOUT) -> aiohttp.ClientSession:
    """
    Create the shared HTTP session.

    Must be called from within a running event loop. The caller owns the
    session and closes it on shutdown.

    Args:
        timeout: Total per-request timeout in seconds
    """
    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout))
