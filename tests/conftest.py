"""
Shared fixtures: a stand-in for the aiohttp session and package builders.
"""

import json
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest

from depwatch.registry import PackageRecord


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: full pipeline tests against a fake transport")


class FakeURL:
    """Just enough of yarl.URL for the code under test"""

    def __init__(self, url: str):
        self._url = url
        self.path = urlsplit(url).path

    def __str__(self) -> str:
        return self._url


class FakeResponse:
    def __init__(self, status: int, body: bytes, url: str):
        self.status = status
        self.url = FakeURL(url)
        self._body = body

    async def read(self) -> bytes:
        return self._body


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """
    Records GET requests and replays canned responses per URL.

    Unregistered URLs answer 404.
    """

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[Tuple[str, Dict[str, str]]] = []

    def respond(
        self,
        url: str,
        status: int = 200,
        json_body: Any = None,
        body: Optional[bytes] = None,
        final_url: Optional[str] = None,
    ):
        if body is None:
            body = json.dumps(json_body).encode() if json_body is not None else b""
        self.routes[url] = FakeResponse(status, body, final_url or url)

    def fail(self, url: str, exc: BaseException):
        self.routes[url] = exc

    def get(self, url: str, headers: Optional[Dict[str, str]] = None):
        self.requests.append((url, dict(headers or {})))
        return _RequestContext(self.routes.get(url, FakeResponse(404, b"", url)))

    @property
    def requested_urls(self) -> List[str]:
        return [url for url, _ in self.requests]


@pytest.fixture
def fake_session():
    return FakeSession()


def package_json(name: str, ts: int, **extra) -> Dict[str, Any]:
    data = {
        "name": name,
        "description": f"{name} description",
        "maintainers": ["someone"],
        "publisher": {"name": "someone", "avatars": {"small": "/s.png"}},
        "date": {"ts": ts, "rel": "just now"},
        "version": "1.0.0",
    }
    data.update(extra)
    return data


@pytest.fixture
def make_package_json():
    return package_json


@pytest.fixture
def make_package():
    def _make(name: str, ts: int) -> PackageRecord:
        return PackageRecord.model_validate(package_json(name, ts))

    return _make


@pytest.fixture
def make_listing():
    def _make(dependency: str, packages: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "title": f"Packages depending on {dependency}",
            "dependency": dependency,
            "packages": packages,
        }

    return _make
