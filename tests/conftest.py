"""
Shared fixtures for wallet client tests.

Tests talk to scripted backends through httpx.MockTransport; handlers may be
plain or async functions taking an httpx.Request.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from unittest.mock import MagicMock

from wallet_client.session import Navigator
from wallet_client.storage import CredentialStore, MemoryStore
from wallet_client.wallet import WalletClient

TEST_BASE_URL = "http://wallet.test"


def request_json(request: httpx.Request) -> Any:
    """Decode the JSON body sent with a captured request."""
    return json.loads(request.content) if request.content else None


def bearer(request: httpx.Request) -> Optional[str]:
    """Return the bearer token of a captured request, if any."""
    header = request.headers.get("Authorization", "")
    return header[len("Bearer "):] if header.startswith("Bearer ") else None


class RecordingBackend:
    """
    Route table keyed by (method, path) that records every request.

    A route value is either an httpx.Response or a callable returning one
    (optionally as a coroutine).
    """

    def __init__(self, routes: Optional[Dict[tuple, Any]] = None):
        self.routes: Dict[tuple, Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def calls_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "No route"})
        if isinstance(route, httpx.Response):
            return route
        result = route(request)
        if not isinstance(result, httpx.Response):
            result = await result
        return result


@pytest.fixture
def mock_env(monkeypatch):
    """Set up mock environment variables."""
    monkeypatch.setenv("WALLET_API_BASE_URL", TEST_BASE_URL)
    monkeypatch.delenv("WALLET_REFRESH_ENDPOINT", raising=False)
    monkeypatch.delenv("WALLET_LOGIN_URL", raising=False)
    monkeypatch.delenv("WALLET_STORAGE_PATH", raising=False)


@pytest.fixture
def store():
    """Empty in-memory credential store."""
    return CredentialStore(MemoryStore())


@pytest.fixture
def navigator():
    """Navigator double recording login redirects."""
    return MagicMock(spec=Navigator)


@pytest.fixture
def make_client(mock_env, store, navigator):
    """Factory building a WalletClient wired to a scripted backend."""
    def _make(handler: Callable) -> WalletClient:
        client = WalletClient(
            base_url=TEST_BASE_URL,
            store=store,
            navigator=navigator,
            transport=httpx.MockTransport(handler),
        )
        return client

    return _make
