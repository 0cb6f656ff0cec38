# Copyright (c) Syntropy Systems
"""Pytest fixtures for raven tests."""

import os
import tempfile
import threading
from collections.abc import Callable, Generator
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from raven_http.models.probe import ProbeResult
from raven_http.request import make_request_factory
from raven_http.transport import new_http_client

TARGET_URL = "http://target.test/health"

# Store original cwd at module load time
_original_cwd = Path.cwd()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from an empty directory (no .raven config above it)."""
    os.chdir(temp_dir)
    yield temp_dir
    # Always return to original cwd
    os.chdir(_original_cwd)


class CountingHandler:
    """MockTransport handler that numbers requests and records them.

    ``respond`` gets the 1-based request number and the request, and returns
    the response (or raises an httpx error).
    """

    def __init__(self, respond: Callable[[int, httpx.Request], httpx.Response]) -> None:
        self._respond = respond
        self._lock = threading.Lock()
        self.calls = 0
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.calls += 1
            number = self.calls
            self.requests.append(request)
        return self._respond(number, request)


@pytest.fixture
def make_client() -> Generator[Callable[[CountingHandler], httpx.Client], None, None]:
    """Build clients backed by a MockTransport; closed after the test."""
    clients: list[httpx.Client] = []

    def _make(handler: CountingHandler, cutoff: float = 5.0) -> httpx.Client:
        client = new_http_client(cutoff, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def ok_handler() -> CountingHandler:
    """Handler that answers every request with a 200."""
    return CountingHandler(lambda _n, _r: httpx.Response(200, text="ok"))


@pytest.fixture
def request_factory():
    """Descriptor factory for a GET against the test target."""
    return make_request_factory("get", TARGET_URL)


@pytest.fixture
def make_probe() -> Callable[..., ProbeResult]:
    """Build a finished probe without touching the network."""

    def _make(
        elapsed_ms: float = 10.0,
        status: int | None = 200,
        step: int = 1,
        index: int = 0,
        error: str | None = None,
    ) -> ProbeResult:
        return ProbeResult(
            index=index,
            step=step,
            method="GET",
            url=TARGET_URL,
            started_at=datetime.now(timezone.utc),
            elapsed_ns=int(elapsed_ms * 1_000_000),
            status_code=None if error is not None else status,
            error=error,
        )

    return _make


@pytest.fixture
def handler_for() -> type[CountingHandler]:
    """The CountingHandler class, for tests that need custom responses."""
    return CountingHandler
