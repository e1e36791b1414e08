"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import io
import sys
from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest

from webcallback.transport import reset_default_transport

# Add tests directory to path so fakes can be imported from conftest
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))


class RecordingTransport(httpx.AsyncBaseTransport):
    """Fake transport that records every request it sees.

    Fails the first ``failures`` calls with ``httpx.ConnectError``, then
    answers with ``status_code`` and echoes the request body back.
    """

    def __init__(self, failures: int = 0, status_code: int = 200) -> None:
        self.failures = failures
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        self.requests.append(request)
        self.bodies.append(body)
        if self.calls <= self.failures:
            raise httpx.ConnectError(f"attempt {self.calls} refused", request=request)
        return httpx.Response(
            self.status_code,
            content=body,
            headers={"X-Attempts": str(self.calls)},
        )


class SlowTransport(httpx.AsyncBaseTransport):
    """Fake transport that never answers within a test's lifetime."""

    def __init__(self, delay: float = 30.0) -> None:
        self.delay = delay
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        await asyncio.sleep(self.delay)
        return httpx.Response(200)


class SelfRetryingTransport(httpx.AsyncBaseTransport):
    """Override that does its own retrying and keeps a log of it."""

    def __init__(self, max_tries: int = 0) -> None:
        self.max_tries = max_tries
        self.cur_tries = 0
        self.log = io.StringIO()
        self.entered = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.entered += 1
        body = await request.aread()
        while self.cur_tries < self.max_tries:
            self.log.write(f"Count: {self.cur_tries}\n")
            self.cur_tries += 1
        self.log.write("Final Write\n")
        return httpx.Response(200, content=body, headers={"X-Tries": str(self.cur_tries)})


@pytest.fixture(autouse=True)
def _fresh_default_transport() -> Iterator[None]:
    """Keep the process-wide default transport from leaking between tests."""
    reset_default_transport()
    yield
    reset_default_transport()


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()
