"""Pytest fixtures for FlowKore tests."""
import asyncio
from contextlib import asynccontextmanager
from typing import Any, List
from unittest.mock import Mock, AsyncMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from flowkore.core.api.retry import ExponentialBackoffStrategy
from flowkore.core.api.sse import ServerSentEvent
from flowkore.core.storage import MemoryStorage


BASE_URL = 'http://flowkore.test'


async def wait_until(predicate, timeout: float = 2.0):
    """Yield to the loop until ``predicate()`` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


async def settle(rounds: int = 20):
    """Let pending callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@asynccontextmanager
async def running_server(app: web.Application):
    """Serve ``app`` on a local port; yields its base URL."""
    server = TestServer(app)
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        await server.close()


class FakeStream:
    """Event stream whose messages are pushed by the test."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    def push(self, data: str, event: str = 'message'):
        self._queue.put_nowait(ServerSentEvent(data=data, event=event))

    def end(self):
        self._queue.put_nowait(None)

    def fail(self, error: BaseException):
        self._queue.put_nowait(error)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


class FakeStreamAPI:
    """
    Stand-in for ``AsyncAPIClient`` on the realtime path.

    Each ``open_event_stream`` consumes one scripted outcome: an
    exception to raise, an ``asyncio.Event`` to wait on before opening,
    or nothing (open immediately).
    """

    def __init__(self):
        self.base_url = BASE_URL
        self.opened_urls: List[str] = []
        self.outcomes: List[Any] = []
        self.streams: List[FakeStream] = []

    def build_url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def script(self, *outcomes):
        self.outcomes.extend(outcomes)

    @asynccontextmanager
    async def open_event_stream(self, url: str):
        self.opened_urls.append(url)
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, asyncio.Event):
            await outcome.wait()
        stream = FakeStream()
        self.streams.append(stream)
        yield stream


class RecordingBackoff(ExponentialBackoffStrategy):
    """Backoff that records the delays it would use but waits zero seconds."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.delays: List[float] = []

    def get_delay(self, attempt: int) -> float:
        self.delays.append(super().get_delay(attempt))
        return 0.0


@pytest.fixture
def stream_api():
    """Scriptable realtime transport."""
    return FakeStreamAPI()


@pytest.fixture
def backoff():
    """Default-policy backoff that does not actually wait."""
    return RecordingBackoff()


@pytest.fixture
def api():
    """Backend API double for auth tests."""
    mock = Mock()
    mock.request = AsyncMock()
    return mock


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def user_record():
    """User record as returned by the backend."""
    return {
        'id': 'user-1',
        'email': 'ada@example.com',
        'role': 'user',
        'created_at': '2024-01-01T12:00:00Z',
        'is_verified': True,
    }


@pytest.fixture
def session_record(user_record):
    """Session-shaped login response."""
    return {
        'access_token': 'access-1',
        'refresh_token': 'refresh-1',
        'token_type': 'bearer',
        'expires_in': 3600,
        'user': user_record,
    }
