"""Pytest configuration and shared fixtures.

HTTP is faked with ``httpx.MockTransport`` driven by ``FakeShare``, a
scripted stand-in for the Share endpoints. Retry sleeps are recorded
instead of awaited so tests run instantly.
"""

from collections import defaultdict
from collections.abc import AsyncGenerator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from dexcom_share.core.constants import (
    DEXCOM_AUTHENTICATE_ENDPOINT,
    DEXCOM_GLUCOSE_READINGS_ENDPOINT,
    DEXCOM_LOGIN_ID_ENDPOINT,
)
from dexcom_share.core.transport import RetryPolicy
from dexcom_share.services.dexcom import Dexcom

ACCOUNT_ID = "1e7e3a5b-4c6d-4f1a-9b2c-3d4e5f6a7b8c"
SESSION_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
SECOND_SESSION_ID = "0f1e2d3c-4b5a-4968-8776-a5b4c3d2e1f0"

AUTHENTICATE = DEXCOM_AUTHENTICATE_ENDPOINT
LOGIN = DEXCOM_LOGIN_ID_ENDPOINT
READINGS = DEXCOM_GLUCOSE_READINGS_ENDPOINT

READING = {
    "WT": "Date(1691455258000)",
    "ST": "Date(1691455258000)",
    "DT": "Date(1691455258000-0400)",
    "Value": 85,
    "Trend": "Flat",
}

Reply = Callable[[httpx.Request], httpx.Response]


def ok(body: Any) -> Reply:
    """200 response with a JSON body."""
    return lambda request: httpx.Response(200, json=body)


def share_error(code: str | None, message: str | None, status: int = 400) -> Reply:
    """Share-style error object response (non-retryable status by default)."""
    body: dict[str, Any] = {}
    if code is not None:
        body["Code"] = code
    if message is not None:
        body["Message"] = message
    return lambda request: httpx.Response(status, json=body)


def status(code: int, headers: dict[str, str] | None = None, text: str = "") -> Reply:
    """Bare status response, optionally with headers."""
    return lambda request: httpx.Response(code, headers=headers, text=text)


def network_error(message: str = "connection refused") -> Reply:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(message, request=request)

    return _raise


class FakeShare:
    """Scripted Share server.

    Each endpoint answers from its queue first, then from its default.
    """

    def __init__(self):
        self.queues: dict[str, list[Reply]] = defaultdict(list)
        self.defaults: dict[str, Reply] = {
            AUTHENTICATE: ok(ACCOUNT_ID),
            LOGIN: ok(SESSION_ID),
            READINGS: ok([READING]),
        }
        self.requests: list[httpx.Request] = []

    def queue(self, endpoint: str, *replies: Reply) -> None:
        self.queues[endpoint].extend(replies)

    def set_default(self, endpoint: str, reply: Reply) -> None:
        self.defaults[endpoint] = reply

    def calls(self, endpoint: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(endpoint))

    def requests_to(self, endpoint: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(endpoint)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.split("/Services/", 1)[-1]
        queued = self.queues[endpoint]
        reply = queued.pop(0) if queued else self.defaults.get(endpoint)
        if reply is None:
            return httpx.Response(404, text="Not Found")
        return reply(request)


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def share() -> FakeShare:
    return FakeShare()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest_asyncio.fixture
async def http_client(share: FakeShare) -> AsyncGenerator[httpx.AsyncClient, None]:
    """AsyncClient wired to the fake Share server."""
    transport = httpx.MockTransport(share.handler)
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
def no_jitter_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=0.2, max_delay=4.0, jitter=False)


@pytest.fixture
def make_dexcom(
    http_client: httpx.AsyncClient,
    sleeps: SleepRecorder,
    no_jitter_policy: RetryPolicy,
) -> Callable[..., Dexcom]:
    """Factory for clients wired to the fake server.

    Defaults to username authentication; pass ``account_id=...`` and
    ``username=None`` to start from a known account id.
    """

    def _make(**kwargs: Any) -> Dexcom:
        kwargs.setdefault("username", "user@example.com")
        kwargs.setdefault("password", "hunter2")
        kwargs.setdefault("http_client", http_client)
        kwargs.setdefault("sleep", sleeps)
        kwargs.setdefault("retry_policy", no_jitter_policy)
        return Dexcom(**kwargs)

    return _make
