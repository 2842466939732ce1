"""Session id caches with TTL.

A ``SessionCache`` holds one session id and its expiry. The client only
needs three operations, so any store can back it: the in-memory cache is
the default, and ``RedisSessionCache`` shares a session between
processes (e.g. several pollers for the same Share account).

Unlike a best-effort cache, a remote backend must not turn failures into
"no value": a Redis outage raises, so callers see the outage instead of
silently re-authenticating on every call.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

import redis.asyncio as aioredis

from dexcom_share.logging_config import get_logger

logger = get_logger(__name__)


@runtime_checkable
class SessionCache(Protocol):
    """Storage for a single session id with an expiry (seconds)."""

    async def get(self) -> str | None:
        """Return the stored session id, or None if absent or expired."""
        ...

    async def set(self, session_id: str, ttl: float) -> None:
        """Store ``session_id`` for ``ttl`` seconds, replacing any prior entry."""
        ...

    async def clear(self) -> None:
        """Remove any stored session id."""
        ...


class MemorySessionCache:
    """Process-local session cache. Expiry uses wall-clock time."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._session_id: str | None = None
        self._expires_at = 0.0

    async def get(self) -> str | None:
        if self._session_id and self._clock() < self._expires_at:
            return self._session_id
        return None

    async def set(self, session_id: str, ttl: float) -> None:
        self._session_id = session_id
        self._expires_at = self._clock() + max(0.0, ttl)

    async def clear(self) -> None:
        self._session_id = None
        self._expires_at = 0.0


class RedisSessionCache:
    """Session cache stored under one Redis key with a native TTL.

    Every operation is bounded by ``timeout`` seconds on top of the
    client's socket timeouts.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        key: str = "dexcom:session",
        timeout: float = 2.0,
        client: aioredis.Redis | None = None,
    ):
        if client is None and redis_url is None:
            raise ValueError("Either redis_url or client is required")
        self.key = key
        self.timeout = timeout
        self._owns_client = client is None
        if client is None:
            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=timeout,
                socket_timeout=timeout,
            )
        self._client = client

    async def _run(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except (aioredis.RedisError, TimeoutError):
            logger.exception(
                "Redis session cache operation failed",
                operation=operation,
                key=self.key,
            )
            raise

    async def get(self) -> str | None:
        value = await self._run("get", self._client.get(self.key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def set(self, session_id: str, ttl: float) -> None:
        # Redis rejects a zero TTL; a zero-length lifetime means "nothing stored"
        ttl_ms = int(max(0.0, ttl) * 1000)
        if ttl_ms <= 0:
            await self._run("delete", self._client.delete(self.key))
            return
        await self._run("set", self._client.set(self.key, session_id, px=ttl_ms))

    async def clear(self) -> None:
        await self._run("delete", self._client.delete(self.key))

    async def aclose(self) -> None:
        """Close the Redis connection pool if this cache created it."""
        if self._owns_client:
            await self._client.aclose()
