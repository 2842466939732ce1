"""Tests for session id caches."""

import logging
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from dexcom_share.core.session_cache import (
    MemorySessionCache,
    RedisSessionCache,
    SessionCache,
)
from tests.conftest import SESSION_ID


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMemorySessionCache:
    """Tests for the in-memory cache."""

    def test_satisfies_protocol(self):
        assert isinstance(MemorySessionCache(), SessionCache)

    async def test_empty_cache_returns_none(self):
        assert await MemorySessionCache().get() is None

    async def test_returns_value_before_expiry(self):
        clock = FakeClock()
        cache = MemorySessionCache(clock=clock)
        await cache.set(SESSION_ID, 480)

        clock.now += 479.9
        assert await cache.get() == SESSION_ID

    async def test_expires_after_ttl(self):
        clock = FakeClock()
        cache = MemorySessionCache(clock=clock)
        await cache.set(SESSION_ID, 480)

        clock.now += 480
        assert await cache.get() is None

    async def test_zero_ttl_is_immediately_expired(self):
        cache = MemorySessionCache(clock=FakeClock())
        await cache.set(SESSION_ID, 0)
        assert await cache.get() is None

    async def test_negative_ttl_treated_as_zero(self):
        cache = MemorySessionCache(clock=FakeClock())
        await cache.set(SESSION_ID, -10)
        assert await cache.get() is None

    async def test_set_replaces_previous_entry(self):
        clock = FakeClock()
        cache = MemorySessionCache(clock=clock)
        await cache.set("old", 10)
        await cache.set(SESSION_ID, 100)

        clock.now += 50
        assert await cache.get() == SESSION_ID

    async def test_clear(self):
        cache = MemorySessionCache(clock=FakeClock())
        await cache.set(SESSION_ID, 480)
        await cache.clear()
        assert await cache.get() is None


class TestRedisSessionCache:
    """Tests for the Redis-backed cache."""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.get.return_value = None
        return client

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError, match="redis_url or client"):
            RedisSessionCache()

    def test_satisfies_protocol(self, redis_client):
        assert isinstance(RedisSessionCache(client=redis_client), SessionCache)

    def test_builds_client_from_url(self):
        with patch("dexcom_share.core.session_cache.aioredis.from_url") as from_url:
            cache = RedisSessionCache("redis://localhost:6379", timeout=1.5)

        from_url.assert_called_once_with(
            "redis://localhost:6379",
            decode_responses=True,
            socket_connect_timeout=1.5,
            socket_timeout=1.5,
        )
        assert cache.key == "dexcom:session"

    async def test_get_missing_returns_none(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        assert await cache.get() is None
        redis_client.get.assert_awaited_once_with("dexcom:session")

    async def test_get_returns_stored_value(self, redis_client):
        redis_client.get.return_value = SESSION_ID
        cache = RedisSessionCache(client=redis_client, key="share:alice")

        assert await cache.get() == SESSION_ID
        redis_client.get.assert_awaited_once_with("share:alice")

    async def test_get_decodes_bytes(self, redis_client):
        redis_client.get.return_value = SESSION_ID.encode()
        cache = RedisSessionCache(client=redis_client)
        assert await cache.get() == SESSION_ID

    async def test_set_uses_millisecond_ttl(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.set(SESSION_ID, 480)
        redis_client.set.assert_awaited_once_with(
            "dexcom:session", SESSION_ID, px=480_000
        )

    async def test_set_fractional_ttl(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.set(SESSION_ID, 0.25)
        redis_client.set.assert_awaited_once_with(
            "dexcom:session", SESSION_ID, px=250
        )

    async def test_set_zero_ttl_deletes(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.set(SESSION_ID, 0)
        redis_client.set.assert_not_awaited()
        redis_client.delete.assert_awaited_once_with("dexcom:session")

    async def test_set_negative_ttl_deletes(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.set(SESSION_ID, -5)
        redis_client.set.assert_not_awaited()
        redis_client.delete.assert_awaited_once()

    async def test_clear_deletes_key(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.clear()
        redis_client.delete.assert_awaited_once_with("dexcom:session")

    async def test_errors_are_logged_with_traceback(self, redis_client, caplog):
        redis_client.set.side_effect = RedisConnectionError("down")
        cache = RedisSessionCache(client=redis_client)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(RedisConnectionError):
                await cache.set(SESSION_ID, 480)

        record = caplog.records[-1]
        assert record.getMessage() == "Redis session cache operation failed"
        assert record.extra_fields == {"operation": "set", "key": "dexcom:session"}
        assert record.exc_info is not None

    async def test_errors_propagate(self, redis_client):
        redis_client.get.side_effect = RedisConnectionError("down")
        cache = RedisSessionCache(client=redis_client)

        with pytest.raises(RedisConnectionError):
            await cache.get()

    async def test_aclose_leaves_injected_client_open(self, redis_client):
        cache = RedisSessionCache(client=redis_client)
        await cache.aclose()
        redis_client.aclose.assert_not_awaited()

    async def test_aclose_closes_owned_client(self):
        client = AsyncMock()
        with patch(
            "dexcom_share.core.session_cache.aioredis.from_url", return_value=client
        ):
            cache = RedisSessionCache("redis://localhost:6379")

        await cache.aclose()
        client.aclose.assert_awaited_once()
