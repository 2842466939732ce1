"""Dexcom Share client.

Fetches glucose readings from the Dexcom Share API:

    async with Dexcom(username="user", password="pass", region=Region.OUS) as dexcom:
        reading = await dexcom.get_current_glucose_reading()
        if reading:
            print(reading.mg_dl, reading.trend_arrow)

A rejected session (expired or revoked server-side) is handled once per
call: the cached session id is dropped, the client re-authenticates and
the request is repeated. A second rejection propagates.
"""

import asyncio
from types import TracebackType
from typing import Any, Self

import httpx

from dexcom_share.config import Settings
from dexcom_share.config import settings as default_settings
from dexcom_share.core.constants import (
    CURRENT_READING_MINUTES,
    DEFAULT_SESSION_TTL_SECONDS,
    DEXCOM_APPLICATION_IDS,
    DEXCOM_BASE_URLS,
    DEXCOM_GLUCOSE_READINGS_ENDPOINT,
    MAX_MAX_COUNT,
    MAX_MINUTES,
    Region,
)
from dexcom_share.core.errors import DexcomError, DexcomErrorCode
from dexcom_share.core.params import validate_minutes_and_count
from dexcom_share.core.session_cache import (
    MemorySessionCache,
    RedisSessionCache,
    SessionCache,
)
from dexcom_share.core.transport import ResilientTransport, RetryPolicy, Sleeper
from dexcom_share.logging_config import correlation_scope, get_logger
from dexcom_share.models.glucose import GlucoseReading
from dexcom_share.schemas.share import validate_readings_response
from dexcom_share.services.session import SessionManager
from dexcom_share.services.share_api import ShareApi

logger = get_logger(__name__)


def _validate_region(region: Region | str) -> Region:
    try:
        return Region(region)
    except ValueError as e:
        raise DexcomError(DexcomErrorCode.REGION_INVALID) from e


def _validate_user_ids(account_id: str | None, username: str | None) -> None:
    if username is not None and not isinstance(username, str):
        raise DexcomError(DexcomErrorCode.USERNAME_INVALID)
    if account_id is not None and not isinstance(account_id, str):
        raise DexcomError(DexcomErrorCode.ACCOUNT_ID_INVALID)
    provided = sum(1 for value in (account_id, username) if value)
    if provided == 0:
        raise DexcomError(DexcomErrorCode.USER_ID_REQUIRED)
    if provided > 1:
        raise DexcomError(DexcomErrorCode.USER_ID_MULTIPLE)


def _validate_password(password: str) -> None:
    if not isinstance(password, str) or not password:
        raise DexcomError(DexcomErrorCode.PASSWORD_INVALID)


class Dexcom:
    """Async Dexcom Share client.

    Exactly one of ``username`` or ``account_id`` must be given. All
    argument checks happen here, before any network use.

    Args:
        password: Share account password
        username: Share username (email, phone or username)
        account_id: Share account id (UUID), skips account authentication
        region: Share region
        retry_policy: Transport retry settings
        session_ttl: Seconds a session id is reused before re-authenticating
        cache: Session cache; defaults to a new in-memory cache
        http_client: Injected ``httpx.AsyncClient`` (not closed by ``aclose``)
        timeout: Per-request timeout for the client created when none is injected
        single_flight: Serialize concurrent session acquisition
        sleep: Sleep function for retry delays

    Raises:
        DexcomError: ARGUMENT errors for invalid region or identities
    """

    def __init__(
        self,
        *,
        password: str,
        username: str | None = None,
        account_id: str | None = None,
        region: Region | str = Region.US,
        retry_policy: RetryPolicy | None = None,
        session_ttl: float = DEFAULT_SESSION_TTL_SECONDS,
        cache: SessionCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        single_flight: bool = False,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._region = _validate_region(region)
        _validate_user_ids(account_id, username)
        _validate_password(password)

        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._client = http_client
        self._owns_cache = False
        self._cache = cache if cache is not None else MemorySessionCache()

        transport = ResilientTransport(self._client, retry_policy, sleep=sleep)
        self._api = ShareApi(self._client, transport, DEXCOM_BASE_URLS[self._region])
        self._session = SessionManager(
            api=self._api,
            application_id=DEXCOM_APPLICATION_IDS[self._region],
            password=password,
            cache=self._cache,
            session_ttl=session_ttl,
            username=username or None,
            account_id=account_id or None,
            single_flight=single_flight,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        **overrides: Any,
    ) -> Self:
        """Build a client from environment settings.

        Keyword ``overrides`` take precedence (e.g. ``http_client=...``).
        """
        settings = settings or default_settings
        owns_cache = False
        kwargs: dict[str, Any] = {
            "password": settings.dexcom_password,
            "username": settings.dexcom_username,
            "account_id": settings.dexcom_account_id,
            "region": settings.dexcom_region,
            "retry_policy": RetryPolicy.from_settings(settings),
            "session_ttl": settings.dexcom_session_ttl_seconds,
            "timeout": settings.dexcom_http_timeout_seconds,
        }
        kwargs.update(overrides)
        if "cache" not in overrides and settings.session_cache_backend == "redis":
            # Argument errors must surface before a Redis pool exists
            _validate_region(kwargs["region"])
            _validate_user_ids(kwargs["account_id"], kwargs["username"])
            _validate_password(kwargs["password"])
            kwargs["cache"] = RedisSessionCache(
                settings.redis_url,
                key=settings.session_cache_key,
                timeout=settings.session_cache_timeout_seconds,
            )
            owns_cache = True
        dexcom = cls(**kwargs)
        dexcom._owns_cache = owns_cache
        return dexcom

    @property
    def username(self) -> str | None:
        return self._session.username

    @property
    def account_id(self) -> str | None:
        """Account id, as supplied or as obtained by authentication."""
        return self._session.account_id

    @property
    def region(self) -> Region:
        return self._region

    @property
    def session(self) -> SessionManager:
        return self._session

    async def get_glucose_readings(
        self,
        minutes: int = MAX_MINUTES,
        max_count: int = MAX_MAX_COUNT,
    ) -> list[GlucoseReading]:
        """Get up to ``max_count`` readings from the last ``minutes``.

        Args:
            minutes: Window in minutes, 1-1440
            max_count: Maximum readings, 1-288

        Returns:
            Readings, newest first (as ordered by Share)

        Raises:
            DexcomError: ARGUMENT for bad bounds (before any request),
                or any classified error from the session/readings flow
            httpx.HTTPError: Network failure after transport retries
        """
        validate_minutes_and_count(minutes, max_count)

        with correlation_scope():
            try:
                return await self._fetch_readings(minutes, max_count)
            except DexcomError as e:
                if not e.is_session_error:
                    raise
                logger.info(
                    "Share session rejected, re-authenticating once",
                    code=e.code.name,
                )
                await self._session.invalidate()
                return await self._fetch_readings(minutes, max_count)

    async def get_latest_glucose_reading(self) -> GlucoseReading | None:
        """Most recent reading from the last 24 hours, or None."""
        readings = await self.get_glucose_readings(MAX_MINUTES, 1)
        return readings[0] if readings else None

    async def get_current_glucose_reading(self) -> GlucoseReading | None:
        """Most recent reading from the last 10 minutes, or None."""
        readings = await self.get_glucose_readings(CURRENT_READING_MINUTES, 1)
        return readings[0] if readings else None

    async def _fetch_readings(
        self, minutes: int, max_count: int
    ) -> list[GlucoseReading]:
        session_id = await self._session.ensure_session()
        data = await self._api.post(
            DEXCOM_GLUCOSE_READINGS_ENDPOINT,
            params={
                "sessionId": session_id,
                "minutes": minutes,
                "maxCount": max_count,
            },
        )
        records = validate_readings_response(data)
        readings = [
            GlucoseReading(record, raw=parsed) for record, parsed in zip(data, records)
        ]
        logger.debug("Fetched Share readings", count=len(readings), minutes=minutes)
        return readings

    async def aclose(self) -> None:
        """Close the HTTP client and Redis cache if this client created them."""
        if self._owns_client:
            await self._client.aclose()
        if self._owns_cache and isinstance(self._cache, RedisSessionCache):
            await self._cache.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
