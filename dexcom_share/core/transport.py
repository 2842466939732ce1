"""Resilient HTTP transport for Share requests.

Wraps a single ``httpx`` request with retries for network failures and
transient HTTP statuses. A server-supplied ``Retry-After`` hint is
preferred over computed backoff, but never waits longer than the policy
cap. Classification of terminal error statuses happens one layer up.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, model_validator

from dexcom_share.config import Settings
from dexcom_share.core.backoff import backoff_delay
from dexcom_share.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

_SECONDS_RE = re.compile(r"[0-9]+")

Sleeper = Callable[[float], Awaitable[None]]


class RetryPolicy(BaseModel):
    """Retry settings for one logical request. Delays are in seconds."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=0.2, ge=0)
    max_delay: float = Field(default=4.0, ge=0)
    jitter: bool = True
    retry_statuses: frozenset[int] = DEFAULT_RETRY_STATUSES

    @model_validator(mode="after")
    def _check_delay_window(self) -> Self:
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> Self:
        return cls(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay_seconds,
            max_delay=settings.retry_max_delay_seconds,
            jitter=settings.retry_jitter,
        )


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """Parse a ``Retry-After`` header into seconds.

    Accepts delta-seconds (``"120"``) or an HTTP-date. Dates in the past
    yield 0. Returns None when the header is absent or unparseable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if _SECONDS_RE.fullmatch(value):
        return float(int(value))

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return max(0.0, (retry_at - now).total_seconds())


class ResilientTransport:
    """Send requests through an ``httpx.AsyncClient`` with retries.

    Holds no per-call state: each ``execute`` is independent. The client
    and the sleep function are injected so tests can substitute an
    ``httpx.MockTransport`` and a recording sleeper.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        policy: RetryPolicy | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._client = client
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def execute(
        self,
        request: httpx.Request,
        policy: RetryPolicy | None = None,
    ) -> httpx.Response:
        """Send ``request``, retrying transient failures.

        Returns:
            The first response whose status is not retryable

        Raises:
            httpx.TransportError: Network failure on the final attempt
            httpx.HTTPStatusError: Retryable status on every attempt
        """
        policy = policy or self.policy
        last_response: httpx.Response | None = None

        for attempt in range(1, policy.max_attempts + 1):
            is_last = attempt == policy.max_attempts
            try:
                response = await self._client.send(request)
            except httpx.TransportError as e:
                if is_last:
                    logger.error(
                        "Share request failed, retries exhausted",
                        url=_loggable_url(request),
                        attempts=attempt,
                        error=type(e).__name__,
                    )
                    raise
                delay = backoff_delay(
                    attempt, policy.base_delay, policy.max_delay, policy.jitter
                )
                logger.warning(
                    "Share request network error, retrying",
                    url=_loggable_url(request),
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    delay_seconds=round(delay, 3),
                    error=type(e).__name__,
                )
                await self._sleep(delay)
                continue

            if response.status_code not in policy.retry_statuses:
                return response

            last_response = response
            hint = parse_retry_after(response.headers.get("retry-after"))
            if hint is not None:
                delay = min(hint, policy.max_delay)
            elif not is_last:
                delay = backoff_delay(
                    attempt, policy.base_delay, policy.max_delay, policy.jitter
                )
            else:
                delay = None

            logger.warning(
                "Share request returned retryable status",
                url=_loggable_url(request),
                status=response.status_code,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay_seconds=None if delay is None else round(delay, 3),
                retry_after=hint is not None,
            )
            if delay is not None:
                await self._sleep(delay)

        if last_response is None:
            raise RuntimeError("Retry policy allowed no attempts")
        raise httpx.HTTPStatusError(
            f"Share request failed with HTTP {last_response.status_code} "
            f"after {policy.max_attempts} attempts",
            request=request,
            response=last_response,
        )


def _loggable_url(request: httpx.Request) -> str:
    # Query strings carry the session id
    return f"{request.url.host}{request.url.path}"
