"""Async client for the Dexcom Share glucose API."""

from dexcom_share.core.constants import Region
from dexcom_share.core.errors import DexcomError, DexcomErrorCode, ErrorKind
from dexcom_share.core.session_cache import (
    MemorySessionCache,
    RedisSessionCache,
    SessionCache,
)
from dexcom_share.core.transport import RetryPolicy
from dexcom_share.models.glucose import GlucoseReading, TrendDirection
from dexcom_share.services.dexcom import Dexcom

__version__ = "0.1.0"

__all__ = [
    "Dexcom",
    "DexcomError",
    "DexcomErrorCode",
    "ErrorKind",
    "GlucoseReading",
    "MemorySessionCache",
    "RedisSessionCache",
    "Region",
    "RetryPolicy",
    "SessionCache",
    "TrendDirection",
]
