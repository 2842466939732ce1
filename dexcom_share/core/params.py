"""Request parameter and identifier helpers for Share requests."""

import json
import re
from typing import Any

from dexcom_share.core.constants import DEFAULT_UUID, MAX_MAX_COUNT, MAX_MINUTES
from dexcom_share.core.errors import DexcomError, DexcomErrorCode

_UUID_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def is_valid_uuid(value: Any) -> bool:
    """Format check only: 8-4-4-4-12 hex digits."""
    return isinstance(value, str) and _UUID_RE.fullmatch(value) is not None


def is_default_uuid(value: Any) -> bool:
    """True for the all-zero sentinel UUID."""
    return value == DEFAULT_UUID


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str | int | float):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def encode_query_params(params: dict[str, Any] | None) -> dict[str, str]:
    """Flatten request parameters into query-string values.

    Primitives are stringified, lists and dicts are JSON-encoded, and
    ``None`` values are dropped. URL escaping is left to httpx.
    """
    if not params:
        return {}
    return {
        key: _encode_value(value) for key, value in params.items() if value is not None
    }


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_minutes_and_count(
    minutes: Any,
    max_count: Any,
    max_minutes: int = MAX_MINUTES,
    max_max_count: int = MAX_MAX_COUNT,
) -> None:
    """Check the readings window before any request is made.

    Raises:
        DexcomError: MINUTES_INVALID or MAX_COUNT_INVALID
    """
    if not _is_int(minutes) or not 1 <= minutes <= max_minutes:
        raise DexcomError(DexcomErrorCode.MINUTES_INVALID)
    if not _is_int(max_count) or not 1 <= max_count <= max_max_count:
        raise DexcomError(DexcomErrorCode.MAX_COUNT_INVALID)
