"""Glucose reading model.

Decodes a Share reading record into mg/dL and mmol/L values, a trend
(code, name, description, arrow) and a timezone-aware timestamp.
"""

import enum
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from dexcom_share.core.constants import (
    DEXCOM_TREND_DIRECTIONS,
    MMOL_L_CONVERSION_FACTOR,
    TREND_ARROWS,
    TREND_DESCRIPTIONS,
)
from dexcom_share.core.errors import DexcomError, DexcomErrorCode
from dexcom_share.schemas.share import RawGlucoseReading


class TrendDirection(str, enum.Enum):
    """Glucose trend direction from CGM."""

    NONE = "none"  # No trend reported
    DOUBLE_UP = "double_up"  # Rising fast (>3 mg/dL/min)
    SINGLE_UP = "single_up"  # Rising (2-3 mg/dL/min)
    FORTY_FIVE_UP = "forty_five_up"  # Rising slowly (1-2 mg/dL/min)
    FLAT = "flat"  # Stable (-1 to +1 mg/dL/min)
    FORTY_FIVE_DOWN = "forty_five_down"  # Falling slowly
    SINGLE_DOWN = "single_down"  # Falling
    DOUBLE_DOWN = "double_down"  # Falling fast (<-3 mg/dL/min)
    NOT_COMPUTABLE = "not_computable"  # Unable to determine
    RATE_OUT_OF_RANGE = "rate_out_of_range"  # Rate outside normal range


# Map Share trend names to our enum
DEXCOM_TREND_MAP: dict[str, TrendDirection] = {
    "None": TrendDirection.NONE,
    "DoubleUp": TrendDirection.DOUBLE_UP,
    "SingleUp": TrendDirection.SINGLE_UP,
    "FortyFiveUp": TrendDirection.FORTY_FIVE_UP,
    "Flat": TrendDirection.FLAT,
    "FortyFiveDown": TrendDirection.FORTY_FIVE_DOWN,
    "SingleDown": TrendDirection.SINGLE_DOWN,
    "DoubleDown": TrendDirection.DOUBLE_DOWN,
    "NotComputable": TrendDirection.NOT_COMPUTABLE,
    "RateOutOfRange": TrendDirection.RATE_OUT_OF_RANGE,
}

_DT_RE = re.compile(r"Date\((?P<timestamp>\d+)(?P<timezone>[+-]\d{4})\)")


def parse_dexcom_date(value: str) -> tuple[datetime, str]:
    """Parse ``Date(1691455258000-0400)`` into an aware datetime and offset.

    The returned datetime is expressed in the reading's own UTC offset.

    Raises:
        ValueError: If the string is not in Share date format
    """
    match = _DT_RE.fullmatch(value)
    if match is None:
        raise ValueError(f"Not a Share date: {value!r}")

    offset = match.group("timezone")
    sign = -1 if offset[0] == "-" else 1
    tz = timezone(
        sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    )
    timestamp_ms = int(match.group("timestamp"))
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz), offset


class GlucoseReading:
    """A decoded Share glucose reading.

    Args:
        record: Raw JSON record (dict) or an already validated
            ``RawGlucoseReading``
        raw: Validated form of ``record`` when the caller already has it;
            ``json`` still returns ``record`` untouched

    Raises:
        DexcomError: GLUCOSE_READING_INVALID if the record cannot be decoded
    """

    def __init__(
        self,
        record: Mapping[str, Any] | RawGlucoseReading,
        raw: RawGlucoseReading | None = None,
    ):
        try:
            if isinstance(record, RawGlucoseReading):
                raw = record
                self._json = record.model_dump(by_alias=True, exclude_none=True)
            else:
                if raw is None:
                    raw = RawGlucoseReading.model_validate(record)
                self._json = dict(record)
            self._datetime, self._timezone = parse_dexcom_date(raw.display_time)
        except (ValidationError, ValueError, TypeError, OverflowError) as e:
            raise DexcomError(DexcomErrorCode.GLUCOSE_READING_INVALID) from e

        self._value = raw.value
        self._trend_direction = raw.trend
        self._trend = DEXCOM_TREND_DIRECTIONS[raw.trend]

    @property
    def value(self) -> int:
        """Blood glucose value in mg/dL."""
        return self._value

    @property
    def mg_dl(self) -> int:
        return self._value

    @property
    def mmol_l(self) -> float:
        """Blood glucose value in mmol/L, one decimal place."""
        return round(self._value * MMOL_L_CONVERSION_FACTOR, 1)

    @property
    def trend(self) -> int:
        """Trend code, 0-9."""
        return self._trend

    @property
    def trend_direction(self) -> str:
        """Share trend name, e.g. ``Flat``."""
        return self._trend_direction

    @property
    def direction(self) -> TrendDirection:
        return DEXCOM_TREND_MAP[self._trend_direction]

    @property
    def trend_description(self) -> str:
        return TREND_DESCRIPTIONS[self._trend]

    @property
    def trend_arrow(self) -> str:
        return TREND_ARROWS[self._trend]

    @property
    def datetime(self) -> datetime:
        """Reading time, aware, in the reading's UTC offset."""
        return self._datetime

    @property
    def timezone(self) -> str:
        """UTC offset reported with the reading, e.g. ``-0400``."""
        return self._timezone

    @property
    def json(self) -> dict[str, Any]:
        """The raw Share record."""
        return self._json

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return (
            f"GlucoseReading(value={self._value}, trend={self._trend_direction!r}, "
            f"datetime={self._datetime.isoformat()})"
        )
