"""Pydantic schemas for Dexcom Share responses.

Share returns bare JSON strings from the authentication endpoints and an
array of PascalCase records from the readings endpoint. These schemas are
the boundary between raw JSON and typed values; anything that does not
fit raises ``DexcomError`` instead of leaking ``pydantic.ValidationError``.
"""

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from dexcom_share.core.constants import DEXCOM_TREND_DIRECTIONS
from dexcom_share.core.errors import DexcomError, DexcomErrorCode

# "Date(1691455258000-0400)": epoch milliseconds plus the UTC offset
DEXCOM_DATE_PATTERN = r"^Date\(\d{13}[+-]\d{4}\)$"


class RawGlucoseReading(BaseModel):
    """One record from ReadPublisherLatestGlucoseValues."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    wall_time: str | None = Field(None, alias="WT", description="Display (wall) time")
    system_time: str | None = Field(None, alias="ST", description="System time")
    display_time: str = Field(
        ...,
        alias="DT",
        pattern=DEXCOM_DATE_PATTERN,
        description="Reading time with UTC offset",
    )
    value: int = Field(..., alias="Value", description="Glucose value in mg/dL")
    trend: str = Field(..., alias="Trend", description="Share trend name, e.g. 'Flat'")

    @field_validator("trend")
    @classmethod
    def _known_trend(cls, v: str) -> str:
        if v not in DEXCOM_TREND_DIRECTIONS:
            raise ValueError(f"Unknown trend: {v!r}")
        return v


_auth_id_adapter = TypeAdapter(Annotated[str, Strict()])
_readings_adapter = TypeAdapter(list[RawGlucoseReading])


def validate_auth_response(data: Any) -> str:
    """Validate an authentication response body (a bare JSON string).

    UUID format is checked by the caller so it can report which id was
    malformed.
    """
    try:
        return _auth_id_adapter.validate_python(data)
    except ValidationError as e:
        raise DexcomError(DexcomErrorCode.SERVER_UNEXPECTED) from e


def validate_readings_response(data: Any) -> list[RawGlucoseReading]:
    """Validate the readings endpoint body into typed records."""
    if not isinstance(data, list):
        raise DexcomError(DexcomErrorCode.SERVER_UNEXPECTED)
    try:
        return _readings_adapter.validate_python(data)
    except ValidationError as e:
        raise DexcomError(DexcomErrorCode.GLUCOSE_READING_INVALID) from e
