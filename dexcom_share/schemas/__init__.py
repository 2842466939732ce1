# Share response schemas
from dexcom_share.schemas.share import (
    RawGlucoseReading,
    validate_auth_response,
    validate_readings_response,
)

__all__ = [
    "RawGlucoseReading",
    "validate_auth_response",
    "validate_readings_response",
]
