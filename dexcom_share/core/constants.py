"""Dexcom Share protocol constants.

Region tables, endpoint paths, and the trend lookup tables used to
decode readings. These mirror what the official Share apps send; the
API is undocumented so the values are not negotiable.
"""

from enum import StrEnum
from typing import Final


class Region(StrEnum):
    """Dexcom Share region. Selects base URL and application id."""

    US = "us"
    OUS = "ous"  # Outside US
    JP = "jp"


DEXCOM_APPLICATION_ID_US: Final[str] = "d89443d2-327c-4a6f-89e5-496bbb0317db"
DEXCOM_APPLICATION_ID_OUS: Final[str] = DEXCOM_APPLICATION_ID_US
DEXCOM_APPLICATION_ID_JP: Final[str] = "d8665ade-9673-4e27-9ff6-92db4ce13d13"

DEXCOM_APPLICATION_IDS: Final[dict[Region, str]] = {
    Region.US: DEXCOM_APPLICATION_ID_US,
    Region.OUS: DEXCOM_APPLICATION_ID_OUS,
    Region.JP: DEXCOM_APPLICATION_ID_JP,
}

DEXCOM_BASE_URL_US: Final[str] = "https://share2.dexcom.com/ShareWebServices/Services/"
DEXCOM_BASE_URL_OUS: Final[str] = (
    "https://shareous1.dexcom.com/ShareWebServices/Services/"
)
DEXCOM_BASE_URL_JP: Final[str] = "https://share.dexcom.jp/ShareWebServices/Services/"

DEXCOM_BASE_URLS: Final[dict[Region, str]] = {
    Region.US: DEXCOM_BASE_URL_US,
    Region.OUS: DEXCOM_BASE_URL_OUS,
    Region.JP: DEXCOM_BASE_URL_JP,
}

DEXCOM_LOGIN_ID_ENDPOINT: Final[str] = "General/LoginPublisherAccountById"
DEXCOM_AUTHENTICATE_ENDPOINT: Final[str] = "General/AuthenticatePublisherAccount"
DEXCOM_GLUCOSE_READINGS_ENDPOINT: Final[str] = (
    "Publisher/ReadPublisherLatestGlucoseValues"
)

DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept-Encoding": "application/json",
    "Content-Type": "application/json",
}

# The server echoes this back instead of a real id in some failure modes.
DEFAULT_UUID: Final[str] = "00000000-0000-0000-0000-000000000000"

# Session ids live roughly 10 minutes server-side; refresh a little early.
DEFAULT_SESSION_TTL_SECONDS: Final[float] = 8 * 60

DEXCOM_TREND_DIRECTIONS: Final[dict[str, int]] = {
    "None": 0,
    "DoubleUp": 1,
    "SingleUp": 2,
    "FortyFiveUp": 3,
    "Flat": 4,
    "FortyFiveDown": 5,
    "SingleDown": 6,
    "DoubleDown": 7,
    "NotComputable": 8,
    "RateOutOfRange": 9,
}

TREND_DESCRIPTIONS: Final[tuple[str, ...]] = (
    "",
    "rising quickly",
    "rising",
    "rising slightly",
    "steady",
    "falling slightly",
    "falling",
    "falling quickly",
    "unable to determine trend",
    "trend unavailable",
)

TREND_ARROWS: Final[tuple[str, ...]] = (
    "",
    "↑↑",
    "↑",
    "↗",
    "→",
    "↘",
    "↓",
    "↓↓",
    "?",
    "-",
)

# Query bounds accepted by ReadPublisherLatestGlucoseValues.
MAX_MINUTES: Final[int] = 1440  # 24 hours
MAX_MAX_COUNT: Final[int] = 288  # One reading every 5 minutes for 24 hours

# Current reading window (minutes); CGM readings arrive every 5 minutes.
CURRENT_READING_MINUTES: Final[int] = 10

MMOL_L_CONVERSION_FACTOR: Final[float] = 0.0555
