"""Dexcom Share error taxonomy.

Every failure the client raises on purpose is a ``DexcomError`` tagged
with an ``ErrorKind`` and a reason ``DexcomErrorCode``. Callers branch
on ``err.kind`` (or ``err.code`` for a specific reason) instead of
catching subclasses:

    try:
        reading = await dexcom.get_current_glucose_reading()
    except DexcomError as err:
        if err.kind is ErrorKind.ACCOUNT:
            ...

Network failures are not part of the taxonomy; they surface as the
underlying ``httpx`` exceptions once transport retries are exhausted.
"""

from enum import StrEnum, auto


class ErrorKind(StrEnum):
    """Top-level error category."""

    ACCOUNT = auto()
    SESSION = auto()
    ARGUMENT = auto()
    SERVER = auto()


class DexcomErrorCode(StrEnum):
    """Specific failure reason. The value is the user-facing message."""

    ACCOUNT_FAILED_AUTHENTICATION = "Failed to authenticate"
    ACCOUNT_MAX_ATTEMPTS = "Maximum authentication attempts exceeded"

    SESSION_NOT_FOUND = "Session ID not found"
    SESSION_INVALID = "Session not active or timed out"

    MINUTES_INVALID = "Minutes must be and integer between 1 and 1440"
    MAX_COUNT_INVALID = "Max count must be and integer between 1 and 288"
    USERNAME_INVALID = "Username must be non-empty string"
    USER_ID_MULTIPLE = "Only one of account_id, username should be provided"
    USER_ID_REQUIRED = "At least one of account_id, username should be provided"
    PASSWORD_INVALID = "Password must be non-empty string"
    REGION_INVALID = "Region must be 'us', 'ous, or 'jp'"
    ACCOUNT_ID_INVALID = "Account ID must be UUID"
    ACCOUNT_ID_DEFAULT = "Account ID default"
    SESSION_ID_INVALID = "Session ID must be UUID"
    SESSION_ID_DEFAULT = "Session ID default"
    GLUCOSE_READING_INVALID = "JSON glucose reading incorrectly formatted"

    SERVER_INVALID_JSON = "Invalid or malformed JSON in server response"
    SERVER_UNKNOWN_CODE = "Unknown error code in server response"
    SERVER_UNEXPECTED = "Unexpected server response"

    @property
    def kind(self) -> ErrorKind:
        return _KIND_BY_CODE[self]


_KIND_BY_CODE: dict[DexcomErrorCode, ErrorKind] = {
    DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION: ErrorKind.ACCOUNT,
    DexcomErrorCode.ACCOUNT_MAX_ATTEMPTS: ErrorKind.ACCOUNT,
    DexcomErrorCode.SESSION_NOT_FOUND: ErrorKind.SESSION,
    DexcomErrorCode.SESSION_INVALID: ErrorKind.SESSION,
    DexcomErrorCode.MINUTES_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.MAX_COUNT_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.USERNAME_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.USER_ID_MULTIPLE: ErrorKind.ARGUMENT,
    DexcomErrorCode.USER_ID_REQUIRED: ErrorKind.ARGUMENT,
    DexcomErrorCode.PASSWORD_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.REGION_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.ACCOUNT_ID_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.ACCOUNT_ID_DEFAULT: ErrorKind.ARGUMENT,
    DexcomErrorCode.SESSION_ID_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.SESSION_ID_DEFAULT: ErrorKind.ARGUMENT,
    DexcomErrorCode.GLUCOSE_READING_INVALID: ErrorKind.ARGUMENT,
    DexcomErrorCode.SERVER_INVALID_JSON: ErrorKind.SERVER,
    DexcomErrorCode.SERVER_UNKNOWN_CODE: ErrorKind.SERVER,
    DexcomErrorCode.SERVER_UNEXPECTED: ErrorKind.SERVER,
}


class DexcomError(Exception):
    """Error raised by the Dexcom Share client.

    Attributes:
        code: Specific failure reason
        kind: Category derived from ``code``
    """

    def __init__(self, code: DexcomErrorCode):
        super().__init__(code.value)
        self.code = code

    @property
    def kind(self) -> ErrorKind:
        return self.code.kind

    @property
    def is_session_error(self) -> bool:
        """True for errors that a fresh session may resolve."""
        return self.kind is ErrorKind.SESSION

    def __repr__(self) -> str:
        return f"DexcomError(kind={self.kind.value!r}, code={self.code.name})"
