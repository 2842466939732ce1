"""Map Dexcom Share error payloads onto the error taxonomy.

Share reports failures as ``{"Code": ..., "Message": ...}`` objects with
a non-2xx status. The codes form a small, informally documented
vocabulary; message text for the same code varies, so some entries match
on substrings of ``Message``. Keep this table exactly in sync with what
the service sends - do not broaden the substring rules without seeing the
new wording in a real response.
"""

from typing import Any

from dexcom_share.core.errors import DexcomError, DexcomErrorCode

_SESSION_CODES: dict[str, DexcomErrorCode] = {
    "SessionIdNotFound": DexcomErrorCode.SESSION_NOT_FOUND,
    "SessionNotValid": DexcomErrorCode.SESSION_INVALID,
}

_ACCOUNT_CODES: dict[str, DexcomErrorCode] = {
    "AccountPasswordInvalid": DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION,
    "SSO_AuthenticateMaxAttemptsExceeded": DexcomErrorCode.ACCOUNT_MAX_ATTEMPTS,
}

_SSO_AUTH_FAILURE_MESSAGES = (
    "Cannot Authenticate by AccountName",
    "Cannot Authenticate by AccountId",
)

# Ordered: first substring hit wins
_INVALID_ARGUMENT_MESSAGES: tuple[tuple[str, DexcomErrorCode], ...] = (
    ("accountName", DexcomErrorCode.USERNAME_INVALID),
    ("password", DexcomErrorCode.PASSWORD_INVALID),
    ("UUID", DexcomErrorCode.ACCOUNT_ID_INVALID),
)


def _string_field(body: dict, key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


def classify_error(body: Any) -> DexcomError:
    """Turn a parsed error response body into a ``DexcomError``.

    Args:
        body: Decoded JSON from a non-2xx response (any shape)

    Returns:
        The matching DexcomError (returned, not raised)
    """
    code: str | None = None
    message: str | None = None
    if isinstance(body, dict):
        code = _string_field(body, "Code")
        message = _string_field(body, "Message")

    if code in _SESSION_CODES:
        return DexcomError(_SESSION_CODES[code])
    if code in _ACCOUNT_CODES:
        return DexcomError(_ACCOUNT_CODES[code])
    if code == "SSO_InternalError" and message:
        if any(fragment in message for fragment in _SSO_AUTH_FAILURE_MESSAGES):
            return DexcomError(DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION)
    if code == "InvalidArgument" and message:
        for fragment, error_code in _INVALID_ARGUMENT_MESSAGES:
            if fragment in message:
                return DexcomError(error_code)

    if code and message:
        return DexcomError(DexcomErrorCode.SERVER_UNKNOWN_CODE)
    return DexcomError(DexcomErrorCode.SERVER_UNEXPECTED)
