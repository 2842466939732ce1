"""Tests for Share error classification and the error taxonomy."""

import pytest

from dexcom_share.core.classifier import classify_error
from dexcom_share.core.errors import DexcomError, DexcomErrorCode, ErrorKind


class TestClassifyError:
    """Tests for mapping Share error bodies onto error codes."""

    @pytest.mark.parametrize(
        ("code", "message", "expected"),
        [
            ("SessionIdNotFound", "whatever", DexcomErrorCode.SESSION_NOT_FOUND),
            ("SessionNotValid", "whatever", DexcomErrorCode.SESSION_INVALID),
            (
                "AccountPasswordInvalid",
                "whatever",
                DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION,
            ),
            (
                "SSO_AuthenticateMaxAttemptsExceeded",
                "whatever",
                DexcomErrorCode.ACCOUNT_MAX_ATTEMPTS,
            ),
            (
                "SSO_InternalError",
                "Cannot Authenticate by AccountName 'bob'",
                DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION,
            ),
            (
                "SSO_InternalError",
                "Cannot Authenticate by AccountId",
                DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION,
            ),
            (
                "InvalidArgument",
                "Invalid accountName value",
                DexcomErrorCode.USERNAME_INVALID,
            ),
            (
                "InvalidArgument",
                "password is required",
                DexcomErrorCode.PASSWORD_INVALID,
            ),
            (
                "InvalidArgument",
                "Not a valid UUID",
                DexcomErrorCode.ACCOUNT_ID_INVALID,
            ),
        ],
    )
    def test_known_codes(self, code, message, expected):
        """Test each known code/message combination."""
        error = classify_error({"Code": code, "Message": message})

        assert isinstance(error, DexcomError)
        assert error.code is expected

    def test_session_codes_ignore_message(self):
        """Test session codes classify without a message."""
        error = classify_error({"Code": "SessionIdNotFound"})
        assert error.code is DexcomErrorCode.SESSION_NOT_FOUND

    def test_invalid_argument_first_match_wins(self):
        """Test accountName is checked before password."""
        error = classify_error(
            {"Code": "InvalidArgument", "Message": "accountName and password empty"}
        )
        assert error.code is DexcomErrorCode.USERNAME_INVALID

    def test_matching_is_case_sensitive(self):
        """Test substring rules match the exact wording only."""
        error = classify_error({"Code": "InvalidArgument", "Message": "bad uuid"})
        assert error.code is DexcomErrorCode.SERVER_UNKNOWN_CODE

    def test_sso_internal_error_other_message(self):
        """Test unrelated SSO_InternalError messages are unknown codes."""
        error = classify_error(
            {"Code": "SSO_InternalError", "Message": "Database unavailable"}
        )
        assert error.code is DexcomErrorCode.SERVER_UNKNOWN_CODE

    def test_unknown_code_with_message(self):
        """Test any other code with a message is an unknown server code."""
        error = classify_error({"Code": "SomethingNew", "Message": "Surprise"})
        assert error.code is DexcomErrorCode.SERVER_UNKNOWN_CODE
        assert error.kind is ErrorKind.SERVER

    def test_unknown_code_without_message(self):
        """Test a bare unknown code is unexpected."""
        error = classify_error({"Code": "SomethingNew"})
        assert error.code is DexcomErrorCode.SERVER_UNEXPECTED

    @pytest.mark.parametrize(
        "body",
        [None, "", "plain text", [], 42, {}, {"Code": 1, "Message": 2}],
    )
    def test_unrecognizable_bodies(self, body):
        """Test bodies without a usable Code are unexpected."""
        assert classify_error(body).code is DexcomErrorCode.SERVER_UNEXPECTED

    def test_returns_rather_than_raises(self):
        """Test the classifier never raises itself."""
        result = classify_error({"Code": "SessionNotValid"})
        assert isinstance(result, DexcomError)


class TestDexcomError:
    """Tests for the tagged error type."""

    def test_message_is_code_value(self):
        error = DexcomError(DexcomErrorCode.PASSWORD_INVALID)
        assert str(error) == "Password must be non-empty string"

    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            (DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION, ErrorKind.ACCOUNT),
            (DexcomErrorCode.ACCOUNT_MAX_ATTEMPTS, ErrorKind.ACCOUNT),
            (DexcomErrorCode.SESSION_NOT_FOUND, ErrorKind.SESSION),
            (DexcomErrorCode.SESSION_INVALID, ErrorKind.SESSION),
            (DexcomErrorCode.MINUTES_INVALID, ErrorKind.ARGUMENT),
            (DexcomErrorCode.SESSION_ID_DEFAULT, ErrorKind.ARGUMENT),
            (DexcomErrorCode.GLUCOSE_READING_INVALID, ErrorKind.ARGUMENT),
            (DexcomErrorCode.SERVER_INVALID_JSON, ErrorKind.SERVER),
            (DexcomErrorCode.SERVER_UNKNOWN_CODE, ErrorKind.SERVER),
            (DexcomErrorCode.SERVER_UNEXPECTED, ErrorKind.SERVER),
        ],
    )
    def test_kind_derived_from_code(self, code, kind):
        assert DexcomError(code).kind is kind

    def test_every_code_has_a_kind(self):
        for code in DexcomErrorCode:
            assert isinstance(code.kind, ErrorKind)

    def test_is_session_error(self):
        assert DexcomError(DexcomErrorCode.SESSION_INVALID).is_session_error
        assert not DexcomError(
            DexcomErrorCode.ACCOUNT_FAILED_AUTHENTICATION
        ).is_session_error

    def test_repr(self):
        error = DexcomError(DexcomErrorCode.SESSION_NOT_FOUND)
        assert repr(error) == "DexcomError(kind='session', code=SESSION_NOT_FOUND)"
