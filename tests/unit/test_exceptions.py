"""
Unit tests for the exception hierarchy and error classification
"""

import sys
from pathlib import Path

# Add parent directory to path to import boardsync module
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from boardsync.errors import (
    get_retry_after,
    is_auth_error,
    is_not_found,
    is_rate_limited,
    wrap_error,
)
from boardsync.exceptions import (
    AuthenticationError,
    BatchMutationError,
    BoardAPIError,
    ClientNotConfiguredError,
    FieldValueError,
    GraphQLError,
    NotFoundError,
    OperationError,
    RateLimitError,
    TransportError,
    UnsupportedFieldTypeError,
)


class TestCustomExceptions:
    """Test custom exception classes"""

    def test_board_api_error_base_exception(self):
        """Should create base BoardAPIError with metadata"""
        error = BoardAPIError("Test error", status_code=400, response_text="Bad request")

        assert str(error) == "Test error"
        assert error.status_code == 400
        assert error.response_text == "Bad request"

    def test_client_not_configured_is_auth_error(self):
        """Missing credential is an authentication failure with a fixed message"""
        error = ClientNotConfiguredError()

        assert isinstance(error, AuthenticationError)
        assert "no GitHub token found" in str(error)

    def test_transport_error_keeps_retry_after_verbatim(self):
        error = TransportError("HTTP 429: slow down", status_code=429, retry_after="60")

        assert error.retry_after_seconds() == "60"
        assert TransportError("boom").retry_after_seconds() == ""

    def test_graphql_error_joins_messages(self):
        """Should join all error messages and expose their types"""
        error = GraphQLError(
            [
                {"type": "NOT_FOUND", "message": "Could not resolve to a User"},
                {"message": "Something else"},
            ]
        )

        assert str(error) == "Could not resolve to a User; Something else"
        assert error.error_types == ["NOT_FOUND"]

    def test_graphql_error_without_messages(self):
        assert str(GraphQLError([])) == "unknown error"

    def test_unsupported_field_type_is_field_value_error(self):
        error = UnsupportedFieldTypeError("unsupported field type: ITERATION")

        assert isinstance(error, FieldValueError)
        assert isinstance(error, BoardAPIError)

    def test_batch_mutation_error_defaults(self):
        error = BatchMutationError("batch mutation failed: HTTP 502")

        assert error.results == []
        assert error.unattributed == []
        assert error.unsent == []


class TestIsRateLimited:
    """Test rate-limit detection"""

    def test_none_is_not_rate_limited(self):
        assert is_rate_limited(None) is False

    def test_rate_limit_error_instance(self):
        assert is_rate_limited(RateLimitError("limited")) is True

    def test_http_429_always_rate_limited(self):
        """Any 429 is a rate limit regardless of wording"""
        error = TransportError("HTTP 429: Too Many Requests", status_code=429)

        assert is_rate_limited(error) is True

    def test_http_403_secondary_rate_limit(self):
        error = TransportError(
            "HTTP 403: You have exceeded a secondary rate limit", status_code=403
        )

        assert is_rate_limited(error) is True

    def test_http_403_permission_denied_is_not_rate_limited(self):
        """A plain 403 is a permission problem and must never be retried"""
        error = TransportError("HTTP 403: Resource not accessible by integration", status_code=403)

        assert is_rate_limited(error) is False

    def test_graphql_rate_limited_type(self):
        error = GraphQLError([{"type": "RATE_LIMITED", "message": "API limit exceeded"}])

        assert is_rate_limited(error) is True

    def test_message_fallback(self):
        assert is_rate_limited(Exception("API rate limit exceeded for user")) is True
        assert is_rate_limited(Exception("RATE_LIMITED")) is True
        assert is_rate_limited(Exception("connection reset")) is False

    def test_status_found_through_cause_chain(self):
        """Should see the HTTP status of an underlying cause"""
        cause = TransportError("HTTP 429: slow down", status_code=429)
        try:
            raise RuntimeError("outer") from cause
        except RuntimeError as e:
            assert is_rate_limited(e) is True


class TestIsNotFound:
    """Test not-found detection"""

    def test_none(self):
        assert is_not_found(None) is False

    def test_not_found_error_instance(self):
        assert is_not_found(NotFoundError("gone")) is True

    def test_graphql_not_found_type(self):
        error = GraphQLError(
            [{"type": "NOT_FOUND", "message": "Could not resolve to a User with the login of 'x'."}]
        )

        assert is_not_found(error) is True

    def test_message_patterns(self):
        assert is_not_found(Exception("Could not resolve to a ProjectV2 with the number 9.")) is True
        assert is_not_found(Exception("NOT_FOUND")) is True
        assert is_not_found(Exception("internal error")) is False


class TestIsAuthError:
    """Test authentication failure detection"""

    def test_none(self):
        assert is_auth_error(None) is False

    def test_http_401(self):
        error = TransportError("HTTP 401: Bad credentials", status_code=401)

        assert is_auth_error(error) is True

    def test_missing_token(self):
        assert is_auth_error(ClientNotConfiguredError()) is True

    def test_message_patterns(self):
        assert is_auth_error(Exception("authentication required")) is True
        assert is_auth_error(Exception("user is not authenticated")) is True
        assert is_auth_error(Exception("HTTP 500: server error")) is False


class TestGetRetryAfter:
    """Test Retry-After hint extraction"""

    def test_header_value_parsed(self):
        error = TransportError("HTTP 429", status_code=429, retry_after="30")

        assert get_retry_after(error) == 30

    @pytest.mark.parametrize("raw", ["abc", "-5", "0", "", None])
    def test_invalid_or_missing_hint_is_zero(self, raw):
        error = TransportError("HTTP 429", status_code=429, retry_after=raw)

        assert get_retry_after(error) == 0

    def test_rate_limit_error_attribute(self):
        assert get_retry_after(RateLimitError("limited", retry_after=12)) == 12

    def test_none(self):
        assert get_retry_after(None) == 0

    def test_plain_exception_has_no_hint(self):
        assert get_retry_after(Exception("boom")) == 0


class TestWrapError:
    """Test contextual error wrapping"""

    def test_none_stays_none(self):
        assert wrap_error("failed to get project", "octo/1", None) is None

    def test_rate_limit_wrapped_keeps_kind_and_hint(self):
        """Wrapped rate-limit errors are still RateLimitError and carry the hint"""
        cause = TransportError("HTTP 429: slow down", status_code=429, retry_after="7")

        wrapped = wrap_error("failed to get project", "octo/1", cause)

        assert isinstance(wrapped, RateLimitError)
        assert isinstance(wrapped, OperationError)
        assert wrapped.retry_after == 7
        assert wrapped.status_code == 429
        assert wrapped.__cause__ is cause
        assert str(wrapped) == "failed to get project octo/1: HTTP 429: slow down"
        assert is_rate_limited(wrapped) is True
        assert get_retry_after(wrapped) == 7

    def test_not_found_wrapped(self):
        cause = GraphQLError([{"type": "NOT_FOUND", "message": "Could not resolve to an Issue"}])

        wrapped = wrap_error("failed to get issue", "octo/app#9", cause)

        assert isinstance(wrapped, NotFoundError)
        assert wrapped.operation == "failed to get issue"
        assert wrapped.resource == "octo/app#9"
        assert is_not_found(wrapped) is True

    def test_auth_wrapped(self):
        cause = TransportError("HTTP 401: Bad credentials", status_code=401)

        wrapped = wrap_error("failed to list projects", "octo", cause)

        assert isinstance(wrapped, AuthenticationError)
        assert is_auth_error(wrapped) is True

    def test_other_errors_wrapped_plainly(self):
        cause = TransportError("HTTP 500: boom", status_code=500)

        wrapped = wrap_error("failed to close issue", "I_1", cause)

        assert type(wrapped) is OperationError
        assert not isinstance(wrapped, (RateLimitError, NotFoundError, AuthenticationError))

    def test_permission_denied_is_not_wrapped_as_rate_limit(self):
        cause = TransportError("HTTP 403: Resource not accessible by integration", status_code=403)

        wrapped = wrap_error("failed to set field value", "PVTI_1/Status", cause)

        assert not isinstance(wrapped, RateLimitError)
        assert is_rate_limited(wrapped) is False

    def test_wrapped_error_is_never_none_for_real_errors(self):
        wrapped = wrap_error("failed to get issue", "octo/app#1", Exception("boom"))

        assert isinstance(wrapped, OperationError)
        assert str(wrapped) == "failed to get issue octo/app#1: boom"
