"""Custom exception classes for boardsync.

This module defines the exception hierarchy shared by the transport, the
error classifier, the field resolver and the batch orchestration.
"""

from __future__ import annotations

from typing import Any


class BoardAPIError(Exception):
    """Base exception for project board API errors"""

    def __init__(
        self, message: str, status_code: int | None = None, response_text: str | None = None
    ):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class AuthenticationError(BoardAPIError):
    """Raised when the credential is missing, invalid or expired (401)"""

    pass


class NotFoundError(BoardAPIError):
    """Raised when the server could not resolve a board, issue or item"""

    pass


class RateLimitError(BoardAPIError):
    """Raised when the server throttled the request (429, or 403 secondary limit)

    Attributes:
        retry_after: Server-provided Retry-After hint in seconds (0 = no hint)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
        retry_after: int = 0,
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code, response_text=response_text)


class ClientNotConfiguredError(AuthenticationError):
    """Raised when an operation is attempted without a credential"""

    def __init__(self, message: str = "GraphQL client not initialized - no GitHub token found"):
        super().__init__(message)


class TransportError(BoardAPIError):
    """Raised when the HTTP exchange itself failed.

    Covers non-2xx responses, network failures and undecodable bodies. The
    Retry-After header, when the server sent one, is kept verbatim so the
    classifier can decide how to parse it.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_text: str | None = None,
        retry_after: str | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, status_code=status_code, response_text=response_text)

    def retry_after_seconds(self) -> str:
        """Return the raw Retry-After header value, or an empty string"""
        return self.retry_after or ""


class GraphQLError(BoardAPIError):
    """Raised when the response envelope carried protocol-level errors

    Attributes:
        errors: The error objects from the response envelope
        data: Whatever partial data the server returned alongside the errors
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        data: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        self.errors = errors
        self.data = data
        messages = [str(e.get("message", "unknown error")) for e in errors] or ["unknown error"]
        super().__init__("; ".join(messages), status_code=status_code)

    @property
    def error_types(self) -> list[str]:
        return [str(e.get("type", "")) for e in self.errors if e.get("type")]


class FieldValueError(BoardAPIError):
    """Raised when a value cannot be coerced into a board field's type.

    Used for unknown fields, unknown single-select options, non-numeric
    NUMBER values and malformed DATE values. Retrying can never fix these.
    """

    pass


class UnsupportedFieldTypeError(FieldValueError):
    """Raised when a field's data type has no supported value representation"""

    pass


class OperationError(BoardAPIError):
    """A failure annotated with the operation and resource that was targeted.

    The underlying exception is kept as ``cause`` and chained as
    ``__cause__`` by :func:`boardsync.errors.wrap_error`.
    """

    def __init__(self, operation: str, resource: str, cause: BaseException):
        self.operation = operation
        self.resource = resource
        self.cause = cause
        status_code = getattr(cause, "status_code", None)
        response_text = getattr(cause, "response_text", None)
        super().__init__(
            f"{operation} {resource}: {cause}",
            status_code=status_code,
            response_text=response_text,
        )


class RateLimitedOperationError(OperationError, RateLimitError):
    """Contextualized rate-limit failure; still an instance of RateLimitError"""

    def __init__(self, operation: str, resource: str, cause: BaseException, retry_after: int = 0):
        OperationError.__init__(self, operation, resource, cause)
        self.retry_after = retry_after


class NotFoundOperationError(OperationError, NotFoundError):
    """Contextualized not-found failure; still an instance of NotFoundError"""

    pass


class AuthOperationError(OperationError, AuthenticationError):
    """Contextualized authentication failure; still an instance of AuthenticationError"""

    pass


class BatchMutationError(BoardAPIError):
    """Raised when a compiled batch request failed as a whole.

    The server may or may not have applied some of the aliased operations
    before failing; nothing in the response says which. The updates of the
    failed request are therefore reported as ``unattributed`` rather than as
    individual failures.

    Attributes:
        results: Per-update results known before the failure (resolution
                 failures and any earlier requests that completed)
        unattributed: Updates of the failed request, whose outcome is unknown
        unsent: Updates in later requests that were never sent

    Example:
        >>> try:
        ...     client.batch_update_project_item_fields(project_id, updates, fields)
        ... except BatchMutationError as e:
        ...     print(f"{len(e.unattributed)} updates in unknown state: {e}")
    """

    def __init__(
        self,
        message: str,
        results: list[Any] | None = None,
        unattributed: list[Any] | None = None,
        unsent: list[Any] | None = None,
        status_code: int | None = None,
    ):
        self.results = results or []
        self.unattributed = unattributed or []
        self.unsent = unsent or []
        super().__init__(message, status_code=status_code)
