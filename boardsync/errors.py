"""Classification of transport and protocol failures.

Every failure coming back from the transport is bucketed into one of
NotFound, RateLimited, AuthError or Other before any business logic sees it.
Detection prefers typed information (exception class, HTTP status) and falls
back to message patterns, because GraphQL errors arrive with an HTTP 200 and
only their wording tells them apart.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import overload

from boardsync.exceptions import (
    AuthenticationError,
    AuthOperationError,
    GraphQLError,
    NotFoundError,
    NotFoundOperationError,
    OperationError,
    RateLimitedOperationError,
    RateLimitError,
)


def _error_chain(err: BaseException) -> Iterator[BaseException]:
    """Yield err followed by its causes, guarding against cycles."""
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _http_status(err: BaseException) -> int | None:
    for e in _error_chain(err):
        code = getattr(e, "status_code", None)
        if isinstance(code, int) and code > 0:
            return code
        response = getattr(e, "response", None)
        code = getattr(response, "status_code", None)
        if isinstance(code, int) and code > 0:
            return code
    return None


def _graphql_error_types(err: BaseException) -> list[str]:
    types: list[str] = []
    for e in _error_chain(err):
        if isinstance(e, GraphQLError):
            types.extend(e.error_types)
    return types


def is_rate_limited(err: BaseException | None) -> bool:
    """Check if an error indicates rate limiting.

    Detects rate limits via:
      - RateLimitError (including contextualized wrappers)
      - HTTP 429 (any 429 is a rate limit)
      - HTTP 403 whose message mentions rate limiting (secondary rate limits)
      - GraphQL error type RATE_LIMITED
      - Error message containing "rate limit" or "RATE_LIMITED"

    A 403 without rate-limit wording is an ordinary permission error and is
    NOT rate limited, so it is never retried.
    """
    if err is None:
        return False
    if isinstance(err, RateLimitError):
        return True

    status = _http_status(err)
    if status == 429:
        return True
    if status == 403:
        msg = str(err).lower()
        return "rate limit" in msg or "rate_limited" in msg

    if "RATE_LIMITED" in _graphql_error_types(err):
        return True

    msg = str(err)
    return "rate limit" in msg or "RATE_LIMITED" in msg


def is_not_found(err: BaseException | None) -> bool:
    """Check if an error indicates the server could not resolve an entity"""
    if err is None:
        return False
    if isinstance(err, NotFoundError):
        return True
    if "NOT_FOUND" in _graphql_error_types(err):
        return True
    msg = str(err)
    return "Could not resolve" in msg or "NOT_FOUND" in msg


def is_auth_error(err: BaseException | None) -> bool:
    """Check if an error indicates a missing or invalid credential"""
    if err is None:
        return False
    if isinstance(err, AuthenticationError):
        return True
    if _http_status(err) == 401:
        return True
    msg = str(err)
    return "401" in msg or "authentication" in msg or "not authenticated" in msg


def get_retry_after(err: BaseException | None) -> int:
    """Extract a Retry-After hint in whole seconds.

    Returns 0 when no hint is present or the value is malformed.
    """
    if err is None:
        return 0
    for e in _error_chain(err):
        accessor = getattr(e, "retry_after_seconds", None)
        raw = accessor() if callable(accessor) else getattr(e, "retry_after", None)
        if raw in (None, ""):
            continue
        try:
            seconds = int(raw)
        except (TypeError, ValueError):
            continue
        if seconds > 0:
            return seconds
    return 0


@overload
def wrap_error(operation: str, resource: str, err: None) -> None: ...


@overload
def wrap_error(operation: str, resource: str, err: BaseException) -> OperationError: ...


def wrap_error(operation: str, resource: str, err: BaseException | None) -> OperationError | None:
    """Wrap an API error with operation context.

    The wrapper is an instance of the canonical kind (RateLimitError,
    NotFoundError, AuthenticationError) whatever the upstream wording was,
    and chains the original as ``__cause__``.

    Args:
        operation: What was being attempted (e.g. "failed to get project")
        resource: The target (e.g. "octocat/1")
        err: The original failure

    Returns:
        The contextualized error, or None when err is None
    """
    if err is None:
        return None

    wrapped: OperationError
    if is_rate_limited(err):
        wrapped = RateLimitedOperationError(
            operation, resource, err, retry_after=get_retry_after(err)
        )
    elif is_not_found(err):
        wrapped = NotFoundOperationError(operation, resource, err)
    elif is_auth_error(err):
        wrapped = AuthOperationError(operation, resource, err)
    else:
        wrapped = OperationError(operation, resource, err)
    wrapped.__cause__ = err
    return wrapped
