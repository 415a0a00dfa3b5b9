"""Resilient sync layer for GitHub Projects kanban boards."""

from __future__ import annotations

# Batch compilation
from boardsync.batch import BatchUpdateResult, FieldUpdate, compile_batch_mutation

# Client facade
from boardsync.client import ProjectClient, build_search_query

# Configuration
from boardsync.config import ClientOptions

# Error classification
from boardsync.errors import (
    get_retry_after,
    is_auth_error,
    is_not_found,
    is_rate_limited,
    wrap_error,
)

# Exceptions
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

# Field resolution
from boardsync.fields import resolve_field_value

# Logging configuration
from boardsync.logging_config import setup_logging

# Result types
from boardsync.models import (
    Comment,
    FieldOption,
    FieldValue,
    Issue,
    OwnerKind,
    Project,
    ProjectField,
    ProjectItem,
    ProjectItemsFilter,
    ProjectOwner,
    Repository,
    SearchFilters,
    SubIssue,
)

# Pagination and retry
from boardsync.paginator import Page, paginate
from boardsync.retry import with_retry

# Transport
from boardsync.transport import GraphQLTransport

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "ProjectClient",
    "ClientOptions",
    "GraphQLTransport",
    "setup_logging",
    # Building blocks
    "paginate",
    "Page",
    "with_retry",
    "resolve_field_value",
    "compile_batch_mutation",
    "build_search_query",
    "is_rate_limited",
    "is_not_found",
    "is_auth_error",
    "get_retry_after",
    "wrap_error",
    # Types
    "FieldUpdate",
    "BatchUpdateResult",
    "Project",
    "ProjectOwner",
    "OwnerKind",
    "ProjectField",
    "FieldOption",
    "ProjectItem",
    "ProjectItemsFilter",
    "FieldValue",
    "Issue",
    "SubIssue",
    "Comment",
    "Repository",
    "SearchFilters",
    # Exceptions
    "BoardAPIError",
    "AuthenticationError",
    "ClientNotConfiguredError",
    "NotFoundError",
    "RateLimitError",
    "TransportError",
    "GraphQLError",
    "FieldValueError",
    "UnsupportedFieldTypeError",
    "OperationError",
    "BatchMutationError",
]
