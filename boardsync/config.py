"""Client configuration loaded from keyword arguments or the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from boardsync.retry import DEFAULT_RETRY_DELAYS

logger = logging.getLogger(__name__)

DEFAULT_HOST = "github.com"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3

# GraphQL feature previews
FEATURE_SUB_ISSUES = "sub_issues"
FEATURE_ISSUE_TYPES = "issue_types"


def graphql_endpoint(host: str) -> str:
    """Return the GraphQL endpoint URL for a GitHub host

    github.com uses the public API host; GitHub Enterprise Server serves
    GraphQL under /api/graphql on its own hostname.
    """
    host = (host or DEFAULT_HOST).strip().rstrip("/")
    if host in ("github.com", "api.github.com"):
        return "https://api.github.com/graphql"
    return f"https://{host}/api/graphql"


def load_env_file(path: str | Path) -> int:
    """Load KEY=VALUE lines from a .env file into os.environ

    Blank lines and comments are skipped, and variables already present in
    the environment are never overridden.

    Returns:
        Number of variables that were set
    """
    env_path = Path(path)
    if not env_path.exists():
        return 0

    loaded = 0
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key and key not in os.environ:
                    os.environ[key] = value
                    loaded += 1
    logger.debug("Loaded %d variables from %s", loaded, env_path)
    return loaded


@dataclass
class ClientOptions:
    """Configuration for a ProjectClient.

    Everything a client needs is carried here and passed to the constructor,
    including the HTTP session, so tests substitute a fake transport without
    touching any process-wide state.

    Attributes:
        host: GitHub hostname (github.com or an Enterprise host)
        token: Authorization token
        enable_sub_issues: Request the sub_issues GraphQL preview
        enable_issue_types: Request the issue_types GraphQL preview
        session: HTTP session to send requests with (None creates a requests.Session)
        timeout: Per-request timeout in seconds
        max_retries: Retries allowed for rate-limited operations
        retry_delays: Backoff schedule in seconds
    """

    host: str = DEFAULT_HOST
    token: str | None = None
    enable_sub_issues: bool = True
    enable_issue_types: bool = True
    session: Any = None
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delays: Sequence[float] = field(default_factory=lambda: DEFAULT_RETRY_DELAYS)

    @property
    def endpoint(self) -> str:
        return graphql_endpoint(self.host)

    @property
    def features(self) -> list[str]:
        """Enabled GraphQL feature previews, in declaration order"""
        features = []
        if self.enable_sub_issues:
            features.append(FEATURE_SUB_ISSUES)
        if self.enable_issue_types:
            features.append(FEATURE_ISSUE_TYPES)
        return features

    @classmethod
    def from_env(cls, env_file: str | Path | None = None, **overrides: Any) -> ClientOptions:
        """Build options from environment variables

        Reads GH_TOKEN (falling back to GITHUB_TOKEN) and GH_HOST. A .env
        file is loaded first; its path comes from env_file, then
        BOARDSYNC_ENV_FILE, then ".env" in the working directory.

        Example:
            >>> options = ClientOptions.from_env(max_retries=5)
            >>> options.endpoint
            'https://api.github.com/graphql'
        """
        load_env_file(env_file or os.getenv("BOARDSYNC_ENV_FILE", ".env"))

        values: dict[str, Any] = {
            "host": os.getenv("GH_HOST") or DEFAULT_HOST,
            "token": os.getenv("GH_TOKEN") or os.getenv("GITHUB_TOKEN") or None,
        }
        values.update(overrides)
        return cls(**values)
