"""Centralized logging configuration for boardsync."""

from __future__ import annotations

import logging
import os
import re
import sys

# Credentials that must never reach a log line
_SENSITIVE_PATTERNS = [
    (re.compile(r"gh[pousr]_[A-Za-z0-9]{20,}"), "[GITHUB_TOKEN]"),
    (re.compile(r"github_pat_[A-Za-z0-9_]{20,}"), "[GITHUB_TOKEN]"),
    (re.compile(r"(?i)(bearer|token) [A-Za-z0-9._-]+"), r"\1 [REDACTED]"),
]


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure logging for boardsync.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to the
               BOARDSYNC_LOG_LEVEL environment variable, then INFO.
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Example:
        >>> setup_logging("DEBUG")  # Request traffic and retries
        >>> setup_logging("INFO", "sync.log")  # Standard output + file logging
    """
    if level is None:
        level = os.getenv("BOARDSYNC_LOG_LEVEL", "INFO")

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }

    logger = logging.getLogger("boardsync")
    logger.setLevel(level_map.get(level.upper(), logging.INFO))

    # Remove any existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False


def sanitize_for_log(text: str) -> str:
    """Remove tokens and authorization values from text destined for a log"""
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def truncate_for_log(text: str, max_length: int = 500) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + f"... [truncated, {len(text) - max_length} more chars]"
