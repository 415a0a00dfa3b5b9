"""Retry orchestration for rate-limited operations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TypeVar

from boardsync.errors import get_retry_after, is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Exponential backoff schedule in seconds; the last entry repeats
DEFAULT_RETRY_DELAYS: tuple[float, ...] = (1.0, 2.0, 4.0, 8.0)


def with_retry(
    fn: Callable[[], T],
    max_retries: int,
    delays: Sequence[float] = DEFAULT_RETRY_DELAYS,
) -> T:
    """Call fn, retrying with exponential backoff while it is rate limited.

    Only rate-limit failures are retried. Anything else (including a plain
    permission-denied 403) is re-raised after the first call, unchanged.
    Sleeps block the calling thread; there is no cancellation. The delay
    always comes from the schedule; a server Retry-After hint is only logged.

    Args:
        fn: Zero-argument callable performing one attempt
        max_retries: Number of retries after the first attempt
        delays: Backoff schedule; attempt n sleeps delays[min(n, len(delays) - 1)]

    Returns:
        Whatever fn returns on its first successful call

    Raises:
        The last exception from fn once retries are exhausted, or the first
        non-rate-limit exception
    """
    if not delays:
        raise ValueError("delays must contain at least one entry")

    attempt = 0
    while True:
        try:
            return fn()
        except Exception as e:
            if not is_rate_limited(e) or attempt >= max_retries:
                raise

            delay = delays[min(attempt, len(delays) - 1)]
            hint = get_retry_after(e)
            if hint:
                logger.debug("Server suggested Retry-After %ds; keeping schedule", hint)

            attempt += 1
            logger.warning(
                "Rate limited, retrying in %.3gs (attempt %d/%d)", delay, attempt, max_retries
            )
            time.sleep(delay)
