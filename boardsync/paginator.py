"""Cursor-based pagination over GraphQL connections.

Every list-producing operation re-issues the same query with an advancing
opaque cursor. The traversal lives here once; operations only supply a
function that fetches one page.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, NamedTuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Page(NamedTuple):
    items: list[Any]
    end_cursor: str | None
    has_next: bool


def page_from_connection(
    connection: dict[str, Any] | None,
    transform: Callable[[dict[str, Any]], Any] | None = None,
) -> Page:
    """Build a Page from a GraphQL connection object

    Args:
        connection: Dict with "nodes" and "pageInfo" keys (None is an empty page)
        transform: Optional per-node conversion. Returning None drops the node
                   from the page, which is how non-issue content is skipped.
    """
    if not connection:
        return Page([], None, False)

    nodes = connection.get("nodes") or []
    if transform is not None:
        items = [converted for node in nodes if (converted := transform(node)) is not None]
    else:
        items = list(nodes)

    page_info = connection.get("pageInfo") or {}
    return Page(items, page_info.get("endCursor") or None, bool(page_info.get("hasNextPage")))


def iter_pages(fetch_page: Callable[[str | None], Page]) -> Iterator[Page]:
    """Yield pages lazily, starting with no cursor"""
    cursor: str | None = None
    while True:
        page = fetch_page(cursor)
        yield page
        if not page.has_next:
            return
        if not page.end_cursor:
            # A server claiming more pages without a cursor would loop forever
            logger.warning("Server reported more pages without an end cursor; stopping")
            return
        cursor = page.end_cursor


def paginate(
    fetch_page: Callable[[str | None], Page],
    limit: int = 0,
    predicate: Callable[[T], bool] | None = None,
) -> list[T]:
    """Collect items across pages in delivery order.

    Args:
        fetch_page: Called with None first, then with each page's end cursor
        limit: Stop once this many qualifying items are collected (0 = no limit)
        predicate: Items failing it are fetched but never returned or counted

    Returns:
        The qualifying items, at most limit of them when limit > 0

    Raises:
        Whatever fetch_page raises; nothing collected so far is returned
    """
    results: list[T] = []
    pages = 0
    for page in iter_pages(fetch_page):
        pages += 1
        for item in page.items:
            if predicate is not None and not predicate(item):
                continue
            results.append(item)
            if limit > 0 and len(results) >= limit:
                logger.debug("Limit %d reached after %d page(s)", limit, pages)
                return results

    logger.debug("Collected %d item(s) from %d page(s)", len(results), pages)
    return results
