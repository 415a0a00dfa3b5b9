"""
Unit tests for cursor pagination
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add parent directory to path to import boardsync module
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from boardsync.exceptions import TransportError
from boardsync.paginator import Page, iter_pages, page_from_connection, paginate


def pages(*page_list):
    """Fetch function replaying pages in order"""
    return MagicMock(side_effect=list(page_list))


class TestPageFromConnection:
    """Test conversion of GraphQL connections into pages"""

    def test_reads_nodes_and_page_info(self):
        connection = {
            "nodes": [{"id": "a"}, {"id": "b"}],
            "pageInfo": {"hasNextPage": True, "endCursor": "c1"},
        }

        page = page_from_connection(connection)

        assert page.items == [{"id": "a"}, {"id": "b"}]
        assert page.end_cursor == "c1"
        assert page.has_next is True

    def test_none_connection_is_empty_last_page(self):
        assert page_from_connection(None) == Page([], None, False)

    def test_transform_returning_none_drops_node(self):
        connection = {
            "nodes": [{"kind": "Issue", "id": 1}, {"kind": "DraftIssue", "id": 2}],
            "pageInfo": {"hasNextPage": False, "endCursor": None},
        }

        page = page_from_connection(connection, lambda n: n["id"] if n["kind"] == "Issue" else None)

        assert page.items == [1]


class TestPaginate:
    """Test multi-page collection"""

    def test_single_page(self):
        fetch = pages(Page([1, 2, 3], None, False))

        assert paginate(fetch) == [1, 2, 3]
        fetch.assert_called_once_with(None)

    def test_multiple_pages_in_order(self):
        """Should follow cursors and keep delivery order"""
        fetch = pages(
            Page([1, 2], "c1", True),
            Page([3, 4], "c2", True),
            Page([5], "c3", False),
        )

        result = paginate(fetch)

        assert result == [1, 2, 3, 4, 5]
        assert [c[0][0] for c in fetch.call_args_list] == [None, "c1", "c2"]

    def test_limit_stops_mid_page_without_next_fetch(self):
        """Reaching the limit ends traversal; no further page is requested"""
        fetch = pages(Page([1, 2, 3], "c1", True), Page([4, 5, 6], "c2", True))

        result = paginate(fetch, limit=2)

        assert result == [1, 2]
        assert fetch.call_count == 1

    def test_limit_spanning_pages(self):
        fetch = pages(Page([1, 2], "c1", True), Page([3, 4], "c2", True))

        assert paginate(fetch, limit=3) == [1, 2, 3]
        assert fetch.call_count == 2

    def test_zero_limit_means_unlimited(self):
        fetch = pages(Page([1], "c1", True), Page([2], None, False))

        assert paginate(fetch, limit=0) == [1, 2]

    def test_predicate_filtered_items_do_not_count(self):
        """Filtered-out items never appear and never count toward the limit"""
        fetch = pages(Page([1, 2, 3, 4], "c1", True), Page([5, 6, 7, 8], None, False))

        result = paginate(fetch, limit=3, predicate=lambda n: n % 2 == 0)

        assert result == [2, 4, 6]
        assert fetch.call_count == 2

    def test_empty_first_page(self):
        fetch = pages(Page([], None, False))

        assert paginate(fetch) == []

    def test_empty_intermediate_page_continues(self):
        fetch = pages(Page([], "c1", True), Page([1], None, False))

        assert paginate(fetch) == [1]

    def test_fetch_error_propagates(self):
        """A failing page aborts the traversal; nothing partial is returned"""
        fetch = pages(Page([1], "c1", True), TransportError("HTTP 502: Bad Gateway", 502))

        with pytest.raises(TransportError):
            paginate(fetch)

    def test_has_next_without_cursor_stops(self):
        fetch = pages(Page([1], None, True), Page([2], None, False))

        assert paginate(fetch) == [1]
        assert fetch.call_count == 1


class TestIterPages:
    def test_yields_lazily(self):
        fetch = pages(Page([1], "c1", True), Page([2], None, False))

        iterator = iter_pages(fetch)
        first = next(iterator)

        assert first.items == [1]
        assert fetch.call_count == 1
        assert [p.items for p in iterator] == [[2]]
