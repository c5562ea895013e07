"""Tests for pagination inference across response conventions."""

import pytest

from action_relay.core.models import PaginationStrategy
from action_relay.pagination import extract_items, infer_pagination, locate_items
from action_relay.pagination.strategies import detect_token


def _items(count, start=1):
    return [{"id": f"item_{i}"} for i in range(start, start + count)]


class TestLocateItems:
    def test_bare_array(self):
        assert locate_items([1, 2]) == ("", [1, 2])

    @pytest.mark.parametrize("field", ["data", "results", "items", "records", "entries", "list", "rows", "objects"])
    def test_known_fields(self, field):
        assert locate_items({field: [1]}) == (field, [1])

    def test_response_wrapper(self):
        assert locate_items({"response": {"results": [1]}}) == ("response.results", [1])

    def test_nothing_recognised(self):
        assert locate_items({"value": 1}) is None
        assert locate_items("text") is None
        assert extract_items({"value": 1}) == []


class TestCursorFlag:
    def test_has_more_uses_last_item_id(self):
        body = {"object": "list", "data": _items(2), "has_more": True}

        state = infer_pagination(body, {"limit": 2, "starting_after": "item_0", "customer": "cus_1"})

        assert state.strategy is PaginationStrategy.cursor_flag
        assert state.has_more is True
        assert state.cursor == "item_2"
        assert state.data_path == "data"
        assert state.item_count == 2
        assert state.limit == 2
        assert state.next_arguments == {"limit": 2, "customer": "cus_1", "starting_after": "item_2"}

    def test_last_page(self):
        state = infer_pagination({"object": "list", "data": _items(1), "has_more": False})

        assert state.strategy is PaginationStrategy.cursor_flag
        assert state.has_more is False
        assert state.next_arguments is None

    def test_has_more_without_item_ids_matches_nothing(self):
        assert infer_pagination({"object": "list", "data": ["a", "b"], "has_more": True}) is None

    def test_wins_over_cursor_fields(self):
        body = {"object": "list", "data": _items(1), "has_more": True, "next_cursor": "zzz"}

        assert infer_pagination(body).strategy is PaginationStrategy.cursor_flag


class TestCursor:
    def test_next_cursor_maps_to_cursor_argument(self):
        body = {"items": _items(2), "next_cursor": "abc", "has_more": True}

        state = infer_pagination(body, {"cursor": "old", "q": "x"})

        assert state.strategy is PaginationStrategy.cursor
        assert state.next_params == {"cursor": "abc"}
        assert state.next_arguments == {"q": "x", "cursor": "abc"}

    def test_explicit_has_more_false(self):
        state = infer_pagination({"items": _items(2), "next_cursor": "abc", "has_more": False})

        assert state.has_more is False
        assert state.next_arguments is None

    def test_cursor_without_flag_implies_more(self):
        state = infer_pagination({"results": _items(2), "nextCursor": "n1"})

        assert state.has_more is True
        assert state.next_params == {"nextCursor": "n1"}


class TestOffset:
    def test_total_decides_has_more(self):
        body = {"results": _items(10), "total": 25, "page": 2, "per_page": 10}

        state = infer_pagination(body, {"page": 2, "per_page": 10})

        assert state.strategy is PaginationStrategy.offset
        assert (state.current_page, state.total_pages, state.total_count) == (2, 3, 25)
        assert state.has_more is True
        assert state.next_arguments == {"per_page": 10, "page": 3}

    def test_last_page_by_total(self):
        state = infer_pagination({"results": _items(5), "total": 25, "page": 3, "per_page": 10})

        assert state.has_more is False

    def test_full_page_without_total_implies_more(self):
        state = infer_pagination({"data": _items(5), "page": 1}, {"per_page": 5})

        assert state.has_more is True
        assert state.next_params == {"page": 2}

    def test_short_page_without_total_is_last(self):
        state = infer_pagination({"data": _items(3), "page": 1}, {"per_page": 5})

        assert state.has_more is False

    def test_count_with_next_url(self):
        body = {"count": 45, "next": "https://api.example.com/items?page=2", "previous": None, "results": _items(20)}

        state = infer_pagination(body)

        assert state.strategy is PaginationStrategy.offset
        assert state.total_pages == 3
        assert state.next_params == {"page": 2}


class TestLink:
    def test_next_link_query_becomes_arguments(self):
        body = {"data": _items(2), "links": {"next": "https://api.example.com/items?page=3&size=10"}}

        state = infer_pagination(body, {"size": 10, "q": "x"})

        assert state.strategy is PaginationStrategy.link
        assert state.next_link == "https://api.example.com/items?page=3&size=10"
        assert state.next_arguments == {"size": "10", "q": "x", "page": "3"}

    def test_hal_style_href(self):
        body = {"items": _items(1), "_links": {"next": {"href": "/items?after=item_1"}}}

        state = infer_pagination(body)

        assert state.next_params == {"after": "item_1"}

    def test_link_without_query(self):
        body = {"items": _items(1), "paging": {"next": "https://api.example.com/items/next-page"}}

        state = infer_pagination(body)

        assert state.next_params == {"_next_link": "https://api.example.com/items/next-page"}


class TestToken:
    def test_page_token(self):
        state = infer_pagination({"items": _items(3), "nextPageToken": "tok"}, {"pageToken": "prev", "maxResults": 3})

        assert state.strategy is PaginationStrategy.token
        assert state.limit == 3
        assert state.next_arguments == {"maxResults": 3, "pageToken": "tok"}

    def test_continuation_token(self):
        state = infer_pagination({"items": _items(1), "continuationToken": "c2"})

        assert state.next_params == {"continuationToken": "c2"}


class TestRawArray:
    def test_full_page_continues_after_last_id(self):
        state = infer_pagination([{"id": 1}, {"id": 2}], {"limit": 2})

        assert state.strategy is PaginationStrategy.raw_array
        assert state.data_path == ""
        assert state.next_arguments == {"limit": 2, "starting_after": "2"}

    def test_short_page_has_no_pagination(self):
        assert infer_pagination([{"id": 1}], {"limit": 2}) is None

    def test_oversized_page_has_no_pagination(self):
        assert infer_pagination([{"id": 1}, {"id": 2}, {"id": 3}], {"limit": 2}) is None

    def test_no_limit_has_no_pagination(self):
        assert infer_pagination([{"id": 1}, {"id": 2}]) is None


def test_response_wrapper_path_is_reported():
    state = infer_pagination({"response": {"data": _items(2)}, "nextPageToken": "t"})

    assert state.data_path == "response.data"
    assert state.strategy is PaginationStrategy.token


@pytest.mark.parametrize("body", [{"data": []}, {"value": 1}, "plain text", None])
def test_no_pagination_without_items(body):
    assert infer_pagination(body) is None


def test_strategy_list_can_be_narrowed():
    body = {"object": "list", "data": _items(1), "has_more": True, "nextPageToken": "t"}

    state = infer_pagination(body, strategies=[detect_token])

    assert state.strategy is PaginationStrategy.token
