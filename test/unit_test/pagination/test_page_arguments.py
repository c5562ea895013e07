import pytest

from action_relay.core.models import PaginationState, PaginationStrategy
from action_relay.pagination import build_next_page_arguments, build_page_arguments, describe_pagination


def test_next_arguments_drop_stale_positions():
    state = PaginationState(
        strategy=PaginationStrategy.cursor, has_more=True, next_params={"cursor": "c2"}
    )

    arguments = build_next_page_arguments(
        state, {"cursor": "c1", "starting_after": "x", "offset": 10, "pageToken": "p", "q": "shoes"}
    )

    assert arguments == {"q": "shoes", "cursor": "c2"}


def test_no_next_arguments_on_last_page():
    state = PaginationState(strategy=PaginationStrategy.cursor, has_more=False)

    assert build_next_page_arguments(state, {"q": "x"}) is None


def test_jump_to_page():
    state = PaginationState(
        strategy=PaginationStrategy.offset, has_more=True, next_params={"currentPage": 3}, current_page=2
    )

    assert build_page_arguments(state, 5, {"q": "x", "currentPage": 2}) == {"q": "x", "currentPage": 5}


def test_jump_to_page_defaults_to_page_argument():
    state = PaginationState(strategy=PaginationStrategy.offset, has_more=False, current_page=4)

    assert build_page_arguments(state, 1, {}) == {"page": 1}


def test_jump_requires_offset_pagination():
    state = PaginationState(strategy=PaginationStrategy.cursor, has_more=True, next_params={"cursor": "c"})

    with pytest.raises(ValueError):
        build_page_arguments(state, 2, {})


class TestDescribePagination:
    def test_with_total(self):
        state = PaginationState(
            strategy=PaginationStrategy.offset,
            has_more=True,
            total_count=45,
            current_page=1,
            total_pages=3,
        )

        info = describe_pagination(state, 20)

        assert info["text"] == "20 of 45"
        assert info["percentage"] == 44
        assert info["pageText"] == "Page 1 of 3"

    def test_without_total(self):
        state = PaginationState(strategy=PaginationStrategy.cursor, has_more=True)

        assert describe_pagination(state, 10)["text"] == "10+ results"
        assert describe_pagination(state.model_copy(update={"has_more": False}), 10)["text"] == "10 results"

    def test_none(self):
        assert describe_pagination(None, 0) is None
