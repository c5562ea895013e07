"""Argument construction for follow-up page requests, plus progress text."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from action_relay.core.models import PaginationState, PaginationStrategy

# Position arguments from the previous request that must not leak into the next one
STALE_POSITION_KEYS = ("starting_after", "cursor", "page", "offset", "pageToken", "next_cursor")

PAGE_PARAMS = ("page", "current_page", "currentPage", "pageNumber")


def build_next_page_arguments(state: PaginationState, original: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Original arguments minus stale position keys, plus the detected next parameters.

    Returns None when there is no next page.
    """
    if not state.has_more or not state.next_params:
        return None
    arguments = {key: value for key, value in original.items() if key not in STALE_POSITION_KEYS}
    arguments.update(state.next_params)
    return arguments


def build_page_arguments(state: PaginationState, page: int, original: Mapping[str, Any]) -> Dict[str, Any]:
    """Arguments for jumping straight to ``page``; only offset pagination supports this."""
    if state.strategy is not PaginationStrategy.offset:
        raise ValueError(f"{state.strategy.value} pagination cannot jump to a page number")
    param = next((key for key in (state.next_params or {}) if key in PAGE_PARAMS), "page")
    arguments = dict(original)
    arguments[param] = page
    return arguments


def describe_pagination(state: Optional[PaginationState], loaded_items: int) -> Optional[Dict[str, Any]]:
    """Human-facing progress info such as ``"20 of 45"`` or ``"Page 2 of 5"``."""
    if state is None:
        return None
    info: Dict[str, Any] = {"hasMore": state.has_more, "strategy": state.strategy.value}
    if state.total_count:
        info["totalCount"] = state.total_count
        info["text"] = f"{loaded_items} of {state.total_count}"
        info["percentage"] = round(loaded_items / state.total_count * 100)
    else:
        info["text"] = f"{loaded_items}+ results" if state.has_more else f"{loaded_items} results"
    if state.strategy is PaginationStrategy.offset and state.total_pages:
        info["currentPage"] = state.current_page
        info["totalPages"] = state.total_pages
        info["pageText"] = f"Page {state.current_page} of {state.total_pages}"
    return info
