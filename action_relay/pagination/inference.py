"""
Pagination inference.

Finds the item array in a response body and asks each strategy in turn
whether it recognises the body's pagination convention.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence, Tuple

from action_relay.core.models import PaginationState

from .params import build_next_page_arguments
from .strategies import STRATEGIES, PageContext, Strategy

logger = logging.getLogger(__name__)

ARRAY_FIELDS = ("data", "results", "items", "records", "entries", "list", "rows", "objects")
WRAPPER_FIELD = "response"


def locate_items(body: Any) -> Optional[Tuple[str, Sequence[Any]]]:
    """Return ``(data_path, items)`` for the first recognised item array.

    A bare array has the empty path; a nested ``response`` wrapper yields a
    dotted path such as ``response.data``.
    """
    if isinstance(body, list):
        return "", body
    if not isinstance(body, Mapping):
        return None
    for name in ARRAY_FIELDS:
        if isinstance(body.get(name), list):
            return name, body[name]
    wrapper = body.get(WRAPPER_FIELD)
    if isinstance(wrapper, Mapping):
        for name in ARRAY_FIELDS:
            if isinstance(wrapper.get(name), list):
                return f"{WRAPPER_FIELD}.{name}", wrapper[name]
    return None


def extract_items(body: Any) -> Sequence[Any]:
    located = locate_items(body)
    return located[1] if located else []


def infer_pagination(
    body: Any,
    arguments: Optional[Mapping[str, Any]] = None,
    strategies: Sequence[Strategy] = STRATEGIES,
) -> Optional[PaginationState]:
    """Infer pagination state from a response body.

    Args:
        body: Decoded response body
        arguments: Arguments of the call that produced ``body``
        strategies: Detection strategies in priority order

    Returns:
        The first matching state with ``next_arguments`` filled in, or None
        when the body has no (non-empty) item array or no convention matches
    """
    located = locate_items(body)
    if located is None:
        return None
    data_path, items = located
    if not items:
        return None

    args = dict(arguments or {})
    ctx = PageContext(body=body if isinstance(body, Mapping) else {}, items=items, data_path=data_path, arguments=args)
    for strategy in strategies:
        state = strategy(ctx)
        if state is not None:
            logger.debug("Detected %s pagination (has_more=%s)", state.strategy.value, state.has_more)
            if state.has_more and state.next_params:
                state = state.model_copy(update={"next_arguments": build_next_page_arguments(state, args)})
            return state
    return None
