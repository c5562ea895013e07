"""
Pagination detection strategies.

Each strategy is a pure function of the response body, its item array and
the arguments that produced it. It returns a PaginationState when it
recognises its convention and None otherwise; strategies are tried in
``STRATEGIES`` order and the first match wins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlsplit

from action_relay.core.models import PaginationState, PaginationStrategy

CURSOR_FIELDS = ("next_cursor", "cursor", "nextCursor", "next")
HAS_MORE_FIELDS = ("has_more", "hasMore", "has_next", "hasNext")
PAGE_FIELDS = ("page", "current_page", "currentPage", "pageNumber")
TOTAL_FIELDS = ("total", "total_count", "totalCount", "count")
PER_PAGE_FIELDS = ("per_page", "perPage", "page_size", "pageSize", "limit")
LINK_CONTAINERS = ("links", "_links", "paging")
NEXT_LINK_FIELDS = ("next", "nextLink", "next_page")
TOKEN_FIELDS = ("nextPageToken", "next_page_token", "pageToken", "continuation_token", "continuationToken")
LIMIT_FIELDS = ("limit", "per_page", "perPage", "page_size", "pageSize", "count", "max_results", "maxResults")
ITEM_ID_FIELDS = ("id", "_id", "uuid", "cursor")


@dataclass(frozen=True)
class PageContext:
    """Inputs shared by every strategy."""

    body: Mapping[str, Any]
    items: Sequence[Any]
    data_path: str
    arguments: Mapping[str, Any]

    def state(self, strategy: PaginationStrategy, has_more: bool, **fields: Any) -> PaginationState:
        return PaginationState(
            strategy=strategy,
            has_more=has_more,
            data_path=self.data_path,
            item_count=len(self.items),
            **fields,
        )


Strategy = Callable[[PageContext], Optional[PaginationState]]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _first_number(source: Mapping[str, Any], fields: Sequence[str]) -> Tuple[Optional[str], Optional[float]]:
    for name in fields:
        if _is_number(source.get(name)):
            return name, source[name]
    return None, None


def _first_string(source: Mapping[str, Any], fields: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    for name in fields:
        value = source.get(name)
        if isinstance(value, str) and value:
            return name, value
    return None, None


def _looks_like_link(value: str) -> bool:
    return value.startswith(("http://", "https://", "/"))


def _as_int(value: Optional[float]) -> Optional[int]:
    return int(value) if value is not None else None


def _positive(value: Any) -> Optional[int]:
    return int(value) if _is_number(value) and value > 0 else None


def _total_count(body: Mapping[str, Any], *fields: str) -> Optional[int]:
    _, value = _first_number(body, fields)
    return _as_int(value)


def _last_item_id(items: Sequence[Any]) -> Optional[str]:
    if not items or not isinstance(items[-1], Mapping):
        return None
    for name in ITEM_ID_FIELDS:
        value = items[-1].get(name)
        if isinstance(value, (str, int)) and not isinstance(value, bool) and value != "":
            return str(value)
    return None


def _default_limit(ctx: PageContext, *fields: str) -> int:
    for name in fields:
        value = _positive(ctx.arguments.get(name))
        if value:
            return value
    return len(ctx.items)


def detect_cursor_flag(ctx: PageContext) -> Optional[PaginationState]:
    """``{"object": "list", "data": [...], "has_more": true}``; the last item id is the next cursor."""
    has_more = ctx.body.get("has_more")
    if not isinstance(has_more, bool):
        return None
    if ctx.body.get("object") != "list":
        # Outside the list-object convention an explicit cursor field takes precedence
        if not has_more or _first_string(ctx.body, CURSOR_FIELDS)[1] is not None:
            return None
    cursor = _last_item_id(ctx.items)
    if has_more and cursor is None:
        return None
    return ctx.state(
        PaginationStrategy.cursor_flag,
        has_more,
        cursor=cursor,
        next_params={"starting_after": cursor} if has_more else None,
        total_count=_total_count(ctx.body, "total_count"),
        limit=_default_limit(ctx, "limit"),
    )


def detect_cursor(ctx: PageContext) -> Optional[PaginationState]:
    """``{"items": [...], "next_cursor": "abc", "has_more": true}``.

    URL-valued fields such as ``"next": "https://...?page=2"`` are links, not cursors.
    """
    field, cursor = _first_string(ctx.body, CURSOR_FIELDS)
    if cursor is None or _looks_like_link(cursor):
        return None
    param = "cursor" if field == "next_cursor" else field

    has_more = True
    for name in HAS_MORE_FIELDS:
        if name in ctx.body and ctx.body[name] is not None:
            has_more = ctx.body[name] is True
            break

    return ctx.state(
        PaginationStrategy.cursor,
        has_more,
        cursor=cursor,
        next_params={param: cursor} if has_more else None,
        total_count=_total_count(ctx.body, "total", "total_count", "totalCount"),
        limit=_default_limit(ctx, "limit", "per_page"),
    )


def detect_offset(ctx: PageContext) -> Optional[PaginationState]:
    """``{"results": [...], "total": 100, "page": 1, "per_page": 10}``.

    Without a total, a page that is exactly full is taken to mean more pages
    exist; an API whose last page happens to be full costs one extra empty fetch.
    """
    page_param, page = _first_number(ctx.body, PAGE_FIELDS)
    if page is None:
        page_param, page = _first_number(ctx.arguments, PAGE_FIELDS)
    _, total = _first_number(ctx.body, TOTAL_FIELDS)
    if page is None and total is None:
        return None

    per_page: Optional[float] = None
    for name in PER_PAGE_FIELDS:
        if _is_number(ctx.body.get(name)):
            per_page = ctx.body[name]
            break
        if _is_number(ctx.arguments.get(name)):
            per_page = ctx.arguments[name]
            break
    if per_page is None:
        per_page = len(ctx.items)

    current = int(page) if page else 1
    total_pages = math.ceil(total / per_page) if total and per_page and per_page > 0 else None
    if total_pages is not None:
        has_more = current < total_pages
    else:
        has_more = len(ctx.items) == per_page

    return ctx.state(
        PaginationStrategy.offset,
        has_more,
        next_params={page_param or "page": current + 1} if has_more else None,
        total_count=_as_int(total),
        current_page=current,
        total_pages=total_pages,
        per_page=_as_int(per_page),
        limit=_as_int(per_page),
    )


def _next_link(container: Mapping[str, Any]) -> Optional[str]:
    for name in NEXT_LINK_FIELDS:
        value = container.get(name)
        if isinstance(value, Mapping):
            value = value.get("href")
        if isinstance(value, str) and value:
            return value
    return None


def detect_link(ctx: PageContext) -> Optional[PaginationState]:
    """``{"links": {"next": "https://...?page=2"}}`` and the ``_links`` / ``paging`` variants."""
    link = None
    for name in LINK_CONTAINERS:
        container = ctx.body.get(name)
        if isinstance(container, Mapping):
            link = _next_link(container)
            if link:
                break
    if not link:
        return None

    params = dict(parse_qsl(urlsplit(link).query, keep_blank_values=True))
    return ctx.state(
        PaginationStrategy.link,
        True,
        next_link=link,
        next_params=params or {"_next_link": link},
        total_count=_total_count(ctx.body, "total", "total_count"),
        limit=_default_limit(ctx, "limit"),
    )


def detect_token(ctx: PageContext) -> Optional[PaginationState]:
    """``{"items": [...], "nextPageToken": "t"}``."""
    field, token = _first_string(ctx.body, TOKEN_FIELDS)
    if token is None:
        return None
    param = "continuationToken" if "continuation" in field else "pageToken"
    return ctx.state(
        PaginationStrategy.token,
        True,
        cursor=token,
        next_params={param: token},
        total_count=_total_count(ctx.body, "totalItems", "total"),
        limit=_default_limit(ctx, "limit", "maxResults"),
    )


def detect_raw_array(ctx: PageContext) -> Optional[PaginationState]:
    """Metadata-free arrays: exactly ``limit`` items, continued from the last item id."""
    limit = None
    for name in LIMIT_FIELDS:
        limit = _positive(ctx.arguments.get(name))
        if limit:
            break
    if not limit or len(ctx.items) != limit:
        return None
    cursor = _last_item_id(ctx.items)
    if cursor is None:
        return None
    return ctx.state(
        PaginationStrategy.raw_array,
        True,
        cursor=cursor,
        next_params={"starting_after": cursor},
        limit=limit,
    )


STRATEGIES: List[Strategy] = [
    detect_cursor_flag,
    detect_cursor,
    detect_offset,
    detect_link,
    detect_token,
    detect_raw_array,
]
