"""
Result formatting for downstream consumers.

The reasoning collaborator gets a brief summary of a success (the full data is
shown to the user elsewhere) and more detail for failures. Persisted response
bodies are capped in size. Every truncation is marked explicitly.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from action_relay.core.models import ExecutionResult

TRUNCATION_MARKER = "... (truncated)"

_NAME_FIELDS = ("name", "email", "description", "title")


def truncate_text(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def _render(body: Any) -> str:
    if isinstance(body, str):
        return body
    return json.dumps(body, indent=2, ensure_ascii=False, default=str)


def _label(item: Mapping[str, Any]) -> str:
    for name in _NAME_FIELDS:
        if item.get(name):
            return str(item[name])
    return ""


def summarize_body(body: Any, limit: int = 500) -> str:
    """One-line description of a successful response body."""
    if body is None or body == "" or body == {} or body == []:
        return "Success (empty response)"
    if isinstance(body, str):
        return truncate_text(body, limit)

    items = None
    if isinstance(body, list):
        items = body
    elif isinstance(body, Mapping) and isinstance(body.get("data"), list):
        items = body["data"]

    if items is not None:
        more = " (has_more: true)" if isinstance(body, Mapping) and body.get("has_more") else ""
        summary = f"Success: {len(items)} items returned{more}"
        first = items[0] if items else None
        if isinstance(first, Mapping):
            preview = ": ".join(part for part in (str(first.get("object") or ""), _label(first)) if part)
            summary += f". First: {first.get('id', '')}" + (f" ({preview})" if preview else "")
        return truncate_text(summary, limit)

    if isinstance(body, Mapping):
        if body.get("id"):
            name = _label(body)
            summary = f"Success: {body.get('object') or 'object'} {body['id']}" + (f" ({name})" if name else "")
            return truncate_text(summary, limit)
        keys = list(body.keys())
        if len(keys) <= 5:
            return truncate_text(f"Success: {{{', '.join(map(str, keys))}}}", limit)
        return f"Success: object with {len(keys)} fields"

    return truncate_text(f"Success: {body}", limit)


def format_tool_result(result: ExecutionResult, *, max_summary_chars: int = 500, max_error_chars: int = 2048) -> str:
    """Render an execution result for the reasoning collaborator."""
    if result.error_message and result.body is None:
        return f"Error: {truncate_text(result.error_message, max_error_chars)}"
    if result.error_message or not 200 <= result.status < 300:
        detail = truncate_text(_render(result.body), max_error_chars)
        return f"HTTP {result.status} Error:\n{detail}"
    return summarize_body(result.body, max_summary_chars)


def cap_response_body(body: Any, max_bytes: int) -> Any:
    """Return ``body`` unchanged when its JSON rendering fits in ``max_bytes``.

    Oversized bodies are replaced by an explicit truncation envelope carrying a
    text preview and the original size.
    """
    if body is None:
        return None
    rendered = json.dumps(body, ensure_ascii=False, default=str)
    size = len(rendered.encode("utf-8"))
    if size <= max_bytes:
        return body
    preview = rendered.encode("utf-8")[:max_bytes].decode("utf-8", "ignore")
    capped: Dict[str, Any] = {"_truncated": True, "originalSize": size, "preview": preview + TRUNCATION_MARKER}
    return capped
