"""Interpretation of ``tools/call`` results."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class ParsedToolResult:
    text: str
    data: Optional[Any]
    is_error: bool

    @property
    def body(self) -> Any:
        """Structured data when the text decoded as JSON, else the text wrapped in an object."""
        return self.data if self.data is not None else {"text": self.text}


def _block_text(block: Mapping[str, Any]) -> Optional[str]:
    kind = block.get("type")
    if kind == "text":
        return str(block.get("text", ""))
    if kind == "image":
        return f"[Image: {block.get('mimeType', 'unknown')}]"
    if kind == "resource":
        resource = block.get("resource") or {}
        if isinstance(resource, Mapping):
            if resource.get("text") is not None:
                return str(resource["text"])
            return f"[Resource: {resource.get('uri', 'unknown')}]"
    return None


def parse_tool_result(result: Optional[Mapping[str, Any]]) -> ParsedToolResult:
    """Join content blocks into text and decode it when it looks like JSON.

    ``structuredContent`` takes precedence over decoded text when present.
    """
    if not isinstance(result, Mapping):
        return ParsedToolResult(text="", data=None, is_error=False)

    parts: List[str] = []
    for block in result.get("content") or []:
        if isinstance(block, Mapping):
            text = _block_text(block)
            if text is not None:
                parts.append(text)
    text = "\n".join(parts)

    data: Optional[Any] = result.get("structuredContent")
    stripped = text.strip()
    if data is None and stripped[:1] in ("{", "["):
        try:
            data = json.loads(stripped)
        except ValueError:
            data = None

    return ParsedToolResult(text=text, data=data, is_error=bool(result.get("isError")))


def summarize_arguments(arguments: Mapping[str, Any]) -> Dict[str, str]:
    """Argument names with their value types, safe to log."""
    return {key: type(value).__name__ for key, value in arguments.items()}
