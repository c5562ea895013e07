"""Execution of catalog tools against their targets."""

from .executor import ActionExecutor
from .formatting import cap_response_body, format_tool_result, summarize_body

__all__ = [
    "ActionExecutor",
    "cap_response_body",
    "format_tool_result",
    "summarize_body",
]
