"""
Argument value helpers and form encoding.

Form-encoded targets expect nested values in bracket notation, e.g.
``metadata[order_id]=6735`` and ``items[0][price]=price_123``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Tuple
from urllib.parse import urlencode


def is_empty(value: Any) -> bool:
    """Values that are never sent: None, empty string, empty list."""
    return value is None or value == "" or (isinstance(value, (list, tuple)) and len(value) == 0)


def clean_arguments(arguments: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in arguments.items() if not is_empty(value)}


def render_scalar(value: Any) -> str:
    """Render a scalar for a URL: booleans as ``true``/``false``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_form_fields(value: Any, prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested mappings and sequences into bracket-notation pairs."""
    if isinstance(value, Mapping):
        pairs: List[Tuple[str, str]] = []
        for key, nested in value.items():
            if is_empty(nested):
                continue
            pairs.extend(flatten_form_fields(nested, f"{prefix}[{key}]" if prefix else str(key)))
        return pairs
    if isinstance(value, (list, tuple)):
        pairs = []
        for index, nested in enumerate(value):
            pairs.extend(flatten_form_fields(nested, f"{prefix}[{index}]"))
        return pairs
    if value is None:
        return []
    return [(prefix, render_scalar(value))]


def encode_form_body(body: Mapping[str, Any]) -> str:
    return urlencode(flatten_form_fields(body))
