"""
Schema sanitization.

Real-world descriptions often carry schema nodes with a missing or placeholder
type (``None``, ``"None"``, ``"null"``). Downstream reasoning engines reject
those, so every node is given a concrete type: ``object`` when it declares
properties, ``string`` otherwise. Local ``$ref`` pointers are inlined on the
way, with a guard against reference cycles.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)

_PLACEHOLDER_TYPES = (None, "None", "null", "")

# Keywords holding a single nested schema
_SCHEMA_KEYWORDS = ("items", "additionalProperties", "not")
# Keywords holding a list of nested schemas
_SCHEMA_LIST_KEYWORDS = ("allOf", "anyOf", "oneOf")


def resolve_pointer(document: Mapping[str, Any], ref: str) -> Optional[Any]:
    """Resolve a local JSON pointer such as ``#/components/schemas/Pet``.

    Returns None for remote references or pointers that do not resolve.
    """
    if not ref.startswith("#/"):
        return None
    node: Any = document
    for raw in ref[2:].split("/"):
        part = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return None
    return node


def resolve_node(node: Any, document: Optional[Mapping[str, Any]], seen: FrozenSet[str] = frozenset()) -> Any:
    """Follow ``$ref`` chains on a single node (not its children)."""
    while isinstance(node, Mapping) and isinstance(node.get("$ref"), str) and document is not None:
        ref = node["$ref"]
        if ref in seen:
            return None
        target = resolve_pointer(document, ref)
        if target is None:
            logger.debug("Unresolvable reference %s", ref)
            return None
        seen = seen | {ref}
        siblings = {k: v for k, v in node.items() if k != "$ref"}
        node = {**target, **siblings} if isinstance(target, Mapping) else target
    return node


def sanitize_schema(
    schema: Any,
    document: Optional[Mapping[str, Any]] = None,
    _seen: FrozenSet[str] = frozenset(),
) -> Any:
    """Return a copy of ``schema`` where every node has a concrete ``type``.

    Args:
        schema: A JSON-Schema fragment; non-mapping input is returned unchanged
        document: The enclosing description, used to inline local ``$ref`` pointers

    Returns:
        The sanitized schema
    """
    if not isinstance(schema, Mapping):
        return schema

    seen = _seen
    if isinstance(schema.get("$ref"), str) and document is not None:
        ref = schema["$ref"]
        resolved = resolve_node(schema, document, seen)
        if resolved is None or not isinstance(resolved, Mapping):
            # Cycles and dangling pointers collapse to an open object
            return {"type": "object"}
        seen = seen | {ref}
        schema = resolved

    result: Dict[str, Any] = dict(schema)
    properties = schema.get("properties")

    if result.get("type") in _PLACEHOLDER_TYPES:
        result["type"] = _infer_type(schema, document, seen)

    if isinstance(properties, Mapping):
        result["properties"] = {
            name: sanitize_schema(value, document, seen) for name, value in properties.items()
        }

    for keyword in _SCHEMA_KEYWORDS:
        nested = schema.get(keyword)
        if isinstance(nested, Mapping):
            result[keyword] = sanitize_schema(nested, document, seen)

    for keyword in _SCHEMA_LIST_KEYWORDS:
        nested_list = schema.get(keyword)
        if isinstance(nested_list, list):
            result[keyword] = [sanitize_schema(item, document, seen) for item in nested_list]

    return result


def _infer_type(schema: Mapping[str, Any], document: Optional[Mapping[str, Any]], seen: FrozenSet[str]) -> str:
    if isinstance(schema.get("properties"), Mapping):
        return "object"
    for keyword in _SCHEMA_LIST_KEYWORDS:
        for variant in schema.get(keyword) or ():
            variant = resolve_node(variant, document, seen)
            if isinstance(variant, Mapping):
                declared = variant.get("type")
                if isinstance(declared, str) and declared not in _PLACEHOLDER_TYPES:
                    return declared
                if isinstance(variant.get("properties"), Mapping):
                    return "object"
    if "items" in schema:
        return "array"
    return "string"
