"""
Request builder.

Pure functions that turn a tool plus concrete arguments into a URL, headers
and body. Nothing here performs I/O.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple
from urllib.parse import quote, urlencode

from action_relay.core.errors import MissingRequiredArgumentError
from action_relay.core.models import BodyEncoding, BuiltRequest, Tool

from .encoding import is_empty, render_scalar

BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

_PLACEHOLDER = re.compile(r"\{([^{}/]+)\}")


def _parameter_properties(parameters: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not isinstance(parameters, Mapping):
        return {}
    properties = parameters.get("properties")
    return properties if isinstance(properties, Mapping) else {}


def _names_in(parameters: Optional[Mapping[str, Any]], location: str) -> List[str]:
    return [
        name
        for name, prop in _parameter_properties(parameters).items()
        if isinstance(prop, Mapping) and prop.get("in") == location
    ]


def _query_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return render_scalar(value)


def substitute_path(path: str, arguments: Mapping[str, Any]) -> Tuple[str, Set[str]]:
    """Fill ``{name}`` placeholders; unmatched placeholders stay literal.

    Returns the resolved path and the argument names consumed.
    """
    consumed: Set[str] = set()

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = arguments.get(name)
        if is_empty(value):
            return match.group(0)
        consumed.add(name)
        return quote(render_scalar(value), safe="")

    return _PLACEHOLDER.sub(_replace, path), consumed


def join_url(base_address: str, path: str) -> str:
    """Join with exactly one slash between base and path."""
    if not path.startswith("/"):
        path = "/" + path
    return base_address.rstrip("/") + path


def build_url(
    base_address: str,
    path: str,
    arguments: Mapping[str, Any],
    parameters: Optional[Mapping[str, Any]] = None,
) -> str:
    """Build the request URL.

    Query parameters are emitted in the order the parameter schema declares
    them; list values repeat the key.
    """
    resolved, consumed = substitute_path(path, arguments)
    pairs: List[Tuple[str, str]] = []
    for name in _names_in(parameters, "query"):
        if name in consumed:
            continue
        value = arguments.get(name)
        if is_empty(value):
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((name, _query_value(item)) for item in value if not is_empty(item))
        else:
            pairs.append((name, _query_value(value)))

    url = join_url(base_address, resolved)
    if pairs:
        url = f"{url}?{urlencode(pairs)}"
    return url


def build_parameter_headers(arguments: Mapping[str, Any], parameters: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for name in _names_in(parameters, "header"):
        value = arguments.get(name)
        if not is_empty(value):
            headers[name] = _query_value(value)
    return headers


def build_request_body(
    arguments: Mapping[str, Any],
    parameters: Optional[Mapping[str, Any]] = None,
    body_schema: Optional[Mapping[str, Any]] = None,
    *,
    path: str = "",
) -> Optional[Dict[str, Any]]:
    """Select the arguments that belong in the request body.

    With an explicit body schema only its declared properties are copied;
    otherwise every argument not consumed by the path, query or headers is.

    Returns:
        The body mapping, or None when it would be empty
    """
    if body_schema is not None:
        declared = body_schema.get("properties") if isinstance(body_schema, Mapping) else None
        if not isinstance(declared, Mapping):
            declared = {}
        body = {key: arguments[key] for key in declared if key in arguments and not is_empty(arguments[key])}
    else:
        consumed = set(_PLACEHOLDER.findall(path))
        for location in ("path", "query", "header"):
            consumed.update(_names_in(parameters, location))
        body = {key: value for key, value in arguments.items() if key not in consumed and not is_empty(value)}
    return body or None


def required_arguments(tool: Tool) -> List[str]:
    required: List[str] = []
    for schema in (tool.parameters, tool.body_schema):
        if isinstance(schema, Mapping):
            for name in schema.get("required") or []:
                if name not in required:
                    required.append(name)
    for name in _PLACEHOLDER.findall(tool.path):
        if name not in required:
            required.append(name)
    return required


def validate_arguments(tool: Tool, arguments: Mapping[str, Any]) -> None:
    """Raise MissingRequiredArgumentError when a required argument is absent or empty."""
    missing = [name for name in required_arguments(tool) if is_empty(arguments.get(name))]
    if missing:
        raise MissingRequiredArgumentError(tool.name, missing)


def build_request(
    base_address: str,
    tool: Tool,
    arguments: Mapping[str, Any],
    *,
    auth_headers: Optional[Mapping[str, str]] = None,
    body_encoding: BodyEncoding = BodyEncoding.json,
    validate: bool = False,
) -> BuiltRequest:
    """Build the concrete HTTP request for ``tool``.

    Args:
        base_address: Base URL of the source
        tool: The catalog tool
        arguments: Concrete argument values
        auth_headers: Headers produced by :func:`build_auth_headers`
        body_encoding: JSON or form-encoded body
        validate: Check required arguments before building

    Returns:
        Method, URL, headers and body (None for methods that carry no body)
    """
    if validate:
        validate_arguments(tool, arguments)

    method = tool.method.upper()
    body = None
    if method in BODY_METHODS:
        body = build_request_body(arguments, tool.parameters, tool.body_schema, path=tool.path)

    headers: Dict[str, str] = {"Accept": "application/json"}
    if body is not None:
        headers["Content-Type"] = (
            "application/x-www-form-urlencoded" if body_encoding is BodyEncoding.form else "application/json"
        )
    headers.update(build_parameter_headers(arguments, tool.parameters))
    headers.update(auth_headers or {})

    return BuiltRequest(
        method=method,
        url=build_url(base_address, tool.path, arguments, tool.parameters),
        headers=headers,
        body=body,
    )
