"""
OpenAPI 3.x compiler.

Turns an API description into source metadata plus one tool definition per
(path, method) pair. The same document always compiles to the same tools in
the same order, and its fingerprint is stable across key ordering.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from action_relay.core.errors import InvalidDescriptionError
from action_relay.core.models import CompiledDescription, SourceMetadata, ToolDefinition

from .risk import apply_override, risk_for_method
from .sanitize import resolve_node, sanitize_schema

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")

_BODY_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded")

DescriptionInput = Union[str, bytes, Mapping[str, Any]]


def fingerprint_document(document: Any) -> str:
    """SHA-256 over a canonical JSON rendering of ``document``."""
    canonical = json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def synthesize_operation_key(method: str, path: str) -> str:
    """Build ``<method>_<path>`` with every non-alphanumeric run collapsed to one underscore."""
    slug = re.sub(r"_+", "_", re.sub(r"[^a-zA-Z0-9]", "_", path)).strip("_")
    return f"{method.lower()}_{slug}"


def load_description(raw: DescriptionInput) -> Dict[str, Any]:
    if isinstance(raw, (str, bytes)):
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise InvalidDescriptionError(f"not valid JSON ({e})") from e
    else:
        document = raw
    if not isinstance(document, Mapping):
        raise InvalidDescriptionError("top level must be an object")
    return dict(document)


def _check_structure(document: Mapping[str, Any]) -> None:
    version = document.get("openapi")
    if not isinstance(version, str) or not isinstance(document.get("paths"), Mapping):
        if "swagger" in document:
            raise InvalidDescriptionError("Swagger 2.0 documents are not supported; convert to OpenAPI 3.x")
        raise InvalidDescriptionError("missing 'openapi' version or 'paths' map")
    major = version.split(".", 1)[0]
    if not major.isdigit():
        raise InvalidDescriptionError(f"unrecognised OpenAPI version '{version}'")
    if int(major) != 3:
        raise InvalidDescriptionError(f"OpenAPI {version} is not supported; only 3.x is")


def _source_metadata(document: Mapping[str, Any], fingerprint: str) -> SourceMetadata:
    info = document.get("info") if isinstance(document.get("info"), Mapping) else {}
    servers = document.get("servers")
    base_address = None
    if isinstance(servers, list) and servers and isinstance(servers[0], Mapping):
        url = servers[0].get("url")
        if isinstance(url, str) and url:
            base_address = url
    return SourceMetadata(
        title=info.get("title") or "Untitled API",
        description=info.get("description"),
        version=str(info["version"]) if info.get("version") is not None else None,
        base_address=base_address,
        fingerprint=fingerprint,
    )


def _merge_parameters(
    document: Mapping[str, Any], path_level: Any, operation_level: Any
) -> Optional[Dict[str, Any]]:
    """Merge path-level and operation-level parameters into one object schema.

    Parameters are keyed by (location, name); the operation-level declaration
    wins. Each property records its location under ``in``.
    """
    merged: Dict[str, Mapping[str, Any]] = {}
    for declared in (path_level, operation_level):
        if not isinstance(declared, list):
            continue
        for raw in declared:
            param = resolve_node(raw, document)
            if not isinstance(param, Mapping) or not param.get("name") or not param.get("in"):
                continue
            merged[f"{param['in']}:{param['name']}"] = param

    if not merged:
        return None

    properties: Dict[str, Any] = {}
    required: List[str] = []
    for param in merged.values():
        schema = sanitize_schema(param.get("schema") or {"type": "string"}, document)
        prop = dict(schema)
        if param.get("description"):
            prop["description"] = param["description"]
        prop["in"] = param["in"]
        properties[param["name"]] = prop
        if param.get("required") or param["in"] == "path":
            if param["name"] not in required:
                required.append(param["name"])
    schema_out: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema_out["required"] = required
    return schema_out


def _body_schema(document: Mapping[str, Any], operation: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    body = resolve_node(operation.get("requestBody"), document)
    if not isinstance(body, Mapping):
        return None
    content = body.get("content")
    if not isinstance(content, Mapping):
        return None
    candidates = [content.get(ct) for ct in _BODY_CONTENT_TYPES] + list(content.values())
    for media in candidates:
        if isinstance(media, Mapping) and isinstance(media.get("schema"), Mapping):
            return sanitize_schema(media["schema"], document)
    return None


def compile_openapi(raw: DescriptionInput) -> CompiledDescription:
    """Compile an OpenAPI 3.x description.

    Args:
        raw: Parsed document or its JSON text

    Returns:
        Source metadata and the ordered tool definitions

    Raises:
        InvalidDescriptionError: When the document is not a structurally valid OpenAPI 3.x description
    """
    document = load_description(raw)
    _check_structure(document)
    fingerprint = fingerprint_document(document)
    metadata = _source_metadata(document, fingerprint)

    tools: List[ToolDefinition] = []
    seen: Set[str] = set()
    for path, path_item in document["paths"].items():
        path_item = resolve_node(path_item, document)
        if not isinstance(path_item, Mapping):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, Mapping):
                continue

            operation_id = operation.get("operationId")
            if isinstance(operation_id, str) and operation_id:
                key = operation_id
            else:
                key = synthesize_operation_key(method, path)
            if key in seen:
                logger.warning("Skipping duplicate operation key %s (%s %s)", key, method.upper(), path)
                continue
            seen.add(key)

            risk, confirm = apply_override(operation, risk_for_method(method))
            tags = operation.get("tags")
            tools.append(
                ToolDefinition(
                    operation_key=key,
                    name=operation.get("summary") or f"{method.upper()} {path}",
                    description=operation.get("description"),
                    method=method.upper(),
                    path=path,
                    parameters=_merge_parameters(document, path_item.get("parameters"), operation.get("parameters")),
                    body_schema=_body_schema(document, operation),
                    risk_level=risk,
                    requires_confirmation=confirm,
                    tags=[tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else [],
                )
            )

    logger.info("Compiled '%s' into %d tools", metadata.title, len(tools))
    return CompiledDescription(source_metadata=metadata, tools=tools)
