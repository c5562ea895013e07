"""
Tool-protocol listing compiler.

Converts the result of a ``tools/list`` call into tool definitions. Protocol
tools carry no HTTP method, so they use the ``MCP`` pseudo-method and are
risk-classified from their name and description.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set

from action_relay.core.errors import InvalidDescriptionError
from action_relay.core.models import CompiledDescription, SourceMetadata, ToolDefinition

from .openapi import fingerprint_document
from .risk import protocol_tool_tags, requires_confirmation_for, risk_for_protocol_tool
from .sanitize import sanitize_schema

logger = logging.getLogger(__name__)

PROTOCOL_METHOD = "MCP"


def humanize_name(name: str) -> str:
    """``read_file`` / ``listUsers`` / ``get-issue`` -> ``Read File`` / ``List Users`` / ``Get Issue``."""
    spaced = re.sub(r"([a-z])([A-Z])", r"\1 \2", name.replace("_", " ").replace("-", " "))
    return " ".join(word.capitalize() for word in spaced.split())


def convert_input_schema(input_schema: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not isinstance(input_schema, Mapping):
        return {"type": "object", "properties": {}}
    schema = sanitize_schema(input_schema)
    result: Dict[str, Any] = {
        "type": schema.get("type") or "object",
        "properties": schema.get("properties") or {},
    }
    if schema.get("required"):
        result["required"] = list(schema["required"])
    if "additionalProperties" in schema:
        result["additionalProperties"] = schema["additionalProperties"]
    return result


def compile_protocol_tools(
    listing: Sequence[Mapping[str, Any]],
    *,
    server_info: Optional[Mapping[str, Any]] = None,
) -> CompiledDescription:
    """Compile a tool listing.

    Args:
        listing: The ``tools`` array of one or more ``tools/list`` results
        server_info: ``serverInfo`` from the handshake, used for metadata

    Returns:
        Source metadata and one definition per uniquely named tool
    """
    if not isinstance(listing, Sequence) or isinstance(listing, (str, bytes)):
        raise InvalidDescriptionError("tool listing must be an array")

    info = server_info or {}
    metadata = SourceMetadata(
        title=info.get("name") or "Tool server",
        version=info.get("version"),
        fingerprint=fingerprint_document(list(listing)),
    )

    tools: List[ToolDefinition] = []
    seen: Set[str] = set()
    for entry in listing:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str) or not entry["name"]:
            logger.warning("Skipping tool listing entry without a name")
            continue
        name = entry["name"]
        if name in seen:
            logger.warning("Skipping duplicate tool %s", name)
            continue
        seen.add(name)

        description = entry.get("description")
        risk = risk_for_protocol_tool(name, description)
        tools.append(
            ToolDefinition(
                operation_key=name,
                name=humanize_name(name),
                description=description,
                method=PROTOCOL_METHOD,
                path=name,
                parameters=convert_input_schema(entry.get("inputSchema")),
                protocol_tool_name=name,
                risk_level=risk,
                requires_confirmation=requires_confirmation_for(risk),
                tags=protocol_tool_tags(name, description),
            )
        )

    logger.info("Compiled %d protocol tools from '%s'", len(tools), metadata.title)
    return CompiledDescription(source_metadata=metadata, tools=tools)
