"""
Newline-delimited JSON-RPC framing.

Chunks from a byte stream are buffered until a newline; each complete line is
one JSON message. The trailing partial line is kept for the next chunk.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


class MessageFramer:
    """Incremental decoder for newline-delimited JSON messages."""

    def __init__(self, max_buffer_bytes: int = 16 * 1024 * 1024) -> None:
        self._buffer = b""
        self._max_buffer_bytes = max_buffer_bytes

    @property
    def pending(self) -> bytes:
        """Bytes of an incomplete trailing line."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Consume a chunk and return every complete message it finished.

        Blank lines are ignored; lines that are not JSON objects are logged and dropped.
        """
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        if len(self._buffer) > self._max_buffer_bytes:
            logger.warning("Discarding %d bytes of unterminated protocol output", len(self._buffer))
            self._buffer = b""

        messages: List[Dict[str, Any]] = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                message = json.loads(line)
            except ValueError:
                logger.debug("Ignoring non-JSON protocol line: %r", line[:200])
                continue
            if isinstance(message, dict):
                messages.append(message)
            else:
                logger.debug("Ignoring non-object protocol message")
        return messages


def encode_message(message: Dict[str, Any]) -> bytes:
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8") + b"\n"


def make_request(request_id: int, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "method": method, "params": params}


def make_notification(method: str, params: Dict[str, Any] | None = None) -> Dict[str, Any]:
    message: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    return message
