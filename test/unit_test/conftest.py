"""Shared fakes for unit tests: an in-memory tool server and its transport."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Set, Union

import pytest

from action_relay.protocol.framing import encode_message

CallResult = Union[Dict[str, Any], Callable[[Dict[str, Any]], Dict[str, Any]]]


def _result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


class FakeTransport:
    """Byte-stream transport wired straight into a ScriptedToolServer."""

    def __init__(self, server: "ScriptedToolServer", env: Optional[Dict[str, Any]] = None) -> None:
        self.server = server
        self.env = dict(env or {})
        self.inbound: "asyncio.Queue[bytes]" = asyncio.Queue()
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.server.open_count += 1
        if self.server.open_delay:
            await asyncio.sleep(self.server.open_delay)
        if self.server.fail_open:
            raise OSError("spawn failed")
        self.opened = True

    async def write(self, data: bytes) -> None:
        if self.closed:
            raise ConnectionError("transport closed")
        for line in data.splitlines():
            for reply in self.server.handle(json.loads(line)):
                self.inbound.put_nowait(encode_message(reply))

    async def read(self) -> bytes:
        return await self.inbound.get()

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.inbound.put_nowait(b"")

    def push(self, message: Dict[str, Any]) -> None:
        """Deliver a server-initiated message."""
        self.inbound.put_nowait(encode_message(message))

    def hang_up(self) -> None:
        """Simulate the server process exiting."""
        self.inbound.put_nowait(b"")


class ScriptedToolServer:
    """In-memory tool server answering the handshake, tools/list and tools/call."""

    def __init__(self, tools: Optional[List[Dict[str, Any]]] = None) -> None:
        self.tools = tools or []
        self.server_info = {"name": "fake-tools", "version": "1.0.0"}
        self.capabilities: Dict[str, Any] = {"tools": {}}
        self.call_results: Dict[str, CallResult] = {}
        self.silent_methods: Set[str] = set()
        self.page_size: Optional[int] = None
        self.open_delay = 0.0
        self.fail_open = False
        self.open_count = 0
        self.received: List[Dict[str, Any]] = []
        self.transports: List[FakeTransport] = []

    def transport(self, source: Any = None, env: Optional[Dict[str, Any]] = None) -> FakeTransport:
        transport = FakeTransport(self, env)
        self.transports.append(transport)
        return transport

    def methods(self) -> List[str]:
        return [m["method"] for m in self.received if "method" in m]

    def handle(self, message: Dict[str, Any]) -> List[Dict[str, Any]]:
        self.received.append(message)
        method = message.get("method")
        request_id = message.get("id")
        if method is None or request_id is None or method in self.silent_methods:
            return []
        params = message.get("params") or {}

        if method == "initialize":
            return [
                _result(
                    request_id,
                    {
                        "protocolVersion": params.get("protocolVersion"),
                        "capabilities": self.capabilities,
                        "serverInfo": self.server_info,
                    },
                )
            ]
        if method == "tools/list":
            if self.page_size is None:
                return [_result(request_id, {"tools": self.tools})]
            start = int(params.get("cursor") or 0)
            end = start + self.page_size
            page: Dict[str, Any] = {"tools": self.tools[start:end]}
            if end < len(self.tools):
                page["nextCursor"] = str(end)
            return [_result(request_id, page)]
        if method == "tools/call":
            handler = self.call_results.get(params.get("name"))
            if handler is None:
                return [_error(request_id, -32602, f"Unknown tool: {params.get('name')}")]
            arguments = params.get("arguments") or {}
            return [_result(request_id, handler(arguments) if callable(handler) else handler)]
        return [_error(request_id, -32601, f"Method not found: {method}")]


async def wait_for_condition(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def tool_server() -> ScriptedToolServer:
    return ScriptedToolServer(
        tools=[
            {
                "name": "read_file",
                "description": "Read a file",
                "inputSchema": {"type": "object", "properties": {"path": {"type": "string"}}, "required": ["path"]},
            },
            {"name": "delete_file", "description": "Delete a file", "inputSchema": {"type": "object"}},
        ]
    )


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds (fails the test after the timeout)."""
    return wait_for_condition
