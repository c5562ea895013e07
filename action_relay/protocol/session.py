"""
Tool-protocol session.

One JSON-RPC 2.0 conversation with one tool server over a byte-stream
transport. Requests are correlated to responses by a per-session counter;
every request has its own timeout, and a timeout abandons only that request.
When the stream ends every in-flight request fails at once and the session
reports itself closed through ``on_close``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional

from action_relay.core.errors import (
    ProtocolConnectionError,
    ProtocolError,
    ProtocolRemoteError,
    ProtocolSessionClosedError,
    ProtocolTimeoutError,
)
from action_relay.core.models import SessionState, SessionStatus

from .framing import MessageFramer, encode_message, make_notification, make_request
from .transport import ByteStreamTransport

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"
METHOD_NOT_FOUND = -32601

NotificationHandler = Callable[[str, Dict[str, Any]], None]
CloseCallback = Callable[["ProtocolSession"], None]


class ProtocolSession:
    """A single handshaken session with a tool server."""

    def __init__(
        self,
        source_id: str,
        transport: ByteStreamTransport,
        *,
        request_timeout: float = 30.0,
        handshake_timeout: float = 10.0,
        protocol_version: str = DEFAULT_PROTOCOL_VERSION,
        client_info: Optional[Dict[str, str]] = None,
        on_close: Optional[CloseCallback] = None,
    ) -> None:
        self.source_id = source_id
        self._transport = transport
        self._request_timeout = request_timeout
        self._handshake_timeout = handshake_timeout
        self._protocol_version = protocol_version
        self._client_info = client_info or {"name": "action-relay", "version": "0.1.0"}
        self._on_close = on_close

        self._framer = MessageFramer()
        self._ids = itertools.count(1)
        self._pending: Dict[int, asyncio.Future[Any]] = {}
        self._write_lock = asyncio.Lock()
        self._reader_task: Optional[asyncio.Task[None]] = None
        self._handlers: List[NotificationHandler] = []

        self._state = SessionState.disconnected
        self._close_reason: Optional[str] = None
        self.server_info: Optional[Dict[str, Any]] = None
        self.capabilities: Dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.ready

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def status(self) -> SessionStatus:
        return SessionStatus(
            source_id=self.source_id,
            state=self._state,
            server_info=self.server_info,
            capabilities=self.capabilities,
            pending_requests=len(self._pending),
        )

    def add_notification_handler(self, handler: NotificationHandler) -> None:
        self._handlers.append(handler)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Open the transport and perform the initialize handshake.

        Raises:
            ProtocolConnectionError: The transport could not be opened or the handshake failed
        """
        if self._state is not SessionState.disconnected:
            raise ProtocolSessionClosedError(self.source_id, f"cannot open a session in state '{self._state.value}'")
        self._state = SessionState.handshaking

        try:
            await self._transport.open()
        except (OSError, ValueError) as e:
            self._mark_closed(f"transport failed to open: {e}")
            raise ProtocolConnectionError(self.source_id, str(e)) from e

        self._reader_task = asyncio.create_task(self._read_loop(), name=f"protocol-reader-{self.source_id}")
        try:
            result = await self._send_request(
                "initialize",
                {
                    "protocolVersion": self._protocol_version,
                    "capabilities": {"roots": {"listChanged": True}},
                    "clientInfo": self._client_info,
                },
                self._handshake_timeout,
            )
            await self._send(make_notification("notifications/initialized"))
        except ProtocolError as e:
            await self.close(reason="handshake failed")
            raise ProtocolConnectionError(self.source_id, f"handshake failed: {e}") from e

        result = result if isinstance(result, dict) else {}
        self.server_info = result.get("serverInfo")
        self.capabilities = result.get("capabilities") or {}
        self._state = SessionState.ready
        logger.info(
            "Protocol session ready for source %s (server=%s)",
            self.source_id,
            (self.server_info or {}).get("name", "unknown"),
        )

    async def close(self, reason: str = "closed by client") -> None:
        """Tear the session down; in-flight requests fail with ProtocolSessionClosedError."""
        self._mark_closed(reason)
        task, self._reader_task = self._reader_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._transport.close()

    def _mark_closed(self, reason: str) -> bool:
        if self._state is SessionState.closed:
            return False
        self._state = SessionState.closed
        self._close_reason = reason
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(ProtocolSessionClosedError(self.source_id, reason))
        if pending:
            logger.warning(
                "Protocol session %s closed with %d requests in flight: %s", self.source_id, len(pending), reason
            )
        else:
            logger.info("Protocol session %s closed: %s", self.source_id, reason)
        if self._on_close is not None:
            self._on_close(self)
        return True

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self, method: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None
    ) -> Any:
        """Send a request and wait for its response.

        Args:
            method: JSON-RPC method name
            params: Request parameters
            timeout: Seconds to wait; defaults to the session's request timeout

        Returns:
            The ``result`` member of the response

        Raises:
            ProtocolTimeoutError: No response within the timeout; the session stays usable
            ProtocolRemoteError: The server answered with an error object
            ProtocolSessionClosedError: The session is not ready or closed while waiting
        """
        if self._state is not SessionState.ready:
            raise ProtocolSessionClosedError(self.source_id, self._close_reason or f"state is '{self._state.value}'")
        effective_timeout = timeout if timeout is not None else self._request_timeout
        return await self._send_request(method, params or {}, effective_timeout)

    async def _send_request(self, method: str, params: Dict[str, Any], timeout: float) -> Any:
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            try:
                await self._send(make_request(request_id, method, params))
            except ProtocolSessionClosedError as e:
                self._pending.pop(request_id, None)
                await self.close(reason=str(e))
                raise
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Protocol request %s (%s) on source %s timed out", request_id, method, self.source_id)
            raise ProtocolTimeoutError(method, timeout) from None
        finally:
            self._pending.pop(request_id, None)

    async def _send(self, message: Dict[str, Any]) -> None:
        async with self._write_lock:
            try:
                await self._transport.write(encode_message(message))
            except (OSError, RuntimeError) as e:
                raise ProtocolSessionClosedError(self.source_id, f"write failed: {e}") from e

    async def list_tools(self) -> List[Dict[str, Any]]:
        """Return every tool the server lists, following ``nextCursor`` pages."""
        tools: List[Dict[str, Any]] = []
        cursor: Optional[str] = None
        seen = set()
        while True:
            result = await self.request("tools/list", {"cursor": cursor} if cursor else {}) or {}
            tools.extend(result.get("tools") or [])
            cursor = result.get("nextCursor")
            if not cursor or cursor in seen:
                return tools
            seen.add(cursor)

    async def call_tool(self, name: str, arguments: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        result = await self.request("tools/call", {"name": name, "arguments": arguments}, timeout)
        return result if isinstance(result, dict) else {"content": [], "isError": False}

    async def list_resources(self) -> List[Dict[str, Any]]:
        if not self.capabilities.get("resources"):
            return []
        result = await self.request("resources/list") or {}
        return result.get("resources") or []

    async def read_resource(self, uri: str) -> Dict[str, Any]:
        return await self.request("resources/read", {"uri": uri}) or {}

    async def list_prompts(self) -> List[Dict[str, Any]]:
        if not self.capabilities.get("prompts"):
            return []
        result = await self.request("prompts/list") or {}
        return result.get("prompts") or []

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        reason = "stream closed by server"
        try:
            while True:
                chunk = await self._transport.read()
                if not chunk:
                    break
                for message in self._framer.feed(chunk):
                    await self._dispatch(message)
        except asyncio.CancelledError:
            reason = "reader cancelled"
            raise
        except Exception as e:
            reason = f"read failed: {e}"
            logger.error("Protocol reader for source %s failed", self.source_id, exc_info=True)
        finally:
            if self._mark_closed(reason):
                await self._transport.close()

    async def _dispatch(self, message: Dict[str, Any]) -> None:
        method = message.get("method")
        message_id = message.get("id")

        if isinstance(method, str):
            if message_id is None:
                self._notify(method, message.get("params") or {})
            else:
                await self._answer_server_request(message_id, method)
            return

        if message_id is None:
            logger.debug("Ignoring protocol message without id or method")
            return

        future = self._pending.get(message_id)
        if future is None or future.done():
            logger.debug("Dropping response for unknown or expired request %s", message_id)
            return

        error = message.get("error")
        if error is not None:
            error = error if isinstance(error, dict) else {"message": str(error)}
            future.set_exception(
                ProtocolRemoteError(error.get("code"), str(error.get("message") or "unknown error"), error.get("data"))
            )
        else:
            future.set_result(message.get("result"))

    def _notify(self, method: str, params: Dict[str, Any]) -> None:
        logger.debug("Notification from source %s: %s", self.source_id, method)
        for handler in list(self._handlers):
            try:
                handler(method, params)
            except Exception:
                logger.error("Notification handler failed for %s", method, exc_info=True)

    async def _answer_server_request(self, request_id: Any, method: str) -> None:
        if method == "ping":
            reply: Dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "result": {}}
        else:
            reply = {
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": METHOD_NOT_FOUND, "message": f"Method not found: {method}"},
            }
        await self._send(reply)
