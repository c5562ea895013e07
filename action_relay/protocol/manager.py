"""
Protocol session manager.

Keeps at most one live session per capability source. Concurrent callers
asking for a source that is still handshaking all wait on the same connect
task, so a source is never connected twice. Sessions that close remove
themselves from the registry, and the next request reconnects.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from action_relay.core.errors import UnsupportedTransportError
from action_relay.core.models import CapabilitySource, SessionState, SessionStatus

from .session import ProtocolSession
from .transport import ByteStreamTransport, build_transport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[CapabilitySource, Optional[Mapping[str, Any]]], ByteStreamTransport]


class ProtocolSessionManager:
    """Registry of protocol sessions keyed by source id."""

    def __init__(
        self,
        *,
        request_timeout: float = 30.0,
        handshake_timeout: float = 10.0,
        protocol_version: str = "2024-11-05",
        client_info: Optional[Dict[str, str]] = None,
        transport_factory: TransportFactory = build_transport,
    ) -> None:
        self._request_timeout = request_timeout
        self._handshake_timeout = handshake_timeout
        self._protocol_version = protocol_version
        self._client_info = client_info
        self._transport_factory = transport_factory
        self._sessions: Dict[str, ProtocolSession] = {}
        self._connecting: Dict[str, asyncio.Task[ProtocolSession]] = {}

    async def get_session(
        self, source: CapabilitySource, *, env: Optional[Mapping[str, Any]] = None
    ) -> ProtocolSession:
        """Return the ready session for ``source``, connecting if needed.

        Args:
            source: A protocol source
            env: Extra environment for a spawned server; only used when a new session is created

        Raises:
            ProtocolConnectionError: The transport or handshake failed
        """
        if not source.transport.is_protocol:
            raise UnsupportedTransportError(source.transport.value, "protocol sessions")

        session = self._sessions.get(source.id)
        if session is not None:
            if session.is_ready:
                return session
            self._sessions.pop(source.id, None)

        task = self._connecting.get(source.id)
        if task is None:
            task = asyncio.create_task(self._connect(source, env), name=f"protocol-connect-{source.id}")
            self._connecting[source.id] = task
            task.add_done_callback(lambda done, source_id=source.id: self._forget_connect(source_id, done))
        # Shield so one cancelled waiter does not abort the handshake for the others
        return await asyncio.shield(task)

    def _forget_connect(self, source_id: str, task: "asyncio.Task[ProtocolSession]") -> None:
        if self._connecting.get(source_id) is task:
            del self._connecting[source_id]
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Connecting to source %s failed: %s", source_id, task.exception())

    async def _connect(self, source: CapabilitySource, env: Optional[Mapping[str, Any]]) -> ProtocolSession:
        logger.info("Opening protocol session for source %s (%s)", source.id, source.transport.value)
        session = ProtocolSession(
            source.id,
            self._transport_factory(source, env),
            request_timeout=self._request_timeout,
            handshake_timeout=self._handshake_timeout,
            protocol_version=self._protocol_version,
            client_info=self._client_info,
            on_close=self._on_session_closed,
        )
        await session.open()
        self._sessions[source.id] = session
        return session

    def _on_session_closed(self, session: ProtocolSession) -> None:
        if self._sessions.get(session.source_id) is session:
            del self._sessions[session.source_id]
            logger.info("Removed closed protocol session for source %s", session.source_id)

    async def list_tools(self, source: CapabilitySource) -> List[Dict[str, Any]]:
        session = await self.get_session(source)
        return await session.list_tools()

    async def call_tool(
        self,
        source: CapabilitySource,
        name: str,
        arguments: Dict[str, Any],
        *,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        session = await self.get_session(source, env=env)
        return await session.call_tool(name, arguments, timeout=timeout)

    async def disconnect(self, source_id: str) -> bool:
        """Close the session of one source. Returns False when none was open."""
        session = self._sessions.pop(source_id, None)
        if session is None:
            return False
        await session.close(reason="disconnected")
        return True

    async def disconnect_all(self) -> None:
        for task in list(self._connecting.values()):
            task.cancel()
        sessions = list(self._sessions.values())
        self._sessions.clear()
        await asyncio.gather(*(session.close(reason="shutdown") for session in sessions), return_exceptions=True)

    def is_connected(self, source_id: str) -> bool:
        session = self._sessions.get(source_id)
        return session is not None and session.is_ready

    def status(self, source_id: str) -> SessionStatus:
        session = self._sessions.get(source_id)
        if session is not None:
            return session.status()
        state = SessionState.handshaking if source_id in self._connecting else SessionState.disconnected
        return SessionStatus(source_id=source_id, state=state)
