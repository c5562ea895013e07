"""
Service container.

Builds the long-lived collaborators (session factory, protocol session
manager, executor, services) once per application.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.audit import ActionService, CredentialProvider
from action_relay.compiler import CatalogService, CatalogSynchronizer
from action_relay.core.config import Settings
from action_relay.executor import ActionExecutor
from action_relay.protocol import ProtocolSessionManager
from action_relay.protocol.manager import TransportFactory
from action_relay.protocol.transport import build_transport


@dataclass
class RelayServices:
    """Convenience bundle of every service for dependency injection."""

    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    protocol_sessions: ProtocolSessionManager
    executor: ActionExecutor
    catalog: CatalogService
    synchronizer: CatalogSynchronizer
    actions: ActionService

    async def aclose(self) -> None:
        await self.protocol_sessions.disconnect_all()
        await self.executor.aclose()


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    transport_factory: TransportFactory = build_transport,
    credentials: Optional[CredentialProvider] = None,
) -> RelayServices:
    protocol = settings.protocol
    limits = settings.executor
    protocol_sessions = ProtocolSessionManager(
        request_timeout=protocol.request_timeout_seconds,
        handshake_timeout=protocol.handshake_timeout_seconds,
        protocol_version=protocol.protocol_version,
        client_info={"name": protocol.client_name, "version": protocol.client_version},
        transport_factory=transport_factory,
    )
    executor = ActionExecutor(
        http_client=http_client,
        protocol_sessions=protocol_sessions,
        timeout=limits.http_timeout_seconds,
        max_summary_chars=limits.max_summary_chars,
        max_error_chars=limits.max_error_chars,
    )
    return RelayServices(
        settings=settings,
        session_factory=session_factory,
        protocol_sessions=protocol_sessions,
        executor=executor,
        catalog=CatalogService(session_factory),
        synchronizer=CatalogSynchronizer(session_factory, protocol_sessions=protocol_sessions),
        actions=ActionService(
            session_factory,
            executor,
            credentials=credentials,
            max_response_bytes=limits.max_response_bytes,
        ),
    )
