"""
Catalog synchronization.

Applies a compiled description to the stored catalog of one source:

- an unchanged fingerprint is a no-op unless forced;
- tools are matched by operation key, refreshed in place and reactivated;
- new operations are inserted;
- operations missing from the description are soft-deactivated, never deleted.

The whole diff plus the new fingerprint is committed as one unit, and nothing
is written when compilation fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.database.entities import ToolEntity
from action_relay.core.database.repositories import build_repos
from action_relay.core.errors import CapabilitySourceNotFoundError, UnsupportedTransportError
from action_relay.core.models import CapabilitySource, CompiledDescription, SyncReport, ToolDefinition

from .openapi import DescriptionInput, compile_openapi
from .protocol_tools import compile_protocol_tools

if TYPE_CHECKING:
    from action_relay.protocol.manager import ProtocolSessionManager

logger = logging.getLogger(__name__)


@dataclass
class SyncPlan:
    inserts: List[ToolDefinition] = field(default_factory=list)
    updates: List[Tuple[ToolEntity, ToolDefinition]] = field(default_factory=list)
    deactivations: List[ToolEntity] = field(default_factory=list)


def plan_sync(existing: Sequence[ToolEntity], incoming: Sequence[ToolDefinition]) -> SyncPlan:
    """Diff stored rows against freshly compiled definitions by operation key."""
    plan = SyncPlan()
    by_key = {entity.operation_key: entity for entity in existing}
    incoming_keys = set()
    for definition in incoming:
        incoming_keys.add(definition.operation_key)
        entity = by_key.get(definition.operation_key)
        if entity is None:
            plan.inserts.append(definition)
        else:
            plan.updates.append((entity, definition))
    plan.deactivations = [
        entity for key, entity in by_key.items() if key not in incoming_keys and entity.is_active
    ]
    return plan


class CatalogSynchronizer:
    """Keeps the stored tool catalog of a source in step with its description."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        protocol_sessions: Optional["ProtocolSessionManager"] = None,
    ) -> None:
        self._session_factory = session_factory
        self._protocol_sessions = protocol_sessions

    async def _load_source(self, source_id: str) -> CapabilitySource:
        async with self._session_factory() as session:
            source = await build_repos(session).sources.get_by_id(source_id)
        if source is None:
            raise CapabilitySourceNotFoundError(source_id)
        return source

    async def sync_description(
        self, source_id: str, description: DescriptionInput, *, force: bool = False
    ) -> SyncReport:
        """Compile an OpenAPI description and apply it to an HTTP source."""
        source = await self._load_source(source_id)
        if source.transport.is_protocol:
            raise UnsupportedTransportError(source.transport.value, "API description sync")
        compiled = compile_openapi(description)
        return await self.apply(source_id, compiled, force=force)

    async def sync_protocol_source(self, source_id: str, *, force: bool = False) -> SyncReport:
        """Fetch the tool listing of a protocol source and apply it."""
        source = await self._load_source(source_id)
        if not source.transport.is_protocol:
            raise UnsupportedTransportError(source.transport.value, "tool listing sync")
        if self._protocol_sessions is None:
            raise UnsupportedTransportError(source.transport.value, "tool listing sync without a session manager")
        listing = await self._protocol_sessions.list_tools(source)
        status = self._protocol_sessions.status(source.id)
        compiled = compile_protocol_tools(listing, server_info=status.server_info)
        return await self.apply(source_id, compiled, force=force)

    async def apply(self, source_id: str, compiled: CompiledDescription, *, force: bool = False) -> SyncReport:
        """Apply a compiled description in a single transaction.

        Args:
            source_id: Source whose catalog is synchronized
            compiled: Output of a compiler
            force: Re-apply even when the fingerprint is unchanged

        Returns:
            Counts of inserted, updated and deactivated tools
        """
        fingerprint = compiled.source_metadata.fingerprint
        async with self._session_factory() as session:
            repos = build_repos(session)
            source = await repos.sources.get_by_id(source_id)
            if source is None:
                raise CapabilitySourceNotFoundError(source_id)

            if not force and source.fingerprint == fingerprint:
                logger.info("Source %s unchanged (fingerprint %s); skipping sync", source_id, fingerprint[:12])
                return SyncReport(source_id=source_id, changed=False, fingerprint=fingerprint)

            plan = plan_sync(await repos.tools.entities_for_source(source_id), compiled.tools)
            try:
                for definition in plan.inserts:
                    repos.tools.stage_insert(source_id, definition)
                for entity, definition in plan.updates:
                    repos.tools.stage_update(entity, definition)
                for entity in plan.deactivations:
                    repos.tools.stage_deactivate(entity)
                await repos.sources.stamp_fingerprint(
                    source_id, fingerprint, base_address=compiled.source_metadata.base_address
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        report = SyncReport(
            source_id=source_id,
            changed=True,
            fingerprint=fingerprint,
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            deactivated=len(plan.deactivations),
        )
        logger.info(
            "Synchronized source %s: %d inserted, %d updated, %d deactivated",
            source_id,
            report.inserted,
            report.updated,
            report.deactivated,
        )
        return report
