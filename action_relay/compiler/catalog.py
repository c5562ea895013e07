"""
Catalog service.

Registration and lookup of capability sources and their tools, plus the
operator risk override. Compilation and diffing live in :mod:`.sync`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.database.repositories import build_repos
from action_relay.core.errors import CapabilitySourceNotFoundError, ToolNotFoundError
from action_relay.core.models import CapabilitySource, RiskLevel, Tool

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def register_source(self, source: CapabilitySource) -> CapabilitySource:
        async with self._session_factory() as session:
            created = await build_repos(session).sources.create(source)
        logger.info("Registered %s source %s (%s)", created.transport.value, created.name, created.id)
        return created

    async def get_source(self, source_id: str) -> CapabilitySource:
        async with self._session_factory() as session:
            source = await build_repos(session).sources.get_by_id(source_id)
        if source is None:
            raise CapabilitySourceNotFoundError(source_id)
        return source

    async def list_sources(self, *, active_only: bool = False) -> List[CapabilitySource]:
        async with self._session_factory() as session:
            return await build_repos(session).sources.list(filters={"is_active": True} if active_only else None)

    async def deactivate_source(self, source_id: str) -> CapabilitySource:
        async with self._session_factory() as session:
            source = await build_repos(session).sources.set_active(source_id, False)
        if source is None:
            raise CapabilitySourceNotFoundError(source_id)
        return source

    async def list_tools(self, source_id: str, *, include_inactive: bool = False) -> List[Tool]:
        await self.get_source(source_id)
        async with self._session_factory() as session:
            return await build_repos(session).tools.list_for_source(source_id, active_only=not include_inactive)

    async def get_tool(self, tool_id: str) -> Tool:
        async with self._session_factory() as session:
            tool = await build_repos(session).tools.get_by_id(tool_id)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        return tool

    async def override_risk(
        self, tool_id: str, risk_level: RiskLevel, requires_confirmation: Optional[bool] = None
    ) -> Tool:
        async with self._session_factory() as session:
            tool = await build_repos(session).tools.override_risk(tool_id, risk_level, requires_confirmation)
        if tool is None:
            raise ToolNotFoundError(tool_id)
        logger.info("Risk of tool %s pinned to %s", tool_id, risk_level.value)
        return tool
