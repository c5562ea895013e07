"""
Tool catalog repository.

Tools are inserted, refreshed and soft-deactivated by catalog synchronization;
the only other mutation is an operator risk override.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.models import RiskLevel, Tool, ToolDefinition

from ..base import _utc_now
from ..entities.tools import ToolEntity
from .base import AsyncBaseRepository, QueryBuilder


class ToolRepository(AsyncBaseRepository[ToolEntity, Tool]):
    """Repository for catalog tools."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ToolEntity)

    async def create(self, item: Tool) -> Tool:
        entity = ToolEntity.from_domain(item)
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity.to_domain()

    async def get_by_id(self, entity_id: str) -> Optional[Tool]:
        entity = await self._get_entity(entity_id)
        return entity.to_domain() if entity else None

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[Tool]:
        stmt = select(ToolEntity).order_by(ToolEntity.name)  # type: ignore
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, ToolEntity, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return [entity.to_domain() for entity in result.all()]

    async def list_for_source(self, source_id: str, *, active_only: bool = False) -> List[Tool]:
        filters: Dict[str, Any] = {"source_id": source_id}
        if active_only:
            filters["is_active"] = True
        return await self.list(filters=filters)

    async def entities_for_source(self, source_id: str) -> List[ToolEntity]:
        """Every row of a source, active or not, for synchronization diffing."""
        stmt = select(ToolEntity).where(ToolEntity.source_id == source_id)
        result = await self.session.exec(stmt)
        return list(result.all())

    def stage_insert(self, source_id: str, definition: ToolDefinition) -> ToolEntity:
        """Add a new row to the unit of work without committing."""
        entity = ToolEntity.from_domain(Tool(source_id=source_id, **definition.model_dump()))
        self.session.add(entity)
        return entity

    def stage_update(self, entity: ToolEntity, definition: ToolDefinition) -> None:
        entity.apply_definition(definition)
        self.session.add(entity)

    def stage_deactivate(self, entity: ToolEntity) -> None:
        entity.is_active = False
        entity.updated_at = _utc_now()
        self.session.add(entity)

    async def override_risk(
        self, tool_id: str, risk_level: RiskLevel, requires_confirmation: Optional[bool] = None
    ) -> Optional[Tool]:
        """Pin a tool's risk classification so later re-syncs keep it.

        ``requires_confirmation`` defaults to what ``risk_level`` implies.
        """
        entity = await self._get_entity(tool_id)
        if entity is None:
            return None
        entity.risk_level = risk_level.value
        if requires_confirmation is None:
            requires_confirmation = risk_level is RiskLevel.dangerous
        entity.requires_confirmation = requires_confirmation
        entity.risk_overridden = True
        entity.updated_at = _utc_now()
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity.to_domain()
