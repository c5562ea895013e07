"""
Capability source repository.

Data access for registered sources, including the fingerprint stamp written
by catalog synchronization.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.models import CapabilitySource

from ..base import _utc_now
from ..entities.capability_sources import CapabilitySourceEntity
from .base import AsyncBaseRepository, QueryBuilder


class CapabilitySourceRepository(AsyncBaseRepository[CapabilitySourceEntity, CapabilitySource]):
    """Repository for capability sources."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CapabilitySourceEntity)

    async def create(self, item: CapabilitySource) -> CapabilitySource:
        entity = CapabilitySourceEntity.from_domain(item)
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity.to_domain()

    async def get_by_id(self, entity_id: str) -> Optional[CapabilitySource]:
        entity = await self._get_entity(entity_id)
        return entity.to_domain() if entity else None

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[CapabilitySource]:
        stmt = select(CapabilitySourceEntity).order_by(CapabilitySourceEntity.created_at)  # type: ignore
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, CapabilitySourceEntity, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return [entity.to_domain() for entity in result.all()]

    async def stamp_fingerprint(
        self,
        source_id: str,
        fingerprint: str,
        *,
        base_address: Optional[str] = None,
        synced_at: Optional[datetime] = None,
    ) -> None:
        """Stage the fingerprint of the last applied description. The caller commits.

        ``base_address`` only fills an empty address; an operator-set value is kept.
        """
        entity = await self._get_entity(source_id)
        if entity is None:
            return
        entity.fingerprint = fingerprint
        if base_address and not entity.base_address:
            entity.base_address = base_address
        entity.last_synced_at = synced_at or _utc_now()
        entity.updated_at = _utc_now()
        self.session.add(entity)

    async def set_active(self, source_id: str, is_active: bool) -> Optional[CapabilitySource]:
        entity = await self._get_entity(source_id)
        if entity is None:
            return None
        entity.is_active = is_active
        entity.updated_at = _utc_now()
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity.to_domain()
