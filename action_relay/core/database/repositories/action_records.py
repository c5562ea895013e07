"""
Action record repository.

Records are inserted once and afterwards only moved through
:meth:`ActionRecordRepository.apply_transition`, a conditional update that
succeeds only while the row still holds the status the transition was
computed from. There is no update-anything or delete path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from action_relay.core.models import ActionRecord, ActionStatus

from ..entities._convert import plain_values
from ..entities.action_records import ActionRecordEntity
from .base import AsyncBaseRepository, QueryBuilder

# Columns fixed when the record is opened
_IMMUTABLE_FIELDS = frozenset(
    {"id", "tool_id", "source_id", "tool_name", "method", "url", "arguments", "requested_by", "redo_of", "created_at"}
)


class ActionRecordRepository(AsyncBaseRepository[ActionRecordEntity, ActionRecord]):
    """Repository for the action audit log."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ActionRecordEntity)

    async def create(self, item: ActionRecord) -> ActionRecord:
        entity = ActionRecordEntity.from_domain(item)
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity.to_domain()

    async def get_by_id(self, entity_id: str) -> Optional[ActionRecord]:
        stmt = select(ActionRecordEntity).where(ActionRecordEntity.id == entity_id)
        result = await self.session.exec(stmt)
        entity = result.one_or_none()
        return entity.to_domain() if entity else None

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[ActionRecord]:
        """List records newest first.

        Args:
            limit: Maximum records to return
            offset: Records to skip
            filters: Field filters (status, requested_by, tool_id, conversation_id)

        Returns:
            List of ActionRecord models
        """
        stmt = select(ActionRecordEntity).order_by(ActionRecordEntity.created_at.desc())  # type: ignore
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, ActionRecordEntity, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return [entity.to_domain() for entity in result.all()]

    async def list_stale_executing(self, started_before: datetime) -> List[ActionRecord]:
        stmt = select(ActionRecordEntity).where(
            ActionRecordEntity.status == ActionStatus.executing.value,
            ActionRecordEntity.executed_at < started_before,  # type: ignore
        )
        result = await self.session.exec(stmt)
        return [entity.to_domain() for entity in result.all()]

    async def apply_transition(self, before: ActionRecord, after: ActionRecord) -> bool:
        """Persist ``after`` only if the stored row is still in ``before.status``.

        Args:
            before: The record the transition was computed from
            after: The transitioned record

        Returns:
            True when exactly one row moved, False when another writer got there first
        """
        changes = _changed_columns(before, after)
        stmt = (
            update(ActionRecordEntity)
            .where(
                ActionRecordEntity.id == before.id,  # type: ignore
                ActionRecordEntity.status == before.status.value,  # type: ignore
            )
            .values(**changes)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        await self.session.commit()
        return result.rowcount == 1


def _changed_columns(before: ActionRecord, after: ActionRecord) -> Dict[str, Any]:
    old = before.model_dump()
    new = plain_values(after.model_dump())
    changes = {key: value for key, value in new.items() if key not in _IMMUTABLE_FIELDS and old.get(key) != value}
    # Always write the status so the update is never empty
    changes["status"] = after.status.value
    return changes
