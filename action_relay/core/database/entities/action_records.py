"""
Action record entity.

Append-mostly audit log of every action the relay has been asked to run.
Status changes are applied only through conditional updates keyed on the
current status; there is no delete path.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Field, Text

from action_relay.core.models import ActionRecord

from ..base import Base, _utc_now
from ._convert import plain_values


class ActionRecordEntity(Base, table=True):
    """Entity for the action audit log.

    Table: ar_action_records
    """

    __tablename__ = "ar_action_records"

    id: str = Field(primary_key=True, max_length=64)
    tool_id: str = Field(max_length=64, index=True)
    source_id: str = Field(max_length=64, index=True)

    # Snapshots taken when the record is opened
    tool_name: str = Field(max_length=255)
    method: str = Field(max_length=16)
    url: str = Field(sa_type=Text)
    arguments: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    status: str = Field(max_length=32, index=True)
    requires_confirmation: bool = Field(default=False)
    requested_by: str = Field(max_length=128, index=True)
    conversation_id: Optional[str] = Field(default=None, max_length=64, index=True)
    redo_of: Optional[str] = Field(default=None, max_length=64)

    response_status: Optional[int] = Field(default=None)
    response_body: Optional[Any] = Field(default=None, sa_type=JSON)
    duration_ms: Optional[int] = Field(default=None)
    error_message: Optional[str] = Field(default=None, sa_type=Text)

    confirmed_by: Optional[str] = Field(default=None, max_length=128)
    confirmed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    executed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"ActionRecordEntity(id={self.id}, tool={self.tool_name}, status={self.status})"

    @classmethod
    def from_domain(cls, record: ActionRecord) -> "ActionRecordEntity":
        return cls(**plain_values(record.model_dump()))

    def to_domain(self) -> ActionRecord:
        return ActionRecord.model_validate(self.model_dump())
