"""
Tool catalog entity.

One row per invocable operation. Rows are never deleted: operations that
disappear from their source description are soft-deactivated so historical
action records keep a valid reference.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import JSON, Field, Text

from action_relay.core.models import Tool, ToolDefinition

from ..base import Base, _utc_now
from ._convert import plain_values


class ToolEntity(Base, table=True):
    """Entity for catalog tools.

    Table: ar_tools
    """

    __tablename__ = "ar_tools"
    __table_args__ = (UniqueConstraint("source_id", "operation_key", name="uq_ar_tools_source_operation"),)

    id: str = Field(primary_key=True, max_length=64)
    source_id: str = Field(foreign_key="ar_capability_sources.id", max_length=64, index=True)

    operation_key: str = Field(max_length=255)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    method: str = Field(max_length=16)
    path: str = Field(sa_type=Text)

    parameters: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    body_schema: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    protocol_tool_name: Optional[str] = Field(default=None, max_length=255)

    risk_level: str = Field(default="moderate", max_length=16, index=True)
    requires_confirmation: bool = Field(default=False)
    risk_overridden: bool = Field(default=False)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"ToolEntity(id={self.id}, operation_key={self.operation_key}, active={self.is_active})"

    @classmethod
    def from_domain(cls, tool: Tool) -> "ToolEntity":
        return cls(**plain_values(tool.model_dump()))

    def to_domain(self) -> Tool:
        return Tool.model_validate(self.model_dump(exclude={"created_at", "updated_at"}))

    def apply_definition(self, definition: ToolDefinition) -> None:
        """Refresh descriptive fields from a newer compilation and reactivate the row.

        An operator risk override is kept as-is.
        """
        self.name = definition.name
        self.description = definition.description
        self.method = definition.method
        self.path = definition.path
        self.parameters = definition.parameters
        self.body_schema = definition.body_schema
        self.protocol_tool_name = definition.protocol_tool_name
        self.tags = list(definition.tags)
        if not self.risk_overridden:
            self.risk_level = definition.risk_level.value
            self.requires_confirmation = definition.requires_confirmation
        self.is_active = True
        self.updated_at = _utc_now()
