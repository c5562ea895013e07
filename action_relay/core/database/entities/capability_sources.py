"""
Capability source entity.

A capability source is an external system (HTTP API or tool-protocol server)
whose operations are compiled into the tool catalog.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Field, Text

from action_relay.core.models import CapabilitySource

from ..base import Base, _utc_now
from ._convert import plain_values


class CapabilitySourceEntity(Base, table=True):
    """Entity for registered capability sources.

    Table: ar_capability_sources
    """

    __tablename__ = "ar_capability_sources"

    id: str = Field(primary_key=True, max_length=64)
    name: str = Field(max_length=128, index=True)
    description: Optional[str] = Field(default=None, sa_type=Text)

    transport: str = Field(max_length=32)
    base_address: str = Field(default="", sa_type=Text)
    body_encoding: str = Field(default="json", max_length=16)
    protocol_env: Dict[str, str] = Field(default_factory=dict, sa_type=JSON)

    auth_mode: str = Field(default="none", max_length=32)
    auth_config: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    fingerprint: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = Field(default=True, index=True)
    last_synced_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    created_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"CapabilitySourceEntity(id={self.id}, name={self.name}, transport={self.transport})"

    @classmethod
    def from_domain(cls, source: CapabilitySource) -> "CapabilitySourceEntity":
        return cls(**plain_values(source.model_dump()))

    def to_domain(self) -> CapabilitySource:
        return CapabilitySource.model_validate(self.model_dump(exclude={"updated_at"}))
