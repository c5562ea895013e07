"""Request and response bodies of the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from action_relay.core.models import AuthMode, BaseSchema, BodyEncoding, CapabilitySource, RiskLevel, TransportKind


class ExecuteActionRequest(BaseSchema):
    tool_id: str = Field(..., description="Catalog tool to run")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Concrete argument values")
    confirmed: bool = Field(default=False, description="The principal has already confirmed a dangerous action")
    conversation_id: Optional[str] = Field(default=None, description="Conversation this action belongs to")


class RedoActionRequest(BaseSchema):
    confirmed: bool = False


class RegisterSourceRequest(BaseSchema):
    name: str = Field(..., examples=["Stripe"])
    description: Optional[str] = None
    transport: TransportKind = TransportKind.http
    base_address: str = Field(default="", examples=["https://api.stripe.com", "npx -y @acme/tool-server"])
    auth_mode: AuthMode = AuthMode.none
    auth_config: Dict[str, Any] = Field(default_factory=dict)
    body_encoding: BodyEncoding = BodyEncoding.json
    protocol_env: Dict[str, str] = Field(default_factory=dict)

    def to_source(self) -> CapabilitySource:
        return CapabilitySource(**self.model_dump())


class SyncSourceRequest(BaseSchema):
    description: Optional[Dict[str, Any]] = Field(
        default=None, description="OpenAPI 3.x document; omitted for protocol sources"
    )
    force: bool = Field(default=False, description="Re-apply even if the description is unchanged")


class RiskOverrideRequest(BaseSchema):
    risk_level: RiskLevel
    requires_confirmation: Optional[bool] = None


class SourceView(BaseSchema):
    """A capability source without its secrets."""

    id: str
    name: str
    description: Optional[str] = None
    transport: TransportKind
    base_address: str
    auth_mode: AuthMode
    body_encoding: BodyEncoding
    fingerprint: Optional[str] = None
    is_active: bool
    last_synced_at: Optional[datetime] = None
    has_credentials: bool = False

    @classmethod
    def from_source(cls, source: CapabilitySource) -> "SourceView":
        data = source.model_dump(exclude={"auth_config", "protocol_env", "created_at"})
        return cls(**data, has_credentials=bool(source.auth_config))
