"""Domain models for catalog, execution and audit entities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema
from .enums import (
    ActionStatus,
    AuthMode,
    BodyEncoding,
    PaginationStrategy,
    RiskLevel,
    SessionState,
    TransportKind,
)


def _utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class CapabilitySource(BaseSchema):
    """
    A system the relay can act on.

    For HTTP sources ``base_address`` is the URL prefix of every request; for
    process sources it is the command line that starts the tool server; for
    network sources it is a ``tcp://host:port`` address.
    """

    id: str = Field(default_factory=_new_id)
    name: str
    description: Optional[str] = None
    transport: TransportKind = TransportKind.http
    base_address: str = ""
    auth_mode: AuthMode = AuthMode.none
    auth_config: Dict[str, Any] = Field(default_factory=dict)
    body_encoding: BodyEncoding = BodyEncoding.json
    protocol_env: Dict[str, str] = Field(default_factory=dict)
    fingerprint: Optional[str] = None
    is_active: bool = True
    last_synced_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utc_now)


class ToolDefinition(BaseSchema):
    """A compiled operation, before it is bound to a stored catalog row."""

    operation_key: str
    name: str
    description: Optional[str] = None
    method: str
    path: str
    parameters: Optional[Dict[str, Any]] = None
    body_schema: Optional[Dict[str, Any]] = None
    protocol_tool_name: Optional[str] = None
    risk_level: RiskLevel = RiskLevel.moderate
    requires_confirmation: bool = False
    tags: List[str] = Field(default_factory=list)


class Tool(ToolDefinition):
    """
    A single invocable operation in the catalog.

    ``requires_confirmation`` follows ``risk_level`` (dangerous) unless overridden.
    ``risk_overridden`` marks an operator override that re-sync must keep.
    """

    id: str = Field(default_factory=_new_id)
    source_id: str
    is_active: bool = True
    risk_overridden: bool = False

    @property
    def is_protocol_tool(self) -> bool:
        return self.protocol_tool_name is not None


class SourceMetadata(BaseSchema):
    title: str = "Untitled API"
    description: Optional[str] = None
    version: Optional[str] = None
    base_address: Optional[str] = None
    fingerprint: str


class CompiledDescription(BaseSchema):
    """Output of a compiler run: metadata plus ordered tool definitions."""

    source_metadata: SourceMetadata
    tools: List[ToolDefinition] = Field(default_factory=list)


class SyncReport(BaseSchema):
    source_id: str
    changed: bool
    fingerprint: str
    inserted: int = 0
    updated: int = 0
    deactivated: int = 0


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class Principal(BaseSchema):
    """The acting user on whose behalf an action runs."""

    id: str
    roles: List[str] = Field(default_factory=list)
    is_admin: bool = False


class ActionRequest(BaseSchema):
    """A request from the reasoning collaborator to run a tool."""

    tool_id: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    principal: Principal
    conversation_id: Optional[str] = None


class BuiltRequest(BaseSchema):
    """Concrete HTTP call derived from a tool and its arguments."""

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None


class ExecutionResult(BaseSchema):
    """
    Outcome of one outbound call.

    ``status`` is 0 when the call never produced a response; ``error_message``
    is set exactly when the call did not succeed.
    """

    url: str
    status: int
    body: Any = None
    duration_ms: int = 0
    error_message: Optional[str] = None
    summary: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error_message is None


class PaginationState(BaseSchema):
    strategy: PaginationStrategy
    has_more: bool
    data_path: str = ""
    item_count: int = 0
    cursor: Optional[str] = None
    next_params: Optional[Dict[str, Any]] = None
    next_arguments: Optional[Dict[str, Any]] = None
    total_count: Optional[int] = None
    current_page: Optional[int] = None
    total_pages: Optional[int] = None
    per_page: Optional[int] = None
    limit: Optional[int] = None
    next_link: Optional[str] = None


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class ActionRecord(BaseSchema):
    """
    Audit record of one action.

    Tool name, method and URL are snapshots taken when the record is opened,
    so the record stays meaningful after the tool is deactivated.
    """

    id: str = Field(default_factory=_new_id)
    tool_id: str
    source_id: str
    tool_name: str
    method: str
    url: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    status: ActionStatus
    requires_confirmation: bool = False
    requested_by: str
    conversation_id: Optional[str] = None
    redo_of: Optional[str] = None

    response_status: Optional[int] = None
    response_body: Any = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None

    confirmed_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    executed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utc_now)


class ActionOutcome(BaseSchema):
    """What the reasoning collaborator receives for a submitted action."""

    requires_confirmation: bool
    record: ActionRecord
    result: Optional[ExecutionResult] = None
    pagination: Optional[PaginationState] = None


class SessionStatus(BaseSchema):
    """Introspection view of a protocol session."""

    source_id: str
    state: SessionState
    server_info: Optional[Dict[str, Any]] = None
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    pending_requests: int = 0
